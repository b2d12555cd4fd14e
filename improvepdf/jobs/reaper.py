from datetime import datetime, timedelta, timezone

from improvepdf.jobs.manifest_store import JobManifestStore
from improvepdf.jobs.write_serializer import BaseWriteSerializer
from improvepdf.logging.logger import Log
from improvepdf.storage.keys import JOBS_PREFIX, job_id_from_manifest_key, job_prefix


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class JobReaper:
    """Deletes jobs whose manifest is older than the retention window."""

    def __init__(
        self,
        manifests: JobManifestStore,
        retention_days: int = 7,
        serializer: BaseWriteSerializer | None = None,
    ) -> None:
        self._manifests = manifests
        self._store = manifests.store
        self._retention = timedelta(days=retention_days)
        self._serializer = serializer

    async def reap(self, now: datetime | None = None) -> int:
        """Delete every expired job. Per-job failures are logged and skipped.

        Returns:
            Number of jobs whose manifest was deleted.
        """
        cutoff = (now or datetime.now(timezone.utc)) - self._retention
        listed = await self._store.list(JOBS_PREFIX)
        deleted = 0
        for item in listed:
            job_id = job_id_from_manifest_key(item.pathname)
            if job_id is None:
                continue
            try:
                if await self._is_expired(job_id, item.uploaded_at, cutoff):
                    await self._delete_job(job_id)
                    deleted += 1
            except Exception as exc:
                Log.warning(f"[{job_id}] Reaping failed, skipping: {exc}")
        Log.info(f"Reaped {deleted} jobs older than {cutoff.isoformat()}")
        return deleted

    async def _is_expired(
        self, job_id: str, uploaded_at: str | None, cutoff: datetime
    ) -> bool:
        manifest = await self._manifests.load_job_status(job_id)
        created = _parse_timestamp(manifest.created_at) if manifest else None
        if created is None:
            created = _parse_timestamp(uploaded_at)
        return created is not None and created < cutoff

    async def _delete_job(self, job_id: str) -> None:
        keys = [item.pathname for item in await self._store.list(job_prefix(job_id))]
        manifest = f"{job_prefix(job_id)}manifest.json"
        # The manifest is always deleted last.
        for key in sorted(keys, key=lambda k: k == manifest):
            await self._store.delete(key)
        if self._serializer is not None:
            self._serializer.forget(job_id)
        Log.info(f"[{job_id}] Job deleted by retention policy")
