import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

from improvepdf.jobs import mutations
from improvepdf.jobs.exceptions import JobNotFoundError, JobSaveError
from improvepdf.jobs.models import JobManifest, LogEntry, LogLevel, StepStatus, utc_now_iso
from improvepdf.jobs.write_serializer import BaseWriteSerializer, NoopWriteSerializer
from improvepdf.logging.logger import Log
from improvepdf.storage.base import BaseObjectStore, save_with_retry
from improvepdf.storage.exceptions import (
    NotFoundError,
    StoreError,
    StoreUnavailableError,
    WriteCollisionError,
)
from improvepdf.storage.keys import manifest_key, step_artifact_key, step_result_key

Registrar = Callable[[str], Awaitable[None]]


class JobManifestStore:
    """Read-modify-write access to job manifests in the object store.

    Every mutation loads the full manifest, applies a pure function from
    ``mutations`` and saves the full document back. There is no
    compare-and-swap: concurrent writers on the same job are last-write-wins.
    """

    def __init__(
        self,
        store: BaseObjectStore,
        *,
        serializer: BaseWriteSerializer | None = None,
        registrar: Registrar | None = None,
        load_attempts: int = 3,
        load_backoff_seconds: float = 0.05,
        write_attempts: int = 5,
        write_backoff_seconds: float = 0.1,
    ) -> None:
        self._store = store
        self._serializer = serializer or NoopWriteSerializer()
        self._registrar = registrar
        self._load_attempts = max(1, load_attempts)
        self._load_backoff_seconds = load_backoff_seconds
        self._write_attempts = write_attempts
        self._write_backoff_seconds = write_backoff_seconds

    @property
    def store(self) -> BaseObjectStore:
        return self._store

    def attach_registrar(self, registrar: Registrar | None) -> None:
        """Set the callback that records new job ids in the job index."""
        self._registrar = registrar

    async def create_job_status(
        self,
        job_id: str,
        filename: str | None = None,
        input_file: str | None = None,
        message: str = "Job created",
    ) -> JobManifest:
        """Build an all-PENDING manifest, save it, then register it best-effort."""
        manifest = JobManifest(
            id=job_id,
            filename=filename,
            input_file=input_file,
            logs=[LogEntry(level="info", message=message)],
        )
        await self.save_job_status(manifest, operation="create_job_status")
        await self._register(job_id)
        Log.info(f"[{job_id}] Job manifest created (filename={filename})")
        return manifest

    async def ensure_job(self, job_id: str, input_file: str | None = None) -> JobManifest:
        """Return the manifest, creating a minimal one when none is visible yet.

        The lookup retries like ``get_job_or_throw`` and the fallback write is
        create-only, so a manifest that is merely late to appear is never
        replaced.
        """
        try:
            return await self.get_job_or_throw(job_id)
        except JobNotFoundError:
            pass
        Log.warning(f"[{job_id}] No manifest found, creating a minimal one")
        manifest = JobManifest(
            id=job_id,
            input_file=input_file,
            logs=[LogEntry(level="info", message="Manifest created on demand")],
        )
        manifest.updated_at = utc_now_iso()
        try:
            await self._store.put_json(
                manifest_key(job_id), manifest.to_document(), overwrite=False
            )
        except WriteCollisionError:
            Log.info(f"[{job_id}] Manifest already exists, keeping the stored one")
            return await self.get_job_or_throw(job_id)
        except StoreError as exc:
            raise JobSaveError(
                f"ensure_job failed for job {job_id}: {exc}",
                job_id=job_id,
                operation="ensure_job",
            ) from exc
        await self._register(job_id)
        return manifest

    async def load_job_status(self, job_id: str) -> JobManifest | None:
        """Single-attempt read. Returns None when the manifest does not exist."""
        key = manifest_key(job_id)
        try:
            raw = await self._store.get(key, retry=False)
        except NotFoundError:
            return None
        try:
            manifest = JobManifest.from_document(json.loads(raw))
        except ValueError as exc:
            raise StoreError(f"Manifest {key} is not a valid job document: {exc}", key=key) from exc
        if manifest.id != job_id:
            Log.warning(f"[{job_id}] Manifest carried id '{manifest.id}', using key id")
            manifest.id = job_id
        return manifest

    async def get_job_or_throw(self, job_id: str) -> JobManifest:
        """Load with bounded linear backoff to absorb store propagation delay.

        Raises:
            JobNotFoundError: if the manifest is still absent after all attempts.
            StoreUnavailableError: if the store kept failing on the last attempt.
        """
        for attempt in range(1, self._load_attempts + 1):
            try:
                manifest = await self.load_job_status(job_id)
            except StoreUnavailableError:
                if attempt == self._load_attempts:
                    raise
                manifest = None
            if manifest is not None:
                return manifest
            if attempt < self._load_attempts:
                await asyncio.sleep(self._load_backoff_seconds * attempt)
        raise JobNotFoundError(
            f"Unknown job id: {job_id}", job_id=job_id, operation="get_job_or_throw"
        )

    async def save_job_status(
        self, manifest: JobManifest, operation: str = "save_job_status"
    ) -> JobManifest | None:
        """Stamp updatedAt and overwrite the stored manifest with the full document."""
        manifest.updated_at = utc_now_iso()
        try:
            return await self._serializer.save(manifest.id, manifest, self._write)
        except StoreError as exc:
            raise JobSaveError(
                f"{operation} failed for job {manifest.id}: {exc}",
                job_id=manifest.id,
                operation=operation,
            ) from exc

    async def update_step_status(
        self,
        job_id: str,
        step: str,
        status: StepStatus,
        message: str | None = None,
    ) -> JobManifest:
        return await self._mutate(
            job_id,
            f"update_step_status:{step}",
            lambda m: mutations.with_step_status(m, step, status, message),
        )

    async def add_job_output(self, job_id: str, name: str, reference: str) -> JobManifest:
        return await self._mutate(
            job_id,
            f"add_job_output:{name}",
            lambda m: mutations.with_output(m, name, reference),
        )

    async def update_job_metadata(self, job_id: str, values: dict[str, Any]) -> JobManifest:
        return await self._mutate(
            job_id,
            "update_job_metadata",
            lambda m: mutations.with_metadata(m, values),
        )

    async def complete_job(self, job_id: str, message: str = "Job completed") -> JobManifest:
        return await self._mutate(
            job_id, "complete_job", lambda m: mutations.completed(m, message)
        )

    async def fail_job(self, job_id: str, error: str, step: str | None = None) -> JobManifest:
        operation = f"fail_job:{step}" if step else "fail_job"
        return await self._mutate(
            job_id, operation, lambda m: mutations.failed(m, error, step)
        )

    async def add_job_log(self, job_id: str, level: LogLevel, message: str) -> None:
        """Append a log line. Failures are logged and swallowed."""
        try:
            await self._mutate(
                job_id, "add_job_log", lambda m: mutations.with_log(m, level, message)
            )
        except Exception as exc:
            Log.warning(f"[{job_id}] Could not append job log '{message}': {exc}")

    async def save_processing_data(
        self, job_id: str, step: str, data: str, filename: str
    ) -> str:
        """Store an intermediate text artifact under ``jobs/<id>/<step>/<filename>``."""
        stored = await self._store.put_text(
            step_artifact_key(job_id, step, filename), data, overwrite=True
        )
        await self.add_job_log(job_id, "info", f"Saved {step} data: {filename}")
        return stored.url or stored.pathname

    async def save_step_result(self, job_id: str, step: str, document: object) -> str:
        """Store the step's single JSON result document under ``jobs/<id>/<step>.json``."""
        stored = await self._store.put_json(
            step_result_key(job_id, step, "json"), document, overwrite=True
        )
        return stored.url or stored.pathname

    async def _mutate(
        self,
        job_id: str,
        operation: str,
        mutation: Callable[[JobManifest], JobManifest],
    ) -> JobManifest:
        try:
            current = await self.get_job_or_throw(job_id)
        except StoreError as exc:
            raise JobSaveError(
                f"{operation} failed for job {job_id}: {exc}",
                job_id=job_id,
                operation=operation,
            ) from exc
        updated = mutation(current)
        saved = await self.save_job_status(updated, operation=operation)
        if saved is not updated:
            raise JobSaveError(
                f"{operation} for job {job_id} was dropped: another save of this job "
                "was in flight",
                job_id=job_id,
                operation=operation,
            )
        return updated

    async def _write(self, manifest: JobManifest) -> None:
        await save_with_retry(
            self._store,
            manifest_key(manifest.id),
            manifest.to_document(),
            overwrite=True,
            attempts=self._write_attempts,
            base_delay_seconds=self._write_backoff_seconds,
        )

    async def _register(self, job_id: str) -> None:
        if self._registrar is None:
            return
        try:
            await self._registrar(job_id)
        except Exception as exc:
            Log.warning(f"[{job_id}] Job index registration failed: {exc}")
