"""Job enumeration without a database.

``ListingJobIndex`` discovers jobs by listing manifest keys and is the
default. ``ManifestJobIndex`` keeps ``jobs/index.json`` as an optional
optimization behind the same interface.
"""

import asyncio
import random
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from improvepdf.config.settings import Settings
from improvepdf.jobs.models import JobManifest
from improvepdf.jobs.status import JobSummary
from improvepdf.logging.logger import Log
from improvepdf.storage.base import BaseObjectStore
from improvepdf.storage.exceptions import NotFoundError, StoreError
from improvepdf.storage.keys import INDEX_KEY, JOBS_PREFIX, job_id_from_manifest_key

ManifestLoader = Callable[[str], Awaitable[JobManifest | None]]

SORT_FIELDS = {"createdAt": "created_at", "updatedAt": "updated_at"}
MAX_PAGE_SIZE = 200


@dataclass
class JobListPage:
    jobs: list[JobSummary] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 50
    has_more: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "jobs": [job.to_dict() for job in self.jobs],
            "total": self.total,
            "page": self.page,
            "pageSize": self.page_size,
            "hasMore": self.has_more,
        }


def paginate(
    summaries: list[JobSummary],
    page: int = 1,
    page_size: int = 50,
    sort: str = "updatedAt",
    order: str = "desc",
) -> JobListPage:
    """Sort and slice summaries in memory. page >= 1, page_size in [1, 200]."""
    page = max(1, page)
    page_size = min(MAX_PAGE_SIZE, max(1, page_size))
    attribute = SORT_FIELDS.get(sort, "updated_at")
    ordered = sorted(
        summaries,
        key=lambda s: getattr(s, attribute) or "",
        reverse=order != "asc",
    )
    total = len(ordered)
    start = (page - 1) * page_size
    end = start + page_size
    return JobListPage(
        jobs=ordered[start:end],
        total=total,
        page=page,
        page_size=page_size,
        has_more=end < total,
    )


class BaseJobIndex(ABC):
    """Enumeration contract shared by both strategies."""

    def __init__(self, store: BaseObjectStore, loader: ManifestLoader) -> None:
        self._store = store
        self._loader = loader

    @abstractmethod
    async def job_ids(self) -> list[str]:
        """Return every known job id."""

    async def register(self, job_id: str) -> None:
        """Record a newly created job id. No-op when ids are discovered by listing."""

    async def get_all_jobs_summaries(self) -> list[JobSummary]:
        """Load every job's summary; one unreadable manifest never hides the others."""
        ids = await self.job_ids()
        if not ids:
            return []
        results = await asyncio.gather(
            *(self._loader(job_id) for job_id in ids), return_exceptions=True
        )
        summaries: list[JobSummary] = []
        for job_id, result in zip(ids, results):
            if isinstance(result, BaseException):
                Log.warning(f"[{job_id}] Skipping job in listing: {result}")
                continue
            if result is None:
                Log.warning(f"[{job_id}] Manifest listed but not loadable yet")
                continue
            summaries.append(JobSummary.from_manifest(result))
        Log.debug(f"Loaded {len(summaries)} job summaries from {len(ids)} ids")
        return summaries

    async def list_jobs(
        self,
        page: int = 1,
        page_size: int = 50,
        sort: str = "updatedAt",
        order: str = "desc",
    ) -> JobListPage:
        summaries = await self.get_all_jobs_summaries()
        return paginate(summaries, page=page, page_size=page_size, sort=sort, order=order)


class ListingJobIndex(BaseJobIndex):
    """Index-free enumeration over ``jobs/<id>/manifest.json`` keys."""

    async def job_ids(self) -> list[str]:
        listed = await self._store.list(JOBS_PREFIX)
        ids: list[str] = []
        for item in listed:
            job_id = job_id_from_manifest_key(item.pathname)
            if job_id is not None and job_id not in ids:
                ids.append(job_id)
        return ids


class ManifestJobIndex(BaseJobIndex):
    """Enumeration through a single ``jobs/index.json`` list of ids.

    Appends are optimistic: read, append, overwrite, and retry with jittered
    backoff when the write fails.
    """

    def __init__(
        self,
        store: BaseObjectStore,
        loader: ManifestLoader,
        *,
        append_attempts: int = 6,
        backoff_unit_seconds: float = 0.04,
        jitter_seconds: float = 0.05,
    ) -> None:
        super().__init__(store, loader)
        self._append_attempts = max(1, append_attempts)
        self._backoff_unit_seconds = backoff_unit_seconds
        self._jitter_seconds = jitter_seconds

    async def job_ids(self) -> list[str]:
        return await self._load_index()

    async def register(self, job_id: str) -> None:
        await self.append_job_id(job_id)

    async def append_job_id(self, job_id: str) -> None:
        """Add job_id to the index once; repeated calls leave a single entry."""
        for attempt in range(1, self._append_attempts + 1):
            try:
                ids = await self._load_index()
                if job_id in ids:
                    return
                ids.append(job_id)
                await self._store.put_json(INDEX_KEY, ids, overwrite=True)
                return
            except StoreError as exc:
                if attempt == self._append_attempts:
                    raise
                delay = self._backoff_unit_seconds * attempt + random.uniform(  # noqa: S311
                    0, self._jitter_seconds
                )
                Log.warning(
                    f"[{job_id}] Index append attempt {attempt} failed ({exc}), "
                    f"retrying in {delay:.3f}s"
                )
                await asyncio.sleep(delay)

    async def _load_index(self) -> list[str]:
        try:
            ids = await self._store.get_json(INDEX_KEY, retry=False)
        except NotFoundError:
            return []
        except ValueError:
            Log.warning(f"{INDEX_KEY} is not valid JSON, treating as empty")
            return []
        if not isinstance(ids, list):
            return []
        return [str(job_id) for job_id in ids]


class JobIndexFactory:
    """Creates the configured enumeration strategy."""

    STRATEGIES = ("listing", "index")

    @classmethod
    def create(
        cls, settings: Settings, store: BaseObjectStore, loader: ManifestLoader
    ) -> BaseJobIndex:
        strategy = settings.job_index_strategy.lower()
        if strategy == "listing":
            return ListingJobIndex(store, loader)
        if strategy == "index":
            return ManifestJobIndex(
                store, loader, append_attempts=settings.index_append_attempts
            )
        raise ValueError(
            f"Unknown job index strategy '{strategy}'. Choose from: {list(cls.STRATEGIES)}"
        )
