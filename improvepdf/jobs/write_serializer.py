import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from improvepdf.jobs.models import JobManifest
from improvepdf.logging.logger import Log

SaveOperation = Callable[[JobManifest], Awaitable[None]]


class BaseWriteSerializer(ABC):
    """Sequencing policy for manifest saves issued from one process."""

    @abstractmethod
    async def save(
        self, job_id: str, manifest: JobManifest, perform: SaveOperation
    ) -> JobManifest | None:
        """Persist manifest through perform, or skip it.

        Returns the state now considered current for job_id in this process.
        """

    def forget(self, job_id: str) -> None:
        """Drop any in-memory state held for job_id."""


class JobWriteSerializer(BaseWriteSerializer):
    """Drops a save while another save of the same job is in flight.

    A dropped save is not queued: the caller gets back the manifest the
    in-flight save is writing. State is kept only while a save runs, so the
    maps hold at most one entry per job currently being written. Only
    same-process races are covered; writers in other instances still race
    with last-write-wins.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._in_flight: dict[str, JobManifest] = {}

    def is_saving(self, job_id: str) -> bool:
        lock = self._locks.get(job_id)
        return lock is not None and lock.locked()

    def in_flight(self, job_id: str) -> JobManifest | None:
        return self._in_flight.get(job_id)

    def tracked_jobs(self) -> int:
        return len(self._locks) + len(self._in_flight)

    async def save(
        self, job_id: str, manifest: JobManifest, perform: SaveOperation
    ) -> JobManifest | None:
        lock = self._locks.setdefault(job_id, asyncio.Lock())
        if lock.locked():
            Log.info(f"[{job_id}] Save already in progress, skipping duplicate save")
            return self._in_flight.get(job_id)

        try:
            async with lock:
                self._in_flight[job_id] = manifest
                await perform(manifest)
        finally:
            self._in_flight.pop(job_id, None)
            if not lock.locked() and self._locks.get(job_id) is lock:
                del self._locks[job_id]
        return manifest

    def forget(self, job_id: str) -> None:
        lock = self._locks.get(job_id)
        if lock is not None and not lock.locked():
            del self._locks[job_id]
            self._in_flight.pop(job_id, None)


class NoopWriteSerializer(BaseWriteSerializer):
    """Pass-through serializer for single-writer harnesses."""

    async def save(
        self, job_id: str, manifest: JobManifest, perform: SaveOperation
    ) -> JobManifest | None:
        await perform(manifest)
        return manifest
