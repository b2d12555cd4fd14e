import asyncio

import pytest

from improvepdf.jobs.models import JobManifest
from improvepdf.jobs.write_serializer import JobWriteSerializer, NoopWriteSerializer


class TestJobWriteSerializer:
    @pytest.mark.asyncio
    async def test_saves_and_releases_state(self) -> None:
        serializer = JobWriteSerializer()
        saved: list[JobManifest] = []

        async def perform(manifest: JobManifest) -> None:
            saved.append(manifest)

        manifest = JobManifest(id="job-1-abc")
        assert await serializer.save("job-1-abc", manifest, perform) is manifest
        assert saved == [manifest]
        assert not serializer.is_saving("job-1-abc")
        assert serializer.in_flight("job-1-abc") is None
        assert serializer.tracked_jobs() == 0

    @pytest.mark.asyncio
    async def test_state_does_not_grow_with_job_count(self) -> None:
        serializer = JobWriteSerializer()

        async def perform(manifest: JobManifest) -> None:
            return None

        for index in range(50):
            job_id = f"job-{index}-abc"
            await serializer.save(job_id, JobManifest(id=job_id), perform)

        assert serializer.tracked_jobs() == 0

    @pytest.mark.asyncio
    async def test_concurrent_save_of_same_job_is_dropped(self) -> None:
        serializer = JobWriteSerializer()
        release = asyncio.Event()
        performed: list[str] = []

        async def slow(manifest: JobManifest) -> None:
            performed.append(manifest.filename or "")
            await release.wait()

        first = JobManifest(id="job-1-abc", filename="first")
        second = JobManifest(id="job-1-abc", filename="second")
        task = asyncio.create_task(serializer.save("job-1-abc", first, slow))
        await asyncio.sleep(0)
        assert serializer.is_saving("job-1-abc")

        dropped = await serializer.save("job-1-abc", second, slow)
        release.set()
        await task

        assert dropped is first
        assert performed == ["first"]
        assert serializer.tracked_jobs() == 0

    @pytest.mark.asyncio
    async def test_other_jobs_are_not_blocked(self) -> None:
        serializer = JobWriteSerializer()
        release = asyncio.Event()
        performed: list[str] = []

        async def perform(manifest: JobManifest) -> None:
            performed.append(manifest.id)
            if manifest.id == "job-1-a":
                await release.wait()

        task = asyncio.create_task(serializer.save("job-1-a", JobManifest(id="job-1-a"), perform))
        await asyncio.sleep(0)
        await serializer.save("job-1-b", JobManifest(id="job-1-b"), perform)
        release.set()
        await task
        assert performed == ["job-1-a", "job-1-b"]

    @pytest.mark.asyncio
    async def test_failed_save_releases_lock(self) -> None:
        serializer = JobWriteSerializer()

        async def failing(manifest: JobManifest) -> None:
            raise RuntimeError("store down")

        with pytest.raises(RuntimeError):
            await serializer.save("job-1-abc", JobManifest(id="job-1-abc"), failing)
        assert not serializer.is_saving("job-1-abc")
        assert serializer.tracked_jobs() == 0

    @pytest.mark.asyncio
    async def test_forget_leaves_running_save_alone(self) -> None:
        serializer = JobWriteSerializer()
        release = asyncio.Event()

        async def slow(manifest: JobManifest) -> None:
            await release.wait()

        manifest = JobManifest(id="job-1-abc")
        task = asyncio.create_task(serializer.save("job-1-abc", manifest, slow))
        await asyncio.sleep(0)

        serializer.forget("job-1-abc")
        assert serializer.is_saving("job-1-abc")
        assert serializer.in_flight("job-1-abc") is manifest

        release.set()
        await task
        assert serializer.tracked_jobs() == 0


class TestNoopWriteSerializer:
    @pytest.mark.asyncio
    async def test_always_performs(self) -> None:
        serializer = NoopWriteSerializer()
        calls: list[str] = []

        async def perform(manifest: JobManifest) -> None:
            calls.append(manifest.id)

        manifest = JobManifest(id="job-1-abc")
        await serializer.save("job-1-abc", manifest, perform)
        await serializer.save("job-1-abc", manifest, perform)
        assert calls == ["job-1-abc", "job-1-abc"]
