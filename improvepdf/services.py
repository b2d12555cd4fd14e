"""Service wiring shared by the HTTP app and command-line entry points."""

from dataclasses import dataclass

from improvepdf.config.settings import Settings
from improvepdf.images.factory import ImageSearcherFactory
from improvepdf.images.searcher import ImageSearcher
from improvepdf.jobs.index import BaseJobIndex, JobIndexFactory
from improvepdf.jobs.manifest_store import JobManifestStore
from improvepdf.jobs.reaper import JobReaper
from improvepdf.jobs.write_serializer import JobWriteSerializer
from improvepdf.logging.logger import Log
from improvepdf.pipeline.factory import StepTriggerFactory, build_orchestrator
from improvepdf.pipeline.orchestrator import StepOrchestrator
from improvepdf.pipeline.triggers import BaseStepTrigger
from improvepdf.storage.base import BaseObjectStore
from improvepdf.storage.factory import ObjectStoreFactory


@dataclass
class Services:
    settings: Settings
    store: BaseObjectStore
    manifests: JobManifestStore
    index: BaseJobIndex
    orchestrator: StepOrchestrator
    reaper: JobReaper
    trigger: BaseStepTrigger
    searcher: ImageSearcher

    async def close(self) -> None:
        await self.trigger.close()
        await self.searcher.close()
        await self.store.close()


def build_services(
    settings: Settings,
    *,
    store: BaseObjectStore | None = None,
    trigger: BaseStepTrigger | None = None,
    searcher: ImageSearcher | None = None,
) -> Services:
    """Build every service from settings.

    Raises:
        ConfigurationError: if the store backend lacks its credential.
    """
    store = store or ObjectStoreFactory.create(settings)
    serializer = JobWriteSerializer()
    manifests = JobManifestStore(
        store,
        serializer=serializer,
        load_attempts=settings.job_load_attempts,
        load_backoff_seconds=settings.job_load_backoff_seconds,
        write_attempts=settings.store_write_attempts,
        write_backoff_seconds=settings.store_backoff_base_seconds,
    )
    index = JobIndexFactory.create(settings, store, manifests.load_job_status)
    manifests.attach_registrar(index.register)
    trigger = trigger or StepTriggerFactory.create(settings)
    searcher = searcher or ImageSearcherFactory.create(settings)
    orchestrator = build_orchestrator(settings, manifests, trigger, searcher)
    reaper = JobReaper(manifests, retention_days=settings.retention_days, serializer=serializer)
    Log.info(
        f"Services ready (store={settings.store_backend}, index={settings.job_index_strategy}, "
        f"trigger={settings.trigger_mode})"
    )
    return Services(
        settings=settings,
        store=store,
        manifests=manifests,
        index=index,
        orchestrator=orchestrator,
        reaper=reaper,
        trigger=trigger,
        searcher=searcher,
    )


class ServiceContainer:
    """Builds services on first use so the app can start without credentials.

    A missing credential then surfaces as ``ConfigurationError`` on the
    request that needs the store.
    """

    def __init__(self, settings: Settings, services: Services | None = None) -> None:
        self.settings = settings
        self._services = services

    def get(self) -> Services:
        if self._services is None:
            self._services = build_services(self.settings)
        return self._services

    async def close(self) -> None:
        if self._services is not None:
            await self._services.close()
            self._services = None
