from improvepdf.config.settings import ConfigurationError, Settings
from improvepdf.storage.base import BaseObjectStore
from improvepdf.storage.blob_client import BlobStoreClient
from improvepdf.storage.memory_store import InMemoryObjectStore


class ObjectStoreFactory:
    """Creates the configured object store backend."""

    BACKENDS = ("blob", "memory")

    @classmethod
    def create(cls, settings: Settings) -> BaseObjectStore:
        backend = settings.store_backend.lower()
        if backend == "memory":
            return InMemoryObjectStore()
        if backend == "blob":
            if not settings.blob_read_write_token:
                raise ConfigurationError(
                    "BLOB_READ_WRITE_TOKEN is required for STORE_BACKEND=blob. "
                    "Set it in the environment, or use STORE_BACKEND=memory for "
                    "local development."
                )
            return BlobStoreClient(
                token=settings.blob_read_write_token,
                read_token=settings.blob_read_token,
                api_url=settings.blob_api_url,
                public_host=settings.blob_public_host,
                read_attempts=settings.store_read_attempts,
                backoff_base_seconds=settings.store_backoff_base_seconds,
                timeout_seconds=settings.store_timeout_seconds,
            )
        raise ValueError(
            f"Unknown store backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
