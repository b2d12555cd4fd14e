import time

from fastapi import APIRouter, Depends

from improvepdf.api.dependencies import get_container
from improvepdf.api.schemas import HealthResponse
from improvepdf.config.settings import ConfigurationError
from improvepdf.logging.logger import Log
from improvepdf.services import ServiceContainer
from improvepdf.storage.exceptions import StoreError

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(container: ServiceContainer = Depends(get_container)) -> HealthResponse:
    """Check the store with a throwaway write and delete."""
    settings = container.settings
    has_token = bool(settings.blob_read_write_token) or settings.store_backend == "memory"
    store_ok = False
    if has_token:
        key = f"__health-{int(time.time() * 1000)}.txt"
        try:
            store = container.get().store
            await store.put_text(key, "ok", overwrite=True)
            await store.delete(key)
            store_ok = True
        except (ConfigurationError, StoreError) as exc:
            Log.warning(f"Health check write failed: {exc}")
    return HealthResponse(ok=has_token and store_ok, hasToken=has_token, storeOk=store_ok)
