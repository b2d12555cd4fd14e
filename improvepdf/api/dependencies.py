from fastapi import HTTPException, Request

from improvepdf.api.schemas import JobIdRequest
from improvepdf.config.settings import Settings
from improvepdf.services import ServiceContainer, Services

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "CDN-Cache-Control": "no-store",
}


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_settings(request: Request) -> Settings:
    return get_container(request).settings


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the lazily built services.

    Raises ConfigurationError, mapped to HTTP 500 by the app.
    """
    return get_container(request).get()


def require_job_id(body: JobIdRequest | None) -> str:
    job_id = (body.id if body else None) or ""
    job_id = job_id.strip()
    if not job_id:
        raise HTTPException(status_code=400, detail="Missing id")
    return job_id
