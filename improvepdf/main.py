from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from improvepdf.api import download, health, jobs, status, upload
from improvepdf.config.settings import ConfigurationError, Settings
from improvepdf.jobs.exceptions import JobError, JobNotFoundError
from improvepdf.logging.logger import Log
from improvepdf.services import ServiceContainer, Services
from improvepdf.storage.exceptions import StoreError


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    """Build the HTTP app. Services are created on first request unless given."""
    settings = settings or (services.settings if services else Settings())
    Log.configure(settings.log_level)
    container = ServiceContainer(settings, services=services)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await container.close()

    app = FastAPI(title="Improve PDF", version="0.1.0", lifespan=lifespan)
    app.state.container = container

    app.include_router(upload.router)
    app.include_router(jobs.router)
    app.include_router(status.router)
    app.include_router(download.router)
    app.include_router(health.router)

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse({"ok": False, "error": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(ConfigurationError)
    async def configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
        Log.error(f"Configuration error on {request.url.path}: {exc}")
        return JSONResponse({"ok": False, "error": str(exc)}, status_code=500)

    @app.exception_handler(JobNotFoundError)
    async def job_not_found(request: Request, exc: JobNotFoundError) -> JSONResponse:
        return JSONResponse(
            {"ok": False, "error": "Job not found", "id": exc.job_id}, status_code=404
        )

    @app.exception_handler(JobError)
    async def job_error(request: Request, exc: JobError) -> JSONResponse:
        Log.error(f"[{exc.job_id}] {exc.operation or 'job operation'} failed: {exc}")
        return JSONResponse(
            {"ok": False, "error": str(exc), "id": exc.job_id}, status_code=500
        )

    @app.exception_handler(StoreError)
    async def store_error(request: Request, exc: StoreError) -> JSONResponse:
        Log.error(f"Store error on {request.url.path}: {exc}")
        return JSONResponse({"ok": False, "error": str(exc)}, status_code=500)

    return app


def main() -> None:
    """Entry point: load settings -> build app -> serve."""
    settings = Settings()
    uvicorn.run(create_app(settings), host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    main()
