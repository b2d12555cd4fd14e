from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from improvepdf.api.dependencies import (
    NO_STORE_HEADERS,
    get_container,
    get_services,
    require_job_id,
)
from improvepdf.api.schemas import EnqueueResponse, JobIdRequest, StepResponse
from improvepdf.config.settings import ConfigurationError
from improvepdf.jobs.exceptions import JobNotFoundError
from improvepdf.jobs.index import JobListPage
from improvepdf.logging.logger import Log
from improvepdf.pipeline.exceptions import StepFailureError
from improvepdf.services import ServiceContainer, Services
from improvepdf.storage.exceptions import StoreError

router = APIRouter(prefix="/api", tags=["jobs"])


@router.post("/enqueue", response_model=EnqueueResponse)
async def enqueue(
    body: JobIdRequest | None = None,
    services: Services = Depends(get_services),
) -> EnqueueResponse:
    job_id = require_job_id(body)
    await services.manifests.ensure_job(job_id)
    triggered = await services.orchestrator.start(job_id)
    return EnqueueResponse(ok=triggered, id=job_id)


@router.get("/jobs/list")
async def list_jobs(
    page: int = Query(default=1),
    page_size: int = Query(default=50, alias="pageSize"),
    sort: str = Query(default="updatedAt"),
    order: str = Query(default="desc"),
    container: ServiceContainer = Depends(get_container),
) -> JSONResponse:
    """Paginated job summaries; answers an empty page rather than an error."""
    try:
        listing = await container.get().index.list_jobs(
            page=page, page_size=page_size, sort=sort, order=order
        )
        return JSONResponse(listing.to_dict(), headers=NO_STORE_HEADERS)
    except (ConfigurationError, StoreError) as exc:
        Log.error(f"Job listing failed: {exc}")
        body = JobListPage(page=max(1, page)).to_dict()
        body["error"] = str(exc)
        return JSONResponse(body, headers=NO_STORE_HEADERS)


@router.get("/jobs/recent")
async def recent_jobs(
    limit: int = Query(default=20, ge=1, le=200),
    container: ServiceContainer = Depends(get_container),
) -> JSONResponse:
    try:
        listing = await container.get().index.list_jobs(
            page=1, page_size=limit, sort="createdAt", order="desc"
        )
        body: dict[str, object] = {"jobs": [job.to_dict() for job in listing.jobs]}
    except (ConfigurationError, StoreError) as exc:
        Log.error(f"Recent jobs listing failed: {exc}")
        body = {"jobs": [], "error": str(exc)}
    return JSONResponse(body, headers=NO_STORE_HEADERS)


@router.post("/jobs/retry-extract", response_model=EnqueueResponse)
async def retry_extract(
    body: JobIdRequest | None = None,
    services: Services = Depends(get_services),
) -> EnqueueResponse:
    job_id = require_job_id(body)
    triggered = await services.orchestrator.retry_step(job_id, "extract")
    return EnqueueResponse(ok=triggered, id=job_id)


@router.post("/jobs/{step}", response_model=StepResponse)
async def run_step(
    step: str,
    body: JobIdRequest | None = None,
    services: Services = Depends(get_services),
) -> StepResponse | JSONResponse:
    """Run one pipeline step for the job and push the next one."""
    job_id = require_job_id(body)
    try:
        services.orchestrator.descriptor(step)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    try:
        run = await services.orchestrator.run_step(job_id, step)
    except StepFailureError as exc:
        return JSONResponse(
            {"ok": False, "id": job_id, "step": step, "error": str(exc)}, status_code=500
        )
    return StepResponse(id=job_id, file=run.file)


async def job_manifest_response(job_id: str, services: Services) -> JSONResponse:
    job_id = job_id.strip()
    if not job_id:
        return JSONResponse({"error": "Missing id"}, status_code=400, headers=NO_STORE_HEADERS)
    try:
        manifest = await services.manifests.get_job_or_throw(job_id)
    except JobNotFoundError:
        return JSONResponse(
            {"error": "Job not found", "id": job_id}, status_code=404, headers=NO_STORE_HEADERS
        )
    except StoreError as exc:
        Log.error(f"[{job_id}] Manifest read failed: {exc}")
        return JSONResponse(
            {"error": str(exc) or "Failed to load job status", "id": job_id},
            status_code=500,
            headers=NO_STORE_HEADERS,
        )
    return JSONResponse(manifest.to_document(), headers=NO_STORE_HEADERS)


@router.get("/jobs/{job_id}")
async def get_job(job_id: str, services: Services = Depends(get_services)) -> JSONResponse:
    return await job_manifest_response(job_id, services)
