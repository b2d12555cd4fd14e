from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from improvepdf.api.dependencies import get_services
from improvepdf.api.jobs import job_manifest_response
from improvepdf.api.schemas import ReapResponse
from improvepdf.services import Services

router = APIRouter(prefix="/api/status", tags=["status"])


@router.get("/reap", response_model=ReapResponse)
async def reap(services: Services = Depends(get_services)) -> ReapResponse:
    """Delete jobs older than the retention window."""
    deleted = await services.reaper.reap()
    return ReapResponse(deleted=deleted)


@router.get("/{job_id}")
async def job_status(job_id: str, services: Services = Depends(get_services)) -> JSONResponse:
    return await job_manifest_response(job_id, services)
