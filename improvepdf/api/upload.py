from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from improvepdf.api.dependencies import get_services
from improvepdf.api.schemas import UploadResponse
from improvepdf.jobs.ids import generate_job_id
from improvepdf.logging.logger import Log
from improvepdf.services import Services
from improvepdf.storage.keys import input_key

router = APIRouter(prefix="/api", tags=["upload"])


@router.post("/upload", response_model=UploadResponse)
async def upload(
    file: UploadFile = File(...),
    services: Services = Depends(get_services),
) -> UploadResponse:
    """Store the uploaded PDF and create its job manifest."""
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Missing file")

    job_id = generate_job_id()
    stored = await services.store.put(
        input_key(job_id),
        data,
        overwrite=True,
        content_type=file.content_type or "application/pdf",
    )
    await services.manifests.create_job_status(
        job_id, filename=file.filename, input_file=stored.pathname
    )
    Log.info(f"[{job_id}] Uploaded {file.filename} ({len(data)} bytes)")
    return UploadResponse(
        fileId=job_id,
        url=stored.url,
        pathname=stored.pathname,
        size=stored.size,
        uploadedAt=stored.uploaded_at,
    )
