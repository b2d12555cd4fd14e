from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from improvepdf.api.dependencies import get_services
from improvepdf.logging.logger import Log
from improvepdf.services import Services
from improvepdf.storage.exceptions import NotFoundError
from improvepdf.storage.keys import output_key

router = APIRouter(prefix="/api/download", tags=["download"])

ARTIFACTS: dict[str, tuple[str, str]] = {
    "pdf": ("ebook.pdf", "application/pdf"),
    "html": ("ebook.html", "text/html; charset=utf-8"),
    "md": ("ebook.md", "text/markdown; charset=utf-8"),
}


@router.get("/{job_id}/{kind}")
async def download(
    job_id: str, kind: str, services: Services = Depends(get_services)
) -> Response:
    artifact = ARTIFACTS.get(kind)
    if artifact is None:
        raise HTTPException(
            status_code=400, detail=f"Unknown artifact '{kind}'. Choose from: {list(ARTIFACTS)}"
        )
    filename, media_type = artifact
    try:
        data = await services.store.get(output_key(job_id, filename), retry=False)
    except NotFoundError as exc:
        Log.warning(f"[{job_id}] Download of {kind} requested before render: {exc}")
        raise HTTPException(status_code=404, detail="Not found") from exc
    extension = filename.rsplit(".", 1)[-1]
    return Response(
        content=data,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="ebook-{job_id}.{extension}"'},
    )
