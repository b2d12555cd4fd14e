from pydantic import BaseModel, Field


class JobIdRequest(BaseModel):
    """Body of every write/trigger endpoint; ``id`` is validated by the route."""

    id: str | None = Field(default=None, description="Job identifier")


class UploadResponse(BaseModel):
    ok: bool = True
    fileId: str
    url: str
    pathname: str
    size: int
    uploadedAt: str


class StepResponse(BaseModel):
    ok: bool = True
    id: str
    file: str | None = None


class EnqueueResponse(BaseModel):
    ok: bool
    id: str


class ReapResponse(BaseModel):
    ok: bool = True
    deleted: int


class HealthResponse(BaseModel):
    ok: bool
    hasToken: bool
    storeOk: bool
