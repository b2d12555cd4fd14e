from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

STEP_ORDER: tuple[str, ...] = ("extract", "normalize", "rewrite", "images", "render")

LogLevel = Literal["info", "warn", "error"]


class StepStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


TERMINAL_STATUSES = frozenset({StepStatus.COMPLETED, StepStatus.FAILED})


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def initial_steps() -> dict[str, StepStatus]:
    return {step: StepStatus.PENDING for step in STEP_ORDER}


class LogEntry(BaseModel):
    timestamp: str = Field(default_factory=utc_now_iso)
    level: LogLevel = "info"
    message: str


class JobManifest(BaseModel):
    """Canonical per-job document stored at ``jobs/<id>/manifest.json``.

    Field names are camelCase on the wire. Unknown fields written by other
    tooling are preserved across read-modify-write cycles.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    filename: str | None = None
    input_file: str | None = Field(default=None, alias="inputFile")
    steps: dict[str, StepStatus] = Field(default_factory=initial_steps)
    outputs: dict[str, str] = Field(default_factory=dict)
    logs: list[LogEntry] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: str = Field(default_factory=utc_now_iso, alias="createdAt")
    updated_at: str = Field(default_factory=utc_now_iso, alias="updatedAt")

    @field_validator("steps", mode="before")
    @classmethod
    def _complete_steps(cls, value: object) -> dict[str, object]:
        """Always hold exactly the five known steps; unknown keys are dropped."""
        given = value if isinstance(value, dict) else {}
        statuses = {step: given.get(step, StepStatus.PENDING) for step in STEP_ORDER}
        return {
            step: str(getattr(status, "value", status)).upper()
            for step, status in statuses.items()
        }

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: object) -> object:
        if isinstance(value, (int, float)):
            return (
                datetime.fromtimestamp(value / 1000, tz=timezone.utc)
                .isoformat(timespec="milliseconds")
                .replace("+00:00", "Z")
            )
        return value

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, document: object) -> "JobManifest":
        return cls.model_validate(document)
