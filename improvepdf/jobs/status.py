from collections.abc import Mapping
from dataclasses import dataclass

from improvepdf.jobs.models import JobManifest, StepStatus


def derive_overall_status(steps: Mapping[str, str]) -> str:
    """Collapse per-step statuses into one job status.

    Precedence: any FAILED, then all COMPLETED, then any RUNNING, else PENDING.
    """
    values = [str(getattr(v, "value", v)) for v in steps.values()]
    if StepStatus.FAILED.value in values:
        return StepStatus.FAILED.value
    if values and all(v == StepStatus.COMPLETED.value for v in values):
        return StepStatus.COMPLETED.value
    if StepStatus.RUNNING.value in values:
        return StepStatus.RUNNING.value
    return StepStatus.PENDING.value


@dataclass(frozen=True)
class JobSummary:
    id: str
    status: str
    filename: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_manifest(cls, manifest: JobManifest) -> "JobSummary":
        return cls(
            id=manifest.id,
            filename=manifest.filename,
            status=derive_overall_status(manifest.steps),
            created_at=manifest.created_at,
            updated_at=manifest.updated_at,
        )

    def to_dict(self) -> dict[str, str | None]:
        return {
            "id": self.id,
            "filename": self.filename,
            "status": self.status,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
