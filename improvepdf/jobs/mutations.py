"""Pure manifest mutations.

Each function returns a new manifest and never removes information, so a
lost race between two writers costs at most the loser's additions.
"""

from typing import Any

from improvepdf.jobs.models import (
    STEP_ORDER,
    TERMINAL_STATUSES,
    JobManifest,
    LogEntry,
    LogLevel,
    StepStatus,
)


def _require_step(step: str) -> None:
    if step not in STEP_ORDER:
        raise ValueError(f"Unknown step '{step}'. Choose from: {list(STEP_ORDER)}")


def with_log(manifest: JobManifest, level: LogLevel, message: str) -> JobManifest:
    updated = manifest.model_copy(deep=True)
    updated.logs.append(LogEntry(level=level, message=message))
    return updated


def with_step_status(
    manifest: JobManifest,
    step: str,
    status: StepStatus,
    message: str | None = None,
) -> JobManifest:
    """Set exactly one step; append a log line when a message is given."""
    _require_step(step)
    updated = manifest.model_copy(deep=True)
    updated.steps[step] = StepStatus(status)
    if message:
        level: LogLevel = "error" if updated.steps[step] is StepStatus.FAILED else "info"
        updated.logs.append(LogEntry(level=level, message=message))
    return updated


def with_output(manifest: JobManifest, name: str, reference: str) -> JobManifest:
    updated = manifest.model_copy(deep=True)
    updated.outputs[name] = reference
    return updated


def with_metadata(manifest: JobManifest, values: dict[str, Any]) -> JobManifest:
    """Merge counters into metadata; existing keys not in values are kept."""
    updated = manifest.model_copy(deep=True)
    updated.metadata.update(values)
    return updated


def completed(manifest: JobManifest, message: str = "Job completed") -> JobManifest:
    """Force every non-terminal step to COMPLETED."""
    updated = manifest.model_copy(deep=True)
    for step, status in updated.steps.items():
        if status not in TERMINAL_STATUSES:
            updated.steps[step] = StepStatus.COMPLETED
    updated.logs.append(LogEntry(level="info", message=message))
    return updated


def failed(manifest: JobManifest, error: str, step: str | None = None) -> JobManifest:
    """Mark one step FAILED (when given) and record the error; other steps untouched."""
    updated = manifest.model_copy(deep=True)
    if step is not None:
        _require_step(step)
        updated.steps[step] = StepStatus.FAILED
    prefix = f"[{step}] " if step else ""
    updated.logs.append(LogEntry(level="error", message=f"{prefix}{error}"))
    return updated
