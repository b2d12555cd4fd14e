from dataclasses import dataclass

from improvepdf.jobs.models import STEP_ORDER
from improvepdf.pipeline.base import StepHandler


@dataclass(frozen=True)
class StepDescriptor:
    name: str
    handler: StepHandler
    next_step: str | None


def build_step_registry(handlers: dict[str, StepHandler]) -> dict[str, StepDescriptor]:
    """Chain handlers in pipeline order; every step must have exactly one handler."""
    missing = [step for step in STEP_ORDER if step not in handlers]
    unknown = [step for step in handlers if step not in STEP_ORDER]
    if missing or unknown:
        raise ValueError(f"Step handlers mismatch: missing={missing} unknown={unknown}")
    registry: dict[str, StepDescriptor] = {}
    for position, step in enumerate(STEP_ORDER):
        next_step = STEP_ORDER[position + 1] if position + 1 < len(STEP_ORDER) else None
        registry[step] = StepDescriptor(name=step, handler=handlers[step], next_step=next_step)
    return registry
