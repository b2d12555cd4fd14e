class PipelineError(Exception):
    """Base exception for step execution and chaining."""

    def __init__(self, message: str, job_id: str, step: str) -> None:
        super().__init__(message)
        self.job_id = job_id
        self.step = step


class StepFailureError(PipelineError):
    """Raised when a step's own work failed. The step is already marked FAILED."""


class TriggerFailureError(PipelineError):
    """Raised when the next step could not be invoked. ``step`` is the target step."""
