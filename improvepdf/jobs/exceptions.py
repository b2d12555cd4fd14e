class JobError(Exception):
    """Base exception for job manifest operations."""

    def __init__(self, message: str, job_id: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.job_id = job_id
        self.operation = operation


class JobNotFoundError(JobError):
    """Raised when a manifest is still absent after all load attempts."""


class JobSaveError(JobError):
    """Raised when persisting a manifest mutation fails after store retries."""
