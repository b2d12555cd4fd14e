class StoreError(Exception):
    """Base exception for all object store errors."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class NotFoundError(StoreError):
    """Raised when a key does not exist (or is not yet visible after a write)."""


class StoreUnavailableError(StoreError):
    """Raised when the store keeps failing with transport errors or 5xx responses."""


class WriteCollisionError(StoreError):
    """Raised when a create-only write targets a key that already exists."""
