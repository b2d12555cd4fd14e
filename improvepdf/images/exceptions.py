class ImageSearchError(Exception):
    """Raised when an image provider request fails."""

    def __init__(self, message: str, provider: str) -> None:
        super().__init__(message)
        self.provider = provider
