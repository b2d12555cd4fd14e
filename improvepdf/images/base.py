from abc import ABC, abstractmethod

from improvepdf.images.models import ImageCandidate


class BaseImageProvider(ABC):
    """Contract for stock-photo search adapters."""

    name: str = ""

    @abstractmethod
    async def search(self, query: str) -> list[ImageCandidate]:
        """Return landscape candidates for query.

        Raises:
            ImageSearchError: if the provider request fails.
        """

    async def close(self) -> None:
        """Release network resources held by the provider."""
