import httpx

from improvepdf.images.base import BaseImageProvider
from improvepdf.images.exceptions import ImageSearchError
from improvepdf.images.models import ImageCandidate

SEARCH_URL = "https://api.pexels.com/v1/search"


class PexelsImageProvider(BaseImageProvider):
    """Image search through the Pexels REST API."""

    name = "pexels"

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int = 15,
        per_page: int = 10,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._per_page = per_page
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def close(self) -> None:
        await self._client.aclose()

    async def search(self, query: str) -> list[ImageCandidate]:
        try:
            response = await self._client.get(
                SEARCH_URL,
                params={
                    "query": query,
                    "orientation": "landscape",
                    "per_page": str(self._per_page),
                },
                headers={"Authorization": self._api_key},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ImageSearchError(f"Pexels search failed: {exc}", self.name) from exc

        candidates: list[ImageCandidate] = []
        for item in response.json().get("photos", []):
            src = item.get("src") or {}
            url = src.get("large2x") or src.get("original") or src.get("large")
            if not url:
                continue
            candidates.append(
                ImageCandidate(
                    url=url,
                    width=int(item.get("width") or 0),
                    height=int(item.get("height") or 0),
                    source=self.name,
                    author=item.get("photographer"),
                    profile=item.get("photographer_url"),
                    license="Pexels License",
                    alt=item.get("alt") or query,
                )
            )
        return candidates
