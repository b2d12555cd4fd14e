import httpx

from improvepdf.images.base import BaseImageProvider
from improvepdf.images.exceptions import ImageSearchError
from improvepdf.images.models import ImageCandidate

SEARCH_URL = "https://api.unsplash.com/search/photos"


class UnsplashImageProvider(BaseImageProvider):
    """Image search through the Unsplash REST API."""

    name = "unsplash"

    def __init__(
        self,
        *,
        access_key: str,
        timeout_seconds: int = 15,
        per_page: int = 10,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._access_key = access_key
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
                headers={"Authorization": f"Client-ID {self._access_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ImageSearchError(f"Unsplash search failed: {exc}", self.name) from exc

        candidates: list[ImageCandidate] = []
        for item in response.json().get("results", []):
            urls = item.get("urls") or {}
            user = item.get("user") or {}
            url = urls.get("regular") or urls.get("full") or urls.get("raw")
            if not url:
                continue
            candidates.append(
                ImageCandidate(
                    url=url,
                    width=int(item.get("width") or 0),
                    height=int(item.get("height") or 0),
                    source=self.name,
                    author=user.get("name"),
                    profile=(user.get("links") or {}).get("html"),
                    license="Unsplash License",
                    alt=item.get("alt_description") or item.get("description") or query,
                )
            )
        return candidates
