from improvepdf.images.base import BaseImageProvider
from improvepdf.images.exceptions import ImageSearchError
from improvepdf.images.models import ChosenImage, ImageCandidate
from improvepdf.images.selection import keywords_from_heading, pick_best_landscape
from improvepdf.logging.logger import Log
from improvepdf.text.markdown import Section


class ImageSearcher:
    """Chooses one illustration per heading across the configured providers.

    A provider failure is logged and the remaining providers are still used.
    With no provider configured the searcher returns no images.
    """

    def __init__(self, providers: list[BaseImageProvider], images_per_job: int = 3) -> None:
        self._providers = providers
        self._images_per_job = max(0, images_per_job)

    @property
    def enabled(self) -> bool:
        return bool(self._providers)

    async def close(self) -> None:
        for provider in self._providers:
            await provider.close()

    async def search(self, query: str) -> list[ImageCandidate]:
        candidates: list[ImageCandidate] = []
        for provider in self._providers:
            try:
                candidates.extend(await provider.search(query))
            except ImageSearchError as exc:
                Log.warning(f"Image provider {exc.provider} failed for '{query}': {exc}")
        return candidates

    async def choose_for_sections(self, sections: list[Section]) -> list[ChosenImage]:
        chosen: list[ChosenImage] = []
        used: set[str] = set()
        for section in sections:
            if len(chosen) >= self._images_per_job or not self._providers:
                break
            keywords = keywords_from_heading(section.heading)
            if not keywords:
                continue
            query = " ".join(keywords)
            fresh = [c for c in await self.search(query) if c.url not in used]
            best = pick_best_landscape(fresh, want=1)
            if not best:
                Log.debug(f"No landscape image for section {section.id} ('{query}')")
                continue
            used.add(best[0].url)
            chosen.append(
                ChosenImage(section_id=section.id, candidate=best[0], caption=section.heading)
            )
        return chosen
