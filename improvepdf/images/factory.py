from improvepdf.config.settings import Settings
from improvepdf.images.base import BaseImageProvider
from improvepdf.images.pexels_adapter import PexelsImageProvider
from improvepdf.images.searcher import ImageSearcher
from improvepdf.images.unsplash_adapter import UnsplashImageProvider


class ImageSearcherFactory:
    """Creates an image searcher with every provider that has a key configured."""

    @classmethod
    def create(cls, settings: Settings) -> ImageSearcher:
        providers: list[BaseImageProvider] = []
        if settings.unsplash_access_key:
            providers.append(
                UnsplashImageProvider(
                    access_key=settings.unsplash_access_key,
                    timeout_seconds=settings.images_timeout_seconds,
                )
            )
        if settings.pexels_api_key:
            providers.append(
                PexelsImageProvider(
                    api_key=settings.pexels_api_key,
                    timeout_seconds=settings.images_timeout_seconds,
                )
            )
        return ImageSearcher(providers, images_per_job=settings.images_per_job)
