"""
Guide Service

Entry point for guide requests: serves the cached document, rebuilds it on
a miss (one rebuild per key at a time) and falls back to the empty
document when the pipeline fails.
"""
import logging
from dataclasses import dataclass

from xmltv_bridge.services.guide_cache import TTLCache
from xmltv_bridge.services.guide_pipeline import GuidePipeline
from xmltv_bridge.services.xmltv_builder import EMPTY_DOCUMENT
from xmltv_bridge.utils.logging_helpers import sanitize_url_for_logging


logger = logging.getLogger(__name__)

GUIDE_CACHE_KEY = "xmltv:root"


@dataclass(slots=True, frozen=True)
class GuideDocument:
    content: str
    degraded: bool = False


class GuideService:
    """Caches guide documents per playlist for a fixed window."""

    def __init__(
        self,
        pipeline: GuidePipeline,
        cache: TTLCache,
        *,
        default_playlist_url: str,
        ttl_seconds: float = 600,
    ) -> None:
        self.pipeline = pipeline
        self.cache = cache
        self.default_playlist_url = default_playlist_url
        self.ttl_seconds = ttl_seconds

    def cache_key(self, playlist_url: str | None = None) -> str:
        if not playlist_url or playlist_url == self.default_playlist_url:
            return GUIDE_CACHE_KEY
        return f"xmltv:{playlist_url}"

    async def _build(self, playlist_url: str) -> str:
        result = await self.pipeline.run(playlist_url)
        return result.document

    async def get_document(self, playlist_url: str | None = None) -> GuideDocument:
        """
        Guide document for a playlist

        Never raises: a non-HTTP playlist URL or any pipeline failure yields
        the empty document marked as degraded, and nothing is cached for it.
        """
        url = playlist_url or self.default_playlist_url
        if not url.lower().startswith(("http://", "https://")):
            logger.warning("Unusable playlist URL %s, serving empty guide", sanitize_url_for_logging(url))
            return GuideDocument(content=EMPTY_DOCUMENT, degraded=True)

        key = self.cache_key(url)
        try:
            content = await self.cache.get_or_compute(
                key,
                self.ttl_seconds,
                lambda: self._build(url),
            )
        except Exception as exc:
            logger.error(
                "Guide build failed for %s: %s",
                sanitize_url_for_logging(url),
                exc,
                exc_info=True,
            )
            return GuideDocument(content=EMPTY_DOCUMENT, degraded=True)
        return GuideDocument(content=content)

    async def refresh(self, playlist_url: str | None = None) -> GuideDocument:
        """Drop the cached document and rebuild it."""
        self.cache.delete(self.cache_key(playlist_url))
        return await self.get_document(playlist_url)
