"""
Dependency wiring

Builds the guide service graph from settings once at startup and exposes
it to request handlers through FastAPI dependencies.
"""
import logging
from typing import Any, TypeVar

from xmltv_bridge.config import CustomSettings
from xmltv_bridge.services.channel_matcher import ChannelAliasTable, ChannelMatcher
from xmltv_bridge.services.guide_cache import TTLCache
from xmltv_bridge.services.guide_pipeline import GuidePipeline
from xmltv_bridge.services.guide_service import GuideService
from xmltv_bridge.services.playlist_service import PlaylistClient
from xmltv_bridge.services.schedule_source import TVPassportSource
from xmltv_bridge.services.scheduler_service import GuideWarmScheduler


logger = logging.getLogger(__name__)

T = TypeVar('T')


class ServiceRegistry:
    """Holds the singleton services created during application startup."""

    def __init__(self):
        self._services: dict[type, Any] = {}

    def register(self, service_type: type[T], instance: T) -> None:
        self._services[service_type] = instance
        logger.debug(f"Registered service: {service_type.__name__}")

    def get(self, service_type: type[T]) -> T:
        """
        Get a registered service instance.

        Raises:
            KeyError: If service type is not registered
        """
        try:
            return self._services[service_type]
        except KeyError:
            raise KeyError(f"Service {service_type.__name__} not registered") from None

    def reset(self) -> None:
        """Drop all registered services (mainly for testing)."""
        self._services.clear()
        logger.debug("Service registry reset")


registry = ServiceRegistry()


def build_guide_service(config: CustomSettings, cache: TTLCache | None = None) -> GuideService:
    """Wire playlist client, schedule source, matcher, pipeline and cache."""
    matcher = ChannelMatcher(
        ChannelAliasTable.load(config.channel_aliases_path),
        threshold=config.match_threshold,
    )
    pipeline = GuidePipeline(
        PlaylistClient(timeout=config.playlist_timeout_sec),
        TVPassportSource(
            config.schedule_source_base_url,
            search_timeout=config.search_timeout_sec,
            schedule_timeout=config.schedule_timeout_sec,
        ),
        matcher,
        tz_name=config.guide_timezone,
        schedule_days=config.schedule_days,
        search_concurrency=config.station_search_concurrency,
    )
    return GuideService(
        pipeline,
        cache or TTLCache(),
        default_playlist_url=config.default_playlist_url,
        ttl_seconds=config.guide_cache_ttl_sec,
    )


def init_services(config: CustomSettings) -> GuideService:
    """Create and register the service graph."""
    guide_service = build_guide_service(config)
    registry.register(GuideService, guide_service)
    registry.register(
        GuideWarmScheduler,
        GuideWarmScheduler(
            guide_service,
            config.guide_warm_cron,
            config.guide_warm_misfire_grace_sec,
        ),
    )
    return guide_service


def get_guide_service() -> GuideService:
    """FastAPI dependency returning the registered guide service."""
    return registry.get(GuideService)


def get_warm_scheduler() -> GuideWarmScheduler:
    """FastAPI dependency returning the registered warm-up scheduler."""
    return registry.get(GuideWarmScheduler)
