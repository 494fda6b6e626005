"""
Guide Pipeline

Playlist -> dedup -> concurrent station resolution -> sequential schedule
retrieval -> programme normalization -> XMLTV document.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from zoneinfo import ZoneInfo

from xmltv_bridge.services.channel_matcher import ChannelMatcher
from xmltv_bridge.services.guide_types import PlaylistChannel, Programme, ProgrammeRow
from xmltv_bridge.services.playlist_service import PlaylistClient, dedupe_channels, parse_playlist
from xmltv_bridge.services.schedule_source import ScheduleSource
from xmltv_bridge.services.xmltv_builder import (
    DEFAULT_GUIDE_TIMEZONE,
    build_document,
    xmltv_channels_from_playlist,
)
from xmltv_bridge.utils.logging_helpers import (
    log_build_start,
    log_build_summary,
    log_channel_progress,
    log_section_end,
    log_section_start,
    sanitize_url_for_logging,
)
from xmltv_bridge.utils.normalize import channel_id_from_name
from xmltv_bridge.utils.timezone import parse_time_range


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GuideBuildResult:
    document: str
    channels_total: int
    stations_resolved: int
    programmes_total: int
    schedule_failures: list[str] = field(default_factory=list)


def normalize_programmes(
    channel_name: str,
    rows: Sequence[ProgrammeRow],
    now: datetime,
) -> list[Programme]:
    """
    Turn raw listing rows into programmes for one channel

    Rows without a title or with an unparseable time range are dropped.

    Args:
        channel_name: Playlist display name the rows belong to
        rows: Raw rows from the station page
        now: Timezone-aware anchor for time-of-day parsing

    Returns:
        Programmes in row order
    """
    channel_id = channel_id_from_name(channel_name)
    programmes = []
    for row in rows:
        title = (row.title or "").strip()
        parsed = parse_time_range(row.time_range_text, now) if title else None
        if parsed is None:
            logger.debug("Dropping row '%s' (%s) for %s", row.title, row.time_range_text, channel_name)
            continue
        start, stop = parsed
        programmes.append(Programme(
            channel_id=channel_id,
            channel_name=channel_name,
            start=start,
            stop=stop,
            title=title,
            desc=row.desc or None,
            category=row.category or None,
        ))
    return programmes


class GuidePipeline:
    """Builds one guide document per run; holds no state between runs."""

    def __init__(
        self,
        playlist_client: PlaylistClient,
        source: ScheduleSource,
        matcher: ChannelMatcher,
        *,
        tz_name: str = DEFAULT_GUIDE_TIMEZONE,
        schedule_days: int = 1,
        search_concurrency: int = 0,
        clock: Callable[[ZoneInfo], datetime] | None = None,
    ) -> None:
        self.playlist_client = playlist_client
        self.source = source
        self.matcher = matcher
        self.tz_name = tz_name
        self.schedule_days = schedule_days
        self._zone = ZoneInfo(tz_name)
        self._clock = clock or (lambda zone: datetime.now(zone))
        self._search_semaphore = asyncio.Semaphore(search_concurrency) if search_concurrency > 0 else None

    async def run(self, playlist_url: str) -> GuideBuildResult:
        """
        Build the guide for a playlist

        Raises:
            PlaylistFetchError: If the playlist can't be downloaded
        """
        log_build_start(logger)
        logger.info("Playlist: %s", sanitize_url_for_logging(playlist_url))

        text = await self.playlist_client.fetch(playlist_url)
        channels = dedupe_channels(parse_playlist(text))
        logger.info("Playlist contains %s unique channels", len(channels))

        station_map = await self.resolve_stations(channels)
        programmes, failures = await self.collect_programmes(channels, station_map)

        document = build_document(
            xmltv_channels_from_playlist(channels),
            programmes,
            self.tz_name,
        )
        log_build_summary(logger, len(channels), len(station_map), len(programmes))

        return GuideBuildResult(
            document=document,
            channels_total=len(channels),
            stations_resolved=len(station_map),
            programmes_total=len(programmes),
            schedule_failures=failures,
        )

    async def resolve_stations(self, channels: Sequence[PlaylistChannel]) -> dict[str, str]:
        """
        Match every channel to a station URL concurrently

        Each search runs as its own task and swallows its own failure, so
        one bad channel never cancels or affects the others.

        Returns:
            display name -> station URL, only for confident matches
        """
        log_section_start(logger, f"station resolution ({len(channels)} channels)")

        tasks = [
            asyncio.create_task(self._resolve_channel(channel.display_name))
            for channel in channels
        ]
        results = await asyncio.gather(*tasks)

        station_map: dict[str, str] = {}
        for channel, station_url in zip(channels, results):
            if station_url and channel.display_name not in station_map:
                station_map[channel.display_name] = station_url

        logger.info("Resolved %s of %s channels to stations", len(station_map), len(channels))
        log_section_end(logger, "station resolution")
        return station_map

    async def _resolve_channel(self, display_name: str) -> str | None:
        try:
            if self._search_semaphore is not None:
                async with self._search_semaphore:
                    candidates = await self.source.search_stations(display_name)
            else:
                candidates = await self.source.search_stations(display_name)

            chosen = self.matcher.resolve_station(display_name, candidates)
        except Exception as exc:
            logger.warning("Station search failed for '%s': %s", display_name, exc)
            return None

        if chosen is None:
            logger.debug("No station for '%s' (%s candidates)", display_name, len(candidates))
            return None
        logger.debug("Channel '%s' -> %s", display_name, chosen.station_url)
        return chosen.station_url

    async def collect_programmes(
        self,
        channels: Sequence[PlaylistChannel],
        station_map: dict[str, str],
    ) -> tuple[list[Programme], list[str]]:
        """
        Fetch schedules one station at a time, in playlist order

        Returns:
            (programmes, names of channels whose schedule fetch failed)
        """
        resolved = [channel for channel in channels if channel.display_name in station_map]
        log_section_start(logger, f"schedule retrieval ({len(resolved)} stations)")

        now = self._clock(self._zone)
        programmes: list[Programme] = []
        failures: list[str] = []

        for idx, channel in enumerate(resolved, start=1):
            name = channel.display_name
            log_channel_progress(logger, idx, len(resolved), name)
            try:
                schedule = await self.source.fetch_schedule(station_map[name], self.schedule_days)
                channel_programmes = normalize_programmes(name, schedule.rows, now)
            except Exception as exc:
                logger.warning("Schedule fetch failed for '%s': %s", name, exc)
                failures.append(name)
                continue

            logger.debug(
                "'%s' (station %s): %s of %s rows usable",
                name,
                schedule.station_name,
                len(channel_programmes),
                len(schedule.rows),
            )
            programmes.extend(channel_programmes)

        log_section_end(logger, "schedule retrieval")
        return programmes, failures
