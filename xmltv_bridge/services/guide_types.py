"""
Shared dataclasses used across the guide building pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class PlaylistChannel:
    """One playlist entry: display name plus optional tvg metadata."""
    name: str
    tvg_id: str | None = None
    tvg_name: str | None = None
    group_title: str | None = None
    logo: str | None = None
    source_url: str | None = None

    @property
    def display_name(self) -> str:
        return self.tvg_name or self.name

    @property
    def identity_key(self) -> str:
        """Deduplication key: lower-cased tvg-name, else name."""
        return self.display_name.lower()


@dataclass(slots=True)
class StationCandidate:
    """Station returned by a schedule-source search, with the source's own ranking."""
    station_name: str
    station_url: str
    score: float = 0.0


@dataclass(slots=True)
class ProgrammeRow:
    """Raw listing row as scraped from a station page."""
    title: str
    time_range_text: str
    desc: str | None = None
    category: str | None = None


@dataclass(slots=True)
class StationSchedule:
    """Listing rows for one station page."""
    station_name: str
    rows: list[ProgrammeRow] = field(default_factory=list)


@dataclass(slots=True)
class Programme:
    """Normalized programme ready for the guide document."""
    channel_id: str
    channel_name: str
    start: datetime
    stop: datetime
    title: str
    desc: str | None = None
    category: str | None = None


@dataclass(slots=True)
class XmltvChannel:
    """Channel element of the guide document."""
    id: str
    display_name: str
    icon: str | None = None


__all__ = [
    "PlaylistChannel",
    "StationCandidate",
    "ProgrammeRow",
    "StationSchedule",
    "Programme",
    "XmltvChannel",
]
