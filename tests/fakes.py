"""
Fakes and helpers shared by the guide pipeline tests
"""
import asyncio
from datetime import datetime
from zoneinfo import ZoneInfo


from xmltv_bridge.services.guide_pipeline import GuideBuildResult
from xmltv_bridge.services.guide_types import StationCandidate, StationSchedule


GUIDE_TZ = "America/Chicago"
FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=ZoneInfo(GUIDE_TZ))


def fixed_clock(zone):
    return FIXED_NOW.astimezone(zone)


class FakePlaylistClient:
    """Returns canned playlist text, or raises the configured error."""

    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.requested: list[str] = []

    async def fetch(self, url: str) -> str:
        self.requested.append(url)
        if self.error:
            raise self.error
        return self.text


class FakeScheduleSource:
    """In-memory schedule source with per-name/per-url failures."""

    def __init__(
        self,
        stations: dict[str, list[StationCandidate]] | None = None,
        schedules: dict[str, StationSchedule] | None = None,
        search_errors: dict[str, Exception] | None = None,
        schedule_errors: dict[str, Exception] | None = None,
    ):
        self.stations = stations or {}
        self.schedules = schedules or {}
        self.search_errors = search_errors or {}
        self.schedule_errors = schedule_errors or {}
        self.searched: list[str] = []
        self.fetched: list[str] = []
        self.active_fetches = 0
        self.max_active_fetches = 0

    async def search_stations(self, name: str) -> list[StationCandidate]:
        self.searched.append(name)
        await asyncio.sleep(0)
        if name in self.search_errors:
            raise self.search_errors[name]
        return list(self.stations.get(name, []))

    async def fetch_schedule(self, station_url: str, days: int = 1) -> StationSchedule:
        self.fetched.append(station_url)
        self.active_fetches += 1
        self.max_active_fetches = max(self.max_active_fetches, self.active_fetches)
        try:
            await asyncio.sleep(0)
            if station_url in self.schedule_errors:
                raise self.schedule_errors[station_url]
            return self.schedules.get(station_url, StationSchedule(station_name="Unknown"))
        finally:
            self.active_fetches -= 1


def make_playlist(*entries: tuple[str, str]) -> str:
    """Build M3U text from (extinf attributes+name, stream url) pairs."""
    lines = ["#EXTM3U"]
    for extinf, url in entries:
        lines.append(f"#EXTINF:-1 {extinf}")
        lines.append(url)
    return "\n".join(lines) + "\n"




class FakePipeline:
    """Counts builds per playlist; fails for URLs listed in `failing`."""

    def __init__(self, failing: set[str] | None = None, delay: float = 0):
        self.failing = failing or set()
        self.delay = delay
        self.runs: list[str] = []

    async def run(self, playlist_url: str) -> GuideBuildResult:
        self.runs.append(playlist_url)
        await asyncio.sleep(self.delay)
        if playlist_url in self.failing:
            raise RuntimeError(f"cannot build {playlist_url}")
        document = f"<tv build=\"{len(self.runs)}\" src=\"{playlist_url}\"/>"
        return GuideBuildResult(document, channels_total=1, stations_resolved=1, programmes_total=0)
