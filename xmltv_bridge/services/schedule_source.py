"""
Schedule Source

Interface to the external listings site plus the TVPassport adapter that
scrapes station search results and station schedule pages.
"""
from __future__ import annotations

import logging
from typing import Protocol

import httpx
from lxml import etree, html  # type: ignore

from xmltv_bridge.services.channel_matcher import similarity
from xmltv_bridge.services.guide_types import ProgrammeRow, StationCandidate, StationSchedule


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.tvpassport.com"

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml",
}


class ScheduleSource(Protocol):
    """Station search and schedule retrieval. Implementations never raise on upstream failure."""

    async def search_stations(self, name: str) -> list[StationCandidate]:
        ...

    async def fetch_schedule(self, station_url: str, days: int = 1) -> StationSchedule:
        ...


def _has_class(name: str) -> str:
    return f"contains(concat(' ', normalize-space(@class), ' '), ' {name} ')"


def _class_text(node: html.HtmlElement, class_name: str) -> str:
    found = node.xpath(f".//*[{_has_class(class_name)}]")
    if not found:
        return ""
    return " ".join(found[0].text_content().split())


class TVPassportSource:
    """Schedule source backed by tvpassport.com listing pages."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        search_timeout: float = 15.0,
        schedule_timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.search_timeout = search_timeout
        self.schedule_timeout = schedule_timeout
        self._transport = transport

    async def _get_document(self, url: str, timeout: float, params: dict | None = None) -> html.HtmlElement | None:
        """GET a page and parse it, None on any fetch or parse failure."""
        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                headers=DEFAULT_HEADERS,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning("HTTP %s from %s", exc.response.status_code, url)
            return None
        except httpx.HTTPError as exc:
            logger.warning("Request to %s failed: %s", url, type(exc).__name__)
            return None

        try:
            return html.fromstring(response.text)
        except (etree.ParserError, ValueError) as exc:
            logger.warning("Unparseable page from %s: %s", url, exc)
            return None

    async def search_stations(self, name: str) -> list[StationCandidate]:
        """
        Search stations by channel name

        Args:
            name: Channel display name

        Returns:
            Candidates sorted by approximate similarity, best first; empty on failure
        """
        document = await self._get_document(
            f"{self.base_url}/tv-listings",
            self.search_timeout,
            params={"search": name},
        )
        if document is None:
            return []

        path = (
            f"//*[{_has_class('listings')}]//*[{_has_class('station')}]"
            f"//*[{_has_class('title')}]//a[@href]"
        )
        candidates: list[StationCandidate] = []
        for anchor in document.xpath(path):
            station_name = " ".join(anchor.text_content().split())
            href = anchor.get("href", "")
            if not station_name or not href.startswith("/"):
                continue
            candidates.append(StationCandidate(
                station_name=station_name,
                station_url=self.base_url + href,
                score=similarity(name, station_name),
            ))

        candidates.sort(key=lambda candidate: candidate.score, reverse=True)
        logger.debug("Search '%s' returned %s station(s)", name, len(candidates))
        return candidates

    async def fetch_schedule(self, station_url: str, days: int = 1) -> StationSchedule:
        """
        Scrape a station page into raw listing rows

        Only the current listing page is available from this source, so
        days beyond the first are not fetched.

        Args:
            station_url: Absolute station page URL
            days: Requested listing days

        Returns:
            Station name and rows; no rows on failure
        """
        if days > 1:
            logger.debug("Station pages list the current day only; ignoring days=%s", days)

        document = await self._get_document(station_url, self.schedule_timeout)
        if document is None:
            return StationSchedule(station_name="Unknown")

        headings = document.xpath("//h1")
        station_name = " ".join(headings[0].text_content().split()) if headings else ""

        rows = self._parse_rows(
            document,
            row_class="program",
            title_class="program-title",
            time_class="program-time",
            desc_class="program-description",
            category_class="program-genre",
        )
        if not rows:
            rows = self._parse_rows(
                document,
                row_class="row",
                title_class="title",
                time_class="time",
                desc_class="description",
            )

        return StationSchedule(station_name=station_name or "Unknown", rows=rows)

    @staticmethod
    def _parse_rows(
        document: html.HtmlElement,
        *,
        row_class: str,
        title_class: str,
        time_class: str,
        desc_class: str,
        category_class: str | None = None,
    ) -> list[ProgrammeRow]:
        rows = []
        for node in document.xpath(f"//*[{_has_class('listings')}]//*[{_has_class(row_class)}]"):
            title = _class_text(node, title_class)
            time_range = _class_text(node, time_class)
            if not title or not time_range:
                continue
            rows.append(ProgrammeRow(
                title=title,
                time_range_text=time_range,
                desc=_class_text(node, desc_class) or None,
                category=(_class_text(node, category_class) or None) if category_class else None,
            ))
        return rows
