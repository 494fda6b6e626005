"""
Playlist Service

Downloads M3U playlists and turns them into deduplicated channel records.
"""
import logging
import re
from collections.abc import Iterable

import httpx

from xmltv_bridge.services.guide_types import PlaylistChannel
from xmltv_bridge.utils.logging_helpers import sanitize_url_for_logging


logger = logging.getLogger(__name__)

_ATTRIBUTE = re.compile(r'(\w[\w-]*)="([^"]*)"')


class PlaylistFetchError(RuntimeError):
    """Raised when the playlist can't be downloaded"""


class PlaylistClient:
    """Fetches raw playlist text over HTTP with a hard timeout."""

    def __init__(
        self,
        timeout: float = 15.0,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self._transport = transport

    async def fetch(self, url: str) -> str:
        """
        Download playlist text

        Args:
            url: Playlist URL

        Returns:
            Raw playlist text

        Raises:
            PlaylistFetchError: On network errors, timeouts or non-success status
        """
        safe_url = sanitize_url_for_logging(url)
        logger.info("Downloading playlist from %s...", safe_url)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise PlaylistFetchError(f"Playlist fetch timed out after {self.timeout}s: {safe_url}") from exc
        except httpx.HTTPStatusError as exc:
            raise PlaylistFetchError(
                f"Playlist fetch failed: HTTP {exc.response.status_code} for {safe_url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise PlaylistFetchError(f"Playlist fetch failed for {safe_url}: {type(exc).__name__}") from exc

        logger.info("Downloaded playlist (%s bytes)", len(response.content))
        return response.text


def _split_attrs_and_name(value: str) -> tuple[str, str]:
    idx = value.rfind(",")
    if idx == -1:
        return value.strip(), ""
    return value[:idx].strip(), value[idx + 1:].strip()


def parse_playlist(text: str) -> list[PlaylistChannel]:
    """
    Parse M3U text into channel records

    Each '#EXTINF' line opens an entry; the next http(s) line closes it.
    Entries without a stream URL are discarded.

    Args:
        text: Raw playlist text

    Returns:
        Channels in playlist order
    """
    channels: list[PlaylistChannel] = []
    current: dict | None = None

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith("#EXTINF"):
            attrs, name = _split_attrs_and_name(line[line.find(":") + 1:])
            current = {"name": name}
            for key, value in _ATTRIBUTE.findall(attrs):
                if key == "tvg-id":
                    current["tvg_id"] = value
                elif key == "tvg-name":
                    current["tvg_name"] = value
                elif key == "group-title":
                    current["group_title"] = value
                elif key in ("tvg-logo", "logo"):
                    current["logo"] = value
        elif line.startswith(("http://", "https://")) and current is not None:
            channel = PlaylistChannel(source_url=line, **current)
            current = None
            if not channel.display_name:
                logger.debug("Skipping unnamed playlist entry: %s", sanitize_url_for_logging(line))
                continue
            channels.append(channel)

    logger.debug("Parsed %s playlist entries", len(channels))
    return channels


def dedupe_channels(channels: Iterable[PlaylistChannel]) -> list[PlaylistChannel]:
    """Keep the first channel per identity key, preserving order."""
    unique: dict[str, PlaylistChannel] = {}
    duplicates = 0
    for channel in channels:
        if channel.identity_key in unique:
            duplicates += 1
            continue
        unique[channel.identity_key] = channel

    if duplicates:
        logger.info("Dropped %s duplicate playlist entries", duplicates)
    return list(unique.values())
