"""
Channel Matcher

Picks the schedule-source station that best corresponds to a playlist
channel name using normalized edit-distance similarity, a curated synonym
table and a US-over-Canada regional preference.
"""
from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from rapidfuzz.distance import Levenshtein

from xmltv_bridge.services.guide_types import StationCandidate
from xmltv_bridge.utils.normalize import normalize_channel_name


logger = logging.getLogger(__name__)

# Hand-tuned; changing it changes which channels resolve.
DEFAULT_MATCH_THRESHOLD = 0.45

BUNDLED_ALIASES_PATH = Path(__file__).resolve().parent.parent / "data" / "channel_aliases.json"


def similarity(a: str, b: str) -> float:
    """
    Normalized edit-distance similarity in [0, 1]

    Both names are normalized first; 1.0 means identical keys. Returns 0
    when either key is empty.
    """
    na = normalize_channel_name(a)
    nb = normalize_channel_name(b)
    if not na or not nb:
        return 0.0
    return 1 - Levenshtein.distance(na, nb) / max(len(na), len(nb))


@dataclass(slots=True)
class ChannelAliasTable:
    """Versioned synonym table plus the regional marker patterns."""
    version: int
    synonyms: dict[str, list[str]] = field(default_factory=dict)
    canada_markers: re.Pattern | None = None
    canada_exclusive_markers: re.Pattern | None = None

    @classmethod
    def from_dict(cls, data: dict) -> ChannelAliasTable:
        synonyms: dict[str, list[str]] = {}
        for key, names in (data.get("synonyms") or {}).items():
            normalized = normalize_channel_name(key)
            if not normalized:
                continue
            merged = synonyms.setdefault(normalized, [])
            merged.extend(name for name in names if name not in merged)

        return cls(
            version=int(data.get("version", 0)),
            synonyms=synonyms,
            canada_markers=_compile_markers(data.get("canada_markers")),
            canada_exclusive_markers=_compile_markers(data.get("canada_exclusive_markers")),
        )

    @classmethod
    def load(cls, path: Path | str | None = None) -> ChannelAliasTable:
        """
        Load the alias table from JSON

        Args:
            path: Override file, defaults to the bundled table

        Raises:
            OSError: If the file can't be read
            ValueError: If the file is not valid JSON or a pattern is invalid
        """
        source = Path(path) if path else BUNDLED_ALIASES_PATH
        with source.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        try:
            table = cls.from_dict(data)
        except re.error as exc:
            raise ValueError(f"Invalid marker pattern in {source}: {exc}") from exc
        logger.info(
            "Loaded channel alias table v%s from %s (%s synonym keys)",
            table.version,
            source,
            len(table.synonyms),
        )
        return table

    def expand(self, name: str) -> list[str]:
        """Alternate names for a playlist name, empty when unknown."""
        return list(self.synonyms.get(normalize_channel_name(name), []))

    def is_regional_duplicate(self, station_name: str) -> bool:
        """True for Canadian-marked stations that are not Canadian exclusives."""
        lowered = station_name.lower()
        if self.canada_markers is None or not self.canada_markers.search(lowered):
            return False
        if self.canada_exclusive_markers is None:
            return True
        return not self.canada_exclusive_markers.search(lowered)


def _compile_markers(patterns: Iterable[str] | None) -> re.Pattern | None:
    patterns = [pattern for pattern in (patterns or []) if pattern]
    if not patterns:
        return None
    return re.compile("|".join(f"(?:{pattern})" for pattern in patterns), re.IGNORECASE)


class ChannelMatcher:
    """Resolves playlist names against station candidates. Pure, no I/O."""

    def __init__(
        self,
        aliases: ChannelAliasTable | None = None,
        threshold: float = DEFAULT_MATCH_THRESHOLD,
    ) -> None:
        self.aliases = aliases or ChannelAliasTable.load()
        self.threshold = threshold

    def prefer_us_stations(self, candidate_names: Iterable[str]) -> list[str]:
        """Drop Canadian-marked stations unless the brand is Canada-only."""
        return [
            name for name in candidate_names
            if not self.aliases.is_regional_duplicate(name)
        ]

    def best_match(self, name: str, candidate_names: Iterable[str]) -> tuple[str | None, float]:
        """Highest scoring candidate (first one wins ties) and its score."""
        best_name: str | None = None
        best_score = 0.0
        for candidate in candidate_names:
            score = similarity(name, candidate)
            if best_name is None or score > best_score:
                best_name, best_score = candidate, score
        return best_name, best_score

    def match_channel(self, playlist_name: str, candidate_names: Sequence[str]) -> str | None:
        """
        Best station name for a playlist channel, or None

        Args:
            playlist_name: Channel name from the playlist
            candidate_names: Station names offered by the schedule source

        Returns:
            The winning candidate or synonym when it scores above the
            threshold, otherwise None
        """
        pool = self.prefer_us_stations(candidate_names) + self.aliases.expand(playlist_name)
        best_name, best_score = self.best_match(playlist_name, pool)

        if best_name is not None and best_score > self.threshold:
            logger.debug("Matched '%s' -> '%s' (%.2f)", playlist_name, best_name, best_score)
            return best_name

        logger.debug(
            "No confident match for '%s' (best: %s %.2f)",
            playlist_name,
            best_name,
            best_score,
        )
        return None

    def resolve_station(
        self,
        playlist_name: str,
        candidates: Sequence[StationCandidate],
    ) -> StationCandidate | None:
        """
        Station candidate for a playlist channel, or None

        Runs match_channel over the candidate names. A synonym winner is not
        a real station, so it is mapped to the remaining candidate closest to
        any known alias of the playlist name; that candidate must clear the
        threshold as well.
        """
        chosen = self.match_channel(playlist_name, [c.station_name for c in candidates])
        if chosen is None:
            return None

        for candidate in candidates:
            if candidate.station_name == chosen:
                return candidate

        aliases = [playlist_name, *self.aliases.expand(playlist_name)]
        best: StationCandidate | None = None
        best_score = 0.0
        for candidate in candidates:
            if self.aliases.is_regional_duplicate(candidate.station_name):
                continue
            score = max(similarity(alias, candidate.station_name) for alias in aliases)
            if best is None or score > best_score:
                best, best_score = candidate, score

        if best is not None and best_score > self.threshold:
            logger.debug(
                "Mapped synonym '%s' for '%s' to station '%s' (%.2f)",
                chosen,
                playlist_name,
                best.station_name,
                best_score,
            )
            return best
        return None
