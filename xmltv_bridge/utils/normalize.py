"""
Channel name utilities

Canonical comparison keys for channel/station names and the stable
channel id derivation used in the guide document.
"""
import base64
import re


QUALIFIER_TOKENS = frozenset({"hd", "sd", "east", "west", "channel", "ch", "tv", "network"})

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_channel_name(name: str | None) -> str:
    """
    Canonicalize a channel or station name into a comparison key

    Lower-cases, collapses runs of non-alphanumerics into single spaces and
    drops standalone qualifier words (HD, East, Channel, ...).

    Args:
        name: Raw channel or station name

    Returns:
        Normalized key, empty string for empty input
    """
    if not name:
        return ""
    tokens = _NON_ALNUM.sub(" ", name.lower()).split()
    return " ".join(token for token in tokens if token not in QUALIFIER_TOKENS)


def channel_id_from_name(name: str) -> str:
    """Stable guide channel id: unpadded base64 of the UTF-8 display name."""
    return base64.b64encode(name.encode("utf-8")).decode("ascii").rstrip("=")
