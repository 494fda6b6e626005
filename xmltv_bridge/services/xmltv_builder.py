"""
XMLTV document builder

Renders channels and programmes into the guide document. Every piece of
text goes through entity escaping; timestamps use one fixed timezone.
"""
from collections.abc import Iterable, Sequence
from xml.sax import saxutils

from xmltv_bridge.services.guide_types import PlaylistChannel, Programme, XmltvChannel
from xmltv_bridge.utils.normalize import channel_id_from_name
from xmltv_bridge.utils.timezone import to_xmltv_date


GENERATOR_INFO_NAME = "xmltv-bridge"
SOURCE_INFO_NAME = "M3U+TVPassport"
DEFAULT_GUIDE_TIMEZONE = "America/Chicago"

_ENTITIES = {'"': "&quot;", "'": "&apos;"}

XML_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    f'<tv generator-info-name="{GENERATOR_INFO_NAME}" source-info-name="{SOURCE_INFO_NAME}">\n'
)
XML_FOOTER = "</tv>\n"

# Minimal valid guide; also served when the pipeline fails.
EMPTY_DOCUMENT = XML_HEADER + XML_FOOTER


def escape_xml(value: str) -> str:
    """Escape &, <, > and both quote characters."""
    return saxutils.escape(value, _ENTITIES)


def xmltv_channels_from_playlist(channels: Iterable[PlaylistChannel]) -> list[XmltvChannel]:
    """Channel elements for every playlist channel, in playlist order."""
    return [
        XmltvChannel(
            id=channel_id_from_name(channel.display_name),
            display_name=channel.display_name,
            icon=channel.logo or None,
        )
        for channel in channels
    ]


def _render_channel(channel: XmltvChannel) -> str:
    parts = [
        f'  <channel id="{escape_xml(channel.id)}">\n',
        f"    <display-name>{escape_xml(channel.display_name)}</display-name>\n",
    ]
    if channel.icon:
        parts.append(f'    <icon src="{escape_xml(channel.icon)}" />\n')
    parts.append("  </channel>\n")
    return "".join(parts)


def _render_programme(programme: Programme, tz_name: str) -> str:
    start = escape_xml(to_xmltv_date(programme.start, tz_name))
    stop = escape_xml(to_xmltv_date(programme.stop, tz_name))
    parts = [
        f'  <programme start="{start}" stop="{stop}" channel="{escape_xml(programme.channel_id)}">\n',
        f"    <title>{escape_xml(programme.title)}</title>\n",
    ]
    if programme.desc:
        parts.append(f"    <desc>{escape_xml(programme.desc)}</desc>\n")
    if programme.category:
        parts.append(f"    <category>{escape_xml(programme.category)}</category>\n")
    parts.append("  </programme>\n")
    return "".join(parts)


def build_document(
    channels: Sequence[XmltvChannel],
    programmes: Sequence[Programme],
    tz_name: str = DEFAULT_GUIDE_TIMEZONE,
) -> str:
    """
    Build the XMLTV guide document

    Args:
        channels: Channel elements, rendered in order
        programmes: Programmes, rendered in order after all channels
        tz_name: IANA timezone for start/stop attributes

    Returns:
        Complete document text; EMPTY_DOCUMENT when both inputs are empty
    """
    body = "".join(_render_channel(channel) for channel in channels)
    body += "".join(_render_programme(programme, tz_name) for programme in programmes)
    return XML_HEADER + body + XML_FOOTER
