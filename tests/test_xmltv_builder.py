"""
Tests for the XMLTV document builder
"""
from datetime import datetime
from zoneinfo import ZoneInfo

from lxml import etree

from xmltv_bridge.services.guide_types import PlaylistChannel, Programme, XmltvChannel
from xmltv_bridge.services.xmltv_builder import (
    EMPTY_DOCUMENT,
    build_document,
    escape_xml,
    xmltv_channels_from_playlist,
)
from xmltv_bridge.utils.normalize import channel_id_from_name


CHICAGO = ZoneInfo("America/Chicago")


def make_programme(title="News", channel="CNN", desc=None, category=None, hour=9):
    return Programme(
        channel_id=channel_id_from_name(channel),
        channel_name=channel,
        start=datetime(2024, 1, 15, hour, 0, tzinfo=CHICAGO),
        stop=datetime(2024, 1, 15, hour + 1, 0, tzinfo=CHICAGO),
        title=title,
        desc=desc,
        category=category,
    )


def parse(document: str) -> etree._Element:
    return etree.fromstring(document.encode("utf-8"))


class TestEmptyDocument:
    """Tests for the minimal document"""

    def test_exact_bytes(self):
        assert EMPTY_DOCUMENT == (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<tv generator-info-name="xmltv-bridge" source-info-name="M3U+TVPassport">\n'
            '</tv>\n'
        )

    def test_empty_inputs_render_empty_document(self):
        assert build_document([], []) == EMPTY_DOCUMENT

    def test_empty_document_is_well_formed(self):
        root = parse(EMPTY_DOCUMENT)
        assert root.tag == "tv"
        assert len(root) == 0


class TestEscaping:
    """Tests for entity escaping"""

    def test_escape_xml(self):
        assert escape_xml('Tom & Jerry <Live> "Special" \'99') == (
            "Tom &amp; Jerry &lt;Live&gt; &quot;Special&quot; &apos;99"
        )

    def test_programme_text_is_escaped(self):
        title = 'Tom & Jerry <Live> "Special"'
        document = build_document([], [make_programme(title=title, desc="A < B", category="Kids & Family")])

        assert title not in document
        assert "<Live>" not in document
        assert '"Special"' not in document
        assert "Tom &amp; Jerry &lt;Live&gt; &quot;Special&quot;" in document

        programme = parse(document).find("programme")
        assert programme.findtext("title") == title
        assert programme.findtext("desc") == "A < B"
        assert programme.findtext("category") == "Kids & Family"

    def test_channel_attributes_are_escaped(self):
        channel = XmltvChannel(id="a&b", display_name='AT&T "SportsNet"', icon='https://x.example/logo.png?a=1&b="2"')
        document = build_document([channel], [])

        element = parse(document).find("channel")
        assert element.get("id") == "a&b"
        assert element.findtext("display-name") == 'AT&T "SportsNet"'
        assert element.find("icon").get("src") == 'https://x.example/logo.png?a=1&b="2"'


class TestBuildDocument:
    """Tests for document structure"""

    def test_channels_then_programmes_in_input_order(self):
        channels = [
            XmltvChannel(id=channel_id_from_name("CNN"), display_name="CNN"),
            XmltvChannel(id=channel_id_from_name("ESPN"), display_name="ESPN"),
        ]
        programmes = [
            make_programme(title="Late", channel="ESPN", hour=20),
            make_programme(title="Early", channel="CNN", hour=6),
        ]

        root = parse(build_document(channels, programmes))

        assert [child.tag for child in root] == ["channel", "channel", "programme", "programme"]
        assert [c.findtext("display-name") for c in root.findall("channel")] == ["CNN", "ESPN"]
        assert [p.findtext("title") for p in root.findall("programme")] == ["Late", "Early"]
        assert root.findall("programme")[0].get("channel") == channel_id_from_name("ESPN")

    def test_timestamps_use_guide_timezone(self):
        programme = make_programme(hour=9)
        element = parse(build_document([], [programme])).find("programme")
        assert element.get("start") == "20240115090000 -0600"
        assert element.get("stop") == "20240115100000 -0600"

        element = parse(build_document([], [programme], "America/New_York")).find("programme")
        assert element.get("start") == "20240115100000 -0500"

    def test_optional_elements_omitted(self):
        element = parse(build_document([], [make_programme()])).find("programme")
        assert element.find("desc") is None
        assert element.find("category") is None

        channel = parse(build_document([XmltvChannel(id="x", display_name="X")], [])).find("channel")
        assert channel.find("icon") is None

    def test_root_attributes(self):
        root = parse(build_document([], [make_programme()]))
        assert root.get("generator-info-name") == "xmltv-bridge"
        assert root.get("source-info-name") == "M3U+TVPassport"


class TestXmltvChannelsFromPlaylist:
    """Tests for playlist channel conversion"""

    def test_uses_tvg_name_and_logo(self):
        channels = xmltv_channels_from_playlist([
            PlaylistChannel(name="CNN HD", tvg_name="CNN", logo="https://logo.example/cnn.png"),
            PlaylistChannel(name="Local 4", logo=""),
        ])

        assert channels[0] == XmltvChannel(
            id=channel_id_from_name("CNN"),
            display_name="CNN",
            icon="https://logo.example/cnn.png",
        )
        assert channels[1].display_name == "Local 4"
        assert channels[1].icon is None
