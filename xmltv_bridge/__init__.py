"""XMLTV Bridge: builds an XMLTV guide for an M3U playlist from TVPassport listings."""

__version__ = "0.1.0"
