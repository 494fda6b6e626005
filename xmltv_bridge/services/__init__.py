"""
Services package for XMLTV Bridge

This package contains the guide building pipeline and its collaborators.
"""
from xmltv_bridge.services.channel_matcher import ChannelMatcher, ChannelAliasTable, similarity
from xmltv_bridge.services.guide_cache import TTLCache
from xmltv_bridge.services.guide_pipeline import GuidePipeline, GuideBuildResult
from xmltv_bridge.services.guide_service import GuideService, GuideDocument, GUIDE_CACHE_KEY
from xmltv_bridge.services.playlist_service import PlaylistClient, PlaylistFetchError, parse_playlist, dedupe_channels
from xmltv_bridge.services.schedule_source import ScheduleSource, TVPassportSource
from xmltv_bridge.services.xmltv_builder import build_document, EMPTY_DOCUMENT

__all__ = [
    'ChannelMatcher',
    'ChannelAliasTable',
    'similarity',
    'TTLCache',
    'GuidePipeline',
    'GuideBuildResult',
    'GuideService',
    'GuideDocument',
    'GUIDE_CACHE_KEY',
    'PlaylistClient',
    'PlaylistFetchError',
    'parse_playlist',
    'dedupe_channels',
    'ScheduleSource',
    'TVPassportSource',
    'build_document',
    'EMPTY_DOCUMENT',
]
