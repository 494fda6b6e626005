"""
Shared fixtures for the guide pipeline tests
"""
import pytest

from xmltv_bridge.services.channel_matcher import ChannelAliasTable, ChannelMatcher


@pytest.fixture(scope="session")
def alias_table() -> ChannelAliasTable:
    return ChannelAliasTable.load()


@pytest.fixture
def matcher(alias_table) -> ChannelMatcher:
    return ChannelMatcher(alias_table)


@pytest.fixture
def bare_matcher(alias_table) -> ChannelMatcher:
    """Matcher with the bundled regional markers but no synonyms."""
    return ChannelMatcher(ChannelAliasTable(
        version=0,
        synonyms={},
        canada_markers=alias_table.canada_markers,
        canada_exclusive_markers=alias_table.canada_exclusive_markers,
    ))
