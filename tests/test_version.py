"""Tests for context7_mcp._core.version module."""

import pytest

from context7_mcp._core.version import (
    CLIENT_VERSION,
    JSONRPC_VERSION,
    PROTOCOL_VERSION,
    is_protocol_compatible,
    parse_protocol_version,
)


class TestVersionConstants:
    """Tests for version constants."""

    def test_client_version_format(self):
        """Client version should be valid semver."""
        parts = CLIENT_VERSION.split(".")
        assert len(parts) == 3
        for part in parts:
            assert part.isdigit()

    def test_protocol_version_is_date(self):
        assert parse_protocol_version(PROTOCOL_VERSION) == (2024, 11, 5)

    def test_jsonrpc_version(self):
        assert JSONRPC_VERSION == "2.0"

    def test_package_version_matches(self):
        import context7_mcp
        assert context7_mcp.__version__ == CLIENT_VERSION


class TestParseProtocolVersion:
    """Tests for parse_protocol_version function."""

    def test_parse_revision(self):
        assert parse_protocol_version("2025-03-26") == (2025, 3, 26)

    def test_parse_with_whitespace(self):
        assert parse_protocol_version(" 2024-11-05\n") == (2024, 11, 5)

    @pytest.mark.parametrize("version", ["", "2024", "2024-11", "v2024-11-05", "1.2.3", "latest"])
    def test_invalid_revision(self, version):
        with pytest.raises(ValueError):
            parse_protocol_version(version)


class TestIsProtocolCompatible:
    """Tests for is_protocol_compatible function."""

    def test_same_revision(self):
        assert is_protocol_compatible(PROTOCOL_VERSION)

    def test_older_revision(self):
        assert is_protocol_compatible("2024-10-07")

    def test_newer_revision(self):
        assert not is_protocol_compatible("2099-01-01")

    def test_unparseable_revision(self):
        assert not is_protocol_compatible("not-a-date")
