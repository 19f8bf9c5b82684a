"""Tests for upstream envelope parsing."""

from __future__ import annotations

import pytest

from tunevault.services.upstream.models import (
    Entity,
    EntityList,
    GlobalSearch,
    SearchPage,
    parse_envelope,
)
from tunevault.shared.errors import ParseError


class TestParseEnvelope:
    def test_paginated_search(self) -> None:
        """Test parsing of a paginated search page."""
        body = {"success": True, "data": {"total": 42, "start": 1, "results": [{"id": "s1"}]}}

        payload = parse_envelope(body)

        assert isinstance(payload, SearchPage)
        assert payload.total == 42
        assert payload.start == 1
        assert payload.results == [{"id": "s1"}]

    def test_global_search_sections(self) -> None:
        """Test parsing of global search sections."""
        body = {
            "success": True,
            "data": {
                "songs": {"results": [{"id": "s1"}]},
                "albums": {"results": []},
                "topQuery": {"results": [{"id": "t1"}]},
            },
        }

        payload = parse_envelope(body)

        assert isinstance(payload, GlobalSearch)
        assert payload.songs == [{"id": "s1"}]
        assert payload.albums == []
        assert payload.artists == []
        assert payload.top_query == [{"id": "t1"}]

    def test_list_data(self) -> None:
        """Test parsing of list-shaped data."""
        payload = parse_envelope({"success": True, "data": [{"id": "a"}, "junk", {"id": "b"}]})

        assert isinstance(payload, EntityList)
        assert payload.items == [{"id": "a"}, {"id": "b"}]

    def test_single_entity(self) -> None:
        """Test parsing of a single entity."""
        payload = parse_envelope({"success": True, "data": {"id": "al1", "name": "Album"}})

        assert isinstance(payload, Entity)
        assert payload.data["name"] == "Album"

    def test_unwrapped_bodies_are_classified(self) -> None:
        """Test that bodies without an envelope are classified by shape."""
        assert isinstance(parse_envelope([{"id": "a"}]), EntityList)
        assert isinstance(parse_envelope({"results": []}), SearchPage)

    def test_missing_total_falls_back_to_result_count(self) -> None:
        """Test that a missing total falls back to the number of results."""
        payload = parse_envelope({"data": {"results": [{"id": "a"}, {"id": "b"}]}})

        assert isinstance(payload, SearchPage)
        assert payload.total == 2

    @pytest.mark.parametrize(
        "body",
        [
            "not json",
            {"success": False, "message": "nope"},
            {"success": True, "data": None},
            {"success": True, "data": 12},
            {"success": True, "data": {"songs": {"results": []}, "albums": "broken"}},
        ],
    )
    def test_unusable_bodies_raise_parse_error(self, body) -> None:
        """Test that unusable bodies raise ParseError."""
        with pytest.raises(ParseError):
            parse_envelope(body)
