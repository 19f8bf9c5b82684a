"""Tests for suggestion ordering."""

from __future__ import annotations

from tunevault.core.ranking import rank_suggestions
from tunevault.core.ranking.suggestions import suggestion_score

from conftest import make_song


class TestRankSuggestions:
    def test_language_and_artist_matches_move_forward(self) -> None:
        """Test that language and artist matches move suggestions forward."""
        # Given: suggestions in upstream order
        songs = [
            make_song("en", "Perfect", artists="Ed Sheeran", language="english"),
            make_song("hi", "Kesariya", artists="Pritam", language="hindi"),
            make_song("both", "Channa Mereya", artists="Arijit Singh", language="hindi"),
        ]

        # When: the listener is on a hindi Arijit Singh song
        ranked = rank_suggestions(songs, target_artist="Arijit", target_language="hindi")

        # Then: the double match leads, then the language match
        assert [song["id"] for song in ranked] == ["both", "hi", "en"]

    def test_equal_boosts_keep_upstream_order(self) -> None:
        """Test that equal boosts keep the upstream order."""
        songs = [make_song(str(index), f"Song {index}", language="tamil") for index in range(4)]

        ranked = rank_suggestions(songs, target_language="hindi")

        assert [song["id"] for song in ranked] == ["0", "1", "2", "3"]

    def test_no_targets_returns_copy(self) -> None:
        """Test that no targets returns a copy in upstream order."""
        songs = [make_song("a", "A")]

        ranked = rank_suggestions(songs)

        assert ranked == songs
        assert ranked is not songs

    def test_score_values(self) -> None:
        """Test the boost added for each matching target."""
        song = make_song("a", "A", artists="Arijit Singh", language="hindi")

        assert suggestion_score(song) == 0
        assert suggestion_score(song, target_language="hindi") == 5
        assert suggestion_score(song, target_artist="Arijit", target_language="hindi") == 10
