"""
Unit tests for filter state and the genre table.
"""
import pytest

from filters import FilterState, GENRE_NAME_TO_ID, canonical_genre, genre_names


class TestGenreTable:
    """Tests for genre name resolution."""

    def test_case_insensitive_lookup(self):
        """Test that HORROR, horror, Horror all resolve to the same genre."""
        for name in ["HORROR", "horror", "Horror", "HoRrOr", "  horror "]:
            assert canonical_genre(name) == "Horror", f"Failed for genre: {name}"

    def test_multi_word_genre(self):
        assert canonical_genre("science fiction") == "Science Fiction"

    def test_unknown_genre_raises(self):
        with pytest.raises(ValueError) as exc_info:
            canonical_genre("Spaghetti")
        assert "Spaghetti" in str(exc_info.value)

    def test_ids_are_unique(self):
        ids = list(GENRE_NAME_TO_ID.values())
        assert len(ids) == len(set(ids))

    def test_genre_names_in_table_order(self):
        assert genre_names()[0] == "Action"
        assert len(genre_names()) == len(GENRE_NAME_TO_ID)


class TestFilterState:
    """Tests for FilterState validation and query parameters."""

    def test_default_is_empty(self):
        filters = FilterState()

        assert filters.is_empty()
        assert filters.to_params() == {"vote_average.gte": 0.0}

    def test_genres_are_canonicalized(self):
        filters = FilterState(genres=frozenset({"horror", "COMEDY"}))
        assert filters.genres == frozenset({"Horror", "Comedy"})

    def test_unknown_genre_rejected(self):
        with pytest.raises(ValueError):
            FilterState(genres=frozenset({"Not A Genre"}))

    def test_rating_range_validated(self):
        with pytest.raises(ValueError):
            FilterState(min_rating=11)
        with pytest.raises(ValueError):
            FilterState(min_rating=-1)
        with pytest.raises(ValueError):
            FilterState(min_rating=float('nan'))
        with pytest.raises(ValueError):
            FilterState(min_rating=float('inf'))

    def test_rating_bounds_are_inclusive(self):
        assert FilterState(min_rating=0).min_rating == 0.0
        assert FilterState(min_rating=10).min_rating == 10.0

    def test_to_params_with_all_filters(self):
        """Genre IDs are sorted and comma-joined; year and rating are passed through."""
        filters = FilterState(genres=frozenset({"Horror", "Action", "Drama"}), year=2004, min_rating=6)

        assert filters.to_params() == {
            "with_genres": "18,27,28",
            "primary_release_year": 2004,
            "vote_average.gte": 6.0,
        }

    def test_from_options_defaults(self):
        filters = FilterState.from_options(genres=None, year=None, min_rating=None)
        assert filters == FilterState()

    def test_from_options_list_of_genres(self):
        filters = FilterState.from_options(genres=["action", "Action"], year=2020, min_rating=7.0)

        assert filters.genres == frozenset({"Action"})
        assert filters.genre_ids() == [28]
        assert not filters.is_empty()

    def test_filter_state_is_immutable(self):
        filters = FilterState()
        with pytest.raises(AttributeError):
            filters.year = 2000
