"""
Tests for the movie browser command-line interface.
"""
import pytest
from unittest.mock import Mock, patch

import movie_browser
from catalog import CatalogFetcher
from favorites import FavoritesStore
from models import Movie, MovieCategory
from storage import LocalStorage
from tmdb_client import TMDBClient, TMDBAPIError


# ============================================================================
# FIXTURES
# ============================================================================

def make_page(page, total_pages, per_page=20):
    first = (page - 1) * per_page + 1
    return {
        "page": page,
        "results": [
            {"id": movie_id, "title": f"Movie {movie_id}", "release_date": "2001-01-01"}
            for movie_id in range(first, first + per_page)
        ],
        "total_pages": total_pages,
    }


@pytest.fixture
def favorites_file(tmp_path):
    return tmp_path / ".favorites.json"


@pytest.fixture
def mock_client():
    client = Mock(spec=TMDBClient)
    client.discover_movies.side_effect = lambda page, sort_by, filters: make_page(page, total_pages=3)
    client.poster_url.return_value = None
    return client


@pytest.fixture
def cli(mock_client, favorites_file, monkeypatch):
    """Run the CLI with a mocked client, silenced console and temporary favorites."""
    monkeypatch.delenv("TMDB_API_KEY", raising=False)

    def run(*argv, api_key="test-key"):
        args = ["--favorites-file", str(favorites_file)]
        if api_key:
            args += ["--api-key", api_key]
        with patch("movie_browser.TMDBClient", return_value=mock_client), \
                patch("movie_browser.console"), \
                patch("movie_browser.setup_logging"), \
                patch("movie_browser.load_dotenv"):
            return movie_browser.main(args + list(argv))

    return run


def stored_favorites(path):
    return FavoritesStore(LocalStorage(path))


# ============================================================================
# BROWSE / SEARCH TESTS
# ============================================================================

class TestBrowseCommand:

    def test_browse_loads_requested_pages(self, cli, mock_client):
        assert cli("browse", "--pages", "2") == 0

        pages = [call.kwargs["page"] for call in mock_client.discover_movies.call_args_list]
        assert pages == [1, 2]

    def test_browse_stops_at_last_page(self, cli, mock_client):
        assert cli("browse", "--pages", "10") == 0
        assert mock_client.discover_movies.call_count == 3

    def test_browse_passes_category_and_filters(self, cli, mock_client):
        assert cli("browse", "-c", "top_rated", "-g", "horror", "-g", "Comedy",
                   "--year", "1999", "--min-rating", "6.5") == 0

        kwargs = mock_client.discover_movies.call_args.kwargs
        assert kwargs["sort_by"] == "vote_average.desc"
        assert kwargs["filters"].to_params() == {
            "with_genres": "27,35",
            "primary_release_year": 1999,
            "vote_average.gte": 6.5,
        }

    def test_unknown_genre_is_an_error(self, cli, mock_client):
        assert cli("browse", "-g", "Spaghetti") == 1
        mock_client.discover_movies.assert_not_called()

    def test_failed_request_is_an_error(self, cli, mock_client):
        mock_client.discover_movies.side_effect = TMDBAPIError(401, "Invalid API key", "/discover/movie")
        assert cli("browse") == 1

    def test_missing_api_key(self, cli, mock_client):
        assert cli("browse", api_key=None) == 1
        mock_client.discover_movies.assert_not_called()

    @patch("movie_browser.interactive_favorite_selection")
    def test_interactive_toggles_selected(self, mock_select, cli, favorites_file):
        mock_select.side_effect = lambda movies, favorites: movies[:2]

        assert cli("browse", "-i") == 0

        assert stored_favorites(favorites_file).ids == frozenset({1, 2})


class TestPageSummary:

    def test_empty_listing_reports_zero_pages(self, mock_client, favorites_file):
        """A listing with no pages does not report more pages loaded than exist."""
        mock_client.discover_movies.side_effect = None
        mock_client.discover_movies.return_value = {"page": 1, "results": [], "total_pages": 0}
        catalog = CatalogFetcher(mock_client, stored_favorites(favorites_file))
        catalog.select_category(MovieCategory.POPULAR)

        with patch("movie_browser.console") as mock_console:
            movie_browser.display_page_summary(catalog)

        summary = mock_console.print.call_args_list[0].args[0]
        assert "0 of 0 pages loaded" in summary

    def test_partial_listing(self, mock_client, favorites_file):
        catalog = CatalogFetcher(mock_client, stored_favorites(favorites_file))
        catalog.select_category(MovieCategory.POPULAR)

        with patch("movie_browser.console") as mock_console:
            movie_browser.display_page_summary(catalog)

        assert "1 of 3 pages loaded" in mock_console.print.call_args_list[0].args[0]


class TestSearchCommand:

    def test_search_joins_words(self, cli, mock_client):
        mock_client.search_movies.return_value = make_page(1, total_pages=1, per_page=2)

        assert cli("search", "the", "thing") == 0
        mock_client.search_movies.assert_called_once_with("the thing")

    def test_empty_search_lists_category(self, cli, mock_client):
        assert cli("search", "-c", "newest") == 0

        mock_client.search_movies.assert_not_called()
        assert mock_client.discover_movies.call_args.kwargs["sort_by"] == "primary_release_date.desc"

    def test_search_failure(self, cli, mock_client):
        mock_client.search_movies.side_effect = TMDBAPIError(0, "Connection error", "/search/movie")
        assert cli("search", "alien") == 1


# ============================================================================
# FAVORITES TESTS
# ============================================================================

class TestFavoritesCommand:

    def test_add_fetches_movie(self, cli, mock_client, favorites_file):
        mock_client.get_movie.return_value = {"id": 42, "title": "Life", "genres": [{"id": 878, "name": "Science Fiction"}]}

        assert cli("favorites", "add", "42") == 0

        store = stored_favorites(favorites_file)
        assert store.ids == frozenset({42})
        assert store.list_all()[0].genre_ids == [878]

    def test_add_existing_skips_request(self, cli, mock_client, favorites_file):
        stored_favorites(favorites_file).add_to_favorites(Movie(id=42, title="Life"))

        assert cli("favorites", "add", "42") == 0
        mock_client.get_movie.assert_not_called()

    def test_add_api_error(self, cli, mock_client, favorites_file):
        mock_client.get_movie.side_effect = TMDBAPIError(404, "Not found", "/movie/42")

        assert cli("favorites", "add", "42") == 1
        assert stored_favorites(favorites_file).ids == frozenset()

    def test_add_requires_api_key(self, cli):
        assert cli("favorites", "add", "42", api_key=None) == 1

    def test_remove(self, cli, favorites_file):
        stored_favorites(favorites_file).add_to_favorites(Movie(id=42, title="Life"))

        assert cli("favorites", "remove", "42", api_key=None) == 0
        assert stored_favorites(favorites_file).ids == frozenset()

    def test_list_without_api_key(self, cli, favorites_file):
        stored_favorites(favorites_file).add_to_favorites(Movie(id=42, title="Life"))
        assert cli("favorites", "list", api_key=None) == 0

    def test_clear_with_yes(self, cli, favorites_file):
        store = stored_favorites(favorites_file)
        store.add_to_favorites(Movie(id=1, title="A"))
        store.add_to_favorites(Movie(id=2, title="B"))

        assert cli("favorites", "clear", "--yes") == 0
        assert len(stored_favorites(favorites_file)) == 0

    @patch("movie_browser.Confirm.ask", return_value=False)
    def test_clear_cancelled(self, mock_confirm, cli, favorites_file):
        stored_favorites(favorites_file).add_to_favorites(Movie(id=1, title="A"))

        assert cli("favorites", "clear") == 0
        assert len(stored_favorites(favorites_file)) == 1
        mock_confirm.assert_called_once()


# ============================================================================
# OTHER COMMANDS
# ============================================================================

class TestOtherCommands:

    def test_categories(self, cli):
        assert cli("categories", "--current", "top_rated", api_key=None) == 0

    def test_genres(self, cli):
        assert cli("genres", api_key=None) == 0

    def test_poster_download(self, cli, mock_client, tmp_path):
        mock_client.get_movie.return_value = {"id": 7, "title": "Se7en", "poster_path": "/se7en.png"}
        output = tmp_path / "poster.png"
        mock_client.download_poster.return_value = output

        assert cli("poster", "7", "--output", str(output), "--size", "w185") == 0
        mock_client.download_poster.assert_called_once_with("/se7en.png", str(output), size="w185")

    def test_poster_default_output_name(self, cli, mock_client):
        mock_client.get_movie.return_value = {"id": 7, "title": "Se7en", "poster_path": "/se7en.png"}

        assert cli("poster", "7") == 0
        assert mock_client.download_poster.call_args.args[1] == "7.png"

    def test_poster_error(self, cli, mock_client):
        mock_client.get_movie.side_effect = TMDBAPIError(404, "Not found", "/movie/7")
        assert cli("poster", "7") == 1

    def test_no_command_prints_help(self, cli):
        assert cli() == 1
