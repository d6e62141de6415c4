"""Catalog fetcher: paginated discover listings and one-shot search."""

import logging
from typing import Any, Callable, Dict, List, Optional

from favorites import FavoritesStore
from filters import FilterState
from models import Movie, MovieCategory, MovieResponse
from tmdb_client import TMDBAPIError, TMDBClient

logger = logging.getLogger(__name__)

CatalogListener = Callable[["CatalogFetcher"], None]


class CatalogFetcher:
    """Holds the displayed movie list and the state used to fetch it."""

    def __init__(
        self,
        client: TMDBClient,
        favorites: FavoritesStore,
        category: MovieCategory = MovieCategory.POPULAR,
        filters: Optional[FilterState] = None
    ):
        """Initialize the fetcher.

        Args:
            client: TMDBClient instance for API communication
            favorites: Store consulted to annotate each fetched movie
            category: Initial sort mode
            filters: Initial filter state (no constraints if None)
        """
        self.client = client
        self.favorites = favorites
        self._category = category
        self._filters = filters or FilterState()
        self._movies: List[Movie] = []
        self._current_page = 1
        self._total_pages = 1
        self._search_query = ""
        self._listeners: List[CatalogListener] = []
        self.favorites.subscribe(self._on_favorite_changed)

    # -- read accessors -----------------------------------------------------

    @property
    def movies(self) -> List[Movie]:
        return list(self._movies)

    @property
    def current_category(self) -> MovieCategory:
        return self._category

    @property
    def filters(self) -> FilterState:
        return self._filters

    @property
    def current_page(self) -> int:
        """Next page to fetch."""
        return self._current_page

    @property
    def total_pages(self) -> int:
        return self._total_pages

    @property
    def has_more_pages(self) -> bool:
        return self._current_page <= self._total_pages

    @property
    def search_query(self) -> str:
        return self._search_query

    # -- notifications ------------------------------------------------------

    def subscribe(self, listener: CatalogListener) -> Callable[[], None]:
        """
        Register a callback invoked with this fetcher after the displayed list changes.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self):
        for listener in list(self._listeners):
            listener(self)

    # -- user actions -------------------------------------------------------

    def select_category(self, category: MovieCategory) -> bool:
        """
        Switch sort mode and load its first page under the current filters.

        Returns:
            True if the first page was loaded
        """
        self._category = category
        self._search_query = ""
        self._reset()
        return self.fetch_next_page()

    def apply_filters(self, filters: FilterState) -> bool:
        """
        Replace the filter state and reload from the first page.

        Returns:
            True if the first page was loaded
        """
        self._filters = filters
        self._search_query = ""
        self._reset()
        return self.fetch_next_page()

    def fetch_next_page(self) -> bool:
        """
        Fetch the page under the cursor and append it to the displayed list.

        Does nothing once the cursor has passed the last known page. A failed
        request or undecodable response is logged and the page is dropped.

        Returns:
            True if a page was appended, False otherwise
        """
        if not self.has_more_pages:
            logger.debug("No more pages (page %d of %d)", self._current_page, self._total_pages)
            return False

        category = self._category
        page = self._current_page
        response = self._load(
            lambda: self.client.discover_movies(page=page, sort_by=category.value, filters=self._filters),
            what=f"{category.display_name} page {page}"
        )
        if response is None:
            return False

        self.apply_page(response, category=category)
        return True

    def search(self, query: str) -> bool:
        """
        Replace the displayed list with one page of search results.

        An empty query reloads the current category instead.

        Returns:
            True if results were loaded
        """
        query = (query or "").strip()
        if not query:
            return self.select_category(self._category)

        response = self._load(
            lambda: self.client.search_movies(query),
            what=f"search {query!r}"
        )
        if response is None:
            return False

        self._search_query = query
        self.apply_page(response, replace=True)
        return True

    def toggle_favorite(self, movie: Movie) -> bool:
        """Toggle a movie in the favorites store; the displayed flag follows."""
        return self.favorites.toggle_favorite(movie)

    # -- state mutation -----------------------------------------------------

    def apply_page(
        self,
        response: MovieResponse,
        category: Optional[MovieCategory] = None,
        replace: bool = False
    ):
        """
        Publish a decoded page.

        This is the only place the displayed list grows. Call it from whatever
        owns the displayed state when the request ran elsewhere.

        Args:
            response: Decoded page
            category: Category the page was fetched under (None for search results)
            replace: Replace the list and mark one page consumed (search)
                     instead of appending and advancing the cursor
        """
        category_id = category.value if category is not None else None
        new_movies = []
        for movie in response.results:
            movie.is_favorite = self.favorites.is_favorite(movie.id)
            movie.category_id = category_id
            new_movies.append(movie)

        if replace:
            self._movies = new_movies
            self._current_page = 2
        else:
            self._movies.extend(new_movies)
            self._current_page += 1
        self._total_pages = response.total_pages

        logger.debug(
            "Applied %d movies (now %d, next page %d of %d)",
            len(new_movies), len(self._movies), self._current_page, self._total_pages
        )
        self._publish()

    def _reset(self):
        self._current_page = 1
        self._total_pages = 1
        self._movies = []
        self._publish()

    def _load(self, request: Callable[[], Dict[str, Any]], what: str) -> Optional[MovieResponse]:
        try:
            data = request()
        except TMDBAPIError as e:
            logger.error("Failed to fetch %s: %s", what, e)
            return None

        try:
            return MovieResponse.from_api(data)
        except ValueError as e:
            logger.error("Error decoding %s: %s", what, e)
            return None

    def _on_favorite_changed(self, movie_id: int, is_favorite: bool):
        changed = False
        for movie in self._movies:
            if movie.id == movie_id and movie.is_favorite != is_favorite:
                movie.is_favorite = is_favorite
                changed = True
        if changed:
            self._publish()
