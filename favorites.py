import logging
import os
from typing import Callable, FrozenSet, List, Optional, Union

from models import Movie
from storage import LocalStorage

logger = logging.getLogger(__name__)

FAVORITES_KEY = "FavoriteMovies"

FavoriteListener = Callable[[int, bool], None]


class FavoritesStore:
    """Tracks the user's favorite movies and persists them to local storage."""

    def __init__(self, storage: Optional[LocalStorage] = None):
        """
        Initialize the FavoritesStore.

        Args:
            storage: Key-value storage holding the favorites list.
                     If None, uses FAVORITES_PATH env var or defaults to ".favorites.json"
        """
        if storage is None:
            storage = LocalStorage(os.environ.get('FAVORITES_PATH', '.favorites.json'))
        self.storage = storage
        self._movies: List[Movie] = []
        self._ids: set = set()
        self._listeners: List[FavoriteListener] = []
        self.load()

    def load(self):
        """
        Rebuild the favorites list and ID set from storage.
        Anything that cannot be deserialized is treated as no favorites yet.
        """
        raw = self.storage.get(FAVORITES_KEY)
        if raw is None:
            self._movies, self._ids = [], set()
            return

        try:
            if not isinstance(raw, list):
                raise ValueError(f"expected a list, got {type(raw).__name__}")
            movies = [Movie.from_dict(item) for item in raw]
        except ValueError as e:
            logger.warning("Ignoring unreadable favorites: %s", e)
            self._movies, self._ids = [], set()
            return

        # Drop duplicate IDs so the list and the set stay in step
        self._movies, self._ids = [], set()
        for movie in movies:
            if movie.id not in self._ids:
                self._ids.add(movie.id)
                self._movies.append(movie)

    def save(self, movies: Optional[List[Movie]] = None):
        """Serialize the ordered favorites list (the current one by default) into storage."""
        if movies is None:
            movies = self._movies
        self.storage.set(FAVORITES_KEY, [movie.to_dict() for movie in movies])

    def _commit(self, movies: List[Movie]):
        # Write first so a failed save leaves memory matching the file
        self.save(movies)
        self._movies = movies
        self._ids = {movie.id for movie in movies}

    def subscribe(self, listener: FavoriteListener) -> Callable[[], None]:
        """
        Register a callback invoked as listener(movie_id, is_favorite) after every change.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, movie_id: int, is_favorite: bool):
        for listener in list(self._listeners):
            listener(movie_id, is_favorite)

    def is_favorite(self, movie: Union[Movie, int]) -> bool:
        movie_id = movie.id if isinstance(movie, Movie) else movie
        return movie_id in self._ids

    def add_to_favorites(self, movie: Movie) -> bool:
        """
        Add a movie to favorites.

        Returns:
            True if the movie was added, False if it was already a favorite
        """
        if movie.id in self._ids:
            return False

        stored = Movie.from_dict(movie.to_dict())
        stored.is_favorite = True
        self._commit(self._movies + [stored])
        self._notify(movie.id, True)
        return True

    def remove_from_favorites(self, movie: Union[Movie, int]) -> bool:
        """
        Remove a movie from favorites.

        Returns:
            True if a movie was removed, False otherwise
        """
        movie_id = movie.id if isinstance(movie, Movie) else movie
        if movie_id not in self._ids:
            return False

        self._commit([m for m in self._movies if m.id != movie_id])
        self._notify(movie_id, False)
        return True

    def toggle_favorite(self, movie: Movie) -> bool:
        """
        Add the movie if it is not a favorite, remove it otherwise.

        Returns:
            The new favorite state of the movie
        """
        if movie.id in self._ids:
            self.remove_from_favorites(movie)
            return False
        self.add_to_favorites(movie)
        return True

    def list_all(self) -> List[Movie]:
        """Return the favorite movies in the order they were added."""
        return list(self._movies)

    @property
    def ids(self) -> FrozenSet[int]:
        return frozenset(self._ids)

    def clear(self):
        """Remove every favorite."""
        removed = [m.id for m in self._movies]
        self._commit([])
        for movie_id in removed:
            self._notify(movie_id, False)

    def __len__(self) -> int:
        return len(self._movies)

    def __contains__(self, movie) -> bool:
        return self.is_favorite(movie)
