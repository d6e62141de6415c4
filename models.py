"""
Data models for the movie browser.
Movies are decoded from TMDB API payloads and stored locally as plain dicts.
"""
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class MovieCategory(Enum):
    """Sort modes, mapped to the server-side sort_by parameter."""

    POPULAR = "popularity.desc"
    TOP_RATED = "vote_average.desc"
    NEWEST = "primary_release_date.desc"
    HIGHEST_GROSSING = "revenue.desc"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def cli_name(self) -> str:
        return self.name.lower()

    @classmethod
    def from_name(cls, name: str) -> "MovieCategory":
        """
        Look up a category by its lowercase name (e.g., "top_rated").

        Raises:
            ValueError: If no category has that name
        """
        key = name.strip().upper().replace('-', '_')
        try:
            return cls[key]
        except KeyError:
            choices = ', '.join(c.cli_name for c in cls)
            raise ValueError(f"Unknown category: {name} (choose from {choices})")


_DISPLAY_NAMES = {
    MovieCategory.POPULAR: "Popular",
    MovieCategory.TOP_RATED: "Top Rated",
    MovieCategory.NEWEST: "Newest",
    MovieCategory.HIGHEST_GROSSING: "Highest Grossing",
}


@dataclass
class Movie:
    """A single movie as shown in listings and stored in favorites."""

    id: int
    title: str
    poster_path: Optional[str] = None
    release_date: Optional[str] = None
    vote_average: float = 0.0
    vote_count: int = 0
    overview: str = ""
    genre_ids: List[int] = field(default_factory=list)
    # Client-only fields, never sourced from the server
    is_favorite: bool = False
    category_id: Optional[str] = None

    @property
    def release_year(self) -> Optional[int]:
        if not self.release_date or len(self.release_date) < 4:
            return None
        try:
            return int(self.release_date[:4])
        except ValueError:
            return None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Movie":
        """
        Decode a movie from a TMDB result object.

        Search, discover and detail payloads are all accepted; detail payloads
        carry 'genres' objects instead of 'genre_ids'.

        Raises:
            ValueError: If the payload has no integer 'id' or no title
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a movie object, got {type(data).__name__}")

        movie_id = data.get('id')
        if isinstance(movie_id, bool) or not isinstance(movie_id, int):
            raise ValueError(f"Movie has an invalid id: {movie_id!r}")

        title = data.get('title') or data.get('original_title')
        if not title:
            raise ValueError(f"Movie {movie_id} has no title")

        genre_ids = data.get('genre_ids')
        if genre_ids is None:
            genre_ids = [g.get('id') for g in data.get('genres') or [] if isinstance(g, dict)]

        try:
            return cls(
                id=movie_id,
                title=title,
                poster_path=data.get('poster_path'),
                release_date=data.get('release_date') or None,
                vote_average=float(data.get('vote_average') or 0.0),
                vote_count=int(data.get('vote_count') or 0),
                overview=data.get('overview') or "",
                genre_ids=[int(g) for g in genre_ids if g is not None],
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Movie {movie_id} has malformed fields: {e}")

    def to_dict(self) -> Dict[str, Any]:
        """Return the persisted form of this movie."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Movie":
        """
        Rebuild a movie from its persisted form.

        Raises:
            ValueError: If the record is not a valid persisted movie
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a movie record, got {type(data).__name__}")
        try:
            movie = cls(**data)
        except TypeError as e:
            raise ValueError(f"Invalid movie record: {e}")
        if isinstance(movie.id, bool) or not isinstance(movie.id, int):
            raise ValueError(f"Invalid movie record id: {movie.id!r}")
        return movie


@dataclass
class MovieResponse:
    """One page of discover or search results."""

    page: int
    results: List[Movie]
    total_pages: int
    total_results: int = 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "MovieResponse":
        """
        Decode a paginated TMDB response.

        Raises:
            ValueError: If the payload is not an object with a 'results' list,
                or any result cannot be decoded
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a response object, got {type(data).__name__}")

        results = data.get('results')
        if not isinstance(results, list):
            raise ValueError("Response has no 'results' list")

        try:
            page = int(data.get('page', 1))
            total_pages = int(data.get('total_pages', 0))
            total_results = int(data.get('total_results', len(results)))
        except (TypeError, ValueError) as e:
            raise ValueError(f"Response has malformed pagination fields: {e}")

        return cls(
            page=page,
            results=[Movie.from_api(item) for item in results],
            total_pages=total_pages,
            total_results=total_results,
        )
