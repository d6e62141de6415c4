"""Genre / year / rating filters applied to discover requests."""
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

# TMDB movie genre table
GENRE_NAME_TO_ID: Dict[str, int] = {
    "Action": 28,
    "Adventure": 12,
    "Animation": 16,
    "Comedy": 35,
    "Crime": 80,
    "Documentary": 99,
    "Drama": 18,
    "Family": 10751,
    "Fantasy": 14,
    "History": 36,
    "Horror": 27,
    "Music": 10402,
    "Mystery": 9648,
    "Romance": 10749,
    "Science Fiction": 878,
    "TV Movie": 10770,
    "Thriller": 53,
    "War": 10752,
    "Western": 37,
}

_GENRES_BY_LOWER_NAME = {name.lower(): name for name in GENRE_NAME_TO_ID}


def _validate_genre_table(table: Dict[str, int]) -> None:
    ids = list(table.values())
    if len(set(ids)) != len(ids):
        raise ValueError("Genre table contains duplicate IDs")
    if len({name.lower() for name in table}) != len(table):
        raise ValueError("Genre table contains names that differ only by case")


_validate_genre_table(GENRE_NAME_TO_ID)


def canonical_genre(name: str) -> str:
    """
    Resolve a genre name case-insensitively to its canonical spelling.

    Args:
        name: Genre name as typed by the user (e.g., "science fiction")

    Returns:
        Canonical genre name (e.g., "Science Fiction")

    Raises:
        ValueError: If the genre is not in the genre table
    """
    canonical = _GENRES_BY_LOWER_NAME.get(name.strip().lower())
    if canonical is None:
        raise ValueError(f"Unknown genre: {name}")
    return canonical


def genre_names() -> List[str]:
    """Return all known genre names in table order."""
    return list(GENRE_NAME_TO_ID)


@dataclass(frozen=True)
class FilterState:
    """Constraints applied to every discover page request until changed."""

    genres: FrozenSet[str] = field(default_factory=frozenset)
    year: Optional[int] = None
    min_rating: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'genres', frozenset(canonical_genre(g) for g in self.genres))
        # NaN fails every comparison, so test for the valid range
        if not 0 <= float(self.min_rating) <= 10:
            raise ValueError(f"Minimum rating must be between 0 and 10, got {self.min_rating}")
        object.__setattr__(self, 'min_rating', float(self.min_rating))

    @classmethod
    def from_options(
        cls,
        genres: Optional[Iterable[str]] = None,
        year: Optional[int] = None,
        min_rating: Optional[float] = None
    ) -> "FilterState":
        """Build a filter state from optional CLI-style values."""
        return cls(
            genres=frozenset(genres or ()),
            year=year,
            min_rating=min_rating if min_rating is not None else 0.0
        )

    def genre_ids(self) -> List[int]:
        """Return the TMDB IDs of the selected genres, sorted."""
        return sorted(GENRE_NAME_TO_ID[name] for name in self.genres)

    def to_params(self) -> Dict[str, Any]:
        """
        Build the discover query parameters for this filter state.

        Returns:
            Dictionary with:
            - with_genres: Comma-separated genre IDs (only when genres are selected)
            - primary_release_year: Release year (only when set)
            - vote_average.gte: Minimum rating (always)
        """
        params: Dict[str, Any] = {}
        if self.genres:
            params['with_genres'] = ','.join(str(genre_id) for genre_id in self.genre_ids())
        if self.year is not None:
            params['primary_release_year'] = self.year
        params['vote_average.gte'] = self.min_rating
        return params

    def is_empty(self) -> bool:
        return not self.genres and self.year is None and self.min_rating == 0.0
