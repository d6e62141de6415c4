"""
TMDB API client module with error handling.
"""
from pathlib import Path
from typing import Any, Dict, Optional, Union

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout

from filters import FilterState

BASE_URL = "https://api.themoviedb.org/3"
IMAGE_BASE_URL = "https://image.tmdb.org/t/p"
DEFAULT_POSTER_SIZE = "w500"


class TMDBAPIError(Exception):
    """Custom exception for TMDB API errors."""

    def __init__(self, status_code: int, message: str, endpoint: str):
        """
        Initialize TMDBAPIError.

        Args:
            status_code: HTTP status code from the API response (0 when no response was received)
            message: Error message describing what went wrong
            endpoint: The API endpoint that was called
        """
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"TMDB API Error {status_code} at {endpoint}: {message}")


class TMDBClient:
    """Client for the TMDB movie database API."""

    def __init__(self, api_key: str, base_url: str = BASE_URL, image_base_url: str = IMAGE_BASE_URL):
        """
        Initialize the TMDB API client.

        Args:
            api_key: TMDB v3 API key
            base_url: Base URL of the API (e.g., "https://api.themoviedb.org/3")
            image_base_url: Base URL for poster images
        """
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip('/')
        self.image_base_url = image_base_url.rstrip('/')
        self.timeout = 10

    def _request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Make a GET request to the TMDB API.

        No retry is attempted; every failure surfaces as a TMDBAPIError.

        Args:
            endpoint: API endpoint path (e.g., "/discover/movie")
            params: Optional query parameters (api_key is added here)

        Returns:
            Response data (JSON parsed)

        Raises:
            TMDBAPIError: When the request cannot be built, the transport fails,
                the API returns an error or the body is not valid JSON
        """
        if not self.api_key:
            raise TMDBAPIError(0, "API key is not configured", endpoint)

        url = f"{self.base_url}{endpoint}"
        query = {"api_key": self.api_key}
        query.update(params or {})

        try:
            response = requests.get(url, params=query, timeout=self.timeout)
        except (ConnectionError, Timeout) as e:
            raise TMDBAPIError(0, f"Connection error: {str(e)}", endpoint)
        except (RequestException, UnicodeError) as e:
            # Malformed URL or a query that cannot be encoded
            raise TMDBAPIError(0, f"Invalid request: {str(e)}", endpoint)

        if response.status_code >= 400:
            error_message = response.text
            try:
                error_data = response.json()
                error_message = error_data.get('status_message', error_message)
            except (ValueError, AttributeError):
                pass
            raise TMDBAPIError(response.status_code, error_message, endpoint)

        try:
            return response.json()
        except ValueError as e:
            raise TMDBAPIError(response.status_code, f"Invalid JSON in response: {str(e)}", endpoint)

    def discover_movies(
        self,
        page: int = 1,
        sort_by: str = "popularity.desc",
        filters: Optional[FilterState] = None
    ) -> Dict[str, Any]:
        """
        Get one page of the discover listing.

        Args:
            page: 1-based page number
            sort_by: Server-side sort parameter (see MovieCategory)
            filters: Genre / year / minimum rating constraints

        Returns:
            Raw response dictionary with 'results' and 'total_pages'

        Raises:
            TMDBAPIError: If the API request fails
        """
        params: Dict[str, Any] = {"page": page, "sort_by": sort_by}
        params.update((filters or FilterState()).to_params())
        return self._request("/discover/movie", params=params)

    def search_movies(self, query: str, page: int = 1) -> Dict[str, Any]:
        """
        Search movies by free text.

        Args:
            query: Text to search for (encoded by requests)
            page: 1-based page number

        Returns:
            Raw response dictionary with 'results' and 'total_pages'

        Raises:
            TMDBAPIError: If the API request fails
        """
        return self._request("/search/movie", params={"query": query, "page": page})

    def get_movie(self, movie_id: int) -> Dict[str, Any]:
        """
        Get the details of a single movie.

        Args:
            movie_id: TMDB movie ID

        Returns:
            Movie details dictionary

        Raises:
            TMDBAPIError: If the API request fails
        """
        return self._request(f"/movie/{movie_id}")

    def poster_url(self, poster_path: Optional[str], size: str = DEFAULT_POSTER_SIZE) -> Optional[str]:
        """Return the full poster image URL, or None when the movie has no poster."""
        if not poster_path:
            return None
        if not poster_path.startswith('/'):
            poster_path = '/' + poster_path
        return f"{self.image_base_url}/{size}{poster_path}"

    def download_poster(
        self,
        poster_path: Optional[str],
        destination: Union[str, Path],
        size: str = DEFAULT_POSTER_SIZE
    ) -> Path:
        """
        Download a poster image to a local file.

        Args:
            poster_path: Poster path from the movie record (e.g., "/abc.jpg")
            destination: File to write the image to
            size: Image size segment (e.g., "w185", "w500", "original")

        Returns:
            Path of the written file

        Raises:
            TMDBAPIError: If the movie has no poster or the download fails
        """
        url = self.poster_url(poster_path, size)
        if url is None:
            raise TMDBAPIError(0, "Movie has no poster", "/poster")

        try:
            response = requests.get(url, timeout=self.timeout)
        except RequestException as e:
            raise TMDBAPIError(0, f"Connection error: {str(e)}", url)

        if response.status_code >= 400:
            raise TMDBAPIError(response.status_code, "Poster download failed", url)

        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(response.content)
        return destination
