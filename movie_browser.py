#!/usr/bin/env python3
"""
Movie Browser - Command-line client for browsing TMDB listings and tracking favorites.
"""
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import questionary
from dotenv import load_dotenv
from questionary import Choice
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm
from rich.table import Table

from catalog import CatalogFetcher
from favorites import FavoritesStore
from filters import FilterState, GENRE_NAME_TO_ID
from models import Movie, MovieCategory
from storage import LocalStorage
from tmdb_client import TMDBAPIError, TMDBClient, DEFAULT_POSTER_SIZE

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Route log records through rich so they share the console with tables."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


def format_rating(movie: Movie) -> str:
    """Format a 0-10 rating with one decimal place, or "-" when unrated."""
    if not movie.vote_count and not movie.vote_average:
        return "-"
    return f"{movie.vote_average:.1f}"


def display_movies_table(
    movies: List[Movie],
    title: str = "Movies",
    verbose: bool = False,
    client: Optional[TMDBClient] = None
) -> None:
    """
    Display movies in a formatted table.

    Args:
        movies: Movies to show, in display order
        title: Table title
        verbose: Whether to show IDs and poster links
        client: TMDBClient used to build poster links in verbose mode
    """
    if not movies:
        console.print("[yellow]No movies found[/yellow]")
        return

    table = Table(title=title)
    if verbose:
        table.add_column("ID", style="dim", justify="right")
    table.add_column("Title", style="cyan", no_wrap=False)
    table.add_column("Year", style="magenta", justify="center")
    table.add_column("Rating", style="green", justify="right")
    table.add_column("Fav", style="yellow", justify="center")
    if verbose and client:
        table.add_column("Poster", style="blue", no_wrap=False)

    for movie in movies:
        row = []
        if verbose:
            row.append(str(movie.id))
        row.extend([
            movie.title,
            str(movie.release_year or 'N/A'),
            format_rating(movie),
            "★" if movie.is_favorite else "",
        ])
        if verbose and client:
            row.append(client.poster_url(movie.poster_path) or "")
        table.add_row(*row)

    console.print(table)


def display_page_summary(catalog: CatalogFetcher) -> None:
    """Print how much of the listing has been loaded."""
    shown = len(catalog.movies)
    if catalog.search_query:
        console.print(f"\n[bold]{shown} results for '{catalog.search_query}'[/bold]")
        return

    loaded = min(catalog.current_page - 1, catalog.total_pages)
    console.print(
        f"\n[bold]{shown} movies[/bold] "
        f"({catalog.current_category.display_name}, {loaded} of {catalog.total_pages} pages loaded)"
    )
    filters = catalog.filters
    if not filters.is_empty():
        parts = []
        if filters.genres:
            parts.append("genres: " + ", ".join(sorted(filters.genres)))
        if filters.year is not None:
            parts.append(f"year: {filters.year}")
        if filters.min_rating:
            parts.append(f"rating >= {filters.min_rating:.1f}")
        console.print(f"[dim]Filters: {'; '.join(parts)}[/dim]")


def interactive_favorite_selection(movies: List[Movie], favorites: FavoritesStore) -> List[Movie]:
    """
    Display an interactive checkbox for choosing favorites among listed movies.

    Args:
        movies: Movies currently displayed
        favorites: FavoritesStore instance

    Returns:
        Movies whose favorite state the user changed (to be toggled)
    """
    if not movies:
        return []

    choices = []
    for movie in movies:
        is_favorite = favorites.is_favorite(movie.id)
        display = f"{movie.title} ({movie.release_year or 'N/A'})"
        if is_favorite:
            display = f"{display} [favorite]"

        choices.append(Choice(
            title=display,
            value=movie,
            checked=is_favorite
        ))

    console.print("\n[bold cyan]Select your favorite movies:[/bold cyan]")
    console.print("[dim]Use arrow keys to navigate, Space to select, Enter to confirm[/dim]\n")

    selected = questionary.checkbox(
        "",
        choices=choices,
        instruction="(Space to toggle, Enter to confirm)"
    ).ask()

    # User cancelled (Ctrl+C)
    if selected is None:
        return []

    selected_ids = {m.id for m in selected}
    return [
        m for m in movies
        if (m.id in selected_ids) != favorites.is_favorite(m.id)
    ]


def apply_interactive_selection(catalog: CatalogFetcher) -> None:
    """Let the user toggle favorites for the displayed list and report the changes."""
    changed = interactive_favorite_selection(catalog.movies, catalog.favorites)
    if not changed:
        console.print("[yellow]No changes to favorites[/yellow]")
        return

    for movie in changed:
        if catalog.toggle_favorite(movie):
            console.print(f"[green]Added to favorites: {movie.title}[/green]")
        else:
            console.print(f"[yellow]Removed from favorites: {movie.title}[/yellow]")
    console.print(f"\n[bold green]Updated {len(changed)} favorites[/bold green]")


def build_filters(args: argparse.Namespace) -> FilterState:
    return FilterState.from_options(
        genres=args.genre,
        year=args.year,
        min_rating=args.min_rating
    )


def make_client(args: argparse.Namespace) -> TMDBClient:
    return TMDBClient(args.api_key)


def make_favorites(args: argparse.Namespace) -> FavoritesStore:
    return FavoritesStore(LocalStorage(args.favorites_file))


def cmd_browse(args: argparse.Namespace) -> int:
    """
    Execute the browse command: load pages of a category under filters.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        category = MovieCategory.from_name(args.category)
        filters = build_filters(args)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1

    client = make_client(args)
    catalog = CatalogFetcher(client, make_favorites(args), category=category)

    with console.status(f"[cyan]Loading {category.display_name} movies..."):
        loaded = catalog.apply_filters(filters)
        for _ in range(max(args.pages, 1) - 1):
            if not loaded or not catalog.has_more_pages:
                break
            loaded = catalog.fetch_next_page()

    if not catalog.movies and catalog.current_page == 1:
        console.print("[bold red]Error:[/bold red] Could not load movies (run with --verbose for details)")
        return 1

    display_movies_table(
        catalog.movies,
        title=f"{category.display_name} Movies",
        verbose=args.verbose,
        client=client
    )
    display_page_summary(catalog)

    if args.interactive:
        apply_interactive_selection(catalog)

    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """
    Execute the search command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        category = MovieCategory.from_name(args.category)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1

    client = make_client(args)
    catalog = CatalogFetcher(client, make_favorites(args), category=category)

    query = ' '.join(args.query)
    with console.status("[cyan]Searching..."):
        loaded = catalog.search(query)

    if not loaded:
        console.print("[bold red]Error:[/bold red] Search failed (run with --verbose for details)")
        return 1

    title = f"Results for '{catalog.search_query}'" if catalog.search_query else f"{category.display_name} Movies"
    display_movies_table(catalog.movies, title=title, verbose=args.verbose, client=client)
    display_page_summary(catalog)

    if args.interactive:
        apply_interactive_selection(catalog)

    return 0


def cmd_categories(args: argparse.Namespace) -> int:
    """List sort modes, marking the current one."""
    try:
        current = MovieCategory.from_name(args.current)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1

    table = Table(title="Sort By")
    table.add_column("Name", style="cyan")
    table.add_column("Category", style="green")
    table.add_column("Sort parameter", style="dim")
    table.add_column("", style="yellow", justify="center")

    for category in MovieCategory:
        mark = "✓" if category is current else ""
        table.add_row(category.cli_name, category.display_name, category.value, mark)

    console.print(table)
    return 0


def cmd_genres(args: argparse.Namespace) -> int:
    """List the genres that can be used with --genre."""
    table = Table(title="Genres")
    table.add_column("Genre", style="cyan")
    table.add_column("ID", style="dim", justify="right")

    for name, genre_id in GENRE_NAME_TO_ID.items():
        table.add_row(name, str(genre_id))

    console.print(table)
    return 0


def cmd_favorites(args: argparse.Namespace) -> int:
    """Handle favorites commands."""
    favorites = make_favorites(args)

    if args.favorites_command == 'add':
        if favorites.is_favorite(args.id):
            console.print(f"[yellow]Movie ID {args.id} is already a favorite[/yellow]")
            return 0

        try:
            client = make_client(args)
            movie = Movie.from_api(client.get_movie(args.id))
        except TMDBAPIError as e:
            console.print(f"[red]TMDB API Error: {e.message}[/red]")
            return 1
        except ValueError as e:
            console.print(f"[red]Error: Could not read movie {args.id}: {e}[/red]")
            return 1

        favorites.add_to_favorites(movie)
        console.print(f"[green]Added to favorites: {movie.title} (ID: {movie.id})[/green]")
        return 0

    elif args.favorites_command == 'remove':
        if favorites.remove_from_favorites(args.id):
            console.print(f"[green]Removed movie ID {args.id} from favorites[/green]")
        else:
            console.print(f"[yellow]Movie ID {args.id} was not a favorite[/yellow]")
        return 0

    elif args.favorites_command == 'list':
        movies = favorites.list_all()
        if not movies:
            console.print("[yellow]No favorites yet[/yellow]")
            return 0

        display_movies_table(movies, title="Favorites", verbose=True)
        console.print(f"\n[bold]Total: {len(movies)} favorite movies[/bold]")
        return 0

    elif args.favorites_command == 'clear':
        if not len(favorites):
            console.print("[yellow]Favorites are already empty[/yellow]")
            return 0

        count = len(favorites)
        if not args.yes:
            if not Confirm.ask(f"Are you sure you want to remove all {count} favorites?", default=False):
                console.print("[yellow]Operation cancelled[/yellow]")
                return 0

        favorites.clear()
        console.print(f"[green]Cleared {count} favorites[/green]")
        return 0

    else:
        console.print("[red]Error: Unknown favorites command[/red]")
        return 1


def cmd_poster(args: argparse.Namespace) -> int:
    """Download the poster of a movie."""
    client = make_client(args)

    try:
        with console.status(f"[cyan]Downloading poster for movie {args.id}..."):
            movie = Movie.from_api(client.get_movie(args.id))
            output = args.output or f"{args.id}{Path(movie.poster_path or '.jpg').suffix or '.jpg'}"
            path = client.download_poster(movie.poster_path, output, size=args.size)
    except TMDBAPIError as e:
        console.print(f"[bold red]TMDB API Error:[/bold red] {e.message}")
        if args.verbose:
            console.print(f"[dim]Status Code: {e.status_code}[/dim]")
            console.print(f"[dim]Endpoint: {e.endpoint}[/dim]")
        return 1
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] Could not read movie {args.id}: {e}")
        return 1

    console.print(f"[green]Saved poster for {movie.title} to {path}[/green]")
    return 0


def build_parser() -> argparse.ArgumentParser:
    category_names = [c.cli_name for c in MovieCategory]

    parser = argparse.ArgumentParser(
        description="Movie Browser - Browse TMDB listings and keep track of your favorite movies",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    # Global arguments
    parser.add_argument(
        '--api-key',
        default=os.getenv('TMDB_API_KEY'),
        help='TMDB API key (overrides TMDB_API_KEY env var)'
    )
    parser.add_argument(
        '--favorites-file',
        default=os.getenv('FAVORITES_PATH', '.favorites.json'),
        help='File storing favorites (overrides FAVORITES_PATH env var)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show detailed output and debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    # Browse command
    browse_parser = subparsers.add_parser('browse', help='Browse movies by category and filters')
    browse_parser.add_argument(
        '--category', '-c',
        default='popular',
        choices=category_names,
        help='Sort mode (default: popular)'
    )
    browse_parser.add_argument(
        '--genre', '-g',
        action='append',
        default=[],
        help='Only include this genre (repeatable)'
    )
    browse_parser.add_argument('--year', type=int, help='Primary release year')
    browse_parser.add_argument('--min-rating', type=float, default=0.0, help='Minimum rating (0-10)')
    browse_parser.add_argument('--pages', '-p', type=int, default=1, help='Number of pages to load (default: 1)')
    browse_parser.add_argument(
        '--interactive', '-i',
        action='store_true',
        help='Interactively choose favorites among the results'
    )

    # Search command
    search_parser = subparsers.add_parser('search', help='Search movies by title')
    search_parser.add_argument('query', nargs='*', help='Text to search for (empty lists the category)')
    search_parser.add_argument(
        '--category', '-c',
        default='popular',
        choices=category_names,
        help='Category to list when the query is empty (default: popular)'
    )
    search_parser.add_argument(
        '--interactive', '-i',
        action='store_true',
        help='Interactively choose favorites among the results'
    )

    # Listing commands
    categories_parser = subparsers.add_parser('categories', help='List sort modes')
    categories_parser.add_argument('--current', default='popular', choices=category_names, help='Category to mark')
    subparsers.add_parser('genres', help='List genres')

    # Favorites command with subcommands
    favorites_parser = subparsers.add_parser('favorites', help='Manage favorites')
    favorites_subparsers = favorites_parser.add_subparsers(dest='favorites_command', help='Favorites action')

    favorites_add_parser = favorites_subparsers.add_parser('add', help='Add movie to favorites')
    favorites_add_parser.add_argument('id', type=int, help='TMDB movie ID to add')

    favorites_remove_parser = favorites_subparsers.add_parser('remove', help='Remove movie from favorites')
    favorites_remove_parser.add_argument('id', type=int, help='TMDB movie ID to remove')

    favorites_subparsers.add_parser('list', help='List favorite movies')

    favorites_clear_parser = favorites_subparsers.add_parser('clear', help='Remove all favorites')
    favorites_clear_parser.add_argument('--yes', '-y', action='store_true', help='Skip confirmation')

    # Poster command
    poster_parser = subparsers.add_parser('poster', help='Download a movie poster')
    poster_parser.add_argument('id', type=int, help='TMDB movie ID')
    poster_parser.add_argument('--output', '-o', help='Output file (default: <id>.jpg)')
    poster_parser.add_argument('--size', default=DEFAULT_POSTER_SIZE, help=f'Image size (default: {DEFAULT_POSTER_SIZE})')

    return parser


# Commands that talk to TMDB and need an API key
NETWORK_COMMANDS = {'browse', 'search', 'poster'}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI application.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    # Load environment variables from .env file
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    needs_key = args.command in NETWORK_COMMANDS or (
        args.command == 'favorites' and args.favorites_command == 'add'
    )
    if needs_key and not args.api_key:
        console.print("[bold red]Error:[/bold red] TMDB API key not provided")
        console.print("Set TMDB_API_KEY environment variable or use --api-key flag")
        return 1

    # Route to appropriate command handler
    if args.command == 'browse':
        return cmd_browse(args)
    elif args.command == 'search':
        return cmd_search(args)
    elif args.command == 'categories':
        return cmd_categories(args)
    elif args.command == 'genres':
        return cmd_genres(args)
    elif args.command == 'favorites':
        return cmd_favorites(args)
    elif args.command == 'poster':
        return cmd_poster(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
