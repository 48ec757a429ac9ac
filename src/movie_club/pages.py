"""View models for the admin and member pages."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import List, Optional

import structlog
from pydantic import Field

from .aggregator import build_options
from .catalog import CatalogClient, CatalogError
from .config import Settings
from .date_window import compute_discovery_window
from .models import (
    Ballot,
    BallotRequest,
    CamelModel,
    Movie,
    RankedChoice,
    SelectionState,
    ShowtimeOption,
)
from .showtimes import ShowtimeClient
from .store import SelectionStore

LOGGER = structlog.get_logger(__name__)

MAX_RANKS = 3
MOVIE_NOT_SET = "Movie not set"
UNKNOWN_MOVIE = "Unknown Movie"
MOVIE_FETCH_ERROR = "Error fetching movie"
CATALOG_FETCH_ERROR = "Could not load movies from the catalog. Try again."


class FetchStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class MovieCard(CamelModel):
    """A catalog result as shown on the admin page."""

    id: int
    title: str
    release: str
    poster_url: Optional[str] = None
    selected: bool = False


class WindowView(CamelModel):
    start: date
    end: date


class AdminPage(CamelModel):
    status: FetchStatus = FetchStatus.IDLE
    error: Optional[str] = None
    mode: str = "discover"
    query: Optional[str] = None
    page: int = 1
    has_previous: bool = False
    window: WindowView
    movies: List[MovieCard] = Field(default_factory=list)
    selection: SelectionState


class MemberPage(CamelModel):
    status: FetchStatus = FetchStatus.IDLE
    error: Optional[str] = None
    movie_id: Optional[int] = None
    title: str = MOVIE_NOT_SET
    poster_url: Optional[str] = None
    proposed_date: Optional[date] = None
    showtimes: List[ShowtimeOption] = Field(default_factory=list)
    ranks: int = MAX_RANKS


class BallotError(ValueError):
    """Raised when a ballot does not match the current showtime options."""


def _card(movie: Movie, settings: Settings, selected_id: Optional[int]) -> MovieCard:
    return MovieCard(
        id=movie.id,
        title=movie.title,
        release=movie.release_label,
        poster_url=movie.poster_url(settings.tmdb_image_base_url, "w500"),
        selected=movie.id == selected_id,
    )


async def build_admin_page(
    settings: Settings,
    catalog: CatalogClient,
    store: SelectionStore,
    *,
    page: int = 1,
    query: Optional[str] = None,
    year: Optional[int] = None,
    today: Optional[date] = None,
) -> AdminPage:
    """Candidate films for the admin, in discover mode unless a query is given."""
    page = max(page, 1)
    window = compute_discovery_window(today)
    selection = store.state()
    search_mode = bool(query and query.strip())

    view = AdminPage(
        status=FetchStatus.LOADING,
        mode="search" if search_mode else "discover",
        query=query.strip() if search_mode else None,
        page=page,
        has_previous=page > 1,
        window=WindowView(start=window.start, end=window.end),
        selection=selection,
    )

    try:
        if search_mode:
            movies = await catalog.search_page(query, year=year, page=page)
        else:
            movies = await catalog.discover_page(window, page=page)
    except CatalogError as exc:
        LOGGER.warning("pages.admin.fetch_failed", mode=view.mode, page=page, error=str(exc))
        view.status = FetchStatus.ERROR
        view.error = CATALOG_FETCH_ERROR
        return view

    view.movies = [_card(movie, settings, selection.movie_id) for movie in movies]
    view.status = FetchStatus.LOADED
    return view


async def build_member_page(
    settings: Settings,
    catalog: CatalogClient,
    showtimes: ShowtimeClient,
    store: SelectionStore,
) -> MemberPage:
    """The featured movie, its poster and the showtimes members vote on."""
    state = store.state()
    view = MemberPage(proposed_date=state.proposed_date)
    if state.movie_id is None:
        return view

    view.movie_id = state.movie_id
    view.status = FetchStatus.LOADING
    try:
        movie = await catalog.fetch_movie(state.movie_id)
    except CatalogError as exc:
        LOGGER.warning("pages.member.movie_failed", movie_id=state.movie_id, error=str(exc))
        view.status = FetchStatus.ERROR
        view.title = MOVIE_FETCH_ERROR
        view.error = MOVIE_FETCH_ERROR
        return view

    if not movie.title:
        view.title = UNKNOWN_MOVIE
        view.status = FetchStatus.LOADED
        return view

    view.title = movie.title
    view.poster_url = movie.poster_url(settings.tmdb_image_base_url, "w300")
    view.showtimes = build_options(await showtimes.slots_for(movie.title))
    view.status = FetchStatus.LOADED
    return view


def rank_ballot(page: MemberPage, request: BallotRequest) -> Ballot:
    """Check a ballot against the options currently on the member page."""
    if page.movie_id is None or page.status != FetchStatus.LOADED:
        raise BallotError("There is no featured movie to vote on yet")
    if not request.choices:
        raise BallotError("Pick at least one showtime")
    if len(request.choices) > page.ranks:
        raise BallotError(f"Pick at most {page.ranks} showtimes")
    if len(set(request.choices)) != len(request.choices):
        raise BallotError("Each showtime can only be ranked once")

    options = {option.id: option for option in page.showtimes}
    unknown = [choice for choice in request.choices if choice not in options]
    if unknown:
        raise BallotError(f"Unknown showtime option(s): {', '.join(unknown)}")

    return Ballot(
        movie_id=page.movie_id,
        movie_title=page.title,
        choices=[
            RankedChoice(rank=rank, option_id=choice, label=options[choice].label)
            for rank, choice in enumerate(request.choices, start=1)
        ],
        available_dates=sorted(set(request.available_dates)),
    )
