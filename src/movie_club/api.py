"""FastAPI application exposing the Movie Club endpoints."""

from __future__ import annotations

from datetime import date
from typing import Any, List, Optional

import structlog
from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from . import __version__
from .aggregator import build_options
from .catalog import CatalogClient
from .config import ServiceInfo, Settings
from .date_window import compute_discovery_window
from .flow import FlowResult, SelectionFlow
from .forwarding import ForwardingError, SelectionForwarder, SelectionPayload
from .main import configure_logging
from .models import Ballot, BallotRequest, CamelModel, Movie, SelectionState, ShowtimeOption
from .pages import AdminPage, BallotError, MemberPage, build_admin_page, build_member_page, rank_ballot
from .showtimes import ShowtimeClient
from .store import JsonFileStore, SelectionStore
from .utils import now_in_timezone, today_in_timezone

configure_logging()
LOGGER = structlog.get_logger(__name__)

app = FastAPI(title="Movie Club", version=__version__)


def get_settings() -> Settings:
    return Settings()


def get_store(settings: Settings = Depends(get_settings)) -> SelectionStore:
    return SelectionStore(JsonFileStore(settings.store_path))


def get_catalog(settings: Settings = Depends(get_settings)) -> CatalogClient:
    return CatalogClient(settings)


def get_showtime_client(settings: Settings = Depends(get_settings)) -> ShowtimeClient:
    return ShowtimeClient(settings)


def get_forwarder(settings: Settings = Depends(get_settings)) -> SelectionForwarder:
    return SelectionForwarder(settings)


def get_flow(
    store: SelectionStore = Depends(get_store),
    forwarder: SelectionForwarder = Depends(get_forwarder),
) -> SelectionFlow:
    return SelectionFlow(store, forwarder)


class MovieChoice(CamelModel):
    movie_id: int
    movie_title: str


class DateChoice(CamelModel):
    show_date: date


class FlowResponse(CamelModel):
    """Response schema for the selection flow endpoints."""

    selection: SelectionState
    forwarded: bool
    upstream_status: Optional[int] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    info: ServiceInfo


@app.exception_handler(ForwardingError)
async def forwarding_error_handler(request: Request, exc: ForwardingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


@app.exception_handler(BallotError)
async def ballot_error_handler(request: Request, exc: BallotError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})


@app.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    info = ServiceInfo(
        generated_at=now_in_timezone(settings.timezone).isoformat(),
        timezone=settings.timezone,
        environment=settings.environment,
        version=__version__,
    )
    return HealthResponse(status="ok", info=info)


@app.get("/api/movies/discover", response_model=List[Movie])
async def discover_movies(
    page: int = Query(1, ge=1),
    settings: Settings = Depends(get_settings),
    catalog: CatalogClient = Depends(get_catalog),
) -> List[Movie]:
    window = compute_discovery_window(today_in_timezone(settings.timezone))
    return await catalog.discover(window, page=page)


@app.get("/api/movies/search", response_model=List[Movie])
async def search_movies(
    query: str = Query(""),
    year: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    catalog: CatalogClient = Depends(get_catalog),
) -> List[Movie]:
    try:
        return await catalog.search(query, year=year, page=page)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/showtimes")
async def raw_showtimes(
    q: Optional[str] = Query(None),
    client: ShowtimeClient = Depends(get_showtime_client),
) -> List[Any]:
    """Proxy the provider's showtime list unchanged."""
    return await client.fetch(q)


@app.get("/api/showtimes/slots", response_model=List[ShowtimeOption])
async def showtime_slots(
    q: Optional[str] = Query(None),
    client: ShowtimeClient = Depends(get_showtime_client),
) -> List[ShowtimeOption]:
    return build_options(await client.slots_for(q))


@app.get("/api/selection", response_model=SelectionState)
async def current_selection(store: SelectionStore = Depends(get_store)) -> SelectionState:
    return store.state()


@app.post("/api/selection/movie", response_model=FlowResponse)
async def select_movie(choice: MovieChoice, flow: SelectionFlow = Depends(get_flow)) -> FlowResponse:
    LOGGER.info("api.selection.movie", movie_id=choice.movie_id)
    try:
        result = await flow.select_movie(choice.movie_id, choice.movie_title)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _flow_response(result)


@app.post("/api/selection/date", response_model=FlowResponse)
async def select_date(choice: DateChoice, flow: SelectionFlow = Depends(get_flow)) -> FlowResponse:
    LOGGER.info("api.selection.date", show_date=choice.show_date.isoformat())
    return _flow_response(await flow.set_date(choice.show_date))


@app.post("/api/admin")
async def forward_selection(
    body: Any = Body(None),
    forwarder: SelectionForwarder = Depends(get_forwarder),
) -> Response:
    """Relay an admin selection upstream.

    An absent or non-object body is treated as every field missing. Upstream
    failures are passed through with their own status and body.
    """
    result = await forwarder.submit(SelectionPayload.from_body(body))
    if not result.ok:
        return Response(
            content=result.content,
            status_code=result.status_code,
            media_type=result.media_type,
        )
    return JSONResponse(status_code=200, content=result.body)


@app.get("/api/pages/admin", response_model=AdminPage)
async def admin_page(
    page: int = Query(1, ge=1),
    query: Optional[str] = Query(None),
    year: Optional[int] = Query(None),
    settings: Settings = Depends(get_settings),
    catalog: CatalogClient = Depends(get_catalog),
    store: SelectionStore = Depends(get_store),
) -> AdminPage:
    return await build_admin_page(
        settings,
        catalog,
        store,
        page=page,
        query=query,
        year=year,
        today=today_in_timezone(settings.timezone),
    )


@app.get("/api/pages/member", response_model=MemberPage)
async def member_page(
    settings: Settings = Depends(get_settings),
    catalog: CatalogClient = Depends(get_catalog),
    showtimes: ShowtimeClient = Depends(get_showtime_client),
    store: SelectionStore = Depends(get_store),
) -> MemberPage:
    return await build_member_page(settings, catalog, showtimes, store)


@app.post("/api/ballot", response_model=Ballot)
async def submit_ballot(
    request: BallotRequest,
    settings: Settings = Depends(get_settings),
    catalog: CatalogClient = Depends(get_catalog),
    showtimes: ShowtimeClient = Depends(get_showtime_client),
    store: SelectionStore = Depends(get_store),
) -> Ballot:
    """Validate a ranked ballot against the options members currently see."""
    page = await build_member_page(settings, catalog, showtimes, store)
    ballot = rank_ballot(page, request)
    LOGGER.info("api.ballot.ranked", movie_id=ballot.movie_id, choices=len(ballot.choices))
    return ballot


def _flow_response(result: FlowResult) -> FlowResponse:
    return FlowResponse(
        selection=result.state,
        forwarded=result.forwarded,
        upstream_status=result.forward.status_code if result.forward else None,
        error=result.error,
    )
