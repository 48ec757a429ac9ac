"""Wrapper around the TMDB HTTP API used to find candidate films."""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError

from .config import Settings
from .date_window import DiscoveryWindow
from .models import Movie

LOGGER = structlog.get_logger(__name__)


class CatalogError(RuntimeError):
    """Raised by the strict catalog calls when the upstream cannot be used."""


class CatalogClient:
    """Helper for querying the movie metadata catalog.

    ``search``/``discover``/``get_movie`` never raise for upstream problems;
    they log and return an empty result. The ``*_page``/``fetch_movie``
    variants raise :class:`CatalogError` instead, for callers that need to
    tell "no results" apart from "catalog unavailable".
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    async def search(self, query: str, year: Optional[int] = None, page: int = 1) -> list[Movie]:
        """Free-text title search, optionally narrowed to a release year."""
        _require_query(query)
        try:
            return await self.search_page(query, year=year, page=page)
        except CatalogError as exc:
            LOGGER.warning("catalog.search.failed", query=query, year=year, error=str(exc))
            return []

    async def discover(self, window: DiscoveryWindow, page: int = 1) -> list[Movie]:
        """Popular theatrical releases inside the discovery window."""
        try:
            return await self.discover_page(window, page=page)
        except CatalogError as exc:
            LOGGER.warning(
                "catalog.discover.failed",
                start=window.start_iso,
                end=window.end_iso,
                page=page,
                error=str(exc),
            )
            return []

    async def get_movie(self, movie_id: int) -> Optional[Movie]:
        try:
            return await self.fetch_movie(movie_id)
        except CatalogError as exc:
            LOGGER.warning("catalog.movie.failed", movie_id=movie_id, error=str(exc))
            return None

    async def search_page(self, query: str, year: Optional[int] = None, page: int = 1) -> list[Movie]:
        _require_query(query)
        params: dict[str, Any] = {
            "query": query.strip(),
            "include_adult": "false",
            "language": self._settings.catalog_language,
            "page": page,
        }
        if year is not None:
            params["year"] = year
        payload = await self._get("/search/movie", params)
        return _parse_results(payload)

    async def discover_page(self, window: DiscoveryWindow, page: int = 1) -> list[Movie]:
        params = {
            "include_adult": "false",
            "include_video": "false",
            "language": self._settings.catalog_language,
            "region": self._settings.catalog_region,
            "sort_by": "popularity.desc",
            "with_release_type": "2|3",
            "release_date.gte": window.start_iso,
            "release_date.lte": window.end_iso,
            "page": page,
        }
        payload = await self._get("/discover/movie", params)
        return _parse_results(payload)

    async def fetch_movie(self, movie_id: int) -> Movie:
        payload = await self._get(f"/movie/{movie_id}", {"language": self._settings.catalog_language})
        if not isinstance(payload, dict):
            raise CatalogError(f"Catalog returned an unusable record for movie {movie_id}")
        # An untitled record is still the requested movie; callers label it.
        record = {**payload, "id": payload.get("id") or movie_id, "title": payload.get("title") or ""}
        try:
            return Movie.model_validate(record)
        except ValidationError as exc:
            raise CatalogError(f"Catalog returned an unusable record for movie {movie_id}") from exc

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        """Execute a single GET against the catalog and decode the JSON body."""
        token = self._settings.tmdb_access_token
        if token is None or not token.get_secret_value():
            raise CatalogError("TMDB_ACCESS_TOKEN is not configured")

        headers = {
            "Authorization": f"Bearer {token.get_secret_value()}",
            "Accept": "application/json",
        }
        LOGGER.info("catalog.request.start", path=path, page=params.get("page"))
        try:
            async with httpx.AsyncClient(
                base_url=self._settings.tmdb_base_url,
                timeout=self._settings.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(path, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise CatalogError(f"Catalog request failed: {exc}") from exc

        if not response.is_success:
            raise CatalogError(f"Catalog responded with {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise CatalogError("Catalog response was not valid JSON") from exc


def _require_query(query: str) -> None:
    if not query or not query.strip():
        raise ValueError("query must not be empty in search mode")


def _parse_results(payload: Any) -> list[Movie]:
    """Turn a paged catalog response into movies, skipping unusable records."""
    if not isinstance(payload, dict):
        raise CatalogError("Catalog response was not a JSON object")
    results = payload.get("results") or []
    movies: list[Movie] = []
    for item in results:
        try:
            movies.append(Movie.model_validate(item))
        except ValidationError:
            LOGGER.debug("catalog.result.skipped", item_id=_item_id(item))
    return movies


def _item_id(item: Any) -> Any:
    return item.get("id") if isinstance(item, dict) else None
