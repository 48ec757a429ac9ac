"""Showtime search client backed by SerpAPI."""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog

from .aggregator import flatten
from .config import Settings
from .models import ShowtimeSlot

LOGGER = structlog.get_logger(__name__)

DEFAULT_QUERY = "eternals theater"


class ShowtimeClient:
    """Fetch raw showtime entries for a free-text query."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    async def fetch(self, query: Optional[str]) -> list[Any]:
        """Return the provider's ``showtimes`` list, or ``[]`` on any failure."""
        query = (query or "").strip() or DEFAULT_QUERY
        api_key = self._settings.serp_api_key
        if api_key is None or not api_key.get_secret_value():
            LOGGER.warning("showtimes.not_configured", query=query)
            return []

        params = {
            "q": query,
            "location": self._settings.showtime_location,
            "hl": "en",
            "gl": "us",
            "api_key": api_key.get_secret_value(),
        }
        LOGGER.info("showtimes.request.start", query=query)
        try:
            async with httpx.AsyncClient(
                base_url=self._settings.serp_base_url,
                timeout=self._settings.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get("/search.json", params=params)
        except httpx.HTTPError as exc:
            LOGGER.warning("showtimes.request.failed", query=query, error=str(exc))
            return []

        if not response.is_success:
            LOGGER.warning("showtimes.request.failed", query=query, status_code=response.status_code)
            return []
        try:
            payload = response.json()
        except ValueError:
            LOGGER.warning("showtimes.json_decode_failed", query=query)
            return []

        showtimes = payload.get("showtimes") if isinstance(payload, dict) else None
        if not isinstance(showtimes, list):
            LOGGER.info("showtimes.none_found", query=query)
            return []
        LOGGER.info("showtimes.request.success", query=query, entries=len(showtimes))
        return showtimes

    async def slots_for(self, title: Optional[str]) -> list[ShowtimeSlot]:
        return flatten(await self.fetch(title))
