"""Relay validated admin selections to the upstream gateway."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import httpx
import structlog

from .config import Settings
from .models import CamelModel

LOGGER = structlog.get_logger(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields: movieId, movieTitle, showDate"
CONFIG_ERROR_MESSAGE = "Server configuration error"
INTERNAL_ERROR_MESSAGE = "Internal server error"


class ForwardingError(Exception):
    """Failure that maps straight onto an HTTP status for the caller."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class SelectionPayload(CamelModel):
    """Incoming body; every field is optional so emptiness can be reported as a 400."""

    movie_id: Any = None
    movie_title: Any = None
    show_date: Any = None

    @classmethod
    def from_body(cls, body: Any) -> "SelectionPayload":
        """Payload from a decoded request body; anything but an object has no fields."""
        if not isinstance(body, dict):
            raise ForwardingError(400, MISSING_FIELDS_MESSAGE)
        return cls.model_validate(body)

    def missing(self) -> bool:
        return not (self.movie_id and self.movie_title and self.show_date)

    def wire(self) -> dict[str, Any]:
        return {
            "movieId": self.movie_id,
            "movieTitle": self.movie_title,
            "showDate": self.show_date,
        }


@dataclass
class ForwardResult:
    """Outcome of a forwarded selection.

    ``ok`` results carry the upstream's decoded JSON in ``body``. Failed
    upstream responses keep the raw bytes and content type so they can be
    relayed verbatim.
    """

    status_code: int
    body: Any
    content: bytes = b""
    media_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class SelectionForwarder:
    """Posts selections to ``{API_HOST}/admin/selection`` with the server-side key."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    async def submit(self, payload: SelectionPayload) -> ForwardResult:
        """Validate and forward one selection.

        Raises :class:`ForwardingError` for missing fields (400), missing
        credentials (500) and transport failures (500). Upstream error
        responses are returned, not raised.
        """
        if payload.missing():
            raise ForwardingError(400, MISSING_FIELDS_MESSAGE)
        if not self._settings.gateway_configured:
            LOGGER.error("forwarding.not_configured", api_host_set=bool(self._settings.api_host))
            raise ForwardingError(500, CONFIG_ERROR_MESSAGE)

        url = self._settings.selection_endpoint
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self._settings.api_key.get_secret_value(),
        }
        LOGGER.info("forwarding.send.start", url=url, movie_id=payload.movie_id, show_date=payload.show_date)

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(url, json=payload.wire(), headers=headers)
        except httpx.HTTPError as exc:
            LOGGER.exception("forwarding.send.failed", url=url, error=str(exc))
            raise ForwardingError(500, INTERNAL_ERROR_MESSAGE) from exc

        if not response.is_success:
            LOGGER.error(
                "forwarding.upstream.error",
                status_code=response.status_code,
                body=response.text,
            )
            return ForwardResult(
                status_code=response.status_code,
                body=None,
                content=response.content,
                media_type=response.headers.get("content-type"),
            )

        try:
            body = response.json()
        except ValueError as exc:
            LOGGER.error("forwarding.upstream.invalid_json", status_code=response.status_code)
            raise ForwardingError(500, INTERNAL_ERROR_MESSAGE) from exc

        LOGGER.info("forwarding.send.success", status_code=response.status_code)
        return ForwardResult(status_code=200, body=body)
