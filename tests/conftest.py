from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from movie_club.config import Settings
from movie_club.store import MemoryStore, SelectionStore

ENV_VARS = (
    "TMDB_ACCESS_TOKEN",
    "TMDB_BASE_URL",
    "TMDB_IMAGE_BASE_URL",
    "SERP_API_KEY",
    "SERP_BASE_URL",
    "SHOWTIME_LOCATION",
    "API_HOST",
    "API_KEY",
    "STORE_PATH",
    "TIMEZONE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "tmdb_access_token": "tmdb-token",
        "tmdb_base_url": "https://catalog.test/3",
        "serp_api_key": "serp-key",
        "serp_base_url": "https://showtimes.test",
        "api_host": "https://gateway.test",
        "api_key": "gateway-key",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def selection_store() -> SelectionStore:
    return SelectionStore(MemoryStore())


class Recorder:
    """MockTransport handler that records requests and replays a canned response."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]):
        self._responder = responder
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


def json_responder(payload: Any, status_code: int = 200) -> Recorder:
    return Recorder(lambda request: httpx.Response(status_code, json=payload))


def failing_responder(message: str = "boom") -> Recorder:
    def raise_error(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError(message, request=request)

    return Recorder(raise_error)


SERP_SHOWTIMES = [
    {
        "day": "Today",
        "date": "Oct 20",
        "theaters": [
            {
                "name": "AMC River East 21",
                "showing": [
                    {"type": "Standard", "time": ["4:00pm", "7:15pm"]},
                    {"type": "IMAX", "time": ["9:30pm"]},
                ],
            },
            {"name": "Music Box Theatre", "showing": [{"type": "Standard", "time": ["6:00pm"]}]},
        ],
    },
    {
        "day": "Tomorrow",
        "date": "Oct 21",
        "theaters": [{"name": "AMC River East 21", "showing": [{"type": "Standard", "time": ["1:00pm"]}]}],
    },
]
