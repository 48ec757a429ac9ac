from datetime import date

import httpx

from movie_club.flow import SelectionFlow
from movie_club.forwarding import SelectionForwarder
from movie_club.store import MemoryStore, SelectionStore

from .conftest import Recorder, json_responder, make_settings


def _flow(recorder, settings=None):
    store = SelectionStore(MemoryStore())
    forwarder = SelectionForwarder(settings or make_settings(), transport=recorder.transport)
    return SelectionFlow(store, forwarder), store


async def test_movie_alone_is_saved_but_not_forwarded():
    recorder = json_responder({"ok": True})
    flow, store = _flow(recorder)

    result = await flow.select_movie(1, "A")

    assert not result.forwarded
    assert result.error is None
    assert recorder.requests == []
    assert store.state().movie_title == "A"


async def test_both_orders_forward_identical_payloads():
    movie_first = json_responder({"ok": True})
    flow, _ = _flow(movie_first)
    await flow.select_movie(1, "A")
    result = await flow.set_date(date(2025, 1, 1))
    assert result.forwarded

    date_first = json_responder({"ok": True})
    flow, _ = _flow(date_first)
    await flow.set_date("2025-01-01")
    result = await flow.select_movie(1, "A")
    assert result.forwarded

    assert len(movie_first.requests) == len(date_first.requests) == 1
    assert movie_first.last_json() == date_first.last_json() == {
        "movieId": 1,
        "movieTitle": "A",
        "showDate": "2025-01-01",
    }


async def test_every_change_after_completion_forwards_again():
    recorder = json_responder({"ok": True})
    flow, _ = _flow(recorder)
    await flow.select_movie(1, "A")
    await flow.set_date("2025-01-01")
    await flow.select_movie(2, "B")

    assert recorder.last_json()["movieId"] == 2
    assert len(recorder.requests) == 2


async def test_forward_failure_keeps_local_state():
    recorder = Recorder(lambda request: httpx.Response(503, text="down"))
    flow, store = _flow(recorder)
    await flow.set_date("2025-01-01")

    result = await flow.select_movie(1, "A")

    assert not result.forwarded
    assert result.forward.status_code == 503
    assert "503" in result.error
    assert store.load() is not None


async def test_unconfigured_gateway_reports_error():
    recorder = json_responder({"ok": True})
    flow, store = _flow(recorder, settings=make_settings(api_host=None))
    await flow.select_movie(1, "A")

    result = await flow.set_date("2025-01-01")

    assert not result.forwarded
    assert result.error == "Server configuration error"
    assert store.load() is not None
