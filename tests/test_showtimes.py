import httpx

from movie_club.showtimes import DEFAULT_QUERY, ShowtimeClient

from .conftest import SERP_SHOWTIMES, Recorder, failing_responder, json_responder, make_settings


async def test_fetch_returns_showtimes_list(settings):
    recorder = json_responder({"search_metadata": {"status": "Success"}, "showtimes": SERP_SHOWTIMES})
    client = ShowtimeClient(settings, transport=recorder.transport)

    entries = await client.fetch("Dune theater")

    params = recorder.last.url.params
    assert recorder.last.url.path == "/search.json"
    assert params["q"] == "Dune theater"
    assert params["location"] == "Chicago, Illinois, United States"
    assert params["hl"] == "en"
    assert params["gl"] == "us"
    assert params["api_key"] == "serp-key"
    assert entries == SERP_SHOWTIMES


async def test_blank_query_uses_default(settings):
    recorder = json_responder({"showtimes": []})

    await ShowtimeClient(settings, transport=recorder.transport).fetch("  ")

    assert recorder.last.url.params["q"] == DEFAULT_QUERY


async def test_payload_without_showtimes_is_empty(settings):
    client = ShowtimeClient(settings, transport=json_responder({"organic_results": []}).transport)

    assert await client.fetch("obscure film") == []


async def test_failures_degrade_to_empty(settings):
    for recorder in (
        failing_responder(),
        json_responder({"error": "quota"}, status_code=429),
        Recorder(lambda request: httpx.Response(200, content=b"not json")),
    ):
        client = ShowtimeClient(settings, transport=recorder.transport)
        assert await client.fetch("Dune") == []
        assert await client.slots_for("Dune") == []


async def test_missing_key_skips_request():
    recorder = json_responder({"showtimes": SERP_SHOWTIMES})
    client = ShowtimeClient(make_settings(serp_api_key=None), transport=recorder.transport)

    assert await client.fetch("Dune") == []
    assert recorder.requests == []


async def test_slots_for_flattens(settings):
    client = ShowtimeClient(settings, transport=json_responder({"showtimes": SERP_SHOWTIMES}).transport)

    slots = await client.slots_for("Dune")

    assert len(slots) == 5
    assert slots[-1].date == "Oct 21"
