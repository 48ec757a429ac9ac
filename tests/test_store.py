import json
from datetime import date

import pytest

from movie_club.models import Selection
from movie_club.store import (
    MOVIE_ID_KEY,
    MOVIE_TITLE_KEY,
    PROPOSED_DATE_KEY,
    SCHEMA_VERSION_KEY,
    JsonFileStore,
    MemoryStore,
    SelectionStore,
)


def test_save_then_load_round_trip(selection_store):
    selection_store.save(1, "A")
    selection_store.save_date("2025-01-01")

    selection = selection_store.load()

    assert selection == Selection(movie_id=1, movie_title="A", proposed_date=date(2025, 1, 1))
    assert selection.model_dump(by_alias=True, mode="json") == {
        "movieId": 1,
        "movieTitle": "A",
        "proposedDate": "2025-01-01",
    }


def test_load_is_absent_until_both_halves_exist(selection_store):
    assert selection_store.load() is None

    selection_store.save_date(date(2025, 1, 1))
    assert selection_store.load() is None
    state = selection_store.state()
    assert state.movie_id is None
    assert state.proposed_date == date(2025, 1, 1)

    selection_store.save(7, "Dune")
    assert selection_store.load() is not None


def test_last_write_wins(selection_store):
    selection_store.save(1, "A")
    selection_store.save(2, "B")
    selection_store.save_date("2025-01-01")
    selection_store.save_date("2025-02-02")

    assert selection_store.load() == Selection(movie_id=2, movie_title="B", proposed_date=date(2025, 2, 2))


def test_invalid_inputs_are_rejected(selection_store):
    with pytest.raises(ValueError):
        selection_store.save(1, "")
    with pytest.raises(ValueError):
        selection_store.save_date("next friday")


def test_unreadable_values_read_as_absent():
    backend = MemoryStore(
        {
            SCHEMA_VERSION_KEY: "1",
            MOVIE_ID_KEY: "not-a-number",
            MOVIE_TITLE_KEY: "Orphan title",
            PROPOSED_DATE_KEY: "garbage",
        }
    )

    state = SelectionStore(backend).state()

    assert state.movie_id is None
    assert state.movie_title is None
    assert state.proposed_date is None


def test_legacy_values_without_version_are_read():
    backend = MemoryStore({MOVIE_ID_KEY: "3", MOVIE_TITLE_KEY: "Heat", PROPOSED_DATE_KEY: "2025-03-03"})

    assert SelectionStore(backend).load() == Selection(
        movie_id=3, movie_title="Heat", proposed_date=date(2025, 3, 3)
    )


def test_other_schema_version_reads_as_empty():
    backend = MemoryStore({SCHEMA_VERSION_KEY: "99", MOVIE_ID_KEY: "3", MOVIE_TITLE_KEY: "Heat"})

    assert SelectionStore(backend).state().movie_id is None


def test_json_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "selection.json"
    SelectionStore(JsonFileStore(path)).save(5, "Alien")
    SelectionStore(JsonFileStore(path)).save_date("2025-05-05")

    reopened = SelectionStore(JsonFileStore(path))

    assert reopened.load() == Selection(movie_id=5, movie_title="Alien", proposed_date=date(2025, 5, 5))
    assert json.loads(path.read_text()) == {
        MOVIE_ID_KEY: "5",
        MOVIE_TITLE_KEY: "Alien",
        PROPOSED_DATE_KEY: "2025-05-05",
        SCHEMA_VERSION_KEY: "1",
    }


def test_json_file_store_delete_and_corrupt_file(tmp_path):
    path = tmp_path / "selection.json"
    store = JsonFileStore(path)
    store.set("key", "value")
    store.delete("key")
    store.delete("missing")
    assert store.get("key") is None

    path.write_text("{not json")
    assert store.get("anything") is None


def test_saving_over_another_schema_version_drops_old_fields():
    backend = MemoryStore({SCHEMA_VERSION_KEY: "2", PROPOSED_DATE_KEY: "2019-01-01", MOVIE_TITLE_KEY: "Old"})
    store = SelectionStore(backend)
    assert store.state().proposed_date is None

    store.save(1, "A")

    assert store.load() is None
    state = store.state()
    assert (state.movie_id, state.movie_title, state.proposed_date) == (1, "A", None)
    assert backend.get(PROPOSED_DATE_KEY) is None
    assert backend.get(SCHEMA_VERSION_KEY) == "1"


def test_saving_date_over_another_schema_version_drops_old_movie():
    backend = MemoryStore({SCHEMA_VERSION_KEY: "2", MOVIE_ID_KEY: "9", MOVIE_TITLE_KEY: "Old"})
    store = SelectionStore(backend)

    store.save_date("2025-01-01")

    assert store.state().movie_id is None
    assert store.state().proposed_date == date(2025, 1, 1)


class BrokenFileStore(JsonFileStore):
    """File store whose next write fails."""

    fail = False

    def _write(self, data):
        if self.fail:
            raise OSError("disk full")
        super()._write(data)


def test_failed_movie_write_keeps_previous_pair(tmp_path):
    backend = BrokenFileStore(tmp_path / "selection.json")
    store = SelectionStore(backend)
    store.save(1, "A")

    backend.fail = True
    with pytest.raises(OSError):
        store.save(2, "B")

    state = store.state()
    assert (state.movie_id, state.movie_title) == (1, "A")


def test_update_writes_and_deletes_in_one_pass(tmp_path):
    path = tmp_path / "selection.json"
    store = JsonFileStore(path)
    store.set("gone", "x")

    store.update({"a": "1", "b": "2", "gone": None})

    assert json.loads(path.read_text()) == {"a": "1", "b": "2"}

    memory = MemoryStore({"gone": "x"})
    memory.update({"a": "1", "gone": None})
    assert (memory.get("a"), memory.get("gone")) == ("1", None)
