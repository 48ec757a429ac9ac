"""Key-value persistence and the admin selection store."""

from __future__ import annotations

import json
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Mapping, Optional, Protocol, Union

import structlog

from .models import Selection, SelectionState

LOGGER = structlog.get_logger(__name__)

SCHEMA_VERSION = "1"
SCHEMA_VERSION_KEY = "schemaVersion"
MOVIE_ID_KEY = "featuredMovieId"
MOVIE_TITLE_KEY = "featuredMovieTitle"
PROPOSED_DATE_KEY = "proposedStartDate"


class KeyValueStore(Protocol):
    """String-valued key-value storage."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def update(self, values: Mapping[str, Optional[str]]) -> None:
        """Apply several writes at once; a ``None`` value deletes the key."""
        ...


class MemoryStore:
    """In-process store, mainly for tests and one-off CLI runs."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def update(self, values: Mapping[str, Optional[str]]) -> None:
        data = dict(self._data)
        _apply(data, values)
        self._data = data


class JsonFileStore:
    """Store backed by a single JSON object on disk.

    Every write rewrites the whole file through a temporary file and
    ``os.replace``. There is no locking; concurrent writers race and the last
    one wins.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)

    def update(self, values: Mapping[str, Optional[str]]) -> None:
        data = self._read()
        _apply(data, values)
        self._write(data)

    def _read(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning("store.file.corrupt", path=str(self._path))
            return {}
        if not isinstance(data, dict):
            LOGGER.warning("store.file.unexpected_shape", path=str(self._path))
            return {}
        return {str(key): str(value) for key, value in data.items() if value is not None}

    def _write(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=".selection-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class SelectionStore:
    """Featured movie and proposed date, stored as independent fields.

    The movie id and title are always written together. The date is written
    on its own, so readers must cope with either half being absent. Values
    are overwritten on every save; no history is kept and there is no clear
    operation.
    """

    def __init__(self, backend: KeyValueStore):
        self._backend = backend

    def save(self, movie_id: int, title: str) -> None:
        if not title:
            raise ValueError("title must not be empty")
        writes = self._version_writes()
        writes[MOVIE_ID_KEY] = str(int(movie_id))
        writes[MOVIE_TITLE_KEY] = title
        self._backend.update(writes)
        LOGGER.info("selection.movie.saved", movie_id=movie_id, title=title)

    def save_date(self, proposed: Union[date, str]) -> None:
        value = proposed if isinstance(proposed, date) else date.fromisoformat(proposed)
        writes = self._version_writes()
        writes[PROPOSED_DATE_KEY] = value.isoformat()
        self._backend.update(writes)
        LOGGER.info("selection.date.saved", proposed_date=value.isoformat())

    def state(self) -> SelectionState:
        """Whatever is currently stored; fields that are unset or unreadable are ``None``."""
        version = self._backend.get(SCHEMA_VERSION_KEY)
        if version is not None and version != SCHEMA_VERSION:
            LOGGER.warning("selection.schema_mismatch", stored=version, expected=SCHEMA_VERSION)
            return SelectionState()

        title = self._backend.get(MOVIE_TITLE_KEY) or None
        movie_id = _parse_int(self._backend.get(MOVIE_ID_KEY))
        if movie_id is None or title is None:
            movie_id, title = None, None
        return SelectionState(
            movie_id=movie_id,
            movie_title=title,
            proposed_date=self._backend.get(PROPOSED_DATE_KEY),
        )

    def load(self) -> Optional[Selection]:
        return self.state().complete()

    def _version_writes(self) -> dict[str, Optional[str]]:
        """Version stamp, dropping every selection field left by another schema version."""
        stored = self._backend.get(SCHEMA_VERSION_KEY)
        writes: dict[str, Optional[str]] = {SCHEMA_VERSION_KEY: SCHEMA_VERSION}
        if stored is not None and stored != SCHEMA_VERSION:
            LOGGER.info("selection.schema_reset", stored=stored, expected=SCHEMA_VERSION)
            writes.update({MOVIE_ID_KEY: None, MOVIE_TITLE_KEY: None, PROPOSED_DATE_KEY: None})
        return writes


def _apply(data: dict[str, str], values: Mapping[str, Optional[str]]) -> None:
    for key, value in values.items():
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
