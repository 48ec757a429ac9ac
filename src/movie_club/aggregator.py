"""Flatten nested showtime search results into uniform slots.

The provider payload is a list of day entries, each holding theaters, each
holding showings (one per presentation format), each holding a list of time
strings::

    [{"day": "Today", "date": "Oct 20",
      "theaters": [{"name": "AMC River East 21",
                    "showing": [{"type": "Standard", "time": ["7:00pm"]}]}]}]

Every collection is optional. The raw JSON is first parsed into a small typed
tree and then walked depth first; a level that is absent, null or not a list
contributes no slots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Union

import structlog

from .models import ShowtimeOption, ShowtimeSlot

LOGGER = structlog.get_logger(__name__)

UNKNOWN_THEATER = "Unknown theater"


@dataclass(frozen=True)
class ShowingNode:
    """One presentation format at a theater and its time leaves."""

    format: Optional[str]
    times: tuple[str, ...] = ()


@dataclass(frozen=True)
class TheaterNode:
    name: str
    showings: tuple[ShowingNode, ...] = ()


@dataclass(frozen=True)
class EntryNode:
    """A day of showtimes as returned by the provider."""

    day: Optional[str]
    date: Optional[str]
    theaters: tuple[TheaterNode, ...] = ()


Node = Union[EntryNode, TheaterNode, ShowingNode]


@dataclass
class _Context:
    """Values inherited from ancestors while walking down the tree."""

    date: Optional[str] = None
    theater: Optional[str] = None
    slots: list[ShowtimeSlot] = field(default_factory=list)


def parse_entries(raw_entries: Any) -> tuple[EntryNode, ...]:
    """Build the typed tree from decoded JSON."""
    return tuple(
        EntryNode(
            day=_optional_str(entry.get("day")),
            date=_optional_str(entry.get("date")),
            theaters=tuple(_parse_theater(item) for item in _children(entry, "theaters")),
        )
        for entry in _dicts(raw_entries, level="entry")
    )


def _parse_theater(raw: dict[str, Any]) -> TheaterNode:
    return TheaterNode(
        name=_optional_str(raw.get("name")) or UNKNOWN_THEATER,
        showings=tuple(_parse_showing(item) for item in _children(raw, "showing")),
    )


def _parse_showing(raw: dict[str, Any]) -> ShowingNode:
    times = raw.get("time")
    if not isinstance(times, (list, tuple)):
        times = []
    return ShowingNode(
        format=_optional_str(raw.get("type")),
        times=tuple(value for value in times if isinstance(value, str)),
    )


def _children(raw: dict[str, Any], key: str) -> list[dict[str, Any]]:
    return _dicts(raw.get(key), level=key)


def _dicts(value: Any, *, level: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        LOGGER.debug("showtimes.level.not_a_list", level=level, type=type(value).__name__)
        return []
    return [item for item in value if isinstance(item, dict)]


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _walk(node: Node, context: _Context) -> None:
    """Depth-first visitor emitting one slot per time leaf, in source order."""
    if isinstance(node, EntryNode):
        for theater in node.theaters:
            _walk(theater, _Context(date=node.date, slots=context.slots))
    elif isinstance(node, TheaterNode):
        for showing in node.showings:
            _walk(showing, _Context(date=context.date, theater=node.name, slots=context.slots))
    elif isinstance(node, ShowingNode):
        for time in node.times:
            context.slots.append(
                ShowtimeSlot(
                    theater_name=context.theater or UNKNOWN_THEATER,
                    time=time,
                    format=node.format,
                    date=context.date,
                )
            )
    else:  # pragma: no cover - the tree only holds the node types above
        raise TypeError(f"Unexpected showtime node: {node!r}")


def flatten(raw_entries: Any) -> list[ShowtimeSlot]:
    """Flatten a provider payload (decoded JSON or parsed tree) into slots.

    Output order equals input nesting order and duplicates are kept.
    """
    if isinstance(raw_entries, tuple) and all(isinstance(item, EntryNode) for item in raw_entries):
        entries = raw_entries
    else:
        entries = parse_entries(raw_entries)

    context = _Context()
    for entry in entries:
        _walk(entry, context)
    return context.slots


def option_id(slot: ShowtimeSlot, index: int) -> str:
    """Positional identifier; changes whenever the slot order changes."""
    return f"{slot.theater_name}-{slot.time}-{slot.format or ''}-{index}"


def option_label(slot: ShowtimeSlot) -> str:
    label = f"{slot.theater_name} — {slot.time}"
    if slot.format:
        label = f"{label} ({slot.format})"
    return label


def build_options(slots: Iterable[ShowtimeSlot]) -> list[ShowtimeOption]:
    return [
        ShowtimeOption(id=option_id(slot, index), label=option_label(slot), slot=slot)
        for index, slot in enumerate(slots)
    ]
