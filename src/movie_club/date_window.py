"""Utilities for selecting the catalog discovery window."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

LOOKBACK_DAYS = 14
LOOKAHEAD_DAYS = 28


@dataclass(frozen=True)
class DiscoveryWindow:
    """Inclusive release-date range used when discovering candidate films."""

    start: date
    end: date

    @property
    def start_iso(self) -> str:
        return self.start.isoformat()

    @property
    def end_iso(self) -> str:
        return self.end.isoformat()

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end

    def as_dict(self) -> dict[str, str]:
        return {"start": self.start_iso, "end": self.end_iso}


def compute_discovery_window(today: date | None = None) -> DiscoveryWindow:
    """
    Determine the release-date bounds for discovery mode.

    The window is always ``today - 14 days`` to ``today + 28 days``; admins
    page through it but never adjust it.
    """
    today = today or date.today()
    return DiscoveryWindow(
        start=today - timedelta(days=LOOKBACK_DAYS),
        end=today + timedelta(days=LOOKAHEAD_DAYS),
    )
