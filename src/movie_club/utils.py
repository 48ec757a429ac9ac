"""Utility helpers for dates and timezones."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)


def get_zone(timezone_name: str) -> ZoneInfo:
    """Return a ZoneInfo instance, defaulting to UTC on failure."""
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %s, falling back to UTC", timezone_name)
        return ZoneInfo("UTC")


def now_in_timezone(timezone_name: str) -> datetime:
    """Current datetime in the configured timezone."""
    return datetime.now(tz=get_zone(timezone_name))


def today_in_timezone(timezone_name: str) -> date:
    return now_in_timezone(timezone_name).date()


def parse_iso_date(value: Any) -> Optional[date]:
    """Parse a strict ``YYYY-MM-DD`` value; anything else yields ``None``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def parse_release_date(value: Any) -> Optional[date]:
    """Best-effort parsing of a catalog release date.

    The catalog sends ``YYYY-MM-DD`` but blank strings and placeholders such
    as ``TBA`` show up for unreleased titles.
    """
    strict = parse_iso_date(value)
    if strict is not None or not isinstance(value, str):
        return strict
    cleaned = value.strip()
    if not cleaned or cleaned.upper() == "TBA":
        return None
    try:
        return date_parser.parse(cleaned, fuzzy=False).date()
    except (ValueError, OverflowError) as exc:
        logger.debug("Failed to parse release date '%s': %s", cleaned, exc)
        return None
