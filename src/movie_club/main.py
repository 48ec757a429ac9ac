"""Command-line entry point for Movie Club."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date as date_type
from typing import Any, Optional

import structlog

from .aggregator import build_options
from .catalog import CatalogClient
from .config import Settings
from .date_window import compute_discovery_window
from .flow import FlowResult, SelectionFlow
from .forwarding import SelectionForwarder
from .showtimes import ShowtimeClient
from .store import JsonFileStore, SelectionStore
from .utils import today_in_timezone


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog + stdlib logging."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
    )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


LOGGER = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """CLI argument parsing."""
    parser = argparse.ArgumentParser(description="Pick a featured film and coordinate showtimes.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    discover = commands.add_parser("discover", help="List popular releases in the discovery window.")
    discover.add_argument("--page", type=int, default=1)

    search = commands.add_parser("search", help="Search the catalog by title.")
    search.add_argument("query")
    search.add_argument("--year", type=int)
    search.add_argument("--page", type=int, default=1)

    showtimes = commands.add_parser("showtimes", help="List local showtimes for a title.")
    showtimes.add_argument("query")

    select = commands.add_parser("select", help="Feature a movie.")
    select.add_argument("movie_id", type=int)
    select.add_argument("title")

    set_date = commands.add_parser("set-date", help="Propose a date (YYYY-MM-DD).")
    set_date.add_argument("show_date")

    commands.add_parser("show", help="Print the stored selection.")
    return parser


def _dump(value: Any) -> None:
    print(json.dumps(value, indent=2, default=str))


def _flow_summary(result: FlowResult) -> dict[str, Any]:
    return {
        "selection": result.state.model_dump(by_alias=True, mode="json"),
        "forwarded": result.forwarded,
        "upstreamStatus": result.forward.status_code if result.forward else None,
        "error": result.error,
    }


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """Execute one sub-command; returns the process exit code."""
    store = SelectionStore(JsonFileStore(settings.store_path))

    if args.command == "discover":
        window = compute_discovery_window(today_in_timezone(settings.timezone))
        movies = await CatalogClient(settings).discover(window, page=max(args.page, 1))
        _dump([movie.model_dump(by_alias=True, mode="json") for movie in movies])
        return 0

    if args.command == "search":
        movies = await CatalogClient(settings).search(args.query, year=args.year, page=max(args.page, 1))
        _dump([movie.model_dump(by_alias=True, mode="json") for movie in movies])
        return 0

    if args.command == "showtimes":
        slots = await ShowtimeClient(settings).slots_for(args.query)
        _dump([option.model_dump(by_alias=True, mode="json") for option in build_options(slots)])
        return 0

    if args.command == "show":
        _dump(store.state().model_dump(by_alias=True, mode="json"))
        return 0

    flow = SelectionFlow(store, SelectionForwarder(settings))
    if args.command == "select":
        result = await flow.select_movie(args.movie_id, args.title)
    else:
        result = await flow.set_date(args.proposed)
    _dump(_flow_summary(result))
    return 1 if result.error else 0


def cli(argv: Optional[list[str]] = None) -> int:
    """Console script entrypoint."""
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    if args.command == "set-date":
        try:
            args.proposed = date_type.fromisoformat(args.show_date)
        except ValueError:
            print(f"Invalid date: {args.show_date}", file=sys.stderr)
            return 2

    try:
        settings = Settings()
    except Exception as exc:  # pragma: no cover - startup validation
        LOGGER.exception("settings.error", error=str(exc))
        return 2

    try:
        return asyncio.run(run(args, settings))
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("cli.failed", command=args.command, error=str(exc))
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(cli())
