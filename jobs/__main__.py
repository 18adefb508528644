"""Command-line entrypoint for ad-hoc observation lookups."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
from typing import Any

from dotenv import load_dotenv

from pipelines.config import FeedSettings
from pipelines.errors import ObservationError
from pipelines.providers import ObservationAggregator, build_default_providers
from pipelines.sources.ndbc import DEFAULT_RECENT_LIMIT, NdbcFeed
from storage.db import connect, fetch_spots, lookup_spot

load_dotenv()

logger = logging.getLogger(__name__)


def _build_feed(settings: FeedSettings) -> NdbcFeed:
    return NdbcFeed(base_url=settings.ndbc_base_url, timeout=settings.timeout_seconds)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


async def _latest(station_id: str) -> int:
    observation = await _build_feed(FeedSettings.from_env()).get_latest(station_id)
    _print_json(observation.model_dump(mode="json", by_alias=True))
    return 0


async def _recent(station_id: str, limit: int) -> int:
    observations = await _build_feed(FeedSettings.from_env()).get_recent(station_id, limit)
    _print_json([obs.model_dump(mode="json", by_alias=True) for obs in observations])
    return 0


async def _conditions(spot_id: str) -> int:
    spot = lookup_spot(spot_id)
    if spot is None:
        raise SystemExit(f"Unknown spot: {spot_id}")

    settings = FeedSettings.from_env()
    providers = build_default_providers(_build_feed(settings), settings=settings)
    observation = await ObservationAggregator(providers).get_current_observation(spot)
    if observation is None:
        logger.info("No current observation available for spot %s.", spot_id)
        _print_json({"status": "no_data", "data": None})
        return 0
    _print_json({"status": "ok", "data": observation.model_dump(mode="json", by_alias=True)})
    return 0


def _list_providers() -> int:
    settings = FeedSettings()
    for priority, provider in enumerate(
        build_default_providers(_build_feed(settings), settings=settings), start=1
    ):
        print(f"{priority}. {provider.id}: {provider.label}")
    return 0


def _list_spots() -> int:
    conn = connect()
    try:
        for spot in fetch_spots(conn):
            print(f"{spot.id}: name='{spot.name}' buoy={spot.buoy_id}")
    finally:
        conn.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Surf conditions observation tools")
    parser.add_argument(
        "--log-level",
        help="Override LOG_LEVEL for this invocation (e.g. DEBUG, INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    latest_parser = subparsers.add_parser("latest", help="Show the latest NDBC sample")
    latest_parser.add_argument("station", help="NDBC station id (e.g. 46237)")

    recent_parser = subparsers.add_parser("recent", help="Show recent NDBC samples, oldest first")
    recent_parser.add_argument("station", help="NDBC station id (e.g. 46237)")
    recent_parser.add_argument("--limit", type=int, default=DEFAULT_RECENT_LIMIT)

    conditions_parser = subparsers.add_parser(
        "conditions", help="Resolve current conditions for a stored spot"
    )
    conditions_parser.add_argument("spot_id")

    subparsers.add_parser("list-providers", help="Show providers in priority order")
    subparsers.add_parser("list-spots", help="Show spots stored in the local catalog")

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level or os.getenv("LOG_LEVEL", "INFO"))

    if args.command == "list-providers":
        return _list_providers()
    if args.command == "list-spots":
        return _list_spots()

    try:
        if args.command == "latest":
            return asyncio.run(_latest(args.station))
        if args.command == "recent":
            if args.limit < 1:
                parser.error("--limit must be a positive integer")
            return asyncio.run(_recent(args.station, args.limit))
        if args.command == "conditions":
            return asyncio.run(_conditions(args.spot_id))
    except ObservationError as exc:
        logger.error("%s", exc)
        return 1

    parser.error("Unknown command")
    return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
