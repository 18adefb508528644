"""FastAPI service exposing buoy observations and per-spot current conditions."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Callable, Sequence

import httpx
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from pipelines.cache import ObservationCache
from pipelines.config import FeedSettings
from pipelines.errors import ObservationError
from pipelines.model import Observation, Spot
from pipelines.providers import ObservationAggregator, build_default_providers
from pipelines.sources.ndbc import DEFAULT_RECENT_LIMIT, NdbcFeed
from storage.db import lookup_spot

MIN_HISTORY_LIMIT = 6
MAX_HISTORY_LIMIT = 72
load_dotenv()

logger = logging.getLogger(__name__)

SpotLookup = Callable[[str], Spot | None]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = FeedSettings.from_env()
    async with httpx.AsyncClient(
        timeout=settings.timeout_seconds,
        headers={"User-Agent": settings.user_agent},
    ) as client:
        feed = NdbcFeed(
            base_url=settings.ndbc_base_url,
            client=client,
            cache=ObservationCache(settings.cache_ttl_seconds, settings.cache_max_entries),
            timeout=settings.timeout_seconds,
        )
        app.state.feed = feed
        app.state.aggregator = ObservationAggregator(
            build_default_providers(feed, settings=settings, client=client)
        )
        yield


app = FastAPI(title="Surf Conditions API", version="0.1.0", lifespan=lifespan)


def _configure_cors() -> None:
    raw_origins = os.getenv("API_CORS_ORIGINS", "*")
    origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )


_configure_cors()


def get_feed(request: Request) -> NdbcFeed:
    return request.app.state.feed


def get_aggregator(request: Request) -> ObservationAggregator:
    return request.app.state.aggregator


def get_spot_lookup() -> SpotLookup:
    return lookup_spot


def clamp_history_limit(limit: int) -> int:
    return min(max(limit, MIN_HISTORY_LIMIT), MAX_HISTORY_LIMIT)


def parse_history_limit(raw: str | None) -> int:
    """Clamp a raw `limit` query value; missing or non-integer values use the default."""

    try:
        limit = int(raw) if raw is not None else DEFAULT_RECENT_LIMIT
    except ValueError:
        limit = DEFAULT_RECENT_LIMIT
    return clamp_history_limit(limit)


def _serialize_observations(observations: Sequence[Observation]) -> list[dict[str, Any]]:
    return [observation.model_dump(mode="json", by_alias=True) for observation in observations]


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/ndbc/{buoy}")
async def get_buoy_history(
    buoy: str,
    limit: str | None = Query(
        None,
        description=f"Samples to return, clamped to [{MIN_HISTORY_LIMIT}, {MAX_HISTORY_LIMIT}]",
    ),
    feed: NdbcFeed = Depends(get_feed),
):
    try:
        observations = await feed.get_recent(buoy, parse_history_limit(limit))
    except ObservationError as exc:
        logger.error("Failed to fetch NDBC history for %s: %s", buoy, exc)
        raise HTTPException(status_code=502, detail="Unable to fetch buoy observations") from exc
    return {"data": _serialize_observations(observations)}


@app.get("/ndbc/{buoy}/latest")
async def get_buoy_latest(buoy: str, feed: NdbcFeed = Depends(get_feed)):
    try:
        observation = await feed.get_latest(buoy)
    except ObservationError as exc:
        logger.error("Failed to fetch latest NDBC observation for %s: %s", buoy, exc)
        raise HTTPException(status_code=502, detail="Unable to fetch buoy observations") from exc
    return {"data": observation.model_dump(mode="json", by_alias=True)}


@app.get("/spots/{spot_id}/conditions")
async def get_spot_conditions(
    spot_id: str,
    aggregator: ObservationAggregator = Depends(get_aggregator),
    spot_lookup: SpotLookup = Depends(get_spot_lookup),
):
    spot = await run_in_threadpool(spot_lookup, spot_id)
    if spot is None:
        raise HTTPException(status_code=404, detail=f"Unknown spot '{spot_id}'")

    observation = await aggregator.get_current_observation(spot)
    if observation is None:
        return {"status": "no_data", "data": None}
    return {"status": "ok", "data": observation.model_dump(mode="json", by_alias=True)}
