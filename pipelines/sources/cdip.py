"""Coastal Data Information Program (CDIP) latest-observation ingestor.

CDIP's JSON access point has shipped several response shapes over time, so the
latest record and each of its fields are located through ordered alias lists.
"""

from __future__ import annotations

import logging
import math
from datetime import UTC, datetime
from typing import Any, Mapping

import httpx

from pipelines.common import fetch_json
from pipelines.config import CDIP_BASE_URL, DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT
from pipelines.feed_parser import first_present, to_canonical_number
from pipelines.model import Observation

CDIP_LATEST_PATH = "/data_access/latest.php"

CDIP_TIMESTAMP_ALIASES: tuple[str, ...] = ("timestamp", "time", "Date", "date")
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Canonical Observation field -> accepted CDIP keys, first present wins.
CDIP_FIELD_ALIASES: Mapping[str, tuple[str, ...]] = {
    "wave_height": ("waveHeight", "wvht", "Hsig", "wave_height"),
    "dominant_period": ("dominantPeriod", "dpd", "Tp"),
    "average_period": (),
    "mean_wave_direction": ("meanWaveDirection", "mwd", "Dp"),
    "wind_speed": ("windSpeed", "wspd", "WindSp"),
    "wind_gust": ("windGust", "wgst", "WindGust"),
    "wind_direction": ("windDirection", "wdir", "WindDir"),
    "air_temperature": ("airTemperature", "airt", "atp"),
    "water_temperature": ("waterTemperature", "watertemp", "wtp"),
}

logger = logging.getLogger(__name__)


def _extract_latest_record(payload: Any) -> Mapping[str, Any] | None:
    """Find the newest sample under ``data[0]``, ``latest[0]`` or ``latest``."""

    if not isinstance(payload, Mapping):
        return None

    candidates: list[Any] = []
    for key in ("data", "latest"):
        value = payload.get(key)
        if isinstance(value, list) and value:
            candidates.append(value[0])
    latest = payload.get("latest")
    if isinstance(latest, Mapping):
        candidates.append(latest)

    for candidate in candidates:
        if isinstance(candidate, Mapping) and candidate:
            return candidate
    return None


def _normalize_timestamp(raw: Any) -> str:
    """Render an ISO-8601 string or epoch seconds as a UTC instant, else ''."""

    if isinstance(raw, bool):
        return ""
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and not math.isfinite(raw):
            return ""
        try:
            parsed = datetime.fromtimestamp(raw, UTC)
        except (OverflowError, OSError, ValueError):
            return ""
    elif isinstance(raw, str):
        try:
            parsed = datetime.fromisoformat(raw.strip())
        except ValueError:
            return ""
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
    else:
        return ""
    return parsed.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


def normalize_cdip_payload(payload: Any) -> Observation | None:
    """Map a CDIP JSON response onto ``Observation``; ``None`` when it has no record."""

    record = _extract_latest_record(payload)
    if record is None:
        return None

    raw_timestamp = first_present(record, CDIP_TIMESTAMP_ALIASES)
    values = {
        field: to_canonical_number(first_present(record, aliases))
        for field, aliases in CDIP_FIELD_ALIASES.items()
    }
    return Observation(
        timestamp=_normalize_timestamp(raw_timestamp),
        **values,
    )


async def fetch_cdip_latest(
    station_id: str,
    *,
    base_url: str = CDIP_BASE_URL,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    client: httpx.AsyncClient | None = None,
) -> Observation | None:
    """Fetch the latest CDIP sample for a station.

    Network and decoding errors propagate to the caller.
    """

    logger.info("Fetching latest CDIP observation for %s", station_id)
    payload = await fetch_json(
        f"{base_url.rstrip('/')}{CDIP_LATEST_PATH}",
        headers={"User-Agent": user_agent, "Accept": "application/json"},
        params={"station": station_id, "format": "json"},
        timeout=timeout,
        client=client,
    )
    return normalize_cdip_payload(payload)


__all__ = [
    "fetch_cdip_latest",
    "normalize_cdip_payload",
    "CDIP_FIELD_ALIASES",
    "CDIP_TIMESTAMP_ALIASES",
    "CDIP_LATEST_PATH",
]
