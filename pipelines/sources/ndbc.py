"""NOAA National Data Buoy Center (NDBC) text feed access.

Fetches the latest-sample and rolling-history text products for a station and
turns them into canonical ``Observation`` records.
"""

from __future__ import annotations

import logging

import httpx

from pipelines.cache import ObservationCache
from pipelines.common import fetch_text
from pipelines.config import DEFAULT_TIMEOUT_SECONDS, NDBC_BASE_URL
from pipelines.errors import UpstreamFetchError
from pipelines.feed_parser import parse_observations
from pipelines.model import Observation

LATEST_OPERATION = "latest"
RECENT_OPERATION = "recent"
DEFAULT_RECENT_LIMIT = 24

logger = logging.getLogger(__name__)


class NdbcFeed:
    """Client for a station's NDBC text products.

    ``cache`` is optional; when given, responses are reused for its freshness
    window, keyed by ``(station_id, operation, limit)``.
    """

    def __init__(
        self,
        *,
        base_url: str = NDBC_BASE_URL,
        client: httpx.AsyncClient | None = None,
        cache: ObservationCache[tuple[Observation, ...]] | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.cache = cache
        self.timeout = timeout

    def latest_url(self, station_id: str) -> str:
        return f"{self.base_url}/latestobs/{station_id}.txt"

    def recent_url(self, station_id: str) -> str:
        return f"{self.base_url}/realtime2/{station_id}.txt"

    async def _fetch(self, station_id: str, url: str) -> str:
        try:
            return await fetch_text(url, timeout=self.timeout, client=self.client)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise UpstreamFetchError(
                f"NDBC request for station {station_id} failed with status {status}",
                station_id=station_id,
                url=url,
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(
                f"NDBC request for station {station_id} failed: {exc}",
                station_id=station_id,
                url=url,
            ) from exc

    async def get_latest(self, station_id: str) -> Observation:
        """Return the most recent single sample for ``station_id``.

        Raises ``UpstreamFetchError`` or ``MalformedFeed``.
        """

        key = (station_id, LATEST_OPERATION, 1)
        cached = self.cache.get(key) if self.cache is not None else None
        if cached is not None:
            return cached[0]

        logger.info("Fetching latest NDBC observation for %s", station_id)
        body = await self._fetch(station_id, self.latest_url(station_id))
        observation = parse_observations(body, limit=1)[0]

        if self.cache is not None:
            self.cache.set(key, (observation,))
        return observation

    async def get_recent(
        self, station_id: str, limit: int = DEFAULT_RECENT_LIMIT
    ) -> list[Observation]:
        """Return up to ``limit`` of the newest samples, ordered oldest first.

        ``limit`` is not clamped here; it must be a positive integer.
        """

        if limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit}")

        key = (station_id, RECENT_OPERATION, limit)
        cached = self.cache.get(key) if self.cache is not None else None
        if cached is not None:
            return list(cached)

        logger.info("Fetching %s recent NDBC observations for %s", limit, station_id)
        body = await self._fetch(station_id, self.recent_url(station_id))
        # The feed lists newest first.
        observations = parse_observations(body, limit=limit)
        observations.reverse()

        if self.cache is not None:
            self.cache.set(key, tuple(observations))
        return observations


__all__ = ["NdbcFeed", "DEFAULT_RECENT_LIMIT"]
