"""Provider adapters and the aggregator that reconciles them per spot.

Providers are consulted one at a time in a fixed priority order; the first one
that returns an observation answers for the spot.
"""

from __future__ import annotations

import abc
import logging
from typing import ClassVar, Sequence

import httpx

from pipelines.config import FeedSettings
from pipelines.errors import ObservationError
from pipelines.model import Observation, Spot, WaveObservation
from pipelines.sources.cdip import fetch_cdip_latest
from pipelines.sources.ndbc import NdbcFeed

logger = logging.getLogger(__name__)


class WaveProvider(abc.ABC):
    """A source of current conditions for a spot."""

    id: ClassVar[str]
    label: ClassVar[str]

    @abc.abstractmethod
    def station_id_for(self, spot: Spot) -> str | None:
        """Station identifier this provider would query for ``spot``."""

    def supports(self, spot: Spot) -> bool:
        return bool(self.station_id_for(spot))

    @abc.abstractmethod
    async def get_current(self, spot: Spot) -> Observation | None:
        """Latest observation for ``spot``; ``None`` when nothing usable came back."""


class CdipProvider(WaveProvider):
    """CDIP buoys, used when a spot carries a ``cdip`` station override."""

    id = "cdip"
    label = "CDIP"

    def __init__(
        self,
        *,
        settings: FeedSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or FeedSettings()
        self.client = client

    def station_id_for(self, spot: Spot) -> str | None:
        return spot.override_station_id(self.id)

    async def get_current(self, spot: Spot) -> Observation | None:
        station_id = self.station_id_for(spot)
        if not station_id:
            return None
        try:
            return await fetch_cdip_latest(
                station_id,
                base_url=self.settings.cdip_base_url,
                user_agent=self.settings.user_agent,
                timeout=self.settings.timeout_seconds,
                client=self.client,
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("CDIP provider failed for station %s: %s", station_id, exc)
            return None


class NdbcProvider(WaveProvider):
    """Default NOAA NDBC text feed keyed by the spot's own buoy id."""

    id = "ndbc"
    label = "NOAA NDBC"

    def __init__(self, feed: NdbcFeed) -> None:
        self.feed = feed

    def station_id_for(self, spot: Spot) -> str | None:
        return spot.buoy_id or None

    async def get_current(self, spot: Spot) -> Observation | None:
        station_id = self.station_id_for(spot)
        if not station_id:
            return None
        try:
            return await self.feed.get_latest(station_id)
        except ObservationError as exc:
            logger.warning(
                "NDBC latest sample unavailable for %s (%s); trying recent history.",
                station_id,
                exc,
            )

        try:
            recent = await self.feed.get_recent(station_id, 1)
        except ObservationError as exc:
            logger.warning("NDBC provider failed for station %s: %s", station_id, exc)
            return None
        return recent[-1] if recent else None


class ObservationAggregator:
    """Walks ``providers`` in order and returns the first observation found."""

    def __init__(self, providers: Sequence[WaveProvider]) -> None:
        self.providers: tuple[WaveProvider, ...] = tuple(providers)

    async def get_current_observation(self, spot: Spot) -> WaveObservation | None:
        """Current conditions for ``spot``, or ``None`` when no provider has data."""

        for provider in self.providers:
            if not provider.supports(spot):
                continue
            try:
                observation = await provider.get_current(spot)
            except Exception:
                logger.exception(
                    "Provider %s raised for spot %s; continuing with next provider.",
                    provider.id,
                    spot.id,
                )
                continue
            if observation is None:
                continue
            logger.debug("Spot %s answered by provider %s", spot.id, provider.id)
            return WaveObservation.from_observation(
                observation,
                source=provider.label,
                provider_id=provider.station_id_for(spot),
            )

        logger.info("No provider returned an observation for spot %s", spot.id)
        return None


def build_default_providers(
    feed: NdbcFeed,
    *,
    settings: FeedSettings | None = None,
    client: httpx.AsyncClient | None = None,
) -> tuple[WaveProvider, ...]:
    """Regional providers ahead of the general NDBC feed."""

    return (
        CdipProvider(settings=settings, client=client),
        NdbcProvider(feed),
    )


async def get_current_observation(
    spot: Spot,
    *,
    providers: Sequence[WaveProvider] | None = None,
) -> WaveObservation | None:
    """One-shot convenience wrapper around ``ObservationAggregator``."""

    if providers is None:
        settings = FeedSettings.from_env()
        providers = build_default_providers(
            NdbcFeed(base_url=settings.ndbc_base_url, timeout=settings.timeout_seconds),
            settings=settings,
        )
    return await ObservationAggregator(providers).get_current_observation(spot)


__all__ = [
    "WaveProvider",
    "CdipProvider",
    "NdbcProvider",
    "ObservationAggregator",
    "build_default_providers",
    "get_current_observation",
]
