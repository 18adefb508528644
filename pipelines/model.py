"""Canonical data model for marine observations and the spots that reference them."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat
from pydantic.alias_generators import to_camel


class Observation(BaseModel):
    """Normalized representation of a single buoy sample.

    Every numeric field is either ``None`` (absent or unreported upstream) or a
    finite float.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    timestamp: str = Field(
        default="",
        description="ISO-8601 UTC instant of the sample, or '' when the source time is unknown.",
    )
    wave_height: Optional[FiniteFloat] = Field(
        default=None, description="Significant wave height (m)."
    )
    dominant_period: Optional[FiniteFloat] = Field(
        default=None, description="Dominant wave period (s)."
    )
    average_period: Optional[FiniteFloat] = Field(
        default=None, description="Average wave period (s)."
    )
    mean_wave_direction: Optional[FiniteFloat] = Field(
        default=None, description="Mean wave direction (degrees true)."
    )
    wind_speed: Optional[FiniteFloat] = Field(default=None, description="Wind speed (m/s).")
    wind_gust: Optional[FiniteFloat] = Field(default=None, description="Wind gust (m/s).")
    wind_direction: Optional[FiniteFloat] = Field(
        default=None, description="Wind direction (degrees true)."
    )
    air_temperature: Optional[FiniteFloat] = Field(
        default=None, description="Air temperature (degC)."
    )
    water_temperature: Optional[FiniteFloat] = Field(
        default=None, description="Sea surface temperature (degC)."
    )


class WaveObservation(Observation):
    """An ``Observation`` tagged with the provider that produced it."""

    source: str = Field(..., description="Human-readable provider label (e.g. 'NOAA NDBC').")
    provider_id: Optional[str] = Field(
        default=None, description="Station identifier used at the answering provider."
    )

    @classmethod
    def from_observation(
        cls, observation: Observation, *, source: str, provider_id: str | None
    ) -> "WaveObservation":
        return cls.model_validate(
            {**observation.model_dump(), "source": source, "provider_id": provider_id}
        )


class ProviderOverride(BaseModel):
    """Alternate station identifier for a spot at one specific provider."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    station_id: Optional[str] = Field(default=None, alias="stationId")


class Spot(BaseModel):
    """A saved surf spot, read-only from the ingestion pipeline's point of view."""

    model_config = ConfigDict(frozen=True)

    id: str
    buoy_id: str = Field(..., description="Default NDBC station identifier.")
    name: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    is_public: bool = True
    provider_overrides: Optional[dict[str, ProviderOverride]] = Field(
        default=None,
        description="Per-provider station overrides keyed by provider id ('cdip', 'eccc', 'bom').",
    )

    def override_station_id(self, provider_id: str) -> str | None:
        if not self.provider_overrides:
            return None
        override = self.provider_overrides.get(provider_id)
        if override is None or not override.station_id:
            return None
        return override.station_id


__all__ = ["Observation", "WaveObservation", "ProviderOverride", "Spot"]
