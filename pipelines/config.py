"""Runtime settings for the observation feeds, resolved from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

NDBC_BASE_URL = "https://www.ndbc.noaa.gov/data"
CDIP_BASE_URL = "https://cdip.ucsd.edu"
DEFAULT_USER_AGENT = "Surfwatch observation fetcher"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CACHE_TTL_SECONDS = 300.0
DEFAULT_CACHE_MAX_ENTRIES = 512


@dataclass(frozen=True)
class FeedSettings:
    """Endpoints, HTTP behaviour and cache sizing shared by the feed clients."""

    ndbc_base_url: str = NDBC_BASE_URL
    cdip_base_url: str = CDIP_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    cache_max_entries: int = DEFAULT_CACHE_MAX_ENTRIES

    @classmethod
    def from_env(cls) -> "FeedSettings":
        return cls(
            ndbc_base_url=os.getenv("NDBC_BASE_URL", NDBC_BASE_URL).rstrip("/"),
            cdip_base_url=os.getenv("CDIP_BASE_URL", CDIP_BASE_URL).rstrip("/"),
            user_agent=os.getenv("SURF_USER_AGENT", DEFAULT_USER_AGENT),
            timeout_seconds=float(
                os.getenv("HTTP_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))
            ),
            cache_ttl_seconds=float(
                os.getenv("OBSERVATION_CACHE_TTL_SECONDS", str(DEFAULT_CACHE_TTL_SECONDS))
            ),
            cache_max_entries=int(
                os.getenv("OBSERVATION_CACHE_MAX_ENTRIES", str(DEFAULT_CACHE_MAX_ENTRIES))
            ),
        )


__all__ = [
    "FeedSettings",
    "NDBC_BASE_URL",
    "CDIP_BASE_URL",
    "DEFAULT_USER_AGENT",
    "DEFAULT_TIMEOUT_SECONDS",
]
