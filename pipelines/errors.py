"""Errors raised by the observation feeds."""

from __future__ import annotations


class ObservationError(Exception):
    """Base class for failures fetching or decoding marine observations."""


class UpstreamFetchError(ObservationError):
    """The remote endpoint was unreachable or answered with a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        station_id: str | None = None,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.station_id = station_id
        self.url = url
        self.status_code = status_code


class MalformedFeed(ObservationError):
    """The response body did not contain a header row followed by data rows."""


__all__ = ["ObservationError", "UpstreamFetchError", "MalformedFeed"]
