"""Parse NDBC whitespace-delimited text tables into canonical ``Observation`` records.

NDBC serves its realtime products as plain text::

    #YY  MM DD hh mm WDIR WSPD GST  WVHT   DPD   APD MWD   PRES  ATMP  WTMP
    #yr  mo dy hr mn degT m/s  m/s     m   sec   sec degT   hPa  degC  degC
    2024 03 05 14 30 200  5.0  6.0   0.9   6.7   5.2 180 1020.0  10.5  12.1

The first line (with its ``#`` marker removed) names the columns, later comment
lines are informational and every other line is a sample. Missing values are
reported as ``MM``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from pipelines.errors import MalformedFeed
from pipelines.model import Observation

RawRow = dict[str, str]

MISSING_SENTINEL = "MM"
COMMENT_MARKER = "#"

_COMMENT_PREFIX = re.compile(r"^#\s*")
_WHITESPACE = re.compile(r"\s+")

# Canonical date part -> accepted headers, first present wins. NDBC renamed these
# columns between format revisions.
DATE_FIELD_ALIASES: Mapping[str, tuple[str, ...]] = {
    "year": ("YY", "YR"),
    "month": ("MM", "MN"),
    "day": ("DD", "DY"),
    "hour": ("hh", "HR"),
    "minute": ("mm", "MT"),
}

# Canonical Observation field -> accepted headers, first present wins. The order is
# a compatibility contract with the feed; append new header names, never reorder.
OBSERVATION_FIELD_ALIASES: Mapping[str, tuple[str, ...]] = {
    "wave_height": ("WVHT",),
    "dominant_period": ("DPD",),
    "average_period": ("AP", "APD"),
    "mean_wave_direction": ("MWD",),
    "wind_speed": ("WSPD",),
    "wind_gust": ("GST", "WGST"),
    "wind_direction": ("WDIR",),
    "air_temperature": ("ATMP",),
    "water_temperature": ("WTMP",),
}


@dataclass(frozen=True)
class ParsedTable:
    header: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]


def parse_table(raw_text: str) -> ParsedTable:
    """Split a raw feed body into its header row and data rows.

    Raises ``MalformedFeed`` when the body does not hold a header followed by at
    least one data row.
    """

    header: tuple[str, ...] | None = None
    rows: list[tuple[str, ...]] = []
    for line in raw_text.strip().splitlines():
        is_comment = line.lstrip().startswith(COMMENT_MARKER)
        cleaned = _COMMENT_PREFIX.sub("", line.strip()).strip()
        if not cleaned:
            continue
        if header is None:
            header = tuple(_WHITESPACE.split(cleaned))
            continue
        if is_comment:
            # units line and other annotations
            continue
        rows.append(tuple(_WHITESPACE.split(cleaned)))

    if header is None or not rows:
        raise MalformedFeed("Feed response is missing a header row or data rows")

    return ParsedTable(header=header, rows=tuple(rows))


def to_canonical_number(raw: Any) -> float | None:
    """Coerce a raw cell or JSON value to a finite float, or ``None``.

    ``None``, the ``MM`` sentinel, blanks and anything unparseable map to ``None``.
    Never raises and never returns NaN or infinity.
    """

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        try:
            numeric = float(raw)
        except OverflowError:
            return None
    elif isinstance(raw, str):
        stripped = raw.strip()
        if (
            not stripped
            or stripped == MISSING_SENTINEL
            or "_" in stripped
            or not stripped.isascii()
        ):
            return None
        try:
            numeric = float(stripped)
        except ValueError:
            return None
    else:
        return None

    if math.isnan(numeric) or math.isinf(numeric):
        return None
    return numeric


def build_raw_row(header: Sequence[str], row: Sequence[str]) -> RawRow:
    """Pair each header with its cell; short rows leave trailing headers absent."""

    return {key: cell for key, cell in zip(header, row)}


def first_present(record: Mapping[str, Any], aliases: Sequence[str]) -> Any:
    for alias in aliases:
        value = record.get(alias)
        if value is not None:
            return value
    return None


def _pad(value: str) -> str:
    return value.zfill(2)


def _resolve_date_part(raw_row: Mapping[str, str], part: str) -> str | None:
    value = first_present(raw_row, DATE_FIELD_ALIASES[part])
    if value is None:
        return None
    value = str(value).strip()
    if not (value.isascii() and value.isdigit()):
        return None
    return _pad(value)


def build_timestamp(raw_row: Mapping[str, str]) -> str:
    parts = {part: _resolve_date_part(raw_row, part) for part in DATE_FIELD_ALIASES}
    if any(value is None for value in parts.values()):
        return ""
    return (
        f"{parts['year']}-{parts['month']}-{parts['day']}"
        f"T{parts['hour']}:{parts['minute']}:00Z"
    )


def assemble_observation(raw_row: Mapping[str, str]) -> Observation:
    """Build the canonical ``Observation`` for one raw feed row."""

    values = {
        field: to_canonical_number(first_present(raw_row, aliases))
        for field, aliases in OBSERVATION_FIELD_ALIASES.items()
    }
    return Observation(timestamp=build_timestamp(raw_row), **values)


def parse_observations(raw_text: str, *, limit: int | None = None) -> list[Observation]:
    """Parse a feed body into observations in source order, optionally truncated."""

    table = parse_table(raw_text)
    rows = table.rows if limit is None else table.rows[:limit]
    return [assemble_observation(build_raw_row(table.header, row)) for row in rows]


__all__ = [
    "RawRow",
    "ParsedTable",
    "MISSING_SENTINEL",
    "DATE_FIELD_ALIASES",
    "OBSERVATION_FIELD_ALIASES",
    "parse_table",
    "to_canonical_number",
    "build_raw_row",
    "first_present",
    "build_timestamp",
    "assemble_observation",
    "parse_observations",
]
