"""DuckDB-backed spot lookup used to resolve spots into station identifiers."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Iterable

import duckdb

from pipelines.model import Spot

DB_ENV_VAR = "SURF_SPOTS_DB_PATH"
DEFAULT_DB_PATH = Path("data/spots.duckdb")

SPOTS_TABLE = "spots"


def _ensure_parent_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def get_database_path(override: str | os.PathLike[str] | None = None) -> Path:
    """Resolve the DuckDB file path from an explicit override or environment variable."""

    if override is not None:
        return Path(override)
    env_value = os.getenv(DB_ENV_VAR)
    if env_value:
        return Path(env_value)
    return DEFAULT_DB_PATH


def connect(
    path: str | os.PathLike[str] | None = None,
    *,
    read_only: bool = False,
    ensure: bool = True,
) -> duckdb.DuckDBPyConnection:
    """Create a DuckDB connection, optionally ensuring schema availability."""

    db_path = get_database_path(path)
    if not read_only:
        _ensure_parent_dir(db_path)
    conn = duckdb.connect(str(db_path), read_only=read_only)
    if ensure and not read_only:
        ensure_spots_table(conn)
    return conn


def ensure_spots_table(conn: duckdb.DuckDBPyConnection) -> None:
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {SPOTS_TABLE} (
            id TEXT PRIMARY KEY,
            buoy_id TEXT NOT NULL,
            name TEXT NOT NULL,
            lat DOUBLE,
            lng DOUBLE,
            is_public BOOLEAN NOT NULL DEFAULT TRUE,
            provider_overrides JSON
        )
        """
    )


def _serialize_spot(spot: Spot) -> tuple:
    data = spot.model_dump(by_alias=True)
    overrides = data.get("provider_overrides")
    return (
        data["id"],
        data["buoy_id"],
        data["name"],
        data["lat"],
        data["lng"],
        data["is_public"],
        json.dumps(overrides) if overrides is not None else None,
    )


def _row_to_spot(row: tuple) -> Spot:
    overrides = row[6]
    return Spot(
        id=row[0],
        buoy_id=row[1],
        name=row[2],
        lat=row[3],
        lng=row[4],
        is_public=row[5],
        provider_overrides=json.loads(overrides) if isinstance(overrides, str) else overrides,
    )


def upsert_spots(conn: duckdb.DuckDBPyConnection, spots: Iterable[Spot]) -> int:
    """Insert or replace spots; returns the number of rows written."""

    serialized = [_serialize_spot(spot) for spot in spots]
    if not serialized:
        return 0

    conn.executemany(
        f"""
        INSERT OR REPLACE INTO {SPOTS_TABLE} (
            id, buoy_id, name, lat, lng, is_public, provider_overrides
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        serialized,
    )
    return len(serialized)


def fetch_spot(conn: duckdb.DuckDBPyConnection, spot_id: str) -> Spot | None:
    row = conn.execute(
        f"SELECT id, buoy_id, name, lat, lng, is_public, provider_overrides "
        f"FROM {SPOTS_TABLE} WHERE id = ?",
        [spot_id],
    ).fetchone()
    if row is None:
        return None
    return _row_to_spot(row)


def fetch_spots(
    conn: duckdb.DuckDBPyConnection, *, limit: int | None = None
) -> list[Spot]:
    sql = (
        f"SELECT id, buoy_id, name, lat, lng, is_public, provider_overrides "
        f"FROM {SPOTS_TABLE} ORDER BY name"
    )
    if limit is not None:
        sql += f" LIMIT {int(limit)}"
    return [_row_to_spot(row) for row in conn.execute(sql).fetchall()]


def lookup_spot(spot_id: str, path: str | os.PathLike[str] | None = None) -> Spot | None:
    """Open the catalog read-only, fetch one spot and close the connection."""

    db_path = get_database_path(path)
    if not db_path.exists():
        return None
    conn = connect(db_path, read_only=True)
    try:
        return fetch_spot(conn, spot_id)
    finally:
        conn.close()


__all__ = [
    "connect",
    "ensure_spots_table",
    "upsert_spots",
    "fetch_spot",
    "fetch_spots",
    "lookup_spot",
    "SPOTS_TABLE",
    "get_database_path",
]
