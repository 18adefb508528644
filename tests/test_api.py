import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from api.main import (
    app,
    clamp_history_limit,
    get_aggregator,
    get_feed,
    get_spot_lookup,
    parse_history_limit,
)
from pipelines.model import Spot
from pipelines.providers import ObservationAggregator, build_default_providers
from pipelines.sources.ndbc import NdbcFeed
from storage.db import connect, upsert_spots


@pytest.fixture()
def populated_db(monkeypatch, tmp_path):
    db_path = tmp_path / "spots.duckdb"
    monkeypatch.setenv("SURF_SPOTS_DB_PATH", str(db_path))

    conn = connect()
    try:
        upsert_spots(
            conn,
            [
                Spot(id="hb", buoy_id="46237", name="Huntington Beach"),
                Spot(
                    id="torrey",
                    buoy_id="46225",
                    name="Torrey Pines",
                    provider_overrides={"cdip": {"stationId": "100"}},
                ),
                Spot(id="quiet", buoy_id="00000", name="No Data Point"),
                Spot(
                    id="pier",
                    buoy_id="46237",
                    name="Pier South",
                    provider_overrides={"cdip": {}},
                ),
            ],
        )
    finally:
        conn.close()

    yield db_path


@pytest.fixture()
def upstream(make_transport, ndbc_routes):
    routes = {
        **ndbc_routes,
        "/data_access/latest.php": (
            200,
            json.dumps({"data": [{"timestamp": "2024-03-05T14:30:00Z", "Hsig": 1.9}]}),
        ),
    }
    transport, calls = make_transport(routes)
    return transport, calls


@pytest.fixture()
def client(populated_db, upstream):
    transport, _ = upstream
    http_client = httpx.AsyncClient(transport=transport)
    feed = NdbcFeed(client=http_client)
    aggregator = ObservationAggregator(build_default_providers(feed, client=http_client))
    app.dependency_overrides[get_feed] = lambda: feed
    app.dependency_overrides[get_aggregator] = lambda: aggregator
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.mark.parametrize("limit, expected", [(1, 6), (6, 6), (24, 24), (72, 72), (500, 72)])
def test_clamp_history_limit(limit, expected):
    assert clamp_history_limit(limit) == expected


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_history_oldest_first_with_camel_case_fields(client):
    response = client.get("/ndbc/46237", params={"limit": 6})

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data) == 5
    assert data[0]["timestamp"] == "2024-03-05T13:00:00Z"
    assert data[-1]["timestamp"] == "2024-03-05T15:00:00Z"
    assert data[-1]["waveHeight"] == 1.5
    assert "wave_height" not in data[-1]


def test_history_upstream_failure_is_502(client):
    response = client.get("/ndbc/99999")

    assert response.status_code == 502
    assert response.json() == {"detail": "Unable to fetch buoy observations"}


def test_latest(client):
    response = client.get("/ndbc/46237/latest")

    assert response.status_code == 200
    assert response.json()["data"]["timestamp"] == "2024-03-05T14:30:00Z"


def test_spot_conditions_from_default_feed(client):
    response = client.get("/spots/hb/conditions")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["data"]["source"] == "NOAA NDBC"
    assert payload["data"]["providerId"] == "46237"


def test_spot_conditions_prefers_cdip_override(client):
    payload = client.get("/spots/torrey/conditions").json()

    assert payload["data"]["source"] == "CDIP"
    assert payload["data"]["providerId"] == "100"
    assert payload["data"]["waveHeight"] == 1.9


def test_spot_conditions_without_data(client):
    response = client.get("/spots/quiet/conditions")

    assert response.status_code == 200
    assert response.json() == {"status": "no_data", "data": None}


def test_unknown_spot_is_404(client):
    assert client.get("/spots/missing/conditions").status_code == 404


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 24), ("abc", 24), ("1.5", 24), ("", 24), ("3", 6), (" 12 ", 12), ("500", 72)],
)
def test_parse_history_limit_falls_back_to_default(raw, expected):
    assert parse_history_limit(raw) == expected


def test_history_non_numeric_limit_uses_default(client):
    response = client.get("/ndbc/46237", params={"limit": "abc"})

    assert response.status_code == 200
    assert len(response.json()["data"]) == 5


def test_latest_upstream_failure_is_502(client):
    response = client.get("/ndbc/99999/latest")

    assert response.status_code == 502
    assert response.json() == {"detail": "Unable to fetch buoy observations"}


def test_spot_conditions_blank_cdip_override_uses_ndbc(client):
    payload = client.get("/spots/pier/conditions").json()

    assert payload["status"] == "ok"
    assert payload["data"]["source"] == "NOAA NDBC"
    assert payload["data"]["providerId"] == "46237"


def test_spot_lookup_runs_outside_event_loop(client):
    loop_running: list[bool] = []

    def lookup(spot_id):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            loop_running.append(False)
        else:
            loop_running.append(True)
        return None

    app.dependency_overrides[get_spot_lookup] = lambda: lookup

    assert client.get("/spots/hb/conditions").status_code == 404
    assert loop_running == [False]
