import json
from datetime import timezone
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from datastore.directory import DirectoryStore
from datastore.oplog import OperationalLog
from datastore.timeseries import TickSeriesStore
from services.association import AssociationResolver
from services.ingestion import IngestionPipeline
from services.queries import QueryService
from storage.base import StoreError
from storage.memory_store import InMemoryKeyValueStore

BATCH = (
    "[2024-1-1 10:0:0;42;60;3300;2944;0;255;7]\n"
    "[2024-1-1 10:0:10;42;60;3250;32896;0;240]\n"
    "[2024-1-1 10:0:20;42;60;3200;128;0;230]\n"
    "[2024-1-1 10:0:5;43;60;3000;256;0;200]\n"
)


class StubUploadServer:
    def __init__(self) -> None:
        self.started = False
        self.stopped = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def upload_server(monkeypatch) -> StubUploadServer:
    server = StubUploadServer()

    def build_stub() -> StubUploadServer:
        return server

    build_stub.cache_clear = lambda: None  # type: ignore[attr-defined]
    monkeypatch.setattr("app.main.build_default_upload_server", build_stub)
    return server


@pytest.fixture
def api_client(store, upload_server, monkeypatch) -> Iterator[TestClient]:
    series = TickSeriesStore(store)
    directory = DirectoryStore(store, series, view_url_template="http://view.test/#/{controller_id}/{token}")
    queries = QueryService(series=series, directory=directory, oplog=OperationalLog(store))
    monkeypatch.setattr("app.api.build_default_query_service", lambda: queries)

    app = create_app()
    with TestClient(app) as client:
        yield client


def _ingest(store: InMemoryKeyValueStore, payload: str = BATCH) -> None:
    series = TickSeriesStore(store)
    resolver = AssociationResolver(DirectoryStore(store, series), default_controller_id="1")
    IngestionPipeline(series, resolver, tz=timezone.utc).process(payload)


def test_lifespan_starts_and_stops_upload_server(store, upload_server) -> None:
    app = create_app()

    with TestClient(app):
        assert upload_server.started is True
        assert upload_server.stopped is False

    assert upload_server.stopped is True


def test_list_and_label_controllers(api_client: TestClient, store) -> None:
    _ingest(store)

    response = api_client.get("/api/controllers")
    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == ["1", "7"]

    response = api_client.put("/api/controllers/7", json={"label": "Greenhouse"})
    assert response.status_code == 200
    assert response.json()["name"] == "Greenhouse"

    response = api_client.get("/api/controllers/7")
    body = response.json()
    assert body["name"] == "Greenhouse"
    assert body["url"] == f"http://view.test/#/7/{body['token']}"


def test_post_accepts_name_alias(api_client: TestClient) -> None:
    response = api_client.post("/api/controllers/3", json={"name": "Barn"})

    assert response.status_code == 200
    assert response.json()["name"] == "Barn"


def test_empty_label_is_rejected(api_client: TestClient) -> None:
    response = api_client.put("/api/controllers/3", json={"label": "  "})

    assert response.status_code == 400


def test_unknown_controller_returns_not_found(api_client: TestClient) -> None:
    response = api_client.get("/api/controllers/404")

    assert response.status_code == 404


def test_controller_sensors_include_last_tick(api_client: TestClient, store) -> None:
    _ingest(store)
    api_client.put("/api/sensors/42/coordinates", json={"lat": "59.4", "lng": "24.7"})

    response = api_client.get("/api/controllers/7/sensors")

    assert response.status_code == 200
    sensors = response.json()
    assert [sensor["id"] for sensor in sensors] == [42]
    assert sensors[0]["last_tick"].startswith("2024-01-01T10:00:20")
    assert sensors[0]["lat"] == "59.4"


def test_ticks_paginate_newest_first_with_decoded_values(api_client: TestClient, store) -> None:
    _ingest(store)

    response = api_client.get("/api/sensors/42/ticks", params={"start_index": 0, "stop_index": 1})

    assert response.status_code == 200
    page = response.json()
    assert page["total"] == 3
    assert [tick["battery_voltage"] for tick in page["ticks"]] == ["3200", "3250"]
    assert page["ticks"][0]["temperature"] == 0.5
    assert page["ticks"][0]["battery_voltage_visual"] == 3.2
    assert page["ticks"][1]["temperature"] == -0.5


def test_ticks_without_parameters_return_everything(api_client: TestClient, store) -> None:
    _ingest(store)

    page = api_client.get("/api/sensors/42/ticks").json()

    assert len(page["ticks"]) == page["total"] == 3


def test_ticks_by_time_range_are_ascending(api_client: TestClient, store) -> None:
    _ingest(store)
    start = 1704103200  # 2024-01-01T10:00:00Z

    response = api_client.get("/api/sensors/42/ticks", params={"start": start, "end": start + 10})

    assert response.status_code == 200
    assert [tick["battery_voltage"] for tick in response.json()["ticks"]] == ["3300", "3250"]


@pytest.mark.parametrize(
    "params",
    [
        {"start_index": "abc"},
        {"start_index": -1},
        {"start_index": 5, "stop_index": 1},
        {"start": 10},
        {"start": 20, "end": 10},
        {"start": 0, "end": 10, "start_index": 0},
    ],
)
def test_malformed_tick_ranges_are_client_errors(api_client: TestClient, params) -> None:
    response = api_client.get("/api/sensors/42/ticks", params=params)

    assert 400 <= response.status_code < 500


def test_store_failure_maps_to_server_error(api_client: TestClient, monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise StoreError("connection refused")

    monkeypatch.setattr(InMemoryKeyValueStore, "smembers", broken)

    response = api_client.get("/api/controllers")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error."}


def test_undecodable_stored_tick_maps_to_server_error(api_client: TestClient, store) -> None:
    store.zadd(
        "osp:sensor:5:ticks",
        json.dumps(
            {
                "datetime": "2024-01-01T10:00:00+00:00",
                "sensor_id": 5,
                "next_data_session": "60",
                "battery_voltage": "3300",
                "sensor1": "x",
                "sensor2": "0",
                "radio_quality": "255",
            }
        ),
        1704103200,
    )

    response = api_client.get("/api/sensors/5/ticks")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error."}


def test_coordinates_round_trip(api_client: TestClient) -> None:
    assert api_client.get("/api/sensors/42/coordinates").status_code == 404

    response = api_client.put("/api/sensors/42/coordinates", json={"lat": "1.5", "lng": "2.5"})
    assert response.status_code == 200

    assert api_client.get("/api/sensors/42/coordinates").json() == {"lat": "1.5", "lng": "2.5"}


def test_controller_readings(api_client: TestClient, store) -> None:
    _ingest(store)

    response = api_client.get("/api/controllers/7/readings")

    assert response.status_code == 200
    readings = response.json()
    assert len(readings) == 1
    assert readings[0]["tick_count"] == 3
    assert readings[0]["sensor_ids"] == [42]


def test_logs_are_plain_text(api_client: TestClient, store) -> None:
    OperationalLog(store).record("[raw-payload]")

    for path in ("/api/logs", "/api/log"):
        response = api_client.get(path)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text.endswith(" [raw-payload]")


def test_health(api_client: TestClient) -> None:
    assert api_client.get("/health").json() == {"status": "ok"}
