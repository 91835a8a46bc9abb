from __future__ import annotations

import json
from typing import Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api import get_controller, get_history, get_weather_client
from app.main import create_app
from datastore.command_history import CommandHistoryStore
from services.command_client import SocketTransport
from services.endpoints import Endpoint
from services.robot_controller import RobotController
from services.weather_client import MarsWeatherClient

FEED = {
    "sol_keys": ["10", "9"],
    "9": {"AT": {"av": -61.0}, "Season": "winter"},
    "10": {
        "AT": {"av": -60.5, "mn": -90.0, "mx": -20.0},
        "PRE": {"av": 720.0},
        "WD": {"most_common": {"compass_point": "NE"}, "0": {"ct": 12.0}, "2": {"ct": 48.0}},
    },
}


def _weather_client(status_code: int = 200, body: str | None = None) -> MarsWeatherClient:
    text = body if body is not None else json.dumps(FEED)
    return MarsWeatherClient(
        base_url="https://weather.example.test/",
        api_key="test",
        transport=httpx.MockTransport(lambda request: httpx.Response(status_code, text=text)),
    )


@pytest.fixture
def history(tmp_path) -> CommandHistoryStore:
    return CommandHistoryStore(persistence_path=tmp_path / "history.json")


@pytest.fixture
def api_client(history: CommandHistoryStore, robot_endpoint: Endpoint) -> Iterator[TestClient]:
    controller = RobotController(
        history=history,
        endpoints=[robot_endpoint],
        transport=SocketTransport(connect_timeout=2.0),
        simulation_delay=0,
    )
    weather_client = _weather_client()

    app = create_app()
    app.dependency_overrides[get_weather_client] = lambda: weather_client
    app.dependency_overrides[get_controller] = lambda: controller
    app.dependency_overrides[get_history] = lambda: history
    with TestClient(app) as client:
        yield client
    weather_client.close()


def test_health(api_client: TestClient) -> None:
    assert api_client.get("/health").json() == {"status": "ok"}
    assert api_client.get("/").json()["status"] == "ok"


def test_list_weather_newest_first(api_client: TestClient) -> None:
    response = api_client.get("/weather")

    assert response.status_code == 200
    payload = response.json()
    assert [item["sol"] for item in payload] == ["10", "9"]
    assert payload[0]["min_temperature"] == -90.0
    assert payload[1]["min_temperature"] is None
    assert payload[0]["wind_direction_histogram"] == {"0": 12.0, "2": 48.0}


def test_weather_detail_includes_wind_rose(api_client: TestClient) -> None:
    response = api_client.get("/weather/10")

    assert response.status_code == 200
    body = response.json()
    assert body["record"]["dominant_wind_direction"] == "NE"
    assert [(petal["compass_point"], petal["ratio"]) for petal in body["wind_rose"]] == [
        ("N", 0.25),
        ("NE", 1.0),
    ]


def test_weather_detail_missing_sol(api_client: TestClient) -> None:
    response = api_client.get("/weather/999")

    assert response.status_code == 404
    assert "999" in response.json()["detail"]


def test_latest_weather_summary(api_client: TestClient) -> None:
    response = api_client.get("/weather/latest")

    assert response.status_code == 200
    body = response.json()
    assert body["sol"] == "10"
    assert body["season"] == "Unknown"


@pytest.mark.parametrize(
    ("status_code", "body"),
    [(500, "boom"), (200, "not json"), (200, "[1, 2]")],
)
def test_weather_failures_map_to_bad_gateway(
    api_client: TestClient, status_code: int, body: str
) -> None:
    failing = _weather_client(status_code=status_code, body=body)
    api_client.app.dependency_overrides[get_weather_client] = lambda: failing
    try:
        response = api_client.get("/weather")
    finally:
        failing.close()

    assert response.status_code == 502
    assert response.json()["detail"]


def test_send_command_updates_state_and_history(api_client: TestClient, history: CommandHistoryStore) -> None:
    connect = api_client.post("/robot/connect")
    assert connect.status_code == 200
    assert connect.json()["simulation_mode"] is False

    response = api_client.post("/robot/commands", json={"command": "START"})

    assert response.status_code == 200
    body = response.json()
    assert body["delivered"] is True
    assert body["response"] == "SUCCESS: Moteurs démarrés"
    assert body["state"]["motors_started"] is True
    assert body["state"]["available_commands"][0] == "STOP"
    assert history.read_all() == ["START"]

    status_body = api_client.get("/robot/status").json()
    assert status_body["session_history"] == ["START"]


def test_unknown_command_is_rejected(api_client: TestClient, history: CommandHistoryStore) -> None:
    response = api_client.post("/robot/commands", json={"command": "JUMP"})

    assert response.status_code == 422
    assert history.read_all() == []


def test_history_listing_and_clear(api_client: TestClient, history: CommandHistoryStore) -> None:
    history.append("START")
    history.append("DIRECT_LEFT")

    listing = api_client.get("/robot/history").json()

    assert listing["total"] == 2
    assert [(entry["number"], entry["command"]) for entry in listing["entries"]] == [
        (2, "DIRECT_LEFT"),
        (1, "START"),
    ]
    assert listing["entries"][0]["label"] == "TOURNER À GAUCHE"
    assert listing["entries"][0]["style"] == "turn"

    cleared = api_client.delete("/robot/history")
    assert cleared.status_code == 204
    assert api_client.get("/robot/history").json() == {"total": 0, "entries": []}


def test_non_finite_temperature_is_reported_as_default(api_client: TestClient) -> None:
    feed = _weather_client(body='{"1": {"AT": {"av": "inf", "mn": "NaN"}}}')
    api_client.app.dependency_overrides[get_weather_client] = lambda: feed
    try:
        response = api_client.get("/weather")
    finally:
        feed.close()

    assert response.status_code == 200
    [record] = response.json()
    assert record["average_temperature"] == 0.0
    assert record["min_temperature"] is None
