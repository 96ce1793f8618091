from __future__ import annotations

from datetime import UTC, datetime
from typing import Iterable

import pytest
from fastapi.testclient import TestClient

from core.anchor import AnchorSynchronizer, Location
from core.catalog import LOCATIONS_ENV
from timesync_api import app

BRISBANE = Location("bne", "Brisbane", "Australia", "Australia/Brisbane", -27.4698, 153.0251, "QLD")
JOHANNESBURG = Location("jnb", "Johannesburg", "South Africa", "Africa/Johannesburg", -26.2041, 28.0473)

NOW = datetime(2025, 1, 15, 23, 10, tzinfo=UTC)
ANCHORED = datetime(2025, 1, 15, 23, 0, tzinfo=UTC)

BOGOTA_RECORD = {
    "name": "Bogota",
    "country": "Colombia",
    "timezone": "America/Bogota",
    "lat": 4.7110,
    "lng": -74.0721,
}


@pytest.fixture()
def api_client(monkeypatch: pytest.MonkeyPatch) -> Iterable[TestClient]:
    monkeypatch.delenv(LOCATIONS_ENV, raising=False)
    with TestClient(app) as client:
        app.state.synchronizer = AnchorSynchronizer([BRISBANE, JOHANNESBURG], now=lambda: NOW)
        yield client


def _instant(payload: dict) -> datetime:
    return datetime.fromisoformat(payload["instant"].replace("Z", "+00:00"))


def _row(payload: dict, location_id: str) -> dict:
    return next(row for row in payload["locations"] if row["id"] == location_id)


def test_startup_uses_default_catalog(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(LOCATIONS_ENV, raising=False)
    with TestClient(app) as client:
        payload = client.get("/board").json()
    assert payload["home_id"] == "melbourne-au"
    assert payload["anchor_minutes"] % 30 == 0


def test_health_endpoint(api_client: TestClient) -> None:
    response = api_client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert payload["locations"] == 2
    assert _instant(payload) == ANCHORED


def test_board(api_client: TestClient) -> None:
    response = api_client.get("/board")
    assert response.status_code == 200
    payload = response.json()
    assert payload["home_id"] == "bne"
    assert payload["anchor_minutes"] == 540
    assert payload["format"] == "h24"
    assert _instant(payload) == ANCHORED
    assert len(payload["time_options"]) == 48
    assert _row(payload, "bne")["time_label"] == "09:00"
    assert _row(payload, "jnb")["offset_difference_label"] == "-8h"


def test_board_twelve_hour(api_client: TestClient) -> None:
    payload = api_client.get("/board", params={"format": "h12"}).json()
    assert _row(payload, "bne")["time_label"] == "09:00 AM"
    assert payload["time_options"][0]["label"] == "12:00 AM"


def test_edit_home_time(api_client: TestClient) -> None:
    payload = api_client.put("/time", json={"minutes": 840}).json()
    assert payload["anchor_minutes"] == 840
    assert _row(payload, "jnb")["total_minutes"] == 360


def test_edit_home_row_is_not_rounded(api_client: TestClient) -> None:
    payload = api_client.put("/locations/bne/time", json={"minutes": 845}).json()
    assert payload["anchor_minutes"] == 845


def test_edit_other_row_snaps_home(api_client: TestClient) -> None:
    payload = api_client.put("/locations/jnb/time", json={"minutes": 430}).json()
    assert payload["anchor_minutes"] == 900
    assert _row(payload, "jnb")["total_minutes"] == 420


def test_edit_unknown_row(api_client: TestClient) -> None:
    response = api_client.put("/locations/nope/time", json={"minutes": 60})
    assert response.status_code == 404
    assert response.json()["code"] == "unknown_location"


def test_promote_keeps_instant(api_client: TestClient) -> None:
    payload = api_client.post("/locations/jnb/promote").json()
    assert payload["home_id"] == "jnb"
    assert payload["anchor_minutes"] == 60
    assert _instant(payload) == ANCHORED


def test_promote_unknown(api_client: TestClient) -> None:
    response = api_client.post("/locations/nope/promote")
    assert response.status_code == 404
    assert response.json()["ok"] is False


def test_reorder(api_client: TestClient) -> None:
    payload = api_client.put("/order", json={"ids": ["jnb", "bne"]}).json()
    assert [row["id"] for row in payload["locations"]] == ["jnb", "bne"]
    assert _instant(payload) == ANCHORED


def test_reorder_rejects_unknown_ids(api_client: TestClient) -> None:
    response = api_client.put("/order", json={"ids": ["jnb", "xyz"]})
    assert response.status_code == 400
    assert response.json()["code"] == "http_400"


def test_move(api_client: TestClient) -> None:
    payload = api_client.post("/order/move", json={"old_index": 1, "new_index": 0}).json()
    assert payload["home_id"] == "jnb"
    assert _instant(payload) == ANCHORED


def test_add_and_remove_location(api_client: TestClient) -> None:
    payload = api_client.post("/locations", json=BOGOTA_RECORD).json()
    added = payload["locations"][-1]
    assert added["id"].startswith("Bogota-")
    assert added["total_minutes"] == 18 * 60

    response = api_client.delete(f"/locations/{added['id']}")
    assert response.status_code == 200
    assert len(response.json()["locations"]) == 2


def test_remove_home_keeps_instant(api_client: TestClient) -> None:
    payload = api_client.delete("/locations/bne").json()
    assert payload["home_id"] == "jnb"
    assert _instant(payload) == ANCHORED


def test_remove_unknown(api_client: TestClient) -> None:
    assert api_client.delete("/locations/nope").status_code == 404


def test_validation_error(api_client: TestClient) -> None:
    response = api_client.post("/locations", json={**BOGOTA_RECORD, "lat": 95})
    assert response.status_code == 422
    payload = response.json()
    assert payload["code"] == "validation_error"
    assert payload["ok"] is False

    assert api_client.put("/time", json={"minutes": 1440}).status_code == 422


def test_reset(api_client: TestClient) -> None:
    api_client.put("/time", json={"minutes": 840})
    payload = api_client.post("/reset").json()
    assert payload["anchor_minutes"] == 540
    assert _instant(payload) == ANCHORED


def test_directory_zone_does_not_blank_board(api_client: TestClient) -> None:
    response = api_client.post("/locations", json={**BOGOTA_RECORD, "name": "Americas", "timezone": "America"})
    assert response.status_code == 200

    response = api_client.get("/board")
    assert response.status_code == 200
    payload = response.json()
    broken = payload["locations"][-1]
    assert broken["time_label"] == "--:--"
    assert broken["offset_label"] == ""
    assert _row(payload, "bne")["time_label"] == "09:00"
