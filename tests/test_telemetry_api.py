"""
Tests for the telemetry API endpoint (STORY-104).

Validates GET /api/telemetry: parameter validation, response structure,
and mapping of the error taxonomy to HTTP status codes.

CHANGELOG:
- 2026-10-19: Out-of-range offset endpoint returns 400 (STORY-111)
- 2026-10-13: Add ISO-8601 endpoint test (STORY-104)
- 2026-10-12: Initial creation (STORY-104)

TODO:
- None
"""

from fastapi.testclient import TestClient

from telemetry_api.errors import UpstreamTimeoutError, UpstreamUnavailableError
from telemetry_api.models import Record

from .conftest import FakeStore

_PARAMS = {
    "imei": "860000000000001",
    "startTimestamp": "1699999000",
    "endTimestamp": "1700003600",
}

SAMPLE_RECORDS = [
    Record(
        "2023-11-14T22:13:20Z",
        {
            "speed": 55.555,
            "main_power_voltage": 12345.0,
            "fuel_level_1": 10.2,
            "fuel_level_2": 5.1,
            "latitude": 43.1,
            "longitude": 76.9,
        },
    ),
    Record("2023-11-14T22:14:20Z", {"speed": "60", "event_time": "1700000055"}),
]


# ---------------------------------------------------------------------------
# Parameter validation -> 400
# ---------------------------------------------------------------------------


class TestTelemetryValidation:
    """Bad input is rejected before the store is queried."""

    def test_missing_imei_returns_400(self, client: TestClient, fake_store: FakeStore) -> None:
        params = {**_PARAMS, "imei": ""}
        response = client.get("/api/telemetry", params=params)
        assert response.status_code == 400
        assert "imei" in response.json()["detail"]
        assert fake_store.queries == []

    def test_missing_start_returns_400(self, client: TestClient) -> None:
        params = {k: v for k, v in _PARAMS.items() if k != "startTimestamp"}
        response = client.get("/api/telemetry", params=params)
        assert response.status_code == 400

    def test_unparseable_end_returns_400(self, client: TestClient) -> None:
        response = client.get("/api/telemetry", params={**_PARAMS, "endTimestamp": "later"})
        assert response.status_code == 400

    def test_reversed_range_returns_400(self, client: TestClient, fake_store: FakeStore) -> None:
        params = {**_PARAMS, "startTimestamp": "1700003600", "endTimestamp": "1699999000"}
        response = client.get("/api/telemetry", params=params)
        assert response.status_code == 400
        assert "before" in response.json()["detail"]
        assert fake_store.queries == []

    def test_offset_outside_datetime_range_returns_400(
        self, client: TestClient, fake_store: FakeStore,
    ) -> None:
        params = {
            **_PARAMS,
            "startTimestamp": "0001-01-01T00:00:00+01:00",
            "endTimestamp": "2026-01-01T00:00:00Z",
        }
        response = client.get("/api/telemetry", params=params)
        assert response.status_code == 400
        assert "out of range" in response.json()["detail"]
        assert fake_store.queries == []


# ---------------------------------------------------------------------------
# Successful responses
# ---------------------------------------------------------------------------


class TestTelemetryResponse:
    """Response structure and values."""

    def test_returns_series_track_and_metadata(
        self, client: TestClient, fake_store: FakeStore,
    ) -> None:
        fake_store.records = SAMPLE_RECORDS
        response = client.get("/api/telemetry", params=_PARAMS)

        assert response.status_code == 200
        body = response.json()
        assert body["series"]["speed"] == [
            {"time": "1700000000", "value": 55.56},
            {"time": "1700000060", "value": 60.0},
        ]
        assert body["series"]["main_power_voltage"] == [{"time": "1700000000", "value": 12.35}]
        assert body["series"]["fuel_total"] == [{"time": "1700000000", "value": 15.3}]
        assert body["fuelSensors"] == {
            "fuel_level_1": [{"time": "1700000000", "value": 10.2}],
            "fuel_level_2": [{"time": "1700000000", "value": 5.1}],
        }
        assert body["track"] == [
            {"time": "1700000000", "lat": 43.1, "lon": 76.9, "eventTime": 1700000000},
        ]
        assert body["metadata"] == {
            "startTimestamp": 1699999000,
            "endTimestamp": 1700003600,
            "totalRecords": 1,
            "recordCount": 2,
            "availableFuelSensors": ["fuel_level_1", "fuel_level_2"],
            "aggregationWindow": "1m",
            "rangeDays": 0.05,
        }

    def test_iso_endpoints_accepted(self, client: TestClient) -> None:
        params = {
            "imei": "dev-1",
            "startTimestamp": "2023-11-01T00:00:00Z",
            "endTimestamp": "2023-11-14T00:00:00Z",
        }
        response = client.get("/api/telemetry", params=params)
        assert response.status_code == 200
        assert response.json()["metadata"]["aggregationWindow"] == "15m"

    def test_empty_result(self, client: TestClient) -> None:
        response = client.get("/api/telemetry", params=_PARAMS)
        assert response.status_code == 200
        body = response.json()
        assert body["series"] == {"speed": [], "main_power_voltage": [], "fuel_total": []}
        assert body["fuelSensors"] == {}
        assert body["track"] == []
        assert body["metadata"]["totalRecords"] == 0


# ---------------------------------------------------------------------------
# Error taxonomy -> HTTP status
# ---------------------------------------------------------------------------


class TestTelemetryErrors:
    """Upstream and data errors map to distinct status codes."""

    def test_upstream_timeout_returns_504(
        self, client: TestClient, fake_store: FakeStore,
    ) -> None:
        fake_store.error = UpstreamTimeoutError(90.0)
        response = client.get("/api/telemetry", params=_PARAMS)
        assert response.status_code == 504
        assert response.json()["retryable"] is True

    def test_upstream_unavailable_returns_502(
        self, client: TestClient, fake_store: FakeStore,
    ) -> None:
        fake_store.error = UpstreamUnavailableError("Store unreachable", status_code=None)
        response = client.get("/api/telemetry", params=_PARAMS)
        assert response.status_code == 502
        assert "unreachable" in response.json()["detail"]

    def test_malformed_record_returns_502_with_field(
        self, client: TestClient, fake_store: FakeStore,
    ) -> None:
        fake_store.records = [Record("2023-11-14T22:13:20Z", {"speed": "not-a-number"})]
        response = client.get("/api/telemetry", params=_PARAMS)
        assert response.status_code == 502
        body = response.json()
        assert body["field"] == "speed"
        assert body["timestamp"] == "1700000000"
        assert "series" not in body
