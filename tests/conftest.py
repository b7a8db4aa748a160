"""
Shared test fixtures for telemetry API tests.

Provides an in-memory store fake, isolated settings, and a TestClient with
the store and settings dependencies overridden.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-101)

TODO:
- None
"""

from collections.abc import Sequence

import pytest
from fastapi.testclient import TestClient

from telemetry_api.config import Settings, get_settings
from telemetry_api.main import app
from telemetry_api.models import Record
from telemetry_api.store.influx import get_store

# All Settings / ServerSettings environment variable names, used for cleanup.
_ALL_ENV_VARS = (
    "INFLUX_URL",
    "INFLUX_TOKEN",
    "INFLUX_ORG",
    "INFLUX_BUCKET",
    "INFLUX_MEASUREMENT",
    "DEVICE_TAG",
    "FUEL_FIELD_PREFIX",
    "QUERY_TIMEOUT_S",
    "DISCOVERY_LOOKBACK",
    "CORS_ALLOW_ORIGINS",
    "LOG_LEVEL",
)


class FakeStore:
    """In-memory store returning canned records and recording queries."""

    def __init__(self, records: Sequence[Record] = (), error: Exception | None = None) -> None:
        self.records = list(records)
        self.error = error
        self.queries: list[str] = []

    async def fetch(self, query: str) -> list[Record]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.records)

    async def ping(self) -> None:
        if self.error is not None:
            raise self.error


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all config env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def settings() -> Settings:
    """Settings with explicit test credentials and defaults elsewhere."""
    return Settings(INFLUX_TOKEN="test-token", INFLUX_ORG="test-org")


@pytest.fixture()
def fake_store() -> FakeStore:
    """Empty in-memory store; tests fill ``records`` or ``error``."""
    return FakeStore()


@pytest.fixture()
def client(fake_store: FakeStore, settings: Settings) -> TestClient:
    """Create a TestClient with the store and settings overridden.

    Yields:
        TestClient: Configured test client with dependency overrides.
    """
    async def override_get_store():
        yield fake_store

    app.dependency_overrides[get_store] = override_get_store
    app.dependency_overrides[get_settings] = lambda: settings

    yield TestClient(app)

    app.dependency_overrides.clear()
