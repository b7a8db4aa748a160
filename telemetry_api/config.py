"""
Telemetry API configuration from environment variables using Pydantic BaseSettings.

All configuration values are loaded from environment variables (or a
``.env`` file). No hardcoded hosts, tokens, or organizations.

Two settings classes:
- ``ServerSettings``: HTTP server concerns (CORS, log level). Every field
  has a default, so it can be read when the app module is imported.
- ``Settings``: store connection and pipeline tuning. Requires the
  InfluxDB credentials and is validated eagerly at startup.

CHANGELOG:
- 2026-10-15: Split ServerSettings out so CORS is configurable at import (STORY-110)
- 2026-10-14: Add FUEL_FIELD_PREFIX and DEVICE_TAG (STORY-105)
- 2026-10-12: Initial creation (STORY-101)

TODO:
- None
"""

import re

from pydantic import field_validator
from pydantic_settings import BaseSettings

# Prefix ends up inside a Flux regex literal, so only word characters.
_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")

# Flux duration literal, negative for "relative to now" (e.g. -30d, -12h).
_LOOKBACK_PATTERN = re.compile(r"^-\d+(ns|us|ms|s|m|h|d|w|mo|y)$")


class Settings(BaseSettings):
    """Store and pipeline settings loaded from environment variables.

    Attributes:
        INFLUX_URL: Base URL of the InfluxDB v2 HTTP API.
        INFLUX_TOKEN: API token sent as ``Authorization: Token ...``.
        INFLUX_ORG: InfluxDB organization name.
        INFLUX_BUCKET: Bucket holding the telemetry measurement.
        INFLUX_MEASUREMENT: Measurement name for vehicle telemetry.
        DEVICE_TAG: Tag carrying the device identifier (IMEI).
        FUEL_FIELD_PREFIX: Field name prefix of fuel level sensors.
        QUERY_TIMEOUT_S: Upstream query budget per request, in seconds.
        DISCOVERY_LOOKBACK: Flux duration used for device/field discovery.
    """

    INFLUX_URL: str = "http://localhost:8086"
    INFLUX_TOKEN: str
    INFLUX_ORG: str
    INFLUX_BUCKET: str = "telemetry"
    INFLUX_MEASUREMENT: str = "telemetry"
    DEVICE_TAG: str = "imei"
    FUEL_FIELD_PREFIX: str = "fuel_level_"
    QUERY_TIMEOUT_S: float = 90.0
    DISCOVERY_LOOKBACK: str = "-30d"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @field_validator("INFLUX_URL")
    @classmethod
    def influx_url_must_be_http(cls, v: str) -> str:
        """Validate the store URL scheme and strip any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"INFLUX_URL must be an http(s) URL (got: '{v}')")
        return v.rstrip("/")

    @field_validator("FUEL_FIELD_PREFIX", "DEVICE_TAG")
    @classmethod
    def must_be_identifier(cls, v: str) -> str:
        """Validate that field prefixes and tag names are plain identifiers."""
        if not _IDENTIFIER_PATTERN.match(v):
            raise ValueError(f"Must match [A-Za-z0-9_]+ (got: '{v}')")
        return v

    @field_validator("QUERY_TIMEOUT_S")
    @classmethod
    def timeout_must_be_positive(cls, v: float) -> float:
        """Validate the query timeout is a positive number of seconds."""
        if v <= 0:
            raise ValueError("QUERY_TIMEOUT_S must be > 0")
        return v

    @field_validator("DISCOVERY_LOOKBACK")
    @classmethod
    def lookback_must_be_negative_duration(cls, v: str) -> str:
        """Validate the discovery lookback is a negative Flux duration."""
        if not _LOOKBACK_PATTERN.match(v):
            raise ValueError(
                f"DISCOVERY_LOOKBACK must be a negative Flux duration like -30d (got: '{v}')"
            )
        return v


class ServerSettings(BaseSettings):
    """HTTP server settings.

    Attributes:
        CORS_ALLOW_ORIGINS: Comma-separated list of allowed CORS origins.
        LOG_LEVEL: Root logging level name.
    """

    CORS_ALLOW_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def cors_origins(self) -> list[str]:
        """Allowed CORS origins parsed from the comma-separated setting."""
        return [o.strip() for o in self.CORS_ALLOW_ORIGINS.split(",") if o.strip()]


def get_settings() -> Settings:
    """Create and return a Settings instance.

    Returns:
        Settings: Validated configuration from environment variables.
    """
    return Settings()


def get_server_settings() -> ServerSettings:
    """Create and return a ServerSettings instance."""
    return ServerSettings()
