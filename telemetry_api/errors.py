"""
Error taxonomy for the telemetry pipeline.

Distinguishes bad input (InvalidRangeError), upstream failure
(UpstreamTimeoutError, UpstreamUnavailableError), and bad data
(MalformedRecordError) so the HTTP layer can pick status codes and
retry hints per kind. None of these are retried inside the core.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-102)

TODO:
- None
"""

from typing import Any


class TelemetryError(Exception):
    """Base class for all telemetry pipeline errors."""


class InvalidRangeError(TelemetryError):
    """Requested time range is unparseable or not strictly increasing.

    Attributes:
        start: Raw start value as received.
        end: Raw end value as received.
    """

    def __init__(self, message: str, start: Any = None, end: Any = None) -> None:
        super().__init__(message)
        self.start = start
        self.end = end


class UpstreamTimeoutError(TelemetryError):
    """The store query exceeded its time budget.

    Attributes:
        timeout_s: The budget that was exceeded, in seconds.
    """

    def __init__(self, timeout_s: float) -> None:
        super().__init__(f"Upstream query exceeded {timeout_s:g}s budget")
        self.timeout_s = timeout_s


class UpstreamUnavailableError(TelemetryError):
    """Transport failure, non-2xx response, or in-band error from the store.

    Attributes:
        status_code: HTTP status returned by the store, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedRecordError(TelemetryError):
    """A record field value cannot be coerced to its expected type.

    Aborts the whole build; no partial result is ever returned.

    Attributes:
        field: Name of the offending field.
        timestamp: Record timestamp (unix seconds, or the raw value when
            the timestamp itself is malformed).
        value: The raw value that failed coercion.
    """

    def __init__(self, field: str, timestamp: Any, value: Any) -> None:
        super().__init__(
            f"Malformed value {value!r} for field '{field}' at timestamp {timestamp}"
        )
        self.field = field
        self.timestamp = timestamp
        self.value = value
