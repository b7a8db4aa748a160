"""
Aggregation window selection for telemetry range queries.

Maps the span of a requested time range to a bucket width from a fixed,
ordered table. Wider ranges get wider buckets so the number of points
returned per series stays bounded no matter how long the range is.

Also parses the raw range endpoints received by the HTTP layer (unix
seconds or ISO-8601) into a validated :class:`TimeRange`.

CHANGELOG:
- 2026-10-19: Offsets that overflow the UTC conversion are invalid (STORY-111)
- 2026-10-13: Accept ISO-8601 endpoints alongside unix seconds (STORY-104)
- 2026-10-12: Initial creation (STORY-103)

TODO:
- None
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from telemetry_api.errors import InvalidRangeError

_SECONDS_PER_DAY = 86400


class AggregationWindow(str, Enum):
    """Bucket width, valued as the Flux duration literal."""

    ONE_MINUTE = "1m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    ONE_HOUR = "1h"
    FOUR_HOURS = "4h"


# Ordered (upper bound in days, inclusive) -> window. Anything above the
# last bound falls through to _WIDEST_WINDOW.
_WINDOW_BANDS: tuple[tuple[float, AggregationWindow], ...] = (
    (1.0, AggregationWindow.ONE_MINUTE),
    (7.0, AggregationWindow.FIVE_MINUTES),
    (30.0, AggregationWindow.FIFTEEN_MINUTES),
    (90.0, AggregationWindow.ONE_HOUR),
)
_WIDEST_WINDOW = AggregationWindow.FOUR_HOURS


@dataclass(frozen=True)
class TimeRange:
    """Half-open query range ``[start, end)`` in UTC.

    Attributes:
        start: Range start, timezone-aware.
        end: Range end, timezone-aware, strictly after ``start``.

    Raises:
        InvalidRangeError: If either endpoint is naive or ``start >= end``.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise InvalidRangeError(
                "Range endpoints must be timezone-aware", self.start, self.end,
            )
        if self.start >= self.end:
            raise InvalidRangeError(
                f"Range start {self.start.isoformat()} must be before "
                f"end {self.end.isoformat()}",
                self.start,
                self.end,
            )

    @property
    def start_unix(self) -> int:
        """Range start as integer unix seconds."""
        return int(self.start.timestamp())

    @property
    def end_unix(self) -> int:
        """Range end as integer unix seconds."""
        return int(self.end.timestamp())


def range_days(time_range: TimeRange) -> float:
    """Return the span of *time_range* in fractional days (unrounded)."""
    return (time_range.end - time_range.start).total_seconds() / _SECONDS_PER_DAY


def select_window(time_range: TimeRange) -> AggregationWindow:
    """Pick the aggregation window for a query range.

    Bands use inclusive upper bounds: exactly 1.0 day selects the
    one-minute window, anything strictly above selects five minutes.

    Args:
        time_range: Validated query range.

    Returns:
        AggregationWindow: Smallest bucket whose band covers the span.
    """
    days = range_days(time_range)
    for upper_bound, window in _WINDOW_BANDS:
        if days <= upper_bound:
            return window
    return _WIDEST_WINDOW


def parse_instant(raw: str) -> datetime:
    """Parse a range endpoint into a UTC datetime.

    Accepts integer unix seconds (``"1700000000"``) or an ISO-8601
    timestamp. Naive ISO timestamps are taken to be UTC.

    Args:
        raw: Endpoint as received in the query string.

    Returns:
        Timezone-aware datetime in UTC.

    Raises:
        InvalidRangeError: If *raw* is empty or not parseable.
    """
    text = (raw or "").strip()
    if not text:
        raise InvalidRangeError("Range endpoint is empty", raw)

    if text.lstrip("-").isdigit():
        try:
            return datetime.fromtimestamp(int(text), tz=UTC)
        except (OverflowError, OSError, ValueError) as exc:
            raise InvalidRangeError(f"Unix timestamp out of range: {text}", raw) from exc

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise InvalidRangeError(f"Unparseable timestamp: {text}", raw) from exc

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    try:
        return parsed.astimezone(UTC)
    except OverflowError as exc:
        # The offset pushed the instant past year 1 or year 9999.
        raise InvalidRangeError(f"Timestamp out of range in UTC: {text}", raw) from exc


def parse_time_range(start: str, end: str) -> TimeRange:
    """Parse raw start/end endpoints into a validated :class:`TimeRange`.

    Raises:
        InvalidRangeError: If either endpoint is unparseable or
            ``start >= end``.
    """
    try:
        return TimeRange(parse_instant(start), parse_instant(end))
    except InvalidRangeError as exc:
        raise InvalidRangeError(str(exc), start, end) from exc
