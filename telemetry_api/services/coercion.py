"""
Value coercion for raw store fields.

One function per expected type, applied at the point of field
extraction. The store hands back numbers, stringified numbers, or RFC 3339
strings depending on column type; every function here accepts all of
those and raises ``ValueError`` (never a silent default) on anything it
cannot coerce.

Rounding is pinned to round-half-away-from-zero on the shortest decimal
representation of the float, so ``55.555`` rounds to ``55.56`` even though
its binary value is slightly below the midpoint.

CHANGELOG:
- 2026-10-19: Reject digit separators, huge ints and negative zero (STORY-111)
- 2026-10-13: Truncate nanosecond RFC 3339 fractions (STORY-106)
- 2026-10-12: Initial creation (STORY-103)

TODO:
- None
"""

import math
import re
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

_TWO_PLACES = Decimal("0.01")
_WHOLE = Decimal("1")

# Doubles this large have no fractional digits left to round.
_NO_FRACTION_ABOVE = 2.0**52

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

# Influx emits up to nine fractional digits; datetime only keeps six.
_FRACTION_PATTERN = re.compile(r"\.(\d+)")


def _reject_bool(value: Any) -> None:
    # bool is an int subclass; a boolean field is never a valid number here.
    if isinstance(value, bool):
        raise ValueError(f"Boolean {value!r} is not numeric")


def _reject_separators(value: str) -> None:
    # float() and int() accept "1_000"; stored data never uses separators.
    if "_" in value:
        raise ValueError(f"Digit separators are not allowed: {value!r}")


def to_float(value: Any) -> float:
    """Coerce a raw numeric or numeric-string value to a finite float.

    Raises:
        ValueError: If *value* is a bool, non-numeric, NaN, infinite or
            too large for a float.
    """
    _reject_bool(value)
    if isinstance(value, (int, float)):
        try:
            result = float(value)
        except OverflowError:
            raise ValueError(f"Too large for a float: {value!r}") from None
    elif isinstance(value, str):
        _reject_separators(value)
        try:
            result = float(value.strip())
        except ValueError:
            raise ValueError(f"Not a number: {value!r}") from None
    else:
        raise ValueError(f"Unsupported type {type(value).__name__} for float")

    if not math.isfinite(result):
        raise ValueError(f"Non-finite number: {value!r}")
    return result


def to_int64(value: Any) -> int:
    """Coerce a raw value to an integer.

    Strings are parsed as base-10 integers. Floats are rounded
    half-away-from-zero.

    Raises:
        ValueError: If *value* is a bool, a non-integer string, a
            non-finite number, or outside the int64 range.
    """
    _reject_bool(value)
    if isinstance(value, str):
        _reject_separators(value)
        try:
            result = int(value.strip(), 10)
        except ValueError:
            raise ValueError(f"Not a base-10 integer: {value!r}") from None
    elif isinstance(value, int):
        result = value
    else:
        number = to_float(value)
        if abs(number) >= _NO_FRACTION_ABOVE:
            result = int(number)
        else:
            result = int(Decimal(repr(number)).quantize(_WHOLE, rounding=ROUND_HALF_UP))

    if not _INT64_MIN <= result <= _INT64_MAX:
        raise ValueError(f"Out of int64 range: {value!r}")
    return result


def round2(value: float) -> float:
    """Round *value* to two decimals, half away from zero."""
    if abs(value) >= _NO_FRACTION_ABOVE:
        return value
    rounded = float(Decimal(repr(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))
    # -0.001 quantizes to -0.00; adding 0.0 turns -0.0 into 0.0.
    return rounded + 0.0


def _parse_rfc3339(text: str) -> datetime:
    text = _FRACTION_PATTERN.sub(lambda m: "." + m.group(1)[:6], text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def to_unix_seconds(value: Any) -> int | None:
    """Coerce a record timestamp to integer unix seconds.

    Accepts datetimes (naive ones are taken as UTC), numeric unix
    seconds, digit strings, and RFC 3339 strings with up to nanosecond
    precision. Sub-second parts are truncated.

    Returns:
        Unix seconds, or ``None`` when *value* is ``None`` or blank.

    Raises:
        ValueError: If *value* is present but cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return math.floor(value.timestamp())

    _reject_bool(value)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError(f"Non-finite timestamp: {value!r}")
        return math.floor(value)
    if not isinstance(value, str):
        raise ValueError(f"Unsupported type {type(value).__name__} for timestamp")

    text = value.strip()
    if not text:
        return None
    if text.lstrip("-").isdigit():
        return int(text)
    try:
        return math.floor(_parse_rfc3339(text).timestamp())
    except ValueError:
        raise ValueError(f"Not an RFC 3339 timestamp: {value!r}") from None
