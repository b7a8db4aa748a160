"""
Flux query builders for the telemetry bucket.

Renders the three queries the API issues against InfluxDB:
- the telemetry range query (device + field allowlist, mean per bucket
  for numeric fields and last per bucket for ``event_time``, empty
  buckets dropped, pivoted to one row per timestamp);
- device discovery (distinct device tag values);
- field discovery for one device (distinct ``_field`` values).

User-supplied strings only ever appear inside escaped Flux string
literals.

CHANGELOG:
- 2026-10-19: Aggregate event_time with last instead of mean (STORY-111)
- 2026-10-14: Field allowlist uses a regex on the fuel prefix (STORY-105)
- 2026-10-13: Add device and field discovery queries (STORY-109)
- 2026-10-12: Initial creation (STORY-104)

TODO:
- None
"""

from datetime import UTC, datetime

from telemetry_api.services.series import (
    EVENT_TIME_FIELD,
    LATITUDE_FIELD,
    LONGITUDE_FIELD,
    SPEED_FIELD,
    VOLTAGE_FIELD,
)
from telemetry_api.services.window import AggregationWindow, TimeRange

# Fields averaged per bucket, in addition to the fuel prefix class.
MEAN_FIELDS: tuple[str, ...] = (
    SPEED_FIELD,
    VOLTAGE_FIELD,
    LATITUDE_FIELD,
    LONGITUDE_FIELD,
)


def flux_string(value: str) -> str:
    """Render *value* as a double-quoted Flux string literal."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("${", "\\${")
    )
    return f'"{escaped}"'


def flux_time(moment: datetime) -> str:
    """Render *moment* as a Flux RFC 3339 time literal in UTC."""
    # strftime("%Y") does not zero-pad years before 1000 on glibc.
    text = moment.astimezone(UTC).replace(tzinfo=None).isoformat(timespec="microseconds")
    return f"{text}Z"


def _numeric_field_predicate(fuel_prefix: str) -> str:
    clauses = [f'r["_field"] == {flux_string(name)}' for name in MEAN_FIELDS]
    # fuel_prefix is validated as [A-Za-z0-9_]+ so it is regex-safe.
    clauses.append(f'r["_field"] =~ /^{fuel_prefix}/')
    return " or\n              ".join(clauses)


def build_telemetry_query(
    *,
    bucket: str,
    measurement: str,
    device_tag: str,
    device_id: str,
    time_range: TimeRange,
    window: AggregationWindow,
    fuel_prefix: str,
) -> str:
    """Build the aggregated telemetry query for one device and range.

    Numeric fields are averaged per bucket. ``event_time`` may be stored
    as a string, which ``mean`` rejects, and an averaged epoch is not a
    real fix time either, so it is converted with ``int()`` and the last
    value per bucket is kept. Both streams share the bucket boundaries
    and are joined back before the pivot.

    Args:
        bucket: InfluxDB bucket name.
        measurement: Measurement holding vehicle telemetry.
        device_tag: Tag key carrying the device identifier.
        device_id: Device identifier to filter on.
        time_range: Query range; the stop bound is exclusive.
        window: Aggregation bucket width.
        fuel_prefix: Field name prefix for fuel sensors.

    Returns:
        Flux query text.
    """
    return f"""base = from(bucket: {flux_string(bucket)})
  |> range(start: {flux_time(time_range.start)}, stop: {flux_time(time_range.end)})
  |> filter(fn: (r) => r["_measurement"] == {flux_string(measurement)})
  |> filter(fn: (r) => r[{flux_string(device_tag)}] == {flux_string(device_id)})

numeric = base
  |> filter(fn: (r) => r["_field"] != {flux_string(EVENT_TIME_FIELD)})
  |> filter(fn: (r) =>
              {_numeric_field_predicate(fuel_prefix)})
  |> aggregateWindow(every: {window.value}, fn: mean, createEmpty: false)

events = base
  |> filter(fn: (r) => r["_field"] == {flux_string(EVENT_TIME_FIELD)})
  |> map(fn: (r) => ({{r with _value: int(v: r._value)}}))
  |> aggregateWindow(every: {window.value}, fn: last, createEmpty: false)

union(tables: [numeric, events])
  |> pivot(rowKey: ["_time"], columnKey: ["_field"], valueColumn: "_value")
  |> sort(columns: ["_time"])
"""


def build_devices_query(
    *,
    bucket: str,
    measurement: str,
    device_tag: str,
    lookback: str,
) -> str:
    """Build the distinct-device discovery query."""
    tag = flux_string(device_tag)
    return f"""from(bucket: {flux_string(bucket)})
  |> range(start: {lookback})
  |> filter(fn: (r) => r["_measurement"] == {flux_string(measurement)})
  |> keep(columns: [{tag}])
  |> distinct(column: {tag})
  |> sort(columns: [{tag}])
"""


def build_fields_query(
    *,
    bucket: str,
    measurement: str,
    device_tag: str,
    device_id: str,
    lookback: str,
) -> str:
    """Build the distinct-field discovery query for one device."""
    return f"""from(bucket: {flux_string(bucket)})
  |> range(start: {lookback})
  |> filter(fn: (r) => r["_measurement"] == {flux_string(measurement)})
  |> filter(fn: (r) => r[{flux_string(device_tag)}] == {flux_string(device_id)})
  |> group(columns: ["_field"])
  |> distinct(column: "_field")
  |> group()
"""
