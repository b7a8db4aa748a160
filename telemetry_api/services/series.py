"""
Series builder: folds aggregated store records into chart and map series.

Single pass over the records in store order. Each record contributes at
most one point to each of ``speed``, ``main_power_voltage`` and
``fuel_total``, one point per fuel sensor field it carries, and one track
point when it has both coordinates. All accumulators are created per call,
so building twice from the same records yields identical results.

CHANGELOG:
- 2026-10-14: Report recordCount alongside track-based totalRecords (STORY-107)
- 2026-10-14: Configurable fuel sensor prefix (STORY-105)
- 2026-10-12: Initial creation (STORY-103)

TODO:
- None
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

from telemetry_api.errors import MalformedRecordError
from telemetry_api.models import (
    DataPoint,
    Record,
    TelemetryMetadata,
    TelemetryResult,
    TrackPoint,
)
from telemetry_api.services.coercion import round2, to_float, to_int64, to_unix_seconds
from telemetry_api.services.window import AggregationWindow, TimeRange, range_days

T = TypeVar("T")

SPEED_FIELD = "speed"
VOLTAGE_FIELD = "main_power_voltage"
LATITUDE_FIELD = "latitude"
LONGITUDE_FIELD = "longitude"
EVENT_TIME_FIELD = "event_time"
FUEL_TOTAL_SERIES = "fuel_total"
DEFAULT_FUEL_PREFIX = "fuel_level_"

# Raw voltage is reported in millivolts.
_MILLIVOLTS_PER_VOLT = 1000.0


def _coerce(
    coerce: Callable[[Any], T],
    values: Mapping[str, Any],
    name: str,
    timestamp: Any,
) -> T:
    """Apply *coerce* to ``values[name]``, wrapping failures.

    Raises:
        MalformedRecordError: Naming the field and record timestamp.
    """
    raw = values[name]
    try:
        return coerce(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedRecordError(name, timestamp, raw) from exc


def _present(values: Mapping[str, Any], name: str) -> bool:
    return values.get(name) is not None


def build_result(
    records: Iterable[Record],
    window: AggregationWindow,
    time_range: TimeRange,
    fuel_prefix: str = DEFAULT_FUEL_PREFIX,
) -> TelemetryResult:
    """Reshape aggregated records into a :class:`TelemetryResult`.

    Args:
        records: Pivoted, bucket-aggregated rows in store order.
        window: Aggregation window the store query used.
        time_range: Requested query range, reported in metadata.
        fuel_prefix: Field name prefix identifying fuel level sensors.

    Returns:
        TelemetryResult: speed, voltage and fuel_total series, per-sensor
        fuel series, GPS track, and metadata.

    Raises:
        MalformedRecordError: If any field value cannot be coerced. The
            whole build is aborted.
    """
    speed: list[DataPoint] = []
    voltage: list[DataPoint] = []
    fuel_total: list[DataPoint] = []
    fuel_sensors: dict[str, list[DataPoint]] = {}
    track: list[TrackPoint] = []
    record_count = 0

    for record in records:
        try:
            unix_ts = to_unix_seconds(record.time)
        except ValueError as exc:
            raise MalformedRecordError("_time", record.time, record.time) from exc
        if unix_ts is None:
            continue

        record_count += 1
        values = record.values
        ts = str(unix_ts)

        if _present(values, SPEED_FIELD):
            value = _coerce(to_float, values, SPEED_FIELD, unix_ts)
            speed.append(DataPoint(time=ts, value=round2(value)))

        if _present(values, VOLTAGE_FIELD):
            millivolts = _coerce(to_float, values, VOLTAGE_FIELD, unix_ts)
            voltage.append(
                DataPoint(time=ts, value=round2(millivolts / _MILLIVOLTS_PER_VOLT))
            )

        fuel_sum = 0.0
        fuel_seen = False
        for name in values:
            if not name.startswith(fuel_prefix) or not _present(values, name):
                continue
            level = _coerce(to_float, values, name, unix_ts)
            fuel_sensors.setdefault(name, []).append(
                DataPoint(time=ts, value=round2(level))
            )
            fuel_sum += level
            fuel_seen = True
        if fuel_seen:
            fuel_total.append(DataPoint(time=ts, value=round2(fuel_sum)))

        if _present(values, LATITUDE_FIELD) and _present(values, LONGITUDE_FIELD):
            lat = _coerce(to_float, values, LATITUDE_FIELD, unix_ts)
            lon = _coerce(to_float, values, LONGITUDE_FIELD, unix_ts)
            if _present(values, EVENT_TIME_FIELD):
                event_time = _coerce(to_int64, values, EVENT_TIME_FIELD, unix_ts)
            else:
                event_time = unix_ts
            track.append(TrackPoint(time=ts, lat=lat, lon=lon, event_time=event_time))

    sensor_names = sorted(fuel_sensors)

    return TelemetryResult(
        series={
            SPEED_FIELD: speed,
            VOLTAGE_FIELD: voltage,
            FUEL_TOTAL_SERIES: fuel_total,
        },
        fuel_sensors={name: fuel_sensors[name] for name in sensor_names},
        track=track,
        metadata=TelemetryMetadata(
            start_timestamp=time_range.start_unix,
            end_timestamp=time_range.end_unix,
            total_records=len(track),
            record_count=record_count,
            available_fuel_sensors=sensor_names,
            aggregation_window=window.value,
            range_days=round2(range_days(time_range)),
        ),
    )
