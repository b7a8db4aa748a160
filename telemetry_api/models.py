"""
Data model for telemetry records and the reshaped response.

``Record`` is one pivoted row from the store. The Pydantic models are the
wire shape returned to chart and map clients; field aliases keep the
camelCase names those clients expect.

CHANGELOG:
- 2026-10-14: Add recordCount to metadata (STORY-107)
- 2026-10-12: Initial creation (STORY-103)

TODO:
- None
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class Record:
    """One aggregated row from the store.

    Attributes:
        time: Bucket timestamp as delivered (RFC 3339 string, datetime,
            or unix seconds). ``None`` when the row has no time column.
        values: Field name to raw value. Absent fields are simply missing.
    """

    time: Any
    values: Mapping[str, Any] = field(default_factory=dict)


class DataPoint(BaseModel):
    """A single scalar sample of an output series."""

    time: str
    value: float


class TrackPoint(BaseModel):
    """A single GPS fix on the device track."""

    model_config = ConfigDict(populate_by_name=True)

    time: str
    lat: float
    lon: float
    event_time: int = Field(alias="eventTime")


class TelemetryMetadata(BaseModel):
    """Summary of a reshaped telemetry response.

    Attributes:
        start_timestamp: Range start, unix seconds.
        end_timestamp: Range end, unix seconds.
        total_records: Number of track points (kept for client compatibility).
        record_count: Number of records with a resolved timestamp.
        available_fuel_sensors: Sorted fuel sensor field names.
        aggregation_window: Bucket width used by the store query.
        range_days: Range span in days, rounded to two decimals.
    """

    model_config = ConfigDict(populate_by_name=True)

    start_timestamp: int = Field(alias="startTimestamp")
    end_timestamp: int = Field(alias="endTimestamp")
    total_records: int = Field(alias="totalRecords")
    record_count: int = Field(alias="recordCount")
    available_fuel_sensors: list[str] = Field(alias="availableFuelSensors")
    aggregation_window: str = Field(alias="aggregationWindow")
    range_days: float = Field(alias="rangeDays")


class TelemetryResult(BaseModel):
    """Reshaped telemetry for one device and time range."""

    model_config = ConfigDict(populate_by_name=True)

    series: dict[str, list[DataPoint]]
    fuel_sensors: dict[str, list[DataPoint]] = Field(alias="fuelSensors")
    track: list[TrackPoint]
    metadata: TelemetryMetadata
