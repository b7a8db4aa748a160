"""
Telemetry API endpoint for chart and map series.

Provides GET /api/telemetry: validates the device identifier and time
range, then returns speed, voltage and fuel series, per-sensor fuel
series, and the GPS track for that device, aggregated to a window chosen
from the range length.

CHANGELOG:
- 2026-10-13: Accept ISO-8601 endpoints alongside unix seconds (STORY-104)
- 2026-10-12: Initial creation (STORY-104)

TODO:
- None
"""

import logging

from fastapi import APIRouter, Query

from telemetry_api.api.deps import AppSettings, Store, require_device_id
from telemetry_api.models import TelemetryResult
from telemetry_api.services.telemetry import fetch_telemetry
from telemetry_api.services.window import parse_time_range

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["telemetry"])


@router.get("/telemetry", response_model=TelemetryResult)
async def get_telemetry(
    store: Store,
    settings: AppSettings,
    imei: str = "",
    start_timestamp: str = Query("", alias="startTimestamp"),
    end_timestamp: str = Query("", alias="endTimestamp"),
) -> TelemetryResult:
    """Get reshaped telemetry for a device over a time range.

    Args:
        store: Injected time-series store.
        settings: Application settings.
        imei: Device identifier.
        start_timestamp: Range start, unix seconds or ISO-8601.
        end_timestamp: Range end, unix seconds or ISO-8601.

    Returns:
        TelemetryResult: series, fuelSensors, track, and metadata.

    Raises:
        HTTPException: 400 if imei is missing.
        InvalidRangeError: Mapped to 400 when the range is missing,
            unparseable, or not increasing.
    """
    device_id = require_device_id(imei)
    time_range = parse_time_range(start_timestamp, end_timestamp)
    return await fetch_telemetry(store, settings, device_id, time_range)
