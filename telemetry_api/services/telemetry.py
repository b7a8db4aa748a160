"""
Telemetry pipeline: window selection, store fetch, series building.

One call per request. The store fetch is the only blocking step and is
bounded by ``QUERY_TIMEOUT_S`` as a whole, on top of the HTTP client's own
per-operation timeout. The CPU-bound fold runs on the worker thread pool
so it does not stall the event loop. Cancellation of the calling task
aborts the fetch; nothing partial is returned.

CHANGELOG:
- 2026-10-13: Run the fold on the thread pool (STORY-106)
- 2026-10-12: Initial creation (STORY-104)

TODO:
- None
"""

import asyncio
import logging
import time

from fastapi.concurrency import run_in_threadpool

from telemetry_api.config import Settings
from telemetry_api.errors import MalformedRecordError, UpstreamTimeoutError
from telemetry_api.models import TelemetryResult
from telemetry_api.services.series import build_result
from telemetry_api.services.window import TimeRange, range_days, select_window
from telemetry_api.store.base import TelemetryStore
from telemetry_api.store.flux import build_telemetry_query

logger = logging.getLogger(__name__)


async def fetch_telemetry(
    store: TelemetryStore,
    settings: Settings,
    device_id: str,
    time_range: TimeRange,
) -> TelemetryResult:
    """Fetch and reshape telemetry for one device over a time range.

    Args:
        store: Store collaborator used to run the query.
        settings: Application settings (bucket, measurement, timeout...).
        device_id: Device identifier, already validated as non-empty.
        time_range: Validated query range.

    Returns:
        TelemetryResult: Series, fuel sensors, track and metadata.

    Raises:
        UpstreamTimeoutError: If the fetch exceeded ``QUERY_TIMEOUT_S``.
        UpstreamUnavailableError: If the store could not be reached.
        MalformedRecordError: If a record carried a non-coercible value.
    """
    window = select_window(time_range)
    logger.info(
        "Telemetry query device=%s range_days=%.2f window=%s",
        device_id,
        range_days(time_range),
        window.value,
    )

    query = build_telemetry_query(
        bucket=settings.INFLUX_BUCKET,
        measurement=settings.INFLUX_MEASUREMENT,
        device_tag=settings.DEVICE_TAG,
        device_id=device_id,
        time_range=time_range,
        window=window,
        fuel_prefix=settings.FUEL_FIELD_PREFIX,
    )

    started = time.monotonic()
    try:
        records = await asyncio.wait_for(
            store.fetch(query), timeout=settings.QUERY_TIMEOUT_S,
        )
    except TimeoutError as exc:
        logger.warning(
            "Telemetry fetch for device %s exceeded %.1fs",
            device_id,
            settings.QUERY_TIMEOUT_S,
        )
        raise UpstreamTimeoutError(settings.QUERY_TIMEOUT_S) from exc
    fetch_ms = int((time.monotonic() - started) * 1000)

    try:
        result = await run_in_threadpool(
            build_result, records, window, time_range, settings.FUEL_FIELD_PREFIX,
        )
    except MalformedRecordError:
        logger.error("Malformed telemetry for device %s", device_id, exc_info=True)
        raise

    logger.info(
        "Telemetry built device=%s records=%d track_points=%d fuel_sensors=%d fetch_ms=%d",
        device_id,
        result.metadata.record_count,
        result.metadata.total_records,
        len(result.metadata.available_fuel_sensors),
        fetch_ms,
    )
    return result
