"""
Device and field discovery.

Lists the device identifiers that reported telemetry recently, and the
field names a given device reports, so clients can populate pickers
before requesting series.

CHANGELOG:
- 2026-10-13: Initial creation (STORY-109)

TODO:
- None
"""

import logging
from collections.abc import Iterable

from telemetry_api.config import Settings
from telemetry_api.models import Record
from telemetry_api.store.base import TelemetryStore
from telemetry_api.store.flux import build_devices_query, build_fields_query

logger = logging.getLogger(__name__)


def _distinct_column(records: Iterable[Record], *columns: str) -> list[str]:
    """Collect sorted, de-duplicated, non-blank values of the first present column."""
    found: set[str] = set()
    for record in records:
        for column in columns:
            value = record.values.get(column)
            if value is not None and str(value).strip():
                found.add(str(value))
                break
    return sorted(found)


async def list_devices(store: TelemetryStore, settings: Settings) -> list[str]:
    """Return sorted device identifiers seen within the discovery lookback."""
    query = build_devices_query(
        bucket=settings.INFLUX_BUCKET,
        measurement=settings.INFLUX_MEASUREMENT,
        device_tag=settings.DEVICE_TAG,
        lookback=settings.DISCOVERY_LOOKBACK,
    )
    records = await store.fetch(query)
    devices = _distinct_column(records, settings.DEVICE_TAG, "_value")
    logger.info("Found %d devices", len(devices))
    return devices


async def list_fields(
    store: TelemetryStore,
    settings: Settings,
    device_id: str,
) -> list[str]:
    """Return sorted field names reported by *device_id* within the lookback.

    After ``distinct`` the field name may land in either ``_field`` or
    ``_value`` depending on server version, so both are checked.
    """
    query = build_fields_query(
        bucket=settings.INFLUX_BUCKET,
        measurement=settings.INFLUX_MEASUREMENT,
        device_tag=settings.DEVICE_TAG,
        device_id=device_id,
        lookback=settings.DISCOVERY_LOOKBACK,
    )
    records = await store.fetch(query)
    fields = _distinct_column(records, "_field", "_value")
    logger.info("Found %d fields for device %s", len(fields), device_id)
    return fields
