"""
Device and field discovery endpoints.

GET /api/imeis lists device identifiers that reported recently.
GET /api/fields lists the field names a device reports.

CHANGELOG:
- 2026-10-13: Initial creation (STORY-109)

TODO:
- None
"""

from fastapi import APIRouter

from telemetry_api.api.deps import AppSettings, Store, require_device_id
from telemetry_api.services.devices import list_devices, list_fields

router = APIRouter(prefix="/api", tags=["devices"])


@router.get("/imeis")
async def get_imeis(store: Store, settings: AppSettings) -> dict:
    """List device identifiers seen within the discovery lookback."""
    return {"imeis": await list_devices(store, settings)}


@router.get("/fields")
async def get_fields(store: Store, settings: AppSettings, imei: str = "") -> dict:
    """List field names recorded for a device.

    Raises:
        HTTPException: 400 if imei is missing.
    """
    device_id = require_device_id(imei)
    return {"fields": await list_fields(store, settings, device_id)}
