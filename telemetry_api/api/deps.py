"""
FastAPI dependency injection providers.

Provides the settings and the store collaborator for use with FastAPI's
Depends() mechanism. Tests swap either one via ``app.dependency_overrides``.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-104)

TODO:
- None
"""

from typing import Annotated

from fastapi import Depends, HTTPException

from telemetry_api.config import Settings, get_settings
from telemetry_api.store.base import TelemetryStore
from telemetry_api.store.influx import get_store

# Type aliases for injecting collaborators via FastAPI Depends().
# Usage in route handlers:
#   async def my_route(store: Store, settings: AppSettings): ...
AppSettings = Annotated[Settings, Depends(get_settings)]
Store = Annotated[TelemetryStore, Depends(get_store)]


def require_device_id(imei: str) -> str:
    """Return the stripped device identifier or reject the request.

    Raises:
        HTTPException: 400 if *imei* is empty or blank.
    """
    device_id = (imei or "").strip()
    if not device_id:
        raise HTTPException(status_code=400, detail="Parameter imei is required")
    return device_id
