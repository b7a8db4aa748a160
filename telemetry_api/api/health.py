"""
Health check endpoint that pings InfluxDB.

Returns a JSON response with the overall status and the status of the
store. HTTP 200 when the store is healthy, HTTP 503 when degraded.

CHANGELOG:
- 2026-10-19: Check through the client ping (STORY-111)
- 2026-10-12: Initial creation (STORY-108)

TODO:
- None
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from telemetry_api.store.influx import get_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_store() -> str:
    """Ping the store.

    Returns:
        "ok" if the ping succeeds, "error" otherwise.
    """
    try:
        async for store in get_store():
            await store.ping()
            return "ok"
    except Exception:
        logger.warning("Health check: store ping failed", exc_info=True)
        return "error"
    return "error"  # pragma: no cover


@router.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint probing InfluxDB.

    Returns:
        JSONResponse: JSON with status and influxdb fields.
            HTTP 200 when the store is ok, HTTP 503 when degraded.
    """
    store_status = await _check_store()

    ok = store_status == "ok"
    return JSONResponse(
        status_code=200 if ok else 503,
        content={
            "status": "ok" if ok else "degraded",
            "influxdb": store_status,
        },
    )
