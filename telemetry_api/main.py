"""
FastAPI application entry point for the vehicle telemetry API.

Registers the telemetry, discovery and health routers, CORS, and the
exception handlers that map the pipeline error taxonomy to HTTP status
codes:
- InvalidRangeError -> 400
- UpstreamUnavailableError -> 502
- MalformedRecordError -> 502
- UpstreamTimeoutError -> 504

CHANGELOG:
- 2026-10-15: Read CORS origins from ServerSettings (STORY-110)
- 2026-10-13: Register devices router (STORY-109)
- 2026-10-12: Initial creation (STORY-101)

TODO:
- None
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from telemetry_api.api.devices import router as devices_router
from telemetry_api.api.health import router as health_router
from telemetry_api.api.telemetry import router as telemetry_router
from telemetry_api.config import get_server_settings, get_settings
from telemetry_api.errors import (
    InvalidRangeError,
    MalformedRecordError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from telemetry_api.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: configure logging and validate settings at startup."""
    setup_logging(get_server_settings().LOG_LEVEL)
    settings = get_settings()
    logger.info(
        "Settings validated: store=%s bucket=%s measurement=%s timeout=%.0fs",
        settings.INFLUX_URL,
        settings.INFLUX_BUCKET,
        settings.INFLUX_MEASUREMENT,
        settings.QUERY_TIMEOUT_S,
    )
    yield


app = FastAPI(
    title="Vehicle Telemetry API",
    description="Speed, voltage, fuel and GPS track series from InfluxDB.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_server_settings().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(devices_router)
app.include_router(health_router)
app.include_router(telemetry_router)


@app.exception_handler(InvalidRangeError)
async def invalid_range_handler(request: Request, exc: InvalidRangeError) -> JSONResponse:
    """Reject unparseable or non-increasing ranges with 400."""
    logger.info("Rejected range start=%r end=%r: %s", exc.start, exc.end, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(UpstreamTimeoutError)
async def upstream_timeout_handler(
    request: Request, exc: UpstreamTimeoutError,
) -> JSONResponse:
    """Surface store timeouts as a retryable 504."""
    return JSONResponse(
        status_code=504,
        content={"detail": str(exc), "retryable": True},
    )


@app.exception_handler(UpstreamUnavailableError)
async def upstream_unavailable_handler(
    request: Request, exc: UpstreamUnavailableError,
) -> JSONResponse:
    """Surface store transport or query failures as 502."""
    return JSONResponse(
        status_code=502,
        content={"detail": str(exc), "upstream_status": exc.status_code},
    )


@app.exception_handler(MalformedRecordError)
async def malformed_record_handler(
    request: Request, exc: MalformedRecordError,
) -> JSONResponse:
    """Surface non-coercible store data as 502 with the offending field."""
    return JSONResponse(
        status_code=502,
        content={
            "detail": str(exc),
            "field": exc.field,
            "timestamp": str(exc.timestamp),
        },
    )


@app.get("/")
async def health() -> dict:
    """Liveness endpoint.

    Returns:
        dict: JSON object with application status.
    """
    return {"status": "ok"}
