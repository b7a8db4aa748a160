"""
InfluxDB v2 store client built on the official ``influxdb-client`` package.

Runs Flux queries through ``InfluxDBClientAsync.query_api()`` and maps each
returned ``FluxRecord`` to a :class:`~telemetry_api.models.Record`. The
client handles the annotated CSV wire format (datatypes, ``#default``,
table blocks and in-band error tables). Transport failures, non-2xx
responses and query errors are raised as upstream errors, never swallowed;
retrying is the caller's decision.

CHANGELOG:
- 2026-10-19: Query through InfluxDBClientAsync, drop the CSV parser (STORY-111)
- 2026-10-13: Detect in-band error tables (STORY-106)
- 2026-10-12: Initial creation (STORY-104)

TODO:
- None
"""

import logging
from collections.abc import AsyncGenerator, Iterable
from typing import Any

import aiohttp
from influxdb_client.client.flux_csv_parser import FluxQueryException
from influxdb_client.client.flux_table import FluxRecord, FluxTable
from influxdb_client.client.influxdb_client_async import InfluxDBClientAsync
from influxdb_client.rest import ApiException

from telemetry_api.config import Settings, get_settings
from telemetry_api.errors import UpstreamTimeoutError, UpstreamUnavailableError
from telemetry_api.models import Record

logger = logging.getLogger(__name__)

# Columns Influx adds to every table that are not record fields.
_SYSTEM_COLUMNS: frozenset[str] = frozenset(
    {"", "result", "table", "_start", "_stop", "_time", "_measurement"}
)


def to_record(flux_record: FluxRecord) -> Record:
    """Map a ``FluxRecord`` to a :class:`Record`.

    Empty cells come back as ``None`` and are left out of
    ``Record.values`` so absent fields stay absent.
    """
    values: dict[str, Any] = {
        column: value
        for column, value in flux_record.values.items()
        if column not in _SYSTEM_COLUMNS and value is not None
    }
    return Record(time=flux_record.values.get("_time"), values=values)


def to_records(tables: Iterable[FluxTable]) -> list[Record]:
    """Flatten query result tables into records, in response order."""
    return [to_record(flux_record) for table in tables for flux_record in table.records]


class InfluxStore:
    """Telemetry store backed by the InfluxDB v2 query API.

    Args:
        client: Open ``InfluxDBClientAsync`` bound to the InfluxDB URL and
            token.
        org: InfluxDB organization name.
        timeout_s: Query budget, reported in timeout errors.
    """

    def __init__(self, client: InfluxDBClientAsync, org: str, timeout_s: float) -> None:
        self._client = client
        self._org = org
        self._timeout_s = timeout_s

    async def fetch(self, query: str) -> list[Record]:
        """Execute a Flux query and return all rows as records.

        Args:
            query: Flux query text.

        Returns:
            list[Record]: Rows in response order.

        Raises:
            UpstreamTimeoutError: If the request timed out.
            UpstreamUnavailableError: On connection failure, non-2xx
                response, or an in-band query error.
        """
        try:
            tables = await self._client.query_api().query(query, org=self._org)
        except TimeoutError as exc:
            logger.warning("Store query timed out after %.1fs", self._timeout_s)
            raise UpstreamTimeoutError(self._timeout_s) from exc
        except ApiException as exc:
            logger.warning("Store query HTTP error %s: %s", exc.status, exc.reason)
            raise UpstreamUnavailableError(
                f"Store returned HTTP {exc.status}", status_code=exc.status,
            ) from exc
        except FluxQueryException as exc:
            logger.warning("Store query failed: %s (reference %s)", exc.message, exc.reference)
            raise UpstreamUnavailableError(f"Store query failed: {exc.message}") from exc
        except aiohttp.ClientError as exc:
            logger.warning("Store connection error: %s", exc)
            raise UpstreamUnavailableError(f"Store unreachable: {exc}") from exc

        return to_records(tables)

    async def ping(self) -> None:
        """Ping InfluxDB.

        Raises:
            UpstreamUnavailableError: If the store does not answer.
        """
        if not await self._client.ping():
            raise UpstreamUnavailableError("Store did not answer ping")


def create_client(settings: Settings) -> InfluxDBClientAsync:
    """Create an async InfluxDB client for the configured instance.

    Must be called from a running event loop.
    """
    return InfluxDBClientAsync(
        url=settings.INFLUX_URL,
        token=settings.INFLUX_TOKEN,
        org=settings.INFLUX_ORG,
        timeout=int(settings.QUERY_TIMEOUT_S * 1000),
    )


async def get_store() -> AsyncGenerator[InfluxStore, None]:
    """Yield an :class:`InfluxStore` for FastAPI dependency injection.

    The underlying client is closed after the request completes.

    Yields:
        InfluxStore: Store bound to a fresh client.
    """
    settings = get_settings()
    async with create_client(settings) as client:
        yield InfluxStore(client, settings.INFLUX_ORG, settings.QUERY_TIMEOUT_S)
