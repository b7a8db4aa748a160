"""
Store package: Flux query builders and the InfluxDB client.

CHANGELOG:
- 2026-10-19: Export to_records in place of the CSV parser (STORY-111)
- 2026-10-12: Initial creation (STORY-104)

TODO:
- None
"""

from telemetry_api.store.base import TelemetryStore
from telemetry_api.store.influx import InfluxStore, get_store, to_records

__all__ = [
    "InfluxStore",
    "TelemetryStore",
    "get_store",
    "to_records",
]
