"""
Store collaborator interface.

The pipeline only needs to run a query and get records back, plus a
liveness check for the health endpoint. Anything satisfying this protocol
can be injected, including in-memory fakes in tests.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-104)

TODO:
- None
"""

from collections.abc import Sequence
from typing import Protocol

from telemetry_api.models import Record


class TelemetryStore(Protocol):
    """Time-series store that executes queries and returns records."""

    async def fetch(self, query: str) -> Sequence[Record]:
        """Run *query* and return its rows as records."""
        ...

    async def ping(self) -> None:
        """Raise if the store is not reachable and healthy."""
        ...
