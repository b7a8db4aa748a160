"""
JSON log lines for the telemetry API.

The service logs one line per request stage: window selection
(``device``, ``range_days``, ``window``), the fetch outcome (``records``,
``track_points``, ``fuel_sensors``, ``fetch_ms``), and upstream or
malformed-data failures. Those values travel inside ``message``; the
JSON envelope adds when and where the line was logged, so a log shipper
can filter by ``logger`` (for example ``telemetry_api.store.influx``)
without parsing message text. Failures logged with a traceback carry it
under ``exc_info``.

``LOG_LEVEL`` accepts a level name in any case; unknown names fall back
to INFO rather than failing startup.

CHANGELOG:
- 2026-10-19: Describe the service log lines (STORY-111)
- 2026-10-13: Emit exc_info text and accept level names (STORY-108)
- 2026-10-12: Initial creation (STORY-101)

TODO:
- None
"""

import json
import logging
from datetime import UTC, datetime


class JSONFormatter(logging.Formatter):
    """Render each record as one JSON object on a single line.

    Keys:
    - ``timestamp``: ISO-8601 UTC timestamp.
    - ``level``: Log level name (INFO, WARNING, ERROR, ...).
    - ``logger``: Logger name.
    - ``message``: Formatted log message.
    - ``exc_info``: Formatted traceback, only when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format *record* as a JSON string.

        Args:
            record: The log record to format.

        Returns:
            A single-line JSON string.
        """
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(level: int | str = logging.INFO) -> None:
    """Configure the root logger with structured JSON output.

    Removes any existing handlers on the root logger and installs
    a single ``StreamHandler`` using :class:`JSONFormatter`.

    Args:
        level: Logging level for the root logger, as an int or a level
            name such as ``"DEBUG"``.  Defaults to ``logging.INFO``.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers to avoid duplicate output.
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)
