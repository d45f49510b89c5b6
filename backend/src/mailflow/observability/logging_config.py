"""Structured logging setup.

Every record passes through CorrelationFilter, which stamps it with the
request id and, once known, the profile, organization and mailroom of the
request. Services add mail item fields through ``extra``:

    logger.info("Mail item notified", extra={"mail_item_id": item.id, "to_status": "notified"})
"""

import json
import logging
import sys
from datetime import datetime, timezone

from .correlation import current_correlation

# Attributes lifted from the record into the JSON document when present
EXTRA_FIELDS = (
    "mail_item_id",
    "from_status",
    "to_status",
    "status_code",
    "duration_ms",
    "method",
    "path",
    "subject",
)

CORRELATION_FIELDS = ("request_id", "user_id", "organization_id", "mail_room_id")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s org=%(organization_id)s] %(name)s: %(message)s"


class CorrelationFilter(logging.Filter):
    """Copy the current request correlation onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        correlation = current_correlation()
        fields = correlation.as_log_fields() if correlation else {}
        for name in CORRELATION_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, fields.get(name, "-"))
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, timestamped from the record itself."""

    def format(self, record: logging.LogRecord) -> str:
        document = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CORRELATION_FIELDS + EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is None or value == "-":
                continue
            document[name] = value if isinstance(value, (int, float, bool)) else str(value)

        if record.exc_info:
            document["exception"] = self.formatException(record.exc_info)

        return json.dumps(document)


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines when True, a readable text format otherwise
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationFilter())
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT))

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(numeric_level)

    # uvicorn's access log duplicates the middleware's request line
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
