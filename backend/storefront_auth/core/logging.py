"""Log setup for the auth service: JSON lines in production, plain text locally."""

import json
import logging
import sys
from typing import Any, Literal

LOGGER_PREFIX = "storefront"

DEV_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

# Third-party loggers: a fixed level, or None for WARNING unless the app runs at DEBUG
_LIBRARY_LEVELS: dict[str, int | None] = {
    "uvicorn": logging.WARNING,
    "uvicorn.error": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": None,
    "aiosqlite": None,
}

# Attributes every LogRecord has; anything else came in through extra=
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    Values passed with ``extra={...}`` become top-level keys, so callers can
    attach owner ids or device ids without formatting them into the message.
    Everything goes through json.dumps(), which keeps hostile header values
    on a single line.
    """

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, value) for key, value in vars(record).items() if key not in _STANDARD_ATTRS
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _make_handler(format_type: Literal["structured", "dev"]) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if format_type == "structured":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEV_FORMAT, datefmt="%H:%M:%S"))
    return handler


def setup_logging(
    level: str = "INFO",
    format_type: Literal["structured", "dev"] = "structured",
) -> None:
    """Replace the root handlers with a single stdout handler.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: 'structured' for JSON lines, 'dev' for readable text
    """
    app_level = logging.getLevelNamesMapping()[level.upper()]

    root = logging.getLogger()
    root.handlers = [_make_handler(format_type)]
    root.setLevel(app_level)

    library_default = logging.DEBUG if app_level <= logging.DEBUG else logging.WARNING
    for name, fixed_level in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(fixed_level or library_default)

    get_logger("logging").info(f"Logging configured: level={level}, format={format_type}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the service prefix."""
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")
