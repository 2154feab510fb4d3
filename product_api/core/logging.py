# ==============================================================================
# LOGGING - Structured Logging Configuration
# ==============================================================================
# Configures the root logger once at startup. Modules obtain their own
# logger through logging.getLogger(__name__).
# ==============================================================================

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional


TEXT_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

# LogRecord attributes that are not user supplied extras
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
}


class JsonFormatter(logging.Formatter):
    """
    Render each record as a single JSON object per line.

    Values passed through ``extra=`` are merged into the object, so
    ``logger.info("Request completed", extra={"status_code": 200})``
    yields a ``status_code`` key alongside the message.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def setup_logging(
    level: str = "INFO",
    fmt: str = "text",
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Setup and configure the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: Output format, ``text`` or ``json``
        log_file: Optional file to write logs to

    Returns:
        Configured root logger
    """
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Clear existing handlers
    logger.handlers.clear()

    if fmt == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
