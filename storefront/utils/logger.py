# ==============================================================================
# LOGGER - Logging Configuration
# ==============================================================================
# Text or JSON log output for the storefront service
# ==============================================================================

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Optional

import orjson

TEXT_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

# LogRecord attributes that are not user-supplied "extra" fields
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    Render log records as single-line JSON objects.

    Fields passed through ``extra=`` are merged into the payload, so
    ``logger.info("order placed", extra={"order_id": oid})`` becomes
    ``{"message": "order placed", "order_id": "...", ...}``.
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
        return orjson.dumps(payload, default=str).decode()


def setup_logging(
    level: str = "INFO",
    fmt: str = "text",
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: "json" for structured output, anything else for text
        log_file: Optional file to write logs to

    Returns:
        The configured root logger
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Clear existing handlers
    root.handlers.clear()

    formatter: logging.Formatter
    if fmt == "json":
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root
