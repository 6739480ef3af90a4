"""
Structured logging configuration.

Every module logs through ``logging.getLogger(__name__)``.
This module only decides how records are rendered: one JSON
object per line, so ledger events can be shipped to a log
pipeline and searched by account or operation.
"""

import json
import logging
from datetime import datetime, timezone

ROOT_LOGGER = "retail_ledger"

# Attributes passed through ``extra=`` that end up in the JSON body
_CONTEXT_FIELDS = (
    "operation",
    "account_id",
    "counterparty_id",
    "transaction_id",
    "amount",
    "currency",
    "state",
    "attempt",
)


class JSONFormatter(logging.Formatter):
    """Render a log record as a single JSON line."""

    def format(self, record):
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Install the JSON handler on the package logger.

    Safe to call more than once: existing handlers are replaced,
    not duplicated.
    """
    logger = logging.getLogger(ROOT_LOGGER)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    return logger
