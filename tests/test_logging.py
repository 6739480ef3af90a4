"""
Tests for the JSON log formatter.
"""

import json
import logging
from decimal import Decimal

from retail_ledger.logging_config import ROOT_LOGGER, JSONFormatter, setup_logging


def make_record(**extra):
    record = logging.LogRecord(
        name="retail_ledger.services.transaction_service",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="%s rejected",
        args=("withdraw",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formats_one_json_object():
    line = JSONFormatter().format(make_record(operation="withdraw", account_id=7))
    entry = json.loads(line)

    assert entry["level"] == "WARNING"
    assert entry["message"] == "withdraw rejected"
    assert entry["operation"] == "withdraw"
    assert entry["account_id"] == 7
    assert "transaction_id" not in entry


def test_decimal_context_is_rendered_as_text():
    entry = json.loads(JSONFormatter().format(make_record(amount=Decimal("1.50"))))
    assert entry["amount"] == "1.50"


def test_setup_logging_does_not_stack_handlers():
    setup_logging("DEBUG")
    logger = setup_logging("INFO")

    assert logger.name == ROOT_LOGGER
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO
