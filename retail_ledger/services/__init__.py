"""Business logic services."""

from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.services.account_service import AccountService
from retail_ledger.services.journal_service import TransactionJournal
from retail_ledger.services.limit_service import DailyLimitTracker
from retail_ledger.services.currency import CurrencyConverter
from retail_ledger.services.transaction_service import (
    TransactionService,
    TransferResult,
)

__all__ = [
    "LedgerService",
    "AccountService",
    "TransactionJournal",
    "DailyLimitTracker",
    "CurrencyConverter",
    "TransactionService",
    "TransferResult",
]
