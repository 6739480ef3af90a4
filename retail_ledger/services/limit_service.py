"""
Daily limit tracker.

Saving accounts may send out at most a fixed amount per local
calendar day (midnight to midnight). The used amount is never
stored: it is summed from today's Success journal rows each
time, so the check always reflects what has been committed.
"""

from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Callable

from sqlalchemy.orm import Session

from retail_ledger.config import LedgerConfig
from retail_ledger.errors import LimitExceededError
from retail_ledger.models.account import Account
from retail_ledger.models.enums import AccountKind, Currency
from retail_ledger.services.currency import format_amount
from retail_ledger.services.journal_service import TransactionJournal


class DailyLimitTracker:

    def __init__(
        self,
        db: Session,
        config: LedgerConfig,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.journal = TransactionJournal(db, clock)
        self.config = config
        self.clock = clock

    @staticmethod
    def applies_to(account: Account) -> bool:
        """Only Saving accounts have a daily cap."""
        return account.kind == AccountKind.SAVING

    def today_window(self) -> tuple[datetime, datetime]:
        start = datetime.combine(self.clock().date(), time.min)
        return start, start + timedelta(days=1)

    def used_today(self, account_id: int) -> Decimal:
        start, end = self.today_window()
        return self.journal.outgoing_total(account_id, start, end)

    def remaining(self, account_id: int, currency: str) -> Decimal:
        limit = self.config.daily_limit(Currency(currency).value)
        return max(limit - self.used_today(account_id), Decimal("0"))

    def check(self, account: Account, amount: Decimal) -> None:
        """
        Raise LimitExceededError if sending ``amount`` now would take
        today's outgoing total past the cap. Non-Saving accounts pass.
        """
        if not self.applies_to(account):
            return

        currency = account.currency.value
        limit = self.config.daily_limit(currency)
        used = self.used_today(account.id)
        if used + amount > limit:
            remaining = max(limit - used, Decimal("0"))
            raise LimitExceededError(
                f"Daily transaction limit exceeded: limit "
                f"{format_amount(limit, currency)}, used today "
                f"{format_amount(used, currency)}, remaining "
                f"{format_amount(remaining, currency)}",
                remaining=remaining,
                limit=limit,
            )
