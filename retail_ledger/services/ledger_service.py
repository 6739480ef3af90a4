"""
Ledger service: the only writer of account balances.

This service enforces the fundamental rules:
1. A balance changes only by a signed delta applied here
2. Frozen or deleted accounts never change balance
3. A debit may not take the balance below -over_limit
4. The read and the write of a balance are one atomic step

No other service writes ``Account.balance``. The caller owns
the transaction boundary: a delta is only durable once the
orchestrator's unit of work commits, together with its
journal record.
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from retail_ledger.errors import (
    InsufficientBalanceError,
    NotFoundError,
    StateError,
)
from retail_ledger.models.account import Account
from retail_ledger.services.account_numbers import format_account_number

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Balance mutations for one unit of work.

    The service takes a database session as a constructor
    argument. The caller holds the per-account lock and decides
    when to commit or roll back.
    """

    def __init__(self, db: Session):
        self.db = db

    def lock_account(self, account_id: int) -> Account:
        """
        Load an account row for update.

        On backends with row locks this is SELECT ... FOR UPDATE;
        populate_existing refreshes a row already in the session so
        the balance we check is the one we will overwrite.
        """
        account = self.db.execute(
            select(Account)
            .where(Account.id == account_id)
            .with_for_update(of=Account)
            .execution_options(populate_existing=True)
        ).unique().scalar_one_or_none()

        if not account:
            raise NotFoundError(f"Account {account_id} not found")
        return account

    def apply_delta(self, account_id: int, signed_amount: Decimal) -> Decimal:
        """
        Add ``signed_amount`` to the balance and return the new balance.

        The UPDATE carries the row version read above; if another
        writer got there first, flush raises StaleDataError and the
        unit of work turns it into a retryable conflict.
        """
        account = self.lock_account(account_id)
        number = format_account_number(account.account_no)

        if account.is_deleted:
            raise StateError(f"Account {number} is deleted")
        if account.is_frozen:
            raise StateError(f"Account {number} is frozen")

        new_balance = account.balance + signed_amount
        if signed_amount < 0 and new_balance < -account.over_limit:
            raise InsufficientBalanceError(
                f"Insufficient balance: available={account.available_balance}, "
                f"requested={-signed_amount}",
                available=account.available_balance,
                requested=-signed_amount,
            )

        account.balance = new_balance
        self.db.flush()

        logger.debug(
            "Applied delta %s",
            signed_amount,
            extra={"operation": "apply_delta", "account_id": account_id},
        )
        return new_balance
