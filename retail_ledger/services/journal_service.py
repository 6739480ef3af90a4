"""
Transaction journal: the append-only record of money movement.

Rows are inserted with their final status and never updated
or removed. Success rows are written by the orchestrator in
the same unit of work as the balance change they describe;
Failed rows are written afterwards, in their own unit of work,
and carry no balance effect.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from retail_ledger.errors import NotFoundError
from retail_ledger.models.account import Account
from retail_ledger.models.enums import (
    OUTGOING_KINDS,
    TransactionKind,
    TransactionStatus,
)
from retail_ledger.models.reference import BillCategory, TransactionTypeRecord
from retail_ledger.models.transaction import Transaction

logger = logging.getLogger(__name__)


class TransactionJournal:

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self.clock = clock

    def transaction_type(self, kind: TransactionKind) -> TransactionTypeRecord:
        record = self.db.execute(
            select(TransactionTypeRecord).where(
                TransactionTypeRecord.type == kind.value,
                TransactionTypeRecord.is_deleted.is_(False),
            )
        ).scalar_one_or_none()
        if not record:
            raise NotFoundError(f"Transaction type '{kind.value}' not found")
        return record

    def bill_category(self, name: str) -> BillCategory:
        category = self.db.execute(
            select(BillCategory).where(
                func.lower(BillCategory.category_name) == name.strip().lower(),
                BillCategory.is_deleted.is_(False),
            )
        ).scalar_one_or_none()
        if not category:
            raise NotFoundError(f"Bill category '{name}' not found")
        return category

    def record(
        self,
        kind: TransactionKind,
        sender_id: int,
        amount: Decimal,
        status: TransactionStatus = TransactionStatus.SUCCESS,
        receiver_id: int | None = None,
        remark: str | None = None,
        bill_category_id: int | None = None,
    ) -> Transaction:
        """Append one journal row. The status given here is final."""
        transaction_type = self.transaction_type(kind)
        bill_category = None
        if bill_category_id is not None:
            bill_category = self.db.get(BillCategory, bill_category_id)

        # Relationships are set explicitly so the row stays readable
        # after the unit of work closes its session
        txn = Transaction(
            sender_id=sender_id,
            receiver_id=receiver_id,
            transaction_type=transaction_type,
            bill_category=bill_category,
            amount=amount,
            status=status,
            remark=remark,
            created_at=self.clock(),
        )
        self.db.add(txn)
        self.db.flush()

        logger.info(
            "Journaled %s %s",
            kind.value,
            status.value,
            extra={
                "operation": "journal",
                "account_id": sender_id,
                "counterparty_id": receiver_id,
                "transaction_id": txn.id,
                "amount": amount,
            },
        )
        return txn

    def get_transaction(self, transaction_id: int) -> Transaction:
        txn = self.db.get(Transaction, transaction_id)
        if not txn or txn.is_deleted:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        return txn

    def list_for_account(self, account_id: int) -> list[Transaction]:
        """Every transaction where the account is sender or receiver, newest first."""
        txns = self.db.execute(
            select(Transaction)
            .where(
                or_(
                    Transaction.sender_id == account_id,
                    Transaction.receiver_id == account_id,
                ),
                Transaction.is_deleted.is_(False),
            )
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        ).scalars().all()
        return list(txns)

    def list_for_owner(self, customer_id: int) -> list[Transaction]:
        """Transactions touching any account of the owner, newest first."""
        owned = select(Account.id).where(Account.customer_id == customer_id)
        txns = self.db.execute(
            select(Transaction)
            .where(
                or_(
                    Transaction.sender_id.in_(owned),
                    Transaction.receiver_id.in_(owned),
                ),
                Transaction.is_deleted.is_(False),
            )
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        ).scalars().all()
        return list(txns)

    def outgoing_total(
        self, account_id: int, start: datetime, end: datetime
    ) -> Decimal:
        """
        Sum of Success outgoing amounts sent by the account in
        [start, end). Deposits name the credited account as sender,
        so only outgoing kinds are counted.
        """
        total = self.db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0))
            .select_from(Transaction)
            .join(
                TransactionTypeRecord,
                Transaction.transaction_type_id == TransactionTypeRecord.id,
            )
            .where(
                Transaction.sender_id == account_id,
                Transaction.status == TransactionStatus.SUCCESS,
                Transaction.is_deleted.is_(False),
                TransactionTypeRecord.type.in_([k.value for k in OUTGOING_KINDS]),
                Transaction.created_at >= start,
                Transaction.created_at < end,
            )
        ).scalar()
        return Decimal(str(total))
