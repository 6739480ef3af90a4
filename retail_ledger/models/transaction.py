"""
Transaction model (the journal).

One row per money-movement attempt. A Success row exists for
every balance mutation and is written in the same database
transaction as the mutation. Rows are never updated: status
is set once, at creation.

``amount`` is always positive and always in the sender
account's currency; for a cross-currency transfer the credited
amount appears in the remark.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean, DateTime, ForeignKey, Numeric, String,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from retail_ledger.models.base import Base
from retail_ledger.models.enums import TransactionKind, TransactionStatus


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    sender_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    receiver_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True, index=True
    )
    transaction_type_id: Mapped[int] = mapped_column(
        ForeignKey("transaction_types.id"), nullable=False
    )
    bill_category_id: Mapped[int | None] = mapped_column(
        ForeignKey("bill_categories.id"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    status: Mapped[TransactionStatus] = mapped_column(
        SAEnum(
            TransactionStatus,
            name="transaction_status_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    remark: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, index=True
    )

    # Relationships
    sender: Mapped["Account"] = relationship(foreign_keys=[sender_id])
    receiver: Mapped["Account | None"] = relationship(
        foreign_keys=[receiver_id]
    )
    transaction_type: Mapped["TransactionTypeRecord"] = relationship(
        lazy="joined"
    )
    bill_category: Mapped["BillCategory | None"] = relationship(lazy="joined")

    @property
    def kind(self) -> TransactionKind:
        return TransactionKind(self.transaction_type.type)

    def __repr__(self) -> str:
        return (
            f"<Transaction {self.transaction_type.type} "
            f"{self.amount} ({self.status.value})>"
        )
