"""
Customer account model.

The account row holds the authoritative balance. Only the
LedgerService writes ``balance``; only the AccountService
writes metadata (name, type, freeze and delete flags).

``version`` is SQLAlchemy's optimistic-concurrency counter:
every UPDATE checks the version it read, so two writers that
raced past the in-process lock still cannot both win.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from retail_ledger.models.base import Base
from retail_ledger.models.enums import AccountKind, Currency


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_no: Mapped[str] = mapped_column(
        String(9), unique=True, nullable=False, index=True
    )
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id"), nullable=False, index=True
    )
    account_name: Mapped[str] = mapped_column(String(255), nullable=False)
    currency: Mapped[Currency] = mapped_column(
        SAEnum(Currency, name="currency_enum", create_constraint=True),
        nullable=False,
    )
    balance: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    over_limit: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    is_frozen: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    account_type_id: Mapped[int] = mapped_column(
        ForeignKey("account_types.id"), nullable=False, index=True
    )
    maturity_date: Mapped[date | None] = mapped_column(
        Date, nullable=True, default=None
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    customer: Mapped["Customer"] = relationship(back_populates="accounts")
    account_type: Mapped["AccountTypeRecord"] = relationship(lazy="joined")

    @property
    def kind(self) -> AccountKind:
        return self.account_type.kind

    @property
    def is_active(self) -> bool:
        """Active means not frozen and not deleted."""
        return not self.is_frozen and not self.is_deleted

    @property
    def status(self) -> str:
        if self.is_deleted:
            return "Deleted"
        if self.is_frozen:
            return "Frozen"
        return "Active"

    def is_matured(self, today: date) -> bool:
        """
        A Fixed account is matured on and after its maturity date.
        Accounts without a maturity date are always matured.
        """
        return self.maturity_date is None or self.maturity_date <= today

    @property
    def available_balance(self) -> Decimal:
        return self.balance + self.over_limit

    def __repr__(self) -> str:
        return (
            f"<Account {self.account_no} "
            f"{self.currency.value} ({self.status})>"
        )
