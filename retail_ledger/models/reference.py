"""
Reference data tables.

Account types, transaction types and bill categories are
looked up by name and referenced by id from accounts and
transactions. Rows are seeded once at bootstrap (see the
initial migration) and soft-deleted, never removed.
"""

from sqlalchemy import Boolean, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from retail_ledger.models.base import Base
from retail_ledger.models.enums import AccountKind, TransactionKind


DEFAULT_BILL_CATEGORIES = [
    ("Electricity", "Electricity bill payments"),
    ("Water", "Water bill payments"),
    ("Internet", "Internet service bill payments"),
    ("Phone", "Phone service bill payments"),
    ("Netflix", "Netflix subscription payments"),
    ("Disney+", "Disney+ subscription payments"),
    ("Spotify", "Spotify subscription payments"),
    ("Insurance", "Insurance premium payments"),
    ("Loan Payment", "Loan repayment"),
    ("Credit Card", "Credit card bill payments"),
]


class AccountTypeRecord(Base):
    __tablename__ = "account_types"

    id: Mapped[int] = mapped_column(primary_key=True)
    type: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    @property
    def kind(self) -> AccountKind:
        return AccountKind(self.type)

    def __repr__(self) -> str:
        return f"<AccountType {self.type}>"


class TransactionTypeRecord(Base):
    __tablename__ = "transaction_types"

    id: Mapped[int] = mapped_column(primary_key=True)
    type: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    def __repr__(self) -> str:
        return f"<TransactionType {self.type}>"


class BillCategory(Base):
    __tablename__ = "bill_categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    category_name: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False
    )
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    def __repr__(self) -> str:
        return f"<BillCategory {self.category_name}>"


def seed_reference_data(db: Session) -> None:
    """
    Insert any missing reference rows. Idempotent.

    Production databases get these rows from the initial
    migration; tests and local setups call this after
    ``Database.create_all()``.
    """
    existing_account_types = set(
        db.execute(select(AccountTypeRecord.type)).scalars().all()
    )
    for kind in AccountKind:
        if kind.value not in existing_account_types:
            db.add(AccountTypeRecord(type=kind.value))

    existing_txn_types = set(
        db.execute(select(TransactionTypeRecord.type)).scalars().all()
    )
    for kind in TransactionKind:
        if kind.value not in existing_txn_types:
            db.add(TransactionTypeRecord(type=kind.value))

    existing_categories = set(
        db.execute(select(BillCategory.category_name)).scalars().all()
    )
    for name, description in DEFAULT_BILL_CATEGORIES:
        if name not in existing_categories:
            db.add(BillCategory(category_name=name, description=description))

    db.flush()
