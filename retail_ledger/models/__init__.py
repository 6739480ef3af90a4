"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from retail_ledger.models.base import Base, Database
from retail_ledger.models.enums import (
    Currency,
    AccountKind,
    TransactionKind,
    TransactionStatus,
)
from retail_ledger.models.reference import (
    AccountTypeRecord,
    TransactionTypeRecord,
    BillCategory,
    seed_reference_data,
)
from retail_ledger.models.customer import Customer
from retail_ledger.models.account import Account
from retail_ledger.models.transaction import Transaction

__all__ = [
    "Base",
    "Database",
    "Currency",
    "AccountKind",
    "TransactionKind",
    "TransactionStatus",
    "AccountTypeRecord",
    "TransactionTypeRecord",
    "BillCategory",
    "seed_reference_data",
    "Customer",
    "Account",
    "Transaction",
]
