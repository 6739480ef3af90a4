"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored. An invalid currency or
status is caught at the database level, not just in Python
validation.

Account kinds and transaction kinds are also rows in the
reference tables (``account_types`` / ``transaction_types``);
the enum value is the row's ``type`` name.
"""

import enum


class Currency(str, enum.Enum):
    """The two currencies an account can hold."""
    USD = "USD"
    KHR = "KHR"


class AccountKind(str, enum.Enum):
    SAVING = "Saving"
    CHECKING = "Checking"
    FIXED = "Fixed"


class TransactionKind(str, enum.Enum):
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    TRANSFER = "Transfer"
    BILL_PAYMENT = "Bill Payment"


# Kinds that move money out of the sender account
OUTGOING_KINDS = (
    TransactionKind.WITHDRAW,
    TransactionKind.TRANSFER,
    TransactionKind.BILL_PAYMENT,
)


class TransactionStatus(str, enum.Enum):
    """Status is written once, when the journal record is created."""
    PENDING = "Pending"
    SUCCESS = "Success"
    FAILED = "Failed"
