"""
Pydantic schemas for transaction operations.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from retail_ledger.models.enums import TransactionKind, TransactionStatus


class DepositRequest(BaseModel):
    account_id: int
    amount: Decimal = Field(gt=0)
    remark: str | None = Field(default=None, max_length=255)
    pin: str | None = Field(default=None, max_length=20)


class WithdrawalRequest(BaseModel):
    account_id: int
    amount: Decimal = Field(gt=0)
    remark: str | None = Field(default=None, max_length=255)
    pin: str | None = Field(default=None, max_length=20)


class TransferRequest(BaseModel):
    """
    ``destination`` is an account id (int) or a 9-digit account
    number (str, spaces allowed).
    """
    source_account_id: int
    destination: int | str
    amount: Decimal = Field(gt=0)
    remark: str | None = Field(default=None, max_length=255)
    pin: str | None = Field(default=None, max_length=20)


class BillPaymentRequest(BaseModel):
    account_id: int
    category: str = Field(min_length=1, max_length=100)
    amount: Decimal = Field(gt=0)
    remark: str | None = Field(default=None, max_length=255)
    pin: str | None = Field(default=None, max_length=20)


class TransactionResponse(BaseModel):
    id: int
    sender_id: int
    receiver_id: int | None
    transaction_type_id: int
    kind: TransactionKind
    bill_category_id: int | None
    amount: Decimal
    status: TransactionStatus
    remark: str | None
    is_deleted: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class TransferResponse(BaseModel):
    transaction: TransactionResponse
    credited_amount: Decimal
    sender_balance: Decimal
    receiver_balance: Decimal
    exchange_rate: str
    internal: bool


class ExchangeRateResponse(BaseModel):
    from_currency: str
    to_currency: str
    rate: str
    amount: Decimal | None = None
    converted: Decimal | None = None
