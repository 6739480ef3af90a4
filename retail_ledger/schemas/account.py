"""
Pydantic schemas for account operations.

Business validation (supported currency, minimum deposit,
maturity rules, quotas) lives in the services so it raises
ledger errors; these schemas only fix the shape of the data.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from retail_ledger.models.enums import Currency


def _quantize(amount: Decimal, currency: Currency) -> Decimal:
    # The services package imports these schemas, so import lazily
    from retail_ledger.services.currency import CurrencyConverter

    return CurrencyConverter.quantize(amount, currency)


# --- Requests ---

class AccountOpen(BaseModel):
    """Request to open a new account with its opening deposit."""
    customer_id: int
    account_type: str = Field(min_length=1, max_length=20)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    initial_deposit: Decimal
    maturity_date: date | None = None
    pin: str | None = Field(default=None, max_length=20)


class FreezeUpdate(BaseModel):
    frozen: bool


# --- Responses ---

class AccountResponse(BaseModel):
    id: int
    account_no: str
    customer_id: int
    account_name: str
    currency: Currency
    balance: Decimal
    over_limit: Decimal
    is_frozen: bool
    is_deleted: bool
    account_type_id: int
    maturity_date: date | None
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def amounts_at_currency_scale(self) -> "AccountResponse":
        # Stored at 4 places; shown as cents or whole riel
        self.balance = _quantize(self.balance, self.currency)
        self.over_limit = _quantize(self.over_limit, self.currency)
        return self


class DailyLimitResponse(BaseModel):
    account_id: int
    currency: Currency
    daily_limit: Decimal | None
    remaining: Decimal | None
    subject_to_limit: bool

    @model_validator(mode="after")
    def amounts_at_currency_scale(self) -> "DailyLimitResponse":
        if self.daily_limit is not None:
            self.daily_limit = _quantize(self.daily_limit, self.currency)
        if self.remaining is not None:
            self.remaining = _quantize(self.remaining, self.currency)
        return self


class AccountTypesResponse(BaseModel):
    customer_id: int
    available: list[str]


class AccountLimitsResponse(BaseModel):
    customer_id: int
    limits: dict[str, str]
