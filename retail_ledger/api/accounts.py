"""
Account API endpoints.
"""

from fastapi import APIRouter, Depends

from retail_ledger.api.errors import get_transaction_service, to_http_exception
from retail_ledger.errors import LedgerError
from retail_ledger.schemas.account import (
    AccountOpen,
    AccountResponse,
    FreezeUpdate,
    DailyLimitResponse,
    AccountTypesResponse,
    AccountLimitsResponse,
)
from retail_ledger.services.transaction_service import TransactionService

router = APIRouter(tags=["Accounts"])


@router.post("/accounts", response_model=AccountResponse, status_code=201)
def open_account(
    request: AccountOpen,
    service: TransactionService = Depends(get_transaction_service),
):
    """
    Open a new account.

    The opening deposit is applied and journaled together with
    the account, so the response already shows the balance.
    """
    try:
        return service.open_account(request)
    except LedgerError as e:
        raise to_http_exception(e)


@router.get("/accounts/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    service: TransactionService = Depends(get_transaction_service),
):
    """Get account details."""
    try:
        return service.get_account(account_id)
    except LedgerError as e:
        raise to_http_exception(e)


@router.get("/accounts/by-number/{account_no}", response_model=AccountResponse)
def get_account_by_number(
    account_no: str,
    service: TransactionService = Depends(get_transaction_service),
):
    try:
        return service.get_account(account_no)
    except LedgerError as e:
        raise to_http_exception(e)


@router.patch("/accounts/{account_no}/freeze", response_model=AccountResponse)
def set_frozen(
    account_no: str,
    request: FreezeUpdate,
    service: TransactionService = Depends(get_transaction_service),
):
    """Freeze or unfreeze an account. Deleted accounts are rejected."""
    try:
        return service.set_frozen(account_no, request.frozen)
    except LedgerError as e:
        raise to_http_exception(e)


@router.delete("/accounts/{account_no}", response_model=AccountResponse)
def delete_account(
    account_no: str,
    service: TransactionService = Depends(get_transaction_service),
):
    """Soft-delete an account. The row and its history stay."""
    try:
        return service.soft_delete(account_no)
    except LedgerError as e:
        raise to_http_exception(e)


@router.get("/accounts/{account_id}/daily-limit", response_model=DailyLimitResponse)
def get_daily_limit(
    account_id: int,
    service: TransactionService = Depends(get_transaction_service),
):
    """
    Remaining outgoing allowance for today.

    Only Saving accounts have a cap; for other types both
    amounts are null.
    """
    try:
        account = service.get_account(account_id)
        remaining = service.remaining_daily_limit(account_id)
    except LedgerError as e:
        raise to_http_exception(e)

    subject = remaining is not None
    return DailyLimitResponse(
        account_id=account.id,
        currency=account.currency,
        daily_limit=service.daily_limit(account.currency.value) if subject else None,
        remaining=remaining,
        subject_to_limit=subject,
    )


@router.get("/customers/{customer_id}/accounts", response_model=list[AccountResponse])
def list_customer_accounts(
    customer_id: int,
    active_only: bool = False,
    service: TransactionService = Depends(get_transaction_service),
):
    return service.list_accounts(customer_id, active_only=active_only)


@router.get(
    "/customers/{customer_id}/account-types",
    response_model=AccountTypesResponse,
)
def list_available_account_types(
    customer_id: int,
    service: TransactionService = Depends(get_transaction_service),
):
    """Account types the customer can still open."""
    return AccountTypesResponse(
        customer_id=customer_id,
        available=service.available_account_types(customer_id),
    )


@router.get(
    "/customers/{customer_id}/account-limits",
    response_model=AccountLimitsResponse,
)
def get_account_limits(
    customer_id: int,
    service: TransactionService = Depends(get_transaction_service),
):
    return AccountLimitsResponse(
        customer_id=customer_id,
        limits=service.account_limits_summary(customer_id),
    )
