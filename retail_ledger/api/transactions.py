"""
Transaction API endpoints.
"""

from fastapi import APIRouter, Depends

from retail_ledger.api.errors import get_transaction_service, to_http_exception
from retail_ledger.errors import LedgerError
from retail_ledger.services.transaction_service import TransactionService
from retail_ledger.schemas.transaction import (
    BillPaymentRequest,
    DepositRequest,
    WithdrawalRequest,
    TransferRequest,
    TransferResponse,
    TransactionResponse,
)

router = APIRouter(tags=["Transactions"])


@router.post("/transactions/deposit", response_model=TransactionResponse, status_code=201)
def deposit(
    request: DepositRequest,
    service: TransactionService = Depends(get_transaction_service),
):
    """Deposit money into an account."""
    try:
        return service.deposit(
            request.account_id, request.amount, request.remark, request.pin
        )
    except LedgerError as e:
        raise to_http_exception(e)


@router.post("/transactions/withdraw", response_model=TransactionResponse, status_code=201)
def withdraw(
    request: WithdrawalRequest,
    service: TransactionService = Depends(get_transaction_service),
):
    """Withdraw money from an account."""
    try:
        return service.withdraw(
            request.account_id, request.amount, request.remark, request.pin
        )
    except LedgerError as e:
        raise to_http_exception(e)


@router.post("/transactions/transfer", response_model=TransferResponse, status_code=201)
def transfer(
    request: TransferRequest,
    service: TransactionService = Depends(get_transaction_service),
):
    """
    Transfer money between two accounts.

    The destination can be an account id or an account number.
    Cross-currency transfers credit the converted amount.
    """
    try:
        result = service.transfer(
            request.source_account_id,
            request.destination,
            request.amount,
            request.remark,
            request.pin,
        )
    except LedgerError as e:
        raise to_http_exception(e)

    return TransferResponse(
        transaction=TransactionResponse.model_validate(result.transaction),
        credited_amount=result.credited_amount,
        sender_balance=result.sender_balance,
        receiver_balance=result.receiver_balance,
        exchange_rate=result.exchange_rate,
        internal=result.internal,
    )


@router.post("/transactions/bill-payment", response_model=TransactionResponse, status_code=201)
def pay_bill(
    request: BillPaymentRequest,
    service: TransactionService = Depends(get_transaction_service),
):
    """Pay a bill from an account."""
    try:
        return service.pay_bill(
            request.account_id,
            request.category,
            request.amount,
            request.remark,
            request.pin,
        )
    except LedgerError as e:
        raise to_http_exception(e)


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: int,
    service: TransactionService = Depends(get_transaction_service),
):
    """Get transaction details."""
    try:
        return service.get_transaction(transaction_id)
    except LedgerError as e:
        raise to_http_exception(e)


@router.get(
    "/accounts/{account_id}/transactions",
    response_model=list[TransactionResponse],
)
def list_account_transactions(
    account_id: int,
    service: TransactionService = Depends(get_transaction_service),
):
    """History of one account, newest first, Failed attempts included."""
    try:
        return service.list_transactions(account_id=account_id)
    except LedgerError as e:
        raise to_http_exception(e)


@router.get(
    "/customers/{customer_id}/transactions",
    response_model=list[TransactionResponse],
)
def list_customer_transactions(
    customer_id: int,
    service: TransactionService = Depends(get_transaction_service),
):
    return service.list_transactions(customer_id=customer_id)
