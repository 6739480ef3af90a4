"""
Translate ledger errors into HTTP errors.

Each endpoint catches LedgerError and raises the result of
``to_http_exception`` so the client always gets a status code
that matches the failure and a body naming its kind.
"""

from fastapi import HTTPException, Request

from retail_ledger.errors import (
    AuthorizationError,
    DeadlineExceededError,
    ExhaustedRetryError,
    InsufficientBalanceError,
    LedgerError,
    LimitExceededError,
    NotFoundError,
    PersistenceError,
    StateError,
    ValidationError,
)
from retail_ledger.services.transaction_service import TransactionService

STATUS_BY_ERROR = [
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (StateError, 409),
    (LimitExceededError, 422),
    (InsufficientBalanceError, 422),
    (DeadlineExceededError, 504),
    (ExhaustedRetryError, 503),
    (PersistenceError, 503),
]


def to_http_exception(error: LedgerError) -> HTTPException:
    status_code = 400
    for error_class, code in STATUS_BY_ERROR:
        if isinstance(error, error_class):
            status_code = code
            break

    detail = {"message": error.message, "kind": error.kind}
    if isinstance(error, LimitExceededError) and error.remaining is not None:
        detail["remaining"] = str(error.remaining)
    return HTTPException(status_code=status_code, detail=detail)


def get_transaction_service(request: Request) -> TransactionService:
    """FastAPI dependency: the orchestrator built at startup."""
    return request.app.state.transaction_service
