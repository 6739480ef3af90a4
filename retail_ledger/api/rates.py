"""
Exchange rate lookup.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends, Query

from retail_ledger.api.errors import get_transaction_service, to_http_exception
from retail_ledger.errors import LedgerError
from retail_ledger.schemas.transaction import ExchangeRateResponse
from retail_ledger.services.currency import parse_currency
from retail_ledger.services.transaction_service import TransactionService

router = APIRouter(tags=["Exchange Rates"])


@router.get("/exchange-rates", response_model=ExchangeRateResponse)
def get_exchange_rate(
    from_currency: str = Query(alias="from"),
    to_currency: str = Query(alias="to"),
    amount: Decimal | None = Query(default=None, gt=0),
    service: TransactionService = Depends(get_transaction_service),
):
    """
    Show the configured rate between two currencies and,
    when ``amount`` is given, what it converts to.
    """
    try:
        source = parse_currency(from_currency).value
        target = parse_currency(to_currency).value
        converted = None
        if amount is not None:
            converted = service.convert(amount, source, target)
        return ExchangeRateResponse(
            from_currency=source,
            to_currency=target,
            rate=service.exchange_rate(source, target),
            amount=amount,
            converted=converted,
        )
    except LedgerError as e:
        raise to_http_exception(e)
