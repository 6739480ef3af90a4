"""
Retail Ledger Engine, FastAPI application.

This is the entry point for the application. ``create_app``
builds the storage handle and the orchestrator once and keeps
them on ``app.state``; tests call it with their own database.
"""

import logging
import random

from fastapi import FastAPI

from retail_ledger.config import Settings, get_settings
from retail_ledger.logging_config import setup_logging
from retail_ledger.models.base import Database
from retail_ledger.services.account_numbers import AccountNumberGenerator
from retail_ledger.services.transaction_service import TransactionService
from retail_ledger.api.health import router as health_router
from retail_ledger.api.accounts import router as accounts_router
from retail_ledger.api.transactions import router as transactions_router
from retail_ledger.api.rates import router as rates_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    transaction_service: TransactionService | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    database = database or Database(settings.DATABASE_URL, echo=settings.DEBUG)
    if transaction_service is None:
        config = settings.ledger_config()
        transaction_service = TransactionService(
            database,
            config,
            number_generator=AccountNumberGenerator(
                random.Random(config.account_number_seed),
                max_attempts=config.account_number_max_attempts,
            ),
        )

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Multi-currency retail account ledger",
    )
    app.state.database = database
    app.state.transaction_service = transaction_service

    # Register routers
    app.include_router(health_router)
    app.include_router(accounts_router)
    app.include_router(transactions_router)
    app.include_router(rates_router)

    logger.info(
        "Application configured",
        extra={"operation": "startup"},
    )
    return app


app = create_app()
