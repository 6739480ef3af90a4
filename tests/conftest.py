"""
Shared test fixtures.

Every test gets its own SQLite file under pytest's tmp_path,
with the schema created and the reference rows seeded, so no
test data leaks between tests and nothing touches the real
database. Time is controlled through a fake clock.
"""

import random
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from retail_ledger.config import LedgerConfig, Settings
from retail_ledger.main import create_app
from retail_ledger.models import Customer, Database, seed_reference_data
from retail_ledger.schemas.account import AccountOpen
from retail_ledger.services.account_numbers import AccountNumberGenerator
from retail_ledger.services.transaction_service import TransactionService


class FakeClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 10, 9, 30))


@pytest.fixture
def config():
    return LedgerConfig()


@pytest.fixture
def database(tmp_path):
    """A fresh, seeded database per test."""
    db = Database(f"sqlite:///{tmp_path / 'ledger.db'}")
    db.create_all()
    with db.unit_of_work() as session:
        seed_reference_data(session)
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def customers(database):
    """Two owners: ids keyed by short name."""
    with database.unit_of_work() as session:
        jane = Customer(full_name="Jane Doe")
        james = Customer(full_name="James")
        session.add_all([jane, james])
        session.flush()
        return {"jane": jane.id, "james": james.id}


@pytest.fixture
def db_session(database):
    """A plain session for direct service testing."""
    session = database.session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def service(database, config, clock):
    return TransactionService(
        database,
        config,
        clock=clock,
        number_generator=AccountNumberGenerator(random.Random(42)),
    )


@pytest.fixture
def open_account(service, customers):
    """
    Factory: open an account through the orchestrator.

    Defaults to a USD Saving account for Jane with the minimum
    opening deposit.
    """
    def _open(
        owner="jane",
        account_type="Saving",
        currency="USD",
        deposit="5.00",
        maturity_date=None,
    ):
        return service.open_account(AccountOpen(
            customer_id=customers[owner],
            account_type=account_type,
            currency=currency,
            initial_deposit=Decimal(deposit),
            maturity_date=maturity_date,
        ))

    return _open


@pytest.fixture
def client(database, service):
    """
    Provide a test client bound to the test database.

    The app is built with the test's database and orchestrator,
    so HTTP calls and direct service calls see the same data.
    """
    app = create_app(
        settings=Settings(),
        database=database,
        transaction_service=service,
    )
    with TestClient(app) as test_client:
        yield test_client
