"""
Tests for the LedgerService, the only writer of balances.

Tests cover:
- Credits and debits by signed delta
- Overdraft protection and the over_limit allowance
- Frozen and deleted accounts refusing any balance change
"""

import random
from decimal import Decimal

import pytest

from retail_ledger.errors import (
    InsufficientBalanceError,
    NotFoundError,
    StateError,
)
from retail_ledger.models.account import Account
from retail_ledger.schemas.account import AccountOpen
from retail_ledger.services.account_numbers import AccountNumberGenerator
from retail_ledger.services.account_service import AccountService
from retail_ledger.services.ledger_service import LedgerService


@pytest.fixture
def account(db_session, customers, config, clock):
    """A zero-balance USD Checking account."""
    service = AccountService(
        db_session,
        config,
        number_generator=AccountNumberGenerator(random.Random(11)),
        clock=clock,
    )
    return service.open_account(AccountOpen(
        customer_id=customers["jane"],
        account_type="Checking",
        currency="USD",
        initial_deposit=Decimal("5.00"),
    ))


class TestApplyDelta:

    def test_credit_increases_balance(self, db_session, account):
        ledger = LedgerService(db_session)
        assert ledger.apply_delta(account.id, Decimal("100.00")) == Decimal("100.00")
        assert db_session.get(Account, account.id).balance == Decimal("100.00")

    def test_debit_decreases_balance(self, db_session, account):
        ledger = LedgerService(db_session)
        ledger.apply_delta(account.id, Decimal("100.00"))
        assert ledger.apply_delta(account.id, Decimal("-30.25")) == Decimal("69.75")

    def test_overdraft_rejected_and_balance_unchanged(self, db_session, account):
        ledger = LedgerService(db_session)
        ledger.apply_delta(account.id, Decimal("10.00"))

        with pytest.raises(InsufficientBalanceError) as exc:
            ledger.apply_delta(account.id, Decimal("-10.01"))

        assert exc.value.available == Decimal("10.00")
        assert exc.value.requested == Decimal("10.01")
        assert db_session.get(Account, account.id).balance == Decimal("10.00")

    def test_debit_to_exactly_zero_allowed(self, db_session, account):
        ledger = LedgerService(db_session)
        ledger.apply_delta(account.id, Decimal("10.00"))
        assert ledger.apply_delta(account.id, Decimal("-10.00")) == Decimal("0")

    def test_over_limit_allows_negative_balance(self, db_session, account):
        account.over_limit = Decimal("50.00")
        db_session.flush()
        ledger = LedgerService(db_session)

        assert ledger.apply_delta(account.id, Decimal("-50.00")) == Decimal("-50.00")
        with pytest.raises(InsufficientBalanceError):
            ledger.apply_delta(account.id, Decimal("-0.01"))

    def test_frozen_account_rejected(self, db_session, account):
        account.is_frozen = True
        db_session.flush()
        with pytest.raises(StateError, match="frozen"):
            LedgerService(db_session).apply_delta(account.id, Decimal("1.00"))

    def test_deleted_account_rejected(self, db_session, account):
        account.is_deleted = True
        db_session.flush()
        with pytest.raises(StateError, match="deleted"):
            LedgerService(db_session).apply_delta(account.id, Decimal("1.00"))

    def test_unknown_account(self, db_session):
        with pytest.raises(NotFoundError):
            LedgerService(db_session).apply_delta(999, Decimal("1.00"))

    def test_every_write_bumps_the_version(self, db_session, account):
        before = account.version
        LedgerService(db_session).apply_delta(account.id, Decimal("1.00"))
        assert account.version == before + 1
