"""
Tests for the AccountService: opening rules, naming, quotas,
freeze and soft delete, and the directory queries.

The service never applies the opening deposit itself, so
every account opened here has a zero balance.
"""

import random
from datetime import date
from decimal import Decimal

import pytest

from retail_ledger.errors import (
    LimitExceededError,
    NotFoundError,
    StateError,
    ValidationError,
)
from retail_ledger.models.enums import AccountKind, Currency
from retail_ledger.schemas.account import AccountOpen
from retail_ledger.services.account_numbers import (
    AccountNumberGenerator,
    is_valid_account_number,
)
from retail_ledger.services.account_service import (
    AccountService,
    account_display_name,
    add_years,
    parse_account_kind,
)


@pytest.fixture
def accounts(db_session, config, clock):
    return AccountService(
        db_session,
        config,
        number_generator=AccountNumberGenerator(random.Random(7)),
        clock=clock,
    )


def request(customer_id, account_type="Saving", currency="USD", deposit="5.00", **kwargs):
    return AccountOpen(
        customer_id=customer_id,
        account_type=account_type,
        currency=currency,
        initial_deposit=Decimal(deposit),
        **kwargs,
    )


class TestOpenAccount:

    def test_open_saving_account(self, accounts, customers):
        account = accounts.open_account(request(customers["jane"]))

        assert account.id is not None
        assert is_valid_account_number(account.account_no)
        assert account.account_name == "Jane Doe's Saving Account (USD)"
        assert account.currency == Currency.USD
        assert account.kind == AccountKind.SAVING
        assert account.balance == Decimal("0")
        assert account.status == "Active"
        assert account.maturity_date is None

    def test_name_ending_in_s_gets_bare_apostrophe(self, accounts, customers):
        account = accounts.open_account(
            request(customers["james"], "Checking", "KHR", "20000")
        )
        assert account.account_name == "James' Checking Account (KHR)"

    def test_type_name_is_case_insensitive(self, accounts, customers):
        account = accounts.open_account(request(customers["jane"], "checking"))
        assert account.kind == AccountKind.CHECKING

    def test_unknown_customer_rejected(self, accounts, customers):
        with pytest.raises(NotFoundError, match="Customer 999"):
            accounts.open_account(request(999))

    def test_unknown_type_rejected(self, accounts, customers):
        with pytest.raises(NotFoundError, match="Account type"):
            accounts.open_account(request(customers["jane"], "Gold"))

    def test_unsupported_currency_rejected(self, accounts, customers):
        with pytest.raises(ValidationError, match="Only USD and KHR"):
            accounts.open_account(request(customers["jane"], currency="EUR"))

    @pytest.mark.parametrize("currency,deposit", [("USD", "4.99"), ("KHR", "19999")])
    def test_deposit_below_minimum_rejected(self, accounts, customers, currency, deposit):
        with pytest.raises(ValidationError, match="Minimum opening deposit"):
            accounts.open_account(request(customers["jane"], currency=currency, deposit=deposit))

    def test_minimum_deposit_accepted(self, accounts, customers):
        account = accounts.open_account(
            request(customers["jane"], currency="KHR", deposit="20000")
        )
        assert account.currency == Currency.KHR


class TestMaturity:

    def test_fixed_requires_maturity_date(self, accounts, customers):
        with pytest.raises(ValidationError, match="require a maturity date"):
            accounts.open_account(request(customers["jane"], "Fixed"))

    def test_maturity_must_be_in_the_future(self, accounts, customers, clock):
        with pytest.raises(ValidationError, match="in the future"):
            accounts.open_account(request(
                customers["jane"], "Fixed", maturity_date=clock().date(),
            ))

    def test_maturity_within_max_term(self, accounts, customers):
        account = accounts.open_account(request(
            customers["jane"], "Fixed", maturity_date=date(2036, 3, 10),
        ))
        assert account.maturity_date == date(2036, 3, 10)

    def test_maturity_beyond_max_term_rejected(self, accounts, customers):
        with pytest.raises(ValidationError, match="10 years"):
            accounts.open_account(request(
                customers["jane"], "Fixed", maturity_date=date(2036, 3, 11),
            ))

    def test_maturity_only_for_fixed(self, accounts, customers):
        with pytest.raises(ValidationError, match="only allowed for Fixed"):
            accounts.open_account(request(
                customers["jane"], maturity_date=date(2027, 1, 1),
            ))

    def test_add_years_handles_leap_day(self):
        assert add_years(date(2028, 2, 29), 1) == date(2029, 2, 28)


class TestQuota:

    def test_second_saving_in_same_currency_rejected(self, accounts, customers):
        accounts.open_account(request(customers["jane"]))
        with pytest.raises(LimitExceededError) as exc:
            accounts.open_account(request(customers["jane"]))
        assert exc.value.limit == 1

    def test_saving_quota_is_per_currency(self, accounts, customers):
        accounts.open_account(request(customers["jane"]))
        account = accounts.open_account(
            request(customers["jane"], currency="KHR", deposit="20000")
        )
        assert account.currency == Currency.KHR

    def test_checking_quota_spans_currencies(self, accounts, customers):
        accounts.open_account(request(customers["jane"], "Checking"))
        with pytest.raises(LimitExceededError):
            accounts.open_account(
                request(customers["jane"], "Checking", "KHR", "20000")
            )

    def test_deleted_accounts_free_the_quota(self, accounts, customers):
        first = accounts.open_account(request(customers["jane"]))
        accounts.soft_delete(first.account_no)
        second = accounts.open_account(request(customers["jane"]))
        assert second.account_no != first.account_no

    def test_quota_comes_from_config(self, db_session, customers, config, clock):
        service = AccountService(
            db_session,
            config.model_copy(update={"quota_checking": 2}),
            clock=clock,
        )
        service.open_account(request(customers["jane"], "Checking"))
        service.open_account(request(customers["jane"], "Checking"))
        assert service.count_accounts(customers["jane"], AccountKind.CHECKING) == 2


class TestMetadata:

    def test_freeze_and_unfreeze(self, accounts, customers):
        account = accounts.open_account(request(customers["jane"]))

        frozen = accounts.set_frozen(account.account_no, True)
        assert frozen.is_frozen is True
        assert frozen.status == "Frozen"

        unfrozen = accounts.set_frozen(account.account_no, False)
        assert unfrozen.is_frozen is False

    def test_freeze_deleted_account_rejected(self, accounts, customers):
        account = accounts.open_account(request(customers["jane"]))
        accounts.soft_delete(account.account_no)
        with pytest.raises(StateError, match="deleted"):
            accounts.set_frozen(account.account_no, True)

    def test_soft_delete_twice_rejected(self, accounts, customers):
        account = accounts.open_account(request(customers["jane"]))
        accounts.soft_delete(account.account_no)
        with pytest.raises(StateError, match="already deleted"):
            accounts.soft_delete(account.account_no)


class TestQueries:

    def test_lookup_by_spaced_number(self, accounts, customers):
        account = accounts.open_account(request(customers["jane"]))
        no = account.account_no
        spaced = f"{no[0:3]} {no[3:6]} {no[6:9]}"
        assert accounts.get_by_number(spaced).id == account.id

    def test_malformed_number_rejected(self, accounts):
        with pytest.raises(ValidationError):
            accounts.get_by_number("12ab")

    def test_unknown_number_not_found(self, accounts):
        with pytest.raises(NotFoundError):
            accounts.get_by_number("123456789")

    def test_deleted_account_hidden_unless_asked(self, accounts, customers):
        account = accounts.open_account(request(customers["jane"]))
        accounts.soft_delete(account.account_no)

        with pytest.raises(NotFoundError):
            accounts.get_account(account.id)
        assert accounts.get_account(account.id, include_deleted=True).is_deleted

    def test_existing_numbers_include_deleted(self, accounts, customers):
        account = accounts.open_account(request(customers["jane"]))
        accounts.soft_delete(account.account_no)
        assert account.account_no in accounts.existing_account_numbers()

    def test_list_by_owner_and_active_only(self, accounts, customers):
        saving = accounts.open_account(request(customers["jane"]))
        checking = accounts.open_account(request(customers["jane"], "Checking"))
        accounts.open_account(request(customers["james"]))
        accounts.set_frozen(saving.account_no, True)

        owned = accounts.list_by_owner(customers["jane"])
        assert {a.id for a in owned} == {saving.id, checking.id}
        assert [a.id for a in accounts.list_active_by_owner(customers["jane"])] == [checking.id]

    def test_available_types(self, accounts, customers):
        accounts.open_account(request(customers["jane"]))
        assert accounts.available_types_for(customers["jane"]) == [
            "Saving Account (KHR)",
            "Checking Account",
            "Fixed Account",
        ]

    def test_limits_summary(self, accounts, customers):
        accounts.open_account(request(customers["jane"], "Checking"))
        assert accounts.limits_summary_for(customers["jane"]) == {
            "Saving (USD)": "0/1",
            "Saving (KHR)": "0/1",
            "Checking": "1/1",
            "Fixed": "0/1",
        }


class TestHelpers:

    def test_parse_account_kind(self):
        assert parse_account_kind(" FIXED ") == AccountKind.FIXED

    def test_display_name(self):
        assert (
            account_display_name("Chris", AccountKind.FIXED, "KHR")
            == "Chris' Fixed Account (KHR)"
        )
