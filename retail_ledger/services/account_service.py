"""
Account service: the account directory.

Owns account metadata: opening eligibility, numbering, names,
freeze and soft-delete flags, and the read-side queries the
orchestrator and presentation layer use. It never touches a
balance; the opening deposit is applied by the orchestrator
through the LedgerService in the same unit of work.
"""

import logging
from datetime import date, datetime
from typing import Callable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from retail_ledger.config import LedgerConfig
from retail_ledger.errors import (
    LimitExceededError,
    NotFoundError,
    StateError,
    ValidationError,
)
from retail_ledger.models.account import Account
from retail_ledger.models.enums import AccountKind, Currency
from retail_ledger.models.reference import AccountTypeRecord
from retail_ledger.schemas.account import AccountOpen
from retail_ledger.services.account_numbers import (
    AccountNumberGenerator,
    format_account_number,
    normalize_account_number,
    require_account_number,
)
from retail_ledger.services.collaborators import (
    CustomerTableOwnerResolver,
    OwnerResolver,
)
from retail_ledger.services.currency import (
    CurrencyConverter,
    format_amount,
    parse_currency,
)

logger = logging.getLogger(__name__)


def parse_account_kind(value: str) -> AccountKind:
    """Accept 'saving', 'Saving', AccountKind.SAVING."""
    name = str(getattr(value, "value", value)).strip().lower()
    for kind in AccountKind:
        if kind.value.lower() == name:
            return kind
    raise NotFoundError(f"Account type '{value}' not found")


def account_display_name(owner_name: str, kind: AccountKind, currency: str) -> str:
    """"Jane Doe's Saving Account (USD)"; "James' Fixed Account (KHR)"."""
    possessive = f"{owner_name}'" if owner_name.endswith("s") else f"{owner_name}'s"
    return f"{possessive} {kind.value} Account ({Currency(currency).value})"


def add_years(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # 29 February in a non-leap target year
        return day.replace(year=day.year + years, day=28)


class AccountService:

    def __init__(
        self,
        db: Session,
        config: LedgerConfig | None = None,
        number_generator: AccountNumberGenerator | None = None,
        owner_resolver: OwnerResolver | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.config = config or LedgerConfig()
        self.number_generator = number_generator or AccountNumberGenerator(
            max_attempts=self.config.account_number_max_attempts
        )
        self.owner_resolver = owner_resolver or CustomerTableOwnerResolver()
        self.clock = clock

    # --- Reference lookups ---

    def get_account_type(self, kind: AccountKind) -> AccountTypeRecord:
        record = self.db.execute(
            select(AccountTypeRecord).where(
                AccountTypeRecord.type == kind.value,
                AccountTypeRecord.is_deleted.is_(False),
            )
        ).scalar_one_or_none()
        if not record:
            raise NotFoundError(f"Account type '{kind.value}' not found")
        return record

    # --- Opening ---

    def open_account(self, request: AccountOpen) -> Account:
        """
        Validate eligibility and create the account row.

        The row is created with a zero balance; the caller applies
        the opening deposit. Checks, in order: owner exists, type
        exists, currency is supported, the initial deposit meets
        the currency minimum, Fixed accounts carry a valid maturity
        date, and the owner's quota for this type is not used up.
        """
        owner = self.owner_resolver.resolve(self.db, request.customer_id)
        if owner is None:
            raise NotFoundError(f"Customer {request.customer_id} not found")

        kind = parse_account_kind(request.account_type)
        account_type = self.get_account_type(kind)
        currency = parse_currency(request.currency)

        deposit = CurrencyConverter.validate_amount(
            request.initial_deposit, currency
        )
        minimum = self.config.minimum_deposit(currency.value)
        if deposit < minimum:
            raise ValidationError(
                f"Minimum opening deposit for {currency.value} is "
                f"{format_amount(minimum, currency.value)}"
            )

        self._validate_maturity(kind, request.maturity_date)
        self._enforce_quota(owner.id, kind, currency)

        account_no = self.number_generator.generate(
            self.existing_account_numbers()
        )

        account = Account(
            account_no=account_no,
            customer_id=owner.id,
            account_name=account_display_name(owner.full_name, kind, currency),
            currency=currency,
            account_type_id=account_type.id,
            maturity_date=request.maturity_date if kind == AccountKind.FIXED else None,
            created_at=self.clock(),
        )
        account.account_type = account_type
        self.db.add(account)
        self.db.flush()

        logger.info(
            "Opened account",
            extra={"operation": "open_account", "account_id": account.id},
        )
        return account

    def _validate_maturity(self, kind: AccountKind, maturity_date: date | None) -> None:
        if kind != AccountKind.FIXED:
            if maturity_date is not None:
                raise ValidationError(
                    "Maturity date is only allowed for Fixed accounts"
                )
            return

        if maturity_date is None:
            raise ValidationError("Fixed accounts require a maturity date")

        today = self.clock().date()
        if maturity_date <= today:
            raise ValidationError("Maturity date must be in the future")

        latest = add_years(today, self.config.fixed_max_term_years)
        if maturity_date > latest:
            raise ValidationError(
                f"Maturity date cannot be more than "
                f"{self.config.fixed_max_term_years} years ahead"
            )

    def quota_for(self, kind: AccountKind) -> int:
        return {
            AccountKind.SAVING: self.config.quota_saving_per_currency,
            AccountKind.CHECKING: self.config.quota_checking,
            AccountKind.FIXED: self.config.quota_fixed,
        }[kind]

    def _enforce_quota(self, customer_id: int, kind: AccountKind, currency: Currency) -> None:
        # Saving is counted per currency; the others across currencies
        per_currency = currency if kind == AccountKind.SAVING else None
        count = self.count_accounts(customer_id, kind, per_currency)
        quota = self.quota_for(kind)
        if count >= quota:
            where = f" in {currency.value}" if per_currency else ""
            raise LimitExceededError(
                f"You already have {count} {kind.value} account(s){where}; "
                f"the limit is {quota}",
                limit=quota,
            )

    # --- Metadata changes ---

    def set_frozen(self, account_no: str, frozen: bool) -> Account:
        """Freeze or unfreeze. Deleted accounts cannot be changed."""
        account = self.get_by_number(account_no, include_deleted=True)
        if account.is_deleted:
            raise StateError(
                f"Account {format_account_number(account.account_no)} is deleted"
            )

        account.is_frozen = frozen
        self.db.flush()

        logger.info(
            "Account %s", "frozen" if frozen else "unfrozen",
            extra={"operation": "set_frozen", "account_id": account.id},
        )
        return account

    def soft_delete(self, account_no: str) -> Account:
        """Mark an account deleted. Rows are never removed."""
        account = self.get_by_number(account_no, include_deleted=True)
        if account.is_deleted:
            raise StateError(
                f"Account {format_account_number(account.account_no)} "
                "is already deleted"
            )

        account.is_deleted = True
        self.db.flush()
        return account

    # --- Queries ---

    def find_by_id(self, account_id: int, include_deleted: bool = False) -> Account | None:
        account = self.db.get(Account, account_id)
        if account is None or (account.is_deleted and not include_deleted):
            return None
        return account

    def get_account(self, account_id: int, include_deleted: bool = False) -> Account:
        account = self.find_by_id(account_id, include_deleted)
        if not account:
            raise NotFoundError(f"Account {account_id} not found")
        return account

    def find_by_number(self, account_no: str, include_deleted: bool = False) -> Account | None:
        cleaned = normalize_account_number(account_no)
        query = select(Account).where(Account.account_no == cleaned)
        if not include_deleted:
            query = query.where(Account.is_deleted.is_(False))
        return self.db.execute(query).scalar_one_or_none()

    def get_by_number(self, account_no: str, include_deleted: bool = False) -> Account:
        cleaned = require_account_number(account_no)
        account = self.find_by_number(cleaned, include_deleted)
        if not account:
            raise NotFoundError(f"Account {format_account_number(cleaned)} not found")
        return account

    def list_by_owner(self, customer_id: int) -> list[Account]:
        """All non-deleted accounts of an owner, by type then currency."""
        accounts = self.db.execute(
            select(Account)
            .join(Account.account_type)
            .where(
                Account.customer_id == customer_id,
                Account.is_deleted.is_(False),
            )
            .order_by(AccountTypeRecord.type, Account.currency)
        ).scalars().all()
        return list(accounts)

    def list_active_by_owner(self, customer_id: int) -> list[Account]:
        return [a for a in self.list_by_owner(customer_id) if a.is_active]

    def count_accounts(
        self,
        customer_id: int,
        kind: AccountKind,
        currency: Currency | None = None,
    ) -> int:
        query = (
            select(func.count(Account.id))
            .join(Account.account_type)
            .where(
                Account.customer_id == customer_id,
                AccountTypeRecord.type == kind.value,
                Account.is_deleted.is_(False),
            )
        )
        if currency is not None:
            query = query.where(Account.currency == currency)
        return self.db.execute(query).scalar_one()

    def existing_account_numbers(self) -> set[str]:
        """
        Every number ever issued, deleted accounts included: the
        column is unique, so a deleted account's number stays taken.
        """
        return set(self.db.execute(select(Account.account_no)).scalars().all())

    def available_types_for(self, customer_id: int) -> list[str]:
        """Account types the owner can still open."""
        available = []
        for currency in Currency:
            if self.count_accounts(customer_id, AccountKind.SAVING, currency) < self.quota_for(AccountKind.SAVING):
                available.append(f"Saving Account ({currency.value})")
        for kind in (AccountKind.CHECKING, AccountKind.FIXED):
            if self.count_accounts(customer_id, kind) < self.quota_for(kind):
                available.append(f"{kind.value} Account")
        return available

    def limits_summary_for(self, customer_id: int) -> dict[str, str]:
        """Usage against quota, e.g. {"Saving (USD)": "1/1", "Checking": "0/1"}."""
        summary = {}
        saving_quota = self.quota_for(AccountKind.SAVING)
        for currency in Currency:
            count = self.count_accounts(customer_id, AccountKind.SAVING, currency)
            summary[f"Saving ({currency.value})"] = f"{count}/{saving_quota}"
        for kind in (AccountKind.CHECKING, AccountKind.FIXED):
            count = self.count_accounts(customer_id, kind)
            summary[kind.value] = f"{count}/{self.quota_for(kind)}"
        return summary
