"""
Transaction service: opens accounts and moves money.

This is the orchestrator. Every public operation:
1. Resolves the accounts involved and validates the amount
2. Asks the PIN authorizer (if one is configured)
3. Takes the per-account locks in ascending id order
4. Opens one unit of work and, inside it, re-validates the
   accounts, checks the daily limit, converts currency,
   applies the balance deltas and writes the journal record
5. Commits, releases the locks and returns the result

If anything fails inside the unit of work, the whole unit is
rolled back: a debit whose credit failed is undone together
with it, and no journal row survives. Business rejections and
storage failures are then recorded as Failed journal rows in
a separate unit of work and re-raised to the caller.

Optimistic version conflicts are retried a bounded number of
times; an optional deadline bounds lock waits and is checked
between steps.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable

from retail_ledger.config import LedgerConfig
from retail_ledger.errors import (
    AuthorizationError,
    ConcurrencyConflictError,
    ExhaustedRetryError,
    InsufficientBalanceError,
    LedgerError,
    NotFoundError,
    StateError,
    ValidationError,
)
from retail_ledger.models.account import Account
from retail_ledger.models.base import Database
from retail_ledger.models.enums import TransactionKind, TransactionStatus
from retail_ledger.models.transaction import Transaction
from retail_ledger.schemas.account import AccountOpen
from retail_ledger.services.account_numbers import (
    AccountNumberGenerator,
    format_account_number,
)
from retail_ledger.services.account_service import AccountService
from retail_ledger.services.collaborators import OwnerResolver, PinAuthorizer
from retail_ledger.services.concurrency import (
    NUMBER_ALLOCATION_KEY,
    Deadline,
    LockRegistry,
    account_key,
    owner_key,
)
from retail_ledger.services.currency import CurrencyConverter, format_amount
from retail_ledger.services.journal_service import TransactionJournal
from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.services.limit_service import DailyLimitTracker

logger = logging.getLogger(__name__)

# Failures that happen before there is a meaningful attempt to record
_NOT_JOURNALED = (ValidationError, NotFoundError, AuthorizationError)

_REMARK_MAX_LENGTH = 500


class OperationState(str, enum.Enum):
    VALIDATED = "Validated"
    LIMIT_CHECKED = "LimitChecked"
    CONVERTED = "Converted"
    DEBITED = "Debited"
    CREDITED = "Credited"
    RECORDED = "Recorded"
    FAILED = "Failed"


class _Progress:
    """Tracks how far an operation got, for logs and errors."""

    def __init__(self, operation: str):
        self.operation = operation
        self.state: OperationState | None = None

    def advance(self, state: OperationState) -> None:
        self.state = state


@dataclass
class _Snapshot:
    """Account facts read before locking; immutable for an account's life."""
    id: int
    customer_id: int
    currency: str


@dataclass
class TransferResult:
    transaction: Transaction
    credited_amount: Decimal
    sender_balance: Decimal
    receiver_balance: Decimal
    exchange_rate: str
    internal: bool


class TransactionService:

    def __init__(
        self,
        database: Database,
        config: LedgerConfig | None = None,
        locks: LockRegistry | None = None,
        clock: Callable[[], datetime] = datetime.now,
        number_generator: AccountNumberGenerator | None = None,
        owner_resolver: OwnerResolver | None = None,
        authorizer: PinAuthorizer | None = None,
    ):
        self.database = database
        self.config = config or LedgerConfig()
        self.locks = locks or LockRegistry()
        self.clock = clock
        self.converter = CurrencyConverter(self.config)
        self.number_generator = number_generator or AccountNumberGenerator(
            max_attempts=self.config.account_number_max_attempts
        )
        self.owner_resolver = owner_resolver
        self.authorizer = authorizer

    # --- Collaborators bound to a session ---

    def _accounts(self, db) -> AccountService:
        return AccountService(
            db,
            self.config,
            number_generator=self.number_generator,
            owner_resolver=self.owner_resolver,
            clock=self.clock,
        )

    def _journal(self, db) -> TransactionJournal:
        return TransactionJournal(db, self.clock)

    def _limits(self, db) -> DailyLimitTracker:
        return DailyLimitTracker(db, self.config, self.clock)

    # --- Plumbing ---

    def _deadline(self, timeout: float | None) -> Deadline:
        if timeout is None:
            timeout = self.config.operation_timeout_seconds
        return Deadline(timeout)

    def _authorize(self, customer_id: int, pin: str | None) -> None:
        if self.authorizer is None:
            return
        if not self.authorizer.authorize(customer_id, pin):
            raise AuthorizationError("PIN verification failed")

    def _snapshot(self, account: Account) -> _Snapshot:
        return _Snapshot(
            id=account.id,
            customer_id=account.customer_id,
            currency=account.currency.value,
        )

    def _execute(self, progress: _Progress, keys, deadline: Deadline, work):
        """
        Run ``work(db)`` under the given locks in one unit of work.

        A version conflict rolls the unit back and starts over,
        at most ``max_conflict_retries`` extra times.
        """
        attempts = self.config.max_conflict_retries + 1
        for attempt in range(1, attempts + 1):
            deadline.check(progress.operation)
            progress.state = None
            try:
                with self.locks.hold(keys, deadline):
                    with self.database.unit_of_work() as db:
                        result = work(db)
                progress.advance(OperationState.RECORDED)
                return result
            except ConcurrencyConflictError:
                logger.warning(
                    "Version conflict, retrying",
                    extra={"operation": progress.operation, "attempt": attempt},
                )
        raise ExhaustedRetryError(
            f"{progress.operation} gave up after {attempts} conflicting attempts"
        )

    def _fail(
        self,
        progress: _Progress,
        error: LedgerError,
        kind: TransactionKind,
        sender: _Snapshot | None,
        amount: Decimal | None,
        receiver_id: int | None = None,
        remark: str | None = None,
        bill_category_id: int | None = None,
    ) -> None:
        """Log a rejected operation and journal it as a Failed attempt."""
        if error.state is None:
            error.state = progress.state
        logger.warning(
            "%s rejected: %s",
            progress.operation,
            error.message,
            extra={
                "operation": progress.operation,
                "account_id": sender.id if sender else None,
                "counterparty_id": receiver_id,
                "amount": amount,
                "state": (progress.state or OperationState.FAILED).value,
            },
        )
        progress.advance(OperationState.FAILED)

        if (
            not self.config.journal_failed_attempts
            or sender is None
            or amount is None
            or isinstance(error, _NOT_JOURNALED)
        ):
            return

        note = f"{remark} - failed: {error.message}" if remark else f"Failed: {error.message}"
        try:
            with self.database.unit_of_work() as db:
                self._journal(db).record(
                    kind,
                    sender.id,
                    amount,
                    status=TransactionStatus.FAILED,
                    receiver_id=receiver_id,
                    remark=note[:_REMARK_MAX_LENGTH],
                    bill_category_id=bill_category_id,
                )
        except LedgerError:
            # The caller still gets the original error below
            logger.exception(
                "Could not journal failed attempt",
                extra={"operation": progress.operation, "account_id": sender.id},
            )

    def _require_active(self, account: Account, role: str = "Account") -> None:
        number = format_account_number(account.account_no)
        if account.is_deleted:
            raise StateError(f"{role} {number} is deleted")
        if account.is_frozen:
            raise StateError(f"{role} {number} is frozen")

    def _require_matured(self, account: Account, action: str) -> None:
        if not account.is_matured(self.clock().date()):
            raise StateError(
                f"Fixed account {action} are not allowed until maturity "
                f"date: {account.maturity_date.isoformat()}"
            )

    @staticmethod
    def _require_funds(account: Account, amount: Decimal) -> None:
        if account.available_balance < amount:
            currency = account.currency.value
            raise InsufficientBalanceError(
                f"Insufficient balance: available "
                f"{format_amount(account.available_balance, currency)}, "
                f"requested {format_amount(amount, currency)}",
                available=account.available_balance,
                requested=amount,
            )

    # --- Account opening and metadata ---

    def open_account(self, request: AccountOpen, timeout: float | None = None) -> Account:
        """
        Open an account and apply its opening deposit.

        Eligibility checks, the new row, the balance and the
        "Opening deposit" journal record commit together. The
        owner lock serializes quota checks for one customer; the
        allocation lock keeps concurrently generated numbers apart.
        """
        progress = _Progress("open_account")
        deadline = self._deadline(timeout)
        self._authorize(request.customer_id, request.pin)

        def work(db):
            accounts = self._accounts(db)
            account = accounts.open_account(request)
            progress.advance(OperationState.VALIDATED)

            deposit = CurrencyConverter.validate_amount(
                request.initial_deposit, account.currency
            )
            deadline.check("opening deposit")
            LedgerService(db).apply_delta(account.id, deposit)
            progress.advance(OperationState.CREDITED)

            self._journal(db).record(
                TransactionKind.DEPOSIT,
                account.id,
                deposit,
                remark="Opening deposit",
            )
            return account

        try:
            account = self._execute(
                progress,
                [owner_key(request.customer_id), NUMBER_ALLOCATION_KEY],
                deadline,
                work,
            )
        except LedgerError as e:
            # No account exists to attach a Failed record to
            self._fail(progress, e, TransactionKind.DEPOSIT, None, None)
            raise

        logger.info(
            "Account opened with %s",
            format_amount(account.balance, account.currency.value),
            extra={"operation": "open_account", "account_id": account.id},
        )
        return account

    def set_frozen(self, account_no: str, frozen: bool, timeout: float | None = None) -> Account:
        """Freeze or unfreeze, serialized with balance changes on the account."""
        def work(db):
            return self._accounts(db).set_frozen(account_no, frozen)

        return self._change_metadata("set_frozen", account_no, timeout, work)

    def soft_delete(self, account_no: str, timeout: float | None = None) -> Account:
        """Mark an account deleted; its history and number are kept."""
        def work(db):
            return self._accounts(db).soft_delete(account_no)

        return self._change_metadata("soft_delete", account_no, timeout, work)

    def _change_metadata(self, operation: str, account_no: str, timeout, work) -> Account:
        progress = _Progress(operation)
        deadline = self._deadline(timeout)

        with self.database.unit_of_work() as db:
            account_id = self._accounts(db).get_by_number(
                account_no, include_deleted=True
            ).id

        return self._execute(progress, [account_key(account_id)], deadline, work)

    # --- Money movement ---

    def deposit(
        self,
        account_id: int,
        amount: Decimal,
        remark: str | None = None,
        pin: str | None = None,
        timeout: float | None = None,
    ) -> Transaction:
        """
        Credit an account.

        Deposits are allowed into unmatured Fixed accounts; the
        account only has to be active.
        """
        progress = _Progress("deposit")
        deadline = self._deadline(timeout)
        remark = remark or "Cash deposit"
        sender = None
        value = None

        try:
            with self.database.unit_of_work() as db:
                sender = self._snapshot(
                    self._accounts(db).get_account(account_id, include_deleted=True)
                )
            value = CurrencyConverter.validate_amount(amount, sender.currency)
            self._authorize(sender.customer_id, pin)

            def work(db):
                account = self._accounts(db).get_account(
                    account_id, include_deleted=True
                )
                self._require_active(account)
                progress.advance(OperationState.VALIDATED)

                deadline.check("credit")
                LedgerService(db).apply_delta(account.id, value)
                progress.advance(OperationState.CREDITED)

                return self._journal(db).record(
                    TransactionKind.DEPOSIT, account.id, value, remark=remark
                )

            txn = self._execute(progress, [account_key(account_id)], deadline, work)
        except LedgerError as e:
            self._fail(progress, e, TransactionKind.DEPOSIT, sender, value, remark=remark)
            raise

        logger.info(
            "Deposit recorded",
            extra={
                "operation": "deposit",
                "account_id": account_id,
                "transaction_id": txn.id,
                "amount": value,
            },
        )
        return txn

    def withdraw(
        self,
        account_id: int,
        amount: Decimal,
        remark: str | None = None,
        pin: str | None = None,
        timeout: float | None = None,
    ) -> Transaction:
        """Debit an account for a cash withdrawal."""
        return self._debit(
            TransactionKind.WITHDRAW,
            account_id,
            amount,
            remark or "Cash withdrawal",
            pin,
            timeout,
        )

    def pay_bill(
        self,
        account_id: int,
        category: str,
        amount: Decimal,
        remark: str | None = None,
        pin: str | None = None,
        timeout: float | None = None,
    ) -> Transaction:
        """Debit an account for a bill in the given category."""
        return self._debit(
            TransactionKind.BILL_PAYMENT,
            account_id,
            amount,
            remark or f"Bill payment - {category}",
            pin,
            timeout,
            category=category,
        )

    def _debit(
        self,
        kind: TransactionKind,
        account_id: int,
        amount: Decimal,
        remark: str,
        pin: str | None,
        timeout: float | None,
        category: str | None = None,
    ) -> Transaction:
        """
        Shared path for withdrawals and bill payments.

        Order of checks: active, matured (Fixed), funds, then the
        daily limit for Saving accounts.
        """
        operation = "withdraw" if kind == TransactionKind.WITHDRAW else "pay_bill"
        progress = _Progress(operation)
        deadline = self._deadline(timeout)
        sender = None
        value = None
        category_id = None

        try:
            with self.database.unit_of_work() as db:
                sender = self._snapshot(
                    self._accounts(db).get_account(account_id, include_deleted=True)
                )
                if category is not None:
                    category_id = self._journal(db).bill_category(category).id
            value = CurrencyConverter.validate_amount(amount, sender.currency)
            self._authorize(sender.customer_id, pin)

            def work(db):
                account = self._accounts(db).get_account(
                    account_id, include_deleted=True
                )
                self._require_active(account)
                self._require_matured(
                    account,
                    "withdrawals" if kind == TransactionKind.WITHDRAW else "bill payments",
                )
                self._require_funds(account, value)
                progress.advance(OperationState.VALIDATED)

                self._limits(db).check(account, value)
                progress.advance(OperationState.LIMIT_CHECKED)

                deadline.check("debit")
                LedgerService(db).apply_delta(account.id, -value)
                progress.advance(OperationState.DEBITED)

                return self._journal(db).record(
                    kind,
                    account.id,
                    value,
                    remark=remark,
                    bill_category_id=category_id,
                )

            txn = self._execute(progress, [account_key(account_id)], deadline, work)
        except LedgerError as e:
            self._fail(
                progress, e, kind, sender, value,
                remark=remark, bill_category_id=category_id,
            )
            raise

        logger.info(
            "%s recorded",
            kind.value,
            extra={
                "operation": operation,
                "account_id": account_id,
                "transaction_id": txn.id,
                "amount": value,
            },
        )
        return txn

    def transfer(
        self,
        from_account_id: int,
        destination: int | str,
        amount: Decimal,
        remark: str | None = None,
        pin: str | None = None,
        timeout: float | None = None,
    ) -> TransferResult:
        """
        Move money between two accounts, converting if needed.

        ``destination`` is an account id or a 9-digit account
        number. Whether the transfer is internal (same owner) or
        external only changes the reported flag, not the path.
        The journal amount is the sender-currency amount; the
        remark notes the conversion when currencies differ.
        """
        progress = _Progress("transfer")
        deadline = self._deadline(timeout)
        remark = remark or "Account transfer"
        sender = None
        receiver = None
        value = None

        try:
            with self.database.unit_of_work() as db:
                accounts = self._accounts(db)
                sender = self._snapshot(
                    accounts.get_account(from_account_id, include_deleted=True)
                )
                if isinstance(destination, int):
                    target = accounts.get_account(destination, include_deleted=True)
                else:
                    target = accounts.get_by_number(destination, include_deleted=True)
                receiver = self._snapshot(target)

            if sender.id == receiver.id:
                raise StateError("Cannot transfer to the same account")

            value = CurrencyConverter.validate_amount(amount, sender.currency)
            self._authorize(sender.customer_id, pin)

            def work(db):
                accounts = self._accounts(db)
                source = accounts.get_account(sender.id, include_deleted=True)
                target = accounts.get_account(receiver.id, include_deleted=True)
                self._require_active(source, "Sender account")
                self._require_active(target, "Receiver account")
                self._require_matured(source, "transfers")
                self._require_funds(source, value)
                progress.advance(OperationState.VALIDATED)

                self._limits(db).check(source, value)
                progress.advance(OperationState.LIMIT_CHECKED)

                credited = self.converter.convert(
                    value, sender.currency, receiver.currency
                )
                rate = self.converter.rate_display(sender.currency, receiver.currency)
                note = remark
                if sender.currency != receiver.currency:
                    note += (
                        f" (Converted from {format_amount(value, sender.currency)} "
                        f"{sender.currency} to "
                        f"{format_amount(credited, receiver.currency)} "
                        f"{receiver.currency} at rate {rate})"
                    )
                progress.advance(OperationState.CONVERTED)

                ledger = LedgerService(db)
                deadline.check("debit")
                sender_balance = ledger.apply_delta(source.id, -value)
                progress.advance(OperationState.DEBITED)

                try:
                    deadline.check("credit")
                    receiver_balance = ledger.apply_delta(target.id, credited)
                    progress.advance(OperationState.CREDITED)

                    txn = self._journal(db).record(
                        TransactionKind.TRANSFER,
                        source.id,
                        value,
                        receiver_id=target.id,
                        remark=note[:_REMARK_MAX_LENGTH],
                    )
                except Exception:
                    logger.warning(
                        "Transfer failed after debit, rolling back the debit",
                        extra={
                            "operation": "transfer",
                            "account_id": source.id,
                            "counterparty_id": target.id,
                            "state": progress.state.value,
                        },
                    )
                    raise

                return TransferResult(
                    transaction=txn,
                    credited_amount=credited,
                    sender_balance=self.converter.quantize(
                        sender_balance, sender.currency
                    ),
                    receiver_balance=self.converter.quantize(
                        receiver_balance, receiver.currency
                    ),
                    exchange_rate=rate,
                    internal=source.customer_id == target.customer_id,
                )

            result = self._execute(
                progress,
                [account_key(sender.id), account_key(receiver.id)],
                deadline,
                work,
            )
        except LedgerError as e:
            self._fail(
                progress, e, TransactionKind.TRANSFER, sender, value,
                receiver_id=receiver.id if receiver else None,
                remark=remark,
            )
            raise

        logger.info(
            "Transfer recorded",
            extra={
                "operation": "transfer",
                "account_id": sender.id,
                "counterparty_id": receiver.id,
                "transaction_id": result.transaction.id,
                "amount": value,
            },
        )
        return result

    # --- Queries ---

    def get_account(self, id_or_number: int | str) -> Account:
        with self.database.unit_of_work() as db:
            accounts = self._accounts(db)
            if isinstance(id_or_number, int):
                return accounts.get_account(id_or_number)
            return accounts.get_by_number(id_or_number)

    def list_accounts(self, customer_id: int, active_only: bool = False) -> list[Account]:
        with self.database.unit_of_work() as db:
            accounts = self._accounts(db)
            if active_only:
                return accounts.list_active_by_owner(customer_id)
            return accounts.list_by_owner(customer_id)

    def list_transactions(
        self,
        account_id: int | None = None,
        customer_id: int | None = None,
    ) -> list[Transaction]:
        if (account_id is None) == (customer_id is None):
            raise ValidationError("Pass exactly one of account_id or customer_id")
        with self.database.unit_of_work() as db:
            journal = self._journal(db)
            if account_id is not None:
                self._accounts(db).get_account(account_id, include_deleted=True)
                return journal.list_for_account(account_id)
            return journal.list_for_owner(customer_id)

    def get_transaction(self, transaction_id: int) -> Transaction:
        with self.database.unit_of_work() as db:
            return self._journal(db).get_transaction(transaction_id)

    def remaining_daily_limit(self, account_id: int) -> Decimal | None:
        """Remaining outgoing allowance today; None when the account has no cap."""
        with self.database.unit_of_work() as db:
            account = self._accounts(db).get_account(account_id)
            limits = self._limits(db)
            if not limits.applies_to(account):
                return None
            return self.converter.quantize(
                limits.remaining(account.id, account.currency.value),
                account.currency,
            )

    def daily_limit(self, currency: str) -> Decimal:
        return self.config.daily_limit(currency)

    def account_limits_summary(self, customer_id: int) -> dict[str, str]:
        with self.database.unit_of_work() as db:
            return self._accounts(db).limits_summary_for(customer_id)

    def available_account_types(self, customer_id: int) -> list[str]:
        with self.database.unit_of_work() as db:
            return self._accounts(db).available_types_for(customer_id)

    def exchange_rate(self, from_currency: str, to_currency: str) -> str:
        return self.converter.rate_display(from_currency, to_currency)

    def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        return self.converter.convert(amount, from_currency, to_currency)
