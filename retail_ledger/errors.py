"""
Typed errors raised by the ledger.

Every failure reaches the caller as one of these. The base
class derives from ValueError so callers that only know
"bad request" keep working, while the presentation layer can
branch on the concrete class (or on ``kind``) to render a
specific message.
"""

from decimal import Decimal


class LedgerError(ValueError):
    """Base class for every recoverable ledger failure."""

    kind = "ledger_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        # Orchestrator state reached when the error was raised
        self.state = None


class ValidationError(LedgerError):
    """Malformed input: bad amount, currency, account number or date."""

    kind = "validation_error"


class NotFoundError(LedgerError):
    """Unknown account, account type, bill category or transaction."""

    kind = "not_found"


class StateError(LedgerError):
    """Account state forbids the operation (frozen, deleted, unmatured, ...)."""

    kind = "state_error"


class LimitExceededError(LedgerError):
    """Daily cap or account-type quota would be exceeded."""

    kind = "limit_exceeded"

    def __init__(
        self,
        message: str,
        remaining: Decimal | None = None,
        limit: Decimal | int | None = None,
    ):
        super().__init__(message)
        self.remaining = remaining
        self.limit = limit


class InsufficientBalanceError(LedgerError):
    kind = "insufficient_balance"

    def __init__(self, message: str, available: Decimal, requested: Decimal):
        super().__init__(message)
        self.available = available
        self.requested = requested


class AuthorizationError(LedgerError):
    """The PIN gate rejected the caller before any mutation."""

    kind = "authorization_error"


class PersistenceError(LedgerError):
    """The store is unavailable or a write failed."""

    kind = "persistence_error"


class ConcurrencyConflictError(PersistenceError):
    """Optimistic version check failed; the unit of work may be retried."""

    kind = "concurrency_conflict"


class ExhaustedRetryError(LedgerError):
    """Account-number generation or conflict retries ran out."""

    kind = "exhausted_retry"


class DeadlineExceededError(LedgerError):
    kind = "deadline_exceeded"


class ConfigurationError(Exception):
    """Deployment problem, e.g. an unsupported currency pair. Not a user error."""
