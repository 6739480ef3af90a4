"""
Narrow interfaces to the collaborators the ledger does not own.

Customer profiles and credentials are managed elsewhere. The
ledger only needs to turn an owner id into a display name and
to ask whether a PIN is acceptable before moving money.
"""

from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.orm import Session

from retail_ledger.models.customer import Customer


@dataclass(frozen=True)
class Owner:
    id: int
    full_name: str


class OwnerResolver(Protocol):
    def resolve(self, db: Session, owner_id: int) -> Owner | None:
        ...


class PinAuthorizer(Protocol):
    def authorize(self, owner_id: int, pin: str | None) -> bool:
        ...


class CustomerTableOwnerResolver:
    """Resolve owners from the local ``customers`` table."""

    def resolve(self, db: Session, owner_id: int) -> Owner | None:
        customer = db.get(Customer, owner_id)
        if customer is None or customer.is_deleted:
            return None
        return Owner(id=customer.id, full_name=customer.full_name)
