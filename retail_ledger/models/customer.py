"""
Customer model.

The ledger does not manage customer profiles; this table is
the owner reference accounts point at, and the default
source for "resolve owner by id". Profile, KYC and
credentials live with the customer collaborator.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from retail_ledger.models.base import Base


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(primary_key=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.now
    )

    # A customer can have many accounts
    accounts: Mapped[list["Account"]] = relationship(back_populates="customer")

    def __repr__(self) -> str:
        return f"<Customer {self.full_name}>"
