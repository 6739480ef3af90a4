"""Initial ledger schema and reference rows

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from retail_ledger.models.enums import AccountKind, TransactionKind
from retail_ledger.models.reference import DEFAULT_BILL_CATEGORIES


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    account_types = op.create_table(
        "account_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", sa.String(50), nullable=False, unique=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    transaction_types = op.create_table(
        "transaction_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", sa.String(50), nullable=False, unique=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    bill_categories = op.create_table(
        "bill_categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("category_name", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("account_no", sa.String(9), nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("account_name", sa.String(255), nullable=False),
        sa.Column(
            "currency",
            sa.Enum("USD", "KHR", name="currency_enum", create_constraint=True),
            nullable=False,
        ),
        sa.Column("balance", sa.Numeric(19, 4), nullable=False),
        sa.Column("over_limit", sa.Numeric(19, 4), nullable=False),
        sa.Column("is_frozen", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "account_type_id", sa.Integer(), sa.ForeignKey("account_types.id"), nullable=False
        ),
        sa.Column("maturity_date", sa.Date(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_accounts_account_no", "accounts", ["account_no"], unique=True)
    op.create_index("ix_accounts_customer_id", "accounts", ["customer_id"])
    op.create_index("ix_accounts_account_type_id", "accounts", ["account_type_id"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("receiver_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=True),
        sa.Column(
            "transaction_type_id",
            sa.Integer(),
            sa.ForeignKey("transaction_types.id"),
            nullable=False,
        ),
        sa.Column(
            "bill_category_id", sa.Integer(), sa.ForeignKey("bill_categories.id"), nullable=True
        ),
        sa.Column("amount", sa.Numeric(19, 4), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "PENDING", "SUCCESS", "FAILED",
                name="transaction_status_enum",
                create_constraint=True,
            ),
            nullable=False,
        ),
        sa.Column("remark", sa.String(500), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_transactions_sender_id", "transactions", ["sender_id"])
    op.create_index("ix_transactions_receiver_id", "transactions", ["receiver_id"])
    op.create_index("ix_transactions_created_at", "transactions", ["created_at"])

    # Reference rows the services look up by name
    op.bulk_insert(
        account_types,
        [{"type": kind.value, "is_deleted": False} for kind in AccountKind],
    )
    op.bulk_insert(
        transaction_types,
        [{"type": kind.value, "is_deleted": False} for kind in TransactionKind],
    )
    op.bulk_insert(
        bill_categories,
        [
            {"category_name": name, "description": description, "is_deleted": False}
            for name, description in DEFAULT_BILL_CATEGORIES
        ],
    )


def downgrade() -> None:
    op.drop_index("ix_transactions_created_at", table_name="transactions")
    op.drop_index("ix_transactions_receiver_id", table_name="transactions")
    op.drop_index("ix_transactions_sender_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_accounts_account_type_id", table_name="accounts")
    op.drop_index("ix_accounts_customer_id", table_name="accounts")
    op.drop_index("ix_accounts_account_no", table_name="accounts")
    op.drop_table("accounts")
    op.drop_table("customers")
    op.drop_table("bill_categories")
    op.drop_table("transaction_types")
    op.drop_table("account_types")
    sa.Enum(name="transaction_status_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="currency_enum").drop(op.get_bind(), checkfirst=True)
