"""create users, freelancer profiles, projects and credit ledger tables

Revision ID: c7d1e2f3a4b5
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "c7d1e2f3a4b5"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TRANSACTION_TYPES = (
    "purchase",
    "deduction",
    "refund",
    "admin_add",
    "admin_deduct",
    "expiry",
    "signup_bonus",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("role_name", sa.String(length=50), server_default="CLIENT", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("is_admin", sa.Boolean(), server_default="false", nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    # Freelancer profile: one row per freelancer, holds the balance
    op.create_table(
        "freelancer_profiles",
        sa.Column("freelancer_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("credits_balance", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_credits_purchased", sa.Integer(), server_default="0", nullable=False),
        sa.Column("credits_used", sa.Integer(), server_default="0", nullable=False),
        sa.Column("signup_bonus_claimed", sa.Boolean(), server_default="false", nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "credits_balance >= 0", name="ck_freelancer_profiles_balance_non_negative"
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("freelancer_id"),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "projects_task",
        sa.Column("projects_task_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("project_title", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=30), server_default="open", nullable=False),
        sa.Column("is_deleted", sa.Boolean(), server_default="false", nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["client_id"], ["users.user_id"]),
        sa.PrimaryKeyConstraint("projects_task_id"),
    )

    op.create_table(
        "applied_projects",
        sa.Column("applied_projects_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("projects_task_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=30), server_default="pending", nullable=False),
        sa.Column("is_deleted", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("credits_spent", sa.Integer(), server_default="1", nullable=True),
        sa.Column("refunded", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("refund_amount", sa.Integer(), server_default="0", nullable=False),
        sa.Column("refund_reason", sa.String(length=100), nullable=True),
        sa.Column("refunded_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["projects_task_id"], ["projects_task.projects_task_id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("applied_projects_id"),
    )
    op.create_index("ix_applied_projects_user_id", "applied_projects", ["user_id"])
    op.create_index("ix_applied_projects_projects_task_id", "applied_projects", ["projects_task_id"])

    # Credit ledger: append-only, one row per balance change
    op.create_table(
        "credit_transactions",
        sa.Column("transaction_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column(
            "transaction_type",
            sa.Enum(*TRANSACTION_TYPES, name="credit_transaction_type"),
            nullable=False,
        ),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("balance_before", sa.Integer(), nullable=False),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        sa.Column("reference_type", sa.String(length=50), nullable=True),
        sa.Column("reference_id", sa.Integer(), nullable=True),
        sa.Column("payment_gateway", sa.String(length=50), nullable=True),
        sa.Column("payment_order_id", sa.String(length=255), nullable=True),
        sa.Column("payment_transaction_id", sa.String(length=255), nullable=True),
        sa.Column("payment_amount", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("payment_currency", sa.String(length=3), server_default="INR", nullable=True),
        sa.Column("package_id", sa.Integer(), nullable=True),
        sa.Column("package_name", sa.String(length=100), nullable=True),
        sa.Column("admin_user_id", sa.Integer(), nullable=True),
        sa.Column("admin_reason", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "balance_after = balance_before + amount",
            name="ck_credit_transactions_balance_delta",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["admin_user_id"], ["users.user_id"]),
        sa.PrimaryKeyConstraint("transaction_id"),
    )
    op.create_index("idx_credit_tx_user_date", "credit_transactions", ["user_id", "created_at"])
    op.create_index("idx_credit_tx_type", "credit_transactions", ["transaction_type"])
    op.create_index(
        "idx_credit_tx_reference", "credit_transactions", ["reference_type", "reference_id"]
    )
    op.create_index(
        "idx_credit_tx_payment_id", "credit_transactions", ["payment_transaction_id"]
    )

    op.create_table(
        "credit_settings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("setting_key", sa.String(length=100), nullable=False),
        sa.Column("setting_value", sa.String(length=255), nullable=False),
        sa.Column("updated_by", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["updated_by"], ["users.user_id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("setting_key"),
    )


def downgrade() -> None:
    op.drop_table("credit_settings")
    op.drop_index("idx_credit_tx_payment_id", table_name="credit_transactions")
    op.drop_index("idx_credit_tx_reference", table_name="credit_transactions")
    op.drop_index("idx_credit_tx_type", table_name="credit_transactions")
    op.drop_index("idx_credit_tx_user_date", table_name="credit_transactions")
    op.drop_table("credit_transactions")
    op.execute("DROP TYPE IF EXISTS credit_transaction_type")
    op.drop_index("ix_applied_projects_projects_task_id", table_name="applied_projects")
    op.drop_index("ix_applied_projects_user_id", table_name="applied_projects")
    op.drop_table("applied_projects")
    op.drop_table("projects_task")
    op.drop_table("freelancer_profiles")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
