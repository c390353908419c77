"""Initial schema for AptoMizer.

Revision ID: 0001_initial
Revises:
Create Date: 2025-03-01 00:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("wallet_address", sa.String(length=80), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_wallet_address", "users", ["wallet_address"], unique=True)

    op.create_table(
        "ai_wallets",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("wallet_address", sa.String(length=80), nullable=False),
        sa.Column("private_key", sa.Text(), nullable=False),
        sa.Column("public_key", sa.String(length=130), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", name="uq_ai_wallets_user_id"),
        sa.UniqueConstraint("wallet_address", name="uq_ai_wallets_wallet_address"),
    )

    op.create_table(
        "risk_profiles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("risk_tolerance", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("investment_goals", sa.JSON(), nullable=False),
        sa.Column("time_horizon", sa.String(length=32), nullable=False),
        sa.Column("experience_level", sa.String(length=32), nullable=False),
        sa.Column("preferred_assets", sa.JSON(), nullable=False),
        sa.Column("volatility_tolerance", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("income_requirement", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("rebalancing_frequency", sa.String(length=32), nullable=False),
        sa.Column("max_drawdown", sa.Float(), nullable=True),
        sa.Column("target_apy", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", name="uq_risk_profiles_user_id"),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tx_hash", sa.String(length=80), nullable=False),
        sa.Column("tx_type", sa.String(length=32), nullable=False),
        sa.Column("token", sa.String(length=255), nullable=True),
        sa.Column("amount", sa.Float(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_transactions_tx_hash", "transactions", ["tx_hash"])
    op.create_index("ix_transactions_user_created", "transactions", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_transactions_user_created", table_name="transactions")
    op.drop_index("ix_transactions_tx_hash", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("risk_profiles")
    op.drop_table("ai_wallets")
    op.drop_index("ix_users_wallet_address", table_name="users")
    op.drop_table("users")
