"""initial launchpad schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import launchpad.core.database

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

U64 = launchpad.core.database.U64


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("address", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("sol_balance", U64(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_accounts_address"), "accounts", ["address"], unique=True)

    op.create_table(
        "global_config",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("initialized", sa.Boolean(), nullable=False),
        sa.Column("authority_id", sa.Uuid(), nullable=True),
        sa.Column("fee_recipient_id", sa.Uuid(), nullable=True),
        sa.Column("fee_basis_points", U64(), nullable=False),
        sa.Column("initial_virtual_sol_reserves", U64(), nullable=False),
        sa.Column("initial_virtual_token_reserves", U64(), nullable=False),
        sa.Column("initial_real_token_reserves", U64(), nullable=False),
        sa.Column("initial_token_supply", U64(), nullable=False),
        sa.ForeignKeyConstraint(["authority_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["fee_recipient_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "bonding_curves",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("creator_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("symbol", sa.String(), nullable=False),
        sa.Column("uri", sa.String(), nullable=False),
        sa.Column("team", sa.Enum("blue", "red", name="team"), nullable=False),
        sa.Column("virtual_sol_reserves", U64(), nullable=False),
        sa.Column("virtual_token_reserves", U64(), nullable=False),
        sa.Column("real_sol_reserves", U64(), nullable=False),
        sa.Column("real_token_reserves", U64(), nullable=False),
        sa.Column("token_total_supply", U64(), nullable=False),
        sa.Column("complete", sa.Boolean(), nullable=False),
        sa.Column("sol_balance", U64(), nullable=False),
        sa.Column("token_balance", U64(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["creator_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "token_holdings",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=False),
        sa.Column("curve_id", sa.Uuid(), nullable=False),
        sa.Column("amount", U64(), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["curve_id"], ["bonding_curves.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("account_id", "curve_id"),
    )

    op.create_table(
        "user_transfer_data",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=False),
        sa.Column("curve_id", sa.Uuid(), nullable=False),
        sa.Column("last_transfer_timestamp", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["curve_id"], ["bonding_curves.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("account_id", "curve_id"),
    )

    op.create_table(
        "trades",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("curve_id", sa.Uuid(), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=False),
        sa.Column("is_buy", sa.Boolean(), nullable=False),
        sa.Column("sol_amount", U64(), nullable=False),
        sa.Column("token_amount", U64(), nullable=False),
        sa.Column("fee", U64(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("virtual_sol_reserves", U64(), nullable=False),
        sa.Column("virtual_token_reserves", U64(), nullable=False),
        sa.Column("real_sol_reserves", U64(), nullable=False),
        sa.Column("real_token_reserves", U64(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["curve_id"], ["bonding_curves.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_trades_curve_id"), "trades", ["curve_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_trades_curve_id"), table_name="trades")
    op.drop_table("trades")
    op.drop_table("user_transfer_data")
    op.drop_table("token_holdings")
    op.drop_table("bonding_curves")
    op.drop_table("global_config")
    op.drop_index(op.f("ix_accounts_address"), table_name="accounts")
    op.drop_table("accounts")
