"""Initial schema: trades, bot_configurations, bot_logs.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- bot_configurations ---
    op.create_table(
        "bot_configurations",
        sa.Column(
            "id",
            sa.String(36),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()::text"),
        ),
        sa.Column("user_id", sa.String(64), unique=True, nullable=False),
        sa.Column("api_key_encrypted", sa.Text),
        sa.Column("api_secret_encrypted", sa.Text),
        sa.Column("test_mode", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("test_balance", sa.Numeric(20, 8), nullable=False, server_default="1000"),
        sa.Column("trading_pair", sa.String(30), nullable=False, server_default="BTCUSDT"),
        sa.Column("quantity", sa.Numeric(20, 8), nullable=False, server_default="100"),
        sa.Column("take_profit_percent", sa.Numeric(10, 4), nullable=False, server_default="5"),
        sa.Column("stop_loss_percent", sa.Numeric(10, 4), nullable=False, server_default="2.5"),
        sa.Column("daily_profit_goal", sa.Numeric(20, 8), nullable=False, server_default="50"),
        sa.Column("is_running", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_powered_on", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- trades ---
    op.create_table(
        "trades",
        sa.Column(
            "id",
            sa.String(36),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()::text"),
        ),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("symbol", sa.String(30), nullable=False),
        sa.Column(
            "side",
            sa.String(4),
            sa.CheckConstraint("side IN ('BUY', 'SELL')"),
            nullable=False,
        ),
        sa.Column(
            "type",
            sa.String(6),
            sa.CheckConstraint("type IN ('MARKET', 'LIMIT')"),
            nullable=False,
            server_default="MARKET",
        ),
        sa.Column("price", sa.Numeric(20, 8), nullable=False),
        sa.Column("quantity", sa.Numeric(20, 8), nullable=False),
        sa.Column(
            "status",
            sa.String(10),
            sa.CheckConstraint("status IN ('PENDING', 'EXECUTED', 'FAILED', 'CANCELLED')"),
            nullable=False,
            server_default="PENDING",
        ),
        sa.Column("profit_loss", sa.Numeric(20, 8)),
        sa.Column("binance_order_id", sa.String(50)),
        sa.Column("executed_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("idx_trades_user_id", "trades", ["user_id"])
    op.create_index("idx_trades_created_at", "trades", [sa.text("created_at DESC")])
    op.create_index("idx_trades_symbol", "trades", ["symbol"])

    # --- bot_logs ---
    op.create_table(
        "bot_logs",
        sa.Column(
            "id",
            sa.String(36),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()::text"),
        ),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column(
            "level",
            sa.String(10),
            sa.CheckConstraint("level IN ('INFO', 'WARNING', 'ERROR', 'SUCCESS')"),
            nullable=False,
        ),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("details", JSONB),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("idx_bot_logs_user_id", "bot_logs", ["user_id"])
    op.create_index("idx_bot_logs_created_at", "bot_logs", [sa.text("created_at DESC")])


def downgrade() -> None:
    op.drop_table("bot_logs")
    op.drop_table("trades")
    op.drop_table("bot_configurations")
