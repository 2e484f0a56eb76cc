"""Initial schema: users, trades, daily metrics, insights, tag vocabulary.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18 00:00:00.000000
"""
from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )

    # Trades
    op.create_table(
        "trades",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("underlying", sa.String(64), nullable=False),
        sa.Column("option_type", sa.String(8), nullable=False, server_default="none"),
        sa.Column("breakout_type", sa.String(16), nullable=True),
        sa.Column("nifty_range", sa.String(32), nullable=True),
        sa.Column("strike_price", sa.Float, nullable=True),
        sa.Column("entry_price", sa.Float, nullable=False),
        sa.Column("stop_loss", sa.Float, nullable=True),
        sa.Column("exit_price", sa.Float, nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("lot_size", sa.Integer, nullable=False, server_default="25"),
        sa.Column("trade_date", sa.Date, nullable=False),
        sa.Column("entry_time", sa.Time, nullable=True),
        sa.Column("exit_time", sa.Time, nullable=True),
        sa.Column("followed_plan", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("mistakes", sa.Text, nullable=True),
        sa.Column("emotional_state_entry", sa.Text, nullable=True),
        sa.Column("emotional_state_exit", sa.Text, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("screenshot_url", sa.String(1024), nullable=True),
        sa.Column("pnl", sa.Float, nullable=False, server_default="0"),
        sa.Column("return_percentage", sa.Float, nullable=False, server_default="0"),
        sa.Column("risk_amount", sa.Float, nullable=True),
        sa.Column("r_multiple", sa.Float, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_trades_user_date", "trades", ["user_id", "trade_date"])
    op.create_index("ix_trades_user_created", "trades", ["user_id", "created_at"])

    # Daily rollups
    op.create_table(
        "daily_metrics",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("total_trades", sa.Integer, server_default="0"),
        sa.Column("winning_trades", sa.Integer, server_default="0"),
        sa.Column("losing_trades", sa.Integer, server_default="0"),
        sa.Column("total_pnl", sa.Float, server_default="0"),
        sa.Column("win_rate", sa.Float, server_default="0"),
        sa.Column("avg_r_multiple", sa.Float, server_default="0"),
        sa.Column("plan_adherence_rate", sa.Float, server_default="0"),
        sa.Column("mistake_frequency", sa.Float, server_default="0"),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_metrics_user_date"),
    )

    # Insight snapshots
    op.create_table(
        "insights",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("severity", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_insights_user_id", "insights", ["user_id"])

    # Tag vocabulary
    op.create_table(
        "mistake_tags",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("tag_name", sa.String(128), nullable=False, unique=True),
        sa.Column("category", sa.String(32), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
    )
    op.create_table(
        "emotional_state_tags",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tag_name", sa.String(128), nullable=False),
        sa.Column("category", sa.String(32), nullable=True),
        sa.Column("usage_count", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "tag_name", name="uq_emotion_tags_user_name"),
    )


def downgrade() -> None:
    op.drop_table("emotional_state_tags")
    op.drop_table("mistake_tags")
    op.drop_table("insights")
    op.drop_table("daily_metrics")
    op.drop_table("trades")
    op.drop_table("users")
