"""SQLAlchemy ORM models for the journal database.

Column types are portable between SQLite (the default) and PostgreSQL.
Label sets (mistakes, entry and exit emotions) are stored as
comma-separated text; the repositories convert them to and from lists.

Relationships:
    UserRecord 1--* TradeRecord, DailyMetricsRecord, InsightRecord, EmotionTagRecord
"""

from __future__ import annotations

from datetime import date, datetime, time

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _now() -> datetime:
    # Local wall-clock time; time-of-day analysis buckets on this
    return datetime.now()


# ---------------------------------------------------------------------------
# Declarative base
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""

    pass


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class UserRecord(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_now, server_default=func.now(),
    )


# ---------------------------------------------------------------------------
# Trades
# ---------------------------------------------------------------------------

class TradeRecord(Base):
    """One closed options trade.

    ``pnl``, ``return_percentage``, ``risk_amount`` and ``r_multiple`` are
    written only from calculator output.
    """

    __tablename__ = "trades"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    underlying: Mapped[str] = mapped_column(String(64), nullable=False)
    option_type: Mapped[str] = mapped_column(String(8), nullable=False, default="none")
    breakout_type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    nifty_range: Mapped[str | None] = mapped_column(String(32), nullable=True)
    strike_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    entry_price: Mapped[float] = mapped_column(Float, nullable=False)
    stop_loss: Mapped[float | None] = mapped_column(Float, nullable=True)
    exit_price: Mapped[float] = mapped_column(Float, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    lot_size: Mapped[int] = mapped_column(Integer, nullable=False, default=25)
    trade_date: Mapped[date] = mapped_column(Date, nullable=False)
    entry_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    exit_time: Mapped[time | None] = mapped_column(Time, nullable=True)

    followed_plan: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    mistakes: Mapped[str | None] = mapped_column(Text, nullable=True)
    emotional_state_entry: Mapped[str | None] = mapped_column(Text, nullable=True)
    emotional_state_exit: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    screenshot_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    pnl: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    return_percentage: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    risk_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    r_multiple: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_now, server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_trades_user_date", "user_id", "trade_date"),
        Index("ix_trades_user_created", "user_id", "created_at"),
    )


# ---------------------------------------------------------------------------
# Daily rollups
# ---------------------------------------------------------------------------

class DailyMetricsRecord(Base):
    __tablename__ = "daily_metrics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)
    total_trades: Mapped[int] = mapped_column(Integer, default=0)
    winning_trades: Mapped[int] = mapped_column(Integer, default=0)
    losing_trades: Mapped[int] = mapped_column(Integer, default=0)
    total_pnl: Mapped[float] = mapped_column(Float, default=0.0)
    win_rate: Mapped[float] = mapped_column(Float, default=0.0)
    avg_r_multiple: Mapped[float] = mapped_column(Float, default=0.0)
    plan_adherence_rate: Mapped[float] = mapped_column(Float, default=0.0)
    mistake_frequency: Mapped[float] = mapped_column(Float, default=0.0)

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_metrics_user_date"),
    )


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------

class InsightRecord(Base):
    __tablename__ = "insights"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_now, server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_insights_user_id", "user_id"),
    )


# ---------------------------------------------------------------------------
# Tag vocabulary
# ---------------------------------------------------------------------------

class MistakeTagRecord(Base):
    """Global catalogue of mistake tags."""

    __tablename__ = "mistake_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tag_name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    category: Mapped[str | None] = mapped_column(String(32), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class EmotionTagRecord(Base):
    """Per-user emotional state labels with usage counts."""

    __tablename__ = "emotional_state_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    tag_name: Mapped[str] = mapped_column(String(128), nullable=False)
    category: Mapped[str | None] = mapped_column(String(32), nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_now, server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "tag_name", name="uq_emotion_tags_user_name"),
    )
