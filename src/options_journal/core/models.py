"""Core domain models used across the options journal.

These are the canonical records exchanged between the storage adapter,
the analytics engine and the HTTP layer.  Tag fields (mistakes, entry and
exit emotions) are ordered label sets here; the comma-joined text form
only exists at the storage and file boundaries.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Iterable

from pydantic import BaseModel, Field, field_validator

from .enums import (
    BreakoutType,
    InsightType,
    NiftyRange,
    OptionType,
    Severity,
    TagCategory,
)


# ---------------------------------------------------------------------------
# Label helpers
# ---------------------------------------------------------------------------

def parse_labels(value: str | Iterable[str] | None) -> list[str]:
    """Split, trim and lower-case labels, dropping blanks and duplicates.

    Accepts either the comma-joined storage form or an iterable of labels.
    First-seen order is preserved.
    """
    if value is None:
        return []
    raw = value.split(",") if isinstance(value, str) else list(value)
    labels: list[str] = []
    for item in raw:
        label = str(item).strip().lower()
        if label and label not in labels:
            labels.append(label)
    return labels


def join_labels(labels: Iterable[str]) -> str | None:
    """Join labels into the comma-separated storage form (``None`` if empty)."""
    items = [label for label in labels if label]
    return ", ".join(items) if items else None


# ---------------------------------------------------------------------------
# Trade
# ---------------------------------------------------------------------------

class TradeInput(BaseModel):
    """User-entered fields of one closed options trade."""

    underlying: str
    option_type: OptionType = OptionType.NONE
    breakout_type: BreakoutType | None = None
    nifty_range: NiftyRange | None = None
    strike_price: float | None = None
    entry_price: float
    exit_price: float
    stop_loss: float | None = None
    quantity: int  # Units (individual options), not lots
    lot_size: int = 25
    trade_date: date
    entry_time: time | None = None
    exit_time: time | None = None

    followed_plan: bool = True
    mistakes: list[str] = Field(default_factory=list)
    entry_emotions: list[str] = Field(default_factory=list)
    exit_emotions: list[str] = Field(default_factory=list)
    notes: str | None = None
    screenshot_url: str | None = None

    @field_validator("mistakes", "entry_emotions", "exit_emotions", mode="before")
    @classmethod
    def _coerce_labels(cls, value: Any) -> list[str]:
        return parse_labels(value)

    @field_validator("stop_loss", "strike_price", "breakout_type", "nifty_range", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Trade(TradeInput):
    """A trade with storage identity and calculator-owned derived fields."""

    id: int | None = None
    user_id: int | None = None

    # Derived (written only by the metrics calculator)
    pnl: float = 0.0
    return_percentage: float = 0.0
    risk_amount: float | None = None
    r_multiple: float | None = None

    created_at: datetime | None = None

    @property
    def is_win(self) -> bool:
        return self.pnl > 0

    @property
    def has_stop_loss(self) -> bool:
        return self.r_multiple is not None

    @property
    def investment(self) -> float:
        return self.entry_price * self.quantity


# ---------------------------------------------------------------------------
# Rollups and insights
# ---------------------------------------------------------------------------

class DailyMetricsRollup(BaseModel):
    """Materialized aggregate of one user's trades on one calendar date."""

    user_id: int
    date: date
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    total_pnl: float = 0.0
    win_rate: float = 0.0
    avg_r_multiple: float = 0.0
    plan_adherence_rate: float = 0.0
    mistake_frequency: float = 0.0


class Insight(BaseModel):
    """A short heuristic observation about recent trading behaviour."""

    type: InsightType
    message: str
    severity: Severity
    id: int | None = None
    user_id: int | None = None
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Reference vocabulary
# ---------------------------------------------------------------------------

class MistakeTag(BaseModel):
    tag_name: str
    category: TagCategory = TagCategory.CUSTOM
    description: str | None = None


class EmotionTag(BaseModel):
    tag_name: str
    category: str | None = None
    usage_count: int = 1
    id: int | None = None
    user_id: int | None = None


class User(BaseModel):
    id: int
    email: str
    name: str | None = None
    created_at: datetime | None = None
