"""Time-of-day performance buckets.

Trades are bucketed by the hour of their ``created_at`` timestamp (when
the trade was logged), not by trade date:

    first 90 mins   09:00 - 10:59
    mid-morning     11:00 - 12:59
    afternoon       everything else, including trades with no timestamp
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from options_journal.core.models import Trade

from .calculator import round2

FIRST_90_MINS = "first 90 mins"
MID_MORNING = "mid-morning"
AFTERNOON = "afternoon"

SLOTS = (FIRST_90_MINS, MID_MORNING, AFTERNOON)


def slot_for(trade: Trade) -> str:
    if trade.created_at is None:
        return AFTERNOON
    hour = trade.created_at.hour
    if 9 <= hour < 11:
        return FIRST_90_MINS
    if 11 <= hour < 13:
        return MID_MORNING
    return AFTERNOON


@dataclass
class SlotStats:
    trades: int = 0
    pnl: float = 0.0


@dataclass
class TimeOfDayResult:
    best_time: str | None = None
    best_pnl: float | None = None
    slots: dict[str, SlotStats] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "best_time": self.best_time,
            "best_pnl": self.best_pnl,
            "slots": {
                name: {"trades": s.trades, "pnl": round2(s.pnl)}
                for name, s in self.slots.items()
            },
        }


def analyze_time_of_day(trades: Sequence[Trade]) -> TimeOfDayResult:
    """Sum P&L per slot and pick the slot with the highest total.

    Only slots holding at least one trade compete; on a tie the earlier
    slot of the day wins.  ``best_time`` is ``None`` when there are no
    trades.
    """
    slots = {name: SlotStats() for name in SLOTS}
    for trade in trades:
        stats = slots[slot_for(trade)]
        stats.trades += 1
        stats.pnl += trade.pnl

    result = TimeOfDayResult(slots=slots)
    for name in SLOTS:
        stats = slots[name]
        if stats.trades == 0:
            continue
        if result.best_pnl is None or stats.pnl > result.best_pnl:
            result.best_time = name
            result.best_pnl = stats.pnl

    if result.best_pnl is not None:
        result.best_pnl = round2(result.best_pnl)
    return result
