"""Weekly performance series for trend charts.

Weeks start on Sunday.  Only weeks with at least one trade appear, in
ascending order.  The caller restricts trades to the lookback window
(12 weeks by default, see :func:`lookback_start`).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Sequence

from options_journal.core.models import Trade

from .calculator import round2

DEFAULT_LOOKBACK_WEEKS = 12


def week_start(day: date) -> date:
    """The Sunday on or before ``day``."""
    # weekday(): Monday=0 .. Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def week_label(day: date) -> str:
    return f"{day:%b} {day.day}"


def lookback_start(today: date, weeks: int = DEFAULT_LOOKBACK_WEEKS) -> date:
    return today - timedelta(weeks=weeks)


def _group_by_week(trades: Sequence[Trade]) -> dict[date, list[Trade]]:
    weeks: dict[date, list[Trade]] = {}
    for trade in sorted(trades, key=lambda t: t.trade_date):
        weeks.setdefault(week_start(trade.trade_date), []).append(trade)
    return weeks


def _avg_r(trades: Sequence[Trade]) -> float:
    # Trades without a stop loss count as 0R on the weekly chart
    if not trades:
        return 0.0
    return sum(t.r_multiple or 0.0 for t in trades) / len(trades)


@dataclass
class WeeklyRMultiple:
    week: date
    week_label: str
    avg_r_multiple: float
    avg_winners_r_multiple: float
    avg_losers_r_multiple: float
    total_trades: int
    winning_trades: int
    losing_trades: int

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["week"] = self.week.isoformat()
        return d


@dataclass
class WeeklyRate:
    """Share of a week's trades that satisfied a condition (win, plan)."""

    week: date
    week_label: str
    rate: float
    total_trades: int
    matching_trades: int

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["week"] = self.week.isoformat()
        return d


def weekly_r_multiple(trades: Sequence[Trade]) -> list[WeeklyRMultiple]:
    series = []
    for week, group in _group_by_week(trades).items():
        winners = [t for t in group if t.is_win]
        losers = [t for t in group if not t.is_win]
        series.append(WeeklyRMultiple(
            week=week,
            week_label=week_label(week),
            avg_r_multiple=round2(_avg_r(group)),
            avg_winners_r_multiple=round2(_avg_r(winners)),
            avg_losers_r_multiple=round2(_avg_r(losers)),
            total_trades=len(group),
            winning_trades=len(winners),
            losing_trades=len(losers),
        ))
    return series


def _weekly_rate(trades: Sequence[Trade], hit) -> list[WeeklyRate]:
    series = []
    for week, group in _group_by_week(trades).items():
        matching = sum(1 for t in group if hit(t))
        series.append(WeeklyRate(
            week=week,
            week_label=week_label(week),
            rate=round2(matching / len(group) * 100),
            total_trades=len(group),
            matching_trades=matching,
        ))
    return series


def weekly_win_rate(trades: Sequence[Trade]) -> list[WeeklyRate]:
    return _weekly_rate(trades, lambda t: t.is_win)


def weekly_plan_follow_rate(trades: Sequence[Trade]) -> list[WeeklyRate]:
    return _weekly_rate(trades, lambda t: t.followed_plan)
