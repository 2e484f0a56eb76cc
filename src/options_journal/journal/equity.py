"""Equity curve and drawdown.

Drawdown is measured on the running cumulative P&L of a trade window,
so the reference peak starts at zero (flat) and only moves upward.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Mapping, Sequence

from options_journal.core.models import DailyMetricsRollup, Trade

from .calculator import round2


def max_drawdown(trades: Sequence[Trade]) -> float:
    """Largest peak-to-trough decline of cumulative P&L.

    Trades are walked in ascending trade-date order (a sorted copy; the
    caller's sequence is left untouched).  Returns 0 for no trades or a
    curve that never falls below its peak.
    """
    peak = 0.0
    cumulative = 0.0
    worst = 0.0
    for trade in sorted(trades, key=lambda t: t.trade_date):
        cumulative += trade.pnl
        if cumulative > peak:
            peak = cumulative
        drawdown = peak - cumulative
        if drawdown > worst:
            worst = drawdown
    return round2(worst)


@dataclass
class EquityCurvePoint:
    """One day on the performance-trend chart."""

    date: date
    pnl: float
    cumulative_pnl: float
    win_rate: float
    avg_r_multiple: float
    winners_r_multiple: float = 0.0
    losers_r_multiple: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["date"] = self.date.isoformat()
        return d


def daily_r_split(trades: Sequence[Trade]) -> dict[date, tuple[float, float]]:
    """Per-date average R of winners and of non-winners.

    Only trades that carry an R-multiple take part; a side with no such
    trades reports 0.
    """
    grouped: dict[date, tuple[list[float], list[float]]] = {}
    for trade in trades:
        if trade.r_multiple is None:
            continue
        winners, losers = grouped.setdefault(trade.trade_date, ([], []))
        (winners if trade.is_win else losers).append(trade.r_multiple)

    return {
        day: (
            sum(w) / len(w) if w else 0.0,
            sum(lo) / len(lo) if lo else 0.0,
        )
        for day, (w, lo) in grouped.items()
    }


def equity_curve(
    rollups: Sequence[DailyMetricsRollup],
    r_split: Mapping[date, tuple[float, float]] | None = None,
) -> list[EquityCurvePoint]:
    """Running cumulative P&L over ascending daily rollups.

    One point per rollup; days without trades have no rollup and are not
    filled in.
    """
    split = r_split or {}
    cumulative = 0.0
    points: list[EquityCurvePoint] = []
    for day in sorted(rollups, key=lambda r: r.date):
        cumulative += day.total_pnl
        winners_r, losers_r = split.get(day.date, (0.0, 0.0))
        points.append(EquityCurvePoint(
            date=day.date,
            pnl=round2(day.total_pnl),
            cumulative_pnl=round2(cumulative),
            win_rate=day.win_rate,
            avg_r_multiple=day.avg_r_multiple,
            winners_r_multiple=round2(winners_r),
            losers_r_multiple=round2(losers_r),
        ))
    return points
