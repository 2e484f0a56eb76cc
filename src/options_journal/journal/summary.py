"""Summary statistics over a window of enriched trades.

A trade is a win when ``pnl > 0``; break-even trades count as losses.
R-multiple averages only include trades that carry a stop loss, so a
trade without one still moves the win rate but never the R figures.

Usage::

    stats = summarize(trades)
    print(stats.win_rate, stats.avg_r_multiple, stats.profit_factor)
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Sequence

from options_journal.core.enums import OptionType
from options_journal.core.models import Trade

from .calculator import round2, round_half_up

logger = logging.getLogger(__name__)

DEFAULT_DAILY_TRADE_LIMIT = 4


def _pct(part: int, whole: int) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def win_rate(trades: Sequence[Trade]) -> float:
    """Percentage of trades with positive P&L (0 for no trades)."""
    return _pct(sum(1 for t in trades if t.is_win), len(trades))


@dataclass
class SummaryStatistics:
    """Aggregate performance over a set of trades."""

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    total_pnl: float = 0.0
    win_rate: float = 0.0
    avg_r_multiple: float = 0.0
    avg_r_multiple_winning: float = 0.0
    avg_r_multiple_losing: float = 0.0
    stop_loss_usage_rate: float = 0.0
    trades_with_stop_loss: int = 0
    plan_follow_rate: float = 0.0
    trades_with_plan_followed: int = 0
    total_profit: float = 0.0
    total_loss: float = 0.0
    profit_factor: float = 0.0
    total_investment: float = 0.0
    return_percentage: float = 0.0
    calls: int = 0
    puts: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def summarize(trades: Sequence[Trade]) -> SummaryStatistics:
    """Compute :class:`SummaryStatistics` for ``trades``."""
    total = len(trades)
    if total == 0:
        return SummaryStatistics()

    winners = [t for t in trades if t.is_win]
    with_sl = [t for t in trades if t.has_stop_loss]
    followed = [t for t in trades if t.followed_plan]

    total_pnl = sum(t.pnl for t in trades)
    total_profit = sum(t.pnl for t in winners)
    total_loss = abs(sum(t.pnl for t in trades if t.pnl < 0))
    investment = sum(t.investment for t in trades)

    return SummaryStatistics(
        total_trades=total,
        winning_trades=len(winners),
        losing_trades=total - len(winners),
        total_pnl=round2(total_pnl),
        win_rate=round2(_pct(len(winners), total)),
        avg_r_multiple=round2(_mean([t.r_multiple for t in with_sl])),
        avg_r_multiple_winning=round2(
            _mean([t.r_multiple for t in with_sl if t.is_win])
        ),
        avg_r_multiple_losing=round2(
            _mean([t.r_multiple for t in with_sl if not t.is_win])
        ),
        stop_loss_usage_rate=round2(_pct(len(with_sl), total)),
        trades_with_stop_loss=len(with_sl),
        plan_follow_rate=round2(_pct(len(followed), total)),
        trades_with_plan_followed=len(followed),
        total_profit=round2(total_profit),
        total_loss=round2(total_loss),
        profit_factor=round2(total_profit / total_loss) if total_loss > 0 else 0.0,
        total_investment=round2(investment),
        return_percentage=round2(total_pnl / investment * 100) if investment > 0 else 0.0,
        calls=sum(1 for t in trades if t.option_type == OptionType.CALL),
        puts=sum(1 for t in trades if t.option_type == OptionType.PUT),
    )


def bucket_metrics(trades: Sequence[Trade]) -> dict[str, Any]:
    """Performance figures for an arbitrary bucket of trades.

    Like :func:`summarize` but also reports average P&L and the best and
    worst trade (clamped at zero, so a bucket of only losers has a best
    trade of 0).
    """
    if not trades:
        return {
            "total_pnl": 0.0,
            "avg_pnl": 0.0,
            "win_rate": 0.0,
            "avg_r_multiple": 0.0,
            "avg_r_multiple_winning": 0.0,
            "avg_r_multiple_losing": 0.0,
            "total_profit": 0.0,
            "total_loss": 0.0,
            "plan_follow_rate": 0.0,
            "best_trade": 0.0,
            "worst_trade": 0.0,
            "profit_factor": 0.0,
            "winning_trades": 0,
            "losing_trades": 0,
        }

    stats = summarize(trades)
    pnls = [t.pnl for t in trades]
    # Break-even trades sit on the losing side here.
    losing_total = abs(sum(p for p in pnls if p <= 0))
    return {
        "total_pnl": stats.total_pnl,
        "avg_pnl": round2(sum(pnls) / len(pnls)),
        "win_rate": stats.win_rate,
        "avg_r_multiple": stats.avg_r_multiple,
        "avg_r_multiple_winning": stats.avg_r_multiple_winning,
        "avg_r_multiple_losing": stats.avg_r_multiple_losing,
        "total_profit": stats.total_profit,
        "total_loss": round2(losing_total),
        "plan_follow_rate": stats.plan_follow_rate,
        "best_trade": round2(max(max(pnls), 0.0)),
        "worst_trade": round2(min(min(pnls), 0.0)),
        "profit_factor": round2(stats.total_profit / losing_total) if losing_total > 0 else 0.0,
        "winning_trades": stats.winning_trades,
        "losing_trades": stats.losing_trades,
    }


def trade_limit_analysis(
    trades: Sequence[Trade],
    *,
    daily_limit: int = DEFAULT_DAILY_TRADE_LIMIT,
    single_day: bool = False,
    max_violations: int = 5,
) -> dict[str, Any]:
    """Check trade counts against the per-day trade limit.

    For a single-day window the result describes that day only; otherwise
    it lists the most recent days that went over the limit.
    """
    if single_day:
        count = len(trades)
        return {
            "today_trade_count": count,
            "limit_exceeded": count > daily_limit,
            "excess_trades": max(0, count - daily_limit),
        }

    per_day: Counter[date] = Counter(t.trade_date for t in trades)
    over = sorted(
        ((d, n) for d, n in per_day.items() if n > daily_limit),
        key=lambda item: item[0],
        reverse=True,
    )
    days_traded = len(per_day)
    return {
        "days_over_limit": len(over),
        "total_days_traded": days_traded,
        "violation_dates": [
            {"date": d.isoformat(), "trade_count": n, "excess": n - daily_limit}
            for d, n in over[:max_violations]
        ],
        "violation_rate": (
            int(round_half_up(len(over) / days_traded * 100, 0)) if days_traded else 0
        ),
    }
