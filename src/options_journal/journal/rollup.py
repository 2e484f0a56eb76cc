"""Daily metrics rollup.

A rollup is never patched incrementally: it is rebuilt from every trade
on its date whenever one of them is created, edited or deleted.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from options_journal.core.models import DailyMetricsRollup, Trade

from .calculator import round2
from .summary import summarize

logger = logging.getLogger(__name__)


def build_daily_rollup(
    user_id: int, day: date, trades: Sequence[Trade],
) -> DailyMetricsRollup | None:
    """Aggregate one user's trades on ``day``.

    Trades on other dates are ignored.  Returns ``None`` when no trade
    falls on ``day``; the caller removes the stored row in that case.
    """
    on_day = [t for t in trades if t.trade_date == day]
    if not on_day:
        return None

    stats = summarize(on_day)
    with_mistakes = sum(1 for t in on_day if t.mistakes)
    return DailyMetricsRollup(
        user_id=user_id,
        date=day,
        total_trades=stats.total_trades,
        winning_trades=stats.winning_trades,
        losing_trades=stats.losing_trades,
        total_pnl=stats.total_pnl,
        win_rate=stats.win_rate,
        avg_r_multiple=stats.avg_r_multiple,
        plan_adherence_rate=stats.plan_follow_rate,
        mistake_frequency=round2(with_mistakes / len(on_day) * 100),
    )
