"""Win and plan-adherence streaks.

Current streaks count back from the most recent trade and stop at the
first break.  Max streaks scan the whole history for the longest run.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable, Sequence

from options_journal.core.models import Trade


@dataclass
class StreakCounts:
    current_win_streak: int = 0
    current_plan_streak: int = 0
    max_win_streak: int = 0
    max_plan_streak: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _current_run(trades: Sequence[Trade], hit: Callable[[Trade], bool]) -> int:
    count = 0
    for trade in trades:
        if not hit(trade):
            break
        count += 1
    return count


def _longest_run(trades: Sequence[Trade], hit: Callable[[Trade], bool]) -> int:
    longest = 0
    run = 0
    for trade in trades:
        if hit(trade):
            run += 1
            longest = max(longest, run)
        else:
            run = 0
    return longest


def calculate_streaks(trades: Sequence[Trade]) -> StreakCounts:
    """Compute current and max win / plan streaks.

    Trades are ordered newest first by trade date (stable for trades on
    the same date, so the caller's order breaks ties).
    """
    ordered = sorted(trades, key=lambda t: t.trade_date, reverse=True)

    def won(t: Trade) -> bool:
        return t.is_win

    def planned(t: Trade) -> bool:
        return t.followed_plan

    return StreakCounts(
        current_win_streak=_current_run(ordered, won),
        current_plan_streak=_current_run(ordered, planned),
        max_win_streak=_longest_run(ordered, won),
        max_plan_streak=_longest_run(ordered, planned),
    )


def longest_losing_run(trades: Sequence[Trade]) -> int:
    """Longest run of strictly losing trades (``pnl < 0``) in the given order."""
    return _longest_run(trades, lambda t: t.pnl < 0)
