"""Performance broken down by trade classification.

Groups trades by breakout type (vertical / horizontal) and by the index
range classification of the day, and splits Nifty from non-Nifty
underlyings.  Only groups with at least one trade appear in the result.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable, Hashable, Sequence

from options_journal.core.enums import BreakoutType, NiftyRange
from options_journal.core.models import Trade

from .calculator import round2
from .mistakes import common_mistakes
from .summary import bucket_metrics, win_rate


@dataclass
class GroupAnalysis:
    avg_pnl: float
    avg_r_multiple: float
    count: int
    win_rate: float
    total_pnl: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _analyse(group: Sequence[Trade]) -> GroupAnalysis:
    total = sum(t.pnl for t in group)
    # Trades without a stop loss contribute 0R here
    total_r = sum(t.r_multiple or 0.0 for t in group)
    return GroupAnalysis(
        avg_pnl=round2(total / len(group)),
        avg_r_multiple=round2(total_r / len(group)),
        count=len(group),
        win_rate=round2(win_rate(group)),
        total_pnl=round2(total),
    )


def _group_by(
    trades: Sequence[Trade],
    key: Callable[[Trade], Hashable | None],
    allowed: Sequence[Hashable],
) -> dict[str, GroupAnalysis]:
    groups: dict[Hashable, list[Trade]] = {}
    for trade in trades:
        value = key(trade)
        if value in allowed:
            groups.setdefault(value, []).append(trade)
    return {
        getattr(value, "value", str(value)): _analyse(groups[value])
        for value in allowed
        if value in groups
    }


def analyze_breakout_types(trades: Sequence[Trade]) -> dict[str, GroupAnalysis]:
    """Vertical vs horizontal breakout performance."""
    return _group_by(
        trades,
        lambda t: t.breakout_type,
        (BreakoutType.VERTICAL, BreakoutType.HORIZONTAL),
    )


def analyze_nifty_range(trades: Sequence[Trade]) -> dict[str, GroupAnalysis]:
    """Performance per index range classification (inside / outside day)."""
    return _group_by(trades, lambda t: t.nifty_range, tuple(NiftyRange))


def is_nifty(trade: Trade) -> bool:
    underlying = trade.underlying.strip().lower()
    return "nifty" in underlying or underlying == "nf"


def compare_nifty(trades: Sequence[Trade]) -> dict[str, Any]:
    """Nifty vs non-Nifty buckets with metrics and behavioural patterns."""
    nifty = [t for t in trades if is_nifty(t)]
    others = [t for t in trades if not is_nifty(t)]
    return {
        "nifty": {
            "count": len(nifty),
            "metrics": bucket_metrics(nifty),
            "patterns": common_mistakes(nifty),
        },
        "non_nifty": {
            "count": len(others),
            "metrics": bucket_metrics(others),
            "patterns": common_mistakes(others),
        },
        "total_trades": len(trades),
    }
