"""Mistake and emotional-state pattern mining.

Mistakes are free-text labels entered per trade.  A label counts at most
once per trade (a mistake either happened on a trade or it did not), and
matching is case-insensitive.

Usage::

    patterns = find_mistake_patterns(trades)
    print(patterns[0].mistake, patterns[0].frequency, patterns[0].avg_pnl)
    report = plan_deviation_analysis(trades)
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Sequence

from options_journal.core.models import Trade, parse_labels

from .calculator import round2

logger = logging.getLogger(__name__)

# Keyword buckets for plan-deviation mistakes, checked in this order
_MISTAKE_CATEGORIES = (
    ("emotional_triggers", ("fear", "greed", "revenge", "fomo")),
    ("setup_issues", ("setup", "entry", "timing")),
    ("risk_management", ("stop", "risk", "size", "position")),
    ("exit_problems", ("exit", "target", "hold")),
)

_ENTRY_TRIGGER_WORDS = ("anxious", "nervous", "uncertain", "greedy", "angry", "frustrated")
_EXIT_TRIGGER_WORDS = ("panic", "fear", "impatient", "greedy", "regret", "frustrated")


@dataclass
class MistakePattern:
    """Aggregated impact of one mistake label."""

    mistake: str
    frequency: int
    total_pnl: float
    avg_pnl: float
    trade_ids: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def mistake_frequency(trades: Iterable[Trade]) -> Counter[str]:
    """Count of trades carrying each mistake label (first-seen order)."""
    counts: Counter[str] = Counter()
    for trade in trades:
        counts.update(parse_labels(trade.mistakes))
    return counts


def find_mistake_patterns(trades: Sequence[Trade], *, limit: int = 5) -> list[MistakePattern]:
    """Top ``limit`` mistakes by frequency, each with its average P&L.

    Ties keep the order in which labels were first encountered.
    """
    buckets: dict[str, MistakePattern] = {}
    for trade in trades:
        for label in parse_labels(trade.mistakes):
            pattern = buckets.get(label)
            if pattern is None:
                pattern = buckets[label] = MistakePattern(
                    mistake=label, frequency=0, total_pnl=0.0, avg_pnl=0.0,
                )
            pattern.frequency += 1
            pattern.total_pnl += trade.pnl
            if trade.id is not None:
                pattern.trade_ids.append(trade.id)

    ranked = sorted(buckets.values(), key=lambda p: p.frequency, reverse=True)[:limit]
    for pattern in ranked:
        pattern.avg_pnl = round2(pattern.total_pnl / pattern.frequency)
        pattern.total_pnl = round2(pattern.total_pnl)
    return ranked


def _top(counts: Counter[str], n: int, denominator: int, key: str) -> list[dict[str, Any]]:
    # most_common keeps insertion order for equal counts
    return [
        {
            key: label,
            "count": count,
            "percentage": round2(count / denominator * 100) if denominator else 0.0,
        }
        for label, count in counts.most_common(n)
    ]


def common_mistakes(trades: Sequence[Trade]) -> dict[str, Any]:
    """Top mistakes and top entry / exit emotions for a bucket of trades."""
    mistakes = mistake_frequency(trades)
    entry: Counter[str] = Counter()
    exit_: Counter[str] = Counter()
    for trade in trades:
        entry.update(parse_labels(trade.entry_emotions))
        exit_.update(parse_labels(trade.exit_emotions))

    n = len(trades)
    return {
        "top_mistakes": _top(mistakes, 5, n, "mistake"),
        "top_entry_emotions": _top(entry, 3, n, "emotion"),
        "top_exit_emotions": _top(exit_, 3, n, "emotion"),
        "total_mistake_types": len(mistakes),
    }


def _categorise(label: str) -> str | None:
    for category, words in _MISTAKE_CATEGORIES:
        if any(word in label for word in words):
            return category
    return None


def plan_deviation_analysis(trades: Sequence[Trade]) -> dict[str, Any]:
    """Analyse the trades where the plan was not followed.

    Returns the top deviations, keyword-categorised patterns (emotional
    triggers, setup issues, risk management lapses, exit problems), the
    average R-multiple and total P&L of deviation trades, and short
    recommendation cards.
    """
    deviations = [t for t in trades if not t.followed_plan]
    patterns: dict[str, Counter[str]] = {
        "emotional_triggers": Counter(),
        "setup_issues": Counter(),
        "risk_management": Counter(),
        "exit_problems": Counter(),
    }

    r_values: list[float] = []
    total_pnl = 0.0
    for trade in deviations:
        total_pnl += trade.pnl
        if trade.r_multiple is not None:
            r_values.append(trade.r_multiple)

        for label in parse_labels(trade.mistakes):
            category = _categorise(label)
            if category is not None:
                patterns[category][label] += 1

        for emotion in parse_labels(trade.entry_emotions):
            if any(word in emotion for word in _ENTRY_TRIGGER_WORDS):
                patterns["emotional_triggers"][f"entry: {emotion}"] += 1
        for emotion in parse_labels(trade.exit_emotions):
            if any(word in emotion for word in _EXIT_TRIGGER_WORDS):
                patterns["emotional_triggers"][f"exit: {emotion}"] += 1

    avg_r = sum(r_values) / len(r_values) if r_values else 0.0

    insights: list[dict[str, str]] = []
    if patterns["emotional_triggers"]:
        label, count = patterns["emotional_triggers"].most_common(1)[0]
        insights.append({
            "type": "emotional",
            "title": "Emotional Trading Issues",
            "description": f'Most common: "{label}" ({count} times)',
            "recommendation": "Consider implementing emotional check-ins before trading",
        })
    if patterns["risk_management"]:
        label, count = patterns["risk_management"].most_common(1)[0]
        insights.append({
            "type": "risk",
            "title": "Risk Management Lapses",
            "description": f'Most common: "{label}" ({count} times)',
            "recommendation": "Review and strengthen your risk management rules",
        })
    if avg_r < -1.5:
        insights.append({
            "type": "performance",
            "title": "Plan Deviations Hurt Performance",
            "description": f"Deviation trades average {avg_r:.2f}R",
            "recommendation": "Plan adherence is critical - your deviations are costly",
        })

    return {
        "total_deviation_trades": len(deviations),
        "top_deviations": _top(mistake_frequency(deviations), 5, len(deviations), "mistake"),
        "deviation_patterns": {name: dict(counts) for name, counts in patterns.items()},
        "insights": insights,
        "avg_r_multiple_deviations": round2(avg_r),
        "total_pnl_from_deviations": round2(total_pnl),
    }
