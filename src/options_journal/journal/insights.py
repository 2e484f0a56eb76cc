"""Heuristic insights over a user's most recent trades.

A fixed, ordered battery of rules compares the last week of trading (the
7 most recent trades) with the week before (the next 7) and looks at the
whole recent window (up to 20 trades) for timing and breakout edges.

The result is a complete snapshot: callers replace every stored insight
for the user with it, so an empty history clears old insights.

Usage::

    generator = InsightGenerator()
    insights = generator.generate(trades)  # newest first
    for insight in insights:
        print(insight.severity, insight.message)
"""

from __future__ import annotations

import logging
from typing import Sequence

from options_journal.core.config import InsightConfig
from options_journal.core.enums import BreakoutType, InsightType, Severity
from options_journal.core.models import Insight, Trade

from .breakdown import GroupAnalysis, analyze_breakout_types
from .calculator import round_half_up
from .mistakes import mistake_frequency
from .session_analysis import analyze_time_of_day
from .streaks import longest_losing_run
from .summary import win_rate

logger = logging.getLogger(__name__)

EMOTIONAL_STATES = frozenset({"fearful", "overconfident"})
CALM_STATE = "calm"


def _fmt(value: float) -> str:
    # 150.0 -> "150", 12.5 -> "12.5"
    return str(int(value)) if float(value).is_integer() else str(value)


class InsightGenerator:
    """Evaluate the insight rules against a window of recent trades.

    Parameters
    ----------
    config : InsightConfig, optional
        Window sizes and thresholds.  Defaults reproduce the journal's
        standard rules (20 trades, 7-trade weeks, 2 plan violations,
        3 repeated mistakes, 3 emotional trades, 3 consecutive losses,
        3 breakout trades per style, 20% breakout edge, 0.5R gap).
    """

    def __init__(self, config: InsightConfig | None = None) -> None:
        self._config = config or InsightConfig()

    def generate(self, trades: Sequence[Trade]) -> list[Insight]:
        """Return the insights for ``trades``.

        ``trades`` must be ordered newest first; only the first
        ``recent_trades`` are considered.  No trades yields no insights.
        """
        cfg = self._config
        recent = list(trades[: cfg.recent_trades])
        if not recent:
            return []

        last_week = recent[: cfg.week_size]
        previous_week = recent[cfg.week_size: cfg.week_size * 2]

        insights: list[Insight] = []
        for rule in (
            self._win_rate_improvement(last_week, previous_week),
            self._plan_violations(last_week),
            self._top_mistake(last_week),
            self._best_time(recent),
            self._emotional_state(last_week),
            self._consecutive_losses(last_week),
        ):
            if rule is not None:
                insights.append(rule)
        insights.extend(self._breakout_edge(recent))

        logger.debug("Generated %d insights from %d trades", len(insights), len(recent))
        return insights

    # ------------------------------------------------------------------ #
    # Rules                                                                #
    # ------------------------------------------------------------------ #

    def _win_rate_improvement(
        self, last_week: Sequence[Trade], previous_week: Sequence[Trade],
    ) -> Insight | None:
        current = win_rate(last_week)
        previous = win_rate(previous_week)
        if not (current > previous and previous > 0):
            return None
        delta = int(round_half_up(current - previous, 0))
        return Insight(
            type=InsightType.PERFORMANCE,
            severity=Severity.SUCCESS,
            message=f"Win rate improved {delta}% compared to last week!",
        )

    def _plan_violations(self, last_week: Sequence[Trade]) -> Insight | None:
        violations = sum(1 for t in last_week if not t.followed_plan)
        if violations < self._config.plan_violation_min:
            return None
        return Insight(
            type=InsightType.DISCIPLINE,
            severity=Severity.WARNING,
            message=f"You traded outside your plan {violations} times recently.",
        )

    def _top_mistake(self, last_week: Sequence[Trade]) -> Insight | None:
        top = mistake_frequency(last_week).most_common(1)
        if not top or top[0][1] < self._config.mistake_repeat_min:
            return None
        label, count = top[0]
        return Insight(
            type=InsightType.MISTAKES,
            severity=Severity.WARNING,
            message=(
                f'"{label}" appeared in {count} of your recent trades. '
                "Focus on fixing this pattern."
            ),
        )

    def _best_time(self, recent: Sequence[Trade]) -> Insight | None:
        best = analyze_time_of_day(recent).best_time
        if best is None:
            return None
        return Insight(
            type=InsightType.TIMING,
            severity=Severity.INFO,
            message=(
                f"Your best results come during {best}. "
                "Consider focusing your trading during this period."
            ),
        )

    def _emotional_state(self, last_week: Sequence[Trade]) -> Insight | None:
        emotional = [t for t in last_week if EMOTIONAL_STATES.intersection(t.entry_emotions)]
        if len(emotional) < self._config.emotional_trades_min:
            return None
        calm = [t for t in last_week if CALM_STATE in t.entry_emotions]
        avg_emotional = sum(t.pnl for t in emotional) / len(emotional)
        avg_calm = sum(t.pnl for t in calm) / len(calm) if calm else 0.0
        if avg_calm <= avg_emotional:
            return None
        return Insight(
            type=InsightType.PSYCHOLOGY,
            severity=Severity.INFO,
            message=(
                "Your calm trades perform better than emotional ones. "
                "Consider taking breaks when feeling fearful or overconfident."
            ),
        )

    def _consecutive_losses(self, last_week: Sequence[Trade]) -> Insight | None:
        run = longest_losing_run(last_week)
        if run < self._config.consecutive_losses_min:
            return None
        return Insight(
            type=InsightType.RISK,
            severity=Severity.WARNING,
            message=(
                f"You had {run} consecutive losses. "
                "Consider reducing position size after losing streaks."
            ),
        )

    def _breakout_edge(self, recent: Sequence[Trade]) -> list[Insight]:
        groups = analyze_breakout_types(recent)
        vertical = groups.get(BreakoutType.VERTICAL.value)
        horizontal = groups.get(BreakoutType.HORIZONTAL.value)
        if vertical is None or horizontal is None:
            return []

        cfg = self._config
        insights: list[Insight] = []

        named = [("vertical", vertical), ("horizontal", horizontal)]
        if vertical.avg_pnl != horizontal.avg_pnl:
            named.sort(key=lambda item: item[1].avg_pnl, reverse=True)
            (strong_name, strong), (weak_name, weak) = named
            if min(strong.count, weak.count) >= cfg.breakout_min_trades:
                edge = self._edge_pct(strong, weak)
                if edge is None or edge > cfg.breakout_edge_pct:
                    edge_text = "significantly" if edge is None else f"{int(round_half_up(edge, 0))}%"
                    insights.append(Insight(
                        type=InsightType.BREAKOUT_ANALYSIS,
                        severity=Severity.SUCCESS,
                        message=(
                            f"Your {strong_name} breakout trades perform {edge_text} better "
                            f"than {weak_name} ones. Avg P&L: {strong_name.capitalize()} "
                            f"₹{_fmt(strong.avg_pnl)} vs {weak_name.capitalize()} "
                            f"₹{_fmt(weak.avg_pnl)}."
                        ),
                    ))

        gap = vertical.avg_r_multiple - horizontal.avg_r_multiple
        if abs(gap) > cfg.breakout_r_gap:
            (better_name, better), (other_name, other) = sorted(
                [("vertical", vertical), ("horizontal", horizontal)],
                key=lambda item: item[1].avg_r_multiple,
                reverse=True,
            )
            insights.append(Insight(
                type=InsightType.BREAKOUT_ANALYSIS,
                severity=Severity.INFO,
                message=(
                    f"{better_name.capitalize()} breakouts show better risk-adjusted returns: "
                    f"{_fmt(better.avg_r_multiple)}R vs {_fmt(other.avg_r_multiple)}R "
                    f"for {other_name} breakouts."
                ),
            ))
        return insights

    @staticmethod
    def _edge_pct(strong: GroupAnalysis, weak: GroupAnalysis) -> float | None:
        """Percentage by which ``strong`` beats ``weak`` (``None`` if unbounded)."""
        if weak.avg_pnl == 0:
            return None
        return (strong.avg_pnl - weak.avg_pnl) / abs(weak.avg_pnl) * 100


def generate_insights(
    recent_trades: Sequence[Trade], config: InsightConfig | None = None,
) -> list[Insight]:
    """Convenience wrapper around :class:`InsightGenerator`."""
    return InsightGenerator(config).generate(recent_trades)
