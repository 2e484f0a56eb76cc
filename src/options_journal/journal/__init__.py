"""Trade journal analytics.

Pure functions over in-memory trade records.  Nothing here touches
storage; callers fetch the trades for a window and pass them in.

Key components
--------------
**Per-trade**

compute_trade_metrics   P&L, return %, risk amount and R-multiple
enrich_trade            Apply the calculator to a trade input

**Aggregation**

summarize               Win rate, R averages, stop-loss and plan usage
max_drawdown            Peak-to-trough decline of cumulative P&L
equity_curve            Cumulative P&L over daily rollups
calculate_streaks       Current and longest win / plan streaks
find_mistake_patterns   Most frequent mistakes with their P&L impact
analyze_breakout_types  Vertical vs horizontal breakout performance
analyze_nifty_range     Inside / outside day performance
analyze_time_of_day     Best trading window of the day
build_daily_rollup      Materialised per-date aggregate

**Behaviour**

InsightGenerator        Heuristic insights over recent trades
plan_deviation_analysis What goes wrong when the plan is ignored

**Import / Export**

TradeExporter           CSV/JSON in the spreadsheet layout
"""

from .calculator import TradeMetrics, compute_trade_metrics, enrich_trade, round2
from .summary import SummaryStatistics, bucket_metrics, summarize, trade_limit_analysis
from .equity import EquityCurvePoint, daily_r_split, equity_curve, max_drawdown
from .streaks import StreakCounts, calculate_streaks, longest_losing_run
from .mistakes import (
    MistakePattern,
    common_mistakes,
    find_mistake_patterns,
    mistake_frequency,
    plan_deviation_analysis,
)
from .breakdown import GroupAnalysis, analyze_breakout_types, analyze_nifty_range, compare_nifty
from .session_analysis import TimeOfDayResult, analyze_time_of_day
from .rollup import build_daily_rollup
from .weekly import weekly_plan_follow_rate, weekly_r_multiple, weekly_win_rate
from .insights import InsightGenerator, generate_insights
from .export import TradeExporter

__all__ = [
    "TradeMetrics",
    "compute_trade_metrics",
    "enrich_trade",
    "round2",
    "SummaryStatistics",
    "bucket_metrics",
    "summarize",
    "trade_limit_analysis",
    "EquityCurvePoint",
    "daily_r_split",
    "equity_curve",
    "max_drawdown",
    "StreakCounts",
    "calculate_streaks",
    "longest_losing_run",
    "MistakePattern",
    "common_mistakes",
    "find_mistake_patterns",
    "mistake_frequency",
    "plan_deviation_analysis",
    "GroupAnalysis",
    "analyze_breakout_types",
    "analyze_nifty_range",
    "compare_nifty",
    "TimeOfDayResult",
    "analyze_time_of_day",
    "build_daily_rollup",
    "weekly_plan_follow_rate",
    "weekly_r_multiple",
    "weekly_win_rate",
    "InsightGenerator",
    "generate_insights",
    "TradeExporter",
]
