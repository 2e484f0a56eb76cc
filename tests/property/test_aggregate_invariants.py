"""Property tests: aggregation invariants.

Drawdown is non-negative, bounded by total losses and never shrinks as
later losing trades are added.  Streak counts are bounded by the window,
and a daily rollup agrees with the summary of the same trades.
"""

from datetime import date, timedelta

from hypothesis import given, settings, strategies as st

from options_journal.core.models import TradeInput
from options_journal.journal.calculator import enrich_trade
from options_journal.journal.equity import max_drawdown
from options_journal.journal.rollup import build_daily_rollup
from options_journal.journal.streaks import calculate_streaks
from options_journal.journal.summary import summarize

_BASE = date(2024, 1, 1)

trade_specs = st.lists(
    st.tuples(
        st.integers(min_value=0, max_value=30),           # day offset
        st.integers(min_value=50, max_value=150),         # exit price
        st.booleans(),                                    # followed plan
        st.booleans(),                                    # has stop loss
    ),
    max_size=40,
)


def _build(specs):
    return [
        enrich_trade(
            TradeInput(
                underlying="NIFTY",
                entry_price=100.0,
                exit_price=float(exit_),
                stop_loss=90.0 if has_stop else None,
                quantity=25,
                trade_date=_BASE + timedelta(days=offset),
                followed_plan=plan,
            ),
            id=i,
        )
        for i, (offset, exit_, plan, has_stop) in enumerate(specs)
    ]


@given(specs=trade_specs)
@settings(max_examples=100)
def test_drawdown_bounded_by_losses(specs):
    trades = _build(specs)
    dd = max_drawdown(trades)
    total_loss = sum(-t.pnl for t in trades if t.pnl < 0)
    assert 0.0 <= dd <= round(total_loss, 2) + 0.01


@given(
    specs=trade_specs,
    losing_exits=st.lists(st.integers(min_value=50, max_value=99), min_size=1, max_size=10),
)
@settings(max_examples=100)
def test_drawdown_never_shrinks_as_losses_follow(specs, losing_exits):
    trades = _build(specs)
    later = _BASE + timedelta(days=31)
    previous = max_drawdown(trades)
    for k, exit_ in enumerate(losing_exits):
        trades.append(enrich_trade(
            TradeInput(
                underlying="NIFTY",
                entry_price=100.0,
                exit_price=float(exit_),
                quantity=25,
                trade_date=later + timedelta(days=k),
            ),
            id=1000 + k,
        ))
        current = max_drawdown(trades)
        assert current >= previous
        previous = current


@given(specs=trade_specs)
@settings(max_examples=100)
def test_streaks_bounded(specs):
    trades = _build(specs)
    s = calculate_streaks(trades)
    assert 0 <= s.current_win_streak <= s.max_win_streak <= len(trades)
    assert 0 <= s.current_plan_streak <= s.max_plan_streak <= len(trades)
    assert s.max_win_streak <= sum(1 for t in trades if t.is_win)


@given(specs=trade_specs)
@settings(max_examples=100)
def test_summary_counts_partition(specs):
    trades = _build(specs)
    stats = summarize(trades)
    assert stats.winning_trades + stats.losing_trades == stats.total_trades == len(trades)
    assert 0.0 <= stats.win_rate <= 100.0
    assert stats.trades_with_stop_loss <= stats.total_trades


@given(specs=trade_specs, offset=st.integers(min_value=0, max_value=30))
@settings(max_examples=100)
def test_rollup_agrees_with_summary(specs, offset):
    trades = _build(specs)
    day = _BASE + timedelta(days=offset)
    rollup = build_daily_rollup(1, day, trades)
    on_day = [t for t in trades if t.trade_date == day]
    if not on_day:
        assert rollup is None
        return
    stats = summarize(on_day)
    assert rollup.total_trades == len(on_day)
    assert rollup.total_pnl == stats.total_pnl
    assert rollup.win_rate == stats.win_rate
