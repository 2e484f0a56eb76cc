"""Property tests: per-trade metric invariants.

Uses hypothesis to check that P&L is the rounded price move times
quantity and follows price direction, that the R-multiple stays
consistent with P&L over risk, and that a missing stop loss never
produces a risk figure.
"""

from datetime import date

from hypothesis import assume, given, settings, strategies as st

from options_journal.core.models import TradeInput
from options_journal.journal.calculator import (
    compute_trade_metrics,
    enrich_trade,
    round2,
    round_half_up,
)

prices = st.floats(min_value=0.05, max_value=5000.0, allow_nan=False, allow_infinity=False)
quantities = st.integers(min_value=1, max_value=5000)


@given(entry=prices, exit_=prices, qty=quantities)
@settings(max_examples=200)
def test_pnl_sign_follows_price_direction(entry, exit_, qty):
    m = compute_trade_metrics(entry, exit_, None, qty)
    if exit_ > entry:
        assert m.pnl >= 0
    elif exit_ < entry:
        assert m.pnl <= 0
    else:
        assert m.pnl == 0


@given(entry=prices, exit_=prices, qty=quantities)
@settings(max_examples=200)
def test_pnl_is_rounded_price_move_times_quantity(entry, exit_, qty):
    m = compute_trade_metrics(entry, exit_, None, qty)
    assert m.pnl == round2((exit_ - entry) * qty)

@given(entry=prices, exit_=prices, qty=quantities)
@settings(max_examples=100)
def test_no_stop_loss_never_has_risk(entry, exit_, qty):
    m = compute_trade_metrics(entry, exit_, None, qty)
    assert m.risk_amount is None
    assert m.r_multiple is None


@given(entry=prices, exit_=prices, stop=prices, qty=quantities)
@settings(max_examples=200)
def test_r_multiple_matches_pnl_over_risk(entry, exit_, stop, qty):
    assume(abs(entry - stop) * qty >= 1.0)
    m = compute_trade_metrics(entry, exit_, stop, qty)
    expected = (exit_ - entry) * qty / (abs(entry - stop) * qty)
    assert abs(m.r_multiple - expected) <= 0.005 + 1e-9 * abs(expected)
    assert m.risk_amount >= 0


@given(entry=prices, exit_=prices, stop=prices, qty=quantities)
@settings(max_examples=100)
def test_enrich_is_idempotent(entry, exit_, stop, qty):
    data = TradeInput(
        underlying="NIFTY", entry_price=entry, exit_price=exit_,
        stop_loss=stop, quantity=qty, trade_date=date(2024, 1, 15),
    )
    once = enrich_trade(data)
    twice = enrich_trade(once)
    assert once == twice


@given(value=st.floats(min_value=-1e9, max_value=1e9, allow_nan=False))
@settings(max_examples=200)
def test_rounding_is_stable_and_symmetric(value):
    rounded = round_half_up(value)
    assert round_half_up(rounded) == rounded
    assert round_half_up(-value) == -rounded
    assert abs(rounded - value) <= 0.005 + 1e-9 * abs(value)
