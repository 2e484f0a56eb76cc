"""Tests for breakout, index-range and Nifty breakdowns."""

from options_journal.journal.breakdown import (
    analyze_breakout_types,
    analyze_nifty_range,
    compare_nifty,
    is_nifty,
)


class TestBreakoutTypes:
    def test_groups_only_present_types(self, make_trade):
        trades = [
            make_trade(breakout_type="vertical"),
            make_trade(breakout_type="vertical", exit_price=95.0),
            make_trade(breakout_type=None),
        ]
        result = analyze_breakout_types(trades)
        assert list(result) == ["vertical"]
        vertical = result["vertical"]
        assert vertical.count == 2
        assert vertical.total_pnl == 125.0
        assert vertical.avg_pnl == 62.5
        assert vertical.win_rate == 50.0
        assert vertical.avg_r_multiple == 0.5

    def test_none_breakout_excluded(self, make_trade):
        assert analyze_breakout_types([make_trade(breakout_type="none")]) == {}

    def test_missing_r_counts_as_zero(self, make_trade):
        trades = [
            make_trade(breakout_type="horizontal"),                 # 2R
            make_trade(breakout_type="horizontal", stop_loss=None),  # no R
        ]
        assert analyze_breakout_types(trades)["horizontal"].avg_r_multiple == 1.0

    def test_domain_order(self, make_trade):
        trades = [make_trade(breakout_type="horizontal"), make_trade(breakout_type="vertical")]
        assert list(analyze_breakout_types(trades)) == ["vertical", "horizontal"]


class TestNiftyRange:
    def test_groups_by_range(self, make_trade):
        trades = [
            make_trade(nifty_range="inside_day"),
            make_trade(nifty_range="outside_bearish", exit_price=90.0),
            make_trade(),
        ]
        result = analyze_nifty_range(trades)
        assert list(result) == ["inside_day", "outside_bearish"]
        assert result["outside_bearish"].total_pnl == -250.0
        assert result["inside_day"].to_dict()["count"] == 1


class TestNiftyComparison:
    def test_is_nifty(self, make_trade):
        assert is_nifty(make_trade(underlying="NIFTY"))
        assert is_nifty(make_trade(underlying="BankNifty"))
        assert is_nifty(make_trade(underlying=" nf "))
        assert not is_nifty(make_trade(underlying="RELIANCE"))

    def test_buckets(self, make_trade):
        trades = [
            make_trade(underlying="NIFTY", mistakes="late-exit"),
            make_trade(underlying="NIFTY", exit_price=95.0),
            make_trade(underlying="SENSEX", exit_price=90.0),
        ]
        result = compare_nifty(trades)
        assert result["total_trades"] == 3
        assert result["nifty"]["count"] == 2
        assert result["nifty"]["metrics"]["total_pnl"] == 125.0
        assert result["nifty"]["patterns"]["top_mistakes"][0]["mistake"] == "late-exit"
        assert result["non_nifty"]["count"] == 1
        assert result["non_nifty"]["metrics"]["best_trade"] == 0.0

    def test_empty_side(self, make_trade):
        result = compare_nifty([make_trade()])
        assert result["non_nifty"]["count"] == 0
        assert result["non_nifty"]["metrics"]["win_rate"] == 0.0
