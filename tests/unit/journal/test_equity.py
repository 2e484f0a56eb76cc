"""Tests for drawdown and the equity curve."""

from datetime import date

from options_journal.core.models import DailyMetricsRollup
from options_journal.journal.equity import daily_r_split, equity_curve, max_drawdown


def _rollup(day: date, pnl: float, win_rate: float = 0.0) -> DailyMetricsRollup:
    return DailyMetricsRollup(user_id=1, date=day, total_trades=1, total_pnl=pnl, win_rate=win_rate)


class TestMaxDrawdown:
    def test_empty(self):
        assert max_drawdown([]) == 0.0

    def test_monotonic_gains_have_no_drawdown(self, make_trade):
        trades = [make_trade(trade_date=date(2024, 1, d)) for d in (1, 2, 3)]
        assert max_drawdown(trades) == 0.0

    def test_peak_to_trough(self, make_trade):
        trades = [
            make_trade(trade_date=date(2024, 1, 1)),                    # +250 -> 250
            make_trade(trade_date=date(2024, 1, 2), exit_price=90.0),   # -250 -> 0
            make_trade(trade_date=date(2024, 1, 3), exit_price=95.0),   # -125 -> -125
            make_trade(trade_date=date(2024, 1, 4)),                    # +250 -> 125
        ]
        assert max_drawdown(trades) == 375.0

    def test_losses_from_flat_start_count(self, make_trade):
        assert max_drawdown([make_trade(exit_price=90.0)]) == 250.0

    def test_walks_trades_by_date_not_input_order(self, make_trade):
        later_loss = make_trade(trade_date=date(2024, 1, 5), exit_price=90.0)
        early_win = make_trade(trade_date=date(2024, 1, 1))
        trades = [later_loss, early_win]
        # Sorted: +250 then -250: drawdown 250 from the 250 peak
        assert max_drawdown(trades) == 250.0
        assert trades == [later_loss, early_win]


class TestEquityCurve:
    def test_cumulative_pnl_ascending(self):
        rollups = [
            _rollup(date(2024, 1, 3), -50.0),
            _rollup(date(2024, 1, 1), 100.0, win_rate=100.0),
            _rollup(date(2024, 1, 2), 25.5),
        ]
        points = equity_curve(rollups)
        assert [p.date for p in points] == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]
        assert [p.cumulative_pnl for p in points] == [100.0, 125.5, 75.5]
        assert points[0].win_rate == 100.0

    def test_r_split_applied_per_day(self, make_trade):
        day = date(2024, 1, 15)
        trades = [
            make_trade(trade_date=day),                      # +2R
            make_trade(trade_date=day, exit_price=95.0),     # -1R
            make_trade(trade_date=day, stop_loss=None),      # skipped
        ]
        split = daily_r_split(trades)
        assert split == {day: (2.0, -1.0)}
        point = equity_curve([_rollup(day, 375.0)], split)[0]
        assert point.winners_r_multiple == 2.0
        assert point.losers_r_multiple == -1.0

    def test_to_dict_serialises_date(self):
        point = equity_curve([_rollup(date(2024, 2, 1), 10.0)])[0]
        assert point.to_dict()["date"] == "2024-02-01"

    def test_empty(self):
        assert equity_curve([]) == []
