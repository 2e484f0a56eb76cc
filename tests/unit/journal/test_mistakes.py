"""Tests for mistake patterns and plan-deviation analysis."""

from options_journal.journal.mistakes import (
    common_mistakes,
    find_mistake_patterns,
    mistake_frequency,
    plan_deviation_analysis,
)


class TestMistakePatterns:
    def test_counts_once_per_trade(self, make_trade):
        trades = [make_trade(mistakes=["fomo-entry", "FOMO-entry ", "late-exit"])]
        assert mistake_frequency(trades) == {"fomo-entry": 1, "late-exit": 1}

    def test_ranked_by_frequency_with_avg_pnl(self, make_trade):
        trades = [
            make_trade(id=1, mistakes="late-exit", exit_price=90.0),    # -250
            make_trade(id=2, mistakes="fomo-entry, late-exit"),         # +250
            make_trade(id=3, mistakes="late-exit", exit_price=95.0),    # -125
        ]
        patterns = find_mistake_patterns(trades)
        assert [p.mistake for p in patterns] == ["late-exit", "fomo-entry"]
        top = patterns[0]
        assert top.frequency == 3
        assert top.total_pnl == -125.0
        assert top.avg_pnl == -41.67
        assert top.trade_ids == [1, 2, 3]

    def test_limit(self, make_trade):
        trades = [make_trade(mistakes=[f"m{i}" for i in range(8)])]
        assert len(find_mistake_patterns(trades)) == 5
        assert len(find_mistake_patterns(trades, limit=2)) == 2

    def test_ties_keep_first_seen_order(self, make_trade):
        trades = [make_trade(mistakes="b-mistake"), make_trade(mistakes="a-mistake")]
        assert [p.mistake for p in find_mistake_patterns(trades)] == ["b-mistake", "a-mistake"]

    def test_no_mistakes(self, make_trade):
        assert find_mistake_patterns([make_trade()]) == []


class TestCommonMistakes:
    def test_top_lists_with_percentages(self, make_trade):
        trades = [
            make_trade(mistakes="late-exit", entry_emotions="calm", exit_emotions="relieved"),
            make_trade(mistakes="late-exit", entry_emotions="anxious"),
            make_trade(entry_emotions="calm"),
            make_trade(),
        ]
        result = common_mistakes(trades)
        assert result["top_mistakes"] == [{"mistake": "late-exit", "count": 2, "percentage": 50.0}]
        assert result["top_entry_emotions"][0] == {"emotion": "calm", "count": 2, "percentage": 50.0}
        assert result["top_exit_emotions"][0]["emotion"] == "relieved"
        assert result["total_mistake_types"] == 1

    def test_empty(self):
        result = common_mistakes([])
        assert result["top_mistakes"] == []
        assert result["total_mistake_types"] == 0


class TestPlanDeviationAnalysis:
    def test_only_deviation_trades_counted(self, make_trade):
        trades = [
            make_trade(followed_plan=True, mistakes="late-exit"),
            make_trade(followed_plan=False, mistakes="moved-stop-loss", exit_price=80.0),
        ]
        report = plan_deviation_analysis(trades)
        assert report["total_deviation_trades"] == 1
        assert report["top_deviations"] == [
            {"mistake": "moved-stop-loss", "count": 1, "percentage": 100.0}
        ]
        assert report["deviation_patterns"]["risk_management"] == {"moved-stop-loss": 1}
        assert report["deviation_patterns"]["exit_problems"] == {}
        # (80 - 100) * 25 / 125 = -4R
        assert report["avg_r_multiple_deviations"] == -4.0
        assert report["total_pnl_from_deviations"] == -500.0

    def test_categories_checked_in_order(self, make_trade):
        # "fomo-entry" matches both emotional and setup keywords
        report = plan_deviation_analysis([make_trade(followed_plan=False, mistakes="fomo-entry")])
        assert report["deviation_patterns"]["emotional_triggers"] == {"fomo-entry": 1}
        assert report["deviation_patterns"]["setup_issues"] == {}

    def test_emotion_triggers(self, make_trade):
        trade = make_trade(
            followed_plan=False,
            entry_emotions="anxious, calm",
            exit_emotions="panic",
        )
        patterns = plan_deviation_analysis([trade])["deviation_patterns"]
        assert patterns["emotional_triggers"] == {"entry: anxious": 1, "exit: panic": 1}

    def test_insight_cards(self, make_trade):
        trades = [
            make_trade(followed_plan=False, mistakes="revenge-trade, no-stop-loss", exit_price=70.0),
            make_trade(followed_plan=False, mistakes="revenge-trade", exit_price=70.0),
        ]
        report = plan_deviation_analysis(trades)
        kinds = [card["type"] for card in report["insights"]]
        assert kinds == ["emotional", "risk", "performance"]
        assert '"revenge-trade" (2 times)' in report["insights"][0]["description"]

    def test_r_average_skips_trades_without_stop(self, make_trade):
        trades = [
            make_trade(followed_plan=False, exit_price=95.0),
            make_trade(followed_plan=False, stop_loss=None, exit_price=50.0),
        ]
        report = plan_deviation_analysis(trades)
        assert report["avg_r_multiple_deviations"] == -1.0

    def test_no_deviations(self, make_trade):
        report = plan_deviation_analysis([make_trade()])
        assert report["total_deviation_trades"] == 0
        assert report["insights"] == []
        assert report["avg_r_multiple_deviations"] == 0.0
