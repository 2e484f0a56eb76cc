"""Test JournalService against a throwaway SQLite database."""

from contextlib import asynccontextmanager
from datetime import date

import pytest

from options_journal.core.config import CacheConfig
from options_journal.core.enums import ExportFormat, InsightType
from options_journal.core.errors import ImportFormatError, NotFoundError, ValidationError
from options_journal.core.models import TradeInput
from options_journal.service import JournalService, resolve_period
from options_journal.storage.cache import CacheSet
from options_journal.storage.db.connection import Database
from options_journal.storage.db.repos import UserRepo

TODAY = date(2024, 1, 20)


def _input(**overrides) -> TradeInput:
    fields = {
        "underlying": "NIFTY",
        "option_type": "call",
        "entry_price": 100.0,
        "exit_price": 110.0,
        "stop_loss": 95.0,
        "quantity": 25,
        "trade_date": date(2024, 1, 15),
    }
    fields.update(overrides)
    return TradeInput(**fields)


@pytest.fixture
def database(settings):
    return Database.from_config(settings.database)


@asynccontextmanager
async def journal(database, *, caches=None, email="trader@example.com"):
    """Yield ``(service, user_id)`` inside one committed session."""
    await database.create_all()
    try:
        async with database.session() as session:
            user = await UserRepo(session).create(email, "not-a-real-hash")
            yield JournalService(session, caches=caches, today=lambda: TODAY), user.id
    finally:
        await database.dispose()


# ---------------------------------------------------------------------------
# Periods
# ---------------------------------------------------------------------------

class TestResolvePeriod:
    def test_named_periods(self):
        assert resolve_period("today", TODAY) == (TODAY, TODAY)
        assert resolve_period("current-month", TODAY) == (date(2024, 1, 1), date(2024, 1, 31))
        assert resolve_period("last-month", TODAY) == (date(2023, 12, 1), date(2023, 12, 31))
        assert resolve_period("two-months-ago", TODAY) == (date(2023, 11, 1), date(2023, 11, 30))

    def test_leap_february(self):
        assert resolve_period("last-month", date(2024, 3, 10)) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_day_count(self):
        assert resolve_period("7", TODAY) == (date(2024, 1, 13), TODAY)
        assert resolve_period("0", TODAY) == (TODAY, TODAY)

    @pytest.mark.parametrize("period", ["yesterday", "-3", ""])
    def test_invalid(self, period):
        with pytest.raises(ValidationError) as exc_info:
            resolve_period(period, TODAY)
        assert exc_info.value.field == "period"


# ---------------------------------------------------------------------------
# Trades and rollups
# ---------------------------------------------------------------------------

class TestTradeWrites:
    @pytest.mark.asyncio
    async def test_create_enriches_and_rolls_up(self, database):
        async with journal(database) as (service, user_id):
            trade = await service.create_trade(user_id, _input())
            assert trade.id is not None
            assert trade.pnl == 250.0
            assert trade.r_multiple == 2.0
            assert trade.created_at is not None

            (rollup,) = await service.daily_metrics(user_id, date(2024, 1, 15))
            assert rollup.total_trades == 1
            assert rollup.total_pnl == 250.0
            assert rollup.win_rate == 100.0

    @pytest.mark.asyncio
    async def test_invalid_trade_rejected(self, database):
        async with journal(database) as (service, user_id):
            with pytest.raises(ValidationError):
                await service.create_trade(user_id, _input(entry_price=0.0))
            assert await service.list_trades(user_id) == []

    @pytest.mark.asyncio
    async def test_update_moves_date_and_rebuilds_both_rollups(self, database):
        async with journal(database) as (service, user_id):
            trade = await service.create_trade(user_id, _input())
            updated = await service.update_trade(
                user_id, trade.id, _input(trade_date=date(2024, 1, 16), exit_price=90.0),
            )
            assert updated.id == trade.id
            assert updated.pnl == -250.0
            assert updated.created_at == trade.created_at
            assert await service.daily_metrics(user_id, date(2024, 1, 15)) == []
            (rollup,) = await service.daily_metrics(user_id, date(2024, 1, 16))
            assert rollup.losing_trades == 1

    @pytest.mark.asyncio
    async def test_delete_removes_rollup(self, database):
        async with journal(database) as (service, user_id):
            trade = await service.create_trade(user_id, _input())
            removed = await service.delete_trade(user_id, trade.id)
            assert removed.id == trade.id
            assert await service.daily_metrics(user_id) == []
            with pytest.raises(NotFoundError):
                await service.get_trade(user_id, trade.id)
            with pytest.raises(NotFoundError):
                await service.delete_trade(user_id, trade.id)

    @pytest.mark.asyncio
    async def test_other_users_trades_are_invisible(self, database):
        async with journal(database) as (service, user_id):
            trade = await service.create_trade(user_id, _input())
            with pytest.raises(NotFoundError):
                await service.get_trade(user_id + 1, trade.id)
            with pytest.raises(NotFoundError):
                await service.update_trade(user_id + 1, trade.id, _input())

    @pytest.mark.asyncio
    async def test_list_newest_first_within_window(self, database):
        async with journal(database) as (service, user_id):
            for day in (14, 16, 15):
                await service.create_trade(user_id, _input(trade_date=date(2024, 1, day)))
            trades = await service.list_trades(user_id)
            assert [t.trade_date.day for t in trades] == [16, 15, 14]
            windowed = await service.list_trades(
                user_id, start=date(2024, 1, 15), end=date(2024, 1, 15),
            )
            assert len(windowed) == 1

    @pytest.mark.asyncio
    async def test_labels_round_trip_through_storage(self, database):
        async with journal(database) as (service, user_id):
            trade = await service.create_trade(
                user_id, _input(mistakes="Late-Exit, fomo-entry", entry_emotions=["calm"]),
            )
            stored = await service.get_trade(user_id, trade.id)
            assert stored.mistakes == ["late-exit", "fomo-entry"]
            assert stored.entry_emotions == ["calm"]
            assert stored.exit_emotions == []

    @pytest.mark.asyncio
    async def test_recompute_all_rollups(self, database):
        async with journal(database) as (service, user_id):
            await service.create_trade(user_id, _input(trade_date=date(2024, 1, 10)))
            await service.create_trade(user_id, _input(trade_date=date(2024, 1, 11)))
            assert await service.recompute_all_rollups(user_id) == 2
            rollups = await service.daily_metrics(user_id)
            assert [r.date.day for r in rollups] == [11, 10]


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

class TestAnalytics:
    @pytest.mark.asyncio
    async def test_summary_current_month(self, database):
        async with journal(database) as (service, user_id):
            await service.create_trade(user_id, _input(breakout_type="vertical", mistakes="late-exit"))
            await service.create_trade(
                user_id, _input(stop_loss=None, exit_price=90.0, option_type="put"),
            )
            # Outside the window
            await service.create_trade(user_id, _input(trade_date=date(2023, 12, 29)))

            summary = await service.summary(user_id, "current-month")
            assert summary["total_trades"] == 2
            assert summary["winning_trades"] == 1
            assert summary["avg_r_multiple"] == 2.0
            assert summary["stop_loss_usage_rate"] == 50.0
            assert summary["start_date"] == "2024-01-01"
            assert summary["call_put_ratio"] == {"calls": 1, "puts": 1}
            assert summary["max_drawdown"] == 250.0
            assert summary["mistake_patterns"][0]["mistake"] == "late-exit"
            assert list(summary["breakout_analysis"]) == ["vertical"]
            assert "days_over_limit" in summary["trade_limit_analysis"]

    @pytest.mark.asyncio
    async def test_summary_today_uses_single_day_limit(self, database):
        async with journal(database) as (service, user_id):
            for _ in range(5):
                await service.create_trade(user_id, _input(trade_date=TODAY))
            limit = (await service.summary(user_id, "today"))["trade_limit_analysis"]
            assert limit == {"today_trade_count": 5, "limit_exceeded": True, "excess_trades": 1}

    @pytest.mark.asyncio
    async def test_summary_cached_until_write(self, database):
        caches = CacheSet.from_config(CacheConfig())
        async with journal(database, caches=caches) as (service, user_id):
            await service.create_trade(user_id, _input())
            first = await service.summary(user_id)
            second = await service.summary(user_id)
            assert second is first
            assert caches.summary.hits == 1

            await service.create_trade(user_id, _input())
            assert len(caches.summary) == 0
            assert (await service.summary(user_id))["total_trades"] == 2

    @pytest.mark.asyncio
    async def test_disabled_cache_is_bypassed(self, database):
        caches = CacheSet.from_config(CacheConfig(enabled=False))
        async with journal(database, caches=caches) as (service, user_id):
            await service.summary(user_id)
            assert len(caches.summary) == 0

    @pytest.mark.asyncio
    async def test_performance_trend(self, database):
        async with journal(database) as (service, user_id):
            await service.create_trade(user_id, _input(trade_date=date(2024, 1, 10)))
            await service.create_trade(
                user_id, _input(trade_date=date(2024, 1, 11), exit_price=95.0),
            )
            points = await service.performance_trend(user_id, "current-month")
            assert [p["date"] for p in points] == ["2024-01-10", "2024-01-11"]
            assert [p["cumulative_pnl"] for p in points] == [250.0, 125.0]
            assert points[1]["losers_r_multiple"] == -1.0

    @pytest.mark.asyncio
    async def test_weekly_series(self, database):
        async with journal(database) as (service, user_id):
            await service.create_trade(user_id, _input(trade_date=date(2024, 1, 8)))
            await service.create_trade(
                user_id, _input(trade_date=date(2024, 1, 15), followed_plan=False),
            )
            # Older than the 12-week lookback
            await service.create_trade(user_id, _input(trade_date=date(2023, 9, 1)))

            r_series = await service.weekly_r_multiple(user_id)
            assert [w["week"] for w in r_series] == ["2024-01-07", "2024-01-14"]
            plan = await service.weekly_plan_follow_rate(user_id)
            assert [w["rate"] for w in plan] == [100.0, 0.0]
            win = await service.weekly_win_rate(user_id)
            assert [w["rate"] for w in win] == [100.0, 100.0]

    @pytest.mark.asyncio
    async def test_plan_deviations_and_nifty_comparison(self, database):
        async with journal(database) as (service, user_id):
            await service.create_trade(
                user_id, _input(followed_plan=False, mistakes="moved-stop-loss", exit_price=90.0),
            )
            await service.create_trade(user_id, _input(underlying="RELIANCE"))
            deviations = await service.plan_deviations(user_id)
            assert deviations["total_deviation_trades"] == 1
            comparison = await service.nifty_comparison(user_id)
            assert comparison["nifty"]["count"] == 1
            assert comparison["non_nifty"]["count"] == 1


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------

class TestInsights:
    @pytest.mark.asyncio
    async def test_refresh_clears_stale_insights(self, database):
        async with journal(database) as (service, user_id):
            trades = [
                await service.create_trade(user_id, _input(followed_plan=False))
                for _ in range(2)
            ]
            assert await service.refresh_insights(user_id) != []
            for trade in trades:
                await service.delete_trade(user_id, trade.id)
            assert await service.refresh_insights(user_id) == []

    @pytest.mark.asyncio
    async def test_refresh_stores_rule_order(self, database):
        async with journal(database) as (service, user_id):
            for day in (10, 11):
                await service.create_trade(
                    user_id, _input(trade_date=date(2024, 1, day), followed_plan=False),
                )
            insights = await service.refresh_insights(user_id)
            types = [i.type for i in insights]
            assert types[0] == InsightType.DISCIPLINE
            assert InsightType.TIMING in types
            assert all(i.id is not None for i in insights)


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

class TestTags:
    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, database):
        async with journal(database) as (service, user_id):
            assert await service.seed_tags() == 26
            assert await service.seed_tags() == 0
            assert await service.seed_tags(extended=True) == 13

    @pytest.mark.asyncio
    async def test_mistake_tags_include_custom_labels(self, database):
        async with journal(database) as (service, user_id):
            await service.seed_tags()
            await service.create_trade(user_id, _input(mistakes="fomo-entry, chased gap"))
            tags = {t.tag_name: t for t in await service.mistake_tags(user_id)}
            assert len(tags) == 27
            assert tags["chased gap"].category == "custom"
            assert tags["fomo-entry"].category == "entry"

    @pytest.mark.asyncio
    async def test_emotion_tags_count_usage(self, database):
        async with journal(database) as (service, user_id):
            await service.record_emotion_tag(user_id, "Calm", "entry")
            tag = await service.record_emotion_tag(user_id, "calm")
            assert tag.usage_count == 2
            await service.record_emotion_tag(user_id, "anxious", "entry")
            names = [t.tag_name for t in await service.emotion_tags(user_id)]
            assert names == ["calm", "anxious"]
            with pytest.raises(ValidationError):
                await service.record_emotion_tag(user_id, "  ")

    @pytest.mark.asyncio
    async def test_fix_tags(self, database):
        async with journal(database) as (service, user_id):
            trade = await service.create_trade(
                user_id, _input(mistakes="Early Exit, early-exit, revenge mode"),
            )
            await service.create_trade(user_id, _input(mistakes="late-exit"))
            assert await service.fix_tags(user_id) == 1
            fixed = await service.get_trade(user_id, trade.id)
            assert fixed.mistakes == ["early-exit", "revenge-trading"]
            assert await service.fix_tags(user_id) == 0


# ---------------------------------------------------------------------------
# Import / export
# ---------------------------------------------------------------------------

class TestImportExport:
    @pytest.mark.asyncio
    async def test_import_is_all_or_nothing(self, database):
        async with journal(database) as (service, user_id):
            with pytest.raises(ImportFormatError) as exc_info:
                await service.import_trades(user_id, [_input(), _input(entry_price=0.0)])
            assert exc_info.value.row == 2
            assert await service.list_trades(user_id) == []

    @pytest.mark.asyncio
    async def test_export_then_import(self, database):
        async with journal(database) as (service, user_id):
            await service.create_trade(user_id, _input(mistakes="late-exit", stop_loss=None))
            await service.create_trade(user_id, _input(trade_date=date(2024, 1, 16)))
            csv_text = await service.export_trades(user_id, ExportFormat.CSV)
            json_text = await service.export_trades(user_id, ExportFormat.JSON)

        async with journal(database, email="second@example.com") as (service, user_id):
            assert await service.import_text(user_id, csv_text, ExportFormat.CSV) == 2
            assert await service.import_text(user_id, json_text, ExportFormat.JSON) == 2
            trades = await service.list_trades(user_id)
            assert len(trades) == 4
            assert sum(1 for t in trades if t.stop_loss is None) == 2
            assert len(await service.daily_metrics(user_id)) == 2
