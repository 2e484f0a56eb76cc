"""Journal service: the seam between storage and the analytics engine.

Every public coroutine runs inside one caller-owned
:class:`~sqlalchemy.ext.asyncio.AsyncSession`.  Trade writes recompute
the daily rollup of each date they touch and drop the user's cached
analytics; reads fetch a window of trades and hand it to the pure
functions in :mod:`options_journal.journal`.

Usage::

    async with db.session() as session:
        service = JournalService(session, settings=settings, caches=caches)
        trade = await service.create_trade(user_id, trade_input)
        summary = await service.summary(user_id, "current-month")
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, timedelta
from typing import Any, Callable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from options_journal.core.config import Settings
from options_journal.core.enums import ExportFormat
from options_journal.core.errors import ImportFormatError, NotFoundError, ValidationError
from options_journal.core.models import (
    DailyMetricsRollup,
    EmotionTag,
    Insight,
    MistakeTag,
    Trade,
    TradeInput,
)
from options_journal.journal.breakdown import (
    analyze_breakout_types,
    analyze_nifty_range,
    compare_nifty,
)
from options_journal.journal.calculator import enrich_trade
from options_journal.journal.equity import daily_r_split, equity_curve, max_drawdown
from options_journal.journal.export import TradeExporter
from options_journal.journal.insights import InsightGenerator
from options_journal.journal.mistakes import find_mistake_patterns, plan_deviation_analysis
from options_journal.journal.rollup import build_daily_rollup
from options_journal.journal.session_analysis import analyze_time_of_day
from options_journal.journal.streaks import calculate_streaks
from options_journal.journal.summary import summarize, trade_limit_analysis
from options_journal.journal.tags import (
    DEFAULT_MISTAKE_TAGS,
    EXTENDED_MISTAKE_TAGS,
    merge_tags,
    normalize_labels,
)
from options_journal.journal.weekly import (
    lookback_start,
    weekly_plan_follow_rate,
    weekly_r_multiple,
    weekly_win_rate,
)
from options_journal.observability import metrics
from options_journal.storage.cache import CacheSet, TTLCache
from options_journal.storage.db.repos import (
    InsightRepo,
    RollupRepo,
    TagRepo,
    TradeRepo,
)

logger = logging.getLogger(__name__)

TODAY = "today"
CURRENT_MONTH = "current-month"
LAST_MONTH = "last-month"
TWO_MONTHS_AGO = "two-months-ago"


# ---------------------------------------------------------------------------
# Period resolution
# ---------------------------------------------------------------------------

def _month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def _shift_month(day: date, months_back: int) -> tuple[int, int]:
    index = day.year * 12 + (day.month - 1) - months_back
    return index // 12, index % 12 + 1


def resolve_period(period: str, today: date) -> tuple[date, date]:
    """Inclusive ``(start, end)`` dates for a named period.

    ``today``, ``current-month``, ``last-month`` and ``two-months-ago``
    are calendar windows; any non-negative integer ``N`` means the last
    ``N`` days up to and including ``today``.

    Raises:
        ValidationError: For an unknown period name.
    """
    if period == TODAY:
        return today, today
    if period == CURRENT_MONTH:
        return _month_bounds(today.year, today.month)
    if period == LAST_MONTH:
        return _month_bounds(*_shift_month(today, 1))
    if period == TWO_MONTHS_AGO:
        return _month_bounds(*_shift_month(today, 2))
    try:
        days = int(period)
    except (TypeError, ValueError):
        raise ValidationError("period", f"unknown period {period!r}") from None
    if days < 0:
        raise ValidationError("period", "number of days must not be negative")
    return today - timedelta(days=days), today


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class JournalService:
    """Trade bookkeeping and analytics for authenticated users.

    Parameters
    ----------
    session : AsyncSession
        Session for every repository call made by this service.
    settings : Settings, optional
        Trade limit, lookback and insight thresholds.
    caches : CacheSet, optional
        Analytics response caches.  ``None`` disables caching.
    today : callable, optional
        Returns the current date; injectable for tests.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        settings: Settings | None = None,
        caches: CacheSet | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._settings = settings or Settings()
        self._caches = caches if caches is not None and caches.enabled else None
        self._today = today
        self._trades = TradeRepo(session)
        self._rollups = RollupRepo(session)
        self._insights = InsightRepo(session)
        self._tags = TagRepo(session)
        self._exporter = TradeExporter()

    # ------------------------------------------------------------------ #
    # Caching                                                              #
    # ------------------------------------------------------------------ #

    def _cached(self, name: str, key: tuple) -> Any | None:
        if self._caches is None:
            return None
        cache: TTLCache = getattr(self._caches, name)
        value = cache.get(key)
        metrics.record_cache(name, value is not None)
        return value

    def _store(self, name: str, key: tuple, value: Any) -> None:
        if self._caches is not None:
            getattr(self._caches, name).set(key, value)

    def _invalidate(self, user_id: int) -> None:
        if self._caches is not None:
            self._caches.clear_user(user_id)

    # ------------------------------------------------------------------ #
    # Trades                                                               #
    # ------------------------------------------------------------------ #

    async def create_trade(self, user_id: int, data: TradeInput) -> Trade:
        """Enrich and store a trade, then rebuild its date's rollup.

        Raises:
            ValidationError: If the prices or quantity cannot produce metrics.
        """
        trade = await self._trades.add(user_id, enrich_trade(data, user_id=user_id))
        await self.recompute_rollup(user_id, trade.trade_date)
        self._invalidate(user_id)
        metrics.record_trade_write("create")
        logger.info("Created trade %s for user %s", trade.id, user_id)
        return trade

    async def update_trade(self, user_id: int, trade_id: int, data: TradeInput) -> Trade:
        """Replace a trade's fields and recompute its derived values.

        Both the old and the new trade date get their rollup rebuilt.

        Raises:
            NotFoundError: If the trade does not exist for this user.
            ValidationError: If the new prices or quantity are invalid.
        """
        existing = await self._trades.get(user_id, trade_id)
        if existing is None:
            raise NotFoundError(f"Trade {trade_id} not found")

        enriched = enrich_trade(
            data, id=trade_id, user_id=user_id, created_at=existing.created_at,
        )
        trade = await self._trades.update(user_id, trade_id, enriched)
        if trade is None:
            raise NotFoundError(f"Trade {trade_id} not found")

        await self.recompute_rollup(user_id, trade.trade_date)
        if existing.trade_date != trade.trade_date:
            await self.recompute_rollup(user_id, existing.trade_date)
        self._invalidate(user_id)
        metrics.record_trade_write("update")
        return trade

    async def delete_trade(self, user_id: int, trade_id: int) -> Trade:
        removed = await self._trades.delete(user_id, trade_id)
        if removed is None:
            raise NotFoundError(f"Trade {trade_id} not found")
        await self.recompute_rollup(user_id, removed.trade_date)
        self._invalidate(user_id)
        metrics.record_trade_write("delete")
        return removed

    async def get_trade(self, user_id: int, trade_id: int) -> Trade:
        trade = await self._trades.get(user_id, trade_id)
        if trade is None:
            raise NotFoundError(f"Trade {trade_id} not found")
        return trade

    async def list_trades(
        self, user_id: int, *, start: date | None = None, end: date | None = None,
    ) -> list[Trade]:
        """Trades newest first (trade date, then creation time)."""
        return await self._trades.list_for_user(user_id, start=start, end=end)

    # ------------------------------------------------------------------ #
    # Rollups                                                              #
    # ------------------------------------------------------------------ #

    async def recompute_rollup(self, user_id: int, day: date) -> DailyMetricsRollup | None:
        """Rebuild the rollup for ``day`` from scratch.

        The stored row is removed when no trades remain on that date.
        """
        rollup = build_daily_rollup(user_id, day, await self._trades.on_date(user_id, day))
        if rollup is None:
            await self._rollups.delete(user_id, day)
        else:
            await self._rollups.upsert(rollup)
        metrics.record_rollup(removed=rollup is None)
        return rollup

    async def recompute_all_rollups(self, user_id: int) -> int:
        dates = await self._trades.trade_dates(user_id)
        for day in dates:
            await self.recompute_rollup(user_id, day)
        self._invalidate(user_id)
        logger.info("Recomputed %d rollups for user %s", len(dates), user_id)
        return len(dates)

    async def daily_metrics(self, user_id: int, day: date | None = None) -> list[DailyMetricsRollup]:
        """The rollup for ``day``, or the 30 most recent rollups (newest first)."""
        if day is not None:
            rollup = await self._rollups.get(user_id, day)
            return [rollup] if rollup is not None else []
        rollups = await self._rollups.range(user_id)
        return list(reversed(rollups))[:30]

    # ------------------------------------------------------------------ #
    # Analytics                                                            #
    # ------------------------------------------------------------------ #

    async def summary(self, user_id: int, period: str = CURRENT_MONTH) -> dict[str, Any]:
        """Summary statistics and breakdowns for a period."""
        today = self._today()
        key = (user_id, "summary", period, today)
        cached = self._cached("summary", key)
        if cached is not None:
            return cached

        start, end = resolve_period(period, today)
        trades = await self._trades.list_for_user(user_id, start=start, end=end)

        with metrics.ANALYTICS_LATENCY.labels(operation="summary").time():
            stats = summarize(trades).to_dict()
            calls = stats.pop("calls")
            puts = stats.pop("puts")
            result = {
                **stats,
                "period": period,
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "max_drawdown": max_drawdown(trades),
                "mistake_patterns": [p.to_dict() for p in find_mistake_patterns(trades)],
                "streaks": calculate_streaks(trades).to_dict(),
                "breakout_analysis": {
                    k: v.to_dict() for k, v in analyze_breakout_types(trades).items()
                },
                "nifty_range_analysis": {
                    k: v.to_dict() for k, v in analyze_nifty_range(trades).items()
                },
                "time_of_day": analyze_time_of_day(trades).to_dict(),
                "call_put_ratio": {"calls": calls, "puts": puts},
                "trade_limit_analysis": trade_limit_analysis(
                    trades,
                    daily_limit=self._settings.daily_trade_limit,
                    single_day=period == TODAY,
                ),
            }

        self._store("summary", key, result)
        return result

    async def performance_trend(self, user_id: int, period: str = CURRENT_MONTH) -> list[dict[str, Any]]:
        """Equity curve over the period's daily rollups."""
        today = self._today()
        key = (user_id, "trend", period, today)
        cached = self._cached("trend", key)
        if cached is not None:
            return cached

        start, end = resolve_period(period, today)
        rollups = await self._rollups.range(user_id, start, end)
        trades = await self._trades.list_for_user(user_id, start=start, end=end)
        with metrics.ANALYTICS_LATENCY.labels(operation="performance_trend").time():
            result = [p.to_dict() for p in equity_curve(rollups, daily_r_split(trades))]

        self._store("trend", key, result)
        return result

    async def _lookback_trades(self, user_id: int) -> list[Trade]:
        start = lookback_start(self._today(), self._settings.weekly_lookback_weeks)
        return await self._trades.list_for_user(user_id, start=start, newest_first=False)

    async def weekly_r_multiple(self, user_id: int) -> list[dict[str, Any]]:
        return [w.to_dict() for w in weekly_r_multiple(await self._lookback_trades(user_id))]

    async def weekly_win_rate(self, user_id: int) -> list[dict[str, Any]]:
        return [w.to_dict() for w in weekly_win_rate(await self._lookback_trades(user_id))]

    async def weekly_plan_follow_rate(self, user_id: int) -> list[dict[str, Any]]:
        return [w.to_dict() for w in weekly_plan_follow_rate(await self._lookback_trades(user_id))]

    async def plan_deviations(self, user_id: int) -> dict[str, Any]:
        return plan_deviation_analysis(await self._trades.list_for_user(user_id))

    async def nifty_comparison(self, user_id: int) -> dict[str, Any]:
        key = (user_id, "nifty-comparison", self._today())
        cached = self._cached("static", key)
        if cached is not None:
            return cached
        result = compare_nifty(await self._trades.list_for_user(user_id))
        self._store("static", key, result)
        return result

    # ------------------------------------------------------------------ #
    # Insights                                                             #
    # ------------------------------------------------------------------ #

    async def refresh_insights(self, user_id: int, *, limit: int = 10) -> list[Insight]:
        """Regenerate the user's insights and return the stored snapshot.

        Old insights are always cleared, even when there are no trades.
        """
        cfg = self._settings.insights
        recent = await self._trades.recent(user_id, cfg.recent_trades)
        insights = InsightGenerator(cfg).generate(recent)
        await self._insights.replace(user_id, insights)
        for insight in insights:
            metrics.record_insight(insight.type.value)
        return await self._insights.list_for_user(user_id, limit=limit)

    # ------------------------------------------------------------------ #
    # Tags                                                                 #
    # ------------------------------------------------------------------ #

    async def seed_tags(self, *, extended: bool = False) -> int:
        return await self._tags.seed_mistake_tags(
            EXTENDED_MISTAKE_TAGS if extended else DEFAULT_MISTAKE_TAGS
        )

    async def mistake_tags(self, user_id: int) -> list[MistakeTag]:
        """Catalogue tags merged with labels the user has typed into trades."""
        return merge_tags(
            await self._tags.mistake_tags(),
            await self._trades.used_mistake_labels(user_id),
        )

    async def emotion_tags(self, user_id: int, category: str | None = None) -> list[EmotionTag]:
        return await self._tags.emotion_tags(user_id, category)

    async def record_emotion_tag(
        self, user_id: int, tag_name: str, category: str | None = None,
    ) -> EmotionTag:
        if not tag_name or not tag_name.strip():
            raise ValidationError("tag_name", "is required")
        return await self._tags.upsert_emotion_tag(user_id, tag_name, category)

    async def fix_tags(self, user_id: int) -> int:
        """Canonicalise and dedupe every trade's labels.  Returns trades changed."""
        changed = 0
        for trade in await self._trades.list_for_user(user_id):
            mistakes = normalize_labels(trade.mistakes)
            entry = normalize_labels(trade.entry_emotions)
            exit_ = normalize_labels(trade.exit_emotions)
            if (mistakes, entry, exit_) == (trade.mistakes, trade.entry_emotions, trade.exit_emotions):
                continue
            await self._trades.update_labels(
                user_id, trade.id,
                mistakes=mistakes, entry_emotions=entry, exit_emotions=exit_,
            )
            logger.info("Normalised labels on trade %s: %s -> %s", trade.id, trade.mistakes, mistakes)
            changed += 1
        if changed:
            self._invalidate(user_id)
        return changed

    # ------------------------------------------------------------------ #
    # Import / export                                                      #
    # ------------------------------------------------------------------ #

    async def import_trades(self, user_id: int, inputs: Sequence[TradeInput]) -> int:
        """Store many trades at once.

        Every input is validated before anything is written, so a bad row
        leaves the journal untouched.

        Raises:
            ImportFormatError: Naming the 1-based position of the first
                trade the calculator rejects.
        """
        enriched: list[Trade] = []
        for n, data in enumerate(inputs, start=1):
            try:
                enriched.append(enrich_trade(data, user_id=user_id))
            except ValidationError as e:
                raise ImportFormatError(n, str(e)) from e

        count = await self._trades.add_many(user_id, enriched)
        for day in sorted({t.trade_date for t in enriched}):
            await self.recompute_rollup(user_id, day)
        self._invalidate(user_id)
        metrics.record_import(count)
        logger.info("Imported %d trades for user %s", count, user_id)
        return count

    async def import_text(self, user_id: int, text: str, fmt: ExportFormat) -> int:
        return await self.import_trades(user_id, self._exporter.load(text, fmt))

    async def export_trades(self, user_id: int, fmt: ExportFormat = ExportFormat.CSV) -> str:
        return self._exporter.export(await self._trades.list_for_user(user_id), fmt)
