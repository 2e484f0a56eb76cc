"""Repository pattern for async database operations.

Each repository encapsulates query logic for a single aggregate root.
All methods accept an :class:`AsyncSession` obtained from
:meth:`options_journal.storage.db.connection.Database.session`.

Conversion helpers translate between core domain models
(:mod:`options_journal.core.models`) and ORM records.  This is the only
place where label sets are joined into, or split out of, comma text.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from options_journal.core.enums import OptionType
from options_journal.core.errors import DuplicateError
from options_journal.core.models import (
    DailyMetricsRollup,
    EmotionTag,
    Insight,
    MistakeTag,
    Trade,
    User,
    join_labels,
    parse_labels,
)

from .models import (
    DailyMetricsRecord,
    EmotionTagRecord,
    InsightRecord,
    MistakeTagRecord,
    TradeRecord,
    UserRecord,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------

def _apply_trade(record: TradeRecord, trade: Trade) -> TradeRecord:
    """Copy the user fields and derived fields of ``trade`` onto ``record``."""
    record.underlying = trade.underlying
    record.option_type = trade.option_type.value
    record.breakout_type = trade.breakout_type.value if trade.breakout_type else None
    record.nifty_range = trade.nifty_range.value if trade.nifty_range else None
    record.strike_price = trade.strike_price
    record.entry_price = trade.entry_price
    record.stop_loss = trade.stop_loss
    record.exit_price = trade.exit_price
    record.quantity = trade.quantity
    record.lot_size = trade.lot_size
    record.trade_date = trade.trade_date
    record.entry_time = trade.entry_time
    record.exit_time = trade.exit_time
    record.followed_plan = trade.followed_plan
    record.mistakes = join_labels(trade.mistakes)
    record.emotional_state_entry = join_labels(trade.entry_emotions)
    record.emotional_state_exit = join_labels(trade.exit_emotions)
    record.notes = trade.notes
    record.screenshot_url = trade.screenshot_url
    record.pnl = trade.pnl
    record.return_percentage = trade.return_percentage
    record.risk_amount = trade.risk_amount
    record.r_multiple = trade.r_multiple
    return record


def _record_to_trade(record: TradeRecord) -> Trade:
    """Convert an ORM :class:`TradeRecord` back to a core :class:`Trade`."""
    return Trade(
        id=record.id,
        user_id=record.user_id,
        underlying=record.underlying,
        option_type=OptionType(record.option_type or OptionType.NONE.value),
        breakout_type=record.breakout_type,
        nifty_range=record.nifty_range,
        strike_price=record.strike_price,
        entry_price=record.entry_price,
        stop_loss=record.stop_loss,
        exit_price=record.exit_price,
        quantity=record.quantity,
        lot_size=record.lot_size,
        trade_date=record.trade_date,
        entry_time=record.entry_time,
        exit_time=record.exit_time,
        followed_plan=record.followed_plan,
        mistakes=parse_labels(record.mistakes),
        entry_emotions=parse_labels(record.emotional_state_entry),
        exit_emotions=parse_labels(record.emotional_state_exit),
        notes=record.notes,
        screenshot_url=record.screenshot_url,
        pnl=record.pnl,
        return_percentage=record.return_percentage,
        risk_amount=record.risk_amount,
        r_multiple=record.r_multiple,
        created_at=record.created_at,
    )


def _record_to_rollup(record: DailyMetricsRecord) -> DailyMetricsRollup:
    return DailyMetricsRollup(
        user_id=record.user_id,
        date=record.date,
        total_trades=record.total_trades,
        winning_trades=record.winning_trades,
        losing_trades=record.losing_trades,
        total_pnl=record.total_pnl,
        win_rate=record.win_rate,
        avg_r_multiple=record.avg_r_multiple,
        plan_adherence_rate=record.plan_adherence_rate,
        mistake_frequency=record.mistake_frequency,
    )


def _record_to_user(record: UserRecord) -> User:
    return User(id=record.id, email=record.email, name=record.name, created_at=record.created_at)


# ---------------------------------------------------------------------------
# UserRepo
# ---------------------------------------------------------------------------

class UserRepo:
    """Repository for :class:`UserRecord` persistence and retrieval."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, email: str, password_hash: str, name: str | None = None) -> User:
        """Insert a user.

        Raises:
            DuplicateError: If the email is already registered.
        """
        record = UserRecord(email=email.strip().lower(), password_hash=password_hash, name=name)
        self._session.add(record)
        try:
            await self._session.flush()
        except IntegrityError as e:
            await self._session.rollback()
            raise DuplicateError(f"User {email} already exists") from e
        logger.info("Registered user %s", record.id)
        return _record_to_user(record)

    async def get(self, user_id: int) -> User | None:
        record = await self._session.get(UserRecord, user_id)
        return _record_to_user(record) if record is not None else None

    async def get_credentials(self, email: str) -> tuple[User, str] | None:
        """Return the user and stored password hash for ``email``."""
        stmt = select(UserRecord).where(UserRecord.email == email.strip().lower())
        record = (await self._session.execute(stmt)).scalar_one_or_none()
        if record is None:
            return None
        return _record_to_user(record), record.password_hash


# ---------------------------------------------------------------------------
# TradeRepo
# ---------------------------------------------------------------------------

class TradeRepo:
    """Repository for :class:`TradeRecord` persistence and retrieval.

    Every lookup is scoped to a user: a trade belonging to someone else
    behaves exactly like a missing one.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _get_record(self, user_id: int, trade_id: int) -> TradeRecord | None:
        stmt = select(TradeRecord).where(
            TradeRecord.id == trade_id, TradeRecord.user_id == user_id,
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def add(self, user_id: int, trade: Trade) -> Trade:
        """Insert an enriched trade and return it with its storage identity."""
        record = _apply_trade(TradeRecord(user_id=user_id), trade)
        self._session.add(record)
        await self._session.flush()
        await self._session.refresh(record)
        logger.debug("Inserted trade %s for user %s", record.id, user_id)
        return _record_to_trade(record)

    async def add_many(self, user_id: int, trades: Iterable[Trade]) -> int:
        records = [_apply_trade(TradeRecord(user_id=user_id), t) for t in trades]
        self._session.add_all(records)
        await self._session.flush()
        logger.debug("Inserted %d trades for user %s", len(records), user_id)
        return len(records)

    async def get(self, user_id: int, trade_id: int) -> Trade | None:
        record = await self._get_record(user_id, trade_id)
        return _record_to_trade(record) if record is not None else None

    async def update(self, user_id: int, trade_id: int, trade: Trade) -> Trade | None:
        """Overwrite a trade in place.  Returns ``None`` if it does not exist."""
        record = await self._get_record(user_id, trade_id)
        if record is None:
            return None
        _apply_trade(record, trade)
        await self._session.flush()
        logger.debug("Updated trade %s for user %s", trade_id, user_id)
        return _record_to_trade(record)

    async def update_labels(
        self,
        user_id: int,
        trade_id: int,
        *,
        mistakes: Sequence[str],
        entry_emotions: Sequence[str],
        exit_emotions: Sequence[str],
    ) -> None:
        record = await self._get_record(user_id, trade_id)
        if record is None:
            return
        record.mistakes = join_labels(mistakes)
        record.emotional_state_entry = join_labels(entry_emotions)
        record.emotional_state_exit = join_labels(exit_emotions)
        await self._session.flush()

    async def delete(self, user_id: int, trade_id: int) -> Trade | None:
        """Delete a trade, returning what was removed (``None`` if missing)."""
        record = await self._get_record(user_id, trade_id)
        if record is None:
            return None
        trade = _record_to_trade(record)
        await self._session.delete(record)
        await self._session.flush()
        logger.debug("Deleted trade %s for user %s", trade_id, user_id)
        return trade

    async def list_for_user(
        self,
        user_id: int,
        *,
        start: date | None = None,
        end: date | None = None,
        limit: int | None = None,
        newest_first: bool = True,
    ) -> list[Trade]:
        """Trades for a user within an optional inclusive date window.

        Newest first sorts by trade date then creation time, both
        descending; otherwise both ascending.
        """
        stmt = select(TradeRecord).where(TradeRecord.user_id == user_id)
        if start is not None:
            stmt = stmt.where(TradeRecord.trade_date >= start)
        if end is not None:
            stmt = stmt.where(TradeRecord.trade_date <= end)
        if newest_first:
            stmt = stmt.order_by(
                TradeRecord.trade_date.desc(), TradeRecord.created_at.desc(), TradeRecord.id.desc(),
            )
        else:
            stmt = stmt.order_by(
                TradeRecord.trade_date.asc(), TradeRecord.created_at.asc(), TradeRecord.id.asc(),
            )
        if limit is not None:
            stmt = stmt.limit(limit)

        records: Sequence[TradeRecord] = (await self._session.execute(stmt)).scalars().all()
        return [_record_to_trade(r) for r in records]

    async def on_date(self, user_id: int, day: date) -> list[Trade]:
        return await self.list_for_user(user_id, start=day, end=day, newest_first=False)

    async def recent(self, user_id: int, limit: int = 20) -> list[Trade]:
        return await self.list_for_user(user_id, limit=limit)

    async def trade_dates(self, user_id: int) -> list[date]:
        stmt = (
            select(TradeRecord.trade_date)
            .where(TradeRecord.user_id == user_id)
            .distinct()
            .order_by(TradeRecord.trade_date.asc())
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def used_mistake_labels(self, user_id: int) -> list[str]:
        stmt = (
            select(TradeRecord.mistakes)
            .where(TradeRecord.user_id == user_id, TradeRecord.mistakes.is_not(None))
            .distinct()
        )
        labels: list[str] = []
        for text in (await self._session.execute(stmt)).scalars().all():
            labels.extend(parse_labels(text))
        return parse_labels(labels)


# ---------------------------------------------------------------------------
# RollupRepo
# ---------------------------------------------------------------------------

class RollupRepo:
    """Repository for :class:`DailyMetricsRecord` rows (one per user and date)."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _get_record(self, user_id: int, day: date) -> DailyMetricsRecord | None:
        stmt = select(DailyMetricsRecord).where(
            DailyMetricsRecord.user_id == user_id, DailyMetricsRecord.date == day,
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def upsert(self, rollup: DailyMetricsRollup) -> None:
        """Insert or fully overwrite the row for ``(user_id, date)``."""
        record = await self._get_record(rollup.user_id, rollup.date)
        if record is None:
            record = DailyMetricsRecord(user_id=rollup.user_id, date=rollup.date)
            self._session.add(record)
        for field, value in rollup.model_dump(exclude={"user_id", "date"}).items():
            setattr(record, field, value)
        await self._session.flush()

    async def delete(self, user_id: int, day: date) -> None:
        await self._session.execute(
            delete(DailyMetricsRecord).where(
                DailyMetricsRecord.user_id == user_id, DailyMetricsRecord.date == day,
            )
        )

    async def get(self, user_id: int, day: date) -> DailyMetricsRollup | None:
        record = await self._get_record(user_id, day)
        return _record_to_rollup(record) if record is not None else None

    async def range(
        self, user_id: int, start: date | None = None, end: date | None = None,
    ) -> list[DailyMetricsRollup]:
        """Rollups in an inclusive window, ascending by date."""
        stmt = select(DailyMetricsRecord).where(DailyMetricsRecord.user_id == user_id)
        if start is not None:
            stmt = stmt.where(DailyMetricsRecord.date >= start)
        if end is not None:
            stmt = stmt.where(DailyMetricsRecord.date <= end)
        stmt = stmt.order_by(DailyMetricsRecord.date.asc())
        records = (await self._session.execute(stmt)).scalars().all()
        return [_record_to_rollup(r) for r in records]


# ---------------------------------------------------------------------------
# InsightRepo
# ---------------------------------------------------------------------------

class InsightRepo:
    """Repository for :class:`InsightRecord` snapshots."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def replace(self, user_id: int, insights: Sequence[Insight]) -> None:
        """Delete every stored insight for the user, then insert ``insights``."""
        await self._session.execute(delete(InsightRecord).where(InsightRecord.user_id == user_id))
        self._session.add_all([
            InsightRecord(
                user_id=user_id,
                type=i.type.value,
                message=i.message,
                severity=i.severity.value,
            )
            for i in insights
        ])
        await self._session.flush()
        logger.debug("Stored %d insights for user %s", len(insights), user_id)

    async def list_for_user(self, user_id: int, limit: int = 10) -> list[Insight]:
        """The stored snapshot in rule order."""
        stmt = (
            select(InsightRecord)
            .where(InsightRecord.user_id == user_id)
            .order_by(InsightRecord.id.asc())
            .limit(limit)
        )
        records = (await self._session.execute(stmt)).scalars().all()
        return [
            Insight(
                id=r.id,
                user_id=r.user_id,
                type=r.type,
                message=r.message,
                severity=r.severity,
                created_at=r.created_at,
            )
            for r in records
        ]


# ---------------------------------------------------------------------------
# TagRepo
# ---------------------------------------------------------------------------

class TagRepo:
    """Repository for the mistake tag catalogue and per-user emotion tags."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def seed_mistake_tags(self, tags: Iterable[MistakeTag]) -> int:
        """Insert catalogue tags that are not stored yet.  Returns the count added."""
        existing = set((await self._session.execute(select(MistakeTagRecord.tag_name))).scalars().all())
        added = 0
        for tag in tags:
            if tag.tag_name in existing:
                continue
            self._session.add(MistakeTagRecord(
                tag_name=tag.tag_name,
                category=tag.category.value,
                description=tag.description,
            ))
            existing.add(tag.tag_name)
            added += 1
        await self._session.flush()
        logger.info("Seeded %d mistake tags", added)
        return added

    async def mistake_tags(self) -> list[MistakeTag]:
        stmt = select(MistakeTagRecord).order_by(MistakeTagRecord.tag_name.asc())
        records = (await self._session.execute(stmt)).scalars().all()
        return [
            MistakeTag(tag_name=r.tag_name, category=r.category or "custom", description=r.description)
            for r in records
        ]

    async def emotion_tags(self, user_id: int, category: str | None = None) -> list[EmotionTag]:
        """A user's emotion tags, most used first."""
        stmt = select(EmotionTagRecord).where(EmotionTagRecord.user_id == user_id)
        if category:
            stmt = stmt.where(EmotionTagRecord.category == category)
        stmt = stmt.order_by(EmotionTagRecord.usage_count.desc(), EmotionTagRecord.tag_name.asc())
        records = (await self._session.execute(stmt)).scalars().all()
        return [
            EmotionTag(
                id=r.id,
                user_id=r.user_id,
                tag_name=r.tag_name,
                category=r.category,
                usage_count=r.usage_count,
            )
            for r in records
        ]

    async def upsert_emotion_tag(
        self, user_id: int, tag_name: str, category: str | None = None,
    ) -> EmotionTag:
        """Create the tag or bump its usage count.  Names are stored lower-case."""
        name = tag_name.strip().lower()
        stmt = select(EmotionTagRecord).where(
            EmotionTagRecord.user_id == user_id, EmotionTagRecord.tag_name == name,
        )
        record = (await self._session.execute(stmt)).scalar_one_or_none()
        if record is None:
            record = EmotionTagRecord(user_id=user_id, tag_name=name, category=category, usage_count=1)
            self._session.add(record)
        else:
            record.usage_count = record.usage_count + 1
        await self._session.flush()
        return EmotionTag(
            id=record.id,
            user_id=user_id,
            tag_name=record.tag_name,
            category=record.category,
            usage_count=record.usage_count,
        )
