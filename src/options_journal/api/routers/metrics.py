"""Analytics endpoints."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query

from options_journal.core.models import DailyMetricsRollup, EmotionTag, MistakeTag
from options_journal.service import CURRENT_MONTH, JournalService

from ..deps import current_user_id, get_service
from ..schemas import EmotionTagRequest, MessageResponse

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("/daily", response_model=list[DailyMetricsRollup])
async def daily(
    day: date | None = Query(None, alias="date"),
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> list[DailyMetricsRollup]:
    return await service.daily_metrics(user_id, day)


@router.get("/summary")
async def summary(
    period: str = CURRENT_MONTH,
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> dict[str, Any]:
    return await service.summary(user_id, period)


@router.get("/performance-trend")
async def performance_trend(
    period: str = CURRENT_MONTH,
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> list[dict[str, Any]]:
    return await service.performance_trend(user_id, period)


@router.get("/weekly-r-multiple")
async def weekly_r_multiple(
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> list[dict[str, Any]]:
    return await service.weekly_r_multiple(user_id)


@router.get("/weekly-win-rate")
async def weekly_win_rate(
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> list[dict[str, Any]]:
    return await service.weekly_win_rate(user_id)


@router.get("/weekly-plan-follow-rate")
async def weekly_plan_follow_rate(
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> list[dict[str, Any]]:
    return await service.weekly_plan_follow_rate(user_id)


@router.get("/plan-deviation-analysis")
async def plan_deviation_analysis(
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> dict[str, Any]:
    return await service.plan_deviations(user_id)


@router.get("/nifty-comparison")
async def nifty_comparison(
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> dict[str, Any]:
    return await service.nifty_comparison(user_id)


# --------------------------------------------------------------------------- #
# Tags
# --------------------------------------------------------------------------- #

@router.get("/tags", response_model=list[MistakeTag])
async def tags(
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> list[MistakeTag]:
    return await service.mistake_tags(user_id)


@router.post("/init-tags", response_model=MessageResponse)
async def init_tags(
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> MessageResponse:
    added = await service.seed_tags()
    return MessageResponse(message="Tags initialized successfully", count=added)


@router.post("/populate-tags", response_model=MessageResponse)
async def populate_tags(
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> MessageResponse:
    added = await service.seed_tags(extended=True)
    return MessageResponse(message="Tags populated successfully", count=added)


@router.get("/emotion-tags", response_model=list[EmotionTag])
async def emotion_tags(
    category: str | None = None,
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> list[EmotionTag]:
    return await service.emotion_tags(user_id, category)


@router.post("/emotion-tags", response_model=EmotionTag)
async def record_emotion_tag(
    body: EmotionTagRequest,
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> EmotionTag:
    return await service.record_emotion_tag(user_id, body.tag_name, body.category)
