"""Behavioural insights."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from options_journal.core.models import Insight
from options_journal.service import JournalService

from ..deps import current_user_id, get_service

router = APIRouter(prefix="/insights", tags=["insights"])


@router.get("", response_model=list[Insight])
async def insights(
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> list[Insight]:
    """Regenerate and return the latest insights (at most 10)."""
    return await service.refresh_insights(user_id)
