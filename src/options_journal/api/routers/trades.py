"""Trade CRUD and export."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from options_journal.core.enums import ExportFormat
from options_journal.core.models import Trade, TradeInput
from options_journal.service import JournalService

from ..deps import current_user_id, get_service

router = APIRouter(prefix="/trades", tags=["trades"])


@router.post("", response_model=Trade, status_code=201)
async def create_trade(
    body: TradeInput,
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> Trade:
    return await service.create_trade(user_id, body)


@router.get("", response_model=list[Trade])
async def list_trades(
    start: date | None = None,
    end: date | None = None,
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> list[Trade]:
    return await service.list_trades(user_id, start=start, end=end)


@router.get("/export", response_class=PlainTextResponse)
async def export_trades(
    format: ExportFormat = Query(ExportFormat.CSV),
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> PlainTextResponse:
    body = await service.export_trades(user_id, format)
    media_type = "application/json" if format == ExportFormat.JSON else "text/csv"
    return PlainTextResponse(body, media_type=media_type)


@router.get("/{trade_id}", response_model=Trade)
async def get_trade(
    trade_id: int,
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> Trade:
    return await service.get_trade(user_id, trade_id)


@router.put("/{trade_id}", response_model=Trade)
async def update_trade(
    trade_id: int,
    body: TradeInput,
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> Trade:
    return await service.update_trade(user_id, trade_id, body)


@router.delete("/{trade_id}", status_code=204)
async def delete_trade(
    trade_id: int,
    user_id: int = Depends(current_user_id),
    service: JournalService = Depends(get_service),
) -> None:
    await service.delete_trade(user_id, trade_id)
