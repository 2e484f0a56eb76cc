"""Shared fixtures for the options-journal test suite."""

from __future__ import annotations

import itertools
from datetime import date, datetime

import pytest

from options_journal.core.config import Settings
from options_journal.core.models import Trade, TradeInput
from options_journal.journal.calculator import enrich_trade


# ---------------------------------------------------------------------------
# Trades
# ---------------------------------------------------------------------------

_TRADE_DEFAULTS = {
    "underlying": "NIFTY",
    "option_type": "call",
    "entry_price": 100.0,
    "exit_price": 110.0,
    "stop_loss": 95.0,
    "quantity": 25,
    "trade_date": date(2024, 1, 15),
}


@pytest.fixture
def make_trade():
    """Factory for enriched trades.

    Defaults give a winning call: P&L 250, risk 125, 2R.  Identity fields
    (``id``, ``user_id``, ``created_at``) may be overridden.
    """
    ids = itertools.count(1)

    def _make(**overrides) -> Trade:
        identity = {
            "id": overrides.pop("id", next(ids)),
            "user_id": overrides.pop("user_id", 1),
            "created_at": overrides.pop("created_at", datetime(2024, 1, 15, 10, 0)),
        }
        fields = {**_TRADE_DEFAULTS, **overrides}
        return enrich_trade(TradeInput(**fields), **identity)

    return _make


@pytest.fixture
def trade_input():
    """Factory for raw trade inputs (no derived fields)."""

    def _make(**overrides) -> TradeInput:
        return TradeInput(**{**_TRADE_DEFAULTS, **overrides})

    return _make


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        database={
            "url": f"sqlite+aiosqlite:///{tmp_path / 'journal.db'}",
            "use_null_pool": True,
        },
        auth={"jwt_secret": "test-secret"},
        observability={"metrics_enabled": True},
    )
