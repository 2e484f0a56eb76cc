"""Per-trade metrics: P&L, return %, risk amount and R-multiple.

The calculator is the only writer of a trade's derived fields.  A trade
without a stop loss has no risk reference, so its risk amount and
R-multiple are ``None`` (not zero) and downstream R averages skip it.

Usage::

    metrics = compute_trade_metrics(100.0, 110.0, 95.0, 10)
    metrics.r_multiple  # 2.0
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any

from options_journal.core.errors import ValidationError
from options_journal.core.models import Trade, TradeInput

# Wide enough to quantize any finite float to cents
_ROUNDING_CONTEXT = Context(prec=400)


def round_half_up(value: float, places: int = 2) -> float:
    """Round halves away from zero.

    Works on the shortest decimal repr of the float so that values such
    as ``1.005`` round the way they read.  Negative values mirror positive
    ones (``-2.345 -> -2.35``).
    """
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(repr(float(value))).quantize(
        quantum, rounding=ROUND_HALF_UP, context=_ROUNDING_CONTEXT,
    )
    return float(rounded)


def round2(value: float) -> float:
    """Round to 2 decimals (the precision of every derived figure)."""
    return round_half_up(value, 2)


@dataclass(frozen=True)
class TradeMetrics:
    """Derived fields for one trade."""

    pnl: float
    return_pct: float
    risk_amount: float | None
    r_multiple: float | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "pnl": self.pnl,
            "return_percentage": self.return_pct,
            "risk_amount": self.risk_amount,
            "r_multiple": self.r_multiple,
        }


def _require_positive(field: str, value: Any) -> float:
    if value is None:
        raise ValidationError(field, "is required")
    if isinstance(value, bool):
        raise ValidationError(field, f"{value!r} is not a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(field, f"{value!r} is not a number") from None
    except OverflowError:
        raise ValidationError(field, "is too large") from None
    if not math.isfinite(number):
        raise ValidationError(field, "must be a finite number")
    if number <= 0:
        raise ValidationError(field, "must be greater than zero")
    return number


def _require_finite(field: str, value: float) -> float:
    if not math.isfinite(value):
        raise ValidationError(field, "produces a result too large to represent")
    return value


def compute_trade_metrics(
    entry_price: float,
    exit_price: float,
    stop_loss: float | None,
    quantity: int,
) -> TradeMetrics:
    """Compute P&L, return %, risk amount and R-multiple.

    Raises:
        ValidationError: For a missing, non-finite or non-positive price,
            a non-positive or fractional quantity, an invalid stop loss,
            or inputs whose results overflow a float.
    """
    entry = _require_positive("entry_price", entry_price)
    exit_ = _require_positive("exit_price", exit_price)
    qty = _require_positive("quantity", quantity)
    if not qty.is_integer():
        raise ValidationError("quantity", "must be a whole number of units")

    pnl = _require_finite("quantity", (exit_ - entry) * qty)
    return_pct = _require_finite("entry_price", (exit_ - entry) / entry * 100)

    if stop_loss is None:
        return TradeMetrics(
            pnl=round2(pnl),
            return_pct=round2(return_pct),
            risk_amount=None,
            r_multiple=None,
        )

    stop = _require_positive("stop_loss", stop_loss)
    risk_amount = _require_finite("stop_loss", abs(entry - stop) * qty)
    # A stop placed at entry leaves no risk reference: 0R, not undefined.
    r_multiple = _require_finite("stop_loss", pnl / risk_amount if risk_amount > 0 else 0.0)

    return TradeMetrics(
        pnl=round2(pnl),
        return_pct=round2(return_pct),
        risk_amount=round2(risk_amount),
        r_multiple=round2(r_multiple),
    )


def enrich_trade(trade: TradeInput, **identity: Any) -> Trade:
    """Return a :class:`Trade` with freshly computed derived fields.

    ``identity`` carries storage-owned fields (``id``, ``user_id``,
    ``created_at``) through unchanged.  Derived fields present on the
    input are always overwritten.
    """
    metrics = compute_trade_metrics(
        trade.entry_price, trade.exit_price, trade.stop_loss, trade.quantity,
    )
    fields = trade.model_dump(
        exclude={"pnl", "return_percentage", "risk_amount", "r_multiple"},
    )
    fields.update(identity)
    fields.update(metrics.to_dict())
    return Trade(**fields)
