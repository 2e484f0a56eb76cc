"""Trade import / export in CSV and JSON.

Exports use the journal's spreadsheet headers (``Date``, ``Underlying``,
``Option Type`` ...).  Imports accept the same layout and produce
:class:`TradeInput` records; derived columns (P&L, R-multiple ...) in an
import file are ignored because the calculator recomputes them.  A blank
``Stop Loss`` cell means "no stop loss", never zero.

Usage::

    exporter = TradeExporter()
    csv_str = exporter.to_csv(trades)
    inputs = exporter.from_csv(csv_str)
"""

from __future__ import annotations

import csv
import io
import json
import logging
from typing import Any, Iterable

import pydantic

from options_journal.core.enums import ExportFormat
from options_journal.core.errors import ImportFormatError
from options_journal.core.models import Trade, TradeInput, join_labels

logger = logging.getLogger(__name__)

# Column header -> TradeInput field (None for derived, export-only columns)
_COLUMNS: dict[str, str | None] = {
    "Date": "trade_date",
    "Underlying": "underlying",
    "Option Type": "option_type",
    "Breakout Type": "breakout_type",
    "Nifty Range": "nifty_range",
    "Strike Price": "strike_price",
    "Entry Price": "entry_price",
    "Stop Loss": "stop_loss",
    "Exit Price": "exit_price",
    "Quantity": "quantity",
    "Lot Size": "lot_size",
    "PnL": None,
    "Return %": None,
    "Risk Amount": None,
    "R-Multiple": None,
    "Followed Plan": "followed_plan",
    "Mistakes": "mistakes",
    "Entry Emotions": "entry_emotions",
    "Exit Emotions": "exit_emotions",
    "Notes": "notes",
}

CSV_COLUMNS = list(_COLUMNS)

_YES = {"yes", "y", "true", "1"}
_NO = {"no", "n", "false", "0"}


def _blank(value: Any) -> Any:
    return "" if value is None else value


class TradeExporter:
    """Convert trades to and from the spreadsheet layout."""

    # ------------------------------------------------------------------ #
    # Export                                                               #
    # ------------------------------------------------------------------ #

    def to_rows(self, trades: Iterable[Trade]) -> list[dict[str, Any]]:
        return [self._trade_to_row(t) for t in trades]

    def to_csv(self, trades: Iterable[Trade]) -> str:
        """Export trades as a CSV string with a header row."""
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        for row in self.to_rows(trades):
            writer.writerow({c: _blank(row.get(c)) for c in CSV_COLUMNS})
        return buf.getvalue()

    def to_json(self, trades: Iterable[Trade], *, indent: int = 2) -> str:
        return json.dumps(self.to_rows(trades), indent=indent, default=str)

    def export(self, trades: Iterable[Trade], fmt: ExportFormat) -> str:
        if fmt == ExportFormat.JSON:
            return self.to_json(trades)
        return self.to_csv(trades)

    # ------------------------------------------------------------------ #
    # Import                                                               #
    # ------------------------------------------------------------------ #

    def from_csv(self, text: str) -> list[TradeInput]:
        """Parse a CSV export back into trade inputs.

        Raises:
            ImportFormatError: With the 1-based file row (header is row 1)
                of the first row that cannot be parsed.
        """
        reader = csv.DictReader(io.StringIO(text))
        missing = [c for c in ("Date", "Underlying", "Entry Price", "Exit Price", "Quantity")
                   if c not in (reader.fieldnames or [])]
        if missing:
            raise ImportFormatError(1, f"missing columns: {', '.join(missing)}")
        return [self._row_to_input(row, n) for n, row in enumerate(reader, start=2)]

    def from_json(self, text: str) -> list[TradeInput]:
        try:
            rows = json.loads(text)
        except json.JSONDecodeError as e:
            raise ImportFormatError(0, f"invalid JSON: {e.msg}") from e
        if not isinstance(rows, list):
            raise ImportFormatError(0, "expected a list of trade objects")
        return [self._row_to_input(row, n) for n, row in enumerate(rows, start=1)]

    def load(self, text: str, fmt: ExportFormat) -> list[TradeInput]:
        if fmt == ExportFormat.JSON:
            return self.from_json(text)
        return self.from_csv(text)

    # ------------------------------------------------------------------ #
    # Private helpers                                                      #
    # ------------------------------------------------------------------ #

    def _trade_to_row(self, trade: Trade) -> dict[str, Any]:
        return {
            "Date": trade.trade_date.isoformat(),
            "Underlying": trade.underlying,
            "Option Type": trade.option_type.value,
            "Breakout Type": trade.breakout_type.value if trade.breakout_type else None,
            "Nifty Range": trade.nifty_range.value if trade.nifty_range else None,
            "Strike Price": trade.strike_price,
            "Entry Price": trade.entry_price,
            "Stop Loss": trade.stop_loss,
            "Exit Price": trade.exit_price,
            "Quantity": trade.quantity,
            "Lot Size": trade.lot_size,
            "PnL": trade.pnl,
            "Return %": trade.return_percentage,
            "Risk Amount": trade.risk_amount,
            "R-Multiple": trade.r_multiple,
            "Followed Plan": "Yes" if trade.followed_plan else "No",
            "Mistakes": join_labels(trade.mistakes),
            "Entry Emotions": join_labels(trade.entry_emotions),
            "Exit Emotions": join_labels(trade.exit_emotions),
            "Notes": trade.notes,
        }

    def _row_to_input(self, row: Any, n: int) -> TradeInput:
        if not isinstance(row, dict):
            raise ImportFormatError(n, "expected an object")

        fields: dict[str, Any] = {}
        for column, name in _COLUMNS.items():
            if name is None or column not in row:
                continue
            value = row[column]
            if isinstance(value, str):
                value = value.strip()
            if value in ("", None):
                continue
            fields[name] = value

        plan = fields.get("followed_plan")
        if isinstance(plan, str):
            if plan.lower() in _YES:
                fields["followed_plan"] = True
            elif plan.lower() in _NO:
                fields["followed_plan"] = False
            else:
                raise ImportFormatError(n, f"Followed Plan must be Yes or No, got {plan!r}")

        if isinstance(fields.get("option_type"), str):
            fields["option_type"] = fields["option_type"].lower()

        try:
            return TradeInput(**fields)
        except pydantic.ValidationError as e:
            first = e.errors()[0]
            where = ".".join(str(p) for p in first["loc"])
            raise ImportFormatError(n, f"{where}: {first['msg']}") from e
