"""
Ledger projection of a reconstructed stock card.

Lays processed rows out in the two-sided stock card format: receipt
columns (date, reference, quantity, cost) are filled only on receipt
rows, issue columns (date, reference, quantity, equipment) only on issue
rows, and one balance column is shared by every line.  The first line
brings the opening balance forward.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TextIO

from stock_config.schema import DEFAULT_CONFIG, StockCardConfig
from stock_kernel.domain.movement import ProcessedMovement, StockCard
from stock_kernel.domain.values import quantize_display
from stock_kernel.logging_config import get_logger
from stock_engines.references import clean_reference

logger = get_logger("engines.ledger")

LEDGER_HEADER: tuple[str, ...] = (
    "Receipt Date",
    "Receipt Ref.",
    "Receipt Qty",
    "Receipt Cost",
    "Issue Date",
    "Issue Ref.",
    "Issue Qty",
    "Balance Qty.",
    "GSE No.",
)


@dataclass(frozen=True)
class LedgerLine:
    """One printed line of a stock card."""

    balance_quantity: Decimal
    receipt_date: date | None = None
    receipt_reference: str | None = None
    receipt_quantity: Decimal | None = None
    receipt_amount: Decimal | None = None
    issue_date: date | None = None
    issue_reference: str | None = None
    issue_quantity: Decimal | None = None
    equipment_number: str | None = None

    @property
    def is_receipt(self) -> bool:
        return self.receipt_date is not None

    @property
    def is_issue(self) -> bool:
        return self.issue_date is not None

    def as_display(self, config: StockCardConfig | None = None) -> tuple[str, ...]:
        """Format the line's cells in ``LEDGER_HEADER`` order."""
        config = config or DEFAULT_CONFIG

        def fmt_date(value: date | None) -> str:
            return value.strftime(config.display_date_format) if value else ""

        def fmt_num(value: Decimal | None) -> str:
            if value is None:
                return ""
            return str(quantize_display(value, config.display_decimal_places))

        return (
            fmt_date(self.receipt_date),
            self.receipt_reference or "",
            fmt_num(self.receipt_quantity),
            fmt_num(self.receipt_amount),
            fmt_date(self.issue_date),
            self.issue_reference or "",
            fmt_num(self.issue_quantity),
            fmt_num(self.balance_quantity),
            self.equipment_number or "",
        )


def _line_for(row: ProcessedMovement, config: StockCardConfig) -> LedgerLine:
    reference = clean_reference(row.reference, row.type, config)
    if row.is_receipt:
        return LedgerLine(
            balance_quantity=row.balance_quantity,
            receipt_date=row.date,
            receipt_reference=reference,
            receipt_quantity=row.quantity,
            receipt_amount=row.amount,
        )
    return LedgerLine(
        balance_quantity=row.balance_quantity,
        issue_date=row.date,
        issue_reference=reference,
        issue_quantity=row.quantity,
        equipment_number=row.equipment_number or "",
    )


def build_ledger(
    card: StockCard,
    config: StockCardConfig | None = None,
) -> tuple[LedgerLine, ...]:
    """
    Project a stock card into ledger lines.

    Postconditions:
        - The first line is the brought-forward line.
        - Exactly one further line per processed row, in row order.
    """
    config = config or DEFAULT_CONFIG
    opening = card.opening
    brought_forward = LedgerLine(
        balance_quantity=opening.open_quantity,
        receipt_date=opening.opening_balance_date,
        receipt_reference=config.brought_forward_reference,
        receipt_quantity=opening.open_quantity,
        receipt_amount=opening.open_amount,
    )
    lines = (brought_forward,) + tuple(_line_for(row, config) for row in card.rows)
    logger.debug("ledger_built", extra={
        "nac_code": opening.nac_code,
        "line_count": len(lines),
    })
    return lines


def write_ledger_csv(
    lines: Iterable[LedgerLine],
    stream: TextIO,
    config: StockCardConfig | None = None,
) -> int:
    """Write ledger lines as CSV with a header row. Returns data rows written."""
    writer = csv.writer(stream)
    writer.writerow(LEDGER_HEADER)
    count = 0
    for line in lines:
        writer.writerow(line.as_display(config))
        count += 1
    return count
