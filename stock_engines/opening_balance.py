"""
Module: stock_engines.opening_balance
Responsibility:
    Roll an item's base opening balance forward to the start of a report
    window.  Receipts and issues dated before the window are folded into
    the opening figures, which are then dated the day before the window.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Only movements strictly before ``from_date`` contribute.
    - The returned opening quantity is never negative; a negative
      roll-forward is clamped to zero and logged as a warning.

Failure modes:
    - None; out-of-window movements are ignored rather than rejected.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from stock_config.schema import DEFAULT_CONFIG, StockCardConfig
from stock_kernel.domain.movement import Movement, OpeningState
from stock_kernel.domain.values import ZERO, to_decimal
from stock_kernel.logging_config import get_logger
from stock_engines.tracer import traced_engine

logger = get_logger("engines.opening_balance")


@dataclass(frozen=True)
class OpeningBalance:
    """
    Opening quantity and amount as of a date.

    Guarantees:
        - ``quantity >= 0``.
    """

    quantity: Decimal
    amount: Decimal
    as_of: date

    def apply_to(self, opening: OpeningState) -> OpeningState:
        """Return ``opening`` with these figures and date."""
        return OpeningState(
            open_quantity=self.quantity,
            open_amount=self.amount,
            opening_balance_date=self.as_of,
            nac_code=opening.nac_code,
            item_name=opening.item_name,
            part_number=opening.part_number,
            equipment_number=opening.equipment_number,
            location=opening.location,
            card_number=opening.card_number,
        )


@traced_engine(
    "opening_balance_roll_forward",
    "1.0",
    fingerprint_fields=("base_quantity", "base_amount", "from_date"),
)
def roll_forward_opening(
    *,
    base_quantity: Decimal | int | str,
    base_amount: Decimal | int | str,
    prior_receipts: Iterable[Movement] = (),
    prior_issues: Iterable[Movement] = (),
    from_date: date | None = None,
    config: StockCardConfig | None = None,
) -> OpeningBalance:
    """
    Compute the opening balance for a report window.

    Args:
        base_quantity: The item's recorded opening quantity.
        base_amount: The item's recorded opening amount.
        prior_receipts: Receipts that may precede the window.
        prior_issues: Issues that may precede the window.
        from_date: First day of the window.  ``None`` means no window:
            the base figures are returned, dated at the configured
            default opening date.

    Returns:
        OpeningBalance dated the day before ``from_date``.
    """
    config = config or DEFAULT_CONFIG
    quantity = to_decimal(base_quantity)
    amount = to_decimal(base_amount)

    if from_date is None:
        return OpeningBalance(
            quantity=quantity,
            amount=amount,
            as_of=config.default_opening_balance_date,
        )

    received_qty = ZERO
    received_amt = ZERO
    for receipt in prior_receipts:
        if receipt.date < from_date:
            received_qty += receipt.quantity
            received_amt += receipt.amount

    issued_qty = ZERO
    issued_amt = ZERO
    for issue in prior_issues:
        if issue.date < from_date:
            issued_qty += issue.quantity
            issued_amt += issue.amount

    quantity = quantity + received_qty - issued_qty
    amount = amount + received_amt - issued_amt
    if quantity < 0:
        logger.warning("opening_balance_negative_clamped", extra={
            "from_date": from_date.isoformat(),
            "computed_quantity": str(quantity),
        })
        quantity = ZERO

    logger.debug("opening_balance_rolled_forward", extra={
        "from_date": from_date.isoformat(),
        "received_quantity": str(received_qty),
        "issued_quantity": str(issued_qty),
        "opening_quantity": str(quantity),
        "opening_amount": str(amount),
    })
    return OpeningBalance(
        quantity=quantity,
        amount=amount,
        as_of=from_date - timedelta(days=1),
    )
