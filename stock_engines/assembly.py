"""
Module: stock_engines.assembly
Responsibility:
    Prepare the movement list the reconstructor consumes: parse the stock
    card preview payload, merge separately fetched receipt and issue
    records into one chronological list, collapse same-day issues of
    consumable items, and optionally verify date order at the boundary.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Merging is a stable sort by date; on the same date receipts precede
      issues.
    - Aggregation preserves total issued quantity and amount per day.

Failure modes:
    - InvalidMovementError from payload parsing.
    - MovementOrderError from ``ensure_chronological``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from stock_config.schema import DEFAULT_CONFIG, StockCardConfig
from stock_kernel.domain.movement import Movement, MovementType, OpeningState
from stock_kernel.exceptions import InvalidMovementError, MovementOrderError
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.assembly")


def parse_preview_payload(
    payload: Mapping[str, Any],
    config: StockCardConfig | None = None,
) -> tuple[OpeningState, tuple[Movement, ...]]:
    """
    Parse a stock card preview payload.

    Accepts either ``{"stock": {...}}`` or the bare stock object.  Movement
    order is preserved as delivered.  A payload without an opening date
    is dated at the configured default.

    Raises:
        InvalidMovementError: if the payload or any movement is malformed.
    """
    if not isinstance(payload, Mapping):
        raise InvalidMovementError("payload", payload, "expected an object")

    stock = payload.get("stock", payload)
    if not isinstance(stock, Mapping):
        raise InvalidMovementError("stock", stock, "expected an object")

    raw_movements = stock.get("movements") or []
    if not isinstance(raw_movements, list):
        raise InvalidMovementError("movements", raw_movements, "expected a list")

    config = config or DEFAULT_CONFIG
    opening = OpeningState.from_dict(
        stock, default_date=config.default_opening_balance_date
    )
    movements = tuple(Movement.from_dict(m) for m in raw_movements)
    logger.debug("preview_payload_parsed", extra={
        "nac_code": opening.nac_code,
        "movement_count": len(movements),
    })
    return opening, movements


def aggregate_daily_issues(issues: Iterable[Movement]) -> list[Movement]:
    """
    Collapse issues that share a date into one issue per day.

    Quantities and amounts are summed; the first non-empty reference and
    the first issue's equipment number are kept.  Days appear in order of
    first occurrence.
    """
    by_day: dict[date, Movement] = {}
    for issue in issues:
        existing = by_day.get(issue.date)
        if existing is None:
            by_day[issue.date] = issue
            continue
        by_day[issue.date] = Movement(
            date=existing.date,
            reference=existing.reference or issue.reference,
            type=MovementType.ISSUE,
            quantity=existing.quantity + issue.quantity,
            amount=existing.amount + issue.amount,
            equipment_number=existing.equipment_number,
        )
    return list(by_day.values())


def assemble_movements(
    receipts: Iterable[Movement],
    issues: Iterable[Movement],
    *,
    consumable: bool = False,
) -> tuple[Movement, ...]:
    """
    Merge receipt and issue records into one chronological list.

    Args:
        receipts: Receive movements.
        issues: Issue movements.
        consumable: Aggregate same-day issues into a single movement.

    Returns:
        Movements sorted ascending by date, receipts first within a day,
        original relative order kept otherwise.
    """
    receipt_list = list(receipts)
    issue_list = list(issues)
    for m in receipt_list:
        if m.type is not MovementType.RECEIVE:
            raise InvalidMovementError("type", m.type.value, "expected a receipt")
    for m in issue_list:
        if m.type is not MovementType.ISSUE:
            raise InvalidMovementError("type", m.type.value, "expected an issue")

    issue_count = len(issue_list)
    if consumable:
        issue_list = aggregate_daily_issues(issue_list)

    merged = sorted(receipt_list + issue_list, key=lambda m: m.date)
    logger.info("movements_assembled", extra={
        "receipt_count": len(receipt_list),
        "issue_count": issue_count,
        "aggregated_issue_count": len(issue_list),
        "consumable": consumable,
    })
    return tuple(merged)


def ensure_chronological(movements: Sequence[Movement]) -> None:
    """
    Verify movements are in ascending date order.

    Raises:
        MovementOrderError: at the first movement dated before its
            predecessor.
    """
    for index in range(1, len(movements)):
        previous = movements[index - 1].date
        current = movements[index].date
        if current < previous:
            logger.warning("movement_order_violation", extra={
                "index": index,
                "previous_date": previous.isoformat(),
                "movement_date": current.isoformat(),
            })
            raise MovementOrderError(index, previous, current)
