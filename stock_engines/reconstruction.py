"""
Module: stock_engines.reconstruction
Responsibility:
    Rebuild a stock card's running balance from an opening balance and a
    chronological list of receive/issue movements.  Issues that exceed the
    balance on hand are split: the available part is issued immediately
    and the remainder is deferred until later receipts replenish stock,
    first deferred first satisfied.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import stock_kernel/domain and stock_config.schema.

Invariants enforced:
    - Non-negativity: the running balance never drops below zero; an
      overdraft is expressed as deferred rows, never as an error.
    - Conservation: the quantities of all rows derived from one input
      issue sum to that issue's original quantity exactly.
    - FIFO: deferred remainders are satisfied in the order they arose.
    - Purity: input order is trusted and never re-sorted; every call
      builds fresh state.

Failure modes:
    - None for well-formed input.  Unsorted or negative input produces
      meaningless but non-crashing output; callers wanting a guarantee
      use ``stock_engines.assembly.ensure_chronological`` first.

Audit relevance:
    The stock card is the per-item audit ledger.  Split rows keep the
    originating issue's date, reference and equipment so every unit can
    be traced to the slip that consumed it.  Each invocation is traced
    via ``@traced_engine``.

Usage:
    from stock_engines.reconstruction import reconstruct_movements

    rows = reconstruct_movements(
        open_quantity=Decimal("0"),
        open_amount=Decimal("0"),
        movements=[
            Movement.issue(date(2025, 8, 1), "IS-1", 50),
            Movement.receipt(date(2025, 8, 2), "RRP-1", 30),
        ],
    )
"""

from __future__ import annotations

from collections import deque
from collections.abc import Sequence
from dataclasses import replace
from decimal import Decimal

from stock_config.schema import DEFAULT_CONFIG, StockCardConfig
from stock_kernel.domain.movement import (
    DeferredIssue,
    Movement,
    MovementType,
    OpeningState,
    ProcessedMovement,
    StockCard,
    is_consumable_category,
)
from stock_kernel.domain.values import ZERO, to_decimal
from stock_kernel.logging_config import get_logger
from stock_engines.tracer import traced_engine

logger = get_logger("engines.reconstruction")


class _ReconstructionState:
    """
    Mutable working state for a single reconstruction pass.

    Whenever the deferred queue is non-empty the balance is zero, so a new
    issue can never be satisfied ahead of an older deferred one.
    """

    def __init__(
        self,
        open_quantity: Decimal,
        open_amount: Decimal,
        suppress_equipment: bool,
        placeholder: str,
    ) -> None:
        self.balance = open_quantity
        self.amount_balance = open_amount
        self.deferred: deque[DeferredIssue] = deque()
        self.rows: list[ProcessedMovement] = []
        self.deferral_count = 0
        self._suppress_equipment = suppress_equipment
        self._placeholder = placeholder

    def _equipment(self, equipment_number: str | None) -> str | None:
        return "" if self._suppress_equipment else equipment_number

    def _defer(self, index: int, movement: Movement, quantity: Decimal) -> None:
        self.deferred.append(
            DeferredIssue(
                quantity=quantity,
                reference=movement.reference or self._placeholder,
                equipment=movement.equipment_number,
                original_date=movement.date,
                source_index=index,
            )
        )
        self.deferral_count += 1
        logger.debug("issue_deferred", extra={
            "source_index": index,
            "reference": movement.reference,
            "deferred_quantity": str(quantity),
            "queue_length": len(self.deferred),
        })

    def _emit_deferred(
        self,
        issue: DeferredIssue,
        quantity: Decimal,
        balance: Decimal,
        unsatisfied: bool = False,
    ) -> None:
        self.rows.append(
            ProcessedMovement(
                date=issue.original_date,
                reference=issue.reference,
                type=MovementType.ISSUE,
                quantity=quantity,
                amount=ZERO,
                balance_quantity=balance,
                balance_amount=ZERO,
                source_index=issue.source_index,
                equipment_number=self._equipment(issue.equipment),
                is_deferred=True,
                is_unsatisfied=unsatisfied,
            )
        )

    def apply_receipt(self, index: int, movement: Movement) -> None:
        self.balance += movement.quantity
        self.amount_balance += movement.amount
        self.rows.append(
            ProcessedMovement(
                date=movement.date,
                reference=movement.reference,
                type=MovementType.RECEIVE,
                quantity=movement.quantity,
                amount=movement.amount,
                balance_quantity=self.balance,
                balance_amount=self.amount_balance,
                source_index=index,
                equipment_number=self._equipment(movement.equipment_number),
            )
        )

        if self.deferred:
            self._satisfy_deferred()
            # Last row of this receipt's batch carries the final balance
            self.rows[-1] = replace(self.rows[-1], balance_quantity=self.balance)

    def _satisfy_deferred(self) -> None:
        still_owed: deque[DeferredIssue] = deque()
        while self.deferred:
            issue = self.deferred.popleft()
            if self.balance >= issue.quantity:
                self.balance -= issue.quantity
                self._emit_deferred(issue, issue.quantity, self.balance)
            elif self.balance > 0:
                satisfied = self.balance
                self.balance = ZERO
                self._emit_deferred(issue, satisfied, ZERO)
                still_owed.append(issue.reduced_by(satisfied))
            else:
                still_owed.append(issue)
                still_owed.extend(self.deferred)
                self.deferred.clear()
        self.deferred = still_owed

    def apply_issue(self, index: int, movement: Movement) -> None:
        if self.balance >= movement.quantity:
            self.balance -= movement.quantity
            self._emit_issue(index, movement, movement.quantity, self.balance)
        elif self.balance > 0:
            available = self.balance
            self.balance = ZERO
            self._emit_issue(index, movement, available, ZERO)
            self._defer(index, movement, movement.quantity - available)
        else:
            self._defer(index, movement, movement.quantity)

    def _emit_issue(
        self,
        index: int,
        movement: Movement,
        quantity: Decimal,
        balance: Decimal,
    ) -> None:
        self.rows.append(
            ProcessedMovement(
                date=movement.date,
                reference=movement.reference,
                type=MovementType.ISSUE,
                quantity=quantity,
                amount=movement.amount,
                balance_quantity=balance,
                balance_amount=ZERO,
                source_index=index,
                equipment_number=self._equipment(movement.equipment_number),
            )
        )

    def flush_outstanding(self) -> None:
        """Emit every remainder no receipt covered, in deferral order."""
        while self.deferred:
            issue = self.deferred.popleft()
            self.balance = ZERO
            self._emit_deferred(issue, issue.quantity, ZERO, unsatisfied=True)


@traced_engine(
    "stock_card_reconstruction",
    "1.0",
    fingerprint_fields=("open_quantity", "open_amount", "movements", "equipment_category"),
)
def reconstruct_movements(
    *,
    open_quantity: Decimal | int | str,
    open_amount: Decimal | int | str,
    movements: Sequence[Movement],
    equipment_category: str | None = "",
    config: StockCardConfig | None = None,
) -> tuple[ProcessedMovement, ...]:
    """
    Produce the balance-annotated, issue-split movement sequence.

    Args:
        open_quantity: Opening balance quantity (assumed >= 0).
        open_amount: Monetary value of the opening balance.
        movements: Movements already sorted ascending by date.
        equipment_category: The item's category tag; a consumable tag
            blanks every row's equipment number.
        config: Settings; defaults to ``DEFAULT_CONFIG``.

    Returns:
        Processed rows; at least one row per receipt and per satisfied
        portion of every issue, plus trailing rows for remainders no
        receipt covered.
    """
    config = config or DEFAULT_CONFIG
    suppress = is_consumable_category(equipment_category, config.consumable_marker)
    state = _ReconstructionState(
        open_quantity=to_decimal(open_quantity),
        open_amount=to_decimal(open_amount),
        suppress_equipment=suppress,
        placeholder=config.deferred_reference_placeholder,
    )

    for index, movement in enumerate(movements):
        if movement.type is MovementType.RECEIVE:
            state.apply_receipt(index, movement)
        else:
            state.apply_issue(index, movement)

    outstanding = len(state.deferred)
    state.flush_outstanding()

    logger.info("movements_reconstructed", extra={
        "input_count": len(movements),
        "row_count": len(state.rows),
        "deferral_count": state.deferral_count,
        "unsatisfied_count": outstanding,
        "closing_balance": str(state.balance),
        "equipment_suppressed": suppress,
    })
    return tuple(state.rows)


class MovementReconstructor:
    """
    Build complete stock cards from opening state and movements.

    Contract:
        Pure -- no I/O.  Holds only its configuration, so one instance can
        serve any number of items, concurrently.
    Guarantees:
        - ``reconstruct`` returns a StockCard whose rows satisfy the
          conservation, non-negativity and FIFO invariants.
    Non-goals:
        - Does not sort or validate movement order.
    """

    def __init__(self, config: StockCardConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG

    def reconstruct(
        self,
        opening: OpeningState,
        movements: Sequence[Movement],
    ) -> StockCard:
        """Reconstruct one item's stock card."""
        rows = reconstruct_movements(
            open_quantity=opening.open_quantity,
            open_amount=opening.open_amount,
            movements=movements,
            equipment_category=opening.equipment_number,
            config=self.config,
        )
        return StockCard(opening=opening, rows=rows)
