"""
Movement -- Stock card value objects.

Responsibility:
    Define the immutable inputs and outputs of stock card reconstruction:
    receive/issue movements, the per-item opening state, processed
    (balance-annotated) movements and the assembled stock card.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Parsing helpers accept the JSON shape produced by the backend stock
    card preview endpoint.

Invariants enforced:
    - All quantities and amounts are Decimal.
    - Movement quantity and amount are non-negative.
    - All value objects are frozen dataclasses.

Failure modes:
    - InvalidMovementError from ``from_dict`` when a record has an unknown
      type, a negative or non-numeric quantity, or an unparseable date.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from stock_kernel.domain.values import ZERO, to_date, to_decimal
from stock_kernel.exceptions import InvalidMovementError

CONSUMABLE_MARKER = "consumable"


class MovementType(str, Enum):
    """Stock movement direction."""

    RECEIVE = "receive"
    ISSUE = "issue"


def is_consumable_category(
    equipment_category: str | None,
    marker: str = CONSUMABLE_MARKER,
) -> bool:
    """True if the item's category tag marks it as a consumable."""
    if not equipment_category:
        return False
    return marker.lower() in equipment_category.lower()


def _parse_decimal(data: Mapping[str, Any], key: str) -> Decimal:
    try:
        value = to_decimal(data.get(key))
    except ValueError as e:
        raise InvalidMovementError(key, data.get(key), str(e)) from e
    return value


def _parse_date(data: Mapping[str, Any], key: str) -> date:
    try:
        return to_date(data.get(key))
    except ValueError as e:
        raise InvalidMovementError(key, data.get(key), str(e)) from e


@dataclass(frozen=True, slots=True)
class Movement:
    """
    A single dated receipt or issue against an item's stock card.

    ``quantity`` is the amount as originally recorded, before any splitting.
    ``equipment_number`` is only meaningful on issues.
    """

    date: date
    reference: str
    type: MovementType
    quantity: Decimal
    amount: Decimal = ZERO
    equipment_number: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.type, MovementType):
            object.__setattr__(self, "type", MovementType(self.type))
        if not isinstance(self.quantity, Decimal):
            object.__setattr__(self, "quantity", to_decimal(self.quantity))
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", to_decimal(self.amount))

    @property
    def is_receipt(self) -> bool:
        return self.type is MovementType.RECEIVE

    @property
    def is_issue(self) -> bool:
        return self.type is MovementType.ISSUE

    @classmethod
    def receipt(
        cls,
        movement_date: date,
        reference: str,
        quantity: Decimal | str | int,
        amount: Decimal | str | int = ZERO,
    ) -> Movement:
        """Factory for a receive movement."""
        return cls(
            date=movement_date,
            reference=reference,
            type=MovementType.RECEIVE,
            quantity=to_decimal(quantity),
            amount=to_decimal(amount),
        )

    @classmethod
    def issue(
        cls,
        movement_date: date,
        reference: str,
        quantity: Decimal | str | int,
        equipment_number: str | None = None,
        amount: Decimal | str | int = ZERO,
    ) -> Movement:
        """Factory for an issue movement."""
        return cls(
            date=movement_date,
            reference=reference,
            type=MovementType.ISSUE,
            quantity=to_decimal(quantity),
            amount=to_decimal(amount),
            equipment_number=equipment_number,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Movement:
        """
        Parse a movement record from the preview payload.

        Preconditions:
            ``data`` has ``date`` and ``type`` keys. Numeric fields may be
            numbers, numeric strings or null (treated as zero).

        Raises:
            InvalidMovementError: on a non-object record, unknown type,
                negative quantity/amount, or unparseable values.
        """
        if not isinstance(data, Mapping):
            raise InvalidMovementError("movement", data, "expected an object")

        raw_type = data.get("type")
        try:
            movement_type = MovementType(raw_type)
        except ValueError as e:
            raise InvalidMovementError(
                "type", raw_type, "expected 'receive' or 'issue'"
            ) from e

        quantity = _parse_decimal(data, "quantity")
        amount = _parse_decimal(data, "amount")
        if quantity < 0:
            raise InvalidMovementError("quantity", data.get("quantity"), "must not be negative")
        if amount < 0:
            raise InvalidMovementError("amount", data.get("amount"), "must not be negative")

        reference = data.get("reference")
        equipment = data.get("equipment_number")
        return cls(
            date=_parse_date(data, "date"),
            reference="" if reference is None else str(reference),
            type=movement_type,
            quantity=quantity,
            amount=amount,
            equipment_number=None if equipment is None else str(equipment),
        )


@dataclass(frozen=True, slots=True)
class OpeningState:
    """
    Opening balance and identity of one stock card item.

    Identity fields are carried through for display only. The
    ``equipment_number`` here is the item's category tag, not a
    per-issue equipment number.
    """

    open_quantity: Decimal
    open_amount: Decimal
    opening_balance_date: date
    nac_code: str = ""
    item_name: str = ""
    part_number: str = ""
    equipment_number: str = ""
    location: str = ""
    card_number: str = ""

    def is_consumable(self, marker: str = CONSUMABLE_MARKER) -> bool:
        """True when the category tag contains ``marker`` (case-insensitive)."""
        return is_consumable_category(self.equipment_number, marker)

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        default_date: date | None = None,
    ) -> OpeningState:
        """
        Parse the stock object of the preview payload (movements ignored).

        A missing opening date falls back to ``default_date`` when given.
        """
        opening_date = data.get("opening_balance_date", data.get("openingBalanceDate"))
        if opening_date is None and default_date is not None:
            opening_date = default_date
        try:
            parsed_date = to_date(opening_date)
        except ValueError as e:
            raise InvalidMovementError(
                "opening_balance_date", opening_date, str(e)
            ) from e

        return cls(
            open_quantity=_parse_decimal(data, "open_quantity"),
            open_amount=_parse_decimal(data, "open_amount"),
            opening_balance_date=parsed_date,
            nac_code=str(data.get("nac_code") or ""),
            item_name=str(data.get("item_name") or ""),
            part_number=str(data.get("part_number") or ""),
            equipment_number=str(data.get("equipment_number") or ""),
            location=str(data.get("location") or ""),
            card_number=str(data.get("card_number") or ""),
        )


@dataclass(frozen=True, slots=True)
class ProcessedMovement:
    """
    A movement annotated with the running balance after it is applied.

    One input issue may yield several processed rows when it had to be
    split across later receipts. ``source_index`` points back at the input
    movement; ``is_deferred`` marks rows emitted from the deferred queue and
    ``is_unsatisfied`` the trailing rows no receipt ever covered.
    """

    date: date
    reference: str
    type: MovementType
    quantity: Decimal
    amount: Decimal
    balance_quantity: Decimal
    balance_amount: Decimal
    source_index: int
    equipment_number: str | None = None
    is_deferred: bool = False
    is_unsatisfied: bool = False

    @property
    def is_receipt(self) -> bool:
        return self.type is MovementType.RECEIVE

    @property
    def is_issue(self) -> bool:
        return self.type is MovementType.ISSUE

    def to_dict(self) -> dict[str, Any]:
        """Serialise in the preview payload's key layout (Decimals as str)."""
        return {
            "date": self.date.isoformat(),
            "reference": self.reference,
            "type": self.type.value,
            "quantity": str(self.quantity),
            "amount": str(self.amount),
            "balance_quantity": str(self.balance_quantity),
            "balance_amount": str(self.balance_amount),
            "equipment_number": self.equipment_number,
        }


@dataclass(frozen=True, slots=True)
class DeferredIssue:
    """The unsatisfied remainder of an issue, awaiting a later receipt."""

    quantity: Decimal
    reference: str
    equipment: str | None
    original_date: date
    source_index: int

    def reduced_by(self, satisfied: Decimal) -> DeferredIssue:
        """Return the remainder after ``satisfied`` units were covered."""
        return DeferredIssue(
            quantity=self.quantity - satisfied,
            reference=self.reference,
            equipment=self.equipment,
            original_date=self.original_date,
            source_index=self.source_index,
        )


@dataclass(frozen=True, slots=True)
class StockCard:
    """A reconstructed stock card: opening state plus processed rows."""

    opening: OpeningState
    rows: tuple[ProcessedMovement, ...]

    @property
    def closing_balance(self) -> Decimal:
        """Balance after the last row, or the opening quantity if none."""
        if not self.rows:
            return self.opening.open_quantity
        return self.rows[-1].balance_quantity

    @property
    def total_received(self) -> Decimal:
        return sum((r.quantity for r in self.rows if r.is_receipt), ZERO)

    @property
    def total_issued(self) -> Decimal:
        return sum((r.quantity for r in self.rows if r.is_issue), ZERO)

    @property
    def outstanding_quantity(self) -> Decimal:
        """Quantity issued but never covered by a receipt in the window."""
        return sum((r.quantity for r in self.rows if r.is_unsatisfied), ZERO)

    def rows_for(self, source_index: int) -> tuple[ProcessedMovement, ...]:
        """All rows derived from one input movement."""
        return tuple(r for r in self.rows if r.source_index == source_index)
