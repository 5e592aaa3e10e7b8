"""Stock kernel domain: pure value objects, zero I/O."""

from stock_kernel.domain.movement import (
    CONSUMABLE_MARKER,
    Movement,
    MovementType,
    OpeningState,
    ProcessedMovement,
    StockCard,
    is_consumable_category,
)
from stock_kernel.domain.values import ZERO, to_date, to_decimal

__all__ = [
    "CONSUMABLE_MARKER",
    "Movement",
    "MovementType",
    "OpeningState",
    "ProcessedMovement",
    "StockCard",
    "ZERO",
    "is_consumable_category",
    "to_date",
    "to_decimal",
]
