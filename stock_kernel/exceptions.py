"""
Typed exception hierarchy for the stock kernel.

Every error carries a ``code`` class attribute (machine-readable, API-safe)
and stores its context as attributes so that it survives structured logging.

    StockCardError (base)
    |
    +-- MovementError
    |   +-- InvalidMovementError
    |   +-- MovementOrderError
    |
    +-- ConfigurationError

Category        | Code                 | When Raised
----------------|----------------------|------------------------------------------
Movement        | INVALID_MOVEMENT     | Payload record cannot be parsed
                | MOVEMENT_ORDER       | Movement dates decrease (opt-in check)
----------------|----------------------|------------------------------------------
Configuration   | CONFIGURATION_ERROR  | Unknown or invalid stock-card setting

The reconstruction engine itself raises none of these. Issuing more than is
on hand is not an error: the shortfall is deferred until a later receipt.
"""

from datetime import date
from typing import Any


class StockCardError(Exception):
    """
    Base exception for all stock kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STOCK_CARD_ERROR"


# Movement-related exceptions


class MovementError(StockCardError):
    """Base exception for movement-related errors."""

    code: str = "MOVEMENT_ERROR"


class InvalidMovementError(MovementError):
    """A movement record could not be parsed into a Movement."""

    code: str = "INVALID_MOVEMENT"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid movement field {field}={value!r}: {reason}")


class MovementOrderError(MovementError):
    """
    Movements are not in ascending date order.

    Only raised by the explicit boundary check; the reconstructor trusts its
    input order.
    """

    code: str = "MOVEMENT_ORDER"

    def __init__(self, index: int, previous_date: date, movement_date: date):
        self.index = index
        self.previous_date = previous_date
        self.movement_date = movement_date
        super().__init__(
            f"Movement {index} dated {movement_date.isoformat()} precedes "
            f"previous movement dated {previous_date.isoformat()}"
        )


# Configuration exceptions


class ConfigurationError(StockCardError):
    """Stock-card configuration contains unknown or invalid settings."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, errors: list[str]):
        self.source = source
        self.errors = errors
        super().__init__(
            f"Invalid stock card configuration in {source}: "
            + "; ".join(errors)
        )
