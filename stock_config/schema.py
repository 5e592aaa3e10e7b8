"""
StockCardConfig schema.

Defines the human-authored settings that govern stock card display and
reconstruction. YAML files are parsed into this type by the loader;
engines receive it explicitly and fall back to ``DEFAULT_CONFIG``.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date


@dataclass(frozen=True)
class StockCardConfig:
    """Stock card settings."""

    # Reference cleanup: suffix starting at the marker is display noise
    receipt_reference_marker: str = "T"
    issue_reference_marker: str = "Y"

    # Items whose category tag contains this are not equipment-tracked
    consumable_marker: str = "consumable"

    deferred_reference_placeholder: str = "Deferred Issue"
    brought_forward_reference: str = "B.F."

    # Opening date used when no report window start is given
    default_opening_balance_date: date = date(2025, 7, 17)

    display_decimal_places: int = 2
    display_date_format: str = "%Y/%m/%d"

    def __post_init__(self) -> None:
        for name in ("receipt_reference_marker", "issue_reference_marker"):
            marker = getattr(self, name)
            if not isinstance(marker, str) or len(marker) != 1:
                raise ValueError(f"{name} must be a single character, got {marker!r}")
        if not self.consumable_marker or not self.consumable_marker.strip():
            raise ValueError("consumable_marker cannot be empty")
        if not self.deferred_reference_placeholder:
            raise ValueError("deferred_reference_placeholder cannot be empty")
        if not isinstance(self.default_opening_balance_date, date):
            raise ValueError("default_opening_balance_date must be a date")
        if self.display_decimal_places < 0:
            raise ValueError("display_decimal_places cannot be negative")
        if not self.display_date_format:
            raise ValueError("display_date_format cannot be empty")

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))


DEFAULT_CONFIG = StockCardConfig()
