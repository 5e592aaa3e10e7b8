"""
Reference cleanup for stock card display.

Receipt references (RRP numbers) and issue slip numbers can carry a suffix
that is noise on a printed stock card.  The suffix starts at a fixed
marker character which differs between receipts and issues.  Cleanup is a
display concern only and never feeds balance computation.
"""

from __future__ import annotations

from stock_config.schema import DEFAULT_CONFIG, StockCardConfig
from stock_kernel.domain.movement import MovementType


def reference_marker(
    movement_type: MovementType,
    config: StockCardConfig | None = None,
) -> str:
    """The marker character that starts the discarded suffix."""
    config = config or DEFAULT_CONFIG
    if movement_type is MovementType.RECEIVE:
        return config.receipt_reference_marker
    return config.issue_reference_marker


def clean_reference(
    reference: str | None,
    movement_type: MovementType,
    config: StockCardConfig | None = None,
) -> str:
    """
    Truncate a reference at the first marker character for its type.

    Returns the reference unchanged when the marker is absent and ``""``
    for a missing reference.  Idempotent: the result never contains the
    marker.
    """
    if not reference:
        return ""
    text = str(reference)
    head, _, _ = text.partition(reference_marker(movement_type, config))
    return head
