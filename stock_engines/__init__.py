"""
Stock Engines - pure calculation layer for stock cards.

Every engine here is a pure function or stateless class: no I/O, no clock,
no database.  Inputs arrive as stock_kernel domain objects and settings
arrive as a ``StockCardConfig``.

Engines:
    reconstruction   Running balance with deferred (FIFO) issue splitting
    references       Display cleanup of receipt/issue references
    assembly         Payload parsing, merging, consumable aggregation
    opening_balance  Opening balance roll-forward to a report window
    ledger           Two-sided stock card line projection and CSV output
"""

from stock_kernel.logging_config import get_logger

logger = get_logger("engines")

from stock_engines.assembly import (
    aggregate_daily_issues,
    assemble_movements,
    ensure_chronological,
    parse_preview_payload,
)
from stock_engines.ledger import (
    LEDGER_HEADER,
    LedgerLine,
    build_ledger,
    write_ledger_csv,
)
from stock_engines.opening_balance import OpeningBalance, roll_forward_opening
from stock_engines.reconstruction import MovementReconstructor, reconstruct_movements
from stock_engines.references import clean_reference, reference_marker
from stock_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "LEDGER_HEADER",
    "LedgerLine",
    "MovementReconstructor",
    "OpeningBalance",
    "aggregate_daily_issues",
    "assemble_movements",
    "build_ledger",
    "clean_reference",
    "compute_input_fingerprint",
    "ensure_chronological",
    "parse_preview_payload",
    "reconstruct_movements",
    "reference_marker",
    "roll_forward_opening",
    "traced_engine",
    "write_ledger_csv",
]
