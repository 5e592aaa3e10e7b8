#!/usr/bin/env python3
"""
Preview a stock card from a JSON payload.

Reads the payload returned by the stock card preview endpoint
(``{"stock": {...}}`` or the bare stock object), reconstructs the running
balance with deferred issue splitting, and prints the two-sided ledger.

Usage:
    python3 scripts/preview_stock_card.py payload.json
    python3 scripts/preview_stock_card.py payload.json --csv card.csv
    python3 scripts/preview_stock_card.py payload.json --validate-order
    python3 scripts/preview_stock_card.py payload.json --config settings.yaml
"""

import argparse
import json
import sys
from pathlib import Path

import yaml

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from stock_config import StockCardConfig, get_active_config  # noqa: E402
from stock_engines import (  # noqa: E402
    LEDGER_HEADER,
    LedgerLine,
    MovementReconstructor,
    build_ledger,
    ensure_chronological,
    parse_preview_payload,
    write_ledger_csv,
)
from stock_kernel.exceptions import StockCardError  # noqa: E402
from stock_kernel.logging_config import LogContext, configure_logging  # noqa: E402


def render_table(lines: list[LedgerLine], config: StockCardConfig) -> str:
    """Render ledger lines as a fixed-width text table."""
    rows = [LEDGER_HEADER] + [line.as_display(config) for line in lines]
    widths = [max(len(row[i]) for row in rows) for i in range(len(LEDGER_HEADER))]
    out = []
    for n, row in enumerate(rows):
        out.append("  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip())
        if n == 0:
            out.append("  ".join("-" * w for w in widths))
    return "\n".join(out)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Stock card preview")
    parser.add_argument("payload", type=Path, help="Preview payload JSON file")
    parser.add_argument("--config", type=Path, default=None,
                        help="Stock card settings YAML (default: stock_config/sets/default.yaml)")
    parser.add_argument("--csv", type=Path, default=None, dest="csv_path",
                        help="Write the ledger as CSV instead of printing it")
    parser.add_argument("--validate-order", action="store_true",
                        help="Reject payloads whose movements are not date-sorted")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level, stream=sys.stderr)

    try:
        config = get_active_config(args.config)
        payload = json.loads(args.payload.read_text())
        opening, movements = parse_preview_payload(payload, config)
        with LogContext.bind(nac_code=opening.nac_code or None):
            if args.validate_order:
                ensure_chronological(movements)
            card = MovementReconstructor(config).reconstruct(opening, movements)
            lines = list(build_ledger(card, config))

        if args.csv_path is not None:
            with open(args.csv_path, "w", newline="") as f:
                count = write_ledger_csv(lines, f, config)
    except (OSError, json.JSONDecodeError, yaml.YAMLError, StockCardError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    if args.csv_path is not None:
        print(f"  Wrote {count} lines to {args.csv_path}")
    else:
        title = " ".join(p for p in (opening.nac_code, opening.item_name) if p)
        if title:
            print(f"  {title}")
            print()
        print(render_table(lines, config))
        if not card.rows:
            print("  No movement records found.")

    print()
    print(f"  Closing balance:     {card.closing_balance}")
    print(f"  Outstanding issues:  {card.outstanding_quantity}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
