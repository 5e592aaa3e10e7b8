"""
Pytest fixtures for the stock card test suite.

Provides:
- Structured logging configured for the whole session
- LogContext isolation between tests
- A ``captured_logs`` fixture returning parsed JSON log records
- Movement builders for compact test scenarios
"""

import json
import logging
from datetime import date, timedelta
from decimal import Decimal
from io import StringIO

import pytest

from stock_kernel.domain.movement import Movement, OpeningState
from stock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

BASE_DATE = date(2025, 8, 1)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture stock_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            reconstruct_movements(...)
            logs = captured_logs()
            assert any(r["message"] == "movements_reconstructed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("stock_kernel")
    previous_level = root.level
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Movement builders
# =============================================================================


def day(n: int) -> date:
    """The n-th day after BASE_DATE."""
    return BASE_DATE + timedelta(days=n)


def receive(n: int, quantity, reference: str = "", amount="0") -> Movement:
    return Movement.receipt(day(n), reference or f"RRP-{n}", quantity, amount)


def issue(n: int, quantity, reference: str = "", equipment: str | None = None) -> Movement:
    return Movement.issue(day(n), reference or f"IS-{n}", quantity, equipment)


@pytest.fixture
def opening_factory():
    """Build an OpeningState with sensible identity defaults."""

    def _make(quantity="0", amount="0", category: str = "GSE-101") -> OpeningState:
        return OpeningState(
            open_quantity=Decimal(str(quantity)),
            open_amount=Decimal(str(amount)),
            opening_balance_date=BASE_DATE - timedelta(days=1),
            nac_code="GT 01234",
            item_name="HYDRAULIC FILTER",
            part_number="HF-2231",
            equipment_number=category,
            location="STORE A",
            card_number="SC-77",
        )

    return _make
