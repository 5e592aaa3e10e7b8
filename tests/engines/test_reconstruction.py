"""
Tests for the stock card movement reconstructor.

Covers:
- Full satisfaction, partial deferral and unsatisfied-at-end paths
- FIFO satisfaction of several deferred issues
- Balance fix-up after a receipt batch
- Monetary balance on receipt rows
- Equipment suppression for consumable items
- Reference placeholder for deferred issues without a slip number
- MovementReconstructor / StockCard summary properties
- Structured log output
"""

from decimal import Decimal

import pytest

from stock_config.schema import StockCardConfig
from stock_engines.reconstruction import MovementReconstructor, reconstruct_movements
from stock_kernel.domain.movement import Movement, MovementType
from tests.conftest import day, issue, receive


def _run(open_quantity, movements, open_amount="0", category=""):
    return reconstruct_movements(
        open_quantity=Decimal(str(open_quantity)),
        open_amount=Decimal(str(open_amount)),
        movements=movements,
        equipment_category=category,
    )


def _summary(rows):
    return [(r.type.value, r.quantity, r.balance_quantity) for r in rows]


class TestSatisfiedIssues:
    """Issues covered by the balance on hand."""

    def test_full_satisfaction_after_zero_receipt(self):
        rows = _run(100, [receive(0, 0), issue(1, 40)])

        assert _summary(rows) == [
            ("receive", Decimal("0"), Decimal("100")),
            ("issue", Decimal("40"), Decimal("60")),
        ]
        assert not rows[1].is_deferred

    def test_issue_of_entire_balance(self):
        rows = _run(25, [issue(0, 25)])

        assert _summary(rows) == [("issue", Decimal("25"), Decimal("0"))]

    def test_receipts_accumulate(self):
        rows = _run(5, [receive(0, 10), receive(1, "2.5")])

        assert [r.balance_quantity for r in rows] == [Decimal("15"), Decimal("17.5")]

    def test_empty_movement_list(self):
        assert _run(10, []) == ()


class TestDeferral:
    """Issues exceeding the balance on hand."""

    def test_partial_deferral_path(self):
        """0 on hand; issue 50; receive 30; receive 25 -> closing 5."""
        movements = [issue(0, 50, "IS-50"), receive(1, 30), receive(2, 25)]
        rows = _run(0, movements)

        assert _summary(rows) == [
            ("receive", Decimal("30"), Decimal("30")),
            ("issue", Decimal("30"), Decimal("0")),
            ("receive", Decimal("25"), Decimal("25")),
            ("issue", Decimal("20"), Decimal("5")),
        ]
        # Deferred rows keep the originating issue's identity and date
        for row in (rows[1], rows[3]):
            assert row.is_deferred
            assert row.reference == "IS-50"
            assert row.date == day(0)
            assert row.source_index == 0
        assert not any(r.is_unsatisfied for r in rows)

    def test_zero_receipt_leaves_deferred_issue_queued(self):
        rows = _run(0, [issue(0, 10), receive(1, 0)])

        assert _summary(rows) == [
            ("receive", Decimal("0"), Decimal("0")),
            ("issue", Decimal("10"), Decimal("0")),
        ]
        assert rows[1].is_unsatisfied

    def test_unsatisfied_at_end_path(self):
        rows = _run(10, [issue(0, 30, "IS-30")])

        assert _summary(rows) == [
            ("issue", Decimal("10"), Decimal("0")),
            ("issue", Decimal("20"), Decimal("0")),
        ]
        assert rows[0].reference == rows[1].reference == "IS-30"
        assert rows[0].date == rows[1].date == day(0)
        assert not rows[0].is_deferred
        assert rows[1].is_deferred and rows[1].is_unsatisfied

    def test_fully_deferred_issue_emits_nothing_until_receipt(self):
        rows = _run(0, [issue(0, 5), receive(1, 8)])

        assert _summary(rows) == [
            ("receive", Decimal("8"), Decimal("8")),
            ("issue", Decimal("5"), Decimal("3")),
        ]

    def test_deferred_issues_satisfied_first_in_first_out(self):
        movements = [
            issue(0, 10, "IS-A"),
            issue(1, 5, "IS-B"),
            receive(2, 12),
            receive(3, 10),
        ]
        rows = _run(0, movements)

        assert [(r.reference, r.quantity, r.balance_quantity) for r in rows] == [
            ("RRP-2", Decimal("12"), Decimal("12")),
            ("IS-A", Decimal("10"), Decimal("2")),
            ("IS-B", Decimal("2"), Decimal("0")),
            ("RRP-3", Decimal("10"), Decimal("10")),
            ("IS-B", Decimal("3"), Decimal("7")),
        ]

    def test_queue_untouched_after_partial_satisfaction(self):
        """Later deferred issues keep their order behind a partly covered one."""
        movements = [
            issue(0, 10, "IS-A"),
            issue(1, 4, "IS-B"),
            receive(2, 6),
        ]
        rows = _run(0, movements)

        assert [(r.reference, r.quantity, r.is_unsatisfied) for r in rows] == [
            ("RRP-2", Decimal("6"), False),
            ("IS-A", Decimal("6"), False),
            ("IS-A", Decimal("4"), True),
            ("IS-B", Decimal("4"), True),
        ]

    def test_new_issue_waits_behind_deferred_queue(self):
        movements = [issue(0, 5, "IS-OLD"), issue(1, 3, "IS-NEW"), receive(2, 5)]
        rows = _run(0, movements)

        assert [(r.reference, r.quantity) for r in rows] == [
            ("RRP-2", Decimal("5")),
            ("IS-OLD", Decimal("5")),
            ("IS-NEW", Decimal("3")),
        ]
        assert rows[-1].is_unsatisfied

    def test_deferred_rows_carry_no_amount(self):
        movements = [issue(0, 4), receive(1, 4, amount="80")]
        rows = _run(0, movements)

        assert rows[1].amount == Decimal("0")
        assert rows[1].balance_amount == Decimal("0")

    def test_missing_reference_uses_placeholder(self):
        unreferenced = Movement(
            date=day(0), reference="", type=MovementType.ISSUE, quantity=Decimal("3"),
        )
        rows = _run(0, [unreferenced])

        assert rows[0].reference == "Deferred Issue"

    def test_placeholder_is_configurable(self):
        config = StockCardConfig(deferred_reference_placeholder="PENDING")
        rows = reconstruct_movements(
            open_quantity=Decimal("0"),
            open_amount=Decimal("0"),
            movements=[Movement(
                date=day(0), reference="", type=MovementType.ISSUE, quantity=Decimal("1"),
            )],
            config=config,
        )

        assert rows[0].reference == "PENDING"


class TestAmounts:
    """Monetary running balance."""

    def test_receipt_rows_accumulate_amount(self):
        movements = [receive(0, 10, amount="100"), issue(1, 4), receive(2, 1, amount="12.50")]
        rows = _run(0, movements, open_amount="50")

        assert rows[0].balance_amount == Decimal("150")
        assert rows[1].balance_amount == Decimal("0")
        assert rows[2].balance_amount == Decimal("162.50")

    def test_direct_issue_keeps_recorded_amount(self):
        movements = [Movement.issue(day(0), "IS-AMT", 3, equipment_number="GSE-1", amount="33")]
        rows = _run(10, movements)

        assert rows[0].amount == Decimal("33")


class TestEquipmentSuppression:
    """Consumable items are not equipment-tracked."""

    @pytest.mark.parametrize("category", ["Consumable", "CONSUMABLES", "misc consumable items"])
    def test_consumable_blanks_all_equipment(self, category):
        movements = [issue(0, 5, equipment="GSE-9"), receive(1, 3), issue(2, 1, equipment="GSE-4")]
        rows = _run(2, movements, category=category)

        assert rows
        assert all(r.equipment_number == "" for r in rows)

    def test_equipment_kept_for_tracked_items(self):
        movements = [issue(0, 5, equipment="GSE-9"), receive(1, 10)]
        rows = _run(2, movements, category="GSE-101")

        issue_rows = [r for r in rows if r.is_issue]
        assert [r.equipment_number for r in issue_rows] == ["GSE-9", "GSE-9"]

    def test_custom_consumable_marker(self):
        config = StockCardConfig(consumable_marker="expendable")
        rows = reconstruct_movements(
            open_quantity=Decimal("5"),
            open_amount=Decimal("0"),
            movements=[issue(0, 1, equipment="GSE-1")],
            equipment_category="Expendable stores",
            config=config,
        )

        assert rows[0].equipment_number == ""


class TestMovementReconstructor:
    """Object form returning a StockCard."""

    def test_reconstruct_returns_stock_card(self, opening_factory):
        opening = opening_factory(quantity="10", amount="200")
        card = MovementReconstructor().reconstruct(
            opening, [issue(0, 30), receive(1, 5), receive(2, 50)]
        )

        assert card.opening is opening
        assert card.closing_balance == Decimal("35")
        assert card.total_received == Decimal("55")
        assert card.total_issued == Decimal("30")
        assert card.outstanding_quantity == Decimal("0")
        assert sum(r.quantity for r in card.rows_for(0)) == Decimal("30")

    def test_outstanding_quantity(self, opening_factory):
        card = MovementReconstructor().reconstruct(
            opening_factory(quantity="0"), [issue(0, 7), receive(1, 2)]
        )

        assert card.outstanding_quantity == Decimal("5")
        assert card.closing_balance == Decimal("0")

    def test_closing_balance_without_rows(self, opening_factory):
        card = MovementReconstructor().reconstruct(opening_factory(quantity="12"), [])

        assert card.closing_balance == Decimal("12")

    def test_consumable_category_from_opening_state(self, opening_factory):
        card = MovementReconstructor().reconstruct(
            opening_factory(quantity="3", category="Consumable"),
            [issue(0, 1, equipment="GSE-1")],
        )

        assert card.rows[0].equipment_number == ""


class TestLogging:
    """Structured log records."""

    def test_reconstruction_logs_summary_and_trace(self, captured_logs):
        _run(0, [issue(0, 5), receive(1, 3)])

        logs = captured_logs()
        summary = next(r for r in logs if r["message"] == "movements_reconstructed")
        assert summary["input_count"] == 2
        assert summary["row_count"] == 3
        assert summary["deferral_count"] == 1
        assert summary["unsatisfied_count"] == 1
        assert summary["closing_balance"] == "0"

        trace = next(r for r in logs if r["message"] == "STOCK_ENGINE_TRACE")
        assert trace["engine_name"] == "stock_card_reconstruction"
        assert len(trace["input_fingerprint"]) == 16

    def test_deferral_logged_at_debug(self, captured_logs):
        _run(0, [issue(0, 5, "IS-DBG")])

        deferred = [r for r in captured_logs() if r["message"] == "issue_deferred"]
        assert len(deferred) == 1
        assert deferred[0]["reference"] == "IS-DBG"
        assert deferred[0]["deferred_quantity"] == "5"
