"""Unit tests for the movement ledger."""

from datetime import date

import pytest

from stockledger.core.entities import MovementType
from stockledger.core.exceptions import (
    DuplicateLineError,
    InsufficientAvailabilityError,
    InvalidQuantityError,
    MaterialNotFoundError,
    ValidationError,
)
from stockledger.core.services import LedgerState, MovementLedger, QuantityLine


@pytest.fixture
def movements() -> MovementLedger:
    return MovementLedger()


@pytest.fixture
def reserved_state(state: LedgerState) -> LedgerState:
    """Cable: stock 75, reserved 50 (available 25)."""
    state.materials["mat-cable"].stock = 75
    state.materials["mat-cable"].reserved = 50
    return state


class TestRecordIncome:
    """Tests for record_income()."""

    def test_adds_stock(self, movements: MovementLedger, state: LedgerState):
        tx, change = movements.record_income(
            state,
            [QuantityLine("mat-cable", 20), QuantityLine("mat-pipe", 5)],
            movement_date=date(2024, 2, 1),
        )

        assert state.materials["mat-cable"].stock == 120
        assert state.materials["mat-pipe"].stock == 45
        assert state.materials["mat-cable"].reserved == 0
        assert tx.movement_type == MovementType.INCOME
        assert tx.movement_date == date(2024, 2, 1)
        assert tx.budget_target is None
        assert [(i.material_id, i.quantity) for i in tx.items] == [
            ("mat-cable", 20),
            ("mat-pipe", 5),
        ]
        assert tx.items[0].material_name == "Copper cable"
        assert tx.items[0].material_unit == "m"
        assert change.movement is tx
        assert change.materials == {"mat-cable", "mat-pipe"}

    def test_defaults_to_today(self, movements: MovementLedger, state: LedgerState):
        tx, _ = movements.record_income(state, [QuantityLine("mat-cable", 1)])
        assert tx.movement_date == date.today()

    def test_empty_items_rejected(self, movements: MovementLedger, state: LedgerState):
        with pytest.raises(ValidationError):
            movements.record_income(state, [])

    def test_zero_quantity_rejected(self, movements: MovementLedger, state: LedgerState):
        with pytest.raises(InvalidQuantityError):
            movements.record_income(state, [QuantityLine("mat-cable", 0)])

    def test_duplicate_material_rejected(self, movements: MovementLedger, state: LedgerState):
        with pytest.raises(DuplicateLineError):
            movements.record_income(
                state, [QuantityLine("mat-cable", 1), QuantityLine("mat-cable", 2)]
            )
        assert state.materials["mat-cable"].stock == 100

    def test_unknown_material_rejected_without_partial_apply(
        self, movements: MovementLedger, state: LedgerState
    ):
        with pytest.raises(MaterialNotFoundError):
            movements.record_income(
                state, [QuantityLine("mat-cable", 5), QuantityLine("mat-missing", 1)]
            )
        assert state.materials["mat-cable"].stock == 100


class TestRecordOutcome:
    """Tests for record_outcome()."""

    def test_scenario_c(self, movements: MovementLedger, reserved_state: LedgerState):
        with pytest.raises(InsufficientAvailabilityError) as exc_info:
            movements.record_outcome(reserved_state, [QuantityLine("mat-cable", 40)])
        assert exc_info.value.shortfall == 15
        assert reserved_state.materials["mat-cable"].stock == 75

        tx, _ = movements.record_outcome(
            reserved_state, [QuantityLine("mat-cable", 20)], budget_target=" B-7 "
        )
        assert reserved_state.materials["mat-cable"].stock == 55
        assert tx.movement_type == MovementType.OUTCOME
        assert tx.budget_target == "B-7"
        assert not tx.was_clamped

    def test_exactly_available_is_accepted(
        self, movements: MovementLedger, reserved_state: LedgerState
    ):
        movements.record_outcome(reserved_state, [QuantityLine("mat-cable", 25)])
        assert reserved_state.materials["mat-cable"].stock == 50

    def test_rejection_is_atomic_across_items(
        self, movements: MovementLedger, reserved_state: LedgerState
    ):
        with pytest.raises(InsufficientAvailabilityError):
            movements.record_outcome(
                reserved_state,
                [QuantityLine("mat-pipe", 10), QuantityLine("mat-cable", 30)],
            )
        assert reserved_state.materials["mat-pipe"].stock == 40

    def test_scenario_d_clamps_at_reserved(
        self, movements: MovementLedger, reserved_state: LedgerState
    ):
        reserved_state.materials["mat-cable"].stock = 55

        tx, _ = movements.record_outcome(
            reserved_state, [QuantityLine("mat-cable", 10)], allow_clamp=True
        )

        assert reserved_state.materials["mat-cable"].stock == 50
        assert tx.items[0].quantity == 10
        assert tx.was_clamped
        adjustment = tx.adjustments[0]
        assert (adjustment.requested, adjustment.applied, adjustment.withheld) == (10, 5, 5)

    def test_clamp_never_raises_stock(self, movements: MovementLedger, reserved_state: LedgerState):
        reserved_state.materials["mat-cable"].stock = 40  # drifted below reserved

        tx, _ = movements.record_outcome(
            reserved_state, [QuantityLine("mat-cable", 5)], allow_clamp=True
        )

        assert reserved_state.materials["mat-cable"].stock == 40
        assert tx.adjustments[0].applied == 0

    def test_clamp_without_shortfall_records_no_adjustment(
        self, movements: MovementLedger, reserved_state: LedgerState
    ):
        tx, _ = movements.record_outcome(
            reserved_state, [QuantityLine("mat-cable", 5)], allow_clamp=True
        )
        assert reserved_state.materials["mat-cable"].stock == 70
        assert tx.adjustments == ()

    def test_blank_budget_target_is_dropped(self, movements: MovementLedger, state: LedgerState):
        tx, _ = movements.record_outcome(state, [QuantityLine("mat-cable", 1)], budget_target="  ")
        assert tx.budget_target is None
