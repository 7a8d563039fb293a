"""End-to-end reservation scenarios against the inventory ledger."""

import pytest

from stockledger.application.ledger import InventoryLedger
from stockledger.core.entities import Material, ProjectStatus
from stockledger.core.exceptions import (
    HasReservationsError,
    InsufficientAvailabilityError,
)
from stockledger.core.services import QuantityLine
from stockledger.infrastructure.storage.memory import MemoryLedgerStore


def _availability(ledger: InventoryLedger, material_id: str) -> tuple[int, int, int]:
    m = ledger.get_material(material_id)
    return m.stock, m.reserved, m.available


def _assert_reserved_matches_pending(ledger: InventoryLedger) -> None:
    expected: dict[str, int] = {}
    for project in ledger.list_projects(ProjectStatus.PENDING):
        for line in project.materials:
            expected[line.material_id] = expected.get(line.material_id, 0) + line.budgeted_quantity
    for material in ledger.list_materials():
        assert material.reserved == expected.get(material.id, 0)
        assert material.stock >= 0


class TestReservationScenarios:
    """Scenarios A through E run in sequence on one material."""

    @pytest.fixture
    async def strict_ledger(self):
        ledger = InventoryLedger(MemoryLedgerStore(), allow_outcome_clamp=False)
        await ledger.open()
        yield ledger
        await ledger.close()

    async def test_full_sequence(self, strict_ledger: InventoryLedger):
        ledger = strict_ledger
        m = await ledger.add_material("Copper cable", "m", "Electrical", 100)
        assert _availability(ledger, m.id) == (100, 0, 100)

        # A: two reservations, then an oversubscription
        p1 = await ledger.create_project("P1", "ACME", [QuantityLine(m.id, 30)])
        assert _availability(ledger, m.id) == (100, 30, 70)
        p2 = await ledger.create_project("P2", "ACME", [QuantityLine(m.id, 50)])
        assert _availability(ledger, m.id) == (100, 80, 20)

        with pytest.raises(InsufficientAvailabilityError) as exc_info:
            await ledger.add_budget_line(p2.id, m.id, 30)
        assert exc_info.value.shortfall == 10

        p3 = await ledger.create_project("P3", "ACME", [QuantityLine(m.id, 20)])
        await ledger.remove_budget_line(p3.id, m.id)
        _assert_reserved_matches_pending(ledger)

        # B: settle P1 below its budget
        await ledger.complete_project(p1.id, [QuantityLine(m.id, 25)])
        assert _availability(ledger, m.id) == (75, 50, 25)

        # C: outcome above availability rejected, within it accepted
        with pytest.raises(InsufficientAvailabilityError):
            await ledger.record_outcome([QuantityLine(m.id, 40)])
        await ledger.record_outcome([QuantityLine(m.id, 20)])
        assert _availability(ledger, m.id) == (55, 50, 5)

        # E: reserved material cannot be deleted
        with pytest.raises(HasReservationsError):
            await ledger.remove_material(m.id)

        _assert_reserved_matches_pending(ledger)
        assert ledger.get_project(p2.id).status == ProjectStatus.PENDING

    async def test_scenario_d_with_clamping(self):
        ledger = InventoryLedger(MemoryLedgerStore(), allow_outcome_clamp=True)
        await ledger.open()
        m = await ledger.add_material("Copper cable", "m", stock=55)
        await ledger.create_project("P2", "ACME", [QuantityLine(m.id, 50)])

        movement = await ledger.record_outcome([QuantityLine(m.id, 10)])

        assert _availability(ledger, m.id) == (50, 50, 0)
        assert movement.adjustments[0].withheld == 5

    async def test_boundary_budget_equal_to_availability(self, ledger: InventoryLedger):
        m = await ledger.add_material("Copper cable", "m", stock=40)
        await ledger.create_project("P1", "ACME", [QuantityLine(m.id, 15)])

        await ledger.create_project("P2", "ACME", [QuantityLine(m.id, 25)])

        assert _availability(ledger, m.id) == (40, 40, 0)

    async def test_round_trip_restores_reserved(self, ledger: InventoryLedger):
        a = await ledger.add_material("A", "u", stock=10)
        b = await ledger.add_material("B", "u", stock=10)
        await ledger.create_project("P0", "ACME", [QuantityLine(a.id, 3)])
        before = {m.id: m.reserved for m in ledger.list_materials()}

        project = await ledger.create_project(
            "P1", "ACME", [QuantityLine(a.id, 5), QuantityLine(b.id, 7)]
        )
        for line in project.materials:
            await ledger.remove_budget_line(project.id, line.material_id)

        assert {m.id: m.reserved for m in ledger.list_materials()} == before

    async def test_reservations_survive_reload(self):
        store = MemoryLedgerStore()
        ledger = InventoryLedger(store)
        await ledger.open()
        m = await ledger.add_material("Cable", "m", stock=100)
        p = await ledger.create_project("P1", "ACME", [QuantityLine(m.id, 30)])
        await ledger.create_project("P2", "ACME", [QuantityLine(m.id, 20)])
        await ledger.complete_project(p.id, [QuantityLine(m.id, 30)])

        reopened = InventoryLedger(store)
        drifts = await reopened.open()

        assert drifts == []
        assert _availability(reopened, m.id) == (70, 20, 50)

    async def test_drifted_store_is_reconciled_on_open(self):
        store = MemoryLedgerStore(
            materials=[Material(id="mat-1", name="Cable", unit="m", stock=10, reserved=99)]
        )
        ledger = InventoryLedger(store)

        await ledger.open()

        _assert_reserved_matches_pending(ledger)
        await ledger.remove_material("mat-1")
