"""Tests for the SQLite ledger store."""

from datetime import UTC, date, datetime

import aiosqlite
import pytest

from stockledger.core.entities import (
    Material,
    MovementItem,
    MovementTransaction,
    MovementType,
    Project,
    ProjectMaterial,
    ProjectStatus,
    StockAdjustment,
)
from stockledger.core.exceptions import DatabaseError
from stockledger.infrastructure.storage.sqlite import ConnectionPool, SQLiteLedgerStore


def _material(mid: str = "mat-1", **overrides) -> Material:
    data = {"id": mid, "name": "Copper cable", "unit": "m", "category": "Electrical", "stock": 100}
    data.update(overrides)
    return Material(**data)


def _project(pid: str = "prj-1", *lines: ProjectMaterial) -> Project:
    return Project(
        id=pid,
        description="B-100",
        client="ACME",
        start_date=date(2024, 4, 1),
        estimated_days=3,
        materials=list(lines)
        or [
            ProjectMaterial(
                material_id="mat-1",
                material_name="Copper cable",
                material_unit="m",
                budgeted_quantity=30,
                actual_quantity=25,
            )
        ],
    )


def _movement(mid: str = "mov-1", **overrides) -> MovementTransaction:
    data = {
        "id": mid,
        "movement_type": MovementType.OUTCOME,
        "movement_date": date(2024, 4, 2),
        "items": (
            MovementItem(material_id="mat-1", material_name="Copper cable", material_unit="m", quantity=10),
            MovementItem(material_id="mat-2", material_name="PVC pipe", material_unit="pcs", quantity=2),
        ),
        "budget_target": "B-100",
    }
    data.update(overrides)
    return MovementTransaction(**data)


class TestMaterials:
    async def test_round_trip(self, sqlite_store: SQLiteLedgerStore):
        material = _material(reserved=30)

        await sqlite_store.save_materials([material])
        loaded = await sqlite_store.load_materials()

        assert loaded == [material]

    async def test_upsert_updates_existing(self, sqlite_store: SQLiteLedgerStore):
        await sqlite_store.save_materials([_material()])
        await sqlite_store.save_materials([_material(stock=7, reserved=2)])

        loaded = await sqlite_store.load_materials()

        assert len(loaded) == 1
        assert (loaded[0].stock, loaded[0].reserved) == (7, 2)

    async def test_load_orders_by_category_then_name(self, sqlite_store: SQLiteLedgerStore):
        await sqlite_store.save_materials(
            [
                _material("mat-1", name="Pipe", category="Plumbing"),
                _material("mat-2", name="Tape", category="Electrical"),
                _material("mat-3", name="Cable", category="Electrical"),
            ]
        )
        assert [m.id for m in await sqlite_store.load_materials()] == ["mat-3", "mat-2", "mat-1"]

    async def test_delete(self, sqlite_store: SQLiteLedgerStore):
        await sqlite_store.save_materials([_material()])
        await sqlite_store.delete_material("mat-1")
        assert await sqlite_store.load_materials() == []

    async def test_negative_stock_violates_check(
        self, sqlite_store: SQLiteLedgerStore, pool: ConnectionPool
    ):
        await sqlite_store.save_materials([_material()])
        with pytest.raises(aiosqlite.IntegrityError):
            async with pool.transaction() as conn:
                await conn.execute("UPDATE materials SET stock = -1 WHERE id = 'mat-1'")


class TestProjects:
    async def test_round_trip(self, sqlite_store: SQLiteLedgerStore):
        project = _project()

        await sqlite_store.save_projects([project])
        loaded = await sqlite_store.load_projects()

        assert loaded == [project]

    async def test_lines_keep_budget_order(self, sqlite_store: SQLiteLedgerStore):
        lines = [
            ProjectMaterial(material_id=f"mat-{n}", budgeted_quantity=n) for n in (3, 1, 2)
        ]
        await sqlite_store.save_projects([_project("prj-1", *lines)])

        loaded = await sqlite_store.load_projects()

        assert [m.material_id for m in loaded[0].materials] == ["mat-3", "mat-1", "mat-2"]

    async def test_save_replaces_lines_and_status(self, sqlite_store: SQLiteLedgerStore):
        project = _project()
        await sqlite_store.save_projects([project])

        project.materials = [ProjectMaterial(material_id="mat-9", budgeted_quantity=4)]
        project.status = ProjectStatus.COMPLETED
        project.completion_date = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
        await sqlite_store.save_projects([project])

        loaded = (await sqlite_store.load_projects())[0]
        assert [m.material_id for m in loaded.materials] == ["mat-9"]
        assert loaded.status == ProjectStatus.COMPLETED
        assert loaded.completion_date == project.completion_date

    async def test_lines_may_reference_deleted_materials(self, sqlite_store: SQLiteLedgerStore):
        await sqlite_store.save_projects([_project()])
        assert (await sqlite_store.load_projects())[0].materials[0].material_id == "mat-1"


class TestMovements:
    async def test_round_trip_with_adjustments(self, sqlite_store: SQLiteLedgerStore):
        movement = _movement(
            adjustments=(StockAdjustment(material_id="mat-1", requested=10, applied=4),)
        )

        await sqlite_store.append_movement(movement)
        loaded = await sqlite_store.load_movements()

        assert loaded == [movement]
        assert loaded[0].adjustments[0].withheld == 6

    async def test_newest_first_with_limit(self, sqlite_store: SQLiteLedgerStore):
        for mid in ("mov-1", "mov-2", "mov-3"):
            await sqlite_store.append_movement(_movement(mid))

        assert [m.id for m in await sqlite_store.load_movements()] == ["mov-3", "mov-2", "mov-1"]
        assert [m.id for m in await sqlite_store.load_movements(limit=2)] == ["mov-3", "mov-2"]

    async def test_empty_history(self, sqlite_store: SQLiteLedgerStore):
        assert await sqlite_store.load_movements() == []

    async def test_movements_are_append_only(
        self, sqlite_store: SQLiteLedgerStore, pool: ConnectionPool
    ):
        await sqlite_store.append_movement(_movement())

        for statement in (
            "UPDATE movements SET budget_target = 'X'",
            "DELETE FROM movements",
            "UPDATE movement_items SET quantity = 1",
            "DELETE FROM movement_items",
        ):
            with pytest.raises(aiosqlite.IntegrityError, match="append-only"):
                async with pool.transaction() as conn:
                    await conn.execute(statement)

    async def test_duplicate_id_raises_database_error(self, sqlite_store: SQLiteLedgerStore):
        await sqlite_store.append_movement(_movement())
        with pytest.raises(DatabaseError):
            await sqlite_store.append_movement(_movement())


class TestTransaction:
    async def test_commits_all_writes(self, sqlite_store: SQLiteLedgerStore):
        async with sqlite_store.transaction():
            await sqlite_store.save_materials([_material()])
            await sqlite_store.save_projects([_project()])
            await sqlite_store.append_movement(_movement())

        assert len(await sqlite_store.load_materials()) == 1
        assert len(await sqlite_store.load_projects()) == 1
        assert len(await sqlite_store.load_movements()) == 1

    async def test_rolls_back_every_write_on_error(self, sqlite_store: SQLiteLedgerStore):
        await sqlite_store.save_materials([_material(stock=100)])

        with pytest.raises(RuntimeError):
            async with sqlite_store.transaction():
                await sqlite_store.save_materials([_material(stock=5)])
                await sqlite_store.append_movement(_movement())
                raise RuntimeError("boom")

        assert (await sqlite_store.load_materials())[0].stock == 100
        assert await sqlite_store.load_movements() == []

    async def test_failed_write_rolls_back_earlier_writes(self, sqlite_store: SQLiteLedgerStore):
        await sqlite_store.append_movement(_movement("mov-1"))

        with pytest.raises(DatabaseError):
            async with sqlite_store.transaction():
                await sqlite_store.save_materials([_material()])
                await sqlite_store.append_movement(_movement("mov-1"))

        assert await sqlite_store.load_materials() == []

    async def test_reads_inside_transaction_see_pending_writes(
        self, sqlite_store: SQLiteLedgerStore
    ):
        async with sqlite_store.transaction():
            await sqlite_store.save_materials([_material()])
            assert len(await sqlite_store.load_materials()) == 1

    async def test_nested_transaction_joins_outer(self, sqlite_store: SQLiteLedgerStore):
        with pytest.raises(RuntimeError):
            async with sqlite_store.transaction():
                async with sqlite_store.transaction():
                    await sqlite_store.save_materials([_material()])
                raise RuntimeError("boom")

        assert await sqlite_store.load_materials() == []
