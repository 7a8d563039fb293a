"""SQLite implementation of ledger storage."""

import json
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime

import aiosqlite

from stockledger.config import get_logger
from stockledger.core.entities.material import Material
from stockledger.core.entities.movement import (
    MovementItem,
    MovementTransaction,
    MovementType,
    StockAdjustment,
)
from stockledger.core.entities.project import Project, ProjectMaterial, ProjectStatus
from stockledger.core.exceptions import DatabaseError
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool

logger = get_logger(__name__)


class SQLiteLedgerStore(ILedgerStore):
    """
    SQLite storage for materials, projects and movements.

    Writes made inside ``transaction()`` join the pool's open write
    transaction and are committed together. Writes made outside it each run
    in a transaction of their own.
    """

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Group writes into one commit; nested blocks join the outer one."""
        async with self._writer("transaction"):
            yield

    async def close(self) -> None:
        """Close the connection pool, if one was opened."""
        if self._pool is not None:
            await self._pool.close()

    @asynccontextmanager
    async def _writer(self, operation: str) -> AsyncIterator[aiosqlite.Connection]:
        pool = await self._get_pool()
        try:
            async with pool.transaction() as conn:
                yield conn
        except aiosqlite.Error as e:
            logger.error("ledger_write_failed", operation=operation, error=str(e))
            raise DatabaseError(operation, str(e)) from e

    @asynccontextmanager
    async def _reader(self) -> AsyncIterator[aiosqlite.Connection]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            yield conn

    # Materials

    async def load_materials(self) -> list[Material]:
        """Load every material."""
        async with self._reader() as conn:
            cursor = await conn.execute("SELECT * FROM materials ORDER BY category, name")
            rows = await cursor.fetchall()
            return [self._row_to_material(row) for row in rows]

    async def save_materials(self, materials: list[Material]) -> None:
        """Insert or update materials."""
        if not materials:
            return
        async with self._writer("save_materials") as conn:
            await conn.executemany(
                """
                INSERT INTO materials (
                    id, name, unit, category, stock, reserved, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    unit = excluded.unit,
                    category = excluded.category,
                    stock = excluded.stock,
                    reserved = excluded.reserved,
                    updated_at = excluded.updated_at
                """,
                [
                    (
                        m.id,
                        m.name,
                        m.unit,
                        m.category,
                        m.stock,
                        m.reserved,
                        m.created_at.isoformat(),
                        m.updated_at.isoformat(),
                    )
                    for m in materials
                ],
            )
        logger.debug("materials_saved", count=len(materials))

    async def delete_material(self, material_id: str) -> None:
        """Delete a material by ID."""
        async with self._writer("delete_material") as conn:
            await conn.execute("DELETE FROM materials WHERE id = ?", (material_id,))

    # Projects

    async def load_projects(self) -> list[Project]:
        """Load every project with its budget lines in budget order."""
        async with self._reader() as conn:
            cursor = await conn.execute("SELECT * FROM projects ORDER BY created_at, id")
            project_rows = await cursor.fetchall()
            cursor = await conn.execute(
                "SELECT * FROM project_materials ORDER BY project_id, position"
            )
            line_rows = await cursor.fetchall()

        lines: dict[str, list[ProjectMaterial]] = defaultdict(list)
        for row in line_rows:
            lines[row["project_id"]].append(self._row_to_project_material(row))
        return [self._row_to_project(row, lines.get(row["id"], [])) for row in project_rows]

    async def save_projects(self, projects: list[Project]) -> None:
        """Insert or update projects, replacing their budget lines."""
        if not projects:
            return
        async with self._writer("save_projects") as conn:
            for project in projects:
                await conn.execute(
                    """
                    INSERT INTO projects (
                        id, description, client, start_date, estimated_days,
                        status, completion_date, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        description = excluded.description,
                        client = excluded.client,
                        start_date = excluded.start_date,
                        estimated_days = excluded.estimated_days,
                        status = excluded.status,
                        completion_date = excluded.completion_date
                    """,
                    (
                        project.id,
                        project.description,
                        project.client,
                        project.start_date.isoformat(),
                        project.estimated_days,
                        project.status.value,
                        project.completion_date.isoformat() if project.completion_date else None,
                        project.created_at.isoformat(),
                    ),
                )
                await conn.execute(
                    "DELETE FROM project_materials WHERE project_id = ?", (project.id,)
                )
                await conn.executemany(
                    """
                    INSERT INTO project_materials (
                        project_id, position, material_id, material_name,
                        material_unit, budgeted_quantity, actual_quantity
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            project.id,
                            position,
                            line.material_id,
                            line.material_name,
                            line.material_unit,
                            line.budgeted_quantity,
                            line.actual_quantity,
                        )
                        for position, line in enumerate(project.materials)
                    ],
                )
        logger.debug("projects_saved", count=len(projects))

    # Movements

    async def append_movement(self, movement: MovementTransaction) -> None:
        """Append a movement and its items."""
        async with self._writer("append_movement") as conn:
            await conn.execute(
                """
                INSERT INTO movements (
                    id, movement_type, movement_date, budget_target,
                    adjustments, recorded_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    movement.id,
                    movement.movement_type.value,
                    movement.movement_date.isoformat(),
                    movement.budget_target,
                    json.dumps([a.model_dump() for a in movement.adjustments]),
                    movement.recorded_at.isoformat(),
                ),
            )
            await conn.executemany(
                """
                INSERT INTO movement_items (
                    movement_id, position, material_id, material_name,
                    material_unit, quantity
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        movement.id,
                        position,
                        item.material_id,
                        item.material_name,
                        item.material_unit,
                        item.quantity,
                    )
                    for position, item in enumerate(movement.items)
                ],
            )
        logger.debug(
            "movement_appended",
            movement_id=movement.id,
            movement_type=movement.movement_type.value,
        )

    async def load_movements(self, limit: int | None = None) -> list[MovementTransaction]:
        """Load movements newest first."""
        async with self._reader() as conn:
            cursor = await conn.execute(
                "SELECT * FROM movements ORDER BY seq DESC LIMIT ?",
                (limit if limit is not None else -1,),
            )
            movement_rows = await cursor.fetchall()
            if not movement_rows:
                return []

            ids = [row["id"] for row in movement_rows]
            placeholders = ",".join("?" * len(ids))
            cursor = await conn.execute(
                f"""
                SELECT * FROM movement_items
                WHERE movement_id IN ({placeholders})
                ORDER BY movement_id, position
                """,
                ids,
            )
            item_rows = await cursor.fetchall()

        items: dict[str, list[MovementItem]] = defaultdict(list)
        for row in item_rows:
            items[row["movement_id"]].append(
                MovementItem(
                    material_id=row["material_id"],
                    material_name=row["material_name"],
                    material_unit=row["material_unit"],
                    quantity=row["quantity"],
                )
            )
        return [self._row_to_movement(row, items.get(row["id"], [])) for row in movement_rows]

    # Row converters

    def _row_to_material(self, row: aiosqlite.Row) -> Material:
        return Material(
            id=row["id"],
            name=row["name"],
            unit=row["unit"],
            category=row["category"],
            stock=row["stock"],
            reserved=row["reserved"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_project_material(self, row: aiosqlite.Row) -> ProjectMaterial:
        return ProjectMaterial(
            material_id=row["material_id"],
            material_name=row["material_name"],
            material_unit=row["material_unit"],
            budgeted_quantity=row["budgeted_quantity"],
            actual_quantity=row["actual_quantity"],
        )

    def _row_to_project(self, row: aiosqlite.Row, lines: list[ProjectMaterial]) -> Project:
        return Project(
            id=row["id"],
            description=row["description"],
            client=row["client"],
            start_date=date.fromisoformat(row["start_date"]),
            estimated_days=row["estimated_days"],
            status=ProjectStatus(row["status"]),
            materials=lines,
            completion_date=(
                datetime.fromisoformat(row["completion_date"])
                if row["completion_date"]
                else None
            ),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_movement(
        self,
        row: aiosqlite.Row,
        items: list[MovementItem],
    ) -> MovementTransaction:
        return MovementTransaction(
            id=row["id"],
            movement_type=MovementType(row["movement_type"]),
            movement_date=date.fromisoformat(row["movement_date"]),
            items=tuple(items),
            budget_target=row["budget_target"],
            adjustments=tuple(
                StockAdjustment(**data) for data in json.loads(row["adjustments"] or "[]")
            ),
            recorded_at=datetime.fromisoformat(row["recorded_at"]),
        )
