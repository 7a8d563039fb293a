"""
Inventory ledger: the single entry point for reading and changing stock.

Every write runs under one lock, against a draft copy of the state. The
draft is persisted inside a store transaction and only then published, so
a rejected or failed operation leaves both the store and the visible state
exactly as they were.
"""

import asyncio
from collections.abc import Callable, Sequence
from datetime import date
from typing import TypeVar

from stockledger.config import get_logger
from stockledger.core.entities.material import DEFAULT_CATEGORY, Material
from stockledger.core.entities.movement import MovementTransaction, MovementType
from stockledger.core.entities.project import Project, ProjectMaterial, ProjectStatus
from stockledger.core.entities.summary import StockSummary
from stockledger.core.exceptions import ConfigurationError
from stockledger.core.interfaces.ledger_store import ILedgerStore
from stockledger.core.services import (
    LedgerChange,
    LedgerState,
    MaterialCatalog,
    MovementLedger,
    QuantityLine,
    ReservationDrift,
    ReservationEngine,
    filter_movements,
    sort_materials,
    summarize,
)

logger = get_logger(__name__)

T = TypeVar("T")


class InventoryLedger:
    """Serialises ledger operations and keeps the store in step with them."""

    def __init__(
        self,
        store: ILedgerStore,
        allow_outcome_clamp: bool = False,
        reconcile_on_open: bool = True,
        default_category: str = DEFAULT_CATEGORY,
        history_limit: int = 200,
    ):
        self._store = store
        self._allow_outcome_clamp = allow_outcome_clamp
        self._reconcile_on_open = reconcile_on_open
        self._history_limit = history_limit

        self._engine = ReservationEngine()
        self._movements = MovementLedger()
        self._catalog = MaterialCatalog(default_category)

        self._lock = asyncio.Lock()
        self._state: LedgerState | None = None

    @property
    def is_open(self) -> bool:
        return self._state is not None

    async def open(self) -> list[ReservationDrift]:
        """
        Load the ledger from the store.

        When reconciliation is enabled, stored reservations are recomputed
        from pending budgets and any correction is written back.

        Returns:
            The reservations that had drifted, empty when all agreed
        """
        async with self._lock:
            materials = await self._store.load_materials()
            projects = await self._store.load_projects()
            state = LedgerState.from_entities(materials, projects)

            drifts: list[ReservationDrift] = []
            if self._reconcile_on_open:
                drifts = self._engine.reconcile(state)
                if drifts:
                    async with self._store.transaction():
                        await self._store.save_materials(
                            [state.materials[d.material_id] for d in drifts]
                        )
                    for drift in drifts:
                        logger.warning(
                            "reservation_drift_corrected",
                            material_id=drift.material_id,
                            stored=drift.stored,
                            expected=drift.expected,
                        )

            self._state = state
            logger.info(
                "ledger_opened",
                materials=len(state.materials),
                projects=len(state.projects),
                drift_corrections=len(drifts),
            )
            return drifts

    async def close(self) -> None:
        """Drop the in-memory state and release the store."""
        async with self._lock:
            self._state = None
            await self._store.close()
        logger.info("ledger_closed")

    def _current(self) -> LedgerState:
        if self._state is None:
            raise ConfigurationError("Inventory ledger is not open; call open() first")
        return self._state

    async def _apply(
        self,
        operation: str,
        mutate: Callable[[LedgerState], tuple[T, LedgerChange]],
    ) -> T:
        """Run ``mutate`` on a draft, persist what it touched, then publish."""
        async with self._lock:
            draft = self._current().copy()
            result, change = mutate(draft)
            await self._persist(draft, change)
            self._state = draft
            logger.debug("ledger_operation_applied", operation=operation)
            return result

    async def _persist(self, draft: LedgerState, change: LedgerChange) -> None:
        if change.is_empty:
            return
        async with self._store.transaction():
            if change.materials:
                await self._store.save_materials(
                    [draft.materials[mid] for mid in sorted(change.materials)]
                )
            for material_id in sorted(change.deleted_materials):
                await self._store.delete_material(material_id)
            if change.projects:
                await self._store.save_projects(
                    [draft.projects[pid] for pid in sorted(change.projects)]
                )
            if change.movement is not None:
                await self._store.append_movement(change.movement)

    # Catalog

    async def add_material(
        self,
        name: str,
        unit: str,
        category: str | None = None,
        stock: int = 0,
    ) -> Material:
        """Add a material to the catalog."""
        material = await self._apply(
            "add_material",
            lambda s: self._catalog.add_material(s, name, unit, category, stock),
        )
        logger.info("material_added", material_id=material.id, stock=material.stock)
        return material.model_copy(deep=True)

    async def remove_material(self, material_id: str) -> Material:
        """Remove a material that no pending project has reserved."""
        removed = await self._apply(
            "remove_material",
            lambda s: self._catalog.remove_material(s, material_id),
        )
        if removed.had_stock:
            logger.warning(
                "material_removed_with_stock",
                material_id=material_id,
                stock=removed.material.stock,
            )
        else:
            logger.info("material_removed", material_id=material_id)
        return removed.material

    # Projects

    async def create_project(
        self,
        description: str,
        client: str,
        materials: Sequence[QuantityLine],
        start_date: date | None = None,
        estimated_days: int = 1,
    ) -> Project:
        """Create a pending project, reserving its whole budget."""
        project = await self._apply(
            "create_project",
            lambda s: self._engine.create_project(
                s,
                description=description,
                client=client,
                initial_budget=materials,
                start_date=start_date,
                estimated_days=estimated_days,
            ),
        )
        logger.info(
            "project_created",
            project_id=project.id,
            lines=len(project.materials),
        )
        return project.model_copy(deep=True)

    async def add_budget_line(self, project_id: str, material_id: str, quantity: int) -> Project:
        project = await self._apply(
            "add_budget_line",
            lambda s: self._engine.add_budget_line(s, project_id, material_id, quantity),
        )
        logger.info(
            "budget_line_added",
            project_id=project_id,
            material_id=material_id,
            quantity=quantity,
        )
        return project.model_copy(deep=True)

    async def remove_budget_line(self, project_id: str, material_id: str) -> Project:
        project = await self._apply(
            "remove_budget_line",
            lambda s: self._engine.remove_budget_line(s, project_id, material_id),
        )
        logger.info("budget_line_removed", project_id=project_id, material_id=material_id)
        return project.model_copy(deep=True)

    async def update_actual_quantity(
        self,
        project_id: str,
        material_id: str,
        actual_quantity: int,
    ) -> Project:
        project = await self._apply(
            "update_actual_quantity",
            lambda s: self._engine.update_actual_quantity(
                s, project_id, material_id, actual_quantity
            ),
        )
        return project.model_copy(deep=True)

    async def complete_project(
        self,
        project_id: str,
        final_materials: Sequence[ProjectMaterial | QuantityLine] | None = None,
    ) -> Project:
        """Settle a project: consume its final quantities and release its reservations."""
        project = await self._apply(
            "complete_project",
            lambda s: self._engine.complete_project(s, project_id, final_materials),
        )
        logger.info(
            "project_completed",
            project_id=project_id,
            consumed=sum(line.actual_quantity for line in project.materials),
        )
        return project.model_copy(deep=True)

    # Movements

    async def record_income(
        self,
        items: Sequence[QuantityLine],
        movement_date: date | None = None,
    ) -> MovementTransaction:
        movement = await self._apply(
            "record_income",
            lambda s: self._movements.record_income(s, items, movement_date),
        )
        logger.info("income_recorded", movement_id=movement.id, items=len(movement.items))
        return movement

    async def record_outcome(
        self,
        items: Sequence[QuantityLine],
        movement_date: date | None = None,
        budget_target: str | None = None,
    ) -> MovementTransaction:
        """Withdraw unreserved stock, rejecting or clamping per configuration."""
        movement = await self._apply(
            "record_outcome",
            lambda s: self._movements.record_outcome(
                s,
                items,
                movement_date=movement_date,
                budget_target=budget_target,
                allow_clamp=self._allow_outcome_clamp,
            ),
        )
        for adjustment in movement.adjustments:
            logger.warning(
                "outcome_clamped",
                movement_id=movement.id,
                material_id=adjustment.material_id,
                requested=adjustment.requested,
                applied=adjustment.applied,
            )
        logger.info("outcome_recorded", movement_id=movement.id, items=len(movement.items))
        return movement

    # Queries

    def list_materials(self, category: str | None = None) -> list[Material]:
        """Materials ordered by category then name."""
        materials = self._current().materials.values()
        if category:
            materials = [m for m in materials if m.category == category]
        return [m.model_copy(deep=True) for m in sort_materials(materials)]

    def get_material(self, material_id: str) -> Material:
        return self._current().material(material_id).model_copy(deep=True)

    def list_projects(self, status: ProjectStatus | None = None) -> list[Project]:
        """Projects, most recently started first."""
        state = self._current()
        projects = (
            state.projects_with_status(status) if status is not None else state.projects.values()
        )
        ordered = sorted(projects, key=lambda p: (p.start_date, p.created_at), reverse=True)
        return [p.model_copy(deep=True) for p in ordered]

    def get_project(self, project_id: str) -> Project:
        return self._current().project(project_id).model_copy(deep=True)

    def summary(self) -> StockSummary:
        return summarize(self._current().materials.values())

    async def movement_history(
        self,
        movement_type: MovementType | None = None,
        search: str | None = None,
        limit: int | None = None,
    ) -> list[MovementTransaction]:
        """Movements newest first, optionally filtered by type and search term."""
        self._current()
        limit = limit if limit is not None else self._history_limit
        if movement_type is None and not search:
            return await self._store.load_movements(limit)

        movements = await self._store.load_movements()
        return filter_movements(movements, movement_type, search)[:limit]
