"""In-memory implementation of ledger storage."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from stockledger.config import get_logger
from stockledger.core.entities.material import Material
from stockledger.core.entities.movement import MovementTransaction
from stockledger.core.entities.project import Project
from stockledger.core.interfaces.ledger_store import ILedgerStore

logger = get_logger(__name__)


class MemoryLedgerStore(ILedgerStore):
    """
    Dict-backed ledger storage.

    ``transaction()`` snapshots the collections and restores them if the
    block raises, giving the same all-or-nothing behaviour as SQLite.
    Entities are copied on the way in and out.
    """

    def __init__(
        self,
        materials: list[Material] | None = None,
        projects: list[Project] | None = None,
        movements: list[MovementTransaction] | None = None,
    ) -> None:
        self._materials: dict[str, Material] = {
            m.id: m.model_copy(deep=True) for m in materials or [] if m.id
        }
        self._projects: dict[str, Project] = {
            p.id: p.model_copy(deep=True) for p in projects or [] if p.id
        }
        self._movements: list[MovementTransaction] = list(movements or [])
        self._depth = 0

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Run a block atomically; nested blocks join the outer one."""
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snapshot = (dict(self._materials), dict(self._projects), len(self._movements))
        self._depth = 1
        try:
            yield
        except Exception:
            self._materials, self._projects = snapshot[0], snapshot[1]
            del self._movements[snapshot[2]:]
            logger.warning("memory_transaction_rolled_back")
            raise
        finally:
            self._depth = 0

    async def load_materials(self) -> list[Material]:
        return [m.model_copy(deep=True) for m in self._materials.values()]

    async def save_materials(self, materials: list[Material]) -> None:
        for material in materials:
            self._materials[material.id] = material.model_copy(deep=True)  # type: ignore[index]

    async def delete_material(self, material_id: str) -> None:
        self._materials.pop(material_id, None)

    async def load_projects(self) -> list[Project]:
        return [p.model_copy(deep=True) for p in self._projects.values()]

    async def save_projects(self, projects: list[Project]) -> None:
        for project in projects:
            self._projects[project.id] = project.model_copy(deep=True)  # type: ignore[index]

    async def append_movement(self, movement: MovementTransaction) -> None:
        self._movements.append(movement)

    async def load_movements(self, limit: int | None = None) -> list[MovementTransaction]:
        newest_first = list(reversed(self._movements))
        return newest_first[:limit] if limit is not None else newest_first
