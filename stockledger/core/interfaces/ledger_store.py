"""Abstract interface for ledger storage."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager

from stockledger.core.entities.material import Material
from stockledger.core.entities.movement import MovementTransaction
from stockledger.core.entities.project import Project


class ILedgerStore(ABC):
    """
    Persistence port for materials, projects and the movement trail.

    The ledger treats every call as opaque. Writes issued inside
    ``transaction()`` must land together or not at all.
    """

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Open an atomic unit of work; commits on exit, rolls back on error."""
        pass

    @abstractmethod
    async def load_materials(self) -> list[Material]:
        """Load every material."""
        pass

    @abstractmethod
    async def save_materials(self, materials: list[Material]) -> None:
        """Insert or update the given materials."""
        pass

    @abstractmethod
    async def delete_material(self, material_id: str) -> None:
        """Delete a material by ID."""
        pass

    @abstractmethod
    async def load_projects(self) -> list[Project]:
        """Load every project with its budget lines."""
        pass

    @abstractmethod
    async def save_projects(self, projects: list[Project]) -> None:
        """Insert or update the given projects, replacing their budget lines."""
        pass

    @abstractmethod
    async def append_movement(self, movement: MovementTransaction) -> None:
        """Append a movement to the audit trail."""
        pass

    @abstractmethod
    async def load_movements(self, limit: int | None = None) -> list[MovementTransaction]:
        """Load movements, newest first."""
        pass

    async def close(self) -> None:
        """Release resources held by the store."""
        return None
