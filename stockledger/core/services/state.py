"""
In-memory ledger aggregate.

The pure services validate against and mutate a ``LedgerState``. Callers
hand them a draft copy, so a rejected operation never touches the state
that readers see.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from stockledger.core.entities.material import Material
from stockledger.core.entities.movement import MovementTransaction
from stockledger.core.entities.project import Project, ProjectStatus
from stockledger.core.exceptions import (
    InvalidQuantityError,
    MaterialNotFoundError,
    ProjectNotFoundError,
)


def new_id(prefix: str) -> str:
    """Generate an opaque, unique entity ID."""
    return f"{prefix}-{uuid4().hex[:12]}"


def require_quantity(
    value: Any,
    allow_zero: bool = False,
    material_id: str | None = None,
) -> int:
    """Return ``value`` if it is a valid integer quantity, else raise."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantityError(value, allow_zero=allow_zero, material_id=material_id)
    if value < 0 or (value == 0 and not allow_zero):
        raise InvalidQuantityError(value, allow_zero=allow_zero, material_id=material_id)
    return value


@dataclass(frozen=True)
class QuantityLine:
    """A material and a quantity, as submitted by a caller."""

    material_id: str
    quantity: Any


@dataclass
class LedgerChange:
    """IDs touched by an operation, used to persist only what changed."""

    materials: set[str] = field(default_factory=set)
    projects: set[str] = field(default_factory=set)
    deleted_materials: set[str] = field(default_factory=set)
    movement: MovementTransaction | None = None

    @property
    def is_empty(self) -> bool:
        return not (
            self.materials or self.projects or self.deleted_materials or self.movement
        )


@dataclass
class LedgerState:
    """Materials and projects keyed by ID."""

    materials: dict[str, Material] = field(default_factory=dict)
    projects: dict[str, Project] = field(default_factory=dict)

    @classmethod
    def from_entities(
        cls,
        materials: Iterable[Material],
        projects: Iterable[Project],
    ) -> "LedgerState":
        return cls(
            materials={m.id: m for m in materials if m.id is not None},
            projects={p.id: p for p in projects if p.id is not None},
        )

    def copy(self) -> "LedgerState":
        """Deep copy, safe to mutate without affecting this state."""
        return LedgerState(
            materials={k: m.model_copy(deep=True) for k, m in self.materials.items()},
            projects={k: p.model_copy(deep=True) for k, p in self.projects.items()},
        )

    def material(self, material_id: str) -> Material:
        material = self.materials.get(material_id)
        if material is None:
            raise MaterialNotFoundError(material_id)
        return material

    def project(self, project_id: str) -> Project:
        project = self.projects.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def projects_with_status(self, status: ProjectStatus) -> list[Project]:
        return [p for p in self.projects.values() if p.status == status]
