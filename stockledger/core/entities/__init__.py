"""Core domain entities."""

from stockledger.core.entities.material import DEFAULT_CATEGORY, Material
from stockledger.core.entities.movement import (
    MovementItem,
    MovementTransaction,
    MovementType,
    StockAdjustment,
)
from stockledger.core.entities.project import Project, ProjectMaterial, ProjectStatus
from stockledger.core.entities.summary import StockSummary

__all__ = [
    # Material entities
    "Material",
    "DEFAULT_CATEGORY",
    # Project entities
    "Project",
    "ProjectMaterial",
    "ProjectStatus",
    # Movement entities
    "MovementTransaction",
    "MovementItem",
    "MovementType",
    "StockAdjustment",
    # Derived
    "StockSummary",
]
