"""Stock movement entities (append-only audit trail)."""

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MovementType(str, Enum):
    """Types of stock movements."""

    INCOME = "income"
    OUTCOME = "outcome"


class MovementItem(BaseModel):
    """One material line of a movement."""

    model_config = ConfigDict(frozen=True)

    material_id: str
    material_name: str = ""
    material_unit: str = ""
    quantity: int = Field(..., gt=0)  # always positive, as requested


class StockAdjustment(BaseModel):
    """An outcome item whose applied quantity was clamped at the reserved floor."""

    model_config = ConfigDict(frozen=True)

    material_id: str
    requested: int
    applied: int

    @property
    def withheld(self) -> int:
        return self.requested - self.applied


class MovementTransaction(BaseModel):
    """Immutable record of an income or outcome."""

    model_config = ConfigDict(frozen=True)

    id: str
    movement_type: MovementType
    movement_date: date
    items: tuple[MovementItem, ...]
    budget_target: str | None = None  # outcome only
    adjustments: tuple[StockAdjustment, ...] = ()
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def was_clamped(self) -> bool:
        return bool(self.adjustments)
