"""Project domain entities."""

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, Field


class ProjectStatus(str, Enum):
    """Lifecycle of a project. PENDING -> COMPLETED only."""

    PENDING = "pending"
    COMPLETED = "completed"


class ProjectMaterial(BaseModel):
    """A budget line inside a project."""

    material_id: str
    material_name: str = ""  # display only
    material_unit: str = ""  # display only
    budgeted_quantity: int = Field(..., gt=0)
    actual_quantity: int = Field(default=0, ge=0)  # replanned usage


class Project(BaseModel):
    """A unit of field work consuming materials."""

    id: str | None = None
    description: str  # budget / work-order number
    client: str
    start_date: date = Field(default_factory=date.today)
    estimated_days: int = Field(default=1, gt=0)
    status: ProjectStatus = ProjectStatus.PENDING
    materials: list[ProjectMaterial] = Field(default_factory=list)
    completion_date: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_pending(self) -> bool:
        return self.status == ProjectStatus.PENDING

    def get_line(self, material_id: str) -> ProjectMaterial | None:
        """Return the budget line for a material, if budgeted."""
        for line in self.materials:
            if line.material_id == material_id:
                return line
        return None

    def budgeted_for(self, material_id: str) -> int:
        """Budgeted quantity for a material, 0 when not budgeted."""
        line = self.get_line(material_id)
        return line.budgeted_quantity if line else 0
