"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation. Quantities are only
type-checked here; their range is enforced by the ledger so that every
bad quantity is reported with the same INVALID_QUANTITY error.
"""

from datetime import date

from pydantic import BaseModel, Field

from stockledger.core.services import QuantityLine


class QuantityLineRequest(BaseModel):
    """A material and a quantity."""

    material_id: str = Field(..., description="Material ID")
    quantity: int = Field(..., description="Quantity in the material's unit")

    def to_line(self) -> QuantityLine:
        return QuantityLine(material_id=self.material_id, quantity=self.quantity)


# --- Materials ---


class CreateMaterialRequest(BaseModel):
    """Request to add a material to the catalog."""

    name: str = Field(..., description="Material name", examples=["Copper cable 2.5mm"])
    unit: str = Field(..., description="Unit of measure", examples=["m", "pcs", "kg"])
    category: str | None = Field(
        default=None,
        description="Category (defaults to the configured default category)",
    )
    stock: int = Field(default=0, description="Opening stock")


# --- Projects ---


class CreateProjectRequest(BaseModel):
    """Request to register a project and reserve its budget."""

    description: str = Field(..., description="Budget or work-order number")
    client: str = Field(..., description="Client name")
    start_date: date | None = Field(default=None, description="Start date (defaults to today)")
    estimated_days: int = Field(default=1, description="Estimated duration in days")
    materials: list[QuantityLineRequest] = Field(
        default_factory=list,
        description="Initial budget; every line is reserved at once",
    )


class AddBudgetLineRequest(QuantityLineRequest):
    """Request to add a budget line to a pending project."""

    pass


class UpdateActualQuantityRequest(BaseModel):
    """Request to replan the expected usage of a budget line."""

    actual_quantity: int = Field(..., description="Replanned quantity, zero allowed")


class FinalMaterialRequest(BaseModel):
    """Final consumed quantity for one budget line."""

    material_id: str
    actual_quantity: int

    def to_line(self) -> QuantityLine:
        return QuantityLine(material_id=self.material_id, quantity=self.actual_quantity)


class CompleteProjectRequest(BaseModel):
    """Request to complete a project.

    Omit ``final_materials`` to settle at the currently replanned quantities.
    Budget lines missing from the list consume nothing.
    """

    final_materials: list[FinalMaterialRequest] | None = None


# --- Movements ---


class IncomeRequest(BaseModel):
    """Request to record incoming stock."""

    items: list[QuantityLineRequest] = Field(default_factory=list)
    movement_date: date | None = Field(default=None, description="Defaults to today")


class OutcomeRequest(BaseModel):
    """Request to record an unbudgeted withdrawal."""

    items: list[QuantityLineRequest] = Field(default_factory=list)
    movement_date: date | None = Field(default=None, description="Defaults to today")
    budget_target: str | None = Field(
        default=None,
        description="Free-text reference (budget, work order)",
    )
