"""Response DTOs for API endpoints."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from stockledger.core.entities import (
    Material,
    MovementTransaction,
    Project,
    ProjectMaterial,
    StockSummary,
)


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. MATERIAL_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    context: dict[str, Any] | None = Field(
        default=None,
        description="Offending entity IDs and quantities",
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    uptime_seconds: float
    ledger_open: bool = False
    storage_backend: str | None = None


# --- Materials ---


class MaterialResponse(BaseModel):
    """Material response DTO."""

    id: str
    name: str
    unit: str
    category: str
    stock: int
    reserved: int
    available: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, material: Material) -> "MaterialResponse":
        return cls(
            id=material.id or "",
            name=material.name,
            unit=material.unit,
            category=material.category,
            stock=material.stock,
            reserved=material.reserved,
            available=material.available,
            created_at=material.created_at,
            updated_at=material.updated_at,
        )


class MaterialListResponse(BaseModel):
    items: list[MaterialResponse]
    total: int


# --- Projects ---


class ProjectMaterialResponse(BaseModel):
    """Budget line response DTO."""

    material_id: str
    material_name: str
    material_unit: str
    budgeted_quantity: int
    actual_quantity: int

    @classmethod
    def from_entity(cls, line: ProjectMaterial) -> "ProjectMaterialResponse":
        return cls(**line.model_dump())


class ProjectResponse(BaseModel):
    """Project response DTO."""

    id: str
    description: str
    client: str
    start_date: date
    estimated_days: int
    status: str
    materials: list[ProjectMaterialResponse]
    completion_date: datetime | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, project: Project) -> "ProjectResponse":
        return cls(
            id=project.id or "",
            description=project.description,
            client=project.client,
            start_date=project.start_date,
            estimated_days=project.estimated_days,
            status=project.status.value,
            materials=[ProjectMaterialResponse.from_entity(m) for m in project.materials],
            completion_date=project.completion_date,
            created_at=project.created_at,
        )


class ProjectListResponse(BaseModel):
    items: list[ProjectResponse]
    total: int


# --- Movements ---


class MovementItemResponse(BaseModel):
    material_id: str
    material_name: str
    material_unit: str
    quantity: int


class StockAdjustmentResponse(BaseModel):
    """An outcome item applied only partly to keep reserved stock intact."""

    material_id: str
    requested: int
    applied: int
    withheld: int


class MovementResponse(BaseModel):
    """Stock movement response DTO."""

    id: str
    movement_type: str
    movement_date: date
    items: list[MovementItemResponse]
    budget_target: str | None = None
    adjustments: list[StockAdjustmentResponse] = Field(default_factory=list)
    recorded_at: datetime

    @classmethod
    def from_entity(cls, movement: MovementTransaction) -> "MovementResponse":
        return cls(
            id=movement.id,
            movement_type=movement.movement_type.value,
            movement_date=movement.movement_date,
            items=[MovementItemResponse(**item.model_dump()) for item in movement.items],
            budget_target=movement.budget_target,
            adjustments=[
                StockAdjustmentResponse(
                    material_id=a.material_id,
                    requested=a.requested,
                    applied=a.applied,
                    withheld=a.withheld,
                )
                for a in movement.adjustments
            ],
            recorded_at=movement.recorded_at,
        )


class MovementListResponse(BaseModel):
    items: list[MovementResponse]
    total: int


# --- Summary ---


class SummaryResponse(BaseModel):
    """Stock totals across every material."""

    total_stock: int
    total_reserved: int
    total_available: int
    material_count: int

    @classmethod
    def from_entity(cls, summary: StockSummary) -> "SummaryResponse":
        return cls(**summary.model_dump())
