"""Data transfer objects for the API layer."""

from stockledger.application.dto.requests import (
    AddBudgetLineRequest,
    CompleteProjectRequest,
    CreateMaterialRequest,
    CreateProjectRequest,
    FinalMaterialRequest,
    IncomeRequest,
    OutcomeRequest,
    QuantityLineRequest,
    UpdateActualQuantityRequest,
)
from stockledger.application.dto.responses import (
    ErrorResponse,
    HealthResponse,
    MaterialListResponse,
    MaterialResponse,
    MovementListResponse,
    MovementResponse,
    ProjectListResponse,
    ProjectMaterialResponse,
    ProjectResponse,
    SummaryResponse,
)

__all__ = [
    # Requests
    "QuantityLineRequest",
    "CreateMaterialRequest",
    "CreateProjectRequest",
    "AddBudgetLineRequest",
    "UpdateActualQuantityRequest",
    "FinalMaterialRequest",
    "CompleteProjectRequest",
    "IncomeRequest",
    "OutcomeRequest",
    # Responses
    "ErrorResponse",
    "HealthResponse",
    "MaterialResponse",
    "MaterialListResponse",
    "ProjectMaterialResponse",
    "ProjectResponse",
    "ProjectListResponse",
    "MovementResponse",
    "MovementListResponse",
    "SummaryResponse",
]
