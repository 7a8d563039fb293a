"""Project budgeting and settlement endpoints."""

from fastapi import APIRouter, Depends, Query, status

from stockledger.api.dependencies import get_ledger
from stockledger.application.dto.requests import (
    AddBudgetLineRequest,
    CompleteProjectRequest,
    CreateProjectRequest,
    UpdateActualQuantityRequest,
)
from stockledger.application.dto.responses import (
    ErrorResponse,
    ProjectListResponse,
    ProjectResponse,
)
from stockledger.application.ledger import InventoryLedger
from stockledger.core.entities import ProjectStatus

router = APIRouter(prefix="/api/projects", tags=["projects"])

CONFLICT_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    status_filter: ProjectStatus | None = Query(default=None, alias="status"),
    ledger: InventoryLedger = Depends(get_ledger),
) -> ProjectListResponse:
    """List projects, most recently started first."""
    projects = ledger.list_projects(status=status_filter)
    return ProjectListResponse(
        items=[ProjectResponse.from_entity(p) for p in projects],
        total=len(projects),
    )


@router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    responses=CONFLICT_RESPONSES,
)
async def create_project(
    request: CreateProjectRequest,
    ledger: InventoryLedger = Depends(get_ledger),
) -> ProjectResponse:
    """Register a project, reserving its whole budget at once."""
    project = await ledger.create_project(
        description=request.description,
        client=request.client,
        materials=[line.to_line() for line in request.materials],
        start_date=request.start_date,
        estimated_days=request.estimated_days,
    )
    return ProjectResponse.from_entity(project)


@router.get(
    "/{project_id}",
    response_model=ProjectResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_project(
    project_id: str,
    ledger: InventoryLedger = Depends(get_ledger),
) -> ProjectResponse:
    """Get a project with its budget lines."""
    return ProjectResponse.from_entity(ledger.get_project(project_id))


@router.post(
    "/{project_id}/lines",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    responses=CONFLICT_RESPONSES,
)
async def add_budget_line(
    project_id: str,
    request: AddBudgetLineRequest,
    ledger: InventoryLedger = Depends(get_ledger),
) -> ProjectResponse:
    """Budget and reserve a new material in a pending project."""
    project = await ledger.add_budget_line(project_id, request.material_id, request.quantity)
    return ProjectResponse.from_entity(project)


@router.delete(
    "/{project_id}/lines/{material_id}",
    response_model=ProjectResponse,
    responses=CONFLICT_RESPONSES,
)
async def remove_budget_line(
    project_id: str,
    material_id: str,
    ledger: InventoryLedger = Depends(get_ledger),
) -> ProjectResponse:
    """Remove a budget line, releasing its reservation."""
    project = await ledger.remove_budget_line(project_id, material_id)
    return ProjectResponse.from_entity(project)


@router.patch(
    "/{project_id}/lines/{material_id}",
    response_model=ProjectResponse,
    responses=CONFLICT_RESPONSES,
)
async def update_actual_quantity(
    project_id: str,
    material_id: str,
    request: UpdateActualQuantityRequest,
    ledger: InventoryLedger = Depends(get_ledger),
) -> ProjectResponse:
    """Replan the expected usage of a line. Reservations are unchanged."""
    project = await ledger.update_actual_quantity(
        project_id, material_id, request.actual_quantity
    )
    return ProjectResponse.from_entity(project)


@router.post(
    "/{project_id}/complete",
    response_model=ProjectResponse,
    responses=CONFLICT_RESPONSES,
)
async def complete_project(
    project_id: str,
    request: CompleteProjectRequest | None = None,
    ledger: InventoryLedger = Depends(get_ledger),
) -> ProjectResponse:
    """Complete a project, consuming its final quantities from stock."""
    final = None
    if request is not None and request.final_materials is not None:
        final = [line.to_line() for line in request.final_materials]
    project = await ledger.complete_project(project_id, final)
    return ProjectResponse.from_entity(project)
