"""Stock movement endpoints (income, outcome, history)."""

from fastapi import APIRouter, Depends, Query, status

from stockledger.api.dependencies import get_ledger
from stockledger.application.dto.requests import IncomeRequest, OutcomeRequest
from stockledger.application.dto.responses import (
    ErrorResponse,
    MovementListResponse,
    MovementResponse,
)
from stockledger.application.ledger import InventoryLedger
from stockledger.core.entities import MovementType

router = APIRouter(prefix="/api/movements", tags=["movements"])


@router.get("", response_model=MovementListResponse)
async def list_movements(
    movement_type: MovementType | None = None,
    search: str | None = None,
    limit: int | None = Query(default=None, ge=1, le=1000),
    ledger: InventoryLedger = Depends(get_ledger),
) -> MovementListResponse:
    """Movement history, newest first, filtered by type and search term."""
    movements = await ledger.movement_history(
        movement_type=movement_type,
        search=search,
        limit=limit,
    )
    return MovementListResponse(
        items=[MovementResponse.from_entity(m) for m in movements],
        total=len(movements),
    )


@router.post(
    "/income",
    response_model=MovementResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def record_income(
    request: IncomeRequest,
    ledger: InventoryLedger = Depends(get_ledger),
) -> MovementResponse:
    """Record incoming stock."""
    movement = await ledger.record_income(
        [item.to_line() for item in request.items],
        movement_date=request.movement_date,
    )
    return MovementResponse.from_entity(movement)


@router.post(
    "/outcome",
    response_model=MovementResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def record_outcome(
    request: OutcomeRequest,
    ledger: InventoryLedger = Depends(get_ledger),
) -> MovementResponse:
    """Record an unbudgeted withdrawal of unreserved stock."""
    movement = await ledger.record_outcome(
        [item.to_line() for item in request.items],
        movement_date=request.movement_date,
        budget_target=request.budget_target,
    )
    return MovementResponse.from_entity(movement)
