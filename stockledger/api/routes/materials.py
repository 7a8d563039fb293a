"""Material catalog endpoints."""

from fastapi import APIRouter, Depends, status

from stockledger.api.dependencies import get_ledger
from stockledger.application.dto.requests import CreateMaterialRequest
from stockledger.application.dto.responses import (
    ErrorResponse,
    MaterialListResponse,
    MaterialResponse,
)
from stockledger.application.ledger import InventoryLedger

router = APIRouter(prefix="/api/materials", tags=["materials"])


@router.get("", response_model=MaterialListResponse)
async def list_materials(
    category: str | None = None,
    ledger: InventoryLedger = Depends(get_ledger),
) -> MaterialListResponse:
    """List materials ordered by category and name."""
    materials = ledger.list_materials(category=category)
    return MaterialListResponse(
        items=[MaterialResponse.from_entity(m) for m in materials],
        total=len(materials),
    )


@router.post(
    "",
    response_model=MaterialResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_material(
    request: CreateMaterialRequest,
    ledger: InventoryLedger = Depends(get_ledger),
) -> MaterialResponse:
    """Add a material to the catalog."""
    material = await ledger.add_material(
        name=request.name,
        unit=request.unit,
        category=request.category,
        stock=request.stock,
    )
    return MaterialResponse.from_entity(material)


@router.get(
    "/{material_id}",
    response_model=MaterialResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_material(
    material_id: str,
    ledger: InventoryLedger = Depends(get_ledger),
) -> MaterialResponse:
    """Get a material with its stock, reserved and available quantities."""
    return MaterialResponse.from_entity(ledger.get_material(material_id))


@router.delete(
    "/{material_id}",
    response_model=MaterialResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_material(
    material_id: str,
    ledger: InventoryLedger = Depends(get_ledger),
) -> MaterialResponse:
    """
    Delete a material.

    Refused while any pending project reserves it. Remaining stock is
    discarded with the material.
    """
    removed = await ledger.remove_material(material_id)
    return MaterialResponse.from_entity(removed)
