"""Stock summary endpoint."""

from fastapi import APIRouter, Depends

from stockledger.api.dependencies import get_ledger
from stockledger.application.dto.responses import SummaryResponse
from stockledger.application.ledger import InventoryLedger

router = APIRouter(prefix="/api/summary", tags=["summary"])


@router.get("", response_model=SummaryResponse)
async def get_summary(ledger: InventoryLedger = Depends(get_ledger)) -> SummaryResponse:
    """Totals of stock, reserved and available quantities."""
    return SummaryResponse.from_entity(ledger.summary())
