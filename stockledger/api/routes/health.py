"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Depends

from stockledger import __version__
from stockledger.api.dependencies import get_app_settings, get_ledger
from stockledger.application.dto.responses import HealthResponse
from stockledger.application.ledger import InventoryLedger
from stockledger.config import Settings

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check(
    ledger: InventoryLedger = Depends(get_ledger),
    settings: Settings = Depends(get_app_settings),
) -> HealthResponse:
    """
    Basic health check.

    Returns service status, uptime and whether the ledger is loaded.
    """
    return HealthResponse(
        status="healthy" if ledger.is_open else "degraded",
        version=__version__,
        uptime_seconds=time.time() - _start_time,
        ledger_open=ledger.is_open,
        storage_backend=settings.storage.backend,
    )
