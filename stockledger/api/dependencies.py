"""
Dependency injection container for FastAPI.

Provides the shared ledger and settings to route handlers.
"""

from functools import lru_cache

from stockledger.application.ledger import InventoryLedger
from stockledger.application.services import get_inventory_ledger
from stockledger.config import Settings, get_settings


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


async def get_ledger() -> InventoryLedger:
    """Get the opened inventory ledger."""
    return await get_inventory_ledger()
