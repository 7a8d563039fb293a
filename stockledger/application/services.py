"""
Service factory functions for dependency injection.

Wires the configured storage adapter to the inventory ledger. The API and
CLI import from here rather than from infrastructure directly.
"""

from typing import TYPE_CHECKING

from stockledger.application.ledger import InventoryLedger
from stockledger.config import Settings, get_logger, get_settings

if TYPE_CHECKING:
    from stockledger.core.interfaces import ILedgerStore

logger = get_logger(__name__)

# Singleton ledger instance
_inventory_ledger: InventoryLedger | None = None


def build_inventory_ledger(
    store: "ILedgerStore | None" = None,
    settings: Settings | None = None,
) -> InventoryLedger:
    """
    Create an InventoryLedger configured from ``LEDGER_*`` settings.

    Args:
        store: Optional storage override (defaults to ``STORAGE_BACKEND``)
        settings: Optional settings override

    Returns:
        An unopened InventoryLedger
    """
    settings = settings or get_settings()

    if store is None:
        # Lazy import infrastructure to avoid circular imports
        from stockledger.infrastructure.storage import create_ledger_store

        store = create_ledger_store(settings)

    return InventoryLedger(
        store=store,
        allow_outcome_clamp=settings.ledger.allow_outcome_clamp,
        reconcile_on_open=settings.ledger.reconcile_on_open,
        default_category=settings.ledger.default_category,
        history_limit=settings.ledger.history_limit,
    )


async def get_inventory_ledger() -> InventoryLedger:
    """Get or create the shared, opened InventoryLedger."""
    global _inventory_ledger

    if _inventory_ledger is None:
        ledger = build_inventory_ledger()
        await ledger.open()
        _inventory_ledger = ledger
        logger.info("inventory_ledger_ready")
    return _inventory_ledger


def reset_services() -> None:
    """Drop the shared ledger (for testing)."""
    global _inventory_ledger
    _inventory_ledger = None
