"""Application layer: the inventory ledger and its wiring."""

from stockledger.application.ledger import InventoryLedger
from stockledger.application.services import (
    build_inventory_ledger,
    get_inventory_ledger,
    reset_services,
)

__all__ = [
    "InventoryLedger",
    "build_inventory_ledger",
    "get_inventory_ledger",
    "reset_services",
]
