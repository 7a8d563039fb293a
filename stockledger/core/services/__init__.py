"""
Core business logic services.

Layer-pure services that depend only on:
- stockledger/core/entities/*
- stockledger/core/exceptions.py

NO I/O. They validate against and mutate the ``LedgerState`` they are given.
"""

from stockledger.core.services.material_catalog import MaterialCatalog, RemovedMaterial
from stockledger.core.services.movement_ledger import MovementLedger
from stockledger.core.services.reporting import filter_movements, sort_materials, summarize
from stockledger.core.services.reservation_engine import (
    ReservationDrift,
    ReservationEngine,
    reservations_by_material,
)
from stockledger.core.services.state import (
    LedgerChange,
    LedgerState,
    QuantityLine,
    new_id,
    require_quantity,
)

__all__ = [
    # State
    "LedgerState",
    "LedgerChange",
    "QuantityLine",
    "new_id",
    "require_quantity",
    # Reservations
    "ReservationEngine",
    "ReservationDrift",
    "reservations_by_material",
    # Movements
    "MovementLedger",
    # Catalog
    "MaterialCatalog",
    "RemovedMaterial",
    # Reporting
    "summarize",
    "sort_materials",
    "filter_movements",
]
