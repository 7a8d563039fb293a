"""
Read-only views over ledger data.

Nothing here is stored: every figure is derived from the current entities
on each call.
"""

from collections.abc import Iterable

from stockledger.core.entities.material import Material
from stockledger.core.entities.movement import MovementTransaction, MovementType
from stockledger.core.entities.summary import StockSummary


def summarize(materials: Iterable[Material]) -> StockSummary:
    """Totals of stock, reserved and available quantities."""
    total_stock = 0
    total_reserved = 0
    total_available = 0
    count = 0
    for material in materials:
        total_stock += material.stock
        total_reserved += material.reserved
        total_available += material.stock - material.reserved
        count += 1
    return StockSummary(
        total_stock=total_stock,
        total_reserved=total_reserved,
        total_available=total_available,
        material_count=count,
    )


def sort_materials(materials: Iterable[Material]) -> list[Material]:
    """Order materials by category, then name, ignoring case."""
    return sorted(materials, key=lambda m: (m.category.lower(), m.name.lower()))


def filter_movements(
    movements: Iterable[MovementTransaction],
    movement_type: MovementType | None = None,
    search: str | None = None,
) -> list[MovementTransaction]:
    """
    Filter the movement history.

    ``search`` matches, case-insensitively, the budget target or any item's
    material name.
    """
    term = search.strip().lower() if search else ""
    result = []
    for movement in movements:
        if movement_type is not None and movement.movement_type != movement_type:
            continue
        if term:
            target = (movement.budget_target or "").lower()
            names = (item.material_name.lower() for item in movement.items)
            if term not in target and not any(term in name for name in names):
                continue
        result.append(movement)
    return result
