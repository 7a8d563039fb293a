"""
Movement ledger: direct stock income and outcome.

Outcomes never eat into reserved stock. By default an outcome larger than
``stock - reserved`` is rejected; when clamping is allowed the stock is
floored at ``reserved`` instead and the withheld quantity is recorded on the
transaction as an adjustment.
"""

from collections.abc import Sequence
from datetime import date

from stockledger.core.entities.material import Material
from stockledger.core.entities.movement import (
    MovementItem,
    MovementTransaction,
    MovementType,
    StockAdjustment,
)
from stockledger.core.exceptions import (
    DuplicateLineError,
    InsufficientAvailabilityError,
    ValidationError,
)
from stockledger.core.services.state import (
    LedgerChange,
    LedgerState,
    QuantityLine,
    new_id,
    require_quantity,
)


class MovementLedger:
    """Applies income/outcome deltas and builds the immutable audit record."""

    def record_income(
        self,
        state: LedgerState,
        items: Sequence[QuantityLine],
        movement_date: date | None = None,
    ) -> tuple[MovementTransaction, LedgerChange]:
        """Add stock. Income is always permitted."""
        resolved = self._resolve_items(state, items)

        change = LedgerChange()
        for material, quantity in resolved:
            material.stock += quantity
            material.touch()
            change.materials.add(material.id)  # type: ignore[arg-type]

        change.movement = MovementTransaction(
            id=new_id("mov"),
            movement_type=MovementType.INCOME,
            movement_date=movement_date or date.today(),
            items=tuple(self._to_item(m, q) for m, q in resolved),
        )
        return change.movement, change

    def record_outcome(
        self,
        state: LedgerState,
        items: Sequence[QuantityLine],
        movement_date: date | None = None,
        budget_target: str | None = None,
        allow_clamp: bool = False,
    ) -> tuple[MovementTransaction, LedgerChange]:
        """
        Withdraw stock not committed to any pending project.

        Args:
            state: Draft ledger state.
            items: Materials and quantities to withdraw.
            movement_date: Date of the movement (defaults to today).
            budget_target: Optional free-text reference (budget, work order).
            allow_clamp: Accept quantities above availability, flooring stock
                at the reserved amount instead of rejecting.
        """
        resolved = self._resolve_items(state, items)

        if not allow_clamp:
            for material, quantity in resolved:
                if quantity > material.available:
                    raise InsufficientAvailabilityError(
                        material_id=material.id or "",
                        material_name=material.name,
                        requested=quantity,
                        available=material.available,
                    )

        change = LedgerChange()
        adjustments: list[StockAdjustment] = []
        for material, quantity in resolved:
            # Never below reserved, and never raised if already below it
            new_stock = min(material.stock, max(material.reserved, material.stock - quantity))
            applied = material.stock - new_stock
            if applied != quantity:
                adjustments.append(
                    StockAdjustment(
                        material_id=material.id or "",
                        requested=quantity,
                        applied=applied,
                    )
                )
            material.stock = new_stock
            material.touch()
            change.materials.add(material.id)  # type: ignore[arg-type]

        target = budget_target.strip() if budget_target else None
        change.movement = MovementTransaction(
            id=new_id("mov"),
            movement_type=MovementType.OUTCOME,
            movement_date=movement_date or date.today(),
            items=tuple(self._to_item(m, q) for m, q in resolved),
            budget_target=target or None,
            adjustments=tuple(adjustments),
        )
        return change.movement, change

    @staticmethod
    def _resolve_items(
        state: LedgerState,
        items: Sequence[QuantityLine],
    ) -> list[tuple[Material, int]]:
        if not items:
            raise ValidationError("items", "a movement needs at least one item")

        resolved: list[tuple[Material, int]] = []
        seen: set[str] = set()
        for item in items:
            quantity = require_quantity(item.quantity, material_id=item.material_id)
            material = state.material(item.material_id)
            if item.material_id in seen:
                raise DuplicateLineError(item.material_id)
            seen.add(item.material_id)
            resolved.append((material, quantity))
        return resolved

    @staticmethod
    def _to_item(material: Material, quantity: int) -> MovementItem:
        return MovementItem(
            material_id=material.id or "",
            material_name=material.name,
            material_unit=material.unit,
            quantity=quantity,
        )
