"""Material catalog: adding materials and the deletion guard."""

from dataclasses import dataclass

from stockledger.core.entities.material import DEFAULT_CATEGORY, Material
from stockledger.core.exceptions import HasReservationsError, ValidationError
from stockledger.core.services.state import (
    LedgerChange,
    LedgerState,
    new_id,
    require_quantity,
)


@dataclass
class RemovedMaterial:
    """A material deleted from the catalog."""

    material: Material
    had_stock: bool  # callers should have confirmed discarding it


class MaterialCatalog:
    """Creates and removes materials. Reservations are never set here."""

    def __init__(self, default_category: str = DEFAULT_CATEGORY) -> None:
        self._default_category = default_category

    def add_material(
        self,
        state: LedgerState,
        name: str,
        unit: str,
        category: str | None = None,
        stock: int = 0,
    ) -> tuple[Material, LedgerChange]:
        """Create a material with a fresh ID and no reservations."""
        if not name or not name.strip():
            raise ValidationError("name", "must not be blank", name)
        if not unit or not unit.strip():
            raise ValidationError("unit", "must not be blank", unit)
        stock = require_quantity(stock, allow_zero=True)

        material = Material(
            id=new_id("mat"),
            name=name.strip(),
            unit=unit.strip(),
            category=category if category and category.strip() else self._default_category,
            stock=stock,
            reserved=0,
        )
        state.materials[material.id] = material  # type: ignore[index]
        return material, LedgerChange(materials={material.id})  # type: ignore[arg-type]

    def remove_material(
        self,
        state: LedgerState,
        material_id: str,
    ) -> tuple[RemovedMaterial, LedgerChange]:
        """Delete a material that no pending project has reserved."""
        material = state.material(material_id)
        if material.reserved > 0:
            raise HasReservationsError(
                material_id=material_id,
                material_name=material.name,
                reserved=material.reserved,
            )

        del state.materials[material_id]
        return (
            RemovedMaterial(material=material, had_stock=material.stock > 0),
            LedgerChange(deleted_materials={material_id}),
        )
