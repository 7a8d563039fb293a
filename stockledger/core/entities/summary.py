"""Derived, read-only stock summary."""

from pydantic import BaseModel, ConfigDict


class StockSummary(BaseModel):
    """Totals across every material, recomputed on each read."""

    model_config = ConfigDict(frozen=True)

    total_stock: int = 0
    total_reserved: int = 0
    total_available: int = 0
    material_count: int = 0
