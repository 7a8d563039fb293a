"""
Material domain entity.

A stock-keeping unit tracked in physical units only.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

DEFAULT_CATEGORY = "General"


class Material(BaseModel):
    """
    A material held in stock.

    ``reserved`` is maintained by the reservation engine and is never edited
    directly by callers.
    """

    id: str | None = None
    name: str
    unit: str
    category: str = DEFAULT_CATEGORY
    stock: int = Field(default=0, ge=0)
    reserved: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("category", mode="before")
    @classmethod
    def default_blank_category(cls, v: str | None) -> str:
        if v is None or not str(v).strip():
            return DEFAULT_CATEGORY
        return str(v).strip()

    @property
    def available(self) -> int:
        """Quantity free to reserve or withdraw."""
        return self.stock - self.reserved

    def touch(self) -> None:
        self.updated_at = datetime.now(UTC)
