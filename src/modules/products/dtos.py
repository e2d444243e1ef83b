"""Product DTOs for the Service Layer (Pydantic v2, immutable)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class UpdateStockDTO(BaseModel):
    """Absolute stock level set from the admin stock screen."""

    model_config = ConfigDict(frozen=True)

    stock: int

    @field_validator("stock")
    @classmethod
    def stock_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Stock cannot be negative.")
        return v
