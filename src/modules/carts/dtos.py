"""Cart DTOs for the service layer."""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class UpsertCartLineDTO(BaseModel):
    """Immutable DTO for adding or updating a cart line.

    Validates:
    - ``quantity`` is at least 1.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    supplier_id: UUID
    quantity: int
    desired_delivery_date: Optional[date] = None

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v
