"""Order DTOs for the service layer.

Framework-agnostic input contracts built by the views from validated
serializer data.  DTOs are immutable (``frozen=True``).

- ``OrderLineUpdateDTO``: per-line confirmation date or received quantity.
- ``NonConformityDTO``: one reported discrepancy.
- ``TransitionOrderDTO``: target status plus the transition payload.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class OrderLineUpdateDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    confirmed_delivery_date: Optional[date] = None
    quantity_received: Optional[int] = None

    @field_validator("quantity_received")
    @classmethod
    def quantity_must_be_non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("Received quantity cannot be negative.")
        return v


class NonConformityDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    quantity_affected: int = 0
    photo_keys: List[str] = []

    @field_validator("description")
    @classmethod
    def description_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Description must not be empty.")
        return v.strip()

    @field_validator("quantity_affected")
    @classmethod
    def quantity_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Affected quantity cannot be negative.")
        return v


class TransitionOrderDTO(BaseModel):
    """Status transition request.

    ``status`` is kept as a plain string so an unknown target is reported
    by the workflow with the list of allowed statuses.
    """

    model_config = ConfigDict(frozen=True)

    status: str
    expected_status: Optional[str] = None
    notes: str = ""
    lines: List[OrderLineUpdateDTO] = []
    carrier: str = ""
    tracking_number: str = ""
    shipment_proof_key: str = ""
    reception_proof_key: str = ""
    non_conformities: List[NonConformityDTO] = []

    def payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"status", "notes"})
