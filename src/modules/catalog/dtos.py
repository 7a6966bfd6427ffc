"""Read-side DTOs handed out by the reference data gateway."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from modules.catalog.models import SupplierProduct


class SupplierTerms(BaseModel):
    """Point-in-time copy of a supplier's terms for one product.

    Frozen so the consolidator cannot mutate what it read.
    """

    model_config = ConfigDict(frozen=True)

    supplier_id: UUID
    product_id: UUID
    unit_price: Decimal
    packaging_unit: str
    quantity_per_package: int
    supplier_reference: str = ""

    @classmethod
    def from_model(cls, terms: SupplierProduct) -> SupplierTerms:
        return cls(
            supplier_id=terms.supplier_id,
            product_id=terms.product_id,
            unit_price=terms.unit_price,
            packaging_unit=terms.packaging_unit,
            quantity_per_package=terms.quantity_per_package,
            supplier_reference=terms.supplier_reference,
        )
