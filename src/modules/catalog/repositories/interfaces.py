"""Reference data gateway contract.

Carts and orders only ever read reference data; the gateway is the one
seam through which they do it.  Look-ups return ``None`` for unknown or
malformed ids and leave the error translation to the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.catalog.dtos import SupplierTerms

if TYPE_CHECKING:
    from modules.catalog.models import Product, Station, Supplier


class IReferenceDataGateway(ABC):
    @abstractmethod
    def get_station(self, id: str) -> Optional["Station"]:
        """Retrieve an active station."""

    @abstractmethod
    def get_supplier(self, id: str) -> Optional["Supplier"]:
        """Retrieve an active supplier."""

    @abstractmethod
    def get_product(self, id: str) -> Optional["Product"]:
        """Retrieve an active product."""

    @abstractmethod
    def get_supplier_terms_for_product(
        self, product_id: str, supplier_id: str
    ) -> Optional[SupplierTerms]:
        """Return the supplier's current terms for the product, if any."""
