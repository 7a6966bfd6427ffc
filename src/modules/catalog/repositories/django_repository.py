"""Django ORM implementation of the reference data gateway."""

from __future__ import annotations

from typing import Optional

from django.core.exceptions import ValidationError

from modules.catalog.dtos import SupplierTerms
from modules.catalog.models import Product, Station, Supplier, SupplierProduct
from modules.catalog.repositories.interfaces import IReferenceDataGateway


class ReferenceDataDjangoGateway(IReferenceDataGateway):
    def get_station(self, id: str) -> Optional[Station]:
        try:
            return Station.objects.filter(id=id, is_active=True).first()
        except (ValueError, ValidationError):
            return None

    def get_supplier(self, id: str) -> Optional[Supplier]:
        try:
            return Supplier.objects.filter(id=id, is_active=True).first()
        except (ValueError, ValidationError):
            return None

    def get_product(self, id: str) -> Optional[Product]:
        try:
            return Product.objects.filter(id=id, is_active=True).first()
        except (ValueError, ValidationError):
            return None

    def get_supplier_terms_for_product(
        self, product_id: str, supplier_id: str
    ) -> Optional[SupplierTerms]:
        try:
            terms = SupplierProduct.objects.filter(
                product_id=product_id,
                supplier_id=supplier_id,
                supplier__is_active=True,
            ).first()
        except (ValueError, ValidationError):
            return None
        if terms is None:
            return None
        return SupplierTerms.from_model(terms)
