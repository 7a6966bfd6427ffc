"""Reference data: stations, suppliers, products and supplier terms.

This module is read by carts and orders through
``IReferenceDataGateway``; nothing in the procurement workflow writes to
it.  ``SupplierProduct`` holds the price and packaging terms a supplier
applies to a product; those terms are copied onto order lines at
consolidation time and never read back afterwards.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class Station(BaseModel):
    """Purchasing site originating carts and receiving goods."""

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=255)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "stations"
        ordering = ["code"]

    def save(self, *args, **kwargs) -> None:
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class Supplier(BaseModel):
    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=255)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "suppliers"
        ordering = ["code"]

    def save(self, *args, **kwargs) -> None:
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class Product(BaseModel):
    """Packaging article.  ``sku`` is normalised to uppercase on save."""

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "catalog_products"
        ordering = ["name"]

    def save(self, *args, **kwargs) -> None:
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"


class SupplierProduct(BaseModel):
    """Price and packaging terms of one supplier for one product."""

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.CASCADE,
        related_name="terms",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="supplier_terms",
    )
    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    packaging_unit = models.CharField(max_length=32, default="unit")
    quantity_per_package = models.PositiveIntegerField(default=1)
    supplier_reference = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        db_table = "supplier_products"
        constraints = [
            models.UniqueConstraint(
                fields=["supplier", "product"],
                name="supplier_products_unique_pair",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_price__gt=0),
                name="supplier_products_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity_per_package__gte=1),
                name="supplier_products_package_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.supplier_id}:{self.product_id} @ {self.unit_price}"
