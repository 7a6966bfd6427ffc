"""Cart and CartLine models.

Business rules implemented:
- A station has at most one Draft cart at a time (conditional unique
  constraint); a processed cart is kept and a new Draft supersedes it.
- A cart line is unique per (product, supplier) within its cart; adding
  the same pair again updates the existing line.
- A cart becomes Processed exactly once, in the transaction that creates
  its master order.
"""

from __future__ import annotations

import structlog
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class CartStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    PROCESSED = "PROCESSED", "Processed"


class Cart(BaseModel):
    station: models.ForeignKey = models.ForeignKey(
        "catalog.Station",
        on_delete=models.PROTECT,
        related_name="carts",
    )
    created_by: models.CharField = models.CharField(max_length=255)
    status: models.CharField = models.CharField(
        max_length=20,
        choices=CartStatus.choices,
        default=CartStatus.DRAFT,
    )
    master_order: models.OneToOneField = models.OneToOneField(
        "orders.MasterOrder",
        on_delete=models.SET_NULL,
        related_name="cart",
        null=True,
        blank=True,
    )
    processed_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "carts"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["station"],
                condition=models.Q(status="DRAFT"),
                name="carts_one_draft_per_station",
            ),
        ]

    @property
    def is_draft(self) -> bool:
        return self.status == CartStatus.DRAFT

    def __str__(self) -> str:
        return f"Cart {self.id} ({self.status})"


class CartLine(BaseModel):
    cart: models.ForeignKey = models.ForeignKey(
        Cart,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    product: models.ForeignKey = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="cart_lines",
    )
    supplier: models.ForeignKey = models.ForeignKey(
        "catalog.Supplier",
        on_delete=models.PROTECT,
        related_name="cart_lines",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
    )
    desired_delivery_date: models.DateField = models.DateField(null=True, blank=True)

    class Meta:
        db_table = "cart_lines"
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["cart", "product", "supplier"],
                name="cart_lines_unique_product_supplier",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="cart_lines_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_id}@{self.supplier_id} x{self.quantity}"
