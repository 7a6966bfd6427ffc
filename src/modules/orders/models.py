"""MasterOrder, PurchaseOrder and their owned records.

Business rules implemented:
- One purchase order per (station, supplier) group of a consolidated cart.
- Order lines carry a frozen copy of the supplier's price and packaging
  terms; ``subtotal`` is always ``quantity * unit_price``.
- Every status change, including the initial registration, appends an
  ``OrderStatusHistory`` record.
- Shipment and reception information is stored on the purchase order;
  documents are referenced by storage key, never by content.
- A master order is removed only together with all its purchase orders;
  the ``PROTECT`` foreign key forbids deleting it while children remain.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any, Iterable, List

import structlog
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    INITIAL_STATUS,
    MASTER_ORDER_PREFIX,
    ORDER_NUMBER_MAX_RETRIES,
    PURCHASE_ORDER_PREFIX,
    NonConformityStage,
    PurchaseOrderStatus,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


def generate_number(prefix: str) -> str:
    """Human-readable identifier: ``<prefix>-YYYYMMDD-XXXXXX``."""
    now = timezone.now()
    suffix = secrets.token_hex(3).upper()
    return f"{prefix}-{now:%Y%m%d}-{suffix}"


def _unique_number(model: type[models.Model], field: str, prefix: str) -> str:
    for _ in range(ORDER_NUMBER_MAX_RETRIES):
        candidate = generate_number(prefix)
        if not model._default_manager.filter(**{field: candidate}).exists():
            return candidate
    raise RuntimeError(
        f"Failed to generate unique {field} after "
        f"{ORDER_NUMBER_MAX_RETRIES} attempts"
    )


def distinct_keys(keys: Iterable[str]) -> List[str]:
    """Drop blanks and duplicates, keeping the first occurrence."""
    seen: set[str] = set()
    result: List[str] = []
    for key in keys:
        if key and key not in seen:
            seen.add(key)
            result.append(key)
    return result


class MasterOrder(DomainEventMixin, BaseModel):
    """Group of purchase orders produced by one cart consolidation.

    ``aggregate_status`` and ``total_amount`` are cached derived values;
    they are recomputed after every child transition and healed on read.
    """

    reference: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    station: models.ForeignKey = models.ForeignKey(
        "catalog.Station",
        on_delete=models.PROTECT,
        related_name="master_orders",
    )
    aggregate_status: models.CharField = models.CharField(
        max_length=20,
        choices=PurchaseOrderStatus.choices,
        default=INITIAL_STATUS,
    )
    total_amount: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    created_by: models.CharField = models.CharField(max_length=255)

    class Meta:
        db_table = "master_orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["station", "-created_at"], name="mo_station_created_idx"),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.reference:
            self.reference = _unique_number(
                MasterOrder, "reference", MASTER_ORDER_PREFIX
            )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.reference} ({self.aggregate_status})"


class PurchaseOrder(DomainEventMixin, BaseModel):
    """Supplier-scoped order with its own delivery lifecycle.

    ``order_number`` is generated on first save (``PO-YYYYMMDD-XXXXXX``).
    ``status`` is written only by the transition workflow.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    master_order: models.ForeignKey = models.ForeignKey(
        MasterOrder,
        on_delete=models.PROTECT,
        related_name="purchase_orders",
        null=True,
        blank=True,
    )
    station: models.ForeignKey = models.ForeignKey(
        "catalog.Station",
        on_delete=models.PROTECT,
        related_name="purchase_orders",
    )
    supplier: models.ForeignKey = models.ForeignKey(
        "catalog.Supplier",
        on_delete=models.PROTECT,
        related_name="purchase_orders",
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=PurchaseOrderStatus.choices,
        default=INITIAL_STATUS,
    )
    total_amount: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    created_by: models.CharField = models.CharField(max_length=255)

    carrier: models.CharField = models.CharField(max_length=120, blank=True, default="")
    tracking_number: models.CharField = models.CharField(
        max_length=120, blank=True, default=""
    )
    shipment_proof_key: models.CharField = models.CharField(
        max_length=512, blank=True, default=""
    )
    shipped_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    reception_proof_key: models.CharField = models.CharField(
        max_length=512, blank=True, default=""
    )
    received_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "purchase_orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="po_status_idx"),
            models.Index(fields=["supplier", "-created_at"], name="po_supplier_created_idx"),
            models.Index(fields=["station", "-created_at"], name="po_station_created_idx"),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            self.order_number = _unique_number(
                PurchaseOrder, "order_number", PURCHASE_ORDER_PREFIX
            )
        super().save(*args, **kwargs)

    def document_keys(self) -> List[str]:
        """Shipment proof, reception proof, then every non-conformity photo."""
        keys = [self.shipment_proof_key, self.reception_proof_key]
        for non_conformity in self.non_conformities.all():
            keys.extend(non_conformity.photo_keys or [])
        return distinct_keys(keys)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderLine(BaseModel):
    """Line of a purchase order with frozen supplier terms."""

    purchase_order: models.ForeignKey = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    product: models.ForeignKey = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="order_lines",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
    )
    packaging_unit: models.CharField = models.CharField(max_length=32)
    quantity_per_package: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1
    )
    supplier_reference: models.CharField = models.CharField(
        max_length=64, blank=True, default=""
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )
    desired_delivery_date: models.DateField = models.DateField(null=True, blank=True)
    confirmed_delivery_date: models.DateField = models.DateField(null=True, blank=True)
    quantity_received: models.PositiveIntegerField = models.PositiveIntegerField(
        null=True, blank=True
    )

    class Meta:
        db_table = "order_lines"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_lines_quantity_positive",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity} ({self.subtotal})"


class NonConformity(BaseModel):
    """Discrepancy reported at reception or after it."""

    purchase_order: models.ForeignKey = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.CASCADE,
        related_name="non_conformities",
    )
    stage: models.CharField = models.CharField(
        max_length=20,
        choices=NonConformityStage.choices,
    )
    description: models.TextField = models.TextField()
    quantity_affected: models.PositiveIntegerField = models.PositiveIntegerField(default=0)
    photo_keys: models.JSONField = models.JSONField(default=list, blank=True)
    reported_by: models.CharField = models.CharField(max_length=255)

    class Meta:
        db_table = "order_non_conformities"
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.purchase_order_id} [{self.stage}] {self.description[:40]}"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail of purchase order status changes.

    ``old_status`` is ``None`` only for the registration entry written
    when the order is created.
    """

    purchase_order: models.ForeignKey = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=PurchaseOrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=20,
        choices=PurchaseOrderStatus.choices,
    )
    actor_id: models.CharField = models.CharField(max_length=255)
    actor_role: models.CharField = models.CharField(max_length=20)
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["purchase_order", "created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.purchase_order_id} : {self.old_status} -> {self.new_status}"
