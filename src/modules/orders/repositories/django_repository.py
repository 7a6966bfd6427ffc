"""Django ORM implementations of the order repositories.

Reads eager-load the children a serializer needs (lines with product,
non-conformities, status history) to avoid N+1 queries.  Look-ups return
``None`` for unknown or malformed ids; the service layer decides how to
translate a missing entity.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q

from modules.core.actors import Actor
from modules.core.outbox import record_events
from modules.orders.constants import INITIAL_STATUS, OUTBOX_TOPIC
from modules.orders.models import (
    MasterOrder,
    NonConformity,
    OrderLine,
    OrderStatusHistory,
    PurchaseOrder,
)
from modules.orders.repositories.interfaces import (
    IMasterOrderRepository,
    IPurchaseOrderRepository,
)
from modules.orders.workflow import TransitionChanges

logger = structlog.get_logger(__name__)

_ORDER_PREFETCH = ("lines__product", "non_conformities", "status_history")


class PurchaseOrderDjangoRepository(IPurchaseOrderRepository):
    """Concrete PurchaseOrder repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any], actor: Actor) -> PurchaseOrder:
        order = PurchaseOrder(
            station_id=data["station_id"],
            supplier_id=data["supplier_id"],
            master_order_id=data.get("master_order_id"),
            status=INITIAL_STATUS,
            created_by=actor.id,
        )
        order.save()

        total = Decimal("0.00")
        lines = data.get("lines", [])
        for line_data in lines:
            line = OrderLine(
                purchase_order=order,
                product_id=line_data["product_id"],
                quantity=line_data["quantity"],
                unit_price=line_data["unit_price"],
                packaging_unit=line_data["packaging_unit"],
                quantity_per_package=line_data["quantity_per_package"],
                supplier_reference=line_data.get("supplier_reference", ""),
                desired_delivery_date=line_data.get("desired_delivery_date"),
            )
            line.save()
            total += line.subtotal

        order.total_amount = total
        order.save(update_fields=["total_amount"])

        self.add_history(order.id, None, INITIAL_STATUS, actor, notes="Order registered")

        log = logger.bind(order_id=str(order.id), line_count=len(lines))
        log.info("order.created", order_number=order.order_number, total=str(total))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[PurchaseOrder]:
        try:
            return (
                PurchaseOrder.objects.select_related("master_order")
                .prefetch_related(*_ORDER_PREFETCH)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[PurchaseOrder]:
        """Lock the order row; children are prefetched after the lock is held."""
        try:
            return (
                PurchaseOrder.objects.select_for_update()
                .prefetch_related(*_ORDER_PREFETCH)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[PurchaseOrder]:
        """List orders, newest first.

        Supported filter keys: ``station_id``, ``supplier_id``,
        ``master_order_id``, ``status``.
        """
        queryset = PurchaseOrder.objects.prefetch_related(*_ORDER_PREFETCH)
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @transaction.atomic
    def apply_transition(
        self,
        order: PurchaseOrder,
        old_status: str,
        changes: TransitionChanges,
        actor: Actor,
        notes: str = "",
    ) -> PurchaseOrder:
        order.save(update_fields=["status", *changes.order_fields])
        if changes.lines:
            OrderLine.objects.bulk_update(changes.lines, changes.line_fields)
        for non_conformity in changes.non_conformities:
            non_conformity.save()
        self.add_history(order.id, old_status, order.status, actor, notes=notes)
        record_events(order, OUTBOX_TOPIC)
        return order

    @transaction.atomic
    def discard(self, order: PurchaseOrder) -> None:
        order_id = order.id
        record_events(order, OUTBOX_TOPIC)
        order.delete()
        logger.info("order.deleted", order_id=str(order_id))

    def add_history(
        self,
        order_id: UUID,
        old_status: Optional[str],
        new_status: str,
        actor: Actor,
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            purchase_order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            actor_id=actor.id,
            actor_role=actor.role,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history

    def add_non_conformity(self, non_conformity: NonConformity) -> NonConformity:
        non_conformity.save()
        logger.info(
            "order.non_conformity_added",
            order_id=str(non_conformity.purchase_order_id),
            stage=non_conformity.stage,
            photos=len(non_conformity.photo_keys),
        )
        return non_conformity

    def attach_to_master(self, order_ids: Sequence[UUID], master_order_id: UUID) -> int:
        return PurchaseOrder.objects.filter(id__in=list(order_ids)).update(
            master_order_id=master_order_id
        )


class MasterOrderDjangoRepository(IMasterOrderRepository):
    """Concrete MasterOrder repository backed by Django ORM."""

    def create(self, station_id: UUID, actor: Actor) -> MasterOrder:
        master_order = MasterOrder(station_id=station_id, created_by=actor.id)
        master_order.save()
        logger.info(
            "master_order.created",
            master_order_id=str(master_order.id),
            reference=master_order.reference,
        )
        return master_order

    def get_by_id(self, id: str) -> Optional[MasterOrder]:
        try:
            return (
                MasterOrder.objects.prefetch_related("purchase_orders")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[MasterOrder]:
        try:
            return MasterOrder.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[MasterOrder]:
        """List master orders, newest first.  Filter key: ``station_id``."""
        queryset = MasterOrder.objects.prefetch_related("purchase_orders")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: MasterOrder) -> MasterOrder:
        entity.save()
        events = record_events(entity, OUTBOX_TOPIC)
        logger.info(
            "master_order.saved",
            master_order_id=str(entity.id),
            event_count=len(events),
        )
        return entity

    def lock_children(self, master_order_id: UUID) -> List[PurchaseOrder]:
        return list(
            PurchaseOrder.objects.select_for_update()
            .filter(master_order_id=master_order_id)
            .prefetch_related("non_conformities")
            .order_by("created_at", "id")
        )

    def child_summary(self, master_order_id: UUID) -> List[Tuple[str, Decimal]]:
        return list(
            PurchaseOrder.objects.filter(master_order_id=master_order_id).values_list(
                "status", "total_amount"
            )
        )

    def store_aggregate(
        self,
        master_order_id: UUID,
        status: str,
        total_amount: Decimal,
        *,
        read_status: str,
        read_total: Decimal,
    ) -> bool:
        updated = (
            MasterOrder.objects.filter(id=master_order_id)
            .filter(Q(aggregate_status=read_status, total_amount=read_total))
            .filter(~Q(aggregate_status=status) | ~Q(total_amount=total_amount))
            .update(aggregate_status=status, total_amount=total_amount)
        )
        return bool(updated)

    @transaction.atomic
    def delete_group(self, master_order: MasterOrder) -> List[UUID]:
        child_ids = list(
            PurchaseOrder.objects.filter(master_order_id=master_order.id).values_list(
                "id", flat=True
            )
        )
        master_order_id = master_order.id
        PurchaseOrder.objects.filter(id__in=child_ids).delete()
        master_order.delete()
        record_events(master_order, OUTBOX_TOPIC)
        logger.info(
            "master_order.records_deleted",
            master_order_id=str(master_order_id),
            purchase_orders=len(child_ids),
        )
        return child_ids
