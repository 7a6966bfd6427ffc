"""Event handlers for purchase order and master order events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    MasterOrderCreated,
    MasterOrderDeleted,
    PurchaseOrderCancelled,
    PurchaseOrderStatusChanged,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class MasterOrderCreatedHandler(IEventHandler[MasterOrderCreated]):
    def handle(self, event: MasterOrderCreated) -> None:
        logger.info(
            "event.master_order_created",
            master_order_id=str(event.aggregate_id),
            reference=event.reference,
            purchase_orders=len(event.purchase_order_ids),
        )


class PurchaseOrderStatusChangedHandler(IEventHandler[PurchaseOrderStatusChanged]):
    def handle(self, event: PurchaseOrderStatusChanged) -> None:
        logger.info(
            "event.purchase_order_status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )


class PurchaseOrderCancelledHandler(IEventHandler[PurchaseOrderCancelled]):
    def handle(self, event: PurchaseOrderCancelled) -> None:
        logger.info(
            "event.purchase_order_cancelled",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
        )


class MasterOrderDeletedHandler(IEventHandler[MasterOrderDeleted]):
    def handle(self, event: MasterOrderDeleted) -> None:
        logger.info(
            "event.master_order_deleted",
            master_order_id=str(event.aggregate_id),
            reference=event.reference,
            documents=event.document_count,
            pending_documents=len(event.pending_document_keys),
        )


master_order_created_handler = MasterOrderCreatedHandler()
purchase_order_status_changed_handler = PurchaseOrderStatusChangedHandler()
purchase_order_cancelled_handler = PurchaseOrderCancelledHandler()
master_order_deleted_handler = MasterOrderDeletedHandler()

SUBSCRIPTIONS = {
    MasterOrderCreated: master_order_created_handler,
    PurchaseOrderStatusChanged: purchase_order_status_changed_handler,
    PurchaseOrderCancelled: purchase_order_cancelled_handler,
    MasterOrderDeleted: master_order_deleted_handler,
}
