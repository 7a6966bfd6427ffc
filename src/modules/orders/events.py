"""Domain events for purchase orders and master orders."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class MasterOrderCreated(DomainEvent):
    """Raised when a cart is consolidated into a master order."""

    reference: str = ""
    station_id: str = ""
    purchase_order_ids: List[str] = field(default_factory=list)
    total_amount: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class PurchaseOrderStatusChanged(DomainEvent):
    old_status: str = ""
    new_status: str = ""
    actor_id: str = ""
    actor_role: str = ""
    master_order_id: str = ""


@dataclass(frozen=True)
class PurchaseOrderCancelled(DomainEvent):
    order_number: str = ""
    master_order_id: str = ""


@dataclass(frozen=True)
class MasterOrderDeleted(DomainEvent):
    """Raised once the records of a master order group are gone.

    ``pending_document_keys`` lists the documents the storage could not
    remove synchronously; they are handed to the purge task.
    """

    reference: str = ""
    purchase_order_ids: List[str] = field(default_factory=list)
    document_count: int = 0
    pending_document_keys: List[str] = field(default_factory=list)
