"""Purchase order and master order repository interfaces.

The service layer depends exclusively on these contracts.  Every
method that writes more than one row expects to run inside the
caller's ``transaction.atomic`` block.
"""

from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.core.actors import Actor
    from modules.orders.models import (
        MasterOrder,
        NonConformity,
        OrderStatusHistory,
        PurchaseOrder,
    )
    from modules.orders.workflow import TransitionChanges


class IPurchaseOrderRepository(IRepository["PurchaseOrder"]):
    """Repository contract for the PurchaseOrder aggregate.

    The aggregate includes its ``OrderLine``, ``NonConformity`` and
    ``OrderStatusHistory`` children.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any], actor: Actor) -> PurchaseOrder:
        """Create an order with its lines and the registration history entry.

        ``data`` keys: ``station_id``, ``supplier_id``, ``master_order_id``
        (optional) and ``lines``, a list of dicts carrying the frozen
        supplier terms (``product_id``, ``quantity``, ``unit_price``,
        ``packaging_unit``, ``quantity_per_package``,
        ``supplier_reference``, ``desired_delivery_date``).
        """

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[PurchaseOrder]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[PurchaseOrder]:
        """List orders matching *filters* (``station_id``, ``supplier_id``)."""

    @abstractmethod
    def apply_transition(
        self,
        order: PurchaseOrder,
        old_status: str,
        changes: TransitionChanges,
        actor: Actor,
        notes: str = "",
    ) -> PurchaseOrder:
        """Persist a transition: order fields, lines, non-conformities, history."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        old_status: Optional[str],
        new_status: str,
        actor: Actor,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Append an entry to the order's audit trail."""

    @abstractmethod
    def discard(self, order: PurchaseOrder) -> None:
        """Record the order's pending events, then delete it with its children."""

    @abstractmethod
    def add_non_conformity(self, non_conformity: NonConformity) -> NonConformity:
        """Persist a non-conformity on an existing order."""

    @abstractmethod
    def attach_to_master(self, order_ids: Sequence[UUID], master_order_id: UUID) -> int:
        """Link the given orders to their master order."""


class IMasterOrderRepository(IRepository["MasterOrder"]):
    """Repository contract for the MasterOrder aggregate."""

    @abstractmethod
    def create(self, station_id: UUID, actor: Actor) -> MasterOrder:
        """Create an empty master order for a station."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[MasterOrder]:
        """Retrieve a master order with a row-level lock."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[MasterOrder]:
        """List master orders, optionally restricted to one ``station_id``."""

    @abstractmethod
    def save(self, entity: MasterOrder) -> MasterOrder:
        """Persist the master order and record its pending events."""

    @abstractmethod
    def lock_children(self, master_order_id: UUID) -> List[PurchaseOrder]:
        """Lock and return every child order, with non-conformities prefetched."""

    @abstractmethod
    def child_summary(self, master_order_id: UUID) -> List[Tuple[str, Decimal]]:
        """Return ``(status, total_amount)`` for every child order."""

    @abstractmethod
    def store_aggregate(
        self,
        master_order_id: UUID,
        status: str,
        total_amount: Decimal,
        *,
        read_status: str,
        read_total: Decimal,
    ) -> bool:
        """Write the cached aggregate only if it differs from the stored one.

        The row is left alone unless it still holds ``read_status`` and
        ``read_total``, the values the caller computed its correction from.
        Returns ``True`` when a row was corrected.
        """

    @abstractmethod
    def delete_group(self, master_order: MasterOrder) -> List[UUID]:
        """Delete every child order, then the master order itself.

        Returns the ids of the deleted child orders.
        """
