"""Order service layer (use cases).

``PurchaseOrderService`` drives a single purchase order through its
lifecycle; ``MasterOrderService`` owns the cached aggregate of a master
order and its deletion.  All write operations are atomic: the service
defines the unit-of-work boundary and repositories run inside it.

Lock order is always purchase order rows first, then the master order
row, so a transition, a cancellation and a deletion touching the same
group cannot deadlock each other.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from modules.core.actors import Actor, Role
from modules.core.exceptions import ConflictError, DomainError, ForbiddenError
from modules.core.storage import DjangoDocumentStorage
from modules.orders.aggregation import aggregate
from modules.orders.constants import (
    INITIAL_STATUS,
    NonConformityStage,
    PurchaseOrderStatus,
)
from modules.orders.events import (
    MasterOrderDeleted,
    PurchaseOrderCancelled,
    PurchaseOrderStatusChanged,
)
from modules.orders.exceptions import MasterOrderNotFound, PurchaseOrderNotFound
from modules.orders.models import NonConformity, distinct_keys
from modules.orders.tasks import purge_documents
from modules.orders.workflow import check_transition

if TYPE_CHECKING:
    from modules.core.storage import IDocumentStorage
    from modules.orders.dtos import NonConformityDTO, TransitionOrderDTO
    from modules.orders.models import MasterOrder, PurchaseOrder
    from modules.orders.repositories.interfaces import (
        IMasterOrderRepository,
        IPurchaseOrderRepository,
    )

logger = structlog.get_logger(__name__)

NON_CONFORMITY_STATUSES = frozenset(
    {PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CLOSED}
)


def visibility_filters(actor: Actor, supplier_scoped: bool = True) -> Dict[str, Any]:
    """Repository filters restricting reads to the actor's own records.

    Raises:
        ForbiddenError: a Station or Supplier actor carries no entity.
    """
    if actor.is_back_office:
        return {}
    if actor.entity_id is None:
        raise ForbiddenError(
            "The authenticated user is not attached to a station or supplier.",
            code="missing_entity",
            actor_role=actor.role,
        )
    if actor.role == Role.SUPPLIER and supplier_scoped:
        return {"supplier_id": actor.entity_id}
    if actor.role == Role.STATION:
        return {"station_id": actor.entity_id}
    raise ForbiddenError(
        f"Role {actor.role} cannot read these records.",
        code="role_not_allowed",
        actor_role=actor.role,
    )


def _require_owning_station(order: PurchaseOrder, actor: Actor) -> None:
    if actor.role != Role.STATION:
        raise ForbiddenError(
            "Only the owning station can perform this action.",
            code="role_not_allowed",
            required_roles=[Role.STATION],
            actor_role=actor.role,
        )
    if order.station_id != actor.entity_id:
        raise ForbiddenError(
            "This purchase order belongs to another station.",
            code="not_owner",
            required_roles=[Role.STATION],
            actor_role=actor.role,
        )


class MasterOrderService:
    """Application service for master order use cases.

    Receives its repositories and the document storage via constructor
    injection (DIP).
    """

    def __init__(
        self,
        master_order_repository: IMasterOrderRepository,
        purchase_order_repository: IPurchaseOrderRepository,
        document_storage: Optional[IDocumentStorage] = None,
    ) -> None:
        self._repo = master_order_repository
        self._order_repo = purchase_order_repository
        self._storage = document_storage

    @property
    def storage(self) -> IDocumentStorage:
        if self._storage is None:
            self._storage = DjangoDocumentStorage()
        return self._storage

    # ------------------------------------------------------------------
    # Queries (self-healing)
    # ------------------------------------------------------------------

    def list_master_orders(self, actor: Actor) -> List[MasterOrder]:
        """Return the master orders visible to *actor*, healed."""
        filters = visibility_filters(actor, supplier_scoped=False)
        return [self._heal(master) for master in self._repo.list(filters)]

    def get_master_order(self, master_order_id: str, actor: Actor) -> MasterOrder:
        """Retrieve a single master order, healed.

        Raises:
            MasterOrderNotFound: absent, or owned by another station.
        """
        filters = visibility_filters(actor, supplier_scoped=False)
        master = self._repo.get_by_id(master_order_id)
        if master is None or (
            "station_id" in filters and master.station_id != filters["station_id"]
        ):
            raise MasterOrderNotFound(f"Master order {master_order_id} not found.")
        return self._heal(master)

    def _heal(self, master: MasterOrder) -> MasterOrder:
        summary = [
            (order.status, order.total_amount)
            for order in master.purchase_orders.all()
        ]
        if not summary:
            logger.warning("master_order.without_children", master_order_id=str(master.id))
            return master

        status, total = _summarize(summary)
        if status == master.aggregate_status and total == master.total_amount:
            return master

        if self._repo.store_aggregate(
            master.id,
            status,
            total,
            read_status=master.aggregate_status,
            read_total=master.total_amount,
        ):
            logger.info(
                "master_order.aggregate_healed",
                master_order_id=str(master.id),
                stored_status=master.aggregate_status,
                computed_status=status,
                stored_total=str(master.total_amount),
                computed_total=str(total),
            )
        master.aggregate_status = status
        master.total_amount = total
        return master

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def refresh_aggregate(
        self, master_order_id: UUID, actor: Optional[Actor] = None
    ) -> Optional[MasterOrder]:
        """Recompute the cached aggregate under the master order lock.

        A master order left without children is deleted; ``None`` is
        returned in that case.
        """
        master = self._repo.get_for_update(str(master_order_id))
        if master is None:
            return None

        summary = self._repo.child_summary(master.id)
        if not summary:
            master.add_domain_event(
                MasterOrderDeleted(aggregate_id=master.id, reference=master.reference)
            )
            self._repo.delete_group(master)
            logger.info(
                "master_order.deleted_empty",
                master_order_id=str(master_order_id),
                actor_id=actor.id if actor else None,
            )
            return None

        status, total = _summarize(summary)
        if status != master.aggregate_status or total != master.total_amount:
            master.aggregate_status = status
            master.total_amount = total
            master.save(update_fields=["aggregate_status", "total_amount"])
            logger.info(
                "master_order.aggregate_refreshed",
                master_order_id=str(master.id),
                aggregate_status=status,
                total=str(total),
            )
        return master

    def delete_master_order(self, master_order_id: str, actor: Actor) -> None:
        """Tear down a master order group.

        Saga steps:
        1. Collect the distinct document keys held by every child.
        2. Ask the storage to remove them in one ``remove_objects`` call.
           Keys it could not remove are handed to the ``orders.purge_documents`` task once
           the records are gone.
        3. Delete the children and the master order atomically.

        Raises:
            ForbiddenError: actor is not a back-office user.
            MasterOrderNotFound: no such master order.
        """
        if not actor.is_back_office:
            raise ForbiddenError(
                "Only back-office users can delete master orders.",
                code="role_not_allowed",
                required_roles=sorted([Role.MANAGER, Role.HANDLER, Role.ADMIN]),
                actor_role=actor.role,
            )

        master = self._repo.get_by_id(master_order_id)
        if master is None:
            raise MasterOrderNotFound(f"Master order {master_order_id} not found.")

        log = logger.bind(master_order_id=str(master.id), actor_id=actor.id)

        with transaction.atomic():
            children = self._repo.lock_children(master.id)
            master = self._repo.get_for_update(str(master.id))
            if master is None:
                raise MasterOrderNotFound(f"Master order {master_order_id} not found.")

            keys = distinct_keys(
                key for child in children for key in child.document_keys()
            )
            pending = self._remove_documents(keys, log)

            master.add_domain_event(
                MasterOrderDeleted(
                    aggregate_id=master.id,
                    reference=master.reference,
                    purchase_order_ids=[str(child.id) for child in children],
                    document_count=len(keys),
                    pending_document_keys=pending,
                )
            )
            self._repo.delete_group(master)

            if pending:
                transaction.on_commit(lambda: self._schedule_purge(pending, log))

        log.info(
            "master_order.deleted",
            purchase_orders=len(children),
            documents=len(keys),
            pending_documents=len(pending),
        )

    def _schedule_purge(self, pending: List[str], log: Any) -> None:
        """Hand leftover keys to the purge task; the deletion stands either way."""
        try:
            purge_documents.delay(pending)
        except Exception as exc:
            log.error(
                "master_order.documents_purge_failed",
                error=str(exc),
                pending_keys=pending,
            )

    def _remove_documents(self, keys: Sequence[str], log: Any) -> List[str]:
        if not keys:
            return []
        try:
            failed = list(self.storage.remove_objects(keys))
        except Exception as exc:
            log.warning(
                "master_order.documents_purge_failed",
                error=str(exc),
                pending=len(keys),
            )
            return list(keys)
        if failed:
            log.warning("master_order.documents_purge_failed", pending=len(failed))
        return failed


class PurchaseOrderService:
    """Application service for purchase order use cases."""

    def __init__(
        self,
        purchase_order_repository: IPurchaseOrderRepository,
        master_order_service: MasterOrderService,
    ) -> None:
        self._repo = purchase_order_repository
        self._master_service = master_order_service

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_orders(self, actor: Actor) -> List[PurchaseOrder]:
        return self._repo.list(visibility_filters(actor))

    def get_order(self, order_id: str, actor: Actor) -> PurchaseOrder:
        """Retrieve a single order.

        Raises:
            PurchaseOrderNotFound: absent, or owned by another entity.
        """
        filters = visibility_filters(actor)
        order = self._repo.get_by_id(order_id)
        if order is None or any(
            getattr(order, field) != value for field, value in filters.items()
        ):
            raise PurchaseOrderNotFound(f"Purchase order {order_id} not found.")
        return order

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def transition(
        self, order_id: str, dto: TransitionOrderDTO, actor: Actor
    ) -> PurchaseOrder:
        """Move an order to ``dto.status``.

        The order row stays locked (``SELECT FOR UPDATE``) until commit, so
        of two concurrent identical transitions only the first succeeds;
        the second sees the new status and is rejected.

        Raises:
            PurchaseOrderNotFound: order does not exist.
            BadRequestError: unknown target status or incomplete payload.
            ConflictError: ``expected_status`` no longer matches.
            InvalidTransitionError: target not reachable from current status.
            ForbiddenError: role or ownership mismatch.
        """
        order = self._repo.get_for_update(order_id)
        if order is None:
            raise PurchaseOrderNotFound(f"Purchase order {order_id} not found.")

        log = logger.bind(
            order_id=str(order.id),
            current_status=order.status,
            new_status=dto.status,
            actor_id=actor.id,
            actor_role=actor.role,
        )

        lines = list(order.lines.all())
        payload = dto.payload()
        try:
            rule = check_transition(order, dto.status, actor, payload, lines)
        except DomainError as exc:
            log.warning("order.transition_rejected", code=exc.code)
            raise

        old_status = order.status
        changes = rule.apply(order, lines, payload, actor, timezone.now())
        order.status = dto.status
        order.add_domain_event(
            PurchaseOrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=order.status,
                actor_id=actor.id,
                actor_role=actor.role,
                master_order_id=str(order.master_order_id or ""),
            )
        )
        self._repo.apply_transition(order, old_status, changes, actor, notes=dto.notes)

        if order.master_order_id:
            self._master_service.refresh_aggregate(order.master_order_id, actor)

        log.info("order.status_updated")
        return self._repo.get_by_id(str(order.id))

    @transaction.atomic
    def cancel_order(self, order_id: str, actor: Actor) -> None:
        """Withdraw an order that its supplier has not confirmed yet.

        The order is deleted outright; its master order is recomputed,
        or deleted when this was its last child.

        Raises:
            PurchaseOrderNotFound: order does not exist.
            ForbiddenError: actor is not the owning station.
            ConflictError: the order already left its initial status.
        """
        order = self._repo.get_for_update(order_id)
        if order is None:
            raise PurchaseOrderNotFound(f"Purchase order {order_id} not found.")

        log = logger.bind(order_id=str(order.id), current_status=order.status)
        _require_owning_station(order, actor)

        if order.status != INITIAL_STATUS:
            log.warning("order.cancel_not_allowed")
            raise ConflictError(
                f"Cannot cancel a purchase order in status {order.status}.",
                code="not_cancellable",
                current_status=order.status,
                required_status=INITIAL_STATUS,
            )

        master_order_id = order.master_order_id
        order.add_domain_event(
            PurchaseOrderCancelled(
                aggregate_id=order.id,
                order_number=order.order_number,
                master_order_id=str(master_order_id or ""),
            )
        )
        self._repo.discard(order)

        if master_order_id:
            self._master_service.refresh_aggregate(master_order_id, actor)

        log.info("order.cancelled")

    @transaction.atomic
    def report_non_conformity(
        self, order_id: str, dto: NonConformityDTO, actor: Actor
    ) -> PurchaseOrder:
        """Record a discrepancy found after reception.  Status is untouched.

        Raises:
            PurchaseOrderNotFound: order does not exist.
            ForbiddenError: actor is not the owning station.
            ConflictError: the order is not Received or Closed.
        """
        order = self._repo.get_for_update(order_id)
        if order is None:
            raise PurchaseOrderNotFound(f"Purchase order {order_id} not found.")

        _require_owning_station(order, actor)
        if order.status not in NON_CONFORMITY_STATUSES:
            raise ConflictError(
                "Non-conformities can only be reported on received orders.",
                code="not_received",
                current_status=order.status,
                required_status=sorted(NON_CONFORMITY_STATUSES),
            )

        self._repo.add_non_conformity(
            NonConformity(
                purchase_order=order,
                stage=NonConformityStage.POST_RECEPTION,
                description=dto.description,
                quantity_affected=dto.quantity_affected,
                photo_keys=list(dto.photo_keys),
                reported_by=actor.id,
            )
        )
        logger.info(
            "order.non_conformity_reported",
            order_id=str(order.id),
            actor_id=actor.id,
        )
        return self._repo.get_by_id(str(order.id))


def _summarize(summary: Sequence[Tuple[str, Decimal]]) -> Tuple[str, Decimal]:
    status = aggregate(status for status, _ in summary)
    total = sum((amount for _, amount in summary), Decimal("0.00"))
    return status, total
