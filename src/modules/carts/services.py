"""Cart service layer (use cases).

Business rules enforced:
- Only Station users own carts; the cart is the one Draft of the
  actor's station.
- Consolidation turns the Draft cart into one purchase order per
  supplier plus a master order wrapping them, freezing the supplier's
  price and packaging terms on every order line.
- A line whose supplier has no terms for the product is skipped and
  logged; a cart left with nothing to order is rejected as empty.
- Consolidation is one atomic unit with the Draft cart row locked, so a
  cart is consolidated at most once even under concurrent validations.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List
from uuid import UUID

import structlog
from django.db import transaction

from modules.carts.exceptions import CartLineNotFound, EmptyCartError, ReferenceNotFound
from modules.core.actors import Actor, Role
from modules.core.exceptions import BadRequestError, ForbiddenError
from modules.orders.aggregation import aggregate
from modules.orders.events import MasterOrderCreated

if TYPE_CHECKING:
    from modules.carts.dtos import UpsertCartLineDTO
    from modules.carts.models import Cart, CartLine
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.catalog.repositories.interfaces import IReferenceDataGateway
    from modules.orders.models import MasterOrder, PurchaseOrder
    from modules.orders.repositories.interfaces import (
        IMasterOrderRepository,
        IPurchaseOrderRepository,
    )

logger = structlog.get_logger(__name__)


class CartService:
    """Application service for cart use cases.

    Receives repositories and the reference data gateway via constructor
    injection (DIP).
    """

    def __init__(
        self,
        cart_repository: ICartRepository,
        reference_data: IReferenceDataGateway,
        purchase_order_repository: IPurchaseOrderRepository,
        master_order_repository: IMasterOrderRepository,
    ) -> None:
        self._cart_repo = cart_repository
        self._reference_data = reference_data
        self._order_repo = purchase_order_repository
        self._master_repo = master_order_repository

    def _station_of(self, actor: Actor) -> UUID:
        if actor.role != Role.STATION:
            raise ForbiddenError(
                "Only station users have a cart.",
                code="role_not_allowed",
                required_roles=[Role.STATION],
                actor_role=actor.role,
            )
        if actor.entity_id is None:
            raise BadRequestError(
                "The authenticated user is not attached to a station.",
                code="missing_entity",
            )
        return actor.entity_id

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_or_create_draft(self, actor: Actor) -> Cart:
        station_id = self._station_of(actor)
        if self._reference_data.get_station(str(station_id)) is None:
            raise ReferenceNotFound(
                f"Station {station_id} not found.", code="station_not_found"
            )
        return self._cart_repo.get_or_create_draft(station_id, actor)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def upsert_line(self, actor: Actor, dto: UpsertCartLineDTO) -> Cart:
        """Add a line to the Draft cart or update its quantity and date.

        Raises:
            ReferenceNotFound: product or supplier does not exist.
        """
        cart = self.get_or_create_draft(actor)

        if self._reference_data.get_product(str(dto.product_id)) is None:
            raise ReferenceNotFound(
                f"Product {dto.product_id} not found.", code="product_not_found"
            )
        if self._reference_data.get_supplier(str(dto.supplier_id)) is None:
            raise ReferenceNotFound(
                f"Supplier {dto.supplier_id} not found.", code="supplier_not_found"
            )

        self._cart_repo.upsert_line(
            cart,
            product_id=dto.product_id,
            supplier_id=dto.supplier_id,
            quantity=dto.quantity,
            desired_delivery_date=dto.desired_delivery_date,
        )
        return self._cart_repo.get_by_id(str(cart.id))

    def remove_line(self, actor: Actor, line_id: str) -> Cart:
        """Remove a line from the Draft cart.

        Raises:
            CartLineNotFound: the line is not in the actor's Draft cart.
        """
        cart = self.get_or_create_draft(actor)
        if not self._cart_repo.remove_line(cart, line_id):
            raise CartLineNotFound(f"Cart line {line_id} not found.")
        return self._cart_repo.get_by_id(str(cart.id))

    @transaction.atomic
    def consolidate(self, actor: Actor) -> MasterOrder:
        """Turn the station's Draft cart into purchase orders and a master order.

        Steps:
        1. Lock the Draft cart and partition its lines by supplier.
        2. Resolve each line's supplier terms; skip lines without terms.
        3. Create one purchase order per supplier group with priced lines.
        4. Create the master order and link every purchase order to it.
        5. Mark the cart Processed and link it to the master order.

        Raises:
            EmptyCartError: no Draft cart, no lines, or no priced line.
        """
        station_id = self._station_of(actor)
        log = logger.bind(station_id=str(station_id), actor_id=actor.id)

        cart = self._cart_repo.get_draft_for_update(station_id)
        lines: List[CartLine] = list(cart.lines.all()) if cart else []
        if cart is None or not lines:
            log.warning("cart.consolidation_rejected", reason="empty")
            raise EmptyCartError("The cart is empty.")

        log = log.bind(cart_id=str(cart.id), line_count=len(lines))

        groups = self._priced_groups(lines, log)
        if not groups:
            log.warning("cart.consolidation_rejected", reason="no_priced_lines")
            raise EmptyCartError(
                "No line of the cart has supplier terms.",
                code="no_priced_lines",
                skipped_lines=len(lines),
            )

        orders: List[PurchaseOrder] = [
            self._order_repo.create(
                {"station_id": station_id, "supplier_id": supplier_id, "lines": priced},
                actor,
            )
            for supplier_id, priced in groups.items()
        ]

        master = self._master_repo.create(station_id, actor)
        self._order_repo.attach_to_master([order.id for order in orders], master.id)

        master.total_amount = sum(
            (order.total_amount for order in orders), Decimal("0.00")
        )
        master.aggregate_status = aggregate(order.status for order in orders)
        master.add_domain_event(
            MasterOrderCreated(
                aggregate_id=master.id,
                reference=master.reference,
                station_id=str(station_id),
                purchase_order_ids=[str(order.id) for order in orders],
                total_amount=master.total_amount,
            )
        )
        self._master_repo.save(master)

        self._cart_repo.mark_processed(cart, master.id)

        log.info(
            "cart.consolidated",
            master_order_id=str(master.id),
            purchase_orders=len(orders),
            total=str(master.total_amount),
        )
        return self._master_repo.get_by_id(str(master.id))

    def _priced_groups(
        self, lines: List[CartLine], log: Any
    ) -> Dict[UUID, List[Dict[str, Any]]]:
        groups: Dict[UUID, List[Dict[str, Any]]] = {}
        for line in lines:
            terms = self._reference_data.get_supplier_terms_for_product(
                str(line.product_id), str(line.supplier_id)
            )
            if terms is None:
                log.warning(
                    "cart.line_skipped",
                    line_id=str(line.id),
                    product_id=str(line.product_id),
                    supplier_id=str(line.supplier_id),
                )
                continue
            groups.setdefault(line.supplier_id, []).append(
                {
                    "product_id": line.product_id,
                    "quantity": line.quantity,
                    "unit_price": terms.unit_price,
                    "packaging_unit": terms.packaging_unit,
                    "quantity_per_package": terms.quantity_per_package,
                    "supplier_reference": terms.supplier_reference,
                    "desired_delivery_date": line.desired_delivery_date,
                }
            )
        return groups
