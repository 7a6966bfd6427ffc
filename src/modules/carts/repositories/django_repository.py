"""Django ORM implementation of the Cart repository."""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from modules.carts.models import Cart, CartLine, CartStatus
from modules.carts.repositories.interfaces import ICartRepository
from modules.core.actors import Actor

logger = structlog.get_logger(__name__)

_LINE_PREFETCH = ("lines__product", "lines__supplier")


class CartDjangoRepository(ICartRepository):
    """Concrete Cart repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Cart]:
        try:
            return Cart.objects.prefetch_related(*_LINE_PREFETCH).filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_draft(self, station_id: UUID) -> Optional[Cart]:
        return (
            Cart.objects.prefetch_related(*_LINE_PREFETCH)
            .filter(station_id=station_id, status=CartStatus.DRAFT)
            .first()
        )

    def get_draft_for_update(self, station_id: UUID) -> Optional[Cart]:
        return (
            Cart.objects.select_for_update()
            .prefetch_related(*_LINE_PREFETCH)
            .filter(station_id=station_id, status=CartStatus.DRAFT)
            .first()
        )

    def get_or_create_draft(self, station_id: UUID, actor: Actor) -> Cart:
        cart = self.get_draft(station_id)
        if cart is not None:
            return cart
        try:
            with transaction.atomic():
                cart = Cart.objects.create(station_id=station_id, created_by=actor.id)
        except IntegrityError:
            # Another request created the draft first.
            existing = self.get_draft(station_id)
            if existing is None:
                raise
            return existing
        logger.info("cart.created", cart_id=str(cart.id), station_id=str(station_id))
        return cart

    @transaction.atomic
    def upsert_line(
        self,
        cart: Cart,
        product_id: UUID,
        supplier_id: UUID,
        quantity: int,
        desired_delivery_date: Optional[date],
    ) -> CartLine:
        line, created = CartLine.objects.update_or_create(
            cart=cart,
            product_id=product_id,
            supplier_id=supplier_id,
            defaults={
                "quantity": quantity,
                "desired_delivery_date": desired_delivery_date,
            },
        )
        logger.info(
            "cart.line_added" if created else "cart.line_updated",
            cart_id=str(cart.id),
            line_id=str(line.id),
            quantity=quantity,
        )
        return line

    @transaction.atomic
    def remove_line(self, cart: Cart, line_id: str) -> bool:
        try:
            deleted, _ = CartLine.objects.filter(cart=cart, id=line_id).delete()
        except (ValueError, ValidationError):
            return False
        if deleted:
            logger.info("cart.line_removed", cart_id=str(cart.id), line_id=str(line_id))
        return bool(deleted)

    def mark_processed(self, cart: Cart, master_order_id: UUID) -> Cart:
        cart.status = CartStatus.PROCESSED
        cart.master_order_id = master_order_id
        cart.processed_at = timezone.now()
        cart.save(update_fields=["status", "master_order", "processed_at"])
        return cart
