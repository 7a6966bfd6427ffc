"""Cart repository interface."""

from __future__ import annotations

from abc import abstractmethod
from datetime import date
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.carts.models import Cart, CartLine
    from modules.core.actors import Actor


class ICartRepository(IRepository["Cart"]):
    """Repository contract for the Cart aggregate (Cart + CartLines)."""

    @abstractmethod
    def get_draft(self, station_id: UUID) -> Optional[Cart]:
        """Return the station's Draft cart with its lines, if any."""

    @abstractmethod
    def get_draft_for_update(self, station_id: UUID) -> Optional[Cart]:
        """Return the station's Draft cart with a row-level lock."""

    @abstractmethod
    def get_or_create_draft(self, station_id: UUID, actor: Actor) -> Cart:
        """Return the station's Draft cart, creating it on first access."""

    @abstractmethod
    def upsert_line(
        self,
        cart: Cart,
        product_id: UUID,
        supplier_id: UUID,
        quantity: int,
        desired_delivery_date: Optional[date],
    ) -> CartLine:
        """Add a line, or update the existing (product, supplier) line."""

    @abstractmethod
    def remove_line(self, cart: Cart, line_id: str) -> bool:
        """Remove a line from the cart.  ``False`` if it is not there."""

    @abstractmethod
    def mark_processed(self, cart: Cart, master_order_id: UUID) -> Cart:
        """Flag the cart Processed and link it to its master order."""
