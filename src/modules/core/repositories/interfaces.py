"""Repository base contract.

Services receive repositories through their constructor and only ever
talk to these abstractions.  Writes are aggregate-specific (a cart gains
lines, an order is transitioned, a master order group is torn down), so
the shared contract is limited to the look-up every aggregate needs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Look-up contract shared by the Cart, PurchaseOrder and MasterOrder
    repositories.

    ``get_by_id`` returns ``None`` for an unknown **or malformed** id so the
    service can raise its own not-found error.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Load the aggregate with the children its serializer renders."""
