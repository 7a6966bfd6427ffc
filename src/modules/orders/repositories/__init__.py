"""Order repositories package."""

from modules.orders.repositories.django_repository import (
    MasterOrderDjangoRepository,
    PurchaseOrderDjangoRepository,
)
from modules.orders.repositories.interfaces import (
    IMasterOrderRepository,
    IPurchaseOrderRepository,
)

__all__ = [
    "IMasterOrderRepository",
    "IPurchaseOrderRepository",
    "MasterOrderDjangoRepository",
    "PurchaseOrderDjangoRepository",
]
