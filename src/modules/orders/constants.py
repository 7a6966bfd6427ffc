"""Purchase order domain constants.

The lifecycle is a strict sequence; ``STATUS_RANK`` gives the total order
used both to reject skipped or reversed transitions and to compute the
aggregate status of a master order.
"""

from django.db import models


class PurchaseOrderStatus(models.TextChoices):
    REGISTERED = "REGISTERED", "Registered"
    CONFIRMED = "CONFIRMED", "Confirmed"
    SHIPPED = "SHIPPED", "Shipped"
    RECEIVED = "RECEIVED", "Received"
    CLOSED = "CLOSED", "Closed"
    INVOICED = "INVOICED", "Invoiced"
    ARCHIVED = "ARCHIVED", "Archived"


STATUS_SEQUENCE: tuple[str, ...] = (
    PurchaseOrderStatus.REGISTERED,
    PurchaseOrderStatus.CONFIRMED,
    PurchaseOrderStatus.SHIPPED,
    PurchaseOrderStatus.RECEIVED,
    PurchaseOrderStatus.CLOSED,
    PurchaseOrderStatus.INVOICED,
    PurchaseOrderStatus.ARCHIVED,
)

STATUS_RANK: dict[str, int] = {status: rank for rank, status in enumerate(STATUS_SEQUENCE)}

INITIAL_STATUS = PurchaseOrderStatus.REGISTERED


class NonConformityStage(models.TextChoices):
    RECEPTION = "RECEPTION", "At reception"
    POST_RECEPTION = "POST_RECEPTION", "After reception"


ORDER_NUMBER_MAX_RETRIES = 5

PURCHASE_ORDER_PREFIX = "PO"
MASTER_ORDER_PREFIX = "MO"

OUTBOX_TOPIC = "orders"
