"""Purchase order and master order exceptions.

Raised by the service layer; views translate them through
``modules.core.responses.domain_error_response``.
"""

from __future__ import annotations

from modules.core.exceptions import BadRequestError, NotFoundError


class PurchaseOrderNotFound(NotFoundError):
    """The purchase order does not exist or belongs to another entity."""

    default_code = "purchase_order_not_found"


class MasterOrderNotFound(NotFoundError):
    """The master order does not exist or belongs to another station."""

    default_code = "master_order_not_found"


class InvalidTransitionError(BadRequestError):
    """The target status is not reachable from the current status."""

    default_code = "invalid_transition"
