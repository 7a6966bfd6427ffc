"""Cart domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import BadRequestError, NotFoundError


class EmptyCartError(BadRequestError):
    """The draft cart has no line that can be turned into an order."""

    default_code = "empty_cart"


class CartLineNotFound(NotFoundError):
    default_code = "cart_line_not_found"


class ReferenceNotFound(NotFoundError):
    """A product or supplier referenced by a cart line does not exist."""

    default_code = "reference_not_found"
