"""Error taxonomy shared by every module.

Services raise these; views catch ``DomainError`` at the operation
boundary and render ``to_dict()`` with ``status_code``.  ``context``
carries the details of the violated rule (current vs. required status,
required roles vs. actor role, missing payload fields) so clients can
show an actionable message.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for business-rule violations."""

    status_code = 400
    default_code = "error"

    def __init__(self, message: str, *, code: str | None = None, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.context}


class NotFoundError(DomainError):
    """The referenced cart, purchase order or master order does not exist."""

    status_code = 404
    default_code = "not_found"


class BadRequestError(DomainError):
    """Malformed request: empty cart, missing payload, unknown status."""

    status_code = 400
    default_code = "bad_request"


class ForbiddenError(DomainError):
    """Role or entity-ownership mismatch."""

    status_code = 403
    default_code = "forbidden"


class ConflictError(DomainError):
    """The record is not in the state the caller expected."""

    status_code = 409
    default_code = "conflict"
