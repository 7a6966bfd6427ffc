"""Authenticated actor resolved from the identity provider's token.

Authentication mechanics live outside this service: the identity
provider signs JWTs carrying ``user_id``, ``role`` and ``entity_id``
claims, and ``JWTStatelessUserAuthentication`` exposes them on
``request.user.token``.  ``entity_id`` is the station or supplier the
user acts for; back-office roles carry none.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from django.db import models

from modules.core.exceptions import ForbiddenError


class Role(models.TextChoices):
    STATION = "Station", "Station"
    SUPPLIER = "Supplier", "Supplier"
    MANAGER = "Manager", "Manager"
    HANDLER = "Handler", "Handler"
    ADMIN = "Admin", "Admin"


BACK_OFFICE_ROLES: frozenset[str] = frozenset({Role.MANAGER, Role.HANDLER, Role.ADMIN})


@dataclass(frozen=True)
class Actor:
    id: str
    role: str
    entity_id: Optional[UUID] = None

    @property
    def is_back_office(self) -> bool:
        return self.role in BACK_OFFICE_ROLES


def actor_from_user(user: Any) -> Actor:
    """Build an ``Actor`` from an authenticated ``TokenUser``.

    Raises:
        ForbiddenError: the token carries no known role or a malformed
            entity identifier.
    """
    token = getattr(user, "token", None)
    if token is None:
        raise ForbiddenError("Authenticated principal carries no claims.", code="no_claims")

    role = token.get("role")
    if role not in Role.values:
        raise ForbiddenError(
            f"Unknown role {role!r}.", code="unknown_role", actor_role=role
        )

    raw_entity = token.get("entity_id")
    try:
        entity_id = UUID(str(raw_entity)) if raw_entity else None
    except ValueError as exc:
        raise ForbiddenError(
            "Malformed entity_id claim.", code="invalid_entity"
        ) from exc

    return Actor(id=str(token.get("user_id", "")), role=role, entity_id=entity_id)
