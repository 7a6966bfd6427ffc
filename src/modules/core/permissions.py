"""Coarse role gates for DRF views.

Entity ownership (which station or supplier owns a record) is checked in
the service layer; these classes only reject roles that never have
access to an endpoint.
"""

from __future__ import annotations

from rest_framework.permissions import BasePermission


class HasRole(BasePermission):
    allowed_roles: frozenset[str] = frozenset()
    message = "Your role is not allowed to perform this action."

    def has_permission(self, request, view) -> bool:
        token = getattr(request.user, "token", None)
        if token is None:
            return False
        return token.get("role") in self.allowed_roles


def role_permission(*roles: str) -> type[HasRole]:
    """Return a ``HasRole`` subclass admitting only *roles*."""
    return type(
        "HasRole[" + ",".join(sorted(roles)) + "]",
        (HasRole,),
        {"allowed_roles": frozenset(roles)},
    )
