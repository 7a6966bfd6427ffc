"""Unit tests for actor resolution and role gates."""

from __future__ import annotations

from types import SimpleNamespace
from uuid import uuid4

import pytest
from rest_framework_simplejwt.models import TokenUser
from rest_framework_simplejwt.tokens import AccessToken

from modules.core.actors import BACK_OFFICE_ROLES, Actor, Role, actor_from_user
from modules.core.exceptions import ForbiddenError
from modules.core.permissions import HasRole, role_permission

pytestmark = pytest.mark.unit


def _user(**claims) -> TokenUser:
    token = AccessToken()
    for name, value in claims.items():
        token[name] = value
    return TokenUser(token)


class TestActorFromUser:
    def test_station_actor(self):
        station_id = uuid4()
        actor = actor_from_user(_user(user_id="u-1", role="Station", entity_id=str(station_id)))
        assert actor == Actor(id="u-1", role=Role.STATION, entity_id=station_id)
        assert actor.is_back_office is False

    @pytest.mark.parametrize("role", ["Manager", "Handler", "Admin"])
    def test_back_office_roles(self, role):
        actor = actor_from_user(_user(user_id="u-1", role=role))
        assert actor.is_back_office is True
        assert actor.entity_id is None

    def test_unknown_role_is_forbidden(self):
        with pytest.raises(ForbiddenError) as exc_info:
            actor_from_user(_user(user_id="u-1", role="Platform"))
        assert exc_info.value.code == "unknown_role"
        assert exc_info.value.context["actor_role"] == "Platform"

    def test_missing_role_is_forbidden(self):
        with pytest.raises(ForbiddenError):
            actor_from_user(_user(user_id="u-1"))

    def test_malformed_entity_is_forbidden(self):
        with pytest.raises(ForbiddenError) as exc_info:
            actor_from_user(_user(user_id="u-1", role="Supplier", entity_id="nope"))
        assert exc_info.value.code == "invalid_entity"

    def test_principal_without_token(self):
        with pytest.raises(ForbiddenError) as exc_info:
            actor_from_user(SimpleNamespace())
        assert exc_info.value.code == "no_claims"

    def test_back_office_roles_exclude_entities(self):
        assert Role.STATION not in BACK_OFFICE_ROLES
        assert Role.SUPPLIER not in BACK_OFFICE_ROLES


class TestRolePermission:
    def _request(self, role):
        return SimpleNamespace(user=_user(user_id="u-1", role=role))

    def test_admits_listed_roles(self):
        permission = role_permission(Role.STATION, Role.MANAGER)()
        assert permission.has_permission(self._request("Station"), None) is True
        assert permission.has_permission(self._request("Manager"), None) is True

    def test_rejects_other_roles(self):
        permission = role_permission(Role.STATION)()
        assert permission.has_permission(self._request("Supplier"), None) is False

    def test_rejects_anonymous(self):
        permission = role_permission(Role.STATION)()
        assert permission.has_permission(SimpleNamespace(user=None), None) is False

    def test_generated_class_is_has_role(self):
        assert issubclass(role_permission(Role.ADMIN), HasRole)
