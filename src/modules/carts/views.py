"""Cart API views.

Every endpoint works on the Draft cart of the caller's station; there
is no cart id in the URL.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import ViewSet

from modules.carts.dtos import UpsertCartLineDTO
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.serializers import CartSerializer, UpsertCartLineSerializer
from modules.carts.services import CartService
from modules.catalog.repositories.django_repository import ReferenceDataDjangoGateway
from modules.core.actors import Role, actor_from_user
from modules.core.exceptions import DomainError
from modules.core.permissions import role_permission
from modules.core.responses import domain_error_response
from modules.orders.repositories.django_repository import (
    MasterOrderDjangoRepository,
    PurchaseOrderDjangoRepository,
)
from modules.orders.serializers import MasterOrderSerializer


class CartViewSet(ViewSet):
    permission_classes = [IsAuthenticated, role_permission(Role.STATION)]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CartService(
            cart_repository=CartDjangoRepository(),
            reference_data=ReferenceDataDjangoGateway(),
            purchase_order_repository=PurchaseOrderDjangoRepository(),
            master_order_repository=MasterOrderDjangoRepository(),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "cart_validation" if self.action == "validate" else None
        return super().get_throttles()

    def retrieve(self, request: Request) -> Response:
        """GET /api/v1/cart/"""
        try:
            actor = actor_from_user(request.user)
            cart = self._service.get_or_create_draft(actor)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(CartSerializer(cart).data)

    def add_line(self, request: Request) -> Response:
        """POST /api/v1/cart/lines/

        Adding a (product, supplier) pair already in the cart updates
        its quantity and desired delivery date.
        """
        serializer = UpsertCartLineSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = UpsertCartLineDTO(**serializer.validated_data)

        try:
            actor = actor_from_user(request.user)
            cart = self._service.upsert_line(actor, dto)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(CartSerializer(cart).data)

    def remove_line(self, request: Request, line_id: str) -> Response:
        """DELETE /api/v1/cart/lines/{line_id}/"""
        try:
            actor = actor_from_user(request.user)
            cart = self._service.remove_line(actor, str(line_id))
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(CartSerializer(cart).data)

    def validate(self, request: Request) -> Response:
        """POST /api/v1/cart/validate/

        Consolidates the Draft cart.  201 with the created master order,
        400 when there is nothing to order.
        """
        try:
            actor = actor_from_user(request.user)
            master = self._service.consolidate(actor)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(
            MasterOrderSerializer(master).data, status=status.HTTP_201_CREATED
        )
