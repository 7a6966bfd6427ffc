"""Purchase order and master order API views.

Expose ``PurchaseOrderService`` and ``MasterOrderService`` over HTTP with
DRF ViewSets.  Domain errors are caught at the operation boundary and
rendered as ``{"detail", "code", ...context}``; the views never swallow
anything else.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.actors import Role, actor_from_user
from modules.core.exceptions import DomainError
from modules.core.permissions import role_permission
from modules.core.responses import domain_error_response
from modules.orders.dtos import NonConformityDTO, TransitionOrderDTO
from modules.orders.models import MasterOrder, PurchaseOrder
from modules.orders.repositories.django_repository import (
    MasterOrderDjangoRepository,
    PurchaseOrderDjangoRepository,
)
from modules.orders.serializers import (
    MasterOrderSerializer,
    NonConformityInputSerializer,
    PurchaseOrderListSerializer,
    PurchaseOrderSerializer,
    TransitionOrderSerializer,
)
from modules.orders.services import MasterOrderService, PurchaseOrderService


def build_master_order_service() -> MasterOrderService:
    return MasterOrderService(
        master_order_repository=MasterOrderDjangoRepository(),
        purchase_order_repository=PurchaseOrderDjangoRepository(),
    )


def build_purchase_order_service() -> PurchaseOrderService:
    return PurchaseOrderService(
        purchase_order_repository=PurchaseOrderDjangoRepository(),
        master_order_service=build_master_order_service(),
    )


class PurchaseOrderViewSet(GenericViewSet):
    """ViewSet for purchase order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through the
    service and repository layers.
    """

    queryset = PurchaseOrder.objects.none()
    serializer_class = PurchaseOrderSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_purchase_order_service()

    def get_permissions(self):
        if self.action in {"cancel", "non_conformities"}:
            return [IsAuthenticated(), role_permission(Role.STATION)()]
        return [IsAuthenticated(), role_permission(*Role.values)()]

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = (
            "order_transition" if self.action == "partial_update" else None
        )
        return super().get_throttles()

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/purchase-orders/"""
        try:
            actor = actor_from_user(request.user)
            orders = self._service.list_orders(actor)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(PurchaseOrderListSerializer(orders, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/purchase-orders/{pk}/"""
        try:
            actor = actor_from_user(request.user)
            order = self._service.get_order(str(pk), actor)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(PurchaseOrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status transition
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/purchase-orders/{pk}/

        Body: ``status`` plus the payload the target status requires.
        """
        serializer = TransitionOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = TransitionOrderDTO(**serializer.validated_data)

        try:
            actor = actor_from_user(request.user)
            order = self._service.transition(str(pk), dto, actor)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(PurchaseOrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Cancel / Non-conformity (dedicated actions)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/purchase-orders/{pk}/cancel/"""
        try:
            actor = actor_from_user(request.user)
            self._service.cancel_order(str(pk), actor)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response({"detail": "Purchase order cancelled.", "id": str(pk)})

    @action(detail=True, methods=["post"], url_path="non-conformities")
    def non_conformities(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/purchase-orders/{pk}/non-conformities/"""
        serializer = NonConformityInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = NonConformityDTO(**serializer.validated_data)

        try:
            actor = actor_from_user(request.user)
            order = self._service.report_non_conformity(str(pk), dto, actor)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(
            PurchaseOrderSerializer(order).data, status=status.HTTP_201_CREATED
        )


class MasterOrderViewSet(GenericViewSet):
    """Master orders: read by their station and the back office, deleted
    by the back office only."""

    queryset = MasterOrder.objects.none()
    serializer_class = MasterOrderSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_master_order_service()

    def get_permissions(self):
        if self.action == "destroy":
            return [
                IsAuthenticated(),
                role_permission(Role.MANAGER, Role.HANDLER, Role.ADMIN)(),
            ]
        return [
            IsAuthenticated(),
            role_permission(Role.STATION, Role.MANAGER, Role.HANDLER, Role.ADMIN)(),
        ]

    def list(self, request: Request) -> Response:
        """GET /api/v1/master-orders/ (aggregates are healed before rendering)"""
        try:
            actor = actor_from_user(request.user)
            masters = self._service.list_master_orders(actor)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(MasterOrderSerializer(masters, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/master-orders/{pk}/"""
        try:
            actor = actor_from_user(request.user)
            master = self._service.get_master_order(str(pk), actor)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(MasterOrderSerializer(master).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/master-orders/{pk}/"""
        try:
            actor = actor_from_user(request.user)
            self._service.delete_master_order(str(pk), actor)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response({"detail": "Master order deleted.", "id": str(pk)})
