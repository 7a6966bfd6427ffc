from datetime import date
from decimal import Decimal
from uuid import UUID

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.models import TokenUser
from rest_framework_simplejwt.tokens import AccessToken

from modules.carts.dtos import UpsertCartLineDTO
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.catalog.models import Product, Station, Supplier, SupplierProduct
from modules.catalog.repositories.django_repository import ReferenceDataDjangoGateway
from modules.core.actors import Actor, Role
from modules.orders.constants import STATUS_RANK, STATUS_SEQUENCE, PurchaseOrderStatus
from modules.orders.dtos import TransitionOrderDTO
from modules.orders.repositories.django_repository import (
    MasterOrderDjangoRepository,
    PurchaseOrderDjangoRepository,
)
from modules.orders.views import build_purchase_order_service


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


def make_token(role: str, entity_id: UUID | None = None, user_id: str = "user-1"):
    """Access token shaped like the identity provider's."""
    token = AccessToken()
    token["user_id"] = user_id
    token["role"] = role
    if entity_id is not None:
        token["entity_id"] = str(entity_id)
    return token


@pytest.fixture()
def authenticate(api_client):
    """Return a callable logging the API client in as a given actor."""

    def _authenticate(role: str, entity_id: UUID | None = None, user_id: str | None = None):
        token = make_token(role, entity_id, user_id or f"{role.lower()}-user")
        api_client.force_authenticate(user=TokenUser(token))
        return api_client

    return _authenticate


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


@pytest.fixture()
def station():
    return Station.objects.create(code="st-lyo", name="Station Lyon")


@pytest.fixture()
def other_station():
    return Station.objects.create(code="st-mrs", name="Station Marseille")


@pytest.fixture()
def supplier_x():
    return Supplier.objects.create(code="sup-x", name="Supplier X")


@pytest.fixture()
def supplier_y():
    return Supplier.objects.create(code="sup-y", name="Supplier Y")


@pytest.fixture()
def product_a():
    return Product.objects.create(sku="box-m", name="Carton 40x30x30")


@pytest.fixture()
def product_b():
    return Product.objects.create(sku="tape-50", name="Adhesive tape 50mm")


@pytest.fixture()
def supplier_terms(supplier_x, supplier_y, product_a, product_b):
    """ProductA sold by SupplierX at 2.00, ProductB by SupplierY at 3.00."""
    return [
        SupplierProduct.objects.create(
            supplier=supplier_x,
            product=product_a,
            unit_price=Decimal("2.00"),
            packaging_unit="bundle",
            quantity_per_package=25,
            supplier_reference="X-BOX-M",
        ),
        SupplierProduct.objects.create(
            supplier=supplier_y,
            product=product_b,
            unit_price=Decimal("3.00"),
            packaging_unit="roll",
            quantity_per_package=6,
            supplier_reference="Y-TAPE-50",
        ),
    ]


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------


@pytest.fixture()
def station_actor(station):
    return Actor(id="station-user", role=Role.STATION, entity_id=station.id)


@pytest.fixture()
def supplier_x_actor(supplier_x):
    return Actor(id="supplier-x-user", role=Role.SUPPLIER, entity_id=supplier_x.id)


@pytest.fixture()
def supplier_y_actor(supplier_y):
    return Actor(id="supplier-y-user", role=Role.SUPPLIER, entity_id=supplier_y.id)


@pytest.fixture()
def manager_actor():
    return Actor(id="manager-user", role=Role.MANAGER)


# ---------------------------------------------------------------------------
# Consolidated orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def cart_service():
    return CartService(
        cart_repository=CartDjangoRepository(),
        reference_data=ReferenceDataDjangoGateway(),
        purchase_order_repository=PurchaseOrderDjangoRepository(),
        master_order_repository=MasterOrderDjangoRepository(),
    )


@pytest.fixture()
def master_order(
    cart_service, station_actor, supplier_x, supplier_y, product_a, product_b, supplier_terms
):
    """Master order consolidated from (A, X, 10) and (B, Y, 5): 20.00 + 15.00."""
    cart_service.upsert_line(
        station_actor,
        UpsertCartLineDTO(product_id=product_a.id, supplier_id=supplier_x.id, quantity=10),
    )
    cart_service.upsert_line(
        station_actor,
        UpsertCartLineDTO(product_id=product_b.id, supplier_id=supplier_y.id, quantity=5),
    )
    return cart_service.consolidate(station_actor)


@pytest.fixture()
def order_x(master_order, supplier_x):
    """The purchase order addressed to SupplierX."""
    return master_order.purchase_orders.get(supplier_id=supplier_x.id)


@pytest.fixture()
def order_y(master_order, supplier_y):
    return master_order.purchase_orders.get(supplier_id=supplier_y.id)


# ---------------------------------------------------------------------------
# Lifecycle driver
# ---------------------------------------------------------------------------


def transition_payload(order, target: str) -> tuple[Actor, TransitionOrderDTO]:
    """Actor and request that legitimately move *order* to *target*."""
    target = str(target)
    supplier = Actor(id="supplier-user", role=Role.SUPPLIER, entity_id=order.supplier_id)
    station = Actor(id="station-user", role=Role.STATION, entity_id=order.station_id)
    manager = Actor(id="manager-user", role=Role.MANAGER)

    if target == PurchaseOrderStatus.CONFIRMED:
        lines = [
            {"id": line.id, "confirmed_delivery_date": date(2026, 11, 20)}
            for line in order.lines.all()
        ]
        return supplier, TransitionOrderDTO(status=target, lines=lines)
    if target == PurchaseOrderStatus.SHIPPED:
        return supplier, TransitionOrderDTO(
            status=target,
            carrier="Geodis",
            tracking_number="GEO-123",
            shipment_proof_key=f"shipments/{order.order_number}.pdf",
        )
    if target == PurchaseOrderStatus.RECEIVED:
        return station, TransitionOrderDTO(
            status=target, reception_proof_key=f"receptions/{order.order_number}.pdf"
        )
    if target == PurchaseOrderStatus.CLOSED:
        return station, TransitionOrderDTO(status=target)
    return manager, TransitionOrderDTO(status=target)


@pytest.fixture()
def transition_request():
    """Expose ``transition_payload`` to tests driving the service themselves."""
    return transition_payload


@pytest.fixture()
def purchase_order_service():
    return build_purchase_order_service()


@pytest.fixture()
def advance_order(purchase_order_service):
    """Return a callable walking an order forward, one legal step at a time."""

    def _advance(order, target: str):
        current = STATUS_RANK[order.status]
        for status in STATUS_SEQUENCE[current + 1 : STATUS_RANK[target] + 1]:
            actor, dto = transition_payload(order, status)
            order = purchase_order_service.transition(str(order.id), dto, actor)
        return order

    return _advance
