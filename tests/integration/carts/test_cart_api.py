"""Integration tests for the cart API.

Covers:
- Draft cart created on first access, one per station.
- Line upsert / removal.
- Validation: the 35.00 two-supplier scenario, skipped lines, empty cart
  rejected with nothing persisted.
- Role gate: only stations use carts.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.carts.models import Cart, CartLine, CartStatus
from modules.core.models import OutboxEvent
from modules.orders.models import MasterOrder, OrderLine, OrderStatusHistory, PurchaseOrder

pytestmark = pytest.mark.integration

CART_URL = "/api/v1/cart/"
LINES_URL = "/api/v1/cart/lines/"
VALIDATE_URL = "/api/v1/cart/validate/"


@pytest.fixture()
def station_client(authenticate, station):
    return authenticate("Station", station.id)


def _add(client, product, supplier, quantity, **extra):
    return client.post(
        LINES_URL,
        {
            "product_id": str(product.id),
            "supplier_id": str(supplier.id),
            "quantity": quantity,
            **extra,
        },
        format="json",
    )


# ---------------------------------------------------------------------------
# Draft cart
# ---------------------------------------------------------------------------


class TestDraftCart:
    def test_get_creates_empty_draft(self, station_client, station):
        response = station_client.get(CART_URL)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == CartStatus.DRAFT
        assert data["station_id"] == str(station.id)
        assert data["lines"] == []

    def test_get_is_idempotent(self, station_client):
        first = station_client.get(CART_URL).json()
        second = station_client.get(CART_URL).json()

        assert first["id"] == second["id"]
        assert Cart.objects.count() == 1

    def test_unknown_station_returns_404(self, authenticate):
        client = authenticate("Station", uuid4())

        response = client.get(CART_URL)

        assert response.status_code == 404
        assert response.json()["code"] == "station_not_found"

    def test_station_user_without_station_returns_400(self, authenticate):
        response = authenticate("Station").get(CART_URL)

        assert response.status_code == 400
        assert response.json()["code"] == "missing_entity"

    @pytest.mark.parametrize("role", ["Supplier", "Manager", "Handler", "Admin"])
    def test_non_station_roles_forbidden(self, authenticate, role):
        response = authenticate(role, uuid4()).get(CART_URL)
        assert response.status_code == 403


# ---------------------------------------------------------------------------
# Lines
# ---------------------------------------------------------------------------


class TestCartLines:
    def test_add_line(self, station_client, product_a, supplier_x):
        response = _add(
            station_client, product_a, supplier_x, 10, desired_delivery_date="2026-11-15"
        )

        assert response.status_code == 200
        [line] = response.json()["lines"]
        assert line["product_sku"] == "BOX-M"
        assert line["supplier_name"] == "Supplier X"
        assert line["quantity"] == 10
        assert line["desired_delivery_date"] == "2026-11-15"

    def test_same_pair_updates_quantity(self, station_client, product_a, supplier_x):
        _add(station_client, product_a, supplier_x, 10)

        response = _add(station_client, product_a, supplier_x, 4)

        [line] = response.json()["lines"]
        assert line["quantity"] == 4
        assert CartLine.objects.count() == 1

    def test_same_product_other_supplier_is_new_line(
        self, station_client, product_a, supplier_x, supplier_y
    ):
        _add(station_client, product_a, supplier_x, 10)

        response = _add(station_client, product_a, supplier_y, 3)

        assert len(response.json()["lines"]) == 2

    def test_zero_quantity_rejected(self, station_client, product_a, supplier_x):
        response = _add(station_client, product_a, supplier_x, 0)

        assert response.status_code == 400
        assert "quantity" in response.json()

    def test_unknown_product_returns_404(self, station_client, supplier_x):
        response = station_client.post(
            LINES_URL,
            {"product_id": str(uuid4()), "supplier_id": str(supplier_x.id), "quantity": 1},
            format="json",
        )

        assert response.status_code == 404
        assert response.json()["code"] == "product_not_found"

    def test_remove_line(self, station_client, product_a, supplier_x):
        line_id = _add(station_client, product_a, supplier_x, 10).json()["lines"][0]["id"]

        response = station_client.delete(f"{LINES_URL}{line_id}/")

        assert response.status_code == 200
        assert response.json()["lines"] == []

    def test_remove_unknown_line_returns_404(self, station_client):
        response = station_client.delete(f"{LINES_URL}{uuid4()}/")

        assert response.status_code == 404
        assert response.json()["code"] == "cart_line_not_found"

    def test_cannot_remove_other_station_line(
        self, authenticate, station, other_station, product_a, supplier_x
    ):
        line_id = _add(
            authenticate("Station", station.id), product_a, supplier_x, 10
        ).json()["lines"][0]["id"]

        response = authenticate("Station", other_station.id).delete(f"{LINES_URL}{line_id}/")

        assert response.status_code == 404
        assert CartLine.objects.filter(id=line_id).exists()


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidateCart:
    def test_two_suppliers_scenario(
        self, station_client, product_a, product_b, supplier_x, supplier_y, supplier_terms
    ):
        _add(station_client, product_a, supplier_x, 10)
        _add(station_client, product_b, supplier_y, 5)

        response = station_client.post(VALIDATE_URL)

        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["total_amount"]) == Decimal("35.00")
        assert data["aggregate_status"] == "REGISTERED"
        assert data["reference"].startswith("MO-")
        totals = sorted(Decimal(order["total_amount"]) for order in data["purchase_orders"])
        assert totals == [Decimal("15.00"), Decimal("20.00")]
        assert {order["status"] for order in data["purchase_orders"]} == {"REGISTERED"}
        assert PurchaseOrder.objects.filter(master_order_id=data["id"]).count() == 2

    def test_lines_freeze_supplier_terms(
        self, station_client, product_a, supplier_x, supplier_terms
    ):
        _add(station_client, product_a, supplier_x, 10, desired_delivery_date="2026-11-15")
        station_client.post(VALIDATE_URL)

        supplier_terms[0].unit_price = Decimal("9.99")
        supplier_terms[0].save()

        line = OrderLine.objects.get()
        assert line.unit_price == Decimal("2.00")
        assert line.subtotal == Decimal("20.00")
        assert line.packaging_unit == "bundle"
        assert line.quantity_per_package == 25
        assert line.supplier_reference == "X-BOX-M"
        assert str(line.desired_delivery_date) == "2026-11-15"

    def test_cart_processed_and_new_draft_started(
        self, station_client, product_a, supplier_x, supplier_terms
    ):
        cart_id = _add(station_client, product_a, supplier_x, 10).json()["id"]

        master_id = station_client.post(VALIDATE_URL).json()["id"]

        cart = Cart.objects.get(id=cart_id)
        assert cart.status == CartStatus.PROCESSED
        assert str(cart.master_order_id) == master_id
        assert cart.processed_at is not None
        fresh = station_client.get(CART_URL).json()
        assert fresh["id"] != cart_id
        assert fresh["lines"] == []

    def test_registration_history_written(
        self, station_client, product_a, supplier_x, supplier_terms
    ):
        _add(station_client, product_a, supplier_x, 10)
        station_client.post(VALIDATE_URL)

        [entry] = OrderStatusHistory.objects.all()
        assert entry.old_status is None
        assert entry.new_status == "REGISTERED"
        assert entry.actor_role == "Station"

    def test_unpriced_line_skipped(
        self, station_client, product_a, product_b, supplier_x, supplier_terms
    ):
        _add(station_client, product_a, supplier_x, 10)
        _add(station_client, product_b, supplier_x, 5)

        response = station_client.post(VALIDATE_URL)

        assert response.status_code == 201
        [order] = response.json()["purchase_orders"]
        assert Decimal(order["total_amount"]) == Decimal("20.00")
        assert OrderLine.objects.count() == 1

    def test_empty_cart_rejected_without_records(self, station_client):
        response = station_client.post(VALIDATE_URL)

        assert response.status_code == 400
        assert response.json()["code"] == "empty_cart"
        assert MasterOrder.objects.count() == 0
        assert PurchaseOrder.objects.count() == 0

    def test_cart_without_priced_lines_rejected_without_records(
        self, station_client, product_b, supplier_x
    ):
        _add(station_client, product_b, supplier_x, 5)

        response = station_client.post(VALIDATE_URL)

        assert response.status_code == 400
        assert response.json()["code"] == "no_priced_lines"
        assert MasterOrder.objects.count() == 0
        assert PurchaseOrder.objects.count() == 0
        assert OutboxEvent.objects.count() == 0
        assert Cart.objects.get().status == CartStatus.DRAFT

    def test_validated_cart_cannot_be_validated_twice(
        self, station_client, product_a, supplier_x, supplier_terms
    ):
        _add(station_client, product_a, supplier_x, 10)
        assert station_client.post(VALIDATE_URL).status_code == 201

        response = station_client.post(VALIDATE_URL)

        assert response.status_code == 400
        assert MasterOrder.objects.count() == 1

    def test_creation_event_recorded(
        self, station_client, product_a, supplier_x, supplier_terms
    ):
        _add(station_client, product_a, supplier_x, 10)

        master_id = station_client.post(VALIDATE_URL).json()["id"]

        event = OutboxEvent.objects.get(event_type="MasterOrderCreated")
        assert event.aggregate_id == master_id
        assert event.payload["total_amount"] == "20.00"
        assert event.topic == "orders"
