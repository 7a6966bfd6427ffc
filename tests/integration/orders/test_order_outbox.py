"""Integration tests for the orders outbox.

Every state change writes its event in the same transaction; the
in-process handlers only see the event once that transaction commits.
"""

from unittest.mock import patch

import pytest

from modules.core.models import OutboxEvent
from modules.orders.constants import OUTBOX_TOPIC

pytestmark = pytest.mark.integration


def _events(event_type):
    return list(OutboxEvent.objects.filter(event_type=event_type))


class TestOrderOutbox:
    def test_each_transition_writes_one_event(self, order_x, advance_order):
        advance_order(order_x, "SHIPPED")

        events = _events("PurchaseOrderStatusChanged")
        assert [(e.payload["old_status"], e.payload["new_status"]) for e in events] == [
            ("REGISTERED", "CONFIRMED"),
            ("CONFIRMED", "SHIPPED"),
        ]
        assert all(e.aggregate_id == str(order_x.id) for e in events)
        assert all(e.topic == OUTBOX_TOPIC for e in events)

    def test_event_carries_actor_and_master(self, order_x, master_order, advance_order):
        advance_order(order_x, "CONFIRMED")

        [event] = _events("PurchaseOrderStatusChanged")
        assert event.payload["actor_role"] == "Supplier"
        assert event.payload["master_order_id"] == str(master_order.id)

    def test_rejected_transition_writes_nothing(self, authenticate, station, order_x):
        authenticate("Station", station.id).patch(
            f"/api/v1/purchase-orders/{order_x.id}/",
            {"status": "CONFIRMED"},
            format="json",
        )

        assert _events("PurchaseOrderStatusChanged") == []

    def test_handler_runs_after_commit(
        self, authenticate, supplier_x, order_x, django_capture_on_commit_callbacks
    ):
        body = {
            "status": "CONFIRMED",
            "lines": [
                {"id": str(line.id), "confirmed_delivery_date": "2026-11-20"}
                for line in order_x.lines.all()
            ],
        }
        client = authenticate("Supplier", supplier_x.id)

        with patch(
            "modules.orders.handlers.PurchaseOrderStatusChangedHandler.handle"
        ) as handle:
            with django_capture_on_commit_callbacks(execute=False) as callbacks:
                client.patch(f"/api/v1/purchase-orders/{order_x.id}/", body, format="json")
            handle.assert_not_called()

            for callback in callbacks:
                callback()

        handle.assert_called_once()
        event = handle.call_args.args[0]
        assert event.new_status == "CONFIRMED"
        assert event.aggregate_id == order_x.id
