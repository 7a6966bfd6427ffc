"""Unit tests for the orders event handlers."""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import uuid4

import pytest

from modules.orders.events import (
    MasterOrderCreated,
    MasterOrderDeleted,
    PurchaseOrderCancelled,
    PurchaseOrderStatusChanged,
)
from modules.orders.handlers import (
    MasterOrderCreatedHandler,
    MasterOrderDeletedHandler,
    PurchaseOrderCancelledHandler,
    PurchaseOrderStatusChangedHandler,
)

pytestmark = pytest.mark.unit


def _messages(caplog):
    return [record.getMessage() for record in caplog.records]


def test_master_order_created_handler_logs(caplog):
    event = MasterOrderCreated(
        aggregate_id=uuid4(),
        reference="MO-20261018-ABCDEF",
        purchase_order_ids=["a", "b"],
        total_amount=Decimal("35.00"),
    )

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        MasterOrderCreatedHandler().handle(event)

    assert any("event.master_order_created" in m for m in _messages(caplog))


def test_status_changed_handler_logs(caplog):
    event = PurchaseOrderStatusChanged(
        aggregate_id=uuid4(), old_status="REGISTERED", new_status="CONFIRMED"
    )

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        PurchaseOrderStatusChangedHandler().handle(event)

    assert any(
        "event.purchase_order_status_changed" in m and "CONFIRMED" in m
        for m in _messages(caplog)
    )


def test_cancelled_handler_logs(caplog):
    event = PurchaseOrderCancelled(aggregate_id=uuid4(), order_number="PO-1")

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        PurchaseOrderCancelledHandler().handle(event)

    assert any("event.purchase_order_cancelled" in m for m in _messages(caplog))


def test_deleted_handler_logs_pending_documents(caplog):
    event = MasterOrderDeleted(
        aggregate_id=uuid4(),
        reference="MO-1",
        document_count=3,
        pending_document_keys=["photos/1.jpg"],
    )

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        MasterOrderDeletedHandler().handle(event)

    assert any(
        "event.master_order_deleted" in m and "'pending_documents': 1" in m
        for m in _messages(caplog)
    )
