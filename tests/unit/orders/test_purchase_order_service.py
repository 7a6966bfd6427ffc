"""Unit tests for PurchaseOrderService with mocked repositories.

Covers:
- Successful transition: persisted through the repository, event
  raised, master order aggregate refreshed.
- Rejected transition: nothing persisted, rejection logged.
- Cancellation and non-conformity reporting preconditions.
- Read visibility per entity.
"""

from __future__ import annotations

import logging
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from modules.core.actors import Actor, Role
from modules.core.exceptions import ConflictError, ForbiddenError
from modules.orders.constants import NonConformityStage, PurchaseOrderStatus
from modules.orders.dtos import NonConformityDTO, TransitionOrderDTO
from modules.orders.events import PurchaseOrderCancelled, PurchaseOrderStatusChanged
from modules.orders.exceptions import InvalidTransitionError, PurchaseOrderNotFound
from modules.orders.models import PurchaseOrder
from modules.orders.services import PurchaseOrderService

pytestmark = pytest.mark.unit

S = PurchaseOrderStatus


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def repo():
    return MagicMock()


@pytest.fixture()
def master_service():
    return MagicMock()


@pytest.fixture()
def service(repo, master_service):
    return PurchaseOrderService(
        purchase_order_repository=repo, master_order_service=master_service
    )


@pytest.fixture()
def order():
    return PurchaseOrder(
        status=S.RECEIVED,
        station_id=uuid4(),
        supplier_id=uuid4(),
        master_order_id=uuid4(),
        order_number="PO-20261018-000001",
    )


@pytest.fixture()
def owning_station(order):
    return Actor(id="station-user", role=Role.STATION, entity_id=order.station_id)


def _load(repo, order):
    repo.get_for_update.return_value = order
    repo.get_by_id.return_value = order


# ---------------------------------------------------------------------------
# Transition
# ---------------------------------------------------------------------------


class TestTransition:
    def test_success_persists_and_refreshes_master(
        self, service, repo, master_service, order, owning_station
    ):
        _load(repo, order)

        result = service.transition(
            str(order.id), TransitionOrderDTO(status="CLOSED", notes="all good"), owning_station
        )

        assert result is order
        assert order.status == S.CLOSED
        repo.apply_transition.assert_called_once()
        args, kwargs = repo.apply_transition.call_args
        assert args[0] is order
        assert args[1] == S.RECEIVED
        assert args[3] == owning_station
        assert kwargs == {"notes": "all good"}
        master_service.refresh_aggregate.assert_called_once_with(
            order.master_order_id, owning_station
        )

    def test_success_raises_status_changed_event(self, service, repo, order, owning_station):
        _load(repo, order)

        service.transition(str(order.id), TransitionOrderDTO(status="CLOSED"), owning_station)

        [event] = order.domain_events
        assert isinstance(event, PurchaseOrderStatusChanged)
        assert (event.old_status, event.new_status) == (S.RECEIVED, S.CLOSED)
        assert event.actor_role == Role.STATION
        assert event.master_order_id == str(order.master_order_id)

    def test_orphan_order_skips_master_refresh(
        self, service, repo, master_service, order, owning_station
    ):
        order.master_order_id = None
        _load(repo, order)

        service.transition(str(order.id), TransitionOrderDTO(status="CLOSED"), owning_station)

        master_service.refresh_aggregate.assert_not_called()

    def test_rejection_persists_nothing(
        self, service, repo, master_service, order, owning_station, caplog
    ):
        _load(repo, order)

        with caplog.at_level(logging.WARNING):
            with pytest.raises(InvalidTransitionError):
                service.transition(
                    str(order.id), TransitionOrderDTO(status="INVOICED"), owning_station
                )

        assert order.status == S.RECEIVED
        repo.apply_transition.assert_not_called()
        master_service.refresh_aggregate.assert_not_called()
        assert any(
            "order.transition_rejected" in record.getMessage() for record in caplog.records
        )

    def test_unknown_order(self, service, repo, owning_station):
        repo.get_for_update.return_value = None

        with pytest.raises(PurchaseOrderNotFound):
            service.transition(str(uuid4()), TransitionOrderDTO(status="CLOSED"), owning_station)


# ---------------------------------------------------------------------------
# Cancel
# ---------------------------------------------------------------------------


class TestCancel:
    def test_registered_order_is_discarded(
        self, service, repo, master_service, order, owning_station
    ):
        order.status = S.REGISTERED
        _load(repo, order)

        service.cancel_order(str(order.id), owning_station)

        repo.discard.assert_called_once_with(order)
        master_service.refresh_aggregate.assert_called_once_with(
            order.master_order_id, owning_station
        )
        [event] = order.domain_events
        assert isinstance(event, PurchaseOrderCancelled)

    def test_confirmed_order_cannot_be_cancelled(self, service, repo, order, owning_station):
        order.status = S.CONFIRMED
        _load(repo, order)

        with pytest.raises(ConflictError) as exc_info:
            service.cancel_order(str(order.id), owning_station)

        assert exc_info.value.code == "not_cancellable"
        repo.discard.assert_not_called()

    def test_other_station_cannot_cancel(self, service, repo, order):
        order.status = S.REGISTERED
        _load(repo, order)
        intruder = Actor(id="x", role=Role.STATION, entity_id=uuid4())

        with pytest.raises(ForbiddenError) as exc_info:
            service.cancel_order(str(order.id), intruder)

        assert exc_info.value.code == "not_owner"

    def test_supplier_cannot_cancel(self, service, repo, order):
        order.status = S.REGISTERED
        _load(repo, order)
        supplier = Actor(id="x", role=Role.SUPPLIER, entity_id=order.supplier_id)

        with pytest.raises(ForbiddenError):
            service.cancel_order(str(order.id), supplier)


# ---------------------------------------------------------------------------
# Non-conformity
# ---------------------------------------------------------------------------


class TestReportNonConformity:
    def test_post_reception_non_conformity_added(self, service, repo, order, owning_station):
        _load(repo, order)
        dto = NonConformityDTO(
            description="Film torn on 3 rolls", quantity_affected=3, photo_keys=["p/1.jpg"]
        )

        service.report_non_conformity(str(order.id), dto, owning_station)

        [non_conformity] = repo.add_non_conformity.call_args.args
        assert non_conformity.stage == NonConformityStage.POST_RECEPTION
        assert non_conformity.quantity_affected == 3
        assert non_conformity.photo_keys == ["p/1.jpg"]
        assert non_conformity.reported_by == "station-user"
        assert order.status == S.RECEIVED

    @pytest.mark.parametrize("status", [S.REGISTERED, S.SHIPPED, S.INVOICED])
    def test_requires_received_or_closed(self, service, repo, order, owning_station, status):
        order.status = status
        _load(repo, order)

        with pytest.raises(ConflictError):
            service.report_non_conformity(
                str(order.id), NonConformityDTO(description="x"), owning_station
            )

        repo.add_non_conformity.assert_not_called()


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


class TestReads:
    def test_supplier_reads_own_order(self, service, repo, order):
        repo.get_by_id.return_value = order
        supplier = Actor(id="s", role=Role.SUPPLIER, entity_id=order.supplier_id)

        assert service.get_order(str(order.id), supplier) is order

    def test_other_supplier_gets_not_found(self, service, repo, order):
        repo.get_by_id.return_value = order
        supplier = Actor(id="s", role=Role.SUPPLIER, entity_id=uuid4())

        with pytest.raises(PurchaseOrderNotFound):
            service.get_order(str(order.id), supplier)

    def test_list_scoped_by_entity(self, service, repo, order):
        supplier = Actor(id="s", role=Role.SUPPLIER, entity_id=order.supplier_id)

        service.list_orders(supplier)

        repo.list.assert_called_once_with({"supplier_id": order.supplier_id})
