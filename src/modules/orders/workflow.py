"""Purchase order transition table.

``TRANSITIONS`` is the authoritative graph: a ``(current, target)`` pair
that is not a key is rejected outright, which forbids skipping and
reversing statuses.  Each rule names the roles allowed to fire it, the
order field that must match the actor's entity (if any), a payload
validator and the side effect applied to the order.

``check_transition`` runs the checks in a fixed order so the caller
always gets the most fundamental violation first:

1. unknown target status            -> ``BadRequestError``
2. ``expected_status`` is stale     -> ``ConflictError``
3. pair absent from the table       -> ``InvalidTransitionError``
4. role or entity ownership         -> ``ForbiddenError``
5. incomplete payload               -> ``BadRequestError``
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from modules.core.actors import Actor, Role
from modules.core.exceptions import BadRequestError, ConflictError, ForbiddenError
from modules.orders.constants import (
    STATUS_SEQUENCE,
    NonConformityStage,
    PurchaseOrderStatus,
)
from modules.orders.exceptions import InvalidTransitionError
from modules.orders.models import NonConformity, OrderLine, PurchaseOrder

Payload = Mapping[str, Any]


@dataclass
class TransitionChanges:
    """Records touched by a transition, for the repository to persist."""

    order_fields: List[str] = field(default_factory=list)
    lines: List[OrderLine] = field(default_factory=list)
    line_fields: List[str] = field(default_factory=list)
    non_conformities: List[NonConformity] = field(default_factory=list)


Validator = Callable[[PurchaseOrder, Sequence[OrderLine], Payload], None]
Applier = Callable[
    [PurchaseOrder, Sequence[OrderLine], Payload, Actor, datetime], TransitionChanges
]


def _no_payload(order: PurchaseOrder, lines: Sequence[OrderLine], payload: Payload) -> None:
    return None


def _no_side_effect(
    order: PurchaseOrder,
    lines: Sequence[OrderLine],
    payload: Payload,
    actor: Actor,
    now: datetime,
) -> TransitionChanges:
    return TransitionChanges()


@dataclass(frozen=True)
class TransitionRule:
    roles: frozenset[str]
    owner_field: Optional[str] = None
    validate: Validator = _no_payload
    apply: Applier = _no_side_effect


# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------


def _index_line_updates(
    lines: Sequence[OrderLine], updates: Sequence[Mapping[str, Any]]
) -> Dict[str, Mapping[str, Any]]:
    known = {str(line.id) for line in lines}
    indexed: Dict[str, Mapping[str, Any]] = {}
    for update in updates:
        line_id = str(update.get("id", ""))
        if line_id not in known:
            raise BadRequestError(
                "Line does not belong to this purchase order.",
                code="unknown_line",
                line_id=line_id,
            )
        indexed[line_id] = update
    return indexed


def _require_fields(payload: Payload, *names: str) -> None:
    missing = [name for name in names if not payload.get(name)]
    if missing:
        raise BadRequestError(
            f"Missing required field(s): {', '.join(missing)}.",
            code="missing_fields",
            missing_fields=missing,
        )


# ---------------------------------------------------------------------------
# Confirmed
# ---------------------------------------------------------------------------


def _validate_confirmation(
    order: PurchaseOrder, lines: Sequence[OrderLine], payload: Payload
) -> None:
    updates = _index_line_updates(lines, payload.get("lines") or [])
    missing = [
        f"lines[{line.id}].confirmed_delivery_date"
        for line in lines
        if not (updates.get(str(line.id)) or {}).get("confirmed_delivery_date")
    ]
    if missing:
        raise BadRequestError(
            "A confirmed delivery date is required for every line.",
            code="missing_fields",
            missing_fields=missing,
        )


def _apply_confirmation(
    order: PurchaseOrder,
    lines: Sequence[OrderLine],
    payload: Payload,
    actor: Actor,
    now: datetime,
) -> TransitionChanges:
    updates = _index_line_updates(lines, payload.get("lines") or [])
    for line in lines:
        line.confirmed_delivery_date = updates[str(line.id)]["confirmed_delivery_date"]
    return TransitionChanges(
        lines=list(lines), line_fields=["confirmed_delivery_date"]
    )


# ---------------------------------------------------------------------------
# Shipped
# ---------------------------------------------------------------------------


def _validate_shipment(
    order: PurchaseOrder, lines: Sequence[OrderLine], payload: Payload
) -> None:
    _require_fields(payload, "shipment_proof_key")


def _apply_shipment(
    order: PurchaseOrder,
    lines: Sequence[OrderLine],
    payload: Payload,
    actor: Actor,
    now: datetime,
) -> TransitionChanges:
    order.carrier = payload.get("carrier") or ""
    order.tracking_number = payload.get("tracking_number") or ""
    order.shipment_proof_key = payload["shipment_proof_key"]
    order.shipped_at = now
    return TransitionChanges(
        order_fields=["carrier", "tracking_number", "shipment_proof_key", "shipped_at"]
    )


# ---------------------------------------------------------------------------
# Received
# ---------------------------------------------------------------------------


def _validate_reception(
    order: PurchaseOrder, lines: Sequence[OrderLine], payload: Payload
) -> None:
    _require_fields(payload, "reception_proof_key")
    _index_line_updates(lines, payload.get("lines") or [])
    for index, item in enumerate(payload.get("non_conformities") or []):
        if not item.get("description"):
            raise BadRequestError(
                "Every non-conformity needs a description.",
                code="missing_fields",
                missing_fields=[f"non_conformities[{index}].description"],
            )


def _apply_reception(
    order: PurchaseOrder,
    lines: Sequence[OrderLine],
    payload: Payload,
    actor: Actor,
    now: datetime,
) -> TransitionChanges:
    updates = _index_line_updates(lines, payload.get("lines") or [])
    touched: List[OrderLine] = []
    for line in lines:
        update = updates.get(str(line.id))
        if update is not None and update.get("quantity_received") is not None:
            line.quantity_received = update["quantity_received"]
            touched.append(line)

    order.reception_proof_key = payload["reception_proof_key"]
    order.received_at = now

    non_conformities = [
        NonConformity(
            purchase_order=order,
            stage=NonConformityStage.RECEPTION,
            description=item["description"],
            quantity_affected=item.get("quantity_affected") or 0,
            photo_keys=list(item.get("photo_keys") or []),
            reported_by=actor.id,
        )
        for item in payload.get("non_conformities") or []
    ]
    return TransitionChanges(
        order_fields=["reception_proof_key", "received_at"],
        lines=touched,
        line_fields=["quantity_received"],
        non_conformities=non_conformities,
    )


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------

_SUPPLIER = frozenset({Role.SUPPLIER})
_STATION = frozenset({Role.STATION})
_BACK_OFFICE = frozenset({Role.MANAGER, Role.HANDLER})

S = PurchaseOrderStatus

TRANSITIONS: Dict[Tuple[str, str], TransitionRule] = {
    (S.REGISTERED, S.CONFIRMED): TransitionRule(
        roles=_SUPPLIER,
        owner_field="supplier_id",
        validate=_validate_confirmation,
        apply=_apply_confirmation,
    ),
    (S.CONFIRMED, S.SHIPPED): TransitionRule(
        roles=_SUPPLIER,
        owner_field="supplier_id",
        validate=_validate_shipment,
        apply=_apply_shipment,
    ),
    (S.SHIPPED, S.RECEIVED): TransitionRule(
        roles=_STATION,
        owner_field="station_id",
        validate=_validate_reception,
        apply=_apply_reception,
    ),
    (S.RECEIVED, S.CLOSED): TransitionRule(roles=_STATION, owner_field="station_id"),
    (S.CLOSED, S.INVOICED): TransitionRule(roles=_BACK_OFFICE),
}

# Administrative escape hatch: any living order can be archived.
for _status in STATUS_SEQUENCE:
    if _status != S.ARCHIVED:
        TRANSITIONS[(_status, S.ARCHIVED)] = TransitionRule(roles=_BACK_OFFICE)


def allowed_sources(target: str) -> List[str]:
    return [source for source, dest in TRANSITIONS if dest == target]


def allowed_targets(current: str) -> List[str]:
    return [dest for source, dest in TRANSITIONS if source == current]


def check_transition(
    order: PurchaseOrder,
    target: str,
    actor: Actor,
    payload: Payload,
    lines: Sequence[OrderLine],
) -> TransitionRule:
    """Return the rule for ``order.status -> target`` or raise."""
    if target not in PurchaseOrderStatus.values:
        raise BadRequestError(
            f"Unknown status {target!r}.",
            code="unknown_status",
            allowed_statuses=list(PurchaseOrderStatus.values),
        )

    expected = payload.get("expected_status")
    if expected and expected != order.status:
        raise ConflictError(
            "The purchase order changed status in the meantime.",
            code="stale_status",
            current_status=order.status,
            expected_status=expected,
        )

    rule = TRANSITIONS.get((order.status, target))
    if rule is None:
        sources = allowed_sources(target)
        raise InvalidTransitionError(
            f"Cannot move a purchase order from {order.status} to {target}.",
            current_status=order.status,
            required_status=sources[0] if len(sources) == 1 else sources,
        )

    if actor.role not in rule.roles:
        raise ForbiddenError(
            f"Role {actor.role} cannot move a purchase order to {target}.",
            code="role_not_allowed",
            required_roles=sorted(rule.roles),
            actor_role=actor.role,
        )
    if rule.owner_field and getattr(order, rule.owner_field) != actor.entity_id:
        raise ForbiddenError(
            "This purchase order belongs to another entity.",
            code="not_owner",
            required_roles=sorted(rule.roles),
            actor_role=actor.role,
        )

    rule.validate(order, lines, payload)
    return rule
