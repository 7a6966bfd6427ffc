"""Outbox recording and in-process publication of aggregate events."""

from __future__ import annotations

from typing import Any, List

import structlog
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


def record_events(entity: Any, topic: str) -> List[DomainEvent]:
    """Persist the entity's pending domain events to the outbox.

    Must run inside the transaction that persisted the entity.  Events
    are handed to the in-memory bus only once that transaction commits.
    """
    pull = getattr(entity, "pull_domain_events", None)
    events = pull() if pull is not None else []
    for event in events:
        record_event(event, topic)
    return events


def record_event(event: DomainEvent, topic: str) -> OutboxEvent:
    outbox_event = OutboxEvent.for_event(event, topic)
    transaction.on_commit(lambda: event_bus.publish(event))
    logger.info(
        "outbox.event_recorded",
        event_type=event.event_name,
        aggregate_id=outbox_event.aggregate_id,
        topic=topic,
    )
    return outbox_event
