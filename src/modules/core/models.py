"""Abstract base model and the outbox table.

Every procurement table (stations, carts, purchase orders, history rows)
inherits a time-ordered UUIDv7 key and creation/update timestamps.
Orders and master orders are removed physically by the deletion
workflow; nothing here hides rows.
"""

from __future__ import annotations

import uuid6
from django.db import models

from shared.domain.events import DomainEvent

# ---------------------------------------------------------------------------
# BaseModel
# ---------------------------------------------------------------------------


class BaseModel(models.Model):
    """Abstract base with UUIDv7 PK and timestamp bookkeeping."""

    id = models.UUIDField(
        primary_key=True,
        default=uuid6.uuid7,
        editable=False,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        """Ensure ``updated_at`` is refreshed even when ``update_fields`` is passed."""
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["updated_at"]
        super().save(*args, **kwargs)


# ---------------------------------------------------------------------------
# Transactional Outbox
# ---------------------------------------------------------------------------


class OutboxEvent(BaseModel):
    """Durable record of a domain event, written with the data it describes.

    ``record_events`` creates the row inside the transaction that changed
    the cart or order, so an event exists if and only if its change was
    committed.  Rows are never updated; the table is an audit log of what
    happened to each aggregate.
    """

    event_type = models.CharField(max_length=100)
    payload = models.JSONField()
    aggregate_id = models.CharField(max_length=255)
    topic = models.CharField(max_length=100)

    class Meta:
        db_table = "outbox_events"
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["event_type"],
                name="outbox_event_type_idx",
            ),
            models.Index(
                fields=["aggregate_id"],
                name="outbox_aggregate_id_idx",
            ),
            models.Index(
                fields=["topic", "created_at"],
                name="outbox_topic_created_idx",
            ),
        ]

    @classmethod
    def for_event(cls, event: DomainEvent, topic: str) -> OutboxEvent:
        return cls.objects.create(
            event_type=event.event_name,
            aggregate_id=str(event.aggregate_id),
            payload=event.to_payload(),
            topic=topic,
        )

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        return f"{self.event_type} ({self.aggregate_id}) @ {self.topic}"
