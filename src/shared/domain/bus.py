"""Event bus contracts.

Handlers react to events after the originating transaction commits; they
log or notify and never write back to the aggregate that raised the event.
"""

from __future__ import annotations

from typing import Generic, List, Mapping, Protocol, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    def handle(self, event: E) -> None: ...


Subscriptions = Mapping[Type[DomainEvent], IEventHandler]


class IEventBus(Protocol):
    def publish(self, event: DomainEvent) -> None: ...

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...

    def unsubscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...

    def handlers_for(self, event_class: Type[DomainEvent]) -> List[IEventHandler]: ...

    def subscribe_all(self, subscriptions: Subscriptions) -> None:
        """Register one handler per event class."""
        for event_class, handler in subscriptions.items():
            self.subscribe(event_class, handler)
