"""Event system for tracking storefront changes."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import Any

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events that can occur."""

    # User events
    USER_REGISTERED = auto()
    USER_LOGGED_IN = auto()
    USER_LOGGED_OUT = auto()

    # Menu events
    MENU_ITEM_CREATED = auto()
    MENU_ITEM_UPDATED = auto()
    MENU_ITEM_DELETED = auto()

    # Cart events
    CART_UPDATED = auto()
    CART_CLEARED = auto()

    # Order events
    ORDER_PLACED = auto()
    ORDER_STATUS_CHANGED = auto()

    # System events
    STOREFRONT_SEEDED = auto()
    MIGRATION_PROGRESS = auto()
    MIGRATION_COMPLETED = auto()
    IDENTIFIERS_RECONCILED = auto()


@dataclass
class Event:
    """An event that occurred in the system."""

    type: EventType
    timestamp: datetime
    data: dict[str, Any]

    @property
    def user_id(self) -> int | None:
        return self.data.get("user_id")

    @property
    def order_id(self) -> int | None:
        return self.data.get("order_id")


class EventBus:
    """Simple event bus for publishing and subscribing to events."""

    def __init__(self, history_limit: int = 1000):
        self._subscribers: dict[EventType, list[Callable[[Event], None]]] = {}
        self._history: list[Event] = []
        self._history_limit = history_limit

    def subscribe(
        self, event_type: EventType, handler: Callable[[Event], None]
    ) -> None:
        """Subscribe to events of a specific type."""
        self._subscribers.setdefault(event_type, []).append(handler)

    def unsubscribe(
        self, event_type: EventType, handler: Callable[[Event], None]
    ) -> None:
        """Unsubscribe from events."""
        if event_type in self._subscribers:
            self._subscribers[event_type].remove(handler)

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers.

        A failing subscriber is logged and skipped; the remaining
        subscribers still run.
        """
        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit :]

        for handler in list(self._subscribers.get(event.type, ())):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Event handler failed for {event.type.name}")

    def get_history(
        self, event_type: EventType | None = None, limit: int = 100
    ) -> list[Event]:
        """Get event history."""
        history = self._history

        if event_type:
            history = [e for e in history if e.type == event_type]

        return history[-limit:]

    def clear_history(self) -> None:
        """Clear event history."""
        self._history.clear()


class EventPublisher:
    """Mixin for classes that publish events."""

    def __init__(self, event_bus: EventBus | None = None):
        self.event_bus = event_bus or EventBus()

    def _publish_event(self, event_type: EventType, **data) -> None:
        """Publish an event."""
        event = Event(type=event_type, timestamp=datetime.now(), data=data)
        self.event_bus.publish(event)
