"""Minimal typed event bus shared by every tracker."""

from dataclasses import dataclass, field
from typing import Any, Callable


@dataclass
class TrackerEvent:
    """An emitted event: its name, the tracker that produced it and its attributes."""

    type: str
    target: Any
    data: dict[str, Any] = field(default_factory=dict)


EventHandler = Callable[[TrackerEvent], None]


class EventEmitter:
    """
    Dispatches TrackerEvent objects to handlers.

    Handlers are registered per event name with on() or for every event
    with subscribe_all(). They run synchronously in registration order.
    """

    def __init__(self):
        self._handlers: dict[str, list[EventHandler]] = {}
        self._catch_all: list[EventHandler] = []

    def on(self, event_type: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def off(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)
            if not handlers:
                del self._handlers[event_type]

    def subscribe_all(self, handler: EventHandler) -> None:
        """Receive every event emitted or dispatched by this emitter."""
        if handler not in self._catch_all:
            self._catch_all.append(handler)

    def unsubscribe_all(self, handler: EventHandler) -> None:
        if handler in self._catch_all:
            self._catch_all.remove(handler)

    def emit(self, event_type: str, data: dict[str, Any] | None = None) -> TrackerEvent:
        """Build an event targeting this emitter and dispatch it.

        Args:
            event_type: Event name
            data: Attribute bag

        Returns:
            The dispatched event
        """
        event = TrackerEvent(type=event_type, target=self, data=data or {})
        self.dispatch(event)
        return event

    def dispatch(self, event: TrackerEvent) -> None:
        """Forward an existing event as-is (type, target and data unchanged)."""
        # Copy so handlers may unsubscribe while being called
        for handler in list(self._handlers.get(event.type, ())):
            handler(event)
        for handler in list(self._catch_all):
            handler(event)

    def clear_handlers(self) -> None:
        self._handlers.clear()
        self._catch_all.clear()


__all__ = ["TrackerEvent", "EventHandler", "EventEmitter"]
