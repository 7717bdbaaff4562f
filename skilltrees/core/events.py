"""
Typed event bus for progression notifications.

Event types are Enum members, so subscribers never match on strings.

Usage:
    class ProgressionEvent(Enum):
        SKILL_LEARNED = auto()

    bus = EventBus()
    bus.subscribe(ProgressionEvent.SKILL_LEARNED, on_learned)
    bus.publish(ProgressionEvent.SKILL_LEARNED, actor_id=1, node_key="guard")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
from weakref import WeakMethod, ref

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """
    Event data container.

    Attributes:
        type: The event type (Enum member)
        data: Keyword data passed to publish()
        consumed: Set by a handler to stop later handlers
    """
    type: Enum
    data: dict[str, Any] = field(default_factory=dict)
    consumed: bool = False

    def consume(self) -> None:
        """Stop propagation to lower priority handlers."""
        self.consumed = True

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


EventHandler = Callable[[Event], None]


@dataclass
class _Subscription:
    priority: int
    target: Any
    one_shot: bool
    weak: bool

    def resolve(self) -> EventHandler | None:
        if self.weak:
            return self.target()
        return self.target


class EventBus:
    """
    Publish/subscribe messaging.

    Features:
    - Priority ordering (higher first, ties in subscription order)
    - Optional weak references to handlers
    - One-shot handlers
    - Consumption stops propagation
    - Events published from inside a handler are queued until the
      current dispatch finishes

    Handler exceptions are logged and skipped unless the bus was created
    with ``raise_errors=True``.
    """

    def __init__(self, raise_errors: bool = False):
        self.raise_errors = raise_errors
        self._subscriptions: dict[Enum, list[_Subscription]] = {}
        self._pending: list[Event] = []
        self._dispatching = False

    def subscribe(
        self,
        event_type: Enum,
        handler: EventHandler,
        priority: int = 0,
        one_shot: bool = False,
        weak: bool = True,
    ) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to listen for
            handler: Callback function(event: Event)
            priority: Higher priority handlers are called first
            one_shot: Remove the handler after its first call
            weak: Hold the handler through a weak reference
        """
        if weak:
            target = WeakMethod(handler) if hasattr(handler, '__self__') else ref(handler)
        else:
            target = handler

        subs = self._subscriptions.setdefault(event_type, [])
        entry = _Subscription(priority, target, one_shot, weak)

        position = len(subs)
        for i, existing in enumerate(subs):
            if priority > existing.priority:
                position = i
                break
        subs.insert(position, entry)

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        """Remove a handler from an event type."""
        subs = self._subscriptions.get(event_type)
        if not subs:
            return
        self._subscriptions[event_type] = [s for s in subs if s.resolve() != handler]

    def publish(self, event_type: Enum, **data: Any) -> Event:
        """
        Publish an event.

        Returns:
            The Event object (check .consumed to see if it was handled)
        """
        event = Event(type=event_type, data=data)
        self.publish_event(event)
        return event

    def publish_event(self, event: Event) -> None:
        """Publish a pre-created event."""
        if self._dispatching:
            self._pending.append(event)
            return

        self._dispatch(event)
        while self._pending:
            self._dispatch(self._pending.pop(0))

    def has_subscribers(self, event_type: Enum) -> bool:
        return bool(self._subscriptions.get(event_type))

    def clear(self, event_type: Enum | None = None) -> None:
        """Clear handlers for one event type, or all of them."""
        if event_type is None:
            self._subscriptions.clear()
        else:
            self._subscriptions.pop(event_type, None)

    def _dispatch(self, event: Event) -> None:
        subs = self._subscriptions.get(event.type)
        if not subs:
            return

        self._dispatching = True
        dead: list[_Subscription] = []
        try:
            for sub in list(subs):
                handler = sub.resolve()
                if handler is None:
                    dead.append(sub)
                    continue

                if sub.one_shot:
                    dead.append(sub)

                try:
                    handler(event)
                except Exception:
                    if self.raise_errors:
                        raise
                    logger.exception(f"Error in event handler for {event.type}")

                if event.consumed:
                    break
        finally:
            self._dispatching = False
            if dead:
                dead_ids = {id(sub) for sub in dead}
                subs[:] = [s for s in subs if id(s) not in dead_ids]
