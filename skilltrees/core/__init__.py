"""
Core module.

Exports:
- EventBus, Event: Publish/subscribe messaging
- TypeRegistry: Tag -> class lookup for polymorphic data
"""

from skilltrees.core.events import EventBus, Event, EventHandler
from skilltrees.core.registry import TypeRegistry

__all__ = [
    # Events
    "EventBus",
    "Event",
    "EventHandler",
    # Registry
    "TypeRegistry",
]
