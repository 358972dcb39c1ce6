"""
ui/ - Observable surface for presentation layers
"""

from .events import (
    EventType,
    EngineEvent,
    EventHandler,
    EventBus,
)

__all__ = [
    "EventType",
    "EngineEvent",
    "EventHandler",
    "EventBus",
]
