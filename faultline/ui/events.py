"""
ui/events.py - Engine event system

Module 5: Observable Surface

Event bus that presentation layers subscribe to. The engine emits one event per
state transition; the bus is constructed by the composition root and passed in,
never shared through a module global.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime, timezone
from enum import Enum
import uuid
import logging

logger = logging.getLogger("ui.events")


class EventType(Enum):
    """Types of engine events."""

    # Error display
    ERROR_DISPLAYED = "error_displayed"
    ERROR_DISMISSED = "error_dismissed"
    ERROR_SUPPRESSED = "error_suppressed"
    HANDLING_TOGGLED = "handling_toggled"

    # Scenarios
    SCENARIO_STARTED = "scenario_started"
    SCENARIO_STOPPED = "scenario_stopped"

    # Recovery
    RECOVERY_STARTED = "recovery_started"
    RECOVERY_PROGRESS = "recovery_progress"
    RECOVERY_COMPLETED = "recovery_completed"
    RECOVERY_CANCELLED = "recovery_cancelled"

    # Tracking
    TRACKING_RESET = "tracking_reset"
    DEMO_STARTED = "demo_started"
    DEMO_COMPLETED = "demo_completed"

    # Generic
    CUSTOM = "custom"


@dataclass
class EngineEvent:
    """An engine event with payload."""

    event_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    event_type: EventType = EventType.CUSTOM
    source: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    payload: Dict[str, Any] = field(default_factory=dict)
    propagate: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "type": self.event_type.value,
            "source": self.source,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "payload": self.payload,
        }

    @classmethod
    def error_displayed(cls, error: Dict[str, Any], replaced_id: Optional[str] = None) -> "EngineEvent":
        """Create an error displayed event."""
        return cls(
            event_type=EventType.ERROR_DISPLAYED,
            source="coordinator",
            payload={
                "error": error,
                "replaced_error_id": replaced_id,
            },
        )

    @classmethod
    def error_dismissed(cls, error_id: str) -> "EngineEvent":
        """Create an error dismissed event."""
        return cls(
            event_type=EventType.ERROR_DISMISSED,
            source="coordinator",
            payload={"error_id": error_id},
        )

    @classmethod
    def scenario_started(cls, scenario: str, policy: Dict[str, Any]) -> "EngineEvent":
        """Create a scenario started event."""
        return cls(
            event_type=EventType.SCENARIO_STARTED,
            source="generator",
            payload={
                "scenario": scenario,
                "policy": policy,
            },
        )

    @classmethod
    def scenario_stopped(cls, scenario: Optional[str]) -> "EngineEvent":
        """Create a scenario stopped event."""
        return cls(
            event_type=EventType.SCENARIO_STOPPED,
            source="generator",
            payload={"scenario": scenario},
        )

    @classmethod
    def recovery_progress(
        cls,
        event_type: EventType,
        error_id: str,
        progress: Dict[str, Any],
        **extra: Any,
    ) -> "EngineEvent":
        """Create a recovery lifecycle event carrying a progress snapshot."""
        payload = {"error_id": error_id, "progress": progress}
        payload.update(extra)
        return cls(
            event_type=event_type,
            source="recovery",
            payload=payload,
        )


# Type alias for event handlers
EventHandler = Callable[[EngineEvent], None]


class EventBus:
    """
    Event bus for engine state transitions.

    Supports:
    - Event subscription by type
    - Wildcard subscriptions (receive all events)
    - Bounded event history for debugging
    - Pause/resume
    """

    def __init__(self, max_history: int = 100):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._wildcard_handlers: List[EventHandler] = []
        self._history: List[EngineEvent] = []
        self._max_history: int = max_history
        self._paused: bool = False

    @property
    def is_paused(self) -> bool:
        return self._paused

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Type of events to receive
            handler: Callback function(event) -> None
        """
        if event_type not in self._handlers:
            self._handlers[event_type] = []

        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)
            logger.debug(f"Subscribed handler to {event_type.value}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        if handler not in self._wildcard_handlers:
            self._wildcard_handlers.append(handler)
            logger.debug("Subscribed wildcard handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> bool:
        """
        Unsubscribe from events of a specific type.

        Returns:
            True if handler was removed
        """
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type.value}")
                return True
            except ValueError:
                pass
        return False

    def unsubscribe_all(self, handler: EventHandler) -> bool:
        """Remove a wildcard handler."""
        try:
            self._wildcard_handlers.remove(handler)
            return True
        except ValueError:
            return False

    def emit(self, event: EngineEvent) -> None:
        """
        Emit an event to all subscribers.

        Handler failures are logged and never reach the emitter.
        """
        if self._paused:
            logger.debug(f"Event bus paused, dropping event: {event.event_type.value}")
            return

        self._history.append(event)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

        logger.debug(f"Emitting event: {event.event_type.value} from {event.source}")

        for handler in list(self._handlers.get(event.event_type, [])):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Event handler failed: {e}")

        if event.propagate:
            for handler in list(self._wildcard_handlers):
                try:
                    handler(event)
                except Exception as e:
                    logger.error(f"Wildcard handler failed: {e}")

    def emit_simple(
        self,
        event_type: EventType,
        source: str = "",
        **payload,
    ) -> EngineEvent:
        """Emit an event built from keyword payload and return it."""
        event = EngineEvent(
            event_type=event_type,
            source=source,
            payload=payload,
        )
        self.emit(event)
        return event

    def pause(self) -> None:
        """Pause event emission."""
        self._paused = True
        logger.debug("Event bus paused")

    def resume(self) -> None:
        """Resume event emission."""
        self._paused = False
        logger.debug("Event bus resumed")

    def clear_handlers(self, event_type: Optional[EventType] = None) -> None:
        """Clear handlers for one type, or all handlers when type is None."""
        if event_type:
            self._handlers.pop(event_type, None)
        else:
            self._handlers.clear()
            self._wildcard_handlers.clear()

    def get_history(self, limit: int = 20, event_type: Optional[EventType] = None) -> List[EngineEvent]:
        """
        Get event history.

        Args:
            limit: Maximum events to return
            event_type: Filter by type

        Returns:
            List of recent events, oldest first
        """
        history = self._history
        if event_type:
            history = [e for e in history if e.event_type == event_type]
        return history[-limit:] if limit else list(history)

    def clear_history(self) -> None:
        """Clear event history."""
        self._history.clear()

    @property
    def handler_count(self) -> int:
        """Get total number of registered handlers."""
        count = sum(len(handlers) for handlers in self._handlers.values())
        count += len(self._wildcard_handlers)
        return count
