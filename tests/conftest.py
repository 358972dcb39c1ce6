"""
faultline Test Configuration and Fixtures

Deterministic building blocks: seeded RNGs, a controllable clock, an instant
sleep and an event recorder.
"""

import asyncio
import random
from datetime import datetime, timedelta, timezone
from typing import Dict, List

import pytest

from faultline.errors.taxonomy import (
    ErrorCategory,
    ErrorSeverity,
    ErrorType,
    RecoveryActionKind,
    create_mock_error,
)
from faultline.errors.generator import ErrorGenerator
from faultline.errors.recovery import ErrorRecoveryManager, OutcomeTable
from faultline.errors.coordinator import ErrorHandlingCoordinator
from faultline.ui.events import EventBus


EPOCH = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = EPOCH):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class ScriptedOutcomeTable(OutcomeTable):
    """Outcome table returning a fixed probability per step."""

    def __init__(self, by_step: Dict[int, float], default: float = 1.0):
        super().__init__()
        self.by_step = by_step
        self.default = default
        self.calls: List[tuple] = []

    def success_probability(self, action, error, step=1, prior_attempts=0):
        self.calls.append((action, step))
        return self.by_step.get(step, self.default)


class EventRecorder:
    """Collects every event emitted on a bus."""

    def __init__(self, bus: EventBus):
        self.events = []
        bus.subscribe_all(self.events.append)

    @property
    def types(self):
        return [e.event_type for e in self.events]


async def instant_sleep(seconds: float) -> None:
    # Yield once so other tasks still get scheduled
    await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def recorder(event_bus):
    return EventRecorder(event_bus)


@pytest.fixture
def generator(event_bus, clock):
    return ErrorGenerator(rng=random.Random(42), clock=clock, event_bus=event_bus)


@pytest.fixture
def recovery_manager(event_bus):
    return ErrorRecoveryManager(
        rng=random.Random(7),
        sleep=instant_sleep,
        latency_range=(0.0, 0.0),
        event_bus=event_bus,
    )


@pytest.fixture
def coordinator(generator, recovery_manager, event_bus, clock):
    return ErrorHandlingCoordinator(
        generator=generator,
        recovery_manager=recovery_manager,
        event_bus=event_bus,
        clock=clock,
        sleep=instant_sleep,
        demo_interval=0.0,
    )


@pytest.fixture
def scripted_table():
    """Factory for outcome tables keyed by step number."""
    return ScriptedOutcomeTable


@pytest.fixture
def make_error(clock):
    """Factory for hand-built errors with sensible defaults."""

    def _make(
        category=ErrorCategory.NETWORK,
        error_type=ErrorType.NO_CONNECTION,
        severity=ErrorSeverity.HIGH,
        is_retryable=True,
        recovery_actions=None,
        created_at=None,
        title="Test Error",
    ):
        return create_mock_error(
            category=category,
            error_type=error_type,
            title=title,
            message="Something failed",
            severity=severity,
            is_retryable=is_retryable,
            recovery_actions=recovery_actions or [
                RecoveryActionKind.CHECK_CONNECTION,
                RecoveryActionKind.WORK_OFFLINE,
                RecoveryActionKind.RETRY,
                RecoveryActionKind.DISMISS,
            ],
            created_at=created_at or clock(),
        )

    return _make
