"""
bootstrap/app.py - Application builder and lifecycle

Module 6: Bootstrap Layer

Composition root: builds the event bus, generator, recovery manager and
coordinator from configuration and wires them together. Nothing in the
engine is reached through module globals.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum
import asyncio
import logging
import random
import time

from .config import FaultlineConfig, load_config
from faultline.errors.generator import ErrorGenerator
from faultline.errors.recovery import ErrorRecoveryManager, OutcomeTable
from faultline.errors.coordinator import ErrorHandlingCoordinator
from faultline.errors.suppression import default_suppression_rules
from faultline.errors.scheduling import SleepFn
from faultline.ui.events import EventBus

logger = logging.getLogger("bootstrap.app")


class AppState(Enum):
    """Application lifecycle states."""
    CREATED = "created"
    CONFIGURING = "configuring"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass
class AppContext:
    """Runtime application context."""
    config: FaultlineConfig = None
    state: AppState = AppState.CREATED
    start_time: float = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get_uptime(self) -> float:
        """Get application uptime in seconds."""
        if self.start_time == 0:
            return 0
        return time.time() - self.start_time


class FaultlineApp:
    """
    Builds and owns one engine instance.

    RNGs are seeded from configuration so a run can be replayed. Tests inject
    an outcome table or sleep function through the constructor.
    """

    def __init__(
        self,
        config_file: str = None,
        config: Optional[FaultlineConfig] = None,
        outcome_table: Optional[OutcomeTable] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        self._config_file = config_file
        self._context = AppContext(config=config)
        self._outcome_table = outcome_table
        self._sleep = sleep
        self._startup_hooks: List[Callable] = []
        self._shutdown_hooks: List[Callable] = []
        self._initialized = False

        self.event_bus: Optional[EventBus] = None
        self.generator: Optional[ErrorGenerator] = None
        self.recovery_manager: Optional[ErrorRecoveryManager] = None
        self.coordinator: Optional[ErrorHandlingCoordinator] = None

    @property
    def config(self) -> FaultlineConfig:
        return self._context.config

    @property
    def context(self) -> AppContext:
        return self._context

    @property
    def is_built(self) -> bool:
        return self._initialized

    def build(self) -> "FaultlineApp":
        """Construct engine components in dependency order."""
        self._context.state = AppState.CONFIGURING

        if self._context.config is None:
            self._context.config = load_config(self._config_file)
        else:
            self._context.config.validate()

        config = self._context.config

        self.event_bus = EventBus()

        self.generator = ErrorGenerator(
            rng=random.Random(config.generator.seed),
            category_weights=config.generator.category_weights,
            interval_override=config.generator.scenario_interval_seconds,
            event_bus=self.event_bus,
            sleep=self._sleep,
        )

        self.recovery_manager = ErrorRecoveryManager(
            outcome_table=self._outcome_table,
            rng=random.Random(config.recovery.seed),
            sleep=self._sleep,
            latency_range=(config.recovery.latency_min_seconds, config.recovery.latency_max_seconds),
            steps_by_severity=config.recovery.steps_by_severity,
            event_bus=self.event_bus,
        )

        self.coordinator = ErrorHandlingCoordinator(
            generator=self.generator,
            recovery_manager=self.recovery_manager,
            event_bus=self.event_bus,
            suppression_rules=default_suppression_rules() if config.coordinator.suppression_enabled else None,
            enabled=config.coordinator.enabled,
            demo_interval=config.coordinator.demo_interval_seconds,
            sleep=self._sleep,
        )

        self._initialized = True
        logger.info("Application built successfully")
        return self

    async def start(self) -> None:
        """Start application and run startup hooks."""
        if not self._initialized:
            self.build()

        self._context.state = AppState.STARTING
        self._context.start_time = time.time()

        for hook in self._startup_hooks:
            try:
                if asyncio.iscoroutinefunction(hook):
                    await hook(self._context)
                else:
                    hook(self._context)
            except Exception as e:
                logger.error(f"Startup hook failed: {e}")
                self._context.state = AppState.FAILED
                raise

        self._context.state = AppState.RUNNING
        logger.info("Application started")

    async def stop(self) -> None:
        """Stop timers and run shutdown hooks."""
        self._context.state = AppState.STOPPING

        if self.coordinator is not None:
            self.coordinator.shutdown()

        for hook in reversed(self._shutdown_hooks):
            try:
                if asyncio.iscoroutinefunction(hook):
                    await hook(self._context)
                else:
                    hook(self._context)
            except Exception as e:
                logger.error(f"Shutdown hook failed: {e}")

        self._context.state = AppState.STOPPED
        logger.info("Application stopped")

    def on_startup(self, hook: Callable) -> "FaultlineApp":
        """Register startup hook."""
        self._startup_hooks.append(hook)
        return self

    def on_shutdown(self, hook: Callable) -> "FaultlineApp":
        """Register shutdown hook."""
        self._shutdown_hooks.append(hook)
        return self


def create_app(config_file: str = None, **kwargs) -> FaultlineApp:
    """Create and build an engine."""
    return FaultlineApp(config_file, **kwargs).build()
