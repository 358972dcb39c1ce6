"""
errors/generator.py - Mock error generation

Module 2: Error Generator

Produces MockError instances on demand or on a scenario timer. The random
source and clock are injected so generation is reproducible under test.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime, timezone
import asyncio
import logging
import random

from .taxonomy import (
    ErrorCategory,
    ErrorScenario,
    ErrorType,
    MockError,
    ScenarioPolicy,
    SCENARIO_POLICIES,
)
from .catalog import ERROR_CATALOG, DEMO_SEQUENCE, ErrorTemplate, templates_for
from .scheduling import ScheduledTask, SleepFn

from faultline.ui.events import EngineEvent, EventBus

logger = logging.getLogger("errors.generator")

Clock = Callable[[], datetime]
EmissionListener = Callable[[MockError], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ErrorGenerator:
    """
    Generates simulated errors.

    Scenario mode runs a ScheduledTask that emits through tick(); every
    registered emission listener receives each scenario error in order.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Clock = utc_now,
        category_weights: Optional[Dict[ErrorCategory, float]] = None,
        catalog: Optional[Dict[ErrorCategory, List[ErrorTemplate]]] = None,
        scenario_policies: Optional[Dict[ErrorScenario, ScenarioPolicy]] = None,
        interval_override: Optional[float] = None,
        event_bus: Optional[EventBus] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        self._rng = rng or random.Random()
        self._clock = clock
        self._catalog = catalog if catalog is not None else ERROR_CATALOG
        self._category_weights = dict(category_weights or {})
        self._scenario_policies = dict(SCENARIO_POLICIES)
        if scenario_policies:
            self._scenario_policies.update(scenario_policies)
        self._interval_override = interval_override
        self._event_bus = event_bus
        self._sleep = sleep

        self._current_scenario: Optional[ErrorScenario] = None
        self._scenario_task: Optional[ScheduledTask] = None
        self._listeners: List[EmissionListener] = []
        self._generated_count = 0

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    @property
    def generated_count(self) -> int:
        return self._generated_count

    def generate_error(
        self,
        category: Any,
        error_type: Optional[ErrorType] = None,
    ) -> MockError:
        """
        Generate an error for a category.

        Unknown categories map to GENERIC. When error_type belongs to the
        category, the matching template is used; otherwise one is picked at
        random from the pool.
        """
        category = ErrorCategory.coerce(category)
        pool = templates_for(category, self._catalog)

        if error_type is not None:
            matching = [t for t in pool if t.error_type == error_type]
            if matching:
                pool = matching

        template = self._rng.choice(pool)
        error = template.build(created_at=self._clock())
        self._generated_count += 1

        logger.debug(f"Generated {error.category.value}/{error.error_type.value} ({error.severity.value})")
        return error

    def generate_random_error(self) -> MockError:
        """Pick a category (uniform, or by configured weights) and generate."""
        return self.generate_error(self._pick_category(self._category_weights))

    def maybe_generate_error(self) -> Optional[MockError]:
        """
        Probability-gated generation for the active scenario.

        Returns None when no scenario is active or the emission roll fails.
        """
        if self._current_scenario is None:
            return None

        policy = self._scenario_policies[self._current_scenario]
        if not policy.categories or policy.emission_probability <= 0.0:
            return None

        if self._rng.random() >= policy.emission_probability:
            return None

        return self.generate_error(self._pick_category(policy.category_weights))

    def generate_error_among(self, categories: List[ErrorCategory]) -> MockError:
        """Generate for a category picked uniformly from `categories`."""
        if not categories:
            return self.generate_error(ErrorCategory.GENERIC)
        return self.generate_error(self._rng.choice(categories))

    def generate_demo_sequence(self) -> List[MockError]:
        """One error per primary category, in a fixed order."""
        return [self.generate_error(category) for category in DEMO_SEQUENCE]

    def _pick_category(self, weights: Dict[ErrorCategory, float]) -> ErrorCategory:
        weighted = [(c, w) for c, w in weights.items() if w > 0]
        if not weighted:
            return self._rng.choice(list(ErrorCategory))

        categories = [c for c, _ in weighted]
        return self._rng.choices(categories, weights=[w for _, w in weighted], k=1)[0]

    # -------------------------------------------------------------------------
    # Scenarios
    # -------------------------------------------------------------------------

    @property
    def current_error_scenario(self) -> Optional[ErrorScenario]:
        return self._current_scenario

    @property
    def scenario_task(self) -> Optional[ScheduledTask]:
        return self._scenario_task

    def get_scenario_policy(self, scenario: ErrorScenario) -> ScenarioPolicy:
        return self._scenario_policies[scenario]

    def add_emission_listener(self, listener: EmissionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_emission_listener(self, listener: EmissionListener) -> bool:
        try:
            self._listeners.remove(listener)
            return True
        except ValueError:
            return False

    def start_scenario(self, scenario: ErrorScenario) -> None:
        """
        Activate a scenario, replacing any active one.

        With a running event loop a repeating timer drives tick(); without one
        the scenario is only recorded and tick() must be called by the host.
        """
        self._cancel_timer()
        self._current_scenario = scenario

        policy = self._scenario_policies[scenario]
        interval = self._interval_override if self._interval_override is not None else policy.interval_seconds

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop; scenario {scenario.value} will only emit on manual tick()")
        else:
            self._scenario_task = ScheduledTask(
                name=f"scenario-{scenario.value}",
                interval=interval,
                callback=self.tick,
                repeat=True,
                sleep=self._sleep,
            ).start()

        logger.info(f"Started error scenario: {scenario.display_name} (every {interval}s)")
        self._emit_scenario_event(started=True, scenario=scenario)

    def stop_scenario(self) -> None:
        """Stop the active scenario. No-op when none is active."""
        if self._current_scenario is None and self._scenario_task is None:
            return

        scenario = self._current_scenario
        self._cancel_timer()
        self._current_scenario = None

        logger.info(f"Stopped error scenario: {scenario.display_name if scenario else 'none'}")
        self._emit_scenario_event(started=False, scenario=scenario)

    def tick(self) -> Optional[MockError]:
        """Run one scenario emission and hand the error to listeners."""
        error = self.maybe_generate_error()
        if error is None:
            return None

        for listener in list(self._listeners):
            try:
                listener(error)
            except Exception as e:
                logger.error(f"Emission listener failed: {e}")

        return error

    def _cancel_timer(self) -> None:
        if self._scenario_task is not None:
            self._scenario_task.cancel()
            self._scenario_task = None

    def _emit_scenario_event(self, started: bool, scenario: Optional[ErrorScenario]) -> None:
        if self._event_bus is None:
            return

        if started:
            event = EngineEvent.scenario_started(scenario.value, self._scenario_policies[scenario].to_dict())
        else:
            event = EngineEvent.scenario_stopped(scenario.value if scenario else None)
        self._event_bus.emit(event)

    def reset(self) -> None:
        """Stop any scenario and zero the counters."""
        self.stop_scenario()
        self._generated_count = 0
