"""
errors/coordinator.py - Error handling coordinator

Module 4: Handling Coordinator

Holds the currently displayed error and the append-only history, routes
scenario emissions into display, and drives recovery for the current error.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import asyncio
import logging

from .taxonomy import (
    ErrorCategory,
    ErrorScenario,
    ErrorType,
    MockError,
    RecoveryActionKind,
)
from .generator import Clock, ErrorGenerator, utc_now
from .recovery import ErrorRecoveryManager, RecoveryProgress, RecoveryResult
from .aggregator import (
    ErrorAggregator,
    ErrorExportData,
    ErrorStatistics,
    RecoveryInsight,
    derive_history_insights,
    rank_insights,
)
from .suppression import SuppressionRule, first_matching_rule
from .scheduling import SleepFn

from faultline.ui.events import EngineEvent, EventBus, EventType

logger = logging.getLogger("errors.coordinator")

A = RecoveryActionKind

# A successful action from this set resolves the displayed error
DISMISS_ON_SUCCESS = frozenset({
    A.DISMISS,
    A.CONTINUE_DEMO,
    A.WORK_OFFLINE,
    A.ACCEPT_MERGE,
    A.CONTINUE_LOCAL,
    A.RETRY,
    A.SIGN_IN,
    A.EDIT_INPUT,
    A.FORCE_SYNC,
})

DEFAULT_DEMO_INTERVAL = 3.0


@dataclass
class ErrorContext:
    """Host application context used to pick plausible error categories."""

    current_view: str = ""
    network_status: str = "good"
    authentication_status: str = "authenticated"
    user_role: str = "parent"
    recent_errors: List[MockError] = field(default_factory=list)


def contextual_categories(context: ErrorContext) -> List[ErrorCategory]:
    """Categories that make sense for the given context. Never empty."""
    view = context.current_view.lower()
    categories: List[ErrorCategory] = []

    if context.network_status in ("poor", "offline"):
        categories.append(ErrorCategory.NETWORK)
    if context.authentication_status == "unauthenticated":
        categories.append(ErrorCategory.AUTHENTICATION)
    if context.user_role in ("child", "restricted"):
        categories.append(ErrorCategory.PERMISSION)
    if "form" in view or "create" in view:
        categories.append(ErrorCategory.VALIDATION)
    if "family" in view or "join" in view:
        categories.append(ErrorCategory.FAMILY_MANAGEMENT)
    if "scan" in view or "qr" in view:
        categories.append(ErrorCategory.QR_CODE)
    if any(e.category == ErrorCategory.SYNC for e in context.recent_errors):
        categories.append(ErrorCategory.SYNC)

    categories.append(ErrorCategory.PROTOTYPE)
    return categories


class ErrorHandlingCoordinator:
    """
    Coordinates display, history, scenarios and recovery.

    State per displayed error: displayed -> (recovering -> displayed)* ->
    dismissed. Replacing or dismissing an error abandons its recovery flow.
    """

    def __init__(
        self,
        generator: Optional[ErrorGenerator] = None,
        recovery_manager: Optional[ErrorRecoveryManager] = None,
        event_bus: Optional[EventBus] = None,
        suppression_rules: Optional[Sequence[SuppressionRule]] = None,
        enabled: bool = True,
        demo_interval: float = DEFAULT_DEMO_INTERVAL,
        clock: Clock = utc_now,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.event_bus = event_bus or EventBus()
        self.generator = generator or ErrorGenerator(clock=clock, event_bus=self.event_bus)
        self.recovery_manager = recovery_manager or ErrorRecoveryManager(event_bus=self.event_bus)
        self._suppression_rules: List[SuppressionRule] = list(suppression_rules or [])
        self._enabled = enabled
        self._demo_interval = demo_interval
        self._clock = clock
        self._sleep = sleep

        self._current_error: Optional[MockError] = None
        self._history = ErrorAggregator()
        self._demo_task: Optional[asyncio.Task] = None

        self.generator.add_emission_listener(self._on_scenario_error)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def current_error(self) -> Optional[MockError]:
        return self._current_error

    @property
    def is_error_handling_enabled(self) -> bool:
        return self._enabled

    @property
    def history(self) -> List[MockError]:
        return list(self._history.errors)

    @property
    def suppression_rules(self) -> List[SuppressionRule]:
        return list(self._suppression_rules)

    def set_suppression_rules(self, rules: Sequence[SuppressionRule]) -> None:
        self._suppression_rules = list(rules)

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def display_error(self, error: MockError) -> bool:
        """
        Show an error, replacing the current one.

        Returns:
            False when handling is disabled or a suppression rule matched
        """
        if not self._enabled:
            logger.debug(f"Error handling disabled, ignoring {error.error_id}")
            return False

        rule = first_matching_rule(self._suppression_rules, error, self._history.errors)
        if rule is not None:
            logger.info(f"Suppressed {error.category.value}/{error.error_type.value} by {rule.rule_type.value}")
            self.event_bus.emit_simple(
                EventType.ERROR_SUPPRESSED,
                source="coordinator",
                error_id=error.error_id,
                rule=rule.to_dict(),
            )
            return False

        previous = self._current_error
        if previous is not None and previous != error:
            self.recovery_manager.cancel_recovery_flow(previous.error_id)

        self._current_error = error
        self._history.add(error)

        logger.info(f"Displaying {error.severity.value} error: {error.title}")
        self.event_bus.emit(EngineEvent.error_displayed(
            error.to_dict(),
            previous.error_id if previous is not None else None,
        ))
        return True

    def dismiss_current_error(self) -> Optional[MockError]:
        """Clear the current error. History is untouched."""
        error = self._current_error
        if error is None:
            return None

        self.recovery_manager.cancel_recovery_flow(error.error_id)
        self._current_error = None

        logger.debug(f"Dismissed {error.error_id}")
        self.event_bus.emit(EngineEvent.error_dismissed(error.error_id))
        return error

    def generate_and_display_random_error(self) -> MockError:
        error = self.generator.generate_random_error()
        self.display_error(error)
        return error

    def display_error_for_category(self, category: ErrorCategory) -> MockError:
        error = self.generator.generate_error(category)
        self.display_error(error)
        return error

    def display_specific_error(self, category: ErrorCategory, error_type: ErrorType) -> MockError:
        error = self.generator.generate_error(category, error_type)
        self.display_error(error)
        return error

    def generate_contextual_error(self, context: ErrorContext) -> MockError:
        """Generate (without displaying) an error that fits the host context."""
        return self.generator.generate_error_among(contextual_categories(context))

    def _on_scenario_error(self, error: MockError) -> None:
        self.display_error(error)

    # -------------------------------------------------------------------------
    # Scenarios
    # -------------------------------------------------------------------------

    def start_error_scenario(self, scenario: ErrorScenario) -> None:
        self.generator.start_scenario(scenario)

    def stop_error_scenario(self) -> None:
        self.generator.stop_scenario()

    @property
    def current_error_scenario(self) -> Optional[ErrorScenario]:
        return self.generator.current_error_scenario

    def get_available_scenarios(self) -> List[ErrorScenario]:
        return list(ErrorScenario)

    # -------------------------------------------------------------------------
    # Recovery
    # -------------------------------------------------------------------------

    def get_recovery_manager(self) -> ErrorRecoveryManager:
        return self.recovery_manager

    def begin_recovery(self) -> Optional[RecoveryProgress]:
        """Start a recovery flow for the current error."""
        if self._current_error is None:
            return None
        return self.recovery_manager.start_recovery_flow(self._current_error)

    async def execute_recovery_action(self, action: RecoveryActionKind) -> Optional[RecoveryResult]:
        """
        Run `action` against the current error.

        The error is dismissed when the action succeeds, warrants dismissal
        and the same error is still displayed after the await.
        """
        error = self._current_error
        if error is None:
            return None

        result = await self.recovery_manager.execute_recovery_action(action, error)

        if (
            result.is_successful
            and not result.abandoned
            and action in DISMISS_ON_SUCCESS
            and self._current_error == error
        ):
            self.dismiss_current_error()

        return result

    # -------------------------------------------------------------------------
    # Statistics & insights
    # -------------------------------------------------------------------------

    @property
    def error_statistics(self) -> ErrorStatistics:
        return self._history.statistics(self._clock())

    def get_error_handling_insights(self) -> List[RecoveryInsight]:
        """History and recovery insights, highest score first."""
        if len(self._history) == 0:
            return []

        insights = derive_history_insights(self.error_statistics)
        insights.extend(self.recovery_manager.get_recovery_insights())
        return rank_insights(insights)

    def reset_error_tracking(self) -> None:
        """Clear history and current error, stop timers, reset recovery tallies."""
        self.cancel_error_demo()
        self.generator.reset()
        self._current_error = None
        self._history.clear()
        self.recovery_manager.reset_recovery_tracking()

        logger.info("Error tracking reset")
        self.event_bus.emit_simple(EventType.TRACKING_RESET, source="coordinator")

    def export_error_data(self) -> ErrorExportData:
        return ErrorExportData(
            errors=list(self._history.errors),
            statistics=self.error_statistics,
            insights=self.get_error_handling_insights(),
            recovery_summary=self.recovery_manager.recovery_summary(),
            exported_at=self._clock(),
        )

    # -------------------------------------------------------------------------
    # Demo
    # -------------------------------------------------------------------------

    @property
    def is_demo_running(self) -> bool:
        return self._demo_task is not None and not self._demo_task.done()

    async def run_error_demo(self, interval: Optional[float] = None) -> List[MockError]:
        """Display the demo sequence, one error every `interval` seconds."""
        interval = self._demo_interval if interval is None else interval
        errors = self.generator.generate_demo_sequence()

        self.event_bus.emit_simple(EventType.DEMO_STARTED, source="coordinator", count=len(errors))
        logger.info(f"Running error demo ({len(errors)} errors, {interval}s apart)")

        displayed: List[MockError] = []
        for index, error in enumerate(errors):
            if index:
                await self._sleep(interval)
            if self.display_error(error):
                displayed.append(error)

        self.event_bus.emit_simple(EventType.DEMO_COMPLETED, source="coordinator", displayed=len(displayed))
        return displayed

    def start_error_demo(self, interval: Optional[float] = None) -> asyncio.Task:
        """Schedule run_error_demo on the running loop, replacing any demo in progress."""
        self.cancel_error_demo()
        loop = asyncio.get_running_loop()
        self._demo_task = loop.create_task(self.run_error_demo(interval), name="error-demo")
        return self._demo_task

    def cancel_error_demo(self) -> bool:
        if self._demo_task is None:
            return False

        task, self._demo_task = self._demo_task, None
        if task.done():
            return False
        task.cancel()
        logger.debug("Error demo cancelled")
        return True

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def set_error_handling_enabled(self, enabled: bool) -> None:
        """Toggle handling. Disabling also clears the current error."""
        self._enabled = enabled
        if not enabled:
            self.dismiss_current_error()

        logger.info(f"Error handling {'enabled' if enabled else 'disabled'}")
        self.event_bus.emit_simple(EventType.HANDLING_TOGGLED, source="coordinator", enabled=enabled)

    def shutdown(self) -> None:
        """Stop scenario and demo timers."""
        self.stop_error_scenario()
        self.cancel_error_demo()

    def status(self) -> Dict[str, object]:
        return {
            "enabled": self._enabled,
            "current_error_id": self._current_error.error_id if self._current_error else None,
            "history_size": len(self._history),
            "scenario": self.current_error_scenario.value if self.current_error_scenario else None,
            "demo_running": self.is_demo_running,
            "recovery": self.recovery_manager.recovery_progress.to_dict(),
        }
