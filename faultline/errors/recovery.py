"""
errors/recovery.py - Simulated multi-step error recovery

Module 3: Recovery Manager

One recovery flow is active at a time. Each action advances the flow by one
step, waits a short simulated latency and then rolls against the outcome
table. The last step decides whether the flow succeeded.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, List, Optional, Tuple
from datetime import datetime, timezone
import asyncio
import logging
import random
import uuid

from .taxonomy import (
    ActionStyle,
    ErrorCategory,
    ErrorSeverity,
    ErrorType,
    MockError,
    RecoveryActionKind,
)
from .aggregator import RecoveryInsight, RecoveryTally, derive_recovery_insights, rank_insights
from .scheduling import SleepFn

from faultline.ui.events import EngineEvent, EventBus, EventType

logger = logging.getLogger("errors.recovery")

A = RecoveryActionKind


# Steps a flow needs before it is complete
STEPS_BY_SEVERITY: Dict[ErrorSeverity, int] = {
    ErrorSeverity.INFO: 1,
    ErrorSeverity.LOW: 1,
    ErrorSeverity.MEDIUM: 2,
    ErrorSeverity.HIGH: 2,
    ErrorSeverity.CRITICAL: 3,
}

DEFAULT_LATENCY_RANGE: Tuple[float, float] = (0.2, 0.8)


# =============================================================================
# OUTCOME TABLE
# =============================================================================

BASE_SUCCESS_PROBABILITIES: Dict[RecoveryActionKind, float] = {
    A.RETRY: 0.70,
    A.TRY_AGAIN: 0.70,
    A.EDIT_INPUT: 0.95,
    A.CHOOSE_DIFFERENT_NAME: 0.90,
    A.ADD_SUFFIX: 0.90,
    A.OPEN_SETTINGS: 0.90,
    A.CHECK_CONNECTION: 0.60,
    A.WORK_OFFLINE: 0.90,
    A.FORCE_SYNC: 0.80,
    A.ACCEPT_MERGE: 0.85,
    A.SIGN_IN: 0.80,
    A.REFRESH_ENVIRONMENT: 0.70,
    A.CHECK_DEPENDENCIES: 0.65,
    A.RESTART_VIEW: 0.85,
}

# Prototype actions and plain acknowledgements
ALWAYS_SUCCEED: FrozenSet[RecoveryActionKind] = frozenset({
    A.DISMISS,
    A.USE_DEFAULT_STATE,
    A.CONTINUE_DEMO,
    A.LEARN_MORE,
})

# Permission changes happen outside the app and are never granted in simulation
PERMISSION_ACTIONS: FrozenSet[RecoveryActionKind] = frozenset({
    A.CONTACT_ADMIN,
    A.REQUEST_PERMISSION,
    A.ASK_PARENT,
})

RETRY_LIKE_ACTIONS: FrozenSet[RecoveryActionKind] = frozenset({
    A.RETRY,
    A.TRY_AGAIN,
    A.FORCE_SYNC,
    A.REFRESH_ENVIRONMENT,
})

SEVERITY_ADJUSTMENTS: Dict[ErrorSeverity, float] = {
    ErrorSeverity.INFO: 0.1,
    ErrorSeverity.LOW: 0.1,
    ErrorSeverity.MEDIUM: 0.0,
    ErrorSeverity.HIGH: -0.1,
    ErrorSeverity.CRITICAL: -0.2,
}


@dataclass
class OutcomeTable:
    """
    Success probabilities for recovery actions.

    Every knob is data. Tests replace individual fields, or subclass and
    override success_probability() to script exact outcomes.
    """

    base_probabilities: Dict[RecoveryActionKind, float] = field(
        default_factory=lambda: dict(BASE_SUCCESS_PROBABILITIES)
    )
    default_probability: float = 0.75
    always_succeed: FrozenSet[RecoveryActionKind] = ALWAYS_SUCCEED
    never_succeed: FrozenSet[RecoveryActionKind] = PERMISSION_ACTIONS
    retry_like: FrozenSet[RecoveryActionKind] = RETRY_LIKE_ACTIONS
    retryable_bonus: float = 0.15
    non_retryable_penalty: float = 0.2
    destructive_multiplier: float = 0.5
    severity_adjustments: Dict[ErrorSeverity, float] = field(
        default_factory=lambda: dict(SEVERITY_ADJUSTMENTS)
    )
    repeat_penalty: float = 0.1
    min_probability: float = 0.1
    max_probability: float = 1.0

    def success_probability(
        self,
        action: RecoveryActionKind,
        error: MockError,
        step: int = 1,
        prior_attempts: int = 0,
    ) -> float:
        """
        Probability in [0, 1] that `action` succeeds for `error`.

        Args:
            action: Action being executed
            error: Error being recovered
            step: 1-based step within the current flow
            prior_attempts: Earlier flows for the same category and subtype
        """
        if action in self.always_succeed:
            return 1.0
        if action in self.never_succeed:
            return 0.0

        probability = self.base_probabilities.get(action, self.default_probability)

        if action in self.retry_like:
            if error.is_retryable:
                probability += self.retryable_bonus
            else:
                probability -= self.non_retryable_penalty

        if action.style == ActionStyle.DESTRUCTIVE:
            probability *= self.destructive_multiplier

        probability += self.severity_adjustments.get(error.severity, 0.0)
        probability -= prior_attempts * self.repeat_penalty

        return max(self.min_probability, min(self.max_probability, probability))


# =============================================================================
# RESULT MESSAGES
# =============================================================================

SUCCESS_MESSAGES: Dict[RecoveryActionKind, str] = {
    A.RETRY: "Operation completed successfully",
    A.TRY_AGAIN: "Operation completed successfully",
    A.CHECK_CONNECTION: "Connection restored",
    A.WORK_OFFLINE: "Working offline",
    A.SIGN_IN: "Successfully signed in",
    A.EDIT_INPUT: "Input validated successfully",
    A.OPEN_SETTINGS: "Permission granted",
    A.FORCE_SYNC: "Data synchronized",
    A.USE_DEFAULT_STATE: "Default state restored",
    A.REFRESH_ENVIRONMENT: "Environment refreshed",
    A.DISMISS: "Dismissed",
}

FAILURE_MESSAGES: Dict[RecoveryActionKind, str] = {
    A.RETRY: "Operation failed, please try again",
    A.TRY_AGAIN: "Operation failed, please try again",
    A.CHECK_CONNECTION: "Connection still unavailable",
    A.SIGN_IN: "Sign in failed",
    A.EDIT_INPUT: "Input still invalid",
    A.OPEN_SETTINGS: "Permission not granted",
    A.FORCE_SYNC: "Sync failed",
    A.CONTACT_ADMIN: "Unable to contact admin",
    A.REQUEST_PERMISSION: "Permission request was not approved",
    A.ASK_PARENT: "Parent approval not received",
}


def result_message(action: RecoveryActionKind, success: bool) -> str:
    if success:
        return SUCCESS_MESSAGES.get(action, "Action completed successfully")
    return FAILURE_MESSAGES.get(action, "Action failed")


# =============================================================================
# PROGRESS & RESULTS
# =============================================================================

@dataclass
class RecoveryProgress:
    """Progress of the active recovery flow."""

    current_step: int = 0
    total_steps: int = 0
    is_complete: bool = False
    has_succeeded: bool = False

    @property
    def progress_percentage(self) -> float:
        if self.total_steps <= 0:
            return 0.0
        return self.current_step / self.total_steps

    def copy(self) -> "RecoveryProgress":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_step": self.current_step,
            "total_steps": self.total_steps,
            "is_complete": self.is_complete,
            "has_succeeded": self.has_succeeded,
            "progress_percentage": self.progress_percentage,
        }


@dataclass
class RecoveryResult:
    """Result of one recovery action."""

    action: RecoveryActionKind
    is_successful: bool = False
    message: str = ""
    next_recommended_action: Optional[RecoveryActionKind] = None
    execution_time: float = 0.0
    step: int = 0
    abandoned: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "is_successful": self.is_successful,
            "message": self.message,
            "next_recommended_action": (
                self.next_recommended_action.value if self.next_recommended_action else None
            ),
            "execution_time": round(self.execution_time, 4),
            "step": self.step,
            "abandoned": self.abandoned,
        }


@dataclass
class _RecoveryFlow:
    error: MockError
    progress: RecoveryProgress
    prior_attempts: int = 0
    attempted: List[RecoveryActionKind] = field(default_factory=list)
    flow_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    cancelled: bool = False


# =============================================================================
# MANAGER
# =============================================================================

class ErrorRecoveryManager:
    """
    Runs simulated recovery flows and keeps aggregate tallies.

    Individual results are returned to the caller and not retained.
    """

    def __init__(
        self,
        outcome_table: Optional[OutcomeTable] = None,
        rng: Optional[random.Random] = None,
        sleep: SleepFn = asyncio.sleep,
        latency_range: Tuple[float, float] = DEFAULT_LATENCY_RANGE,
        steps_by_severity: Optional[Dict[ErrorSeverity, int]] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.outcome_table = outcome_table or OutcomeTable()
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._latency_range = (min(latency_range), max(latency_range))
        self._steps_by_severity = dict(STEPS_BY_SEVERITY)
        if steps_by_severity:
            self._steps_by_severity.update(steps_by_severity)
        self._event_bus = event_bus

        self._flow: Optional[_RecoveryFlow] = None
        self._completed_progress: Optional[RecoveryProgress] = None
        self._in_flight = 0

        # Aggregate tallies
        self._flows_started: Dict[Tuple[ErrorCategory, ErrorType], int] = {}
        self._category_tallies: Dict[ErrorCategory, RecoveryTally] = {}
        self._action_tallies: Dict[RecoveryActionKind, RecoveryTally] = {}
        self._subtype_action_tallies: Dict[ErrorType, Dict[RecoveryActionKind, RecoveryTally]] = {}

    # -------------------------------------------------------------------------
    # Observables
    # -------------------------------------------------------------------------

    @property
    def recovery_progress(self) -> RecoveryProgress:
        """
        Copy of the active flow's progress.

        After a completed flow is released its final progress stays readable
        until the next flow starts; otherwise idle reads are zeroed.
        """
        if self._flow is not None:
            return self._flow.progress.copy()
        if self._completed_progress is not None:
            return self._completed_progress.copy()
        return RecoveryProgress()

    @property
    def active_error(self) -> Optional[MockError]:
        return self._flow.error if self._flow else None

    @property
    def available_recovery_options(self) -> List[RecoveryActionKind]:
        if self._flow is None:
            return []
        return list(self._flow.error.recovery_actions)

    @property
    def is_recovering(self) -> bool:
        return self._in_flight > 0

    def steps_for(self, error: MockError) -> int:
        return max(1, self._steps_by_severity.get(error.severity, 1))

    # -------------------------------------------------------------------------
    # Flow control
    # -------------------------------------------------------------------------

    def start_recovery_flow(self, error: MockError) -> RecoveryProgress:
        """Begin a flow for `error`, discarding any prior flow."""
        if self._flow is not None:
            self._flow.cancelled = True
        self._completed_progress = None

        key =(error.category, error.error_type)
        prior = self._flows_started.get(key, 0)
        self._flows_started[key] = prior + 1

        self._flow = _RecoveryFlow(
            error=error,
            progress=RecoveryProgress(total_steps=self.steps_for(error)),
            prior_attempts=prior,
        )

        logger.info(
            f"Recovery started for {error.category.value}/{error.error_type.value} "
            f"({self._flow.progress.total_steps} step(s))"
        )
        self._emit(EventType.RECOVERY_STARTED, self._flow)
        return self._flow.progress.copy()

    def cancel_recovery_flow(self, error_id: Optional[str] = None) -> bool:
        """
        Abandon the active flow.

        When error_id is given, only a flow for that error is cancelled.
        In-flight actions for it return abandoned results. A completed flow
        keeps its final progress readable through recovery_progress.
        """
        flow = self._flow
        if flow is None:
            return False
        if error_id is not None and flow.error.error_id != error_id:
            return False

        flow.cancelled = True
        self._flow = None
        if flow.progress.is_complete:
            self._completed_progress = flow.progress.copy()
        else:
            logger.info(f"Recovery cancelled for {flow.error.error_id}")
            self._emit(EventType.RECOVERY_CANCELLED, flow)
        return True

    async def execute_recovery_action(
        self,
        action: RecoveryActionKind,
        error: MockError,
    ) -> RecoveryResult:
        """
        Execute one recovery action against `error`.

        Starts a flow when none is active for the error. Once the flow is
        complete further actions do not advance it.
        """
        flow = self._flow
        if flow is None or flow.error != error:
            self.start_recovery_flow(error)
            flow = self._flow

        progress = flow.progress
        if progress.is_complete:
            return RecoveryResult(
                action=action,
                is_successful=progress.has_succeeded,
                message="Recovery already complete",
                step=progress.current_step,
            )

        progress.current_step = min(progress.current_step + 1, progress.total_steps)
        step = progress.current_step

        latency = self._rng.uniform(*self._latency_range)
        self._in_flight += 1
        try:
            await self._sleep(latency)
        finally:
            self._in_flight -= 1

        if flow.cancelled or self._flow is not flow:
            logger.debug(f"Discarding {action.value} result for abandoned flow {flow.flow_id}")
            return RecoveryResult(
                action=action,
                message="Recovery abandoned",
                execution_time=latency,
                step=step,
                abandoned=True,
            )

        probability = self.outcome_table.success_probability(
            action, error, step=step, prior_attempts=flow.prior_attempts
        )
        success = self._rng.random() < probability
        flow.attempted.append(action)
        self._record(error, action, success)

        if step >= progress.total_steps and not progress.is_complete:
            progress.is_complete = True
            progress.has_succeeded = success

        result = RecoveryResult(
            action=action,
            is_successful=success,
            message=result_message(action, success),
            next_recommended_action=None if success else self._next_recommended(flow),
            execution_time=latency,
            step=step,
        )

        logger.info(
            f"Recovery step {step}/{progress.total_steps} {action.value}: "
            f"{'succeeded' if success else 'failed'} (p={probability:.2f})"
        )
        self._emit(EventType.RECOVERY_PROGRESS, flow, result=result.to_dict())
        if progress.is_complete:
            self._emit(EventType.RECOVERY_COMPLETED, flow, succeeded=progress.has_succeeded)

        return result

    def _next_recommended(self, flow: _RecoveryFlow) -> RecoveryActionKind:
        tried = set(flow.attempted)
        for candidate in flow.error.recovery_actions:
            if candidate == A.DISMISS or candidate in tried:
                continue
            return candidate
        return A.REPORT_ISSUE

    def _emit(self, event_type: EventType, flow: _RecoveryFlow, **extra: Any) -> None:
        if self._event_bus is None:
            return
        self._event_bus.emit(EngineEvent.recovery_progress(
            event_type,
            flow.error.error_id,
            flow.progress.to_dict(),
            **extra,
        ))

    # -------------------------------------------------------------------------
    # Tallies
    # -------------------------------------------------------------------------

    def _record(self, error: MockError, action: RecoveryActionKind, success: bool) -> None:
        self._category_tallies.setdefault(error.category, RecoveryTally()).record(success)
        self._action_tallies.setdefault(action, RecoveryTally()).record(success)
        by_action = self._subtype_action_tallies.setdefault(error.error_type, {})
        by_action.setdefault(action, RecoveryTally()).record(success)

    def get_recovery_success_rate(self, category: ErrorCategory) -> float:
        """Fraction of successful actions for a category (0 when untried)."""
        tally = self._category_tallies.get(category)
        return tally.success_rate if tally else 0.0

    def get_most_effective_action(self, error_type: ErrorType) -> Optional[RecoveryActionKind]:
        """Action with the highest success rate for a subtype."""
        by_action = self._subtype_action_tallies.get(error_type)
        if not by_action:
            return None
        return max(by_action, key=lambda a: (by_action[a].success_rate, by_action[a].attempts))

    def get_action_failure_count(self, action: RecoveryActionKind) -> int:
        tally = self._action_tallies.get(action)
        return tally.failures if tally else 0

    def get_recovery_insights(self) -> List[RecoveryInsight]:
        return rank_insights(derive_recovery_insights(self._category_tallies, self._action_tallies))

    def recovery_summary(self) -> Dict[str, Any]:
        total = RecoveryTally()
        for tally in self._category_tallies.values():
            total.attempts += tally.attempts
            total.successes += tally.successes

        return {
            "total_attempts": total.attempts,
            "total_successes": total.successes,
            "overall_success_rate": total.success_rate,
            "flows_started": sum(self._flows_started.values()),
            "by_category": {c.value: t.to_dict() for c, t in self._category_tallies.items()},
            "by_action": {a.value: t.to_dict() for a, t in self._action_tallies.items()},
        }

    def reset_recovery_tracking(self) -> None:
        """Clear tallies and abandon the active flow."""
        self.cancel_recovery_flow()
        self._completed_progress = None
        self._flows_started.clear()
        self._category_tallies.clear()
        self._action_tallies.clear()
        self._subtype_action_tallies.clear()
        logger.info("Recovery tracking reset")
