"""
Unit tests for ErrorRecoveryManager and OutcomeTable.

Tests the step algorithm, completion semantics, abandonment, probability
rules and aggregate tallies.
"""

import asyncio
import random

import pytest

from faultline.errors.recovery import (
    ErrorRecoveryManager,
    OutcomeTable,
    RecoveryProgress,
    STEPS_BY_SEVERITY,
    result_message,
)
from faultline.errors.taxonomy import (
    ErrorCategory,
    ErrorSeverity,
    ErrorType,
    RecoveryActionKind,
)
from faultline.ui.events import EventType

A = RecoveryActionKind


async def _no_wait(seconds):
    await asyncio.sleep(0)


def _manager(table=None, seed=0, bus=None):
    return ErrorRecoveryManager(
        outcome_table=table,
        rng=random.Random(seed),
        sleep=_no_wait,
        latency_range=(0.0, 0.0),
        event_bus=bus,
    )


class TestRecoveryProgress:
    """Tests for RecoveryProgress."""

    def test_percentage(self):
        """progress_percentage is current over total."""
        assert RecoveryProgress(current_step=1, total_steps=2).progress_percentage == 0.5

    def test_percentage_zero_total(self):
        """Zero total steps reports zero."""
        assert RecoveryProgress().progress_percentage == 0.0


class TestStartFlow:
    """Tests for start_recovery_flow."""

    def test_steps_by_severity(self, recovery_manager, make_error):
        """Total steps follow the severity mapping."""
        for severity, steps in STEPS_BY_SEVERITY.items():
            progress = recovery_manager.start_recovery_flow(make_error(severity=severity))
            assert progress.total_steps == steps
            assert progress.current_step == 0
            assert not progress.is_complete
            assert not progress.has_succeeded

    def test_progress_is_a_copy(self, recovery_manager, make_error):
        """Mutating the returned progress does not affect the manager."""
        recovery_manager.start_recovery_flow(make_error())
        snapshot = recovery_manager.recovery_progress
        snapshot.current_step = 99

        assert recovery_manager.recovery_progress.current_step == 0

    def test_single_flight(self, recovery_manager, make_error):
        """Starting a flow replaces the previous one."""
        first = make_error()
        second = make_error()
        recovery_manager.start_recovery_flow(first)
        recovery_manager.start_recovery_flow(second)

        assert recovery_manager.active_error == second
        assert recovery_manager.available_recovery_options == list(second.recovery_actions)

    def test_idle_manager(self, recovery_manager):
        """Without a flow there is no active error or options."""
        assert recovery_manager.active_error is None
        assert recovery_manager.available_recovery_options == []
        assert recovery_manager.recovery_progress.total_steps == 0


class TestExecuteAction:
    """Tests for execute_recovery_action."""

    @pytest.mark.asyncio
    async def test_starts_flow_implicitly(self, recovery_manager, make_error):
        """Executing without a flow starts one for the error."""
        error = make_error(severity=ErrorSeverity.HIGH)
        result = await recovery_manager.execute_recovery_action(A.RETRY, error)

        assert result.step == 1
        assert recovery_manager.active_error == error
        assert recovery_manager.recovery_progress.current_step == 1

    @pytest.mark.asyncio
    async def test_completes_on_last_step(self, scripted_table, make_error):
        """The last step marks the flow complete with its own outcome."""
        manager = _manager(scripted_table({1: 1.0, 2: 0.0}))
        error = make_error(severity=ErrorSeverity.MEDIUM)

        first = await manager.execute_recovery_action(A.RETRY, error)
        assert first.is_successful
        assert not manager.recovery_progress.is_complete

        second = await manager.execute_recovery_action(A.RETRY, error)
        assert not second.is_successful

        progress = manager.recovery_progress
        assert progress.is_complete
        assert progress.current_step == progress.total_steps == 2
        assert progress.has_succeeded is False

    @pytest.mark.asyncio
    async def test_retry_fails_then_succeeds(self, scripted_table, make_error):
        """A failed first retry and a successful last retry complete the flow as succeeded."""
        manager = _manager(scripted_table({1: 0.0, 2: 1.0}))
        error = make_error(severity=ErrorSeverity.HIGH, is_retryable=True)

        first = await manager.execute_recovery_action(A.RETRY, error)
        assert not first.is_successful
        assert not manager.recovery_progress.is_complete

        result = await manager.execute_recovery_action(A.RETRY, error)

        progress = manager.recovery_progress
        assert result.is_successful
        assert progress.is_complete
        assert progress.has_succeeded
        assert progress.progress_percentage == 1.0

    @pytest.mark.asyncio
    async def test_completed_progress_survives_release(self, scripted_table, make_error):
        """Releasing a completed flow keeps its final progress until the next flow starts."""
        manager = _manager(scripted_table({}, default=1.0))
        error = make_error(severity=ErrorSeverity.LOW)
        await manager.execute_recovery_action(A.RETRY, error)

        assert manager.cancel_recovery_flow(error.error_id) is True

        assert manager.active_error is None
        assert manager.recovery_progress.is_complete
        assert manager.recovery_progress.has_succeeded

        manager.start_recovery_flow(make_error())
        assert not manager.recovery_progress.is_complete
        assert manager.recovery_progress.current_step == 0

    def test_cancelled_incomplete_flow_reads_zeroed(self, recovery_manager, make_error):
        """Abandoning an unfinished flow leaves no progress behind."""
        recovery_manager.start_recovery_flow(make_error())
        recovery_manager.cancel_recovery_flow()

        assert recovery_manager.recovery_progress.total_steps == 0

    @pytest.mark.asyncio
    async def test_complete_flow_does_not_advance(self, scripted_table, make_error):
        """Actions after completion echo the final outcome."""
        manager = _manager(scripted_table({1: 1.0}))
        error = make_error(severity=ErrorSeverity.LOW)

        await manager.execute_recovery_action(A.RETRY, error)
        again = await manager.execute_recovery_action(A.RETRY, error)

        assert again.is_successful
        assert again.step == 1
        assert manager.recovery_progress.current_step == 1

    @pytest.mark.asyncio
    async def test_next_recommended_action(self, scripted_table, make_error):
        """A failure suggests the first untried, non-dismiss action."""
        manager = _manager(scripted_table({}, default=0.0))
        error = make_error(severity=ErrorSeverity.CRITICAL)

        r1 = await manager.execute_recovery_action(A.CHECK_CONNECTION, error)
        assert r1.next_recommended_action == A.WORK_OFFLINE

        r2 = await manager.execute_recovery_action(A.WORK_OFFLINE, error)
        assert r2.next_recommended_action == A.RETRY

        r3 = await manager.execute_recovery_action(A.RETRY, error)
        assert r3.next_recommended_action == A.REPORT_ISSUE

    @pytest.mark.asyncio
    async def test_success_has_no_recommendation(self, scripted_table, make_error):
        """Successful results carry no next action."""
        manager = _manager(scripted_table({}, default=1.0))
        result = await manager.execute_recovery_action(A.RETRY, make_error())
        assert result.next_recommended_action is None
        assert result.message == result_message(A.RETRY, True)

    @pytest.mark.asyncio
    async def test_cancel_during_latency_abandons(self, make_error):
        """Cancelling mid-flight yields an abandoned result and no mutation."""
        gate = asyncio.Event()

        async def gated_sleep(seconds):
            await gate.wait()

        manager = ErrorRecoveryManager(rng=random.Random(1), sleep=gated_sleep)
        error = make_error()

        pending = asyncio.ensure_future(manager.execute_recovery_action(A.RETRY, error))
        await asyncio.sleep(0)
        assert manager.is_recovering

        assert manager.cancel_recovery_flow() is True
        gate.set()
        result = await pending

        assert result.abandoned
        assert not result.is_successful
        assert manager.active_error is None
        assert manager.recovery_summary()["total_attempts"] == 0

    @pytest.mark.asyncio
    async def test_replaced_flow_abandons(self, make_error):
        """Starting a new flow mid-flight abandons the old action."""
        gate = asyncio.Event()

        async def gated_sleep(seconds):
            await gate.wait()

        manager = ErrorRecoveryManager(rng=random.Random(1), sleep=gated_sleep)
        old, new = make_error(), make_error()

        pending = asyncio.ensure_future(manager.execute_recovery_action(A.RETRY, old))
        await asyncio.sleep(0)
        manager.start_recovery_flow(new)
        gate.set()

        result = await pending
        assert result.abandoned
        assert manager.active_error == new
        assert manager.recovery_progress.current_step == 0

    def test_cancel_other_error_is_ignored(self, recovery_manager, make_error):
        """Cancelling by a different error id leaves the flow alone."""
        error = make_error()
        recovery_manager.start_recovery_flow(error)

        assert recovery_manager.cancel_recovery_flow("someone-else") is False
        assert recovery_manager.active_error == error

    @pytest.mark.asyncio
    async def test_fixed_seed_is_deterministic(self, make_error):
        """The same seed yields the same outcome."""
        error = make_error(severity=ErrorSeverity.MEDIUM)
        outcomes = []
        for _ in range(2):
            manager = _manager(seed=1234)
            result = await manager.execute_recovery_action(A.RETRY, error)
            outcomes.append(result.is_successful)

        assert outcomes[0] == outcomes[1]

    @pytest.mark.asyncio
    async def test_progress_events(self, event_bus, recorder, scripted_table, make_error):
        """Start, progress and completion are observable."""
        manager = _manager(scripted_table({}, default=1.0), bus=event_bus)

        await manager.execute_recovery_action(A.RETRY, make_error(severity=ErrorSeverity.LOW))

        assert recorder.types == [
            EventType.RECOVERY_STARTED,
            EventType.RECOVERY_PROGRESS,
            EventType.RECOVERY_COMPLETED,
        ]
        assert recorder.events[-1].payload["succeeded"] is True


class TestOutcomeTable:
    """Tests for probability rules."""

    def test_permission_actions_never_succeed(self, make_error):
        """Permission requests have zero probability."""
        table = OutcomeTable()
        error = make_error(category=ErrorCategory.PERMISSION, error_type=ErrorType.ACCESS_DENIED)
        for action in (A.CONTACT_ADMIN, A.REQUEST_PERMISSION, A.ASK_PARENT):
            assert table.success_probability(action, error) == 0.0

    def test_always_succeed_actions(self, make_error):
        """Dismiss and prototype actions always succeed."""
        table = OutcomeTable()
        error = make_error(severity=ErrorSeverity.CRITICAL)
        for action in (A.DISMISS, A.USE_DEFAULT_STATE, A.CONTINUE_DEMO, A.LEARN_MORE):
            assert table.success_probability(action, error) == 1.0

    def test_retryable_bonus(self, make_error):
        """Retry is likelier on retryable errors."""
        table = OutcomeTable()
        retryable = make_error(severity=ErrorSeverity.MEDIUM, is_retryable=True)
        fixed = make_error(severity=ErrorSeverity.MEDIUM, is_retryable=False)

        assert table.success_probability(A.RETRY, retryable) > table.success_probability(A.RETRY, fixed)

    def test_severity_lowers_probability(self, make_error):
        """Higher severity lowers the probability."""
        table = OutcomeTable()
        low = table.success_probability(A.EDIT_INPUT, make_error(severity=ErrorSeverity.LOW))
        critical = table.success_probability(A.EDIT_INPUT, make_error(severity=ErrorSeverity.CRITICAL))
        assert low > critical

    def test_destructive_multiplier(self, make_error):
        """Destructive actions are scaled down."""
        table = OutcomeTable()
        error = make_error(severity=ErrorSeverity.MEDIUM)
        assert table.success_probability(A.RESET_DEMO, error) == pytest.approx(0.75 * 0.5)

    def test_repeat_penalty_and_clamp(self, make_error):
        """Prior attempts reduce probability down to the floor."""
        table = OutcomeTable()
        error = make_error(severity=ErrorSeverity.MEDIUM)
        first = table.success_probability(A.EDIT_INPUT, error, prior_attempts=0)
        later = table.success_probability(A.EDIT_INPUT, error, prior_attempts=2)

        assert later == pytest.approx(first - 0.2)
        assert table.success_probability(A.EDIT_INPUT, error, prior_attempts=50) == 0.1

    def test_fields_are_overridable(self, make_error):
        """Instances can override individual knobs."""
        table = OutcomeTable(default_probability=0.3, severity_adjustments={})
        assert table.success_probability(A.SCAN_QR_CODE, make_error()) == pytest.approx(0.3)


class TestTallies:
    """Tests for aggregate tracking."""

    @pytest.mark.asyncio
    async def test_success_rate_and_effective_action(self, scripted_table, make_error):
        """Tallies aggregate per category and per subtype."""
        manager = _manager(scripted_table({1: 0.0, 2: 1.0}))
        error = make_error(severity=ErrorSeverity.HIGH)

        await manager.execute_recovery_action(A.CHECK_CONNECTION, error)
        await manager.execute_recovery_action(A.RETRY, error)

        assert manager.get_recovery_success_rate(ErrorCategory.NETWORK) == 0.5
        assert manager.get_recovery_success_rate(ErrorCategory.SYNC) == 0.0
        assert manager.get_most_effective_action(ErrorType.NO_CONNECTION) == A.RETRY
        assert manager.get_most_effective_action(ErrorType.TIMEOUT) is None
        assert manager.get_action_failure_count(A.CHECK_CONNECTION) == 1

    @pytest.mark.asyncio
    async def test_common_failure_insight(self, scripted_table, make_error):
        """Three failures of one action produce an insight."""
        manager = _manager(scripted_table({}, default=0.0))
        for _ in range(3):
            await manager.execute_recovery_action(A.CHECK_CONNECTION, make_error(severity=ErrorSeverity.LOW))

        kinds = {i.insight_type.value for i in manager.get_recovery_insights()}
        assert "common_failure" in kinds
        assert "low_success_rate" in kinds

    @pytest.mark.asyncio
    async def test_reset(self, scripted_table, make_error):
        """reset_recovery_tracking clears tallies and the active flow."""
        manager = _manager(scripted_table({}, default=1.0))
        await manager.execute_recovery_action(A.RETRY, make_error())

        manager.reset_recovery_tracking()

        summary = manager.recovery_summary()
        assert summary["total_attempts"] == 0
        assert summary["flows_started"] == 0
        assert manager.active_error is None
        assert manager.recovery_progress.total_steps == 0
