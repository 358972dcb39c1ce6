"""
Recovery Scenario Integration Tests

End-to-end flows across generator, recovery manager and coordinator, wired
both by hand and through FaultlineApp.build().
"""

import asyncio
import random

import pytest

from faultline.bootstrap.app import AppState, FaultlineApp, create_app
from faultline.bootstrap.config import FaultlineConfig
from faultline.errors.coordinator import ErrorHandlingCoordinator
from faultline.errors.recovery import ErrorRecoveryManager
from faultline.errors.taxonomy import (
    ErrorCategory,
    ErrorSeverity,
    ErrorType,
    RecoveryActionKind,
)
from faultline.lifecycle.export import ErrorDataExporter, load_export
from faultline.ui.events import EventType


pytestmark = pytest.mark.integration

A = RecoveryActionKind


async def instant_sleep(seconds):
    await asyncio.sleep(0)


@pytest.fixture
def fast_config():
    config = FaultlineConfig()
    config.generator.seed = 21
    config.recovery.seed = 21
    config.recovery.latency_min_seconds = 0.0
    config.recovery.latency_max_seconds = 0.0
    config.coordinator.demo_interval_seconds = 0.0
    return config


class TestNetworkRecovery:
    """A high-severity network error recovered by retrying."""

    @pytest.mark.asyncio
    async def test_retry_until_success(self, generator, event_bus, recorder, scripted_table):
        """First retry fails, second succeeds, flow completes and dismisses."""
        manager = ErrorRecoveryManager(
            outcome_table=scripted_table({1: 0.0, 2: 1.0}),
            rng=random.Random(1),
            sleep=instant_sleep,
            latency_range=(0.0, 0.0),
            event_bus=event_bus,
        )
        coordinator = ErrorHandlingCoordinator(
            generator=generator, recovery_manager=manager, event_bus=event_bus, sleep=instant_sleep
        )

        error = coordinator.display_specific_error(ErrorCategory.NETWORK, ErrorType.NO_CONNECTION)
        assert error.severity == ErrorSeverity.HIGH

        first = await coordinator.execute_recovery_action(A.RETRY)
        assert not first.is_successful
        assert first.next_recommended_action == A.CHECK_CONNECTION
        assert manager.recovery_progress.current_step == 1
        assert not manager.recovery_progress.is_complete
        assert coordinator.current_error == error

        second = await coordinator.execute_recovery_action(A.RETRY)
        assert second.is_successful
        assert second.step == 2
        assert coordinator.current_error is None
        assert coordinator.history == [error]

        progress = manager.recovery_progress
        assert progress.is_complete
        assert progress.has_succeeded
        assert progress.current_step == progress.total_steps == 2
        assert manager.active_error is None

        assert manager.get_recovery_success_rate(ErrorCategory.NETWORK) == pytest.approx(0.5)
        assert EventType.RECOVERY_COMPLETED in recorder.types

        completed = [e for e in recorder.events if e.event_type == EventType.RECOVERY_COMPLETED]
        assert completed[0].payload["succeeded"] is True
        assert completed[0].payload["progress"]["total_steps"] == 2


class TestPermissionRecovery:
    """Permission errors cannot be fixed inside the app."""

    @pytest.mark.asyncio
    async def test_contact_admin_fails_and_recommends_next(self, coordinator):
        """Contacting an admin fails and request_permission is recommended."""
        error = coordinator.display_specific_error(ErrorCategory.PERMISSION, ErrorType.ACCESS_DENIED)

        result = await coordinator.execute_recovery_action(A.CONTACT_ADMIN)

        assert not result.is_successful
        assert result.next_recommended_action == A.REQUEST_PERMISSION
        assert coordinator.current_error == error

    @pytest.mark.asyncio
    async def test_exhausted_actions_recommend_report(self, generator, event_bus):
        """Once every action has been tried the recommendation is report_issue."""
        manager = ErrorRecoveryManager(
            rng=random.Random(2),
            sleep=instant_sleep,
            latency_range=(0.0, 0.0),
            steps_by_severity={ErrorSeverity.MEDIUM: 5, ErrorSeverity.HIGH: 5},
            event_bus=event_bus,
        )
        coordinator = ErrorHandlingCoordinator(generator=generator, recovery_manager=manager, event_bus=event_bus)
        coordinator.display_specific_error(ErrorCategory.PERMISSION, ErrorType.ACCESS_DENIED)

        await coordinator.execute_recovery_action(A.CONTACT_ADMIN)
        result = await coordinator.execute_recovery_action(A.REQUEST_PERMISSION)

        assert result.next_recommended_action == A.REPORT_ISSUE

    @pytest.mark.asyncio
    async def test_failure_insights(self, coordinator):
        """Repeated failures surface as recovery insights."""
        for _ in range(3):
            coordinator.display_specific_error(ErrorCategory.PERMISSION, ErrorType.ACCESS_DENIED)
            await coordinator.execute_recovery_action(A.CONTACT_ADMIN)

        kinds = {i.insight_type.value for i in coordinator.get_error_handling_insights()}

        assert "low_success_rate" in kinds
        assert "common_failure" in kinds


class TestAppLifecycle:
    """Tests for production wiring via FaultlineApp.build()."""

    def test_build(self, fast_config):
        """build() wires every component to one event bus."""
        app = FaultlineApp(config=fast_config).build()

        assert app.is_built
        assert app.coordinator.generator is app.generator
        assert app.coordinator.get_recovery_manager() is app.recovery_manager
        assert app.coordinator.event_bus is app.event_bus

    def test_suppression_toggle(self, fast_config):
        """Suppression rules are installed only when enabled."""
        assert FaultlineApp(config=fast_config).build().coordinator.suppression_rules == []

        fast_config.coordinator.suppression_enabled = True
        assert len(FaultlineApp(config=fast_config).build().coordinator.suppression_rules) == 3

    def test_create_app_helper(self, fast_config):
        """create_app() returns a built app."""
        assert create_app(config=fast_config).is_built

    @pytest.mark.asyncio
    async def test_full_session(self, fast_config, tmp_path):
        """Demo, recovery and export run end to end."""
        app = FaultlineApp(config=fast_config, sleep=instant_sleep)
        hooks = []
        app.on_startup(lambda ctx: hooks.append("start"))
        app.on_shutdown(lambda ctx: hooks.append("stop"))

        await app.start()
        assert app.context.state == AppState.RUNNING
        seen = []
        app.event_bus.subscribe_all(lambda event: seen.append(event.event_type))

        errors = await app.coordinator.run_error_demo()
        assert len(errors) == 8

        await app.coordinator.execute_recovery_action(A.DISMISS)
        assert app.coordinator.current_error is None

        path = ErrorDataExporter().export(app.coordinator.export_error_data(), tmp_path / "session.json")
        doc = load_export(path)
        assert doc.statistics.total_errors == 8
        assert doc.recovery_summary.total_attempts == 1

        await app.stop()
        assert app.context.state == AppState.STOPPED
        assert hooks == ["start", "stop"]
        assert EventType.DEMO_COMPLETED in seen

    @pytest.mark.asyncio
    async def test_scenario_runs_on_timer(self, fast_config):
        """A scenario started inside the loop emits through its timer."""
        fast_config.generator.scenario_interval_seconds = 0.01
        app = FaultlineApp(config=fast_config)
        await app.start()

        app.coordinator.start_error_scenario(app.coordinator.get_available_scenarios()[0])
        task = app.generator.scenario_task
        for _ in range(200):
            if task.run_count >= 3:
                break
            await asyncio.sleep(0.01)

        await app.stop()
        assert task.run_count >= 3
        assert app.coordinator.current_error_scenario is None
        assert task.is_cancelled
