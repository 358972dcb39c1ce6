"""
Unit tests for the error taxonomy.

Tests categories, severities, actions and the MockError value type.
"""

import dataclasses

import pytest

from faultline.errors.taxonomy import (
    ActionStyle,
    ERROR_TYPES_BY_CATEGORY,
    ErrorCategory,
    ErrorScenario,
    ErrorSeverity,
    ErrorType,
    MockError,
    RecoveryActionKind,
    SCENARIO_POLICIES,
    create_mock_error,
)
from faultline.errors.catalog import ERROR_CATALOG, templates_for


class TestErrorCategory:
    """Tests for ErrorCategory."""

    def test_every_category_has_display_metadata(self):
        """Each category has a display name and icon."""
        for category in ErrorCategory:
            assert category.display_name
            assert category.icon

    def test_coerce_known_value(self):
        """Known names map to their category."""
        assert ErrorCategory.coerce("network") == ErrorCategory.NETWORK
        assert ErrorCategory.coerce("QR_CODE") == ErrorCategory.QR_CODE

    def test_coerce_unknown_falls_back_to_generic(self):
        """Unknown input maps to GENERIC."""
        assert ErrorCategory.coerce("quantum") == ErrorCategory.GENERIC
        assert ErrorCategory.coerce(None) == ErrorCategory.GENERIC
        assert ErrorCategory.coerce(42) == ErrorCategory.GENERIC

    def test_every_category_has_subtypes(self):
        """Each category owns at least one subtype."""
        for category in ErrorCategory:
            assert ERROR_TYPES_BY_CATEGORY[category]

    def test_subtype_reports_its_category(self):
        """ErrorType.category points back to the owning category."""
        for category, types in ERROR_TYPES_BY_CATEGORY.items():
            for error_type in types:
                assert error_type.category == category


class TestErrorSeverity:
    """Tests for severity ordering."""

    def test_total_order(self):
        """Severities are ordered info < low < medium < high < critical."""
        ordered = [
            ErrorSeverity.INFO,
            ErrorSeverity.LOW,
            ErrorSeverity.MEDIUM,
            ErrorSeverity.HIGH,
            ErrorSeverity.CRITICAL,
        ]
        assert sorted(reversed(ordered)) == ordered
        assert ErrorSeverity.LOW < ErrorSeverity.HIGH
        assert ErrorSeverity.CRITICAL >= ErrorSeverity.CRITICAL
        assert ErrorSeverity.MEDIUM <= ErrorSeverity.HIGH
        assert ErrorSeverity.HIGH > ErrorSeverity.INFO

    def test_display_metadata(self):
        """Severity exposes display name and color."""
        assert ErrorSeverity.HIGH.display_name == "High"
        assert ErrorSeverity.HIGH.color


class TestRecoveryActionKind:
    """Tests for action metadata."""

    def test_every_action_has_title_and_style(self):
        """Each action has a title, icon and style."""
        for action in RecoveryActionKind:
            assert action.title
            assert action.icon is not None
            assert isinstance(action.style, ActionStyle)

    def test_destructive_actions(self):
        """Reset-style actions are destructive."""
        assert RecoveryActionKind.RESET_DEMO.style == ActionStyle.DESTRUCTIVE
        assert RecoveryActionKind.RETRY.style != ActionStyle.DESTRUCTIVE


class TestMockError:
    """Tests for the MockError value type."""

    def test_is_immutable(self, make_error):
        """Errors cannot be mutated."""
        error = make_error()
        with pytest.raises(dataclasses.FrozenInstanceError):
            error.title = "changed"

    def test_context_is_read_only(self):
        """Context cannot be changed through the error or the caller's dict."""
        source = {"attempt": 1}
        error = MockError(context=source)

        with pytest.raises(TypeError):
            error.context["attempt"] = 2
        source["attempt"] = 3

        assert error.context["attempt"] == 1
        assert error.to_dict()["context"] == {"attempt": 1}

    def test_empty_actions_default_to_dismiss(self):
        """An error always has at least the dismiss action."""
        error = MockError(recovery_actions=())
        assert error.recovery_actions == (RecoveryActionKind.DISMISS,)

    def test_identity_equality(self, make_error):
        """Equality follows error_id, not content."""
        a = make_error()
        b = make_error()
        assert a != b
        assert a == dataclasses.replace(a, title="other")
        assert len({a, b, a}) == 2

    def test_primary_and_overflow_actions(self, make_error):
        """First three actions are primary; the rest overflow."""
        error = make_error()
        assert error.primary_actions == (
            RecoveryActionKind.CHECK_CONNECTION,
            RecoveryActionKind.WORK_OFFLINE,
            RecoveryActionKind.RETRY,
        )
        assert error.overflow_actions == (RecoveryActionKind.DISMISS,)

    def test_tap_dismissal_by_severity(self, make_error):
        """Only medium or lower severities allow tap dismissal."""
        assert make_error(severity=ErrorSeverity.MEDIUM).allows_tap_dismissal
        assert not make_error(severity=ErrorSeverity.HIGH).allows_tap_dismissal

    def test_to_dict(self, make_error):
        """Serialized form uses plain values."""
        data = make_error().to_dict()
        assert data["category"] == "network"
        assert data["error_type"] == "no_connection"
        assert data["severity"] == "high"
        assert data["recovery_actions"][0] == "check_connection"
        assert data["created_at"].startswith("2026-01-01")


class TestCreateMockError:
    """Tests for the create_mock_error factory."""

    def test_mismatched_subtype_is_corrected(self):
        """A subtype from another category is replaced by a valid one."""
        error = create_mock_error(
            ErrorCategory.PERMISSION,
            ErrorType.NO_CONNECTION,
            title="x",
            message="y",
        )
        assert error.error_type in ERROR_TYPES_BY_CATEGORY[ErrorCategory.PERMISSION]


class TestCatalog:
    """Tests for the template catalog."""

    def test_every_category_has_a_pool(self):
        """templates_for never returns an empty pool."""
        for category in ErrorCategory:
            assert templates_for(category)

    def test_templates_are_consistent(self):
        """Catalog templates only use subtypes of their own category."""
        for category, templates in ERROR_CATALOG.items():
            for template in templates:
                assert template.category == category
                assert template.recovery_actions

    def test_retryability_rules(self):
        """Network templates are retryable; validation and permission never are."""
        assert all(t.is_retryable for t in ERROR_CATALOG[ErrorCategory.NETWORK])
        assert not any(t.is_retryable for t in ERROR_CATALOG[ErrorCategory.VALIDATION])
        assert not any(t.is_retryable for t in ERROR_CATALOG[ErrorCategory.PERMISSION])

    def test_empty_pool_falls_back_to_generic(self):
        """A catalog without the category yields the generic pool."""
        catalog = {ErrorCategory.GENERIC: ERROR_CATALOG[ErrorCategory.GENERIC]}
        pool = templates_for(ErrorCategory.NETWORK, catalog)
        assert pool == ERROR_CATALOG[ErrorCategory.GENERIC]


class TestScenarioPolicies:
    """Tests for scenario policies."""

    def test_every_scenario_has_a_policy(self):
        """Each scenario maps to a policy with categories."""
        for scenario in ErrorScenario:
            policy = SCENARIO_POLICIES[scenario]
            assert policy.categories
            assert 0.0 < policy.emission_probability <= 1.0
            assert policy.interval_seconds > 0
            assert scenario.policy is policy
