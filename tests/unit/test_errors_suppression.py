"""
Unit tests for suppression rules.
"""

from faultline.errors.suppression import (
    SuppressionRule,
    SuppressionType,
    default_suppression_rules,
    first_matching_rule,
)
from faultline.errors.taxonomy import ErrorCategory, ErrorSeverity, ErrorType


class TestSuppressionRule:
    """Tests for each rule type."""

    def test_duplicate_within_timeframe(self, make_error, clock):
        """A repeat of the same subtype inside the window is suppressed."""
        rule = SuppressionRule(SuppressionType.DUPLICATE_WITHIN_TIMEFRAME, 30.0, 1)
        first = make_error(created_at=clock())
        clock.advance(10)
        repeat = make_error(created_at=clock())

        assert rule.should_suppress(repeat, [first])

    def test_duplicate_outside_timeframe(self, make_error, clock):
        """Old duplicates do not count."""
        rule = SuppressionRule(SuppressionType.DUPLICATE_WITHIN_TIMEFRAME, 30.0, 1)
        first = make_error(created_at=clock())
        clock.advance(31)

        assert not rule.should_suppress(make_error(created_at=clock()), [first])

    def test_severity_rate_limit(self, make_error, clock):
        """Too many low-severity errors suppress further low-severity ones."""
        rule = SuppressionRule(
            SuppressionType.SEVERITY_RATE_LIMIT, 60.0, 2, severity_threshold=ErrorSeverity.LOW
        )
        history = [make_error(severity=ErrorSeverity.LOW) for _ in range(2)]

        assert rule.should_suppress(make_error(severity=ErrorSeverity.INFO), history)
        assert not rule.should_suppress(make_error(severity=ErrorSeverity.HIGH), history)

    def test_category_limit(self, make_error):
        """Only the targeted category is limited."""
        rule = SuppressionRule(
            SuppressionType.CATEGORY_LIMIT, 300.0, 2, category=ErrorCategory.PROTOTYPE
        )
        history = [
            make_error(category=ErrorCategory.PROTOTYPE, error_type=ErrorType.FEATURE_PREVIEW)
            for _ in range(2)
        ]

        assert rule.should_suppress(
            make_error(category=ErrorCategory.PROTOTYPE, error_type=ErrorType.DATA_LIMIT), history
        )
        assert not rule.should_suppress(make_error(), history)

    def test_total_rate_limit(self, make_error):
        """Any error counts toward the total limit."""
        rule = SuppressionRule(SuppressionType.TOTAL_RATE_LIMIT, 60.0, 3)
        assert not rule.should_suppress(make_error(), [make_error(), make_error()])
        assert rule.should_suppress(make_error(), [make_error() for _ in range(3)])

    def test_to_dict(self):
        """Rules serialize with plain values."""
        data = default_suppression_rules()[1].to_dict()
        assert data["rule_type"] == "severity_rate_limit"
        assert data["severity_threshold"] == "low"


class TestDefaults:
    """Tests for the default rule set."""

    def test_three_defaults(self):
        """Duplicate, severity and category rules are provided."""
        types = [r.rule_type for r in default_suppression_rules()]
        assert types == [
            SuppressionType.DUPLICATE_WITHIN_TIMEFRAME,
            SuppressionType.SEVERITY_RATE_LIMIT,
            SuppressionType.CATEGORY_LIMIT,
        ]

    def test_first_matching_rule(self, make_error):
        """The first rule that matches is returned."""
        history = [make_error()]
        rule = first_matching_rule(default_suppression_rules(), make_error(), history)
        assert rule.rule_type == SuppressionType.DUPLICATE_WITHIN_TIMEFRAME

    def test_no_rules_never_suppress(self, make_error):
        """An empty rule list matches nothing."""
        assert first_matching_rule([], make_error(), [make_error()]) is None
