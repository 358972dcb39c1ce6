"""
errors/suppression.py - Display suppression rules

Module 4: Handling Coordinator
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence
from datetime import datetime, timedelta
from enum import Enum

from .taxonomy import ErrorCategory, ErrorSeverity, MockError


class SuppressionType(Enum):
    """How a rule counts recent errors."""
    DUPLICATE_WITHIN_TIMEFRAME = "duplicate_within_timeframe"
    SEVERITY_RATE_LIMIT = "severity_rate_limit"
    CATEGORY_LIMIT = "category_limit"
    TOTAL_RATE_LIMIT = "total_rate_limit"


@dataclass(frozen=True)
class SuppressionRule:
    """
    Suppress an incoming error when too many matching errors were displayed
    within `timeframe_seconds`.

    Severity and category rules only apply to incoming errors they match.
    """

    rule_type: SuppressionType
    timeframe_seconds: float
    max_occurrences: int
    severity_threshold: Optional[ErrorSeverity] = None
    category: Optional[ErrorCategory] = None

    def should_suppress(
        self,
        error: MockError,
        history: Sequence[MockError],
        now: Optional[datetime] = None,
    ) -> bool:
        now = now or error.created_at
        cutoff = now - timedelta(seconds=self.timeframe_seconds)
        recent = [e for e in history if e.created_at >= cutoff]

        if self.rule_type == SuppressionType.DUPLICATE_WITHIN_TIMEFRAME:
            matching = [
                e for e in recent
                if e.category == error.category and e.error_type == error.error_type
            ]

        elif self.rule_type == SuppressionType.SEVERITY_RATE_LIMIT:
            if self.severity_threshold is None or error.severity > self.severity_threshold:
                return False
            matching = [e for e in recent if e.severity <= self.severity_threshold]

        elif self.rule_type == SuppressionType.CATEGORY_LIMIT:
            if self.category is None or error.category != self.category:
                return False
            matching = [e for e in recent if e.category == self.category]

        else:
            matching = recent

        return len(matching) >= self.max_occurrences

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_type": self.rule_type.value,
            "timeframe_seconds": self.timeframe_seconds,
            "max_occurrences": self.max_occurrences,
            "severity_threshold": self.severity_threshold.value if self.severity_threshold else None,
            "category": self.category.value if self.category else None,
        }


def default_suppression_rules() -> List[SuppressionRule]:
    """Duplicates within 30s, low-severity floods, repeated prototype notices."""
    return [
        SuppressionRule(
            rule_type=SuppressionType.DUPLICATE_WITHIN_TIMEFRAME,
            timeframe_seconds=30.0,
            max_occurrences=1,
        ),
        SuppressionRule(
            rule_type=SuppressionType.SEVERITY_RATE_LIMIT,
            timeframe_seconds=60.0,
            max_occurrences=3,
            severity_threshold=ErrorSeverity.LOW,
        ),
        SuppressionRule(
            rule_type=SuppressionType.CATEGORY_LIMIT,
            timeframe_seconds=300.0,
            max_occurrences=2,
            category=ErrorCategory.PROTOTYPE,
        ),
    ]


def first_matching_rule(
    rules: Iterable[SuppressionRule],
    error: MockError,
    history: Sequence[MockError],
    now: Optional[datetime] = None,
) -> Optional[SuppressionRule]:
    for rule in rules:
        if rule.should_suppress(error, history, now):
            return rule
    return None
