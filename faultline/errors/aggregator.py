"""
errors/aggregator.py - Aggregate error history into statistics and insights

Module 4: Statistics & Insights

Everything here is derived on demand from the append-only history and the
recovery tallies. Nothing is cached and nothing is stored beyond the history.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from datetime import datetime, timezone
from enum import Enum

from .taxonomy import ErrorCategory, ErrorSeverity, MockError, RecoveryActionKind
from .catalog import CATEGORY_RECOMMENDATIONS


# Pattern detection looks at this many of the most recent errors
PATTERN_WINDOW = 5
REPEATED_CATEGORY_THRESHOLD = 3
RAPID_SUCCESSION_SECONDS = 10.0

# Insight thresholds
LOW_SUCCESS_RATE_THRESHOLD = 0.5
COMMON_FAILURE_THRESHOLD = 3
RETRY_FAILURE_RATIO_THRESHOLD = 0.5
HIGH_SEVERITY_SHARE_THRESHOLD = 0.5

RETRY_ACTIONS = (RecoveryActionKind.RETRY, RecoveryActionKind.TRY_AGAIN)


class PatternType(Enum):
    """Kinds of patterns detected in recent history."""
    REPEATED_CATEGORY = "repeated_category"
    ESCALATING_SEVERITY = "escalating_severity"
    RAPID_SUCCESSION = "rapid_succession"


@dataclass
class ErrorPattern:
    """A pattern found in the most recent errors."""

    pattern_type: PatternType
    frequency: int = 0
    timespan_seconds: float = 0.0
    recommendation: str = ""
    category: Optional[ErrorCategory] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern_type": self.pattern_type.value,
            "frequency": self.frequency,
            "timespan_seconds": self.timespan_seconds,
            "recommendation": self.recommendation,
            "category": self.category.value if self.category else None,
        }


@dataclass
class ErrorStatistics:
    """Statistics recomputed from history."""

    total_errors: int = 0
    errors_by_category: Dict[ErrorCategory, int] = field(default_factory=dict)
    errors_by_severity: Dict[ErrorSeverity, int] = field(default_factory=dict)
    patterns: List[ErrorPattern] = field(default_factory=list)
    average_errors_per_hour: float = 0.0
    first_error_at: Optional[datetime] = None
    last_error_at: Optional[datetime] = None

    @property
    def most_common_category(self) -> Optional[ErrorCategory]:
        if not self.errors_by_category:
            return None
        # max() keeps the first maximum, so ties go to the earliest-seen category
        return max(self.errors_by_category, key=lambda c: self.errors_by_category[c])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_errors": self.total_errors,
            "errors_by_category": {c.value: n for c, n in self.errors_by_category.items()},
            "errors_by_severity": {s.value: n for s, n in self.errors_by_severity.items()},
            "patterns": [p.to_dict() for p in self.patterns],
            "average_errors_per_hour": self.average_errors_per_hour,
            "first_error_at": self.first_error_at.isoformat() if self.first_error_at else None,
            "last_error_at": self.last_error_at.isoformat() if self.last_error_at else None,
        }


class InsightType(Enum):
    """Kinds of derived insight."""
    DOMINANT_CATEGORY = "dominant_category"
    HIGH_SEVERITY = "high_severity"
    PATTERN = "pattern"
    LOW_SUCCESS_RATE = "low_success_rate"
    COMMON_FAILURE = "common_failure"
    RETRY_FAILURE_RATIO = "retry_failure_ratio"


@dataclass
class RecoveryInsight:
    """Human-readable observation. Recomputed, never stored."""

    insight_type: InsightType
    message: str
    recommendation: str
    category: Optional[ErrorCategory] = None
    score: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insight_type": self.insight_type.value,
            "message": self.message,
            "recommendation": self.recommendation,
            "category": self.category.value if self.category else None,
            "score": round(self.score, 4),
        }


@dataclass
class RecoveryTally:
    """Aggregate attempt/success counts."""

    attempts: int = 0
    successes: int = 0

    @property
    def failures(self) -> int:
        return self.attempts - self.successes

    @property
    def success_rate(self) -> float:
        return self.successes / self.attempts if self.attempts else 0.0

    def record(self, success: bool) -> None:
        self.attempts += 1
        if success:
            self.successes += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attempts": self.attempts,
            "successes": self.successes,
            "success_rate": self.success_rate,
        }


@dataclass
class ErrorExportData:
    """Snapshot of engine data for external consumption."""

    errors: List[MockError] = field(default_factory=list)
    statistics: Optional[ErrorStatistics] = None
    insights: List[RecoveryInsight] = field(default_factory=list)
    recovery_summary: Dict[str, Any] = field(default_factory=dict)
    exported_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "errors": [e.to_dict() for e in self.errors],
            "statistics": self.statistics.to_dict() if self.statistics else None,
            "insights": [i.to_dict() for i in self.insights],
            "recovery_summary": self.recovery_summary,
            "exported_at": self.exported_at.isoformat(),
        }


# =============================================================================
# STATISTICS
# =============================================================================

def average_errors_per_hour(history: Sequence[MockError], now: datetime) -> float:
    """
    Errors per hour since the first error.

    Zero for empty history or when less than one second has elapsed.
    """
    if not history:
        return 0.0

    elapsed = (now - history[0].created_at).total_seconds()
    if elapsed < 1.0:
        return 0.0

    return len(history) / (elapsed / 3600.0)


def detect_patterns(history: Sequence[MockError]) -> List[ErrorPattern]:
    """Find patterns in the most recent PATTERN_WINDOW errors."""
    recent = list(history[-PATTERN_WINDOW:])
    if len(recent) < REPEATED_CATEGORY_THRESHOLD:
        return []

    patterns: List[ErrorPattern] = []
    timespan = (recent[-1].created_at - recent[0].created_at).total_seconds()

    counts: Dict[ErrorCategory, int] = {}
    for error in recent:
        counts[error.category] = counts.get(error.category, 0) + 1
    top = max(counts, key=lambda c: counts[c])
    if counts[top] >= REPEATED_CATEGORY_THRESHOLD:
        patterns.append(ErrorPattern(
            pattern_type=PatternType.REPEATED_CATEGORY,
            frequency=counts[top],
            timespan_seconds=timespan,
            recommendation=CATEGORY_RECOMMENDATIONS.get(top, ""),
            category=top,
        ))

    tail = recent[-3:]
    if all(a.severity < b.severity for a, b in zip(tail, tail[1:])):
        patterns.append(ErrorPattern(
            pattern_type=PatternType.ESCALATING_SEVERITY,
            frequency=len(tail),
            timespan_seconds=(tail[-1].created_at - tail[0].created_at).total_seconds(),
            recommendation="Investigate the root cause before severity grows further",
        ))

    if timespan <= RAPID_SUCCESSION_SECONDS:
        patterns.append(ErrorPattern(
            pattern_type=PatternType.RAPID_SUCCESSION,
            frequency=len(recent),
            timespan_seconds=timespan,
            recommendation="Throttle error presentation to avoid overwhelming the user",
        ))

    return patterns


def compute_statistics(history: Sequence[MockError], now: Optional[datetime] = None) -> ErrorStatistics:
    """Recompute statistics from history."""
    now = now or datetime.now(timezone.utc)
    stats = ErrorStatistics(total_errors=len(history))

    for error in history:
        stats.errors_by_category[error.category] = stats.errors_by_category.get(error.category, 0) + 1
        stats.errors_by_severity[error.severity] = stats.errors_by_severity.get(error.severity, 0) + 1

    if history:
        stats.first_error_at = history[0].created_at
        stats.last_error_at = history[-1].created_at

    stats.patterns = detect_patterns(history)
    stats.average_errors_per_hour = average_errors_per_hour(history, now)
    return stats


# =============================================================================
# INSIGHTS
# =============================================================================

def derive_history_insights(stats: ErrorStatistics) -> List[RecoveryInsight]:
    """Insights about what errors occur."""
    if stats.total_errors == 0:
        return []

    insights: List[RecoveryInsight] = []

    top = stats.most_common_category
    if top is not None:
        count = stats.errors_by_category[top]
        share = count / stats.total_errors
        insights.append(RecoveryInsight(
            insight_type=InsightType.DOMINANT_CATEGORY,
            message=f"{top.display_name} errors account for {int(share * 100)}% of errors ({count} of {stats.total_errors})",
            recommendation=CATEGORY_RECOMMENDATIONS.get(top, ""),
            category=top,
            score=share,
        ))

    severe = sum(
        n for s, n in stats.errors_by_severity.items()
        if s >= ErrorSeverity.HIGH
    )
    severe_share = severe / stats.total_errors
    if severe and severe_share >= HIGH_SEVERITY_SHARE_THRESHOLD:
        insights.append(RecoveryInsight(
            insight_type=InsightType.HIGH_SEVERITY,
            message=f"{int(severe_share * 100)}% of errors are high severity or worse",
            recommendation="Prioritize recovery paths for high severity errors",
            score=severe_share * 0.9,
        ))

    for pattern in stats.patterns:
        insights.append(RecoveryInsight(
            insight_type=InsightType.PATTERN,
            message=f"Detected {pattern.pattern_type.value.replace('_', ' ')} across {pattern.frequency} recent errors",
            recommendation=pattern.recommendation,
            category=pattern.category,
            score=0.5,
        ))

    return insights


def derive_recovery_insights(
    category_tallies: Dict[ErrorCategory, RecoveryTally],
    action_tallies: Dict[RecoveryActionKind, RecoveryTally],
) -> List[RecoveryInsight]:
    """Insights about how recovery is going."""
    insights: List[RecoveryInsight] = []

    for category, tally in category_tallies.items():
        if tally.attempts and tally.success_rate < LOW_SUCCESS_RATE_THRESHOLD:
            insights.append(RecoveryInsight(
                insight_type=InsightType.LOW_SUCCESS_RATE,
                message=f"Low recovery success rate ({int(tally.success_rate * 100)}%) for {category.display_name} errors",
                recommendation="Review recovery flows and improve guidance",
                category=category,
                score=1.0 - tally.success_rate,
            ))

    for action, tally in action_tallies.items():
        if tally.failures >= COMMON_FAILURE_THRESHOLD:
            insights.append(RecoveryInsight(
                insight_type=InsightType.COMMON_FAILURE,
                message=f"{action.title} fails frequently ({tally.failures} times)",
                recommendation=f"Improve {action.title} implementation or provide better alternatives",
                score=min(1.0, 0.4 + tally.failures / 10.0),
            ))

    retry_attempts = sum(action_tallies[a].attempts for a in RETRY_ACTIONS if a in action_tallies)
    retry_failures = sum(action_tallies[a].failures for a in RETRY_ACTIONS if a in action_tallies)
    if retry_attempts >= 2:
        ratio = retry_failures / retry_attempts
        if ratio > RETRY_FAILURE_RATIO_THRESHOLD:
            insights.append(RecoveryInsight(
                insight_type=InsightType.RETRY_FAILURE_RATIO,
                message=f"Retries fail {int(ratio * 100)}% of the time ({retry_failures} of {retry_attempts})",
                recommendation="Offer an alternative to retrying, such as working offline",
                score=ratio,
            ))

    return insights


def rank_insights(insights: Iterable[RecoveryInsight], limit: Optional[int] = None) -> List[RecoveryInsight]:
    """Highest score first; equal scores keep their derivation order."""
    ranked = sorted(insights, key=lambda i: i.score, reverse=True)
    return ranked[:limit] if limit else ranked


# =============================================================================
# AGGREGATOR
# =============================================================================

class ErrorAggregator:
    """
    Append-only error history.

    Errors keep emission order; only clear() removes them.
    """

    def __init__(self):
        self._errors: List[MockError] = []

    def __len__(self) -> int:
        return len(self._errors)

    @property
    def errors(self) -> Tuple[MockError, ...]:
        return tuple(self._errors)

    def add(self, error: MockError) -> None:
        """Add an error."""
        self._errors.append(error)

    def add_all(self, errors: Iterable[MockError]) -> None:
        """Add multiple errors."""
        for error in errors:
            self.add(error)

    def get_by_severity(self, severity: ErrorSeverity) -> List[MockError]:
        """Get errors by severity."""
        return [e for e in self._errors if e.severity == severity]

    def get_by_category(self, category: ErrorCategory) -> List[MockError]:
        """Get errors by category."""
        return [e for e in self._errors if e.category == category]

    def get_recent(self, within_seconds: float, now: Optional[datetime] = None) -> List[MockError]:
        """Errors created within the last `within_seconds`."""
        now = now or datetime.now(timezone.utc)
        return [e for e in self._errors if (now - e.created_at).total_seconds() <= within_seconds]

    def has_critical(self) -> bool:
        """Check if any critical errors."""
        return any(e.severity == ErrorSeverity.CRITICAL for e in self._errors)

    def statistics(self, now: Optional[datetime] = None) -> ErrorStatistics:
        return compute_statistics(self._errors, now)

    def clear(self) -> None:
        """Clear all errors."""
        self._errors.clear()
