"""
errors/taxonomy.py - Simulated error classification system

Module 1: Error Taxonomy

Static enumerations and the immutable MockError record. Nothing in here has
behavior beyond presentation metadata and ordering.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple
from types import MappingProxyType
from datetime import datetime, timezone
from enum import Enum
import uuid


class ErrorCategory(Enum):
    """Top-level classification of a simulated error."""

    AUTHENTICATION = "authentication"
    NETWORK = "network"
    VALIDATION = "validation"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    FAMILY_MANAGEMENT = "family_management"
    SYNC = "sync"
    QR_CODE = "qr_code"
    DEPENDENCY = "dependency"
    STATE_INCONSISTENCY = "state_inconsistency"
    PROTOTYPE = "prototype"
    INFO = "info"
    GENERIC = "generic"

    @property
    def display_name(self) -> str:
        return _CATEGORY_META[self][0]

    @property
    def icon(self) -> str:
        return _CATEGORY_META[self][1]

    @classmethod
    def coerce(cls, value: Any) -> "ErrorCategory":
        """Map any input onto a category, falling back to GENERIC."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value:
            key = value.strip().lower()
            for category in cls:
                if key in (category.value, category.name.lower()):
                    return category
        return cls.GENERIC


_CATEGORY_META: Dict[ErrorCategory, Tuple[str, str]] = {
    ErrorCategory.AUTHENTICATION: ("Authentication", "person.crop.circle.badge.exclamationmark"),
    ErrorCategory.NETWORK: ("Network", "wifi.exclamationmark"),
    ErrorCategory.VALIDATION: ("Validation", "exclamationmark.triangle.fill"),
    ErrorCategory.PERMISSION: ("Permission", "lock.fill"),
    ErrorCategory.NOT_FOUND: ("Not Found", "magnifyingglass"),
    ErrorCategory.FAMILY_MANAGEMENT: ("Family Management", "person.3.fill"),
    ErrorCategory.SYNC: ("Sync", "arrow.triangle.2.circlepath"),
    ErrorCategory.QR_CODE: ("QR Code", "qrcode.viewfinder"),
    ErrorCategory.DEPENDENCY: ("Dependency", "shippingbox"),
    ErrorCategory.STATE_INCONSISTENCY: ("State Inconsistency", "exclamationmark.arrow.triangle.2.circlepath"),
    ErrorCategory.PROTOTYPE: ("Prototype", "info.circle.fill"),
    ErrorCategory.INFO: ("Info", "info.circle"),
    ErrorCategory.GENERIC: ("Error", "exclamationmark.circle"),
}


class ErrorType(Enum):
    """Category-scoped error subtype."""

    # Authentication
    SESSION_EXPIRED = "session_expired"
    ACCOUNT_NOT_FOUND = "account_not_found"
    AUTHENTICATION_FAILED = "authentication_failed"
    BIOMETRIC_FAILED = "biometric_failed"

    # Network
    NO_CONNECTION = "no_connection"
    SLOW_CONNECTION = "slow_connection"
    SERVER_UNAVAILABLE = "server_unavailable"
    TIMEOUT = "timeout"

    # Validation
    INVALID_INPUT = "invalid_input"
    DUPLICATE_DATA = "duplicate_data"
    INVALID_FORMAT = "invalid_format"

    # Permission
    ACCESS_DENIED = "access_denied"
    CHILD_RESTRICTION = "child_restriction"
    CAMERA_PERMISSION = "camera_permission"

    # Not found
    RECORD_NOT_FOUND = "record_not_found"
    MEMBER_NOT_FOUND = "member_not_found"

    # Family management
    FAMILY_NOT_FOUND = "family_not_found"
    FAMILY_FULL = "family_full"
    ALREADY_MEMBER = "already_member"

    # Sync
    SYNC_FAILED = "sync_failed"
    CONFLICT_DETECTED = "conflict_detected"
    QUOTA_EXCEEDED = "quota_exceeded"

    # QR code
    SCAN_FAILED = "scan_failed"
    INVALID_QR_CODE = "invalid_qr_code"

    # Dependency
    MISSING_DEPENDENCY = "missing_dependency"
    DEPENDENCY_INJECTION_FAILURE = "dependency_injection_failure"

    # State inconsistency
    MISSING_STATE = "missing_state"
    INVALID_STATE = "invalid_state"

    # Prototype
    FEATURE_PREVIEW = "feature_preview"
    DATA_LIMIT = "data_limit"

    # Info
    NOTICE = "notice"

    # Generic
    UNKNOWN = "unknown"

    @property
    def category(self) -> ErrorCategory:
        for category, types in ERROR_TYPES_BY_CATEGORY.items():
            if self in types:
                return category
        return ErrorCategory.GENERIC


ERROR_TYPES_BY_CATEGORY: Dict[ErrorCategory, Tuple[ErrorType, ...]] = {
    ErrorCategory.AUTHENTICATION: (
        ErrorType.SESSION_EXPIRED,
        ErrorType.ACCOUNT_NOT_FOUND,
        ErrorType.AUTHENTICATION_FAILED,
        ErrorType.BIOMETRIC_FAILED,
    ),
    ErrorCategory.NETWORK: (
        ErrorType.NO_CONNECTION,
        ErrorType.SLOW_CONNECTION,
        ErrorType.SERVER_UNAVAILABLE,
        ErrorType.TIMEOUT,
    ),
    ErrorCategory.VALIDATION: (
        ErrorType.INVALID_INPUT,
        ErrorType.DUPLICATE_DATA,
        ErrorType.INVALID_FORMAT,
    ),
    ErrorCategory.PERMISSION: (
        ErrorType.ACCESS_DENIED,
        ErrorType.CHILD_RESTRICTION,
        ErrorType.CAMERA_PERMISSION,
    ),
    ErrorCategory.NOT_FOUND: (
        ErrorType.RECORD_NOT_FOUND,
        ErrorType.MEMBER_NOT_FOUND,
    ),
    ErrorCategory.FAMILY_MANAGEMENT: (
        ErrorType.FAMILY_NOT_FOUND,
        ErrorType.FAMILY_FULL,
        ErrorType.ALREADY_MEMBER,
    ),
    ErrorCategory.SYNC: (
        ErrorType.SYNC_FAILED,
        ErrorType.CONFLICT_DETECTED,
        ErrorType.QUOTA_EXCEEDED,
    ),
    ErrorCategory.QR_CODE: (
        ErrorType.SCAN_FAILED,
        ErrorType.INVALID_QR_CODE,
    ),
    ErrorCategory.DEPENDENCY: (
        ErrorType.MISSING_DEPENDENCY,
        ErrorType.DEPENDENCY_INJECTION_FAILURE,
    ),
    ErrorCategory.STATE_INCONSISTENCY: (
        ErrorType.MISSING_STATE,
        ErrorType.INVALID_STATE,
    ),
    ErrorCategory.PROTOTYPE: (
        ErrorType.FEATURE_PREVIEW,
        ErrorType.DATA_LIMIT,
    ),
    ErrorCategory.INFO: (ErrorType.NOTICE,),
    ErrorCategory.GENERIC: (ErrorType.UNKNOWN,),
}


class ErrorSeverity(Enum):
    """Severity levels, totally ordered info < low < medium < high < critical."""

    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def color(self) -> str:
        return _SEVERITY_COLOR[self]

    def __lt__(self, other):
        if not isinstance(other, ErrorSeverity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, ErrorSeverity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, ErrorSeverity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, ErrorSeverity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {
    ErrorSeverity.INFO: 1,
    ErrorSeverity.LOW: 2,
    ErrorSeverity.MEDIUM: 3,
    ErrorSeverity.HIGH: 4,
    ErrorSeverity.CRITICAL: 5,
}

_SEVERITY_COLOR = {
    ErrorSeverity.INFO: "blue",
    ErrorSeverity.LOW: "green",
    ErrorSeverity.MEDIUM: "orange",
    ErrorSeverity.HIGH: "red",
    ErrorSeverity.CRITICAL: "purple",
}


class ActionStyle(Enum):
    """Button style tag for a recovery action."""
    PRIMARY = "primary"
    SECONDARY = "secondary"
    TERTIARY = "tertiary"
    DESTRUCTIVE = "destructive"


class RecoveryActionKind(Enum):
    """Named remedial actions a user can invoke against a displayed error."""

    # General
    DISMISS = "dismiss"
    RETRY = "retry"
    CANCEL = "cancel"

    # Authentication
    SIGN_IN = "sign_in"
    CREATE_ACCOUNT = "create_account"
    TRY_DIFFERENT_ACCOUNT = "try_different_account"
    TRY_DIFFERENT_METHOD = "try_different_method"
    USE_PASSCODE = "use_passcode"
    SIGN_IN_MANUALLY = "sign_in_manually"

    # Network
    CHECK_CONNECTION = "check_connection"
    WORK_OFFLINE = "work_offline"
    CHECK_STATUS = "check_status"
    CONTINUE_ANYWAY = "continue_anyway"

    # Validation
    EDIT_INPUT = "edit_input"
    CHOOSE_DIFFERENT_NAME = "choose_different_name"
    ADD_SUFFIX = "add_suffix"
    GENERATE_NEW_CODE = "generate_new_code"
    EDIT_CODE = "edit_code"

    # Permission
    CONTACT_ADMIN = "contact_admin"
    REQUEST_PERMISSION = "request_permission"
    ASK_PARENT = "ask_parent"
    OPEN_SETTINGS = "open_settings"
    ENTER_CODE_MANUALLY = "enter_code_manually"

    # Family management
    TRY_DIFFERENT_CODE = "try_different_code"
    SCAN_QR_CODE = "scan_qr_code"
    CONTACT_SENDER = "contact_sender"
    WAIT_FOR_SPACE = "wait_for_space"
    SWITCH_FAMILIES = "switch_families"
    STAY_IN_CURRENT = "stay_in_current"

    # Sync
    FORCE_SYNC = "force_sync"
    CONTINUE_OFFLINE = "continue_offline"
    REVIEW_CHANGES = "review_changes"
    ACCEPT_MERGE = "accept_merge"
    MANAGE_STORAGE = "manage_storage"
    UPGRADE_STORAGE = "upgrade_storage"
    CONTINUE_LOCAL = "continue_local"

    # QR code
    TRY_AGAIN = "try_again"
    IMPROVE_LIGHT = "improve_light"
    SCAN_DIFFERENT_CODE = "scan_different_code"
    GET_NEW_CODE = "get_new_code"

    # Environment / state
    USE_DEFAULT_STATE = "use_default_state"
    REFRESH_ENVIRONMENT = "refresh_environment"
    CHECK_DEPENDENCIES = "check_dependencies"
    RESTART_VIEW = "restart_view"
    REPORT_ISSUE = "report_issue"

    # Prototype
    LEARN_MORE = "learn_more"
    CONTINUE_DEMO = "continue_demo"
    RESET_DEMO = "reset_demo"

    @property
    def title(self) -> str:
        return _ACTION_TITLES.get(self, self.value.replace("_", " ").title())

    @property
    def icon(self) -> str:
        return _ACTION_ICONS.get(self, "circle")

    @property
    def style(self) -> ActionStyle:
        return _ACTION_STYLES.get(self, ActionStyle.SECONDARY)


_ACTION_TITLES: Dict[RecoveryActionKind, str] = {
    RecoveryActionKind.RETRY: "Try Again",
    RecoveryActionKind.WAIT_FOR_SPACE: "Wait for Space",
    RecoveryActionKind.STAY_IN_CURRENT: "Stay in Current",
    RecoveryActionKind.IMPROVE_LIGHT: "Improve Lighting",
    RecoveryActionKind.SCAN_QR_CODE: "Scan QR Code",
}

_ACTION_ICONS: Dict[RecoveryActionKind, str] = {
    RecoveryActionKind.DISMISS: "xmark.circle",
    RecoveryActionKind.RETRY: "arrow.clockwise",
    RecoveryActionKind.CANCEL: "xmark",
    RecoveryActionKind.SIGN_IN: "person.crop.circle",
    RecoveryActionKind.CREATE_ACCOUNT: "person.crop.circle.badge.plus",
    RecoveryActionKind.TRY_DIFFERENT_ACCOUNT: "person.2.crop.square.stack",
    RecoveryActionKind.TRY_DIFFERENT_METHOD: "arrow.triangle.swap",
    RecoveryActionKind.USE_PASSCODE: "lock.fill",
    RecoveryActionKind.SIGN_IN_MANUALLY: "hand.point.up.left",
    RecoveryActionKind.CHECK_CONNECTION: "wifi",
    RecoveryActionKind.WORK_OFFLINE: "wifi.slash",
    RecoveryActionKind.CHECK_STATUS: "info.circle",
    RecoveryActionKind.CONTINUE_ANYWAY: "arrow.right.circle",
    RecoveryActionKind.EDIT_INPUT: "pencil",
    RecoveryActionKind.CHOOSE_DIFFERENT_NAME: "textformat.abc",
    RecoveryActionKind.ADD_SUFFIX: "plus.circle",
    RecoveryActionKind.GENERATE_NEW_CODE: "arrow.clockwise.circle",
    RecoveryActionKind.EDIT_CODE: "pencil.circle",
    RecoveryActionKind.CONTACT_ADMIN: "envelope",
    RecoveryActionKind.REQUEST_PERMISSION: "hand.raised",
    RecoveryActionKind.ASK_PARENT: "person.2",
    RecoveryActionKind.OPEN_SETTINGS: "gear",
    RecoveryActionKind.ENTER_CODE_MANUALLY: "keyboard",
    RecoveryActionKind.TRY_DIFFERENT_CODE: "textformat.123",
    RecoveryActionKind.SCAN_QR_CODE: "qrcode.viewfinder",
    RecoveryActionKind.CONTACT_SENDER: "message",
    RecoveryActionKind.WAIT_FOR_SPACE: "clock",
    RecoveryActionKind.SWITCH_FAMILIES: "arrow.triangle.swap",
    RecoveryActionKind.STAY_IN_CURRENT: "checkmark.circle",
    RecoveryActionKind.FORCE_SYNC: "arrow.triangle.2.circlepath",
    RecoveryActionKind.CONTINUE_OFFLINE: "wifi.slash",
    RecoveryActionKind.REVIEW_CHANGES: "doc.text.magnifyingglass",
    RecoveryActionKind.ACCEPT_MERGE: "checkmark.circle.fill",
    RecoveryActionKind.MANAGE_STORAGE: "externaldrive",
    RecoveryActionKind.UPGRADE_STORAGE: "arrow.up.circle",
    RecoveryActionKind.CONTINUE_LOCAL: "internaldrive",
    RecoveryActionKind.TRY_AGAIN: "arrow.clockwise",
    RecoveryActionKind.IMPROVE_LIGHT: "lightbulb",
    RecoveryActionKind.SCAN_DIFFERENT_CODE: "qrcode",
    RecoveryActionKind.GET_NEW_CODE: "qrcode.viewfinder",
    RecoveryActionKind.USE_DEFAULT_STATE: "arrow.uturn.backward.circle",
    RecoveryActionKind.REFRESH_ENVIRONMENT: "arrow.clockwise.circle",
    RecoveryActionKind.CHECK_DEPENDENCIES: "checklist",
    RecoveryActionKind.RESTART_VIEW: "arrow.counterclockwise.circle",
    RecoveryActionKind.REPORT_ISSUE: "exclamationmark.bubble",
    RecoveryActionKind.LEARN_MORE: "info.circle",
    RecoveryActionKind.CONTINUE_DEMO: "play.circle",
    RecoveryActionKind.RESET_DEMO: "arrow.counterclockwise",
}

_ACTION_STYLES: Dict[RecoveryActionKind, ActionStyle] = {
    RecoveryActionKind.RETRY: ActionStyle.PRIMARY,
    RecoveryActionKind.TRY_AGAIN: ActionStyle.PRIMARY,
    RecoveryActionKind.FORCE_SYNC: ActionStyle.PRIMARY,
    RecoveryActionKind.SIGN_IN: ActionStyle.PRIMARY,
    RecoveryActionKind.CREATE_ACCOUNT: ActionStyle.PRIMARY,
    RecoveryActionKind.OPEN_SETTINGS: ActionStyle.PRIMARY,
    RecoveryActionKind.REFRESH_ENVIRONMENT: ActionStyle.PRIMARY,
    RecoveryActionKind.WORK_OFFLINE: ActionStyle.TERTIARY,
    RecoveryActionKind.CONTINUE_OFFLINE: ActionStyle.TERTIARY,
    RecoveryActionKind.CONTINUE_ANYWAY: ActionStyle.TERTIARY,
    RecoveryActionKind.CONTINUE_LOCAL: ActionStyle.TERTIARY,
    RecoveryActionKind.LEARN_MORE: ActionStyle.TERTIARY,
    RecoveryActionKind.CHECK_STATUS: ActionStyle.TERTIARY,
    RecoveryActionKind.REVIEW_CHANGES: ActionStyle.TERTIARY,
    RecoveryActionKind.REPORT_ISSUE: ActionStyle.TERTIARY,
    RecoveryActionKind.SWITCH_FAMILIES: ActionStyle.DESTRUCTIVE,
    RecoveryActionKind.RESET_DEMO: ActionStyle.DESTRUCTIVE,
    RecoveryActionKind.RESTART_VIEW: ActionStyle.DESTRUCTIVE,
}


# Number of actions surfaced directly; the rest are collapsible.
PRIMARY_ACTION_LIMIT = 3


@dataclass(frozen=True, eq=False)
class MockError:
    """
    Immutable simulated error.

    Recovery flows never mutate the error; progress is tracked alongside it by
    the recovery manager.
    """

    category: ErrorCategory = ErrorCategory.GENERIC
    error_type: ErrorType = ErrorType.UNKNOWN
    title: str = ""
    message: str = ""
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    is_retryable: bool = False
    recovery_actions: Tuple[RecoveryActionKind, ...] = (RecoveryActionKind.DISMISS,)
    context: Mapping[str, Any] = field(default_factory=dict)
    error_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        actions = tuple(self.recovery_actions or ())
        if not actions:
            actions = (RecoveryActionKind.DISMISS,)
        object.__setattr__(self, "recovery_actions", actions)
        object.__setattr__(self, "context", MappingProxyType(dict(self.context or {})))

    def __eq__(self, other):
        if not isinstance(other, MockError):
            return NotImplemented
        return self.error_id == other.error_id

    def __hash__(self):
        return hash(self.error_id)

    @property
    def primary_actions(self) -> Tuple[RecoveryActionKind, ...]:
        return self.recovery_actions[:PRIMARY_ACTION_LIMIT]

    @property
    def overflow_actions(self) -> Tuple[RecoveryActionKind, ...]:
        return self.recovery_actions[PRIMARY_ACTION_LIMIT:]

    @property
    def allows_tap_dismissal(self) -> bool:
        """Tap-to-dismiss is only offered up to medium severity."""
        return self.severity <= ErrorSeverity.MEDIUM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_id": self.error_id,
            "category": self.category.value,
            "error_type": self.error_type.value,
            "title": self.title,
            "message": self.message,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
            "recovery_actions": [a.value for a in self.recovery_actions],
            "context": {k: _plain(v) for k, v in self.context.items()},
            "created_at": self.created_at.isoformat(),
        }


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    return value


class ErrorScenario(Enum):
    """Named, predefined error generation policies."""

    NETWORK_OUTAGE = "network_outage"
    NETWORK_ERROR = "network_error"
    AUTHENTICATION_ISSUES = "authentication_issues"
    AUTHENTICATION_ERROR = "authentication_error"
    VALIDATION_PROBLEMS = "validation_problems"
    PERMISSION_DENIALS = "permission_denials"
    SYNC_CONFLICTS = "sync_conflicts"
    SYNC_CONFLICT = "sync_conflict"
    MIXED_ERRORS = "mixed_errors"
    PROTOTYPE_DEMO = "prototype_demo"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def description(self) -> str:
        return SCENARIO_POLICIES[self].description

    @property
    def policy(self) -> "ScenarioPolicy":
        return SCENARIO_POLICIES[self]


@dataclass(frozen=True)
class ScenarioPolicy:
    """Category-weighted emission schedule for a scenario."""

    category_weights: Dict[ErrorCategory, float]
    emission_probability: float = 0.5
    interval_seconds: float = 5.0
    description: str = ""

    @property
    def categories(self) -> List[ErrorCategory]:
        return [c for c, w in self.category_weights.items() if w > 0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category_weights": {c.value: w for c, w in self.category_weights.items()},
            "emission_probability": self.emission_probability,
            "interval_seconds": self.interval_seconds,
            "description": self.description,
        }


SCENARIO_POLICIES: Dict[ErrorScenario, ScenarioPolicy] = {
    ErrorScenario.NETWORK_OUTAGE: ScenarioPolicy(
        category_weights={ErrorCategory.NETWORK: 1.0},
        emission_probability=0.8,
        interval_seconds=4.0,
        description="Simulates network connectivity issues and server problems",
    ),
    ErrorScenario.NETWORK_ERROR: ScenarioPolicy(
        category_weights={ErrorCategory.NETWORK: 1.0},
        emission_probability=0.7,
        interval_seconds=6.0,
        description="Simulates network connectivity errors",
    ),
    ErrorScenario.AUTHENTICATION_ISSUES: ScenarioPolicy(
        category_weights={ErrorCategory.AUTHENTICATION: 1.0},
        emission_probability=0.6,
        interval_seconds=6.0,
        description="Simulates authentication failures and session problems",
    ),
    ErrorScenario.AUTHENTICATION_ERROR: ScenarioPolicy(
        category_weights={ErrorCategory.AUTHENTICATION: 1.0},
        emission_probability=0.5,
        interval_seconds=8.0,
        description="Simulates authentication errors",
    ),
    ErrorScenario.VALIDATION_PROBLEMS: ScenarioPolicy(
        category_weights={ErrorCategory.VALIDATION: 1.0},
        emission_probability=0.7,
        interval_seconds=5.0,
        description="Simulates form validation and input errors",
    ),
    ErrorScenario.PERMISSION_DENIALS: ScenarioPolicy(
        category_weights={ErrorCategory.PERMISSION: 1.0},
        emission_probability=0.5,
        interval_seconds=6.0,
        description="Simulates permission and access control issues",
    ),
    ErrorScenario.SYNC_CONFLICTS: ScenarioPolicy(
        category_weights={ErrorCategory.SYNC: 1.0},
        emission_probability=0.4,
        interval_seconds=8.0,
        description="Simulates data synchronization problems",
    ),
    ErrorScenario.SYNC_CONFLICT: ScenarioPolicy(
        category_weights={ErrorCategory.SYNC: 1.0},
        emission_probability=0.3,
        interval_seconds=10.0,
        description="Simulates data synchronization conflicts",
    ),
    ErrorScenario.MIXED_ERRORS: ScenarioPolicy(
        category_weights={
            ErrorCategory.NETWORK: 0.4,
            ErrorCategory.VALIDATION: 0.2,
            ErrorCategory.SYNC: 0.2,
            ErrorCategory.PERMISSION: 0.2,
        },
        emission_probability=0.3,
        interval_seconds=6.0,
        description="Simulates a variety of different error types",
    ),
    ErrorScenario.PROTOTYPE_DEMO: ScenarioPolicy(
        category_weights={ErrorCategory.PROTOTYPE: 1.0},
        emission_probability=0.2,
        interval_seconds=12.0,
        description="Simulates prototype-specific limitations and features",
    ),
}


def create_mock_error(
    category: ErrorCategory,
    error_type: ErrorType,
    title: str,
    message: str,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    is_retryable: bool = False,
    recovery_actions: Optional[List[RecoveryActionKind]] = None,
    context: Optional[Dict[str, Any]] = None,
    created_at: Optional[datetime] = None,
) -> MockError:
    """Factory that keeps category and subtype consistent."""
    category = ErrorCategory.coerce(category)
    if error_type not in ERROR_TYPES_BY_CATEGORY.get(category, ()):
        error_type = ERROR_TYPES_BY_CATEGORY[category][0]

    kwargs: Dict[str, Any] = {}
    if created_at is not None:
        kwargs["created_at"] = created_at

    return MockError(
        category=category,
        error_type=error_type,
        title=title,
        message=message,
        severity=severity,
        is_retryable=is_retryable,
        recovery_actions=tuple(recovery_actions or (RecoveryActionKind.DISMISS,)),
        context=context or {},
        **kwargs,
    )
