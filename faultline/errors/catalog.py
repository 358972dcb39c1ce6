"""
errors/catalog.py - Fixed template pools for error generation

Module 1: Error Taxonomy

Every category maps to a non-empty pool of templates. The generator picks one
template at random and stamps a fresh MockError from it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime

from .taxonomy import (
    ErrorCategory,
    ErrorSeverity,
    ErrorType,
    MockError,
    RecoveryActionKind as A,
)


@dataclass(frozen=True)
class ErrorTemplate:
    """Blueprint for one kind of simulated error."""

    error_type: ErrorType
    title: str
    message: str
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    is_retryable: bool = False
    recovery_actions: Tuple[A, ...] = (A.DISMISS,)
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def category(self) -> ErrorCategory:
        return self.error_type.category

    def build(
        self,
        created_at: Optional[datetime] = None,
        extra_context: Optional[Dict[str, Any]] = None,
    ) -> MockError:
        context = dict(self.context)
        if extra_context:
            context.update(extra_context)

        kwargs: Dict[str, Any] = {}
        if created_at is not None:
            kwargs["created_at"] = created_at

        return MockError(
            category=self.category,
            error_type=self.error_type,
            title=self.title,
            message=self.message,
            severity=self.severity,
            is_retryable=self.is_retryable,
            recovery_actions=self.recovery_actions,
            context=context,
            **kwargs,
        )


ERROR_CATALOG: Dict[ErrorCategory, List[ErrorTemplate]] = {
    ErrorCategory.AUTHENTICATION: [
        ErrorTemplate(
            error_type=ErrorType.SESSION_EXPIRED,
            title="Session Expired",
            message="Your session has expired. Please sign in again to continue.",
            severity=ErrorSeverity.MEDIUM,
            is_retryable=False,
            recovery_actions=(A.SIGN_IN, A.DISMISS),
            context={"reason": "token_expired", "inactive_seconds": 3600},
        ),
        ErrorTemplate(
            error_type=ErrorType.ACCOUNT_NOT_FOUND,
            title="Account Not Found",
            message="We couldn't find an account with those credentials. Would you like to create a new account?",
            severity=ErrorSeverity.MEDIUM,
            is_retryable=False,
            recovery_actions=(A.CREATE_ACCOUNT, A.TRY_DIFFERENT_ACCOUNT, A.DISMISS),
            context={"provider": "apple", "suggestion": "create_new"},
        ),
        ErrorTemplate(
            error_type=ErrorType.AUTHENTICATION_FAILED,
            title="Sign In Failed",
            message="Unable to sign in. Please check your internet connection and try again.",
            severity=ErrorSeverity.MEDIUM,
            is_retryable=True,
            recovery_actions=(A.RETRY, A.TRY_DIFFERENT_METHOD, A.DISMISS),
            context={"provider": "apple", "error_code": "auth_failed"},
        ),
        ErrorTemplate(
            error_type=ErrorType.BIOMETRIC_FAILED,
            title="Face ID Unavailable",
            message="Face ID authentication failed. Please use your passcode or sign in manually.",
            severity=ErrorSeverity.LOW,
            is_retryable=True,
            recovery_actions=(A.USE_PASSCODE, A.SIGN_IN_MANUALLY, A.DISMISS),
            context={"biometric_type": "face_id", "fallback_available": True},
        ),
    ],
    ErrorCategory.NETWORK: [
        ErrorTemplate(
            error_type=ErrorType.NO_CONNECTION,
            title="No Internet Connection",
            message="Unable to connect to the server. Please check your internet connection and try again.",
            severity=ErrorSeverity.HIGH,
            is_retryable=True,
            recovery_actions=(A.CHECK_CONNECTION, A.WORK_OFFLINE, A.RETRY, A.DISMISS),
            context={"connection_type": "none", "offline_mode_available": True},
        ),
        ErrorTemplate(
            error_type=ErrorType.SLOW_CONNECTION,
            title="Slow Connection",
            message="Your internet connection is slow. Some features may take longer to load.",
            severity=ErrorSeverity.LOW,
            is_retryable=True,
            recovery_actions=(A.CONTINUE_ANYWAY, A.WORK_OFFLINE, A.DISMISS),
            context={"connection_speed": "slow", "estimated_time": "30s"},
        ),
        ErrorTemplate(
            error_type=ErrorType.SERVER_UNAVAILABLE,
            title="Server Unavailable",
            message="Our servers are temporarily unavailable. Please try again in a few minutes.",
            severity=ErrorSeverity.HIGH,
            is_retryable=True,
            recovery_actions=(A.RETRY, A.WORK_OFFLINE, A.CHECK_STATUS, A.DISMISS),
            context={"server_status": "maintenance", "estimated_recovery": "5 minutes"},
        ),
        ErrorTemplate(
            error_type=ErrorType.TIMEOUT,
            title="Connection Timeout",
            message="The request took too long to complete. Please check your connection and try again.",
            severity=ErrorSeverity.MEDIUM,
            is_retryable=True,
            recovery_actions=(A.RETRY, A.CHECK_CONNECTION, A.DISMISS),
            context={"timeout_duration": "30s", "retry_recommended": True},
        ),
    ],
    ErrorCategory.VALIDATION: [
        ErrorTemplate(
            error_type=ErrorType.INVALID_INPUT,
            title="Invalid Family Name",
            message="Family name must be at least 2 characters and contain only letters, numbers, and spaces.",
            recovery_actions=(A.EDIT_INPUT, A.DISMISS),
            context={"field": "family_name", "min_length": 2, "current_length": 1},
        ),
        ErrorTemplate(
            error_type=ErrorType.DUPLICATE_DATA,
            title="Family Name Already Exists",
            message="A family with that name already exists. Please choose a different name.",
            recovery_actions=(A.CHOOSE_DIFFERENT_NAME, A.ADD_SUFFIX, A.DISMISS),
            context={"existing_name": "Mawere Family", "suggestions": ["Mawere Family 2", "The Mawere Family"]},
        ),
        ErrorTemplate(
            error_type=ErrorType.INVALID_FORMAT,
            title="Invalid Family Code",
            message="Family code must be 6-8 characters containing only letters and numbers.",
            recovery_actions=(A.GENERATE_NEW_CODE, A.EDIT_CODE, A.DISMISS),
            context={"code_format": "alphanumeric", "length_range": "6-8", "current_code": "ABC-123"},
        ),
    ],
    ErrorCategory.PERMISSION: [
        ErrorTemplate(
            error_type=ErrorType.ACCESS_DENIED,
            title="Access Denied",
            message="You don't have permission to perform this action. Only family admins can manage members and settings.",
            recovery_actions=(A.CONTACT_ADMIN, A.REQUEST_PERMISSION, A.DISMISS),
            context={"required_role": "admin", "current_role": "member"},
        ),
        ErrorTemplate(
            error_type=ErrorType.CHILD_RESTRICTION,
            title="Parental Permission Required",
            message="This feature requires parental permission. We'll send a request to your parents for approval.",
            recovery_actions=(A.REQUEST_PERMISSION, A.ASK_PARENT, A.DISMISS),
            context={"feature": "location_sharing", "parent_contacts": ["mom", "dad"]},
        ),
        ErrorTemplate(
            error_type=ErrorType.CAMERA_PERMISSION,
            title="Camera Access Needed",
            message="Camera access is needed to scan QR codes. Please enable camera permission in Settings.",
            recovery_actions=(A.OPEN_SETTINGS, A.ENTER_CODE_MANUALLY, A.DISMISS),
            context={"permission_type": "camera", "feature": "qr_scanning", "alternative_available": True},
        ),
    ],
    ErrorCategory.NOT_FOUND: [
        ErrorTemplate(
            error_type=ErrorType.RECORD_NOT_FOUND,
            title="Item Not Found",
            message="The item you're looking for no longer exists. It may have been removed by another family member.",
            severity=ErrorSeverity.LOW,
            recovery_actions=(A.REFRESH_ENVIRONMENT, A.REPORT_ISSUE, A.DISMISS),
            context={"resource": "grocery_item"},
        ),
        ErrorTemplate(
            error_type=ErrorType.MEMBER_NOT_FOUND,
            title="Member Not Found",
            message="This family member could not be found. They may have left the family.",
            severity=ErrorSeverity.MEDIUM,
            recovery_actions=(A.REFRESH_ENVIRONMENT, A.CONTACT_ADMIN, A.DISMISS),
            context={"resource": "membership"},
        ),
    ],
    ErrorCategory.FAMILY_MANAGEMENT: [
        ErrorTemplate(
            error_type=ErrorType.FAMILY_NOT_FOUND,
            title="Family Not Found",
            message="The family code 'ABC123' doesn't exist. Please check the code and try again.",
            recovery_actions=(A.TRY_DIFFERENT_CODE, A.SCAN_QR_CODE, A.CONTACT_SENDER, A.DISMISS),
            context={"entered_code": "ABC123", "suggestion": "double_check_code"},
        ),
        ErrorTemplate(
            error_type=ErrorType.FAMILY_FULL,
            title="Family is Full",
            message="This family has reached its maximum of 8 members. Contact the family admin to make space.",
            severity=ErrorSeverity.HIGH,
            recovery_actions=(A.CONTACT_ADMIN, A.WAIT_FOR_SPACE, A.DISMISS),
            context={"max_members": 8, "current_members": 8},
        ),
        ErrorTemplate(
            error_type=ErrorType.ALREADY_MEMBER,
            title="Already in Family",
            message="You're already a member of a family. You can only be in one family at a time.",
            recovery_actions=(A.SWITCH_FAMILIES, A.STAY_IN_CURRENT, A.DISMISS),
            context={"current_family": "Mawere Family", "new_family": "Smith Family"},
        ),
    ],
    ErrorCategory.SYNC: [
        ErrorTemplate(
            error_type=ErrorType.SYNC_FAILED,
            title="Sync Failed",
            message="Some changes couldn't be synced. Your data is safe locally and will sync when connection improves.",
            severity=ErrorSeverity.LOW,
            is_retryable=True,
            recovery_actions=(A.FORCE_SYNC, A.CONTINUE_OFFLINE, A.CHECK_CONNECTION, A.DISMISS),
            context={"pending_changes": 3, "seconds_since_sync": 300},
        ),
        ErrorTemplate(
            error_type=ErrorType.CONFLICT_DETECTED,
            title="Sync Conflict",
            message="Your family data was modified on another device. We've merged the changes automatically.",
            severity=ErrorSeverity.LOW,
            recovery_actions=(A.REVIEW_CHANGES, A.ACCEPT_MERGE, A.DISMISS),
            context={"conflict_type": "member_added", "resolution": "automatic"},
        ),
        ErrorTemplate(
            error_type=ErrorType.QUOTA_EXCEEDED,
            title="Cloud Storage Full",
            message="Your cloud storage is full. Family data will only be saved locally until you free up space.",
            recovery_actions=(A.MANAGE_STORAGE, A.UPGRADE_STORAGE, A.CONTINUE_LOCAL, A.DISMISS),
            context={"storage_used": "5GB", "storage_limit": "5GB", "upgrade_available": True},
        ),
    ],
    ErrorCategory.QR_CODE: [
        ErrorTemplate(
            error_type=ErrorType.SCAN_FAILED,
            title="QR Code Not Recognized",
            message="The QR code couldn't be read. Make sure the code is clear and well-lit.",
            is_retryable=True,
            recovery_actions=(A.TRY_AGAIN, A.ENTER_CODE_MANUALLY, A.IMPROVE_LIGHT, A.DISMISS),
            context={"scan_attempts": 3, "light_level": "low", "manual_entry_available": True},
        ),
        ErrorTemplate(
            error_type=ErrorType.INVALID_QR_CODE,
            title="Invalid QR Code",
            message="This QR code is not a family invitation. Please scan a family invitation code.",
            recovery_actions=(A.SCAN_DIFFERENT_CODE, A.ENTER_CODE_MANUALLY, A.GET_NEW_CODE, A.DISMISS),
            context={"qr_type": "unknown"},
        ),
    ],
    ErrorCategory.DEPENDENCY: [
        ErrorTemplate(
            error_type=ErrorType.MISSING_DEPENDENCY,
            title="Service Unavailable",
            message="A required service hasn't finished starting. Refreshing usually fixes this.",
            severity=ErrorSeverity.HIGH,
            is_retryable=True,
            recovery_actions=(A.REFRESH_ENVIRONMENT, A.RETRY, A.REPORT_ISSUE, A.DISMISS),
            context={"dependency": "data_service"},
        ),
        ErrorTemplate(
            error_type=ErrorType.DEPENDENCY_INJECTION_FAILURE,
            title="Setup Incomplete",
            message="Part of the app wasn't set up correctly. We can continue with default settings.",
            severity=ErrorSeverity.CRITICAL,
            is_retryable=True,
            recovery_actions=(A.CHECK_DEPENDENCIES, A.REFRESH_ENVIRONMENT, A.USE_DEFAULT_STATE, A.REPORT_ISSUE),
            context={"dependency": "app_state"},
        ),
    ],
    ErrorCategory.STATE_INCONSISTENCY: [
        ErrorTemplate(
            error_type=ErrorType.MISSING_STATE,
            title="Something Went Wrong",
            message="The screen lost track of its data. You can reload it or continue with defaults.",
            severity=ErrorSeverity.HIGH,
            recovery_actions=(A.USE_DEFAULT_STATE, A.REFRESH_ENVIRONMENT, A.RESTART_VIEW, A.DISMISS),
            context={"missing": "app_state"},
        ),
        ErrorTemplate(
            error_type=ErrorType.INVALID_STATE,
            title="Out of Sync",
            message="The app's state became inconsistent. Resetting navigation should fix it.",
            severity=ErrorSeverity.MEDIUM,
            recovery_actions=(A.REFRESH_ENVIRONMENT, A.USE_DEFAULT_STATE, A.REPORT_ISSUE, A.DISMISS),
            context={"state": "navigation"},
        ),
    ],
    ErrorCategory.PROTOTYPE: [
        ErrorTemplate(
            error_type=ErrorType.FEATURE_PREVIEW,
            title="Feature Preview",
            message="Video calling is available in the full version. This prototype shows the interface design and user flow.",
            severity=ErrorSeverity.INFO,
            recovery_actions=(A.LEARN_MORE, A.CONTINUE_DEMO, A.DISMISS),
            context={"feature_name": "Video Calling", "availability": "full_version"},
        ),
        ErrorTemplate(
            error_type=ErrorType.DATA_LIMIT,
            title="Demo Data Limit",
            message="You've reached the demo data limit. In the full app, you can add unlimited family members and content.",
            severity=ErrorSeverity.INFO,
            recovery_actions=(A.CONTINUE_DEMO, A.RESET_DEMO, A.LEARN_MORE, A.DISMISS),
            context={"limit_type": "members", "current_count": 8, "full_version_limit": "unlimited"},
        ),
    ],
    ErrorCategory.INFO: [
        ErrorTemplate(
            error_type=ErrorType.NOTICE,
            title="Heads Up",
            message="Some family data is still loading in the background.",
            severity=ErrorSeverity.INFO,
            recovery_actions=(A.DISMISS,),
        ),
    ],
    ErrorCategory.GENERIC: [
        ErrorTemplate(
            error_type=ErrorType.UNKNOWN,
            title="Something Went Wrong",
            message="An unexpected error occurred. Please try again.",
            severity=ErrorSeverity.INFO,
            is_retryable=True,
            recovery_actions=(A.RETRY, A.REPORT_ISSUE, A.DISMISS),
        ),
    ],
}


# Per-category guidance used by pattern detection and insights
CATEGORY_RECOMMENDATIONS: Dict[ErrorCategory, str] = {
    ErrorCategory.NETWORK: "Check internet connection and consider offline mode",
    ErrorCategory.AUTHENTICATION: "Review authentication flow and session management",
    ErrorCategory.VALIDATION: "Improve input validation and user guidance",
    ErrorCategory.PERMISSION: "Clarify permission requirements and provide alternatives",
    ErrorCategory.NOT_FOUND: "Refresh stale views before acting on shared data",
    ErrorCategory.FAMILY_MANAGEMENT: "Simplify family joining process and improve error messages",
    ErrorCategory.SYNC: "Implement better conflict resolution and offline support",
    ErrorCategory.QR_CODE: "Improve QR scanning conditions and provide manual alternatives",
    ErrorCategory.DEPENDENCY: "Verify service wiring at startup",
    ErrorCategory.STATE_INCONSISTENCY: "Provide safe default state for every screen",
    ErrorCategory.PROTOTYPE: "Clearly communicate prototype limitations",
    ErrorCategory.INFO: "No action required",
    ErrorCategory.GENERIC: "Capture more context for unexpected errors",
}


# Order used for the scripted demo sequence
DEMO_SEQUENCE: Tuple[ErrorCategory, ...] = (
    ErrorCategory.NETWORK,
    ErrorCategory.AUTHENTICATION,
    ErrorCategory.VALIDATION,
    ErrorCategory.PERMISSION,
    ErrorCategory.FAMILY_MANAGEMENT,
    ErrorCategory.SYNC,
    ErrorCategory.QR_CODE,
    ErrorCategory.PROTOTYPE,
)


def templates_for(
    category: ErrorCategory,
    catalog: Optional[Dict[ErrorCategory, List[ErrorTemplate]]] = None,
) -> List[ErrorTemplate]:
    """Return the template pool for a category, falling back to GENERIC."""
    catalog = catalog if catalog is not None else ERROR_CATALOG
    pool = catalog.get(category) or []
    if not pool:
        pool = catalog.get(ErrorCategory.GENERIC) or ERROR_CATALOG[ErrorCategory.GENERIC]
    return pool
