"""
faultline/lifecycle/schemas.py - Pydantic export models

Validated, serializable shape of an error data export. The engine's own
dataclasses stay plain; these models are only built at the export boundary.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from faultline.errors.taxonomy import ErrorCategory, ErrorSeverity, ErrorType, RecoveryActionKind


SCHEMA_VERSION = "1.0"


# =============================================================================
# Error Schemas
# =============================================================================


class MockErrorRecord(BaseModel):
    """A single error from history."""

    error_id: str = Field(..., description="Unique error identifier")
    category: ErrorCategory = Field(..., description="Error category")
    error_type: ErrorType = Field(..., description="Category subtype")
    title: str = Field(..., description="Short title")
    message: str = Field(..., description="User-facing message")
    severity: ErrorSeverity = Field(..., description="Severity level")
    is_retryable: bool = Field(default=False)
    recovery_actions: List[RecoveryActionKind] = Field(..., min_length=1)
    context: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(..., description="When the error was created")


# =============================================================================
# Statistics Schemas
# =============================================================================


class ErrorPatternRecord(BaseModel):
    """A detected pattern in recent errors."""

    pattern_type: str
    frequency: int = Field(default=0, ge=0)
    timespan_seconds: float = Field(default=0.0, ge=0.0)
    recommendation: str = ""
    category: Optional[ErrorCategory] = None


class ErrorStatisticsRecord(BaseModel):
    """Statistics derived from history at export time."""

    total_errors: int = Field(default=0, ge=0)
    errors_by_category: Dict[str, int] = Field(default_factory=dict)
    errors_by_severity: Dict[str, int] = Field(default_factory=dict)
    patterns: List[ErrorPatternRecord] = Field(default_factory=list)
    average_errors_per_hour: float = Field(default=0.0, ge=0.0)
    first_error_at: Optional[datetime] = None
    last_error_at: Optional[datetime] = None


class RecoveryInsightRecord(BaseModel):
    """A ranked observation about errors or recovery."""

    insight_type: str
    message: str
    recommendation: str = ""
    category: Optional[ErrorCategory] = None
    score: float = Field(default=0.0, ge=0.0)


class RecoveryTallyRecord(BaseModel):
    attempts: int = Field(default=0, ge=0)
    successes: int = Field(default=0, ge=0)
    success_rate: float = Field(default=0.0, ge=0.0, le=1.0)


class RecoverySummaryRecord(BaseModel):
    """Aggregate recovery tallies."""

    total_attempts: int = Field(default=0, ge=0)
    total_successes: int = Field(default=0, ge=0)
    overall_success_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    flows_started: int = Field(default=0, ge=0)
    by_category: Dict[str, RecoveryTallyRecord] = Field(default_factory=dict)
    by_action: Dict[str, RecoveryTallyRecord] = Field(default_factory=dict)


# =============================================================================
# Export Document
# =============================================================================


class ErrorExportDocument(BaseModel):
    """Top-level export document."""

    schema_version: str = Field(default=SCHEMA_VERSION)
    exported_at: datetime
    errors: List[MockErrorRecord] = Field(default_factory=list)
    statistics: Optional[ErrorStatisticsRecord] = None
    insights: List[RecoveryInsightRecord] = Field(default_factory=list)
    recovery_summary: RecoverySummaryRecord = Field(default_factory=RecoverySummaryRecord)
