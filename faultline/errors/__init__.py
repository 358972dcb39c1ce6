"""
errors/ - Mock error simulation & recovery

Taxonomy, generation, recovery flows, statistics and the handling
coordinator that ties them together.
"""

from .exceptions import (
    FaultlineError,
    ConfigError,
    ExportError,
)

from .taxonomy import (
    ErrorCategory,
    ErrorType,
    ErrorSeverity,
    ActionStyle,
    RecoveryActionKind,
    MockError,
    ErrorScenario,
    ScenarioPolicy,
    SCENARIO_POLICIES,
    ERROR_TYPES_BY_CATEGORY,
    create_mock_error,
)

from .catalog import (
    ErrorTemplate,
    ERROR_CATALOG,
    DEMO_SEQUENCE,
    templates_for,
)

from .scheduling import ScheduledTask

from .generator import ErrorGenerator

from .recovery import (
    OutcomeTable,
    RecoveryProgress,
    RecoveryResult,
    ErrorRecoveryManager,
    STEPS_BY_SEVERITY,
)

from .aggregator import (
    ErrorAggregator,
    ErrorStatistics,
    ErrorPattern,
    PatternType,
    RecoveryInsight,
    InsightType,
    ErrorExportData,
    compute_statistics,
)

from .suppression import (
    SuppressionType,
    SuppressionRule,
    default_suppression_rules,
)

from .coordinator import (
    ErrorContext,
    ErrorHandlingCoordinator,
)

__all__ = [
    # Exceptions
    "FaultlineError",
    "ConfigError",
    "ExportError",
    # Taxonomy
    "ErrorCategory",
    "ErrorType",
    "ErrorSeverity",
    "ActionStyle",
    "RecoveryActionKind",
    "MockError",
    "ErrorScenario",
    "ScenarioPolicy",
    "SCENARIO_POLICIES",
    "ERROR_TYPES_BY_CATEGORY",
    "create_mock_error",
    # Catalog
    "ErrorTemplate",
    "ERROR_CATALOG",
    "DEMO_SEQUENCE",
    "templates_for",
    # Generation
    "ScheduledTask",
    "ErrorGenerator",
    # Recovery
    "OutcomeTable",
    "RecoveryProgress",
    "RecoveryResult",
    "ErrorRecoveryManager",
    "STEPS_BY_SEVERITY",
    # Aggregator
    "ErrorAggregator",
    "ErrorStatistics",
    "ErrorPattern",
    "PatternType",
    "RecoveryInsight",
    "InsightType",
    "ErrorExportData",
    "compute_statistics",
    # Suppression
    "SuppressionType",
    "SuppressionRule",
    "default_suppression_rules",
    # Coordinator
    "ErrorContext",
    "ErrorHandlingCoordinator",
]
