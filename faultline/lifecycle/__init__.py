"""
lifecycle/ - Export of error data snapshots

Pydantic export document plus JSON/YAML writers.
"""

from .schemas import (
    MockErrorRecord,
    ErrorPatternRecord,
    ErrorStatisticsRecord,
    RecoveryInsightRecord,
    RecoverySummaryRecord,
    ErrorExportDocument,
    SCHEMA_VERSION,
)

from .export import (
    ExportFormat,
    ExportConfig,
    ErrorDataExporter,
    build_document,
    render,
    load_export,
)

__all__ = [
    # Schemas
    "MockErrorRecord",
    "ErrorPatternRecord",
    "ErrorStatisticsRecord",
    "RecoveryInsightRecord",
    "RecoverySummaryRecord",
    "ErrorExportDocument",
    "SCHEMA_VERSION",
    # Export
    "ExportFormat",
    "ExportConfig",
    "ErrorDataExporter",
    "build_document",
    "render",
    "load_export",
]
