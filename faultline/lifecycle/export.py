"""
lifecycle/export.py - Error data export

Writes an ErrorExportData snapshot to disk as JSON or YAML, validated through
the pydantic export document first.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Union
from pathlib import Path
from enum import Enum
import json
import logging

import yaml
from pydantic import ValidationError

from faultline.errors.aggregator import ErrorExportData
from faultline.errors.exceptions import ExportError
from .schemas import ErrorExportDocument

logger = logging.getLogger("lifecycle.export")


class ExportFormat(Enum):
    """Export formats."""
    JSON = "json"
    YAML = "yaml"

    @classmethod
    def parse(cls, value: Union[str, "ExportFormat"]) -> "ExportFormat":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ExportError(f"Unsupported export format: {value}")

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ExportFormat":
        suffix = Path(path).suffix.lower()
        if suffix in (".yaml", ".yml"):
            return cls.YAML
        return cls.JSON


@dataclass
class ExportConfig:
    """Configuration for export."""

    format: ExportFormat = ExportFormat.JSON

    # What to include
    include_errors: bool = True
    include_statistics: bool = True
    include_insights: bool = True

    # Formatting
    pretty_print: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format.value,
            "include_errors": self.include_errors,
            "include_statistics": self.include_statistics,
            "include_insights": self.include_insights,
            "pretty_print": self.pretty_print,
        }


def build_document(data: ErrorExportData, config: ExportConfig = None) -> ErrorExportDocument:
    """Validate an export snapshot into the export document."""
    config = config or ExportConfig()
    raw = data.to_dict()

    if not config.include_errors:
        raw["errors"] = []
    if not config.include_statistics:
        raw["statistics"] = None
    if not config.include_insights:
        raw["insights"] = []

    try:
        return ErrorExportDocument.model_validate(raw)
    except ValidationError as e:
        raise ExportError(f"Export data failed validation: {e}")


def render(document: ErrorExportDocument, config: ExportConfig = None) -> str:
    """Serialize a document to text in the configured format."""
    config = config or ExportConfig()
    payload = document.model_dump(mode="json")

    if config.format == ExportFormat.JSON:
        return json.dumps(payload, indent=2 if config.pretty_print else None)
    elif config.format == ExportFormat.YAML:
        return yaml.safe_dump(payload, default_flow_style=False, sort_keys=False)

    raise ExportError(f"Unsupported export format: {config.format}")


class ErrorDataExporter:
    """
    Exports error data snapshots in various formats.
    """

    def __init__(self, config: ExportConfig = None):
        self.config = config or ExportConfig()

    def export(
        self,
        data: ErrorExportData,
        output_path: Union[str, Path],
        config: ExportConfig = None,
    ) -> Path:
        """
        Export a snapshot to file.

        Raises:
            ExportError: if validation fails or the path cannot be written
        """
        config = config or self.config
        path = Path(output_path)

        text = render(build_document(data, config), config)

        try:
            if path.parent and not path.parent.exists():
                path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise ExportError(f"Cannot write export: {e}", path=str(path))

        logger.info(f"Exported {len(data.errors)} errors to {path} ({config.format.value})")
        return path

    def export_summary(self, data: ErrorExportData) -> Dict[str, Any]:
        """Generate summary for quick display."""
        stats = data.statistics
        top = stats.most_common_category if stats else None
        return {
            "exported_at": data.exported_at.isoformat(),
            "total_errors": stats.total_errors if stats else len(data.errors),
            "most_common_category": top.value if top else None,
            "insight_count": len(data.insights),
            "recovery_attempts": data.recovery_summary.get("total_attempts", 0),
        }


def load_export(path: Union[str, Path]) -> ErrorExportDocument:
    """Read a JSON or YAML export back into a document."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ExportError(f"Cannot read export: {e}", path=str(path))

    try:
        if ExportFormat.from_path(path) == ExportFormat.YAML:
            raw = yaml.safe_load(text)
        else:
            raw = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ExportError(f"Cannot parse export: {e}", path=str(path))

    try:
        return ErrorExportDocument.model_validate(raw)
    except ValidationError as e:
        raise ExportError(f"Invalid export document: {e}", path=str(path))
