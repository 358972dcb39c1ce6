"""
faultline/errors/exceptions.py - Engine exceptions

The simulation itself never raises for in-taxonomy input. These cover misuse
at the edges: bad configuration and failed exports.
"""

from __future__ import annotations

from typing import Optional


class FaultlineError(Exception):
    """Base exception for faultline."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(FaultlineError):
    """Raised when configuration values or files are invalid."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        path: Optional[str] = None,
    ):
        super().__init__(message)
        self.field = field
        self.path = path

    def __str__(self) -> str:
        parts = [self.message]
        if self.field:
            parts.append(f"[field={self.field}]")
        if self.path:
            parts.append(f"[path={self.path}]")
        return " ".join(parts)


class ExportError(FaultlineError):
    """Raised when an export format is unsupported or the target is unwritable."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (path={self.path})"
        return self.message
