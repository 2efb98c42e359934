"""
Custom exception classes for the component migration tool.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .models import MigrationPlan

AnalysisErrorKind = Literal["Unparseable", "UnrecognizedShape"]
TransformErrorKind = Literal["UnresolvedImport", "NamingCollision"]


class MigrationError(Exception):
    """Base exception for migration errors."""


class ConfigError(MigrationError):
    """Raised when a naming or migration configuration value is invalid."""


class ParseError(MigrationError):
    """Raised by the syntax adapter when source text does not parse cleanly."""

    def __init__(self, message: str, *, line: int | None = None) -> None:
        super().__init__(message)
        self.line: int | None = line


class AnalysisError(MigrationError):
    """Raised when a file cannot be turned into a component descriptor.

    The file is skipped and counted as failed; the batch continues.
    """

    def __init__(self, kind: AnalysisErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind: AnalysisErrorKind = kind


class TransformError(MigrationError):
    """Raised when a component cannot be rewritten to target conventions.

    Carries the best-effort partial plan so the report can show what was
    planned before the failure.
    """

    def __init__(self, kind: TransformErrorKind, message: str, *, plan: MigrationPlan | None = None) -> None:
        super().__init__(message)
        self.kind: TransformErrorKind = kind
        self.plan: MigrationPlan | None = plan


class FatalError(MigrationError):
    """Raised when the batch cannot start (source or target root missing or unreadable)."""


class DiffReadError(MigrationError):
    """Raised when an existing target file cannot be read for a dry-run comparison."""
