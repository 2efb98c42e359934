"""
Component Migration Tool

Migrates UI function components (JavaScript/JSX or TSX) from a source project
into a target project's layout, naming and testing conventions while keeping
their observable behavior.
"""

from __future__ import annotations

from .analyzer import Analyzer
from .cli import main
from .config import MigrationConfig, NamingConfig
from .diff_reporter import DiffReporter, DiffSummary
from .exceptions import AnalysisError, FatalError, MigrationError, TransformError
from .jest_emitter import JestEmitter
from .orchestrator import Orchestrator
from .report import MigrationEvent, MigrationReport
from .scaffolder import TestScaffolder, emit_test_spec
from .transformer import Transformer
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "AnalysisError",
    "Analyzer",
    "DiffReporter",
    "DiffSummary",
    "FatalError",
    "JestEmitter",
    "MigrationConfig",
    "MigrationError",
    "MigrationEvent",
    "MigrationReport",
    "NamingConfig",
    "Orchestrator",
    "TestScaffolder",
    "TransformError",
    "Transformer",
    "emit_test_spec",
    "main",
    "setup_logging",
]
