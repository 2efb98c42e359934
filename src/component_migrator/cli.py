"""
Command-line interface for the component migration tool.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .config import DEFAULT_PROP_STYLES, MigrationConfig, discovery_from_table, load_config_file, naming_from_table, validate_naming
from .exceptions import ConfigError, FatalError
from .import_rules import parse_mapping
from .orchestrator import Orchestrator
from .utils import log_event, setup_logging

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .config import NamingConfig
    from .report import ExitStatus, MigrationReport

EXIT_CODES: dict[ExitStatus, int] = {"Success": 0, "HardFailure": 1, "PartialSuccess": 2, "FatalError": 3}


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Migrate UI function components into a target project's layout, naming and test conventions"
    )

    # Positional arguments
    _ = parser.add_argument("source_dir", type=Path, help="Root of the source project")
    _ = parser.add_argument("target_dir", type=Path, help="Root of the target project")

    _ = parser.add_argument(
        "--tag", "-t", help='Provenance tag; migrated files go under "components_migrated_from_<tag>"'
    )
    _ = parser.add_argument("--dry-run", action="store_true", help="Report what would change without writing files")
    _ = parser.add_argument("--generate-tests", action="store_true", help="Generate Jest tests for migrated components")
    _ = parser.add_argument("--config", "-c", type=Path, help="TOML configuration file (default: ./component_migrator.toml)")
    _ = parser.add_argument(
        "--import-prefix",
        "-i",
        action="append",
        help='Import rewrite rule (format: "source_prefix:target_prefix"). Can be specified multiple times.',
    )
    _ = parser.add_argument(
        "--rename",
        "-r",
        action="append",
        help='Component rename (format: "SourceName:TargetName"). Can be specified multiple times.',
    )
    _ = parser.add_argument("--default-prop-style", choices=DEFAULT_PROP_STYLES, help="How prop defaults are encoded")
    _ = parser.add_argument("--test-attribute", help="Test attribute name used by the target project (e.g. data-testid)")
    _ = parser.add_argument(
        "--strict-imports", action="store_true", help="Fail a file when a relative import matches no rewrite rule"
    )
    _ = parser.add_argument("--workers", "-w", type=int, help="Number of worker threads (default: 4)")
    _ = parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> MigrationConfig:
    """Resolve the file configuration and command line flags into a MigrationConfig.

    Raises:
        ConfigError: If the configuration file or a flag value is invalid
    """
    data: dict[str, Any] = load_config_file(getattr(args, "config", None))
    naming_table = data.get("naming", {})
    if not isinstance(naming_table, dict):
        msg = "[naming] must be a table"
        raise ConfigError(msg)
    naming: NamingConfig = naming_from_table(naming_table)

    updates: dict[str, Any] = {}
    tag: str | None = getattr(args, "tag", None)
    if tag:
        updates["provenance_suffix"] = f"migrated_from_{tag}"
    try:
        if getattr(args, "import_prefix", None):
            updates["import_prefix_map"] = naming.import_prefix_map | parse_mapping(args.import_prefix)
        if getattr(args, "rename", None):
            updates["rename_overrides"] = naming.rename_overrides | parse_mapping(args.rename)
    except ValueError as e:
        raise ConfigError(str(e)) from e
    if getattr(args, "default_prop_style", None):
        updates["default_prop_style"] = args.default_prop_style
    if getattr(args, "test_attribute", None):
        updates["test_attribute_convention"] = args.test_attribute
    if getattr(args, "strict_imports", False):
        updates["mismatch_strategy"] = "strict"
    naming = validate_naming(replace(naming, **updates))

    discovery_table = data.get("discovery", {})
    if not isinstance(discovery_table, dict):
        msg = "[discovery] must be a table"
        raise ConfigError(msg)
    workers: int | None = getattr(args, "workers", None)
    if workers is not None and workers < 1:
        msg = f"--workers must be at least 1, got {workers}"
        raise ConfigError(msg)

    return MigrationConfig(
        source_dir=args.source_dir,
        target_dir=args.target_dir,
        generate_tests=getattr(args, "generate_tests", False),
        dry_run=getattr(args, "dry_run", False),
        naming=naming,
        max_workers=workers or 4,
        **discovery_from_table(discovery_table),
    )


def print_report(report: MigrationReport) -> None:
    summary = report.summary
    print(f"Migrated: {summary['migrated']}  Skipped: {summary['skipped']}  Failed: {summary['failed']}")
    for event in report.failures():
        print(f"FAILED {event.file}: {event.error_kind or 'Error'}: {event.message}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    # Setup logging
    verbose: bool = getattr(args, "verbose", False)
    setup_logging(verbose=verbose)
    logger = logging.getLogger(__name__)

    try:
        config = build_config(args)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(EXIT_CODES["FatalError"])

    cancel_event = threading.Event()

    def request_cancel(_signum: int, _frame: object) -> None:
        logger.warning("Cancellation requested; finishing files in progress")
        cancel_event.set()

    previous_handler = signal.signal(signal.SIGINT, request_cancel)
    try:
        report = Orchestrator(config, cancel_event=cancel_event, on_event=log_event).run()
    except FatalError as e:
        logger.error(f"Migration aborted: {e}")
        sys.exit(EXIT_CODES["FatalError"])
    finally:
        _ = signal.signal(signal.SIGINT, previous_handler)

    print_report(report)
    sys.exit(EXIT_CODES[report.exit_status()])
