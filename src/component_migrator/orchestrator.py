"""Batch orchestrator that drives every component file through the pipeline.

The Orchestrator is the only component that touches the filesystem and the
report. For each discovered file it runs:

    source text
         │
         ▼
    TreeParser.parse_to_tree ──► SyntaxTree
         │
         ▼
    Analyzer.analyze ──────────► ComponentDescriptor
         │
         ├──► Transformer.plan/transform ──► MigrationPlan + rewritten tree
         │
         └──► TestScaffolder.scaffold ────► TestSpec ──► TestEmitter text
         │
         ▼
    DiffReporter (dry run) | OutputWriter

Batch Flow
----------
Phase 1: Preparation
    - Check that the source and target roots are readable (FatalError
      otherwise, before any file is touched)
    - Discover component files, stable-sorted by relative POSIX path
    - Compare the framework declared in both package.json files

Phase 2: Per-file work (worker pool)
    Parse, analyze, transform, generate and scaffold run on worker threads.
    Each file gets its own FileEvents buffer; workers share nothing but the
    read-only configuration.

Phase 3: Commit (input order)
    Results are taken back in input order. Registering target names in the
    batch registry, diffing or writing, and merging the file's events into
    the report all happen here, sequentially, so the report and any naming
    collisions do not depend on worker timing.

Error Handling
--------------
- Per-file failures (AnalysisError, TransformError, write failures) are
  recorded as error events and the batch continues, including unexpected
  exceptions raised while committing
- A file's outputs are written only after every stage succeeded
- Cancellation stops scheduling; files already in flight finish, the rest
  are recorded as skipped
"""

from __future__ import annotations

import json
import logging
import os
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any

from .analyzer import STYLE_EXTENSIONS, Analyzer
from .config import load_path_aliases
from .diff_reporter import DiffReporter
from .exceptions import AnalysisError, DiffReadError, FatalError, MigrationError, ParseError, TransformError
from .import_rules import alias_rewrites
from .jest_emitter import JestEmitter
from .report import FileEvents, MigrationReport
from .scaffolder import TestScaffolder, emit_test_spec
from .syntax import TreeSitterParser
from .transformer import Transformer
from .utils import FileSystemWriter

if TYPE_CHECKING:
    from collections.abc import Callable

    from .config import MigrationConfig, NamingConfig
    from .models import ComponentDescriptor, MigrationPlan
    from .protocols import OutputWriter, TestEmitter, TreeParser
    from .report import MigrationEvent

logger: logging.Logger = logging.getLogger(__name__)

COMPONENT_EXTENSIONS: frozenset[str] = frozenset({".js", ".jsx", ".tsx"})
NON_COMPONENT_MARKERS: tuple[str, ...] = (".test.", ".spec.", ".stories.")
FRAMEWORK_PACKAGES: tuple[tuple[str, str], ...] = (
    ("next", "next"),
    ("react", "react"),
    ("vue", "vue"),
    ("@angular/core", "angular"),
    ("svelte", "svelte"),
    ("solid-js", "solid"),
    ("preact", "preact"),
)


@dataclass
class FileResult:
    """What the worker stage produced for one file."""

    source_path: str
    events: FileEvents
    plan: MigrationPlan | None = None
    component_text: str | None = None
    test_text: str | None = None
    assets: list[tuple[Path, str]] = field(default_factory=list)  # Target path and text of copied style files

    @property
    def failed(self) -> bool:
        return self.events.outcome == "failed"


def detect_framework(project_dir: Path) -> str | None:
    """Name the UI framework a project's package.json depends on, if any."""
    package_json = project_dir / "package.json"
    try:
        manifest: dict[str, Any] = json.loads(package_json.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Could not read {package_json}: {e}")
        return None
    dependencies: dict[str, Any] = {}
    for key in ("dependencies", "devDependencies", "peerDependencies"):
        section = manifest.get(key)
        if isinstance(section, dict):
            dependencies.update(section)
    for package, framework in FRAMEWORK_PACKAGES:
        if package in dependencies:
            return framework
    return None


class Orchestrator:
    """Runs one batch migration and owns its MigrationReport.

    Usage:
        config = MigrationConfig(source_dir=Path("old"), target_dir=Path("new"))
        report = Orchestrator(config).run()
        status = report.exit_status()
    """

    def __init__(
        self,
        config: MigrationConfig,
        *,
        parser: TreeParser | None = None,
        emitter: TestEmitter | None = None,
        writer: OutputWriter | None = None,
        cancel_event: threading.Event | None = None,
        on_event: Callable[[MigrationEvent], None] | None = None,
    ) -> None:
        self.config: MigrationConfig = config
        self.parser: TreeParser = parser or TreeSitterParser()
        self.emitter: TestEmitter = emitter or JestEmitter(config.naming.test_attribute_convention)
        self.writer: OutputWriter = writer or FileSystemWriter()
        self.cancel_event: threading.Event = cancel_event or threading.Event()
        self.on_event: Callable[[MigrationEvent], None] | None = on_event
        self.analyzer: Analyzer = Analyzer()
        self.scaffolder: TestScaffolder = TestScaffolder()
        self.diff_reporter: DiffReporter = DiffReporter()
        self.transformer: Transformer = Transformer(config.naming, target_dir=config.target_dir)

    def cancel(self) -> None:
        """Stop scheduling new files; files in flight still finish."""
        self.cancel_event.set()

    # Phase 1

    def check_roots(self) -> None:
        """Fail the whole batch before any file if a root cannot be read.

        Raises:
            FatalError: If the source or target root is missing or unreadable
        """
        for label, root in (("Source", self.config.source_dir), ("Target", self.config.target_dir)):
            if not root.is_dir():
                msg = f"{label} directory does not exist or is not a directory: {root}"
                raise FatalError(msg)
            if not os.access(root, os.R_OK | os.X_OK):
                msg = f"{label} directory is not readable: {root}"
                raise FatalError(msg)
            try:
                _ = next(os.scandir(root), None)
            except OSError as e:
                msg = f"{label} directory cannot be listed: {root}: {e}"
                raise FatalError(msg) from e

    def discover(self) -> list[str]:
        """Relative POSIX paths of candidate component files, stable-sorted."""
        source_dir = self.config.source_dir
        ignore = set(self.config.ignore_dirs)
        roots = [source_dir / directory for directory in self.config.component_dirs] or [source_dir]
        found: set[str] = set()
        for root in roots:
            if not root.is_dir():
                logger.warning(f"Component directory not found, skipping: {root}")
                continue
            for dirpath, dirnames, filenames in os.walk(root):
                dirnames[:] = sorted(name for name in dirnames if name not in ignore)
                for filename in filenames:
                    suffix = PurePosixPath(filename).suffix.lower()
                    if suffix not in COMPONENT_EXTENSIONS:
                        continue
                    if any(marker in filename for marker in NON_COMPONENT_MARKERS):
                        continue
                    relative = Path(dirpath, filename).relative_to(source_dir)
                    found.add(relative.as_posix())
        return sorted(found)

    def discover_assets(self) -> list[str]:
        """Relative POSIX paths of style files a component may import, stable-sorted."""
        source_dir = self.config.source_dir
        ignore = set(self.config.ignore_dirs)
        found: list[str] = []
        for dirpath, dirnames, filenames in os.walk(source_dir):
            dirnames[:] = sorted(name for name in dirnames if name not in ignore)
            for filename in filenames:
                if filename.lower().endswith(STYLE_EXTENSIONS):
                    found.append(Path(dirpath, filename).relative_to(source_dir).as_posix())
        return sorted(found)

    def resolve_naming(self) -> NamingConfig:
        """Naming conventions with the path aliases both projects declare folded in.

        Source aliases become import rewrite rules onto the target's aliases;
        prefixes configured explicitly take precedence.
        """
        naming = self.config.naming
        source_aliases = load_path_aliases(self.config.source_dir)
        target_aliases = load_path_aliases(self.config.target_dir)
        if not source_aliases and not target_aliases:
            return naming
        seeded = alias_rewrites(source_aliases, target_aliases)
        logger.info(f"Path aliases: {len(source_aliases)} in source, {len(target_aliases)} in target, {len(seeded)} rewritten")
        return replace(
            naming,
            import_prefix_map=seeded | naming.import_prefix_map,
            target_aliases=target_aliases | naming.target_aliases,
        )

    def _framework_check(self, report: MigrationReport) -> None:
        source = detect_framework(self.config.source_dir)
        target = detect_framework(self.config.target_dir)
        logger.info(f"Detected frameworks: source={source or 'unknown'}, target={target or 'unknown'}")
        buffer = FileEvents(file="")
        if source is not None and source not in {"react", "next", "preact"}:
            buffer.warning(f"Source project uses {source}; only React-style function components are migrated")
        if source is not None and target is not None and source != target:
            buffer.warning(f"Framework mismatch: source uses {source}, target uses {target}")
        report.merge(buffer)

    # Phase 2

    def _flag_descriptor(self, descriptor: ComponentDescriptor, events: FileEvents) -> None:
        for effect in sorted(descriptor.cross_cutting_effects, key=lambda item: (item.line, item.target, item.operation)):
            events.warning(f"Cross-cutting effect at line {effect.line}: {effect.operation} on {effect.target}; review manually")
        for name in sorted(descriptor.unknown_props):
            events.warning(f"Props passed through '{name}' cannot be enumerated; tests cover named props only")

    def process_file(self, source_path: str) -> FileResult:
        """Parse, analyze, transform and scaffold one file. Never raises."""
        events = FileEvents(file=source_path)
        result = FileResult(source_path=source_path, events=events)
        try:
            text = (self.config.source_dir / source_path).read_text(encoding="utf-8")
            try:
                tree = self.parser.parse_to_tree(text, source_path)
            except ParseError as e:
                msg = f"Could not parse {source_path}: {e}"
                raise AnalysisError("Unparseable", msg) from e
            descriptor = self.analyzer.analyze(tree, source_path)
            events.component_name = descriptor.name
            self._flag_descriptor(descriptor, events)

            plan = self.transformer.plan(descriptor)
            result.plan = plan
            transformed = self.transformer.transform(tree, descriptor, plan)
            for warning in plan.warnings:
                events.warning(warning)
            result.component_text = self.parser.tree_to_text(transformed.tree)
            for asset in plan.assets:
                asset_text = (self.config.source_dir / asset).read_text(encoding="utf-8")
                result.assets.append((self.transformer.asset_target_path(asset), asset_text))

            if self.config.generate_tests:
                spec = self.scaffolder.scaffold(descriptor)
                for warning in spec.warnings:
                    events.warning(warning)
                result.test_text = emit_test_spec(
                    spec,
                    self.emitter,
                    component=plan.target_name,
                    import_path=self.transformer.test_import_path(plan),
                )
        except AnalysisError as e:
            self._fail(result, str(e), e.kind)
        except TransformError as e:
            if e.plan is not None:
                result.plan = e.plan
                for warning in e.plan.warnings:
                    events.warning(warning)
            self._fail(result, str(e), e.kind)
        except (OSError, UnicodeDecodeError) as e:
            self._fail(result, f"Could not read {source_path}: {e}", "ReadError")
        except MigrationError as e:
            self._fail(result, str(e), type(e).__name__)
        except Exception as e:
            logger.exception(f"Unexpected failure while migrating {source_path}")
            self._fail(result, f"Unexpected failure: {e}", type(e).__name__)
        return result

    def _fail(self, result: FileResult, message: str, kind: str) -> None:
        result.events.error(message, kind=kind)
        result.events.outcome = "failed"
        result.component_text = None
        result.test_text = None
        result.assets = []

    # Phase 3

    def _unchanged(self, path: Path, text: str) -> bool:
        try:
            return path.read_text(encoding="utf-8") == text
        except (OSError, UnicodeDecodeError):
            return False

    def commit(self, result: FileResult) -> None:
        """Register, then diff or write one processed file. Must run in input order.

        Failures are recorded on the file; the batch always continues.
        """
        try:
            self._commit(result)
        except Exception as e:
            logger.exception(f"Unexpected failure while committing {result.source_path}")
            self._fail(result, f"Unexpected failure: {e}", type(e).__name__)

    def _extra_outputs(self, result: FileResult, test_path: Path | None) -> list[tuple[Path, str]]:
        """Files written alongside the component: its tests, then its style files."""
        outputs: list[tuple[Path, str]] = []
        if test_path is not None and result.test_text is not None:
            outputs.append((test_path, result.test_text))
        outputs.extend(result.assets)
        return outputs

    def _commit(self, result: FileResult) -> None:
        events = result.events
        plan = result.plan
        if result.failed or plan is None or result.component_text is None:
            return
        try:
            self.transformer.register(plan)
        except TransformError as e:
            self._fail(result, str(e), e.kind)
            return

        test_path = self.transformer.test_path_for(plan) if result.test_text is not None else None
        pending = [(path, text) for path, text in self._extra_outputs(result, test_path) if not self._unchanged(path, text)]
        if self.config.dry_run:
            self._commit_dry_run(result, plan, test_path, pending)
            return

        if self._unchanged(plan.target_path, result.component_text) and not pending:
            events.info(f"Target {plan.target_path} is already up to date")
            events.outcome = "skipped"
            return
        try:
            self.writer.write(plan.target_path, result.component_text)
            for path, text in pending:
                self.writer.write(path, text)
        except OSError as e:
            self._fail(result, f"Could not write output for {result.source_path}: {e}", "WriteError")
            return
        events.info(f"Migrated {result.source_path} -> {plan.target_path}")
        if test_path is not None:
            events.info(f"Generated tests {test_path}")
        for path, _ in pending:
            if path != test_path:
                events.info(f"Copied style file {path}")
        events.outcome = "migrated"

    def _commit_dry_run(
        self, result: FileResult, plan: MigrationPlan, test_path: Path | None, pending: list[tuple[Path, str]]
    ) -> None:
        events = result.events
        try:
            summary = self.diff_reporter.summarize(result.component_text or "", plan.target_path, plan.rename_map)
        except DiffReadError as e:
            events.warning(str(e))
            events.info(f"Would migrate {result.source_path} -> {plan.target_path}")
            events.outcome = "migrated"
            return
        if summary.status == "unchanged" and not pending:
            events.info(f"Target {plan.target_path} is already up to date")
            events.outcome = "skipped"
            return
        events.info(f"Would migrate {result.source_path} -> {plan.target_path}\n{summary.render()}")
        for path, _ in pending:
            if path == test_path:
                events.info(f"Would generate tests {path}")
            else:
                events.info(f"Would copy style file {path}")
        events.outcome = "migrated"

    # Driver

    def run(self) -> MigrationReport:
        """Migrate every discovered file and return the report.

        Raises:
            FatalError: If a root directory is unreadable; no file is processed
        """
        self.check_roots()
        files = self.discover()
        logger.info(f"Discovered {len(files)} component files in {self.config.source_dir}")
        report = MigrationReport()
        self._framework_check(report)
        self.transformer = Transformer(
            self.resolve_naming(),
            target_dir=self.config.target_dir,
            batch_paths=files,
            batch_assets=self.discover_assets(),
        )

        window = max(1, self.config.max_workers)
        remaining = iter(files)
        in_flight: deque[Future[FileResult]] = deque()
        with ThreadPoolExecutor(max_workers=window, thread_name_prefix="migrate") as pool:

            def schedule() -> None:
                if self.cancel_event.is_set():
                    return
                source_path = next(remaining, None)
                if source_path is not None:
                    in_flight.append(pool.submit(self.process_file, source_path))

            for _ in range(window):
                schedule()
            while in_flight:
                result = in_flight.popleft().result()
                self.commit(result)
                report.merge(result.events)
                schedule()

        for source_path in remaining:
            buffer = FileEvents(file=source_path, outcome="skipped")
            buffer.info("Not scheduled: migration was cancelled")
            report.merge(buffer)

        logger.info(
            f"Migration finished: {report.migrated} migrated, {report.skipped} skipped, {report.failed} failed"
        )
        if self.on_event is not None:
            for event in report:
                self.on_event(event)
        return report
