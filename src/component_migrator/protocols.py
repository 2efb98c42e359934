"""Protocols defining the capabilities the migration core consumes.

The core (Analyzer, Transformer, TestScaffolder, DiffReporter, Orchestrator)
never parses text, prints test code or touches the target directory by
itself. It calls into three injected capabilities:

1. TreeParser: turns source text into a syntax tree (and back)
2. TestEmitter: turns an abstract TestSpec into text of one test dialect
3. OutputWriter: stores generated files

This separation allows:
- Swapping grammars or test dialects without changing core code
- Testing the core with in-memory implementations
- Dry runs that never reach the writer
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pathlib import Path

    from .models import ElementLocator, ExportKind, Probe, PropValue
    from .syntax import SyntaxTree


class TreeParser(Protocol):
    """Parse source text into a syntax tree and render a tree back to text."""

    def parse_to_tree(self, text: str, path: str, *, strict: bool = True) -> SyntaxTree:
        """Parse text; the file path selects the grammar.

        Raises:
            ParseError: If strict and the text contains syntax errors
        """
        ...

    def tree_to_text(self, tree: SyntaxTree) -> str:
        """Render a (possibly edited) tree back to source text."""
        ...


class TestEmitter(Protocol):
    """Render abstract test steps into a concrete test dialect.

    The TestScaffolder drives an emitter through emit_test_spec(); each
    method returns a source fragment and the emitter assembles fragments in
    emit_test_case() and emit_test_file().
    """

    def emit_render_call(self, component: str, binding: str, props: tuple[tuple[str, PropValue], ...]) -> list[str]:
        """Statements that render the component with props, bound to binding."""
        ...

    def emit_assertion_equal(self, actual: Probe, expected: Probe | str | int | bool | None, *, negate: bool = False) -> list[str]:
        """Statements asserting actual equals expected (or differs, if negate)."""
        ...

    def emit_event_simulation(self, binding: str, locator: ElementLocator, event: str) -> list[str]:
        """Statements firing one user event on the located element."""
        ...

    def emit_test_case(self, name: str, statements: list[str]) -> str:
        """Wrap statements into one named test case."""
        ...

    def emit_test_file(self, component: str, import_path: str, export_kind: ExportKind, cases: list[str]) -> str:
        """Assemble test cases into a complete test module."""
        ...


class OutputWriter(Protocol):
    """Store a generated file."""

    def write(self, path: Path, text: str) -> None:
        """Write text to path, creating parent directories.

        Raises:
            OSError: If the file cannot be written
        """
        ...
