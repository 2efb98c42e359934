"""
Dry-run summaries of what a migration would change in the target project.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from .exceptions import DiffReadError
from .syntax import parse_to_tree, string_value, walk

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

logger: logging.Logger = logging.getLogger(__name__)

DiffStatus = Literal["new", "changed", "unchanged"]


@dataclass(frozen=True)
class DiffSummary:
    """Human-readable differences between generated output and an existing target file."""

    path: str
    status: DiffStatus
    added_imports: tuple[str, ...] = ()
    removed_imports: tuple[str, ...] = ()
    renamed_identifiers: tuple[tuple[str, str], ...] = ()
    line_delta: int = 0

    def render(self) -> str:
        lines = [f"{self.path}: {self.status}"]
        lines.extend(f"  + import {specifier}" for specifier in self.added_imports)
        lines.extend(f"  - import {specifier}" for specifier in self.removed_imports)
        lines.extend(f"  ~ rename {old} -> {new}" for old, new in self.renamed_identifiers)
        if self.status != "unchanged":
            lines.append(f"  lines {self.line_delta:+d}")
        return "\n".join(lines)


def import_specifiers(text: str, path: str) -> set[str]:
    """Module specifiers imported by text, from a lenient parse."""
    tree = parse_to_tree(text, path, strict=False)
    specifiers: set[str] = set()
    for node in walk(tree.root):
        if node.type in {"import_statement", "export_statement"}:
            source = node.child_by_field_name("source")
            value = string_value(tree, source) if source is not None else None
            if value is not None:
                specifiers.add(value)
    return specifiers


def _line_count(text: str) -> int:
    return len(text.splitlines())


class DiffReporter:
    """Compares generated output with what is already at the target path."""

    def summarize(self, generated_text: str, target_path: Path, rename_map: Mapping[str, str] | None = None) -> DiffSummary:
        """Summarize the change writing generated_text to target_path would make.

        Args:
            generated_text: Text the migration would write
            target_path: Where it would be written
            rename_map: Identifier renames applied by the transform

        Returns:
            DiffSummary with sorted collections

        Raises:
            DiffReadError: If an existing target file cannot be read or decoded
        """
        renamed = tuple(sorted((rename_map or {}).items()))
        try:
            existing = target_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return DiffSummary(
                path=str(target_path),
                status="new",
                added_imports=tuple(sorted(import_specifiers(generated_text, target_path.name))),
                renamed_identifiers=renamed,
                line_delta=_line_count(generated_text),
            )
        except (OSError, UnicodeDecodeError) as e:
            msg = f"Could not read existing target {target_path}: {e}"
            raise DiffReadError(msg) from e

        if existing == generated_text:
            return DiffSummary(path=str(target_path), status="unchanged", renamed_identifiers=renamed)
        before = import_specifiers(existing, target_path.name)
        after = import_specifiers(generated_text, target_path.name)
        return DiffSummary(
            path=str(target_path),
            status="changed",
            added_imports=tuple(sorted(after - before)),
            removed_imports=tuple(sorted(before - after)),
            renamed_identifiers=renamed,
            line_delta=_line_count(generated_text) - _line_count(existing),
        )
