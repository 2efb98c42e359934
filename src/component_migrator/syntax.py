"""Syntax tree adapter over the tree-sitter JavaScript and TSX grammars.

This is the external parse/unparse capability of the migration core. Trees
are never mutated in place: a transform produces a list of byte-range
TextEdits, SyntaxTree.apply() splices them into the source and re-parses,
and tree_to_text() returns the resulting source.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cache
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .exceptions import ParseError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .models import SourceLanguage

logger: logging.Logger = logging.getLogger(__name__)

TSX_SUFFIXES: frozenset[str] = frozenset({".tsx", ".ts"})


@cache
def _grammar(language: SourceLanguage) -> Language:
    if language == "tsx":
        return Language(tree_sitter_typescript.language_tsx())
    return Language(tree_sitter_javascript.language())


def language_for_path(path: str) -> SourceLanguage:
    """Pick the grammar for a file from its extension."""
    return "tsx" if PurePosixPath(path).suffix.lower() in TSX_SUFFIXES else "javascript"


@dataclass(frozen=True)
class TextEdit:
    """Replace source bytes [start, end) with replacement. start == end inserts."""

    start: int
    end: int
    replacement: str


def _first_error_line(root: Node) -> int | None:
    for node in walk(root):
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
    return None


class SyntaxTree:
    """Parsed source plus its tree-sitter root node."""

    def __init__(self, source: bytes, root: Node, language: SourceLanguage, path: str) -> None:
        self.source: bytes = source
        self.root: Node = root
        self.language: SourceLanguage = language
        self.path: str = path

    @property
    def text(self) -> str:
        return self.source.decode("utf-8")

    def node_text(self, node: Node) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8")

    def line_of(self, node: Node) -> int:
        return node.start_point[0] + 1

    def apply(self, edits: Iterable[TextEdit]) -> SyntaxTree:
        """Return a new tree with the edits spliced in.

        Raises:
            ValueError: If two edits overlap
            ParseError: If the edited text no longer parses
        """
        ordered = sorted(edits, key=lambda edit: (edit.start, edit.end))
        if not ordered:
            return self
        previous_end = -1
        for edit in ordered:
            if edit.start < previous_end:
                msg = f"Overlapping edits at byte {edit.start} in {self.path}"
                raise ValueError(msg)
            previous_end = edit.end

        pieces: list[bytes] = []
        cursor = 0
        for edit in ordered:
            pieces.append(self.source[cursor : edit.start])
            pieces.append(edit.replacement.encode("utf-8"))
            cursor = edit.end
        pieces.append(self.source[cursor:])
        return _parse_bytes(b"".join(pieces), self.path, self.language, strict=True)


def walk(node: Node) -> Iterator[Node]:
    """Yield node and all its descendants in source order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def unwrap(node: Node | None) -> Node | None:
    """Strip parentheses and TypeScript-only expression wrappers."""
    while node is not None and node.type in {
        "parenthesized_expression",
        "as_expression",
        "satisfies_expression",
        "non_null_expression",
    }:
        named = node.named_children
        if not named:
            return node
        node = named[0]
    return node


def string_value(tree: SyntaxTree, node: Node) -> str | None:
    """Return the literal value of a string or substitution-free template."""
    if node.type == "string":
        return tree.node_text(node)[1:-1]
    if node.type == "template_string" and not any(c.type == "template_substitution" for c in node.named_children):
        return tree.node_text(node)[1:-1]
    return None


def _parse_bytes(source: bytes, path: str, language: SourceLanguage, *, strict: bool) -> SyntaxTree:
    parser = Parser(_grammar(language))
    parsed = parser.parse(source)
    root = parsed.root_node
    if strict and root.has_error:
        line = _first_error_line(root)
        msg = f"Syntax error in {path}" + (f" at line {line}" if line else "")
        raise ParseError(msg, line=line)
    return SyntaxTree(source, root, language, path)


def parse_to_tree(text: str, path: str, *, strict: bool = True) -> SyntaxTree:
    """Parse source text with the grammar chosen from path.

    Raises:
        ParseError: If strict and the text contains syntax errors
    """
    return _parse_bytes(text.encode("utf-8"), path, language_for_path(path), strict=strict)


def tree_to_text(tree: SyntaxTree) -> str:
    return tree.text


class TreeSitterParser:
    """TreeParser implementation backed by tree-sitter."""

    def parse_to_tree(self, text: str, path: str, *, strict: bool = True) -> SyntaxTree:
        return parse_to_tree(text, path, strict=strict)

    def tree_to_text(self, tree: SyntaxTree) -> str:
        return tree_to_text(tree)
