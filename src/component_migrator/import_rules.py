"""
Import path and identifier mapping patterns for the component migration tool.
"""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING

from .models import ImportRewriteRule

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence


def split_pattern(pattern: str) -> tuple[str, str]:
    """Split a "source:target" pattern."""
    if ":" not in pattern:
        msg = f"Invalid pattern format: {pattern}"
        raise ValueError(msg)
    source, target = pattern.split(":", 1)
    if not source:
        msg = f"Invalid pattern format: {pattern}"
        raise ValueError(msg)
    return source, target


def parse_mapping(patterns: Sequence[str] | None) -> dict[str, str]:
    """Turn repeated "source:target" patterns into a mapping (last one wins)."""
    mapping: dict[str, str] = {}
    for pattern in patterns or []:
        source, target = split_pattern(pattern)
        mapping[source] = target
    return mapping


def _strip_glob(value: str) -> str:
    # tsconfig-style aliases ("@/*": "src/*") mean the same as a plain prefix
    return value[:-1] if value.endswith("*") else value


class ImportRewriter:
    """Handles import specifier rewriting by longest matching prefix."""

    def __init__(self, rules: Mapping[str, str] | Iterable[ImportRewriteRule] | None = None) -> None:
        if rules is None:
            pairs: list[ImportRewriteRule] = []
        elif hasattr(rules, "items"):
            pairs = [
                ImportRewriteRule(_strip_glob(prefix), _strip_glob(replacement))
                for prefix, replacement in rules.items()  # type: ignore[union-attr]
            ]
        else:
            pairs = list(rules)  # type: ignore[arg-type]
        # Stable sort keeps configuration order among equal-length prefixes
        self.rules: list[ImportRewriteRule] = sorted(pairs, key=lambda rule: len(rule.prefix), reverse=True)

    @classmethod
    def from_patterns(cls, patterns: Sequence[str] | None) -> ImportRewriter:
        return cls(parse_mapping(patterns))

    def match(self, specifier: str) -> ImportRewriteRule | None:
        """Return the longest rule whose prefix starts specifier on a path boundary."""
        for rule in self.rules:
            if not specifier.startswith(rule.prefix):
                continue
            if rule.prefix.endswith("/") or len(specifier) == len(rule.prefix) or specifier[len(rule.prefix)] == "/":
                return rule
        return None

    def rewrite(self, specifier: str) -> str | None:
        """Rewrite specifier, or return None when no rule matches."""
        rule = self.match(specifier)
        return rule.apply(specifier) if rule is not None else None


def alias_prefixes(paths: Mapping[str, object], base_url: str = ".") -> dict[str, str]:
    """Turn tsconfig ``compilerOptions.paths`` into {alias prefix: directory prefix}.

    Only wildcard entries ("@/*": ["src/*"]) describe a prefix; exact
    aliases and entries with no usable target are ignored. Directory
    prefixes are relative to the project root and end in "/" ("" is the root).
    """
    aliases: dict[str, str] = {}
    for alias, targets in paths.items():
        if not alias.endswith("*") or not isinstance(targets, list) or not targets:
            continue
        first = targets[0]
        if not isinstance(first, str) or not first.endswith("*"):
            continue
        directory = posixpath.normpath(posixpath.join(base_url, first[:-1]))
        if directory.startswith(".."):
            continue
        aliases[alias[:-1]] = "" if directory == "." else f"{directory}/"
    return aliases


def aliased_path(path: str, aliases: Mapping[str, str]) -> str | None:
    """Spell a root-relative path through the alias with the longest matching directory."""
    best: tuple[str, str] | None = None
    for alias, directory in sorted(aliases.items()):
        if path.startswith(directory) and (best is None or len(directory) > len(best[1])):
            best = (alias, directory)
    if best is None:
        return None
    alias, directory = best
    return alias + path[len(directory) :]


def alias_rewrites(source_aliases: Mapping[str, str], target_aliases: Mapping[str, str]) -> dict[str, str]:
    """Import prefix rules carrying source aliases over to the target's aliases."""
    rewrites: dict[str, str] = {}
    for alias, directory in source_aliases.items():
        replacement = aliased_path(directory, target_aliases)
        if replacement is not None and replacement != alias:
            rewrites[alias] = replacement
    return rewrites
