"""Rewrite a component's syntax tree to the target project's conventions.

The Transformer changes framing only: import specifiers, the output path,
how prop defaults are encoded, test attribute names, identifier names from
explicit overrides, and a provenance header. Markup, props and their default
values are carried over verbatim.

Each rewrite is one pass of non-overlapping TextEdits followed by a re-parse,
so every pass sees the result of the previous one.
"""

from __future__ import annotations

import logging
import posixpath
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from .analyzer import (
    TEST_ATTRIBUTES,
    find_defaults_object,
    function_params,
    locate_component,
    named_children,
    param_pattern,
)
from .config import NamingConfig
from .exceptions import TransformError
from .import_rules import ImportRewriter, aliased_path
from .models import Conflict, MigrationPlan
from .syntax import TextEdit, string_value, unwrap, walk

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from tree_sitter import Node

    from .analyzer import ComponentSite, DefaultsObject
    from .models import ComponentDescriptor
    from .syntax import SyntaxTree

logger: logging.Logger = logging.getLogger(__name__)

STATIC_LITERALS: frozenset[str] = frozenset({"string", "number", "true", "false", "null", "undefined"})
SOURCE_EXTENSIONS: tuple[str, ...] = (".jsx", ".tsx", ".js", ".ts")
IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def is_static_default(node: Node | None) -> bool:
    """True for primitive literals that can move between default encodings unchanged."""
    node = unwrap(node)
    if node is None:
        return False
    if node.type in STATIC_LITERALS:
        return True
    if node.type == "template_string":
        return not any(child.type == "template_substitution" for child in node.named_children)
    if node.type == "unary_expression":
        operator = node.child_by_field_name("operator")
        argument = node.child_by_field_name("argument")
        return operator is not None and operator.type in {"-", "+"} and argument is not None and argument.type == "number"
    return False


def _object_key(name: str) -> str:
    return name if IDENTIFIER.match(name) else f"'{name}'"


@dataclass
class TransformResult:
    """A plan together with the rewritten tree."""

    plan: MigrationPlan
    tree: SyntaxTree

    @property
    def text(self) -> str:
        return self.tree.text


class Transformer:
    """Derives MigrationPlans, rewrites trees, and tracks target names across a batch.

    One Transformer serves one batch run. plan() and transform() keep no
    state and may run on worker threads; register() is the batch registry and
    must be called sequentially in input order.
    """

    def __init__(
        self,
        naming: NamingConfig | None = None,
        *,
        target_dir: Path | None = None,
        batch_paths: Iterable[str] = (),
        batch_assets: Iterable[str] = (),
    ) -> None:
        self.naming: NamingConfig = naming or NamingConfig()
        self.target_dir: Path = target_dir if target_dir is not None else Path()
        self.batch_paths: frozenset[str] = frozenset(batch_paths)
        self.batch_assets: frozenset[str] = frozenset(batch_assets)
        self.rewriter: ImportRewriter = ImportRewriter(self.naming.import_prefix_map)
        self._claimed_names: dict[str, str] = {}
        self._claimed_paths: dict[Path, str] = {}

    @property
    def namespace_root(self) -> Path:
        return self.target_dir / self.naming.target_subdir / self.naming.namespace

    # Layout

    def target_relative_path(self, source_path: str, component_name: str | None = None) -> tuple[PurePosixPath, bool]:
        """Path of a migrated file below the namespace, and whether an override produced it."""
        override = self.naming.path_overrides.get(source_path)
        if override is not None:
            return PurePosixPath(override), True
        path = PurePosixPath(source_path)
        stem = path.stem
        if component_name is None or stem == component_name:
            stem = self.naming.rename_overrides.get(stem, stem)
        return path.with_name(stem + path.suffix), False

    def asset_target_path(self, asset: str) -> Path:
        """Where a style file imported by a migrated component is copied to."""
        return self.namespace_root / self.target_relative_path(asset)[0]

    def test_path_for(self, plan: MigrationPlan) -> Path:
        suffix = plan.target_path.suffix or ".js"
        return self.namespace_root / "__tests__" / f"{plan.target_name}.test{suffix}"

    def test_import_path(self, plan: MigrationPlan) -> str:
        """Import specifier of the migrated component as seen from its test file."""
        test_dir = self.test_path_for(plan).parent
        relative = posixpath.relpath(plan.target_path.with_suffix("").as_posix(), test_dir.as_posix())
        return relative if relative.startswith(".") else f"./{relative}"

    # Planning

    def plan(self, descriptor: ComponentDescriptor) -> MigrationPlan:
        """Derive the per-file plan from a descriptor.

        Raises:
            TransformError: NamingCollision if two overrides map distinct
                identifiers of this file to one target identifier
        """
        overrides = self.naming.rename_overrides
        rename_map: dict[str, str] = {}
        for name in (descriptor.name, *sorted(descriptor.child_refs)):
            target = overrides.get(name)
            if target is not None and target != name:
                rename_map[name] = target

        relative, overridden = self.target_relative_path(descriptor.source_path, descriptor.name)
        plan = MigrationPlan(
            descriptor=descriptor,
            target_path=self.namespace_root / relative,
            rename_map=rename_map,
            import_rewrite_rules=list(self.rewriter.rules),
            path_overridden=overridden,
        )

        claimed: dict[str, str] = {}
        for source, target in rename_map.items():
            if target in claimed:
                detail = f"'{claimed[target]}' and '{source}' both map to '{target}'"
                plan.conflicts.add(Conflict("NamingCollision", target, detail))
                msg = f"Naming collision in {descriptor.source_path}: {detail}"
                raise TransformError("NamingCollision", msg, plan=plan)
            claimed[target] = source
        return plan

    def register(self, plan: MigrationPlan) -> None:
        """Claim the plan's target name and path for this batch.

        Raises:
            TransformError: NamingCollision if an earlier file already claimed
                the same target identifier, or the same path without an override
        """
        source = plan.descriptor.source_path
        name = plan.target_name
        owner = self._claimed_names.get(name)
        if owner is not None and owner != source:
            detail = f"target name '{name}' is already used by {owner}"
            plan.conflicts.add(Conflict("NamingCollision", name, detail))
            msg = f"Naming collision in {source}: {detail}"
            raise TransformError("NamingCollision", msg, plan=plan)
        owner = self._claimed_paths.get(plan.target_path)
        if owner is not None and owner != source and not plan.path_overridden:
            detail = f"target path {plan.target_path} is already used by {owner}"
            plan.conflicts.add(Conflict("NamingCollision", str(plan.target_path), detail))
            msg = f"Naming collision in {source}: {detail}"
            raise TransformError("NamingCollision", msg, plan=plan)
        self._claimed_names[name] = source
        self._claimed_paths.setdefault(plan.target_path, source)

    # Rewriting

    def transform(self, tree: SyntaxTree, descriptor: ComponentDescriptor, plan: MigrationPlan | None = None) -> TransformResult:
        """Rewrite tree according to plan (derived from descriptor when omitted).

        Raises:
            TransformError: UnresolvedImport in strict mode, or NamingCollision
                when a rename target is already taken inside the file. The
                error carries the partial plan.
        """
        if plan is None:
            plan = self.plan(descriptor)
        passes: tuple[Callable[[SyntaxTree, MigrationPlan], list[TextEdit]], ...] = (
            self._normalize_defaults,
            self._rename_test_attributes,
            self._rewrite_imports,
            self._rename_identifiers,
            self._provenance_header,
        )
        for transform_pass in passes:
            edits = transform_pass(tree, plan)
            if edits:
                tree = tree.apply(edits)
        logger.debug(f"Transformed {descriptor.source_path} -> {plan.target_path} ({len(plan.warnings)} warnings)")
        return TransformResult(plan=plan, tree=tree)

    # Default normalization

    def _normalize_defaults(self, tree: SyntaxTree, plan: MigrationPlan) -> list[TextEdit]:
        site = locate_component(tree, plan.descriptor.source_path)
        params = function_params(site.callable)
        pattern = param_pattern(params[0])[0] if params else None
        defaults = find_defaults_object(tree, site)
        if self.naming.default_prop_style == "explicit-default":
            return self._defaults_to_parameter(tree, plan, site, pattern, defaults)
        return self._defaults_to_object(tree, plan, site, pattern, defaults)

    def _pattern_members(self, tree: SyntaxTree, pattern: Node) -> dict[str, Node]:
        members: dict[str, Node] = {}
        for member in named_children(pattern):
            if member.type == "shorthand_property_identifier_pattern":
                members[tree.node_text(member)] = member
            elif member.type == "object_assignment_pattern":
                left = member.child_by_field_name("left")
                if left is not None:
                    members[tree.node_text(left)] = member
            elif member.type == "pair_pattern":
                key = member.child_by_field_name("key")
                if key is not None:
                    members[string_value(tree, key) or tree.node_text(key)] = member
        return members

    def _member_default(self, member: Node) -> Node | None:
        if member.type == "object_assignment_pattern":
            return member.child_by_field_name("right")
        if member.type == "pair_pattern":
            value = member.child_by_field_name("value")
            if value is not None and value.type == "assignment_pattern":
                return value.child_by_field_name("right")
        return None

    def _member_binding(self, tree: SyntaxTree, member: Node) -> str:
        """Member text with any default removed."""
        if member.type == "object_assignment_pattern":
            left = member.child_by_field_name("left")
            return tree.node_text(left) if left is not None else tree.node_text(member)
        if member.type == "pair_pattern":
            key = member.child_by_field_name("key")
            value = member.child_by_field_name("value")
            if key is not None and value is not None:
                if value.type == "assignment_pattern":
                    value = value.child_by_field_name("left") or value
                return f"{tree.node_text(key)}: {tree.node_text(value)}"
        return tree.node_text(member)

    def _defaults_to_parameter(
        self,
        tree: SyntaxTree,
        plan: MigrationPlan,
        site: ComponentSite,
        pattern: Node | None,
        defaults: DefaultsObject | None,
    ) -> list[TextEdit]:
        if defaults is None or not defaults.pairs:
            return []
        if pattern is None or pattern.type != "object_pattern":
            plan.warnings.append(f"{site.name}.defaultProps kept: the props parameter is not destructured")
            return []
        members = self._pattern_members(tree, pattern)
        edits: list[TextEdit] = []
        moved: set[int] = set()
        for name, pair, value in defaults.pairs:
            if not is_static_default(value):
                plan.warnings.append(f"Default for prop '{name}' is not a static value; kept in {site.name}.defaultProps")
                continue
            member = members.get(name)
            if member is None:
                plan.warnings.append(f"Prop '{name}' is not destructured; its default stays in {site.name}.defaultProps")
                continue
            with_default = f"{self._member_binding(tree, member)} = {tree.node_text(value)}"
            edits.append(TextEdit(member.start_byte, member.end_byte, with_default))
            moved.add(pair.start_byte)
        if not moved:
            return edits
        remaining = [child for child in named_children(defaults.object_node) if child.start_byte not in moved]
        if remaining:
            body = ", ".join(tree.node_text(child) for child in remaining)
            edits.append(TextEdit(defaults.object_node.start_byte, defaults.object_node.end_byte, f"{{ {body} }}"))
        else:
            edits.append(self._delete_statement(tree, defaults.statement))
        return edits

    def _defaults_to_object(
        self,
        tree: SyntaxTree,
        plan: MigrationPlan,
        site: ComponentSite,
        pattern: Node | None,
        defaults: DefaultsObject | None,
    ) -> list[TextEdit]:
        if pattern is None or pattern.type != "object_pattern":
            return []
        movable: list[tuple[str, Node, Node]] = []
        members = self._pattern_members(tree, pattern)
        for name, member in members.items():
            default = self._member_default(member)
            if default is None:
                continue
            if not is_static_default(default):
                plan.warnings.append(f"Default for prop '{name}' is not a static value; kept in the parameter")
                continue
            if site.binding is None or site.wrapper is not None:
                plan.warnings.append(f"{site.name} cannot carry a defaultProps object; default for '{name}' kept in the parameter")
                continue
            movable.append((name, member, default))
        if not movable:
            return []

        edits = [TextEdit(member.start_byte, member.end_byte, self._member_binding(tree, member)) for _, member, _ in movable]
        existing = {name for name, _, _ in defaults.pairs} if defaults is not None else set()
        new_pairs = [f"{_object_key(name)}: {tree.node_text(default)}" for name, _, default in movable if name not in existing]
        if not new_pairs:
            return edits
        if defaults is not None:
            kept = [tree.node_text(child) for child in named_children(defaults.object_node)]
            body = ", ".join(kept + new_pairs)
            edits.append(TextEdit(defaults.object_node.start_byte, defaults.object_node.end_byte, f"{{ {body} }}"))
        else:
            body = "".join(f"  {pair},\n" for pair in new_pairs)
            insert_at = site.statement.end_byte
            edits.append(TextEdit(insert_at, insert_at, f"\n\n{site.binding}.defaultProps = {{\n{body}}};"))
        return edits

    def _delete_statement(self, tree: SyntaxTree, statement: Node) -> TextEdit:
        start, end = statement.start_byte, statement.end_byte
        if tree.source[end : end + 1] == b"\n":
            end += 1
        if tree.source[max(start - 2, 0) : start] == b"\n\n":
            start -= 1
        return TextEdit(start, end, "")

    # Test attributes

    def _rename_test_attributes(self, tree: SyntaxTree, plan: MigrationPlan) -> list[TextEdit]:
        convention = self.naming.test_attribute_convention
        if not convention:
            return []
        edits: list[TextEdit] = []
        for node in walk(tree.root):
            if node.type != "jsx_attribute":
                continue
            children = named_children(node)
            if not children:
                continue
            name = tree.node_text(children[0])
            if name in TEST_ATTRIBUTES and name != convention:
                edits.append(TextEdit(children[0].start_byte, children[0].end_byte, convention))
        return edits

    # Imports

    def _import_specifiers(self, tree: SyntaxTree) -> Iterator[Node]:
        """String nodes naming a module: import/export sources, require() and import()."""
        for node in walk(tree.root):
            if node.type in {"import_statement", "export_statement"}:
                source = node.child_by_field_name("source")
                if source is not None:
                    yield source
            elif node.type == "call_expression":
                callee = node.child_by_field_name("function")
                arguments = node.child_by_field_name("arguments")
                if callee is None or arguments is None:
                    continue
                if callee.type == "import" or tree.node_text(callee) == "require":
                    args = named_children(arguments)
                    if args and args[0].type == "string":
                        yield args[0]

    def _rewrite_imports(self, tree: SyntaxTree, plan: MigrationPlan) -> list[TextEdit]:
        edits: list[TextEdit] = []
        for source in self._import_specifiers(tree):
            specifier = string_value(tree, source)
            if specifier is None:
                continue
            rewritten = self._resolve_import(specifier, plan)
            if rewritten is not None and rewritten != specifier:
                edits.append(TextEdit(source.start_byte + 1, source.end_byte - 1, rewritten))
        return edits

    def _resolve_import(self, specifier: str, plan: MigrationPlan) -> str | None:
        source_path = plan.descriptor.source_path
        if specifier.startswith("."):
            sibling = self._batch_file(source_path, specifier)
            if sibling is not None:
                if sibling[0] in self.batch_assets and sibling[0] not in plan.assets:
                    plan.assets.append(sibling[0])
                return self._sibling_specifier(plan, specifier, sibling)
        rewritten = self.rewriter.rewrite(specifier)
        if rewritten is not None:
            return rewritten
        if specifier.startswith("."):
            resolved = posixpath.normpath(posixpath.join(posixpath.dirname(source_path), specifier))
            aliased = aliased_path(resolved, self.naming.target_aliases) if not resolved.startswith("..") else None
            if aliased is not None:
                return aliased
            detail = f"No import rewrite rule matches '{specifier}'"
            if self.naming.mismatch_strategy == "strict":
                plan.conflicts.add(Conflict("UnresolvedImport", specifier, detail))
                msg = f"{detail} in {source_path}"
                raise TransformError("UnresolvedImport", msg, plan=plan)
            plan.warnings.append(f"{detail}; left unchanged")
        return None

    def _batch_file(self, source_path: str, specifier: str) -> tuple[str, str] | None:
        """Resolve a relative specifier to a batch file; returns (path, matched form)."""
        base = posixpath.normpath(posixpath.join(posixpath.dirname(source_path), specifier))
        if base.startswith(".."):
            return None
        if base in self.batch_paths or base in self.batch_assets:
            return base, "exact"
        for extension in SOURCE_EXTENSIONS:
            if base + extension in self.batch_paths:
                return base + extension, "extension"
        for extension in SOURCE_EXTENSIONS:
            if f"{base}/index{extension}" in self.batch_paths:
                return f"{base}/index{extension}", "index"
        return None

    def _sibling_specifier(self, plan: MigrationPlan, specifier: str, sibling: tuple[str, str]) -> str:
        sibling_path, form = sibling
        sibling_target, _ = self.target_relative_path(sibling_path)
        own_target = PurePosixPath(plan.target_path.relative_to(self.namespace_root).as_posix())
        if form == "index":
            target = str(sibling_target.parent)
        elif form == "extension":
            target = str(sibling_target.with_suffix(""))
        else:
            target = str(sibling_target)
        relative = posixpath.relpath(target, str(own_target.parent))
        if not relative.startswith("."):
            relative = f"./{relative}"
        # Keep the author's spelling when the file did not move relative to its sibling
        if posixpath.normpath(relative) == posixpath.normpath(specifier):
            return specifier
        return relative

    # Identifiers

    def _rename_identifiers(self, tree: SyntaxTree, plan: MigrationPlan) -> list[TextEdit]:
        rename_map = plan.rename_map
        if not rename_map:
            return []
        used = {tree.node_text(node) for node in walk(tree.root) if node.type == "identifier"}
        for source, target in rename_map.items():
            if target in used and target not in rename_map:
                detail = f"'{source}' would be renamed to '{target}', which is already used in the file"
                plan.conflicts.add(Conflict("NamingCollision", target, detail))
                msg = f"Naming collision in {plan.descriptor.source_path}: {detail}"
                raise TransformError("NamingCollision", msg, plan=plan)

        edits: list[TextEdit] = []
        for node in walk(tree.root):
            if node.type not in {"identifier", "shorthand_property_identifier", "shorthand_property_identifier_pattern"}:
                continue
            name = tree.node_text(node)
            target = rename_map.get(name)
            if target is None:
                continue
            replacement = target if node.type == "identifier" else f"{name}: {target}"
            edits.append(TextEdit(node.start_byte, node.end_byte, replacement))
        return edits

    # Provenance

    def provenance_line(self, plan: MigrationPlan) -> str:
        return f"// Migrated from {plan.descriptor.source_path} ({self.naming.provenance_suffix})\n"

    def _provenance_header(self, tree: SyntaxTree, plan: MigrationPlan) -> list[TextEdit]:
        if not self.naming.provenance_header:
            return []
        header = self.provenance_line(plan)
        if tree.text.startswith(header):
            return []
        return [TextEdit(0, 0, header)]
