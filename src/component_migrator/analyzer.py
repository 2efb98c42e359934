"""Extract a behavioral descriptor from a component's syntax tree.

The Analyzer recognizes exactly one shape: an exported function (declaration,
arrow or function expression, optionally wrapped in memo/forwardRef) that
takes a single flat props parameter and returns markup. Everything it reports
is read off the tree; nothing is evaluated.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from .exceptions import AnalysisError, ParseError
from .models import (
    ComponentDescriptor,
    CrossCuttingEffect,
    EffectConstruct,
    ExportKind,
    InteractionBinding,
    PropKind,
    PropSpec,
    VisibilityGate,
)
from .syntax import parse_to_tree, string_value, unwrap, walk

if TYPE_CHECKING:
    from collections.abc import Iterator

    from tree_sitter import Node

    from .syntax import SyntaxTree

logger: logging.Logger = logging.getLogger(__name__)

FUNCTION_TYPES: frozenset[str] = frozenset(
    {
        "arrow_function",
        "function_expression",
        "function",
        "function_declaration",
        "generator_function",
        "generator_function_declaration",
    }
)
JSX_TYPES: frozenset[str] = frozenset({"jsx_element", "jsx_self_closing_element", "jsx_fragment"})
HOC_WRAPPERS: frozenset[str] = frozenset({"memo", "forwardRef", "React.memo", "React.forwardRef"})
EFFECT_HOOKS: frozenset[str] = frozenset({"useEffect", "useLayoutEffect", "useInsertionEffect"})
STYLE_EXTENSIONS: tuple[str, ...] = (".css", ".scss", ".sass", ".less", ".styl")
TEST_ATTRIBUTES: tuple[str, ...] = ("data-testid", "data-test-id", "data-test", "data-cy", "data-qa", "testID")
MUTATOR_METHODS: frozenset[str] = frozenset(
    {"push", "pop", "shift", "unshift", "splice", "sort", "reverse", "fill", "set", "add", "delete", "clear", "setItem", "removeItem"}
)
FRAMEWORK_MODULES: frozenset[str] = frozenset({"react", "react-dom"})
JSX_TAGS: frozenset[str] = frozenset({"jsx_opening_element", "jsx_closing_element", "jsx_self_closing_element"})
JS_GLOBALS: frozenset[str] = frozenset(
    {"undefined", "NaN", "Infinity", "Math", "JSON", "Date", "Number", "String", "Boolean", "Array", "Object", "Symbol"}
)

HANDLER_NAME = re.compile(r"^on[A-Z]")
BOOLEAN_NAME = re.compile(
    r"^(is|has|should|can|show|hide|open|visible|hidden|disabled|enabled|checked|selected|active|loading|expanded|collapsed)([A-Z_]|$)"
)


@dataclass
class ComponentSite:
    """Where the single exported component lives in the tree."""

    name: str
    callable: Node
    statement: Node  # Top-level statement holding the definition
    export_kind: ExportKind
    wrapper: str | None = None
    binding: str | None = None  # Module-level name, None for anonymous default exports


@dataclass
class _Definition:
    callable: Node | None
    statement: Node
    wrapper: str | None = None


@dataclass
class _Candidate:
    binding: str | None
    definition: _Definition
    kinds: set[str] = field(default_factory=set)


def pascal_case(stem: str) -> str:
    parts = [part for part in re.split(r"[^0-9A-Za-z]+", stem) if part]
    return "".join(part[:1].upper() + part[1:] for part in parts) or "Component"


def _component_name_from_path(source_path: str) -> str:
    path = PurePosixPath(source_path)
    stem = path.name.split(".")[0]
    if stem == "index" and path.parent.name:
        stem = path.parent.name
    return pascal_case(stem)


def named_children(node: Node) -> list[Node]:
    return [child for child in node.named_children if child.type != "comment"]


def own_nodes(node: Node) -> Iterator[Node]:
    """Walk node without descending into nested functions."""
    stack = list(reversed(node.children))
    while stack:
        current = stack.pop()
        yield current
        if current.type in FUNCTION_TYPES:
            continue
        stack.extend(reversed(current.children))


def function_params(fn: Node) -> list[Node]:
    single = fn.child_by_field_name("parameter")
    if single is not None:
        return [single]
    params = fn.child_by_field_name("parameters")
    return named_children(params) if params is not None else []


def param_pattern(param: Node) -> tuple[Node, Node | None]:
    """Return (pattern, type annotation) for a parameter, unwrapping defaults and TS wrappers."""
    annotation: Node | None = None
    if param.type in {"required_parameter", "optional_parameter"}:
        annotation = param.child_by_field_name("type")
        pattern = param.child_by_field_name("pattern")
        if pattern is not None:
            param = pattern
    if param.type == "assignment_pattern":
        left = param.child_by_field_name("left")
        if left is not None:
            param = left
    return param, annotation


def root_identifier(node: Node | None) -> Node | None:
    """Follow member/subscript objects down to the identifier they start from."""
    while node is not None and node.type in {"member_expression", "subscript_expression", "parenthesized_expression", "non_null_expression"}:
        node = node.child_by_field_name("object") or (named_children(node)[0] if named_children(node) else None)
    return node if node is not None and node.type == "identifier" else None


def _kind_of_expression(node: Node | None) -> PropKind:
    node = unwrap(node)
    if node is None:
        return "unknown"
    kind_map: dict[str, PropKind] = {
        "string": "string",
        "template_string": "string",
        "number": "number",
        "true": "boolean",
        "false": "boolean",
        "array": "array",
        "object": "object",
    }
    if node.type in kind_map:
        return kind_map[node.type]
    if node.type in FUNCTION_TYPES:
        return "function"
    if node.type in JSX_TYPES:
        return "node"
    if node.type == "unary_expression":
        argument = node.child_by_field_name("argument")
        operator = node.child_by_field_name("operator")
        if argument is not None and argument.type == "number":
            return "number"
        if operator is not None and operator.type == "!":
            return "boolean"
    return "unknown"


def free_names(tree: SyntaxTree, node: Node) -> set[str]:
    """Names an expression reads without binding them itself, ignoring JavaScript globals."""
    bound: set[str] = set()
    for current in walk(node):
        if current.type in FUNCTION_TYPES:
            for param in function_params(current):
                bound.update(tree.node_text(child) for child in walk(param) if child.type == "identifier")
    free: set[str] = set()
    for current in walk(node):
        if current.type == "this":
            free.add("this")
        elif current.type in {"identifier", "shorthand_property_identifier"}:
            name = tree.node_text(current)
            parent = current.parent
            if parent is not None and parent.type in JSX_TAGS and not name[:1].isupper():
                continue
            if name not in bound:
                free.add(name)
    return free - JS_GLOBALS


def _kind_from_name(name: str) -> PropKind:
    if HANDLER_NAME.match(name):
        return "function"
    if name == "children":
        return "node"
    if BOOLEAN_NAME.match(name):
        return "boolean"
    return "unknown"


@dataclass
class DefaultsObject:
    """A module-level `Name.defaultProps = {...}` statement."""

    statement: Node
    object_node: Node
    pairs: list[tuple[str, Node, Node]]  # (prop name, pair node, value node)


def find_defaults_object(tree: SyntaxTree, site: ComponentSite) -> DefaultsObject | None:
    names = {site.name} | ({site.binding} if site.binding else set())
    for statement in named_children(tree.root):
        if statement.type != "expression_statement":
            continue
        expression = unwrap(named_children(statement)[0]) if named_children(statement) else None
        if expression is None or expression.type != "assignment_expression":
            continue
        left = expression.child_by_field_name("left")
        right = unwrap(expression.child_by_field_name("right"))
        if left is None or right is None or left.type != "member_expression" or right.type != "object":
            continue
        obj = left.child_by_field_name("object")
        prop = left.child_by_field_name("property")
        if obj is None or prop is None or tree.node_text(obj) not in names or tree.node_text(prop) != "defaultProps":
            continue
        pairs: list[tuple[str, Node, Node]] = []
        for pair in named_children(right):
            if pair.type != "pair":
                continue
            key = pair.child_by_field_name("key")
            value = pair.child_by_field_name("value")
            if key is not None and value is not None:
                pairs.append((string_value(tree, key) or tree.node_text(key), pair, value))
        return DefaultsObject(statement, right, pairs)
    return None


class _ComponentScan:
    """Extraction state for one located component."""

    def __init__(self, tree: SyntaxTree, site: ComponentSite) -> None:
        self.tree: SyntaxTree = tree
        self.site: ComponentSite = site
        self.param_name: str | None = None
        self.props: list[PropSpec] = []
        self.unknown_props: set[str] = set()
        self.ts_types: dict[str, tuple[PropKind, bool]] = {}

    def text(self, node: Node) -> str:
        return self.tree.node_text(node)

    # Imports

    def import_bindings(self) -> dict[str, str]:
        """Map every imported local name to its module specifier."""
        bindings: dict[str, str] = {}
        for statement in named_children(self.tree.root):
            if statement.type != "import_statement":
                continue
            source = statement.child_by_field_name("source")
            specifier = string_value(self.tree, source) if source is not None else None
            if specifier is None:
                continue
            for node in walk(statement):
                if node.type == "import_clause":
                    for child in named_children(node):
                        if child.type == "identifier":
                            bindings[self.text(child)] = specifier
                elif node.type == "namespace_import":
                    for child in named_children(node):
                        if child.type == "identifier":
                            bindings[self.text(child)] = specifier
                elif node.type == "import_specifier":
                    local = node.child_by_field_name("alias") or node.child_by_field_name("name")
                    if local is not None:
                        bindings[self.text(local)] = specifier
        return bindings

    def style_refs(self) -> tuple[str, ...]:
        refs: list[str] = []
        for statement in named_children(self.tree.root):
            if statement.type != "import_statement":
                continue
            source = statement.child_by_field_name("source")
            specifier = string_value(self.tree, source) if source is not None else None
            if specifier is not None and specifier.lower().endswith(STYLE_EXTENSIONS):
                refs.append(specifier)
        return tuple(refs)

    # Props

    def collect_ts_types(self, annotation: Node | None) -> None:
        """Read member kinds and optionality from a TypeScript props type."""
        type_node = self._annotation_type(annotation)
        if type_node is None:
            return
        body = self._resolve_type_body(type_node)
        if body is None:
            return
        for member in named_children(body):
            if member.type != "property_signature":
                continue
            name_node = member.child_by_field_name("name")
            if name_node is None:
                continue
            optional = any(child.type == "?" for child in member.children)
            member_type = self._annotation_type(member.child_by_field_name("type"))
            self.ts_types[self.text(name_node)] = (self._kind_of_type(member_type), optional)

    def _annotation_type(self, annotation: Node | None) -> Node | None:
        if annotation is None:
            return None
        if annotation.type == "type_annotation":
            children = named_children(annotation)
            return children[0] if children else None
        return annotation

    def _resolve_type_body(self, type_node: Node) -> Node | None:
        if type_node.type == "object_type":
            return type_node
        if type_node.type == "generic_type":
            arguments = type_node.child_by_field_name("type_arguments") or next(
                (child for child in named_children(type_node) if child.type == "type_arguments"), None
            )
            if arguments is not None and named_children(arguments):
                return self._resolve_type_body(named_children(arguments)[0])
            return None
        if type_node.type != "type_identifier":
            return None
        wanted = self.text(type_node)
        for statement in walk(self.tree.root):
            if statement.type == "interface_declaration":
                name = statement.child_by_field_name("name")
                if name is not None and self.text(name) == wanted:
                    return statement.child_by_field_name("body")
            elif statement.type == "type_alias_declaration":
                name = statement.child_by_field_name("name")
                value = statement.child_by_field_name("value")
                if name is not None and value is not None and self.text(name) == wanted and value.type == "object_type":
                    return value
        return None

    def _kind_of_type(self, node: Node | None) -> PropKind:
        if node is None:
            return "unknown"
        text = self.text(node)
        if node.type == "predefined_type":
            return {"string": "string", "number": "number", "boolean": "boolean"}.get(text, "unknown")  # type: ignore[return-value]
        if node.type == "function_type":
            return "function"
        if node.type == "array_type" or text.startswith(("Array<", "ReadonlyArray<")):
            return "array"
        if node.type == "object_type":
            return "object"
        if node.type == "literal_type":
            return _kind_of_expression(named_children(node)[0] if named_children(node) else None)
        if node.type == "union_type":
            kinds = {self._kind_of_type(child) for child in named_children(node)} - {"unknown"}
            return kinds.pop() if len(kinds) == 1 else "unknown"
        if text.split("<")[0].rsplit(".", 1)[-1] in {"ReactNode", "ReactElement", "JSX.Element", "Element"}:
            return "node"
        return "unknown"

    def _make_prop(self, name: str, default: Node | None, source: str = "parameter") -> PropSpec:
        ts_kind, optional = self.ts_types.get(name, ("unknown", False))
        kind: PropKind = ts_kind
        if kind == "unknown":
            kind = _kind_of_expression(default)
        if kind == "unknown":
            kind = _kind_from_name(name)
        has_default = default is not None
        return PropSpec(
            name=name,
            has_default=has_default,
            default_expr=self.text(default) if default is not None else None,
            required=not has_default and not optional,
            kind=kind,
            default_source="parameter" if has_default and source == "parameter" else None,
            default_self_contained=default is None or not free_names(self.tree, default),
        )

    def props_from_pattern(self, pattern: Node) -> list[tuple[int, PropSpec]]:
        found: list[tuple[int, PropSpec]] = []
        for member in named_children(pattern):
            if member.type == "shorthand_property_identifier_pattern":
                found.append((member.start_byte, self._make_prop(self.text(member), None)))
            elif member.type == "object_assignment_pattern":
                left = member.child_by_field_name("left")
                right = member.child_by_field_name("right")
                if left is not None:
                    found.append((member.start_byte, self._make_prop(self.text(left), right)))
            elif member.type == "pair_pattern":
                key = member.child_by_field_name("key")
                value = member.child_by_field_name("value")
                if key is None:
                    continue
                name = string_value(self.tree, key) or self.text(key)
                default = value.child_by_field_name("right") if value is not None and value.type == "assignment_pattern" else None
                found.append((member.start_byte, self._make_prop(name, default)))
            elif member.type == "rest_pattern":
                for child in named_children(member):
                    if child.type == "identifier":
                        self.unknown_props.add(self.text(child))
        return found

    def extract_props(self) -> None:
        params = function_params(self.site.callable)
        if not params:
            return
        pattern, annotation = param_pattern(params[0])
        if annotation is None:
            annotation = self._declarator_props_type()
        self.collect_ts_types(annotation)
        if pattern.type == "object_pattern":
            self.props = [spec for _, spec in self.props_from_pattern(pattern)]
        elif pattern.type == "identifier":
            self.param_name = self.text(pattern)
            self.props = self._props_from_identifier(self.param_name)
        self._merge_defaults_object()

    def _declarator_props_type(self) -> Node | None:
        """Type of `const X: FC<Props> = ...` when the parameter itself is untyped."""
        for node in walk(self.site.statement):
            if node.type == "variable_declarator":
                annotation = node.child_by_field_name("type")
                if annotation is not None:
                    return annotation
        return None

    def _props_from_identifier(self, param: str) -> list[PropSpec]:
        found: list[tuple[int, PropSpec]] = []
        for node in walk(self.site.callable):
            if node.type == "variable_declarator":
                name = node.child_by_field_name("name")
                value = unwrap(node.child_by_field_name("value"))
                if name is not None and name.type == "object_pattern" and value is not None and self.text(value) == param:
                    found.extend(self.props_from_pattern(name))
            elif node.type == "member_expression":
                obj = node.child_by_field_name("object")
                prop = node.child_by_field_name("property")
                if obj is not None and prop is not None and obj.type == "identifier" and self.text(obj) == param:
                    found.append((node.start_byte, self._make_prop(self.text(prop), None)))
            elif node.type in {"spread_element", "subscript_expression"}:
                target = named_children(node)[0] if named_children(node) else None
                if target is not None and target.type == "identifier" and self.text(target) == param:
                    self.unknown_props.add(param)
        seen: set[str] = set()
        ordered: list[PropSpec] = []
        for _, spec in sorted(found, key=lambda item: item[0]):
            if spec.name not in seen:
                seen.add(spec.name)
                ordered.append(spec)
        return ordered

    def defaults_object(self) -> tuple[Node | None, list[tuple[str, Node]]]:
        found = find_defaults_object(self.tree, self.site)
        if found is None:
            return None, []
        return found.statement, [(name, value) for name, _, value in found.pairs]

    def _merge_defaults_object(self) -> None:
        _, pairs = self.defaults_object()
        if not pairs:
            return
        by_name = {spec.name: index for index, spec in enumerate(self.props)}
        for name, value in pairs:
            kind = self.props[by_name[name]].kind if name in by_name else "unknown"
            if kind == "unknown":
                kind = _kind_of_expression(value)
            if kind == "unknown":
                kind = _kind_from_name(name)
            merged = PropSpec(
                name=name,
                has_default=True,
                default_expr=self.text(value),
                required=False,
                kind=kind,
                default_source="defaults_object",
                default_self_contained=not free_names(self.tree, value),
            )
            if name in by_name:
                self.props[by_name[name]] = merged
            else:
                by_name[name] = len(self.props)
                self.props.append(merged)

    # Behavior

    def prop_reference(self, node: Node | None) -> str | None:
        """Name of the prop an expression reads directly, if any."""
        node = unwrap(node)
        if node is None:
            return None
        prop_names = {spec.name for spec in self.props}
        if node.type == "identifier" and self.text(node) in prop_names:
            return self.text(node)
        if node.type == "member_expression" and self.param_name is not None:
            obj = node.child_by_field_name("object")
            prop = node.child_by_field_name("property")
            if obj is not None and prop is not None and self.text(obj) == self.param_name:
                return self.text(prop)
        return None

    def _dependency_name(self, node: Node) -> str:
        return self.prop_reference(node) or self.text(node)

    def effects(self) -> frozenset[EffectConstruct]:
        found: set[EffectConstruct] = set()
        for node in own_nodes(self.site.callable):
            if node.type != "call_expression":
                continue
            callee = node.child_by_field_name("function")
            if callee is None:
                continue
            hook = self.text(callee).removeprefix("React.")
            if hook not in EFFECT_HOOKS:
                continue
            arguments = node.child_by_field_name("arguments")
            args = named_children(arguments) if arguments is not None else []
            callback = unwrap(args[0]) if args else None
            deps_node = unwrap(args[1]) if len(args) > 1 else None
            if deps_node is None:
                trigger, dependencies = "update", ()
            elif deps_node.type == "array":
                dependencies = tuple(self._dependency_name(element) for element in named_children(deps_node))
                trigger = "update" if dependencies else "mount"
            else:
                trigger, dependencies = "update", (self.text(deps_node),)
            found.add(EffectConstruct(trigger=trigger, dependencies=dependencies, hook=hook))
            if callback is not None and self._returns_cleanup(callback):
                found.add(EffectConstruct(trigger="unmount", dependencies=dependencies, hook=hook))
        return frozenset(found)

    def _returns_cleanup(self, callback: Node) -> bool:
        if callback.type not in FUNCTION_TYPES:
            return False
        body = callback.child_by_field_name("body")
        if body is None:
            return False
        if body.type != "statement_block":
            expression = unwrap(body)
            return expression is not None and expression.type in FUNCTION_TYPES
        for node in own_nodes(body):
            if node.type == "return_statement":
                argument = unwrap(named_children(node)[0]) if named_children(node) else None
                if argument is not None and argument.type not in {"null", "undefined"}:
                    return True
        return False

    def _local_functions(self) -> dict[str, Node]:
        functions: dict[str, Node] = {}
        for node in walk(self.site.callable):
            if node is self.site.callable:
                continue
            if node.type == "function_declaration":
                name = node.child_by_field_name("name")
                if name is not None:
                    functions[self.text(name)] = node
            elif node.type == "variable_declarator":
                name = node.child_by_field_name("name")
                value = unwrap(node.child_by_field_name("value"))
                if name is None or value is None or name.type != "identifier":
                    continue
                if value.type == "call_expression":
                    callee = value.child_by_field_name("function")
                    arguments = value.child_by_field_name("arguments")
                    if callee is not None and self.text(callee).removeprefix("React.") == "useCallback" and arguments is not None:
                        args = named_children(arguments)
                        value = unwrap(args[0]) if args else None
                if value is not None and value.type in FUNCTION_TYPES:
                    functions[self.text(name)] = value
        return functions

    def _invoked_prop(self, fn: Node) -> str | None:
        for node in walk(fn):
            if node.type == "call_expression":
                prop = self.prop_reference(node.child_by_field_name("function"))
                if prop is not None:
                    return prop
        return None

    def _handler_prop(self, expression: Node | None, local_functions: dict[str, Node]) -> str | None:
        expression = unwrap(expression)
        if expression is None:
            return None
        direct = self.prop_reference(expression)
        if direct is not None:
            return direct
        if expression.type in FUNCTION_TYPES:
            return self._invoked_prop(expression)
        if expression.type == "identifier" and self.text(expression) in local_functions:
            return self._invoked_prop(local_functions[self.text(expression)])
        return None

    def _attribute_name(self, attribute: Node) -> str | None:
        children = named_children(attribute)
        return self.text(children[0]) if children else None

    def _attribute_value(self, attribute: Node) -> Node | None:
        children = named_children(attribute)
        return children[1] if len(children) > 1 else None

    def interactions(self) -> tuple[InteractionBinding, ...]:
        local_functions = self._local_functions()
        bindings: list[InteractionBinding] = []
        seen: set[tuple[str, str, str]] = set()
        for node in walk(self.site.callable):
            if node.type not in {"jsx_opening_element", "jsx_self_closing_element"}:
                continue
            name_node = node.child_by_field_name("name")
            element = self.text(name_node) if name_node is not None else "Fragment"
            attributes = [child for child in named_children(node) if child.type == "jsx_attribute"]
            test_id: str | None = None
            for attribute in attributes:
                value = self._attribute_value(attribute)
                if self._attribute_name(attribute) in TEST_ATTRIBUTES and value is not None:
                    test_id = string_value(self.tree, value)
            for attribute in attributes:
                attr_name = self._attribute_name(attribute)
                value = self._attribute_value(attribute)
                if attr_name is None or not HANDLER_NAME.match(attr_name) or value is None or value.type != "jsx_expression":
                    continue
                expression = named_children(value)[0] if named_children(value) else None
                prop = self._handler_prop(expression, local_functions)
                if prop is None:
                    continue
                event = attr_name[2].lower() + attr_name[3:]
                key = (element, event, prop)
                if key in seen:
                    continue
                seen.add(key)
                bindings.append(
                    InteractionBinding(
                        event=event,
                        handler_prop=prop,
                        element=element,
                        test_id=test_id,
                        text=self._element_text(node),
                        root=self._is_root_element(node),
                    )
                )
        return tuple(bindings)

    def _element_text(self, tag: Node) -> str | None:
        """Literal text content of a JSX element, when that is all it contains."""
        element = tag.parent
        if tag.type != "jsx_opening_element" or element is None:
            return None
        parts: list[str] = []
        for child in named_children(element):
            if child.type in {"jsx_opening_element", "jsx_closing_element"}:
                continue
            if child.type != "jsx_text":
                return None
            parts.append(self.text(child))
        text = " ".join(" ".join(parts).split())
        return text or None

    def _is_root_element(self, tag: Node) -> bool:
        """Whether the element is the markup the component itself returns."""
        element = tag.parent if tag.type == "jsx_opening_element" else tag
        if element is None:
            return False
        parent = element.parent
        while parent is not None and parent.type in {"parenthesized_expression", "ternary_expression", "binary_expression"}:
            parent = parent.parent
        if parent is None:
            return False
        owner: Node | None = parent
        if parent.type == "return_statement":
            while owner is not None and owner.type not in FUNCTION_TYPES:
                owner = owner.parent
        elif parent.type not in FUNCTION_TYPES:
            return False
        return owner is not None and owner == self.site.callable

    def _gate_subject(self, condition: Node | None) -> tuple[str, bool] | None:
        """Return (prop, truthy) for `prop` or `!prop` conditions."""
        condition = unwrap(condition)
        if condition is None:
            return None
        if condition.type == "unary_expression":
            operator = condition.child_by_field_name("operator")
            if operator is not None and operator.type == "!":
                prop = self.prop_reference(condition.child_by_field_name("argument"))
                return (prop, False) if prop is not None else None
            return None
        prop = self.prop_reference(condition)
        return (prop, True) if prop is not None else None

    def _is_null(self, node: Node | None) -> bool:
        node = unwrap(node)
        return node is not None and node.type in {"null", "undefined"}

    def _gate_from_expression(self, expression: Node | None) -> VisibilityGate | None:
        expression = unwrap(expression)
        if expression is None:
            return None
        if expression.type == "ternary_expression":
            subject = self._gate_subject(expression.child_by_field_name("condition"))
            consequence = expression.child_by_field_name("consequence")
            alternative = expression.child_by_field_name("alternative")
            if subject is None:
                return None
            prop, truthy = subject
            if self._is_null(alternative) and _returns_markup(consequence):
                return VisibilityGate(prop=prop, renders_when=truthy)
            if self._is_null(consequence) and _returns_markup(alternative):
                return VisibilityGate(prop=prop, renders_when=not truthy)
        elif expression.type == "binary_expression":
            operator = expression.child_by_field_name("operator")
            if operator is not None and operator.type == "&&" and _returns_markup(expression.child_by_field_name("right")):
                subject = self._gate_subject(expression.child_by_field_name("left"))
                if subject is not None:
                    return VisibilityGate(prop=subject[0], renders_when=subject[1])
        return None

    def visibility(self) -> VisibilityGate | None:
        gate = self._find_gate()
        if gate is None:
            return None
        spec = next((spec for spec in self.props if spec.name == gate.prop), None)
        if spec is None or spec.kind != "boolean":
            return None
        return gate

    def _find_gate(self) -> VisibilityGate | None:
        body = self.site.callable.child_by_field_name("body")
        if body is None:
            return None
        if body.type != "statement_block":
            return self._gate_from_expression(body)
        for statement in named_children(body):
            if statement.type == "if_statement":
                subject = self._gate_subject(statement.child_by_field_name("condition"))
                consequence = statement.child_by_field_name("consequence")
                if subject is not None and consequence is not None and self._returns_null(consequence):
                    return VisibilityGate(prop=subject[0], renders_when=not subject[1])
            elif statement.type == "return_statement":
                argument = named_children(statement)[0] if named_children(statement) else None
                return self._gate_from_expression(argument)
        return None

    def _returns_null(self, statement: Node) -> bool:
        if statement.type == "statement_block":
            children = named_children(statement)
            return bool(children) and self._returns_null(children[0])
        if statement.type == "return_statement":
            children = named_children(statement)
            return not children or self._is_null(children[0])
        return False

    def child_refs(self) -> frozenset[str]:
        bindings = self.import_bindings()
        refs: set[str] = set()
        for node in walk(self.site.callable):
            if node.type not in {"jsx_opening_element", "jsx_self_closing_element"}:
                continue
            name = node.child_by_field_name("name")
            if name is None:
                continue
            root = name if name.type == "identifier" else root_identifier(name)
            if root is None:
                continue
            identifier = self.text(root)
            if name.type == "identifier" and not identifier[:1].isupper():
                continue
            if identifier in bindings and bindings[identifier] not in FRAMEWORK_MODULES:
                refs.add(identifier)
        return frozenset(refs)

    # Cross-cutting effects

    def _scope_key(self, node: Node) -> tuple[int, int]:
        return node.start_byte, node.end_byte

    def _scope_chain(self, node: Node) -> list[tuple[int, int]]:
        """Functions enclosing node, innermost first, up to the component callable."""
        outermost = self._scope_key(self.site.callable)
        chain: list[tuple[int, int]] = []
        current = node.parent
        while current is not None:
            if current.type in FUNCTION_TYPES:
                key = self._scope_key(current)
                chain.append(key)
                if key == outermost:
                    break
            current = current.parent
        return chain

    def _declared_names(self) -> dict[tuple[int, int], set[str]]:
        """Names declared by each function scope inside the component, keyed by scope."""
        scopes: dict[tuple[int, int], set[str]] = {}

        def add_pattern(scope: tuple[int, int] | None, pattern: Node | None) -> None:
            if scope is None or pattern is None:
                return
            for node in walk(pattern):
                if node.type in {"identifier", "shorthand_property_identifier_pattern"}:
                    parent = node.parent
                    # Skip default values and pair keys inside patterns
                    if parent is not None and parent.type in {"assignment_pattern", "object_assignment_pattern"}:
                        if parent.child_by_field_name("right") == node:
                            continue
                    scopes.setdefault(scope, set()).add(self.text(node))

        def enclosing(node: Node) -> tuple[int, int] | None:
            chain = self._scope_chain(node)
            return chain[0] if chain else None

        for node in walk(self.site.callable):
            if node.type in FUNCTION_TYPES:
                for param in function_params(node):
                    add_pattern(self._scope_key(node), param)
            if node.type == "variable_declarator":
                add_pattern(enclosing(node), node.child_by_field_name("name"))
            elif node.type in {"function_declaration", "class_declaration", "generator_function_declaration"}:
                name = node.child_by_field_name("name")
                if name is not None and node != self.site.callable:
                    add_pattern(enclosing(node), name)
            elif node.type == "catch_clause":
                add_pattern(enclosing(node), node.child_by_field_name("parameter"))
            elif node.type == "for_in_statement":
                add_pattern(enclosing(node), node.child_by_field_name("left"))
        return scopes

    def _visible_names(self, scopes: dict[tuple[int, int], set[str]], node: Node) -> set[str]:
        visible: set[str] = set()
        for key in self._scope_chain(node):
            visible |= scopes.get(key, set())
        return visible

    def _external_targets(self, target: Node | None, local: set[str]) -> list[Node]:
        if target is None:
            return []
        if target.type in {"object_pattern", "array_pattern"}:
            return [node for node in walk(target) if node.type == "identifier" and self.text(node) not in local]
        root = target if target.type == "identifier" else root_identifier(target)
        if root is None or self.text(root) in local:
            return []
        return [target]

    def cross_cutting_effects(self) -> frozenset[CrossCuttingEffect]:
        scopes = self._declared_names()
        effects: set[CrossCuttingEffect] = set()
        for node in walk(self.site.callable):
            if node.type in {"assignment_expression", "augmented_assignment_expression"}:
                local = self._visible_names(scopes, node)
                for target in self._external_targets(node.child_by_field_name("left"), local):
                    effects.add(CrossCuttingEffect(target=self.text(target), operation="assign", line=self.tree.line_of(node)))
            elif node.type == "update_expression":
                local = self._visible_names(scopes, node)
                for target in self._external_targets(node.child_by_field_name("argument"), local):
                    effects.add(CrossCuttingEffect(target=self.text(target), operation="update", line=self.tree.line_of(node)))
            elif node.type == "unary_expression":
                operator = node.child_by_field_name("operator")
                if operator is not None and operator.type == "delete":
                    local = self._visible_names(scopes, node)
                    for target in self._external_targets(node.child_by_field_name("argument"), local):
                        effects.add(CrossCuttingEffect(target=self.text(target), operation="delete", line=self.tree.line_of(node)))
            elif node.type == "call_expression":
                callee = node.child_by_field_name("function")
                if callee is None or callee.type != "member_expression":
                    continue
                method = callee.child_by_field_name("property")
                if method is None or self.text(method) not in MUTATOR_METHODS:
                    continue
                root = root_identifier(callee.child_by_field_name("object"))
                if root is not None and self.text(root) not in self._visible_names(scopes, node):
                    effects.add(CrossCuttingEffect(target=self.text(callee), operation="call", line=self.tree.line_of(node)))
        return frozenset(effects)


def _returns_markup(expression: Node | None) -> bool:
    expression = unwrap(expression)
    if expression is None:
        return False
    if expression.type in JSX_TYPES:
        return True
    if expression.type == "ternary_expression":
        return _returns_markup(expression.child_by_field_name("consequence")) or _returns_markup(
            expression.child_by_field_name("alternative")
        )
    if expression.type == "binary_expression":
        operator = expression.child_by_field_name("operator")
        if operator is not None and operator.type in {"&&", "||", "??"}:
            return _returns_markup(expression.child_by_field_name("right")) or _returns_markup(
                expression.child_by_field_name("left")
            )
    return False


def _is_component_callable(fn: Node, wrapper: str | None) -> bool:
    params = function_params(fn)
    limit = 2 if wrapper is not None and wrapper.endswith("forwardRef") else 1
    if len(params) > limit:
        return False
    if params:
        pattern, _ = param_pattern(params[0])
        if pattern.type not in {"identifier", "object_pattern"}:
            return False
    body = fn.child_by_field_name("body")
    if body is None:
        return False
    if body.type != "statement_block":
        return _returns_markup(body)
    for node in own_nodes(body):
        if node.type == "return_statement" and _returns_markup(named_children(node)[0] if named_children(node) else None):
            return True
    return False


def _resolve_callable(tree: SyntaxTree, value: Node | None, definitions: dict[str, _Definition]) -> tuple[Node | None, str | None]:
    value = unwrap(value)
    if value is None:
        return None, None
    if value.type in FUNCTION_TYPES:
        return value, None
    if value.type == "identifier" and tree.node_text(value) in definitions:
        definition = definitions[tree.node_text(value)]
        return definition.callable, definition.wrapper
    if value.type == "call_expression":
        callee = value.child_by_field_name("function")
        arguments = value.child_by_field_name("arguments")
        if callee is None or arguments is None or tree.node_text(callee) not in HOC_WRAPPERS:
            return None, None
        args = named_children(arguments)
        if not args:
            return None, None
        inner, inner_wrapper = _resolve_callable(tree, args[0], definitions)
        wrapper = tree.node_text(callee)
        if inner_wrapper is not None and inner_wrapper.endswith("forwardRef"):
            wrapper = inner_wrapper
        return inner, wrapper
    return None, None


def _wrapped_identifier(tree: SyntaxTree, node: Node | None) -> str | None:
    """Name passed through HOC calls, as in `export default memo(Button)`."""
    while node is not None and node.type == "call_expression":
        callee = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        if callee is None or arguments is None or tree.node_text(callee) not in HOC_WRAPPERS or not named_children(arguments):
            return None
        node = unwrap(named_children(arguments)[0])
    return tree.node_text(node) if node is not None and node.type == "identifier" else None


def _collect_definitions(tree: SyntaxTree, statement: Node, holder: Node, definitions: dict[str, _Definition]) -> list[str]:
    """Record module-level definitions declared by statement; return their names."""
    names: list[str] = []
    if statement.type in {"function_declaration", "generator_function_declaration", "class_declaration"}:
        name = statement.child_by_field_name("name")
        if name is not None:
            callable_node = statement if statement.type != "class_declaration" else None
            definitions[tree.node_text(name)] = _Definition(callable_node, holder)
            names.append(tree.node_text(name))
    elif statement.type in {"lexical_declaration", "variable_declaration"}:
        for declarator in named_children(statement):
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            if name is None or name.type != "identifier":
                continue
            callable_node, wrapper = _resolve_callable(tree, declarator.child_by_field_name("value"), definitions)
            definitions[tree.node_text(name)] = _Definition(callable_node, holder, wrapper)
            names.append(tree.node_text(name))
    return names


def locate_component(tree: SyntaxTree, source_path: str) -> ComponentSite:
    """Find the single exported component definition.

    Raises:
        AnalysisError: UnrecognizedShape if zero or several exported
            definitions match the function-component pattern
    """
    definitions: dict[str, _Definition] = {}
    exports: list[tuple[str | None, str, _Definition | None]] = []  # (binding, kind, anonymous definition)

    for statement in named_children(tree.root):
        if statement.type != "export_statement":
            _collect_definitions(tree, statement, statement, definitions)
            continue
        is_default = any(child.type == "default" for child in statement.children)
        kind = "default" if is_default else "named"
        declaration = statement.child_by_field_name("declaration")
        value = statement.child_by_field_name("value")
        if declaration is not None:
            for name in _collect_definitions(tree, declaration, statement, definitions):
                exports.append((name, kind, None))
        elif value is not None:
            target = unwrap(value)
            if target is not None and target.type == "identifier":
                exports.append((tree.node_text(target), kind, None))
            else:
                callable_node, wrapper = _resolve_callable(tree, value, definitions)
                exports.append((_wrapped_identifier(tree, target), kind, _Definition(callable_node, statement, wrapper)))
        elif statement.child_by_field_name("source") is None:
            for node in walk(statement):
                if node.type != "export_specifier":
                    continue
                name = node.child_by_field_name("name")
                alias = node.child_by_field_name("alias")
                if name is None:
                    continue
                spec_kind = "default" if alias is not None and tree.node_text(alias) == "default" else "named"
                exports.append((tree.node_text(name), spec_kind, None))

    candidates: dict[int, _Candidate] = {}
    for binding, kind, anonymous in exports:
        definition = anonymous if anonymous is not None else definitions.get(binding or "")
        if definition is None or definition.callable is None:
            continue
        if not _is_component_callable(definition.callable, definition.wrapper):
            continue
        candidate = candidates.setdefault(definition.callable.start_byte, _Candidate(binding, definition))
        candidate.kinds.add(kind)

    if not candidates:
        msg = f"No exported function component returning markup found in {source_path}"
        raise AnalysisError("UnrecognizedShape", msg)
    if len(candidates) > 1:
        names = ", ".join(candidate.binding or "<default>" for candidate in candidates.values())
        msg = f"Expected exactly one exported component in {source_path}, found {len(candidates)} ({names})"
        raise AnalysisError("UnrecognizedShape", msg)

    candidate = next(iter(candidates.values()))
    definition = candidate.definition
    name = candidate.binding
    if name is None and definition.callable is not None:
        fn_name = definition.callable.child_by_field_name("name")
        name = tree.node_text(fn_name) if fn_name is not None else None
    return ComponentSite(
        name=name or _component_name_from_path(source_path),
        callable=definition.callable,  # type: ignore[arg-type]
        statement=definition.statement,
        export_kind="default" if "default" in candidate.kinds else "named",
        wrapper=definition.wrapper,
        binding=candidate.binding,
    )


class Analyzer:
    """Extracts ComponentDescriptors from component syntax trees.

    Pure: reads the tree, never changes it, keeps no state between files.
    """

    def analyze(self, tree: SyntaxTree, source_path: str) -> ComponentDescriptor:
        """Build the descriptor for the single component in tree.

        Args:
            tree: Parsed component file
            source_path: POSIX path of the file relative to the source root

        Returns:
            The immutable ComponentDescriptor

        Raises:
            AnalysisError: If the file does not hold exactly one recognizable component
        """
        site = locate_component(tree, source_path)
        scan = _ComponentScan(tree, site)
        scan.extract_props()
        descriptor = ComponentDescriptor(
            name=site.name,
            source_path=source_path,
            props_schema=tuple(scan.props),
            effect_constructs=scan.effects(),
            style_refs=scan.style_refs(),
            child_refs=scan.child_refs(),
            cross_cutting_effects=scan.cross_cutting_effects(),
            export_kind=site.export_kind,
            interactions=scan.interactions(),
            visibility=scan.visibility(),
            unknown_props=frozenset(scan.unknown_props),
            wrapper=site.wrapper,
            language=tree.language,
        )
        logger.debug(
            f"Analyzed {source_path}: component {descriptor.name} with {len(descriptor.props_schema)} props, "
            f"{len(descriptor.effect_constructs)} effects, {len(descriptor.interactions)} interactions"
        )
        return descriptor

    def analyze_source(self, text: str, source_path: str) -> ComponentDescriptor:
        """Parse and analyze in one step, mapping parse failures to AnalysisError."""
        try:
            tree = parse_to_tree(text, source_path)
        except ParseError as e:
            msg = f"Could not parse {source_path}: {e}"
            raise AnalysisError("Unparseable", msg) from e
        return self.analyze(tree, source_path)

