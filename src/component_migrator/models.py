"""Data models for component migration.

These models represent the values exchanged between the Analyzer,
Transformer, TestScaffolder and Orchestrator. Descriptor-side models are
frozen and hold tuples/frozensets only: a ComponentDescriptor is created once
per file and never changes afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

ExportKind = Literal["default", "named"]
EffectTrigger = Literal["mount", "update", "unmount"]
PropKind = Literal["string", "number", "boolean", "function", "node", "array", "object", "unknown"]
DefaultSource = Literal["parameter", "defaults_object"]
SourceLanguage = Literal["javascript", "tsx"]
ConflictKind = Literal["NamingCollision", "UnresolvedImport"]


@dataclass(frozen=True)
class PropSpec:
    """One member of a component's props, in source declaration order."""

    name: str
    has_default: bool = False
    default_expr: str | None = None  # Verbatim source text, never evaluated
    required: bool = True
    kind: PropKind = "unknown"
    default_source: DefaultSource | None = None
    default_self_contained: bool = True  # False when the default reads names declared elsewhere


@dataclass(frozen=True)
class EffectConstruct:
    """A lifecycle-equivalent side effect with its declared dependencies."""

    trigger: EffectTrigger
    dependencies: tuple[str, ...] = ()
    hook: str = "useEffect"


@dataclass(frozen=True)
class InteractionBinding:
    """A handler prop invoked when the user triggers an event on an element.

    These are the interactive-trigger effect constructs the TestScaffolder
    turns into event simulations.
    """

    event: str  # DOM event name, e.g. "click"
    handler_prop: str
    element: str  # Tag or component name the handler is attached to
    test_id: str | None = None  # Literal test attribute value on that element, if any
    text: str | None = None  # Literal text content of the element, if that is all it holds
    root: bool = False  # The element is the markup the component returns

    @property
    def composite(self) -> bool:
        return self.element[:1].isupper() or "." in self.element

    @property
    def locatable(self) -> bool:
        """Whether a rendered test can reach the element this handler is bound to."""
        return not self.composite or self.test_id is not None or self.root or self.text is not None


@dataclass(frozen=True)
class VisibilityGate:
    """A boolean prop deciding whether the component renders anything.

    renders_when is the prop value for which markup is returned; the other
    value makes the component return null.
    """

    prop: str
    renders_when: bool = True


@dataclass(frozen=True)
class CrossCuttingEffect:
    """A write to state outside the component's own scope, flagged for review."""

    target: str
    operation: Literal["assign", "update", "delete", "call"]
    line: int


@dataclass(frozen=True)
class ComponentDescriptor:
    """Extracted, immutable behavioral summary of one component."""

    name: str
    source_path: str  # POSIX path relative to the source root
    props_schema: tuple[PropSpec, ...] = ()
    effect_constructs: frozenset[EffectConstruct] = frozenset()
    style_refs: tuple[str, ...] = ()
    child_refs: frozenset[str] = frozenset()
    cross_cutting_effects: frozenset[CrossCuttingEffect] = frozenset()
    export_kind: ExportKind = "default"
    interactions: tuple[InteractionBinding, ...] = ()
    visibility: VisibilityGate | None = None
    unknown_props: frozenset[str] = frozenset()
    wrapper: str | None = None
    language: SourceLanguage = "javascript"

    def prop(self, name: str) -> PropSpec | None:
        for spec in self.props_schema:
            if spec.name == name:
                return spec
        return None

    @property
    def defaulted_props(self) -> tuple[PropSpec, ...]:
        return tuple(spec for spec in self.props_schema if spec.has_default)

    @property
    def undefaulted_props(self) -> tuple[PropSpec, ...]:
        return tuple(spec for spec in self.props_schema if not spec.has_default)


@dataclass(frozen=True)
class ImportRewriteRule:
    """Substitute a leading import path prefix."""

    prefix: str
    replacement: str

    def apply(self, specifier: str) -> str:
        return self.replacement + specifier[len(self.prefix) :]


@dataclass(frozen=True)
class Conflict:
    """An unresolved collision or rewrite failure recorded on a plan."""

    kind: ConflictKind
    subject: str  # Identifier, path or import specifier involved
    detail: str = ""


@dataclass
class MigrationPlan:
    """Per-file transform directive derived once from a descriptor."""

    descriptor: ComponentDescriptor
    target_path: Path
    rename_map: dict[str, str] = field(default_factory=dict)
    import_rewrite_rules: list[ImportRewriteRule] = field(default_factory=list)
    conflicts: set[Conflict] = field(default_factory=set)
    warnings: list[str] = field(default_factory=list)
    path_overridden: bool = False
    assets: list[str] = field(default_factory=list)  # Source-relative style files the component imports

    @property
    def target_name(self) -> str:
        return self.rename_map.get(self.descriptor.name, self.descriptor.name)


# Test specification values. Only abstract descriptions live here; a
# TestEmitter turns them into text of a concrete test dialect.


@dataclass(frozen=True)
class PropValue:
    """A prop value passed to a render call in a generated test.

    kind:
    - placeholder: value is a PropKind; the emitter picks a literal of that kind
    - source: value is verbatim source expression text (a default value)
    - handler: value is the name of a mock function the emitter declares
    - boolean: value is "true" or "false"
    """

    kind: Literal["placeholder", "source", "handler", "boolean"]
    value: str


@dataclass(frozen=True)
class RenderCall:
    binding: str  # Name the emitter binds the render result to
    props: tuple[tuple[str, PropValue], ...] = ()


@dataclass(frozen=True)
class Probe:
    """Something observable about a rendered component."""

    kind: Literal["mounted", "markup", "call_count"]
    target: str  # Render binding, or handler name for call_count


@dataclass(frozen=True)
class ElementLocator:
    element: str
    test_id: str | None = None
    text: str | None = None
    root: bool = False


@dataclass(frozen=True)
class EventSimulation:
    binding: str
    locator: ElementLocator
    event: str


AssertionKind = Literal["smoke", "default", "interaction", "visibility"]


@dataclass(frozen=True)
class Assertion:
    """One named assertion of a TestSpec."""

    name: str
    kind: AssertionKind
    render: RenderCall
    probe: Probe
    expected: Probe | str | int | bool | None
    negate: bool = False
    baseline: RenderCall | None = None  # Second render compared against, for defaults
    event: EventSimulation | None = None


@dataclass(frozen=True)
class TestSpec:
    """Ordered assertions derived solely from a ComponentDescriptor."""

    __test__ = False  # Not a pytest test class

    component_name: str
    export_kind: ExportKind
    assertions: tuple[Assertion, ...] = ()
    warnings: tuple[str, ...] = ()  # Behavior that could not be covered as extracted

    def __len__(self) -> int:
        return len(self.assertions)
