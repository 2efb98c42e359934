"""
Derive behavioral test specifications from component descriptors.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .models import (
    Assertion,
    ElementLocator,
    EventSimulation,
    Probe,
    PropValue,
    RenderCall,
    TestSpec,
)

if TYPE_CHECKING:
    from .models import ComponentDescriptor, InteractionBinding, PropSpec, VisibilityGate
    from .protocols import TestEmitter

logger: logging.Logger = logging.getLogger(__name__)


def _js_bool(value: bool) -> str:  # noqa: FBT001
    return "true" if value else "false"


class TestScaffolder:
    """Builds a TestSpec from a ComponentDescriptor alone.

    Rules, in order:
    1. One smoke assertion: renders with placeholders for undefaulted props
    2. One assertion per defaulted prop: omitting it equals passing its default
    3. One assertion per interaction: the event calls the handler prop once.
       Handlers on nested components that a test cannot find are skipped
       with a warning
    4. Two assertions for a visibility gate: content when on, nothing when off
    """

    __test__ = False  # Not a pytest test class

    def scaffold(self, descriptor: ComponentDescriptor) -> TestSpec:
        assertions: list[Assertion] = [self._smoke(descriptor)]
        warnings: list[str] = []
        for prop in descriptor.defaulted_props:
            assertions.append(self._default_case(descriptor, prop))
            if not prop.default_self_contained:
                warnings.append(
                    f"Default of '{prop.name}' ({prop.default_expr}) reads names declared elsewhere; "
                    "its test passes undefined instead of the default value"
                )
        for binding in descriptor.interactions:
            if binding.locatable:
                assertions.append(self._interaction_case(descriptor, binding))
            else:
                warnings.append(
                    f"No test for {binding.handler_prop} on {binding.event} of <{binding.element}>: "
                    "the element has no test id or literal text to find it by"
                )
        if descriptor.visibility is not None:
            assertions.extend(self._visibility_cases(descriptor, descriptor.visibility))
        spec = TestSpec(
            component_name=descriptor.name,
            export_kind=descriptor.export_kind,
            assertions=tuple(assertions),
            warnings=tuple(warnings),
        )
        logger.debug(f"Scaffolded {len(spec)} assertions for {descriptor.name}")
        return spec

    def _base_props(
        self, descriptor: ComponentDescriptor, *, omit: str | None = None, show_gate: bool = True
    ) -> list[tuple[str, PropValue]]:
        """Placeholders for undefaulted props, with the visibility gate (if any) set to render."""
        gate = descriptor.visibility
        props: list[tuple[str, PropValue]] = []
        for spec in descriptor.props_schema:
            if spec.name == omit:
                continue
            if gate is not None and spec.name == gate.prop and (show_gate or not spec.has_default):
                props.append((spec.name, PropValue("boolean", _js_bool(gate.renders_when))))
            elif not spec.has_default:
                props.append((spec.name, PropValue("placeholder", spec.kind)))
        return props

    def _smoke(self, descriptor: ComponentDescriptor) -> Assertion:
        render = RenderCall("view", tuple(self._base_props(descriptor, show_gate=False)))
        return Assertion(
            name="renders without crashing",
            kind="smoke",
            render=render,
            probe=Probe("mounted", "view"),
            expected=True,
        )

    def _default_case(self, descriptor: ComponentDescriptor, spec: PropSpec) -> Assertion:
        base = self._base_props(descriptor, omit=spec.name)
        omitted = RenderCall("omitted", tuple(base))
        value = spec.default_expr if spec.default_expr and spec.default_self_contained else "undefined"
        explicit = RenderCall("explicit", (*base, (spec.name, PropValue("source", value))))
        return Assertion(
            name=f"uses the default value of {spec.name}",
            kind="default",
            render=omitted,
            baseline=explicit,
            probe=Probe("markup", "omitted"),
            expected=Probe("markup", "explicit"),
        )

    def _interaction_case(self, descriptor: ComponentDescriptor, binding: InteractionBinding) -> Assertion:
        handler = f"{binding.handler_prop}Mock"
        props = [(name, value) for name, value in self._base_props(descriptor) if name != binding.handler_prop]
        props.append((binding.handler_prop, PropValue("handler", handler)))
        return Assertion(
            name=f"calls {binding.handler_prop} on {binding.event} of {binding.element}",
            kind="interaction",
            render=RenderCall("view", tuple(props)),
            event=EventSimulation(
                "view", ElementLocator(binding.element, binding.test_id, binding.text, binding.root), binding.event
            ),
            probe=Probe("call_count", handler),
            expected=1,
        )

    def _visibility_cases(self, descriptor: ComponentDescriptor, gate: VisibilityGate) -> list[Assertion]:
        cases: list[Assertion] = []
        for renders in (True, False):
            value = gate.renders_when if renders else not gate.renders_when
            props = [(name, prop) for name, prop in self._base_props(descriptor) if name != gate.prop]
            props.append((gate.prop, PropValue("boolean", _js_bool(value))))
            cases.append(
                Assertion(
                    name=f"renders {'content' if renders else 'nothing'} when {gate.prop} is {_js_bool(value)}",
                    kind="visibility",
                    render=RenderCall("view", tuple(props)),
                    probe=Probe("markup", "view"),
                    expected="",
                    negate=renders,
                )
            )
        return cases


def emit_test_spec(spec: TestSpec, emitter: TestEmitter, *, component: str, import_path: str) -> str:
    """Render a TestSpec through an emitter into the text of one test module.

    Args:
        spec: Abstract test specification
        emitter: Test dialect to render with
        component: Identifier the component has in the target project
        import_path: Module specifier the test file imports the component from

    Returns:
        Complete test file text
    """
    cases: list[str] = []
    for assertion in spec.assertions:
        statements = list(emitter.emit_render_call(component, assertion.render.binding, assertion.render.props))
        if assertion.baseline is not None:
            statements += emitter.emit_render_call(component, assertion.baseline.binding, assertion.baseline.props)
        if assertion.event is not None:
            statements += emitter.emit_event_simulation(assertion.event.binding, assertion.event.locator, assertion.event.event)
        statements += emitter.emit_assertion_equal(assertion.probe, assertion.expected, negate=assertion.negate)
        cases.append(emitter.emit_test_case(assertion.name, statements))
    return emitter.emit_test_file(component, import_path, spec.export_kind, cases)
