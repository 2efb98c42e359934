from __future__ import annotations

from unittest.mock import Mock

import pytest

from component_migrator.models import (
    ComponentDescriptor,
    ElementLocator,
    InteractionBinding,
    Probe,
    PropSpec,
    PropValue,
    VisibilityGate,
)
from component_migrator.scaffolder import TestScaffolder, emit_test_spec


def button_descriptor(**overrides: object) -> ComponentDescriptor:
    props = (
        PropSpec("variant", has_default=True, default_expr="'primary'", required=False, kind="string"),
        PropSpec("size", has_default=True, default_expr="'medium'", required=False, kind="string"),
        PropSpec("disabled", has_default=True, default_expr="false", required=False, kind="boolean"),
        PropSpec("onClick", kind="function"),
    )
    fields: dict[str, object] = {
        "name": "Button",
        "source_path": "Button.jsx",
        "props_schema": props,
        "interactions": (InteractionBinding("click", "onClick", "button", "button"),),
    }
    fields.update(overrides)
    return ComponentDescriptor(**fields)  # type: ignore[arg-type]


@pytest.mark.unit
class TestAssertionCounts:
    """Test the number and order of scaffolded assertions."""

    def test_button_example_yields_five_assertions(self) -> None:
        spec = TestScaffolder().scaffold(button_descriptor())
        assert len(spec) == 5
        assert [assertion.kind for assertion in spec.assertions] == [
            "smoke",
            "default",
            "default",
            "default",
            "interaction",
        ]

    @pytest.mark.parametrize(("defaults", "interactions"), [(0, 0), (1, 0), (0, 2), (3, 2)])
    def test_one_plus_k_plus_m(self, defaults: int, interactions: int) -> None:
        props = tuple(PropSpec(f"p{i}", has_default=True, default_expr=str(i), required=False) for i in range(defaults))
        props += tuple(PropSpec(f"on{i}", kind="function") for i in range(interactions))
        bindings = tuple(InteractionBinding("click", f"on{i}", "button") for i in range(interactions))
        descriptor = ComponentDescriptor(name="X", source_path="X.jsx", props_schema=props, interactions=bindings)
        assert len(TestScaffolder().scaffold(descriptor)) == 1 + defaults + interactions

    def test_visibility_gate_adds_two(self) -> None:
        plain = button_descriptor()
        gated = button_descriptor(
            props_schema=(*plain.props_schema, PropSpec("visible", kind="boolean")),
            visibility=VisibilityGate("visible"),
        )
        assert len(TestScaffolder().scaffold(gated)) == len(TestScaffolder().scaffold(plain)) + 2

    def test_spec_is_deterministic(self) -> None:
        assert TestScaffolder().scaffold(button_descriptor()) == TestScaffolder().scaffold(button_descriptor())


@pytest.mark.unit
class TestAssertionContent:
    """Test what each assertion renders and checks."""

    def test_smoke_populates_only_undefaulted_props(self) -> None:
        smoke = TestScaffolder().scaffold(button_descriptor()).assertions[0]
        assert smoke.name == "renders without crashing"
        assert smoke.render.props == (("onClick", PropValue("placeholder", "function")),)
        assert smoke.probe == Probe("mounted", "view")
        assert smoke.expected is True

    def test_default_compares_omitted_with_explicit(self) -> None:
        default = TestScaffolder().scaffold(button_descriptor()).assertions[1]
        assert default.name == "uses the default value of variant"
        assert [name for name, _ in default.render.props] == ["onClick"]
        assert default.baseline is not None
        assert default.baseline.props[-1] == ("variant", PropValue("source", "'primary'"))
        assert default.probe == Probe("markup", "omitted")
        assert default.expected == Probe("markup", "explicit")

    def test_interaction_mocks_handler_and_fires_once(self) -> None:
        interaction = TestScaffolder().scaffold(button_descriptor()).assertions[-1]
        assert ("onClick", PropValue("handler", "onClickMock")) in interaction.render.props
        assert interaction.event is not None
        assert interaction.event.locator == ElementLocator("button", "button")
        assert interaction.event.event == "click"
        assert interaction.probe == Probe("call_count", "onClickMock")
        assert interaction.expected == 1

    def test_button_example_has_no_warnings(self) -> None:
        assert TestScaffolder().scaffold(button_descriptor()).warnings == ()

    def test_default_reading_module_names_renders_undefined(self) -> None:
        size = PropSpec(
            "size", has_default=True, default_expr="DEFAULT_SIZE", required=False, default_self_contained=False
        )
        spec = TestScaffolder().scaffold(ComponentDescriptor(name="Chip", source_path="Chip.jsx", props_schema=(size,)))
        default = spec.assertions[1]
        assert default.baseline is not None
        assert default.baseline.props[-1] == ("size", PropValue("source", "undefined"))
        assert spec.warnings == (
            "Default of 'size' (DEFAULT_SIZE) reads names declared elsewhere; "
            "its test passes undefined instead of the default value",
        )

    def test_composite_child_located_by_text(self) -> None:
        descriptor = button_descriptor(interactions=(InteractionBinding("click", "onClick", "Button", text="Close"),))
        interaction = TestScaffolder().scaffold(descriptor).assertions[-1]
        assert interaction.event is not None
        assert interaction.event.locator == ElementLocator("Button", text="Close")

    def test_unlocatable_composite_child_is_skipped_with_warning(self) -> None:
        descriptor = button_descriptor(interactions=(InteractionBinding("click", "onClick", "Icon"),))
        spec = TestScaffolder().scaffold(descriptor)
        assert [assertion.kind for assertion in spec.assertions] == ["smoke", "default", "default", "default"]
        assert spec.warnings == (
            "No test for onClick on click of <Icon>: the element has no test id or literal text to find it by",
        )

    def test_visibility_states(self) -> None:
        descriptor = ComponentDescriptor(
            name="Hint",
            source_path="Hint.jsx",
            props_schema=(PropSpec("hidden", kind="boolean"), PropSpec("text", kind="string")),
            visibility=VisibilityGate("hidden", renders_when=False),
        )
        spec = TestScaffolder().scaffold(descriptor)
        shown, empty = spec.assertions[-2:]
        assert dict(shown.render.props)["hidden"] == PropValue("boolean", "false")
        assert (shown.expected, shown.negate) == ("", True)
        assert dict(empty.render.props)["hidden"] == PropValue("boolean", "true")
        assert (empty.expected, empty.negate) == ("", False)

    def test_gate_is_set_to_render_in_other_cases(self) -> None:
        descriptor = ComponentDescriptor(
            name="Modal",
            source_path="Modal.jsx",
            props_schema=(
                PropSpec("open", has_default=True, default_expr="false", required=False, kind="boolean"),
                PropSpec("onClose", kind="function"),
            ),
            interactions=(InteractionBinding("click", "onClose", "button"),),
            visibility=VisibilityGate("open"),
        )
        interaction = next(a for a in TestScaffolder().scaffold(descriptor).assertions if a.kind == "interaction")
        assert dict(interaction.render.props)["open"] == PropValue("boolean", "true")


@pytest.mark.unit
class TestEmitTestSpec:
    """Test driving a TestEmitter from a TestSpec."""

    def test_emitter_calls_in_order(self) -> None:
        emitter = Mock()
        emitter.emit_render_call.return_value = ["render"]
        emitter.emit_event_simulation.return_value = ["event"]
        emitter.emit_assertion_equal.return_value = ["assert"]
        emitter.emit_test_case.side_effect = lambda name, statements: f"{name}:{','.join(statements)}"
        emitter.emit_test_file.return_value = "FILE"

        spec = TestScaffolder().scaffold(button_descriptor())
        text = emit_test_spec(spec, emitter, component="ActionButton", import_path="../ActionButton")

        assert text == "FILE"
        cases = emitter.emit_test_file.call_args.args[3]
        assert cases[0] == "renders without crashing:render,assert"
        assert cases[1] == "uses the default value of variant:render,render,assert"
        assert cases[-1] == "calls onClick on click of button:render,event,assert"
        assert emitter.emit_test_file.call_args.args[:3] == ("ActionButton", "../ActionButton", "default")
        assert emitter.emit_render_call.call_args_list[0].args[0] == "ActionButton"
