"""
Jest + React Testing Library test dialect.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from .models import Probe

if TYPE_CHECKING:
    from .models import ElementLocator, ExportKind, PropValue

IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$-]*$")
INDENT = "  "


def js_string(value: str) -> str:
    """Single-quoted JavaScript string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


class JestEmitter:
    """Renders TestSpec steps as Jest tests using @testing-library/react."""

    PLACEHOLDERS: dict[str, str] = {
        "number": "1",
        "boolean": "true",
        "function": "() => {}",
        "node": "'content'",
        "array": "[]",
        "object": "{}",
        "unknown": "'placeholder'",
    }

    def __init__(self, test_attribute: str | None = "data-testid") -> None:
        self.test_attribute: str | None = test_attribute

    def placeholder(self, name: str, kind: str) -> str:
        if kind == "string":
            return js_string(f"test-{name}")
        return self.PLACEHOLDERS.get(kind, "'placeholder'")

    def _prop_expression(self, name: str, value: PropValue) -> str:
        if value.kind == "placeholder":
            return self.placeholder(name, value.value)
        return value.value

    def _probe_expression(self, probe: Probe) -> str:
        if probe.kind == "mounted":
            return f"{probe.target}.isConnected"
        if probe.kind == "markup":
            return f"{probe.target}.innerHTML"
        return f"{probe.target}.mock.calls.length"

    def _literal(self, value: Probe | str | int | bool | None) -> str:
        if isinstance(value, Probe):
            return self._probe_expression(value)
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, int):
            return str(value)
        return js_string(value)

    def emit_render_call(self, component: str, binding: str, props: tuple[tuple[str, PropValue], ...]) -> list[str]:
        statements = [f"const {value.value} = jest.fn();" for _, value in props if value.kind == "handler"]
        attributes: list[str] = []
        spread: list[str] = []
        for name, value in props:
            expression = self._prop_expression(name, value)
            if IDENTIFIER.match(name):
                attributes.append(f"{name}={{{expression}}}")
            else:
                spread.append(f"{js_string(name)}: {expression}")
        if spread:
            attributes.append(f"{{...{{ {', '.join(spread)} }}}}")
        element = " ".join([component, *attributes])
        statements.append(f"const {{ container: {binding} }} = render(<{element} />);")
        return statements

    def emit_assertion_equal(self, actual: Probe, expected: Probe | str | int | bool | None, *, negate: bool = False) -> list[str]:
        matcher = ".not.toBe" if negate else ".toBe"
        return [f"expect({self._probe_expression(actual)}){matcher}({self._literal(expected)});"]

    def _selector(self, locator: ElementLocator) -> str:
        if locator.test_id is not None and self.test_attribute:
            return js_string(f'[{self.test_attribute}="{locator.test_id}"]')
        return js_string(locator.element)

    def emit_event_simulation(self, binding: str, locator: ElementLocator, event: str) -> list[str]:
        """Fire event on the located element.

        Composite children have no tag of their own: they are found by test
        id, by their literal text, or as the rendered root when the component
        returns them directly.

        Raises:
            ValueError: If a composite child offers none of these
        """
        composite = locator.element[:1].isupper() or "." in locator.element
        if not composite or (locator.test_id is not None and self.test_attribute):
            target = f"{binding}.querySelector({self._selector(locator)})"
        elif locator.root:
            target = f"{binding}.firstElementChild"
        elif locator.text is not None:
            target = f"within({binding}).getByText({js_string(locator.text)})"
        else:
            msg = f"Cannot locate <{locator.element}> in a rendered test"
            raise ValueError(msg)
        return [f"fireEvent.{event}({target});"]

    def emit_test_case(self, name: str, statements: list[str]) -> str:
        body = "\n".join(f"{INDENT * 2}{statement}" for statement in statements)
        return f"{INDENT}it({js_string(name)}, () => {{\n{body}\n{INDENT}}});"

    def emit_test_file(self, component: str, import_path: str, export_kind: ExportKind, cases: list[str]) -> str:
        binding = component if export_kind == "default" else f"{{ {component} }}"
        header = [
            "import React from 'react';",
            "import { render, fireEvent, within } from '@testing-library/react';",
            f"import {binding} from {js_string(import_path)};",
        ]
        body = "\n\n".join(cases)
        return "\n".join(header) + f"\n\ndescribe({js_string(component)}, () => {{\n{body}\n}});\n"
