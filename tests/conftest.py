"""
Pytest configuration and fixtures.

This module configures pytest behavior for different test types:
- Integration tests: Fail on any warnings from the code under test, unless
  the test is marked allow_warnings
- Unit tests: Allow warnings

It also provides small component sources and a factory for on-disk projects.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from typing_extensions import override

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable, Generator
    from pathlib import Path

# Store warning records during test execution
_integration_test_warnings: dict[str, list[logging.LogRecord]] = {}


class IntegrationTestWarningHandler(logging.Handler):
    """Custom logging handler to capture warnings during integration tests."""

    test_nodeid: str

    def __init__(self, test_nodeid: str) -> None:
        super().__init__()
        self.test_nodeid = test_nodeid
        self.setLevel(logging.WARNING)

    @override
    def emit(self, record: logging.LogRecord) -> None:
        """Capture WARNING and above level logs."""
        if self.test_nodeid not in _integration_test_warnings:
            _integration_test_warnings[self.test_nodeid] = []
        _integration_test_warnings[self.test_nodeid].append(record)


@pytest.fixture(autouse=True)
def fail_on_log_warnings_for_integration_tests(
    request: pytest.FixtureRequest,
) -> Generator[None]:
    """
    Automatically fail integration tests if any WARNING level logs are emitted from the code under test.

    Report events at warning level are data, not log records, so they do not
    trip this check unless a test routes them through logging. Tests that
    exercise logged warnings on purpose are marked allow_warnings.
    """
    is_integration_test = request.node.get_closest_marker("integration") is not None
    allows_warnings = request.node.get_closest_marker("allow_warnings") is not None

    if not is_integration_test or allows_warnings:
        yield
        return

    # For integration tests, set up warning capture
    test_nodeid = request.node.nodeid
    _integration_test_warnings[test_nodeid] = []

    # Add handler to root logger to capture all warnings
    handler = IntegrationTestWarningHandler(test_nodeid)
    root_logger = logging.getLogger()
    root_logger.addHandler(handler)

    try:
        yield
    finally:
        root_logger.removeHandler(handler)


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[None]
) -> Generator[None]:  # type: ignore[misc]
    """
    Hook to check for warnings after test execution and mark test as failed if warnings were detected.
    """
    outcome = yield
    report = outcome.get_result()

    # Only check during the test call phase (not setup or teardown)
    if call.when == "call" and report.outcome == "passed":
        test_nodeid = item.nodeid
        warning_records = _integration_test_warnings.get(test_nodeid, [])

        if warning_records:
            warning_messages = [
                f"{record.levelname}: {record.getMessage()} (in {record.name}:{record.lineno})"
                for record in warning_records
            ]
            report.outcome = "failed"
            report.longrepr = f"Integration test failed: {len(warning_records)} warning(s) detected:\n" + "\n".join(
                f"  - {msg}" for msg in warning_messages
            )

        _integration_test_warnings.pop(test_nodeid, None)


BUTTON_SOURCE = """\
import React from 'react';
import './Button.css';

export default function Button({ variant = 'primary', size = 'medium', disabled = false, onClick, children }) {
  return (
    <button
      className={`btn btn-${variant} btn-${size}`}
      disabled={disabled}
      data-testid="button"
      onClick={onClick}
    >
      {children}
    </button>
  );
}
"""

MODAL_SOURCE = """\
import React, { useEffect } from 'react';
import Button from './Button';

export const Modal = ({ isOpen, title = 'Dialog', onClose }) => {
  useEffect(() => {
    document.body.classList.add('modal-open');
    return () => {
      document.body.classList.remove('modal-open');
    };
  }, []);

  if (!isOpen) return null;

  return (
    <div className="modal" data-test="modal">
      <h2>{title}</h2>
      <Button onClick={() => onClose()}>Close</Button>
    </div>
  );
};
"""

CLASS_SOURCE = """\
import React from 'react';

export default class Legacy extends React.Component {
  render() {
    return <div>{this.props.label}</div>;
  }
}
"""


@pytest.fixture
def button_source() -> str:
    return BUTTON_SOURCE


@pytest.fixture
def modal_source() -> str:
    return MODAL_SOURCE


@pytest.fixture
def class_source() -> str:
    return CLASS_SOURCE


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[[str, dict[str, str]], Path]:
    """Factory writing {relative path: text} files under tmp_path/<name>."""

    def _make(name: str, files: dict[str, str], *, framework: str | None = "react") -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        if framework is not None:
            manifest = {"name": name, "dependencies": {framework: "^18.2.0"}}
            _ = (root / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
        for relative, text in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            _ = path.write_text(text, encoding="utf-8")
        return root

    return _make  # type: ignore[return-value]
