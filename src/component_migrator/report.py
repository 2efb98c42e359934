"""Migration report: ordered events plus summary counters.

Workers never append to the report directly. Each file's pipeline collects
its events in a FileEvents buffer; the Orchestrator merges buffers in stable
input order once the file is done, so the report order does not depend on
which worker finished first.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Iterator

EventLevel = Literal["info", "warning", "error"]
Outcome = Literal["migrated", "skipped", "failed"]
ExitStatus = Literal["Success", "PartialSuccess", "HardFailure", "FatalError"]


@dataclass(frozen=True)
class MigrationEvent:
    """A single report entry. Rendering is left to the consumer."""

    level: EventLevel
    file: str
    message: str
    component_name: str | None = None
    error_kind: str | None = None


@dataclass
class FileEvents:
    """Per-file event buffer filled by one pipeline."""

    file: str
    component_name: str | None = None
    events: list[MigrationEvent] = field(default_factory=list)
    outcome: Outcome | None = None

    def info(self, message: str) -> None:
        self._add("info", message)

    def warning(self, message: str) -> None:
        self._add("warning", message)

    def error(self, message: str, *, kind: str) -> None:
        self._add("error", message, error_kind=kind)

    def _add(self, level: EventLevel, message: str, error_kind: str | None = None) -> None:
        self.events.append(
            MigrationEvent(
                level=level,
                file=self.file,
                message=message,
                component_name=self.component_name,
                error_kind=error_kind,
            )
        )


class MigrationReport:
    """Append-only event log for one batch run."""

    def __init__(self) -> None:
        self._events: list[MigrationEvent] = []
        self._lock: threading.Lock = threading.Lock()
        self.migrated: int = 0
        self.skipped: int = 0
        self.failed: int = 0

    @property
    def events(self) -> tuple[MigrationEvent, ...]:
        with self._lock:
            return tuple(self._events)

    def __iter__(self) -> Iterator[MigrationEvent]:
        return iter(self.events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def append(self, event: MigrationEvent) -> None:
        with self._lock:
            self._events.append(event)

    def merge(self, buffer: FileEvents) -> None:
        """Append a finished file's events and count its outcome."""
        with self._lock:
            self._events.extend(buffer.events)
            if buffer.outcome == "migrated":
                self.migrated += 1
            elif buffer.outcome == "skipped":
                self.skipped += 1
            elif buffer.outcome == "failed":
                self.failed += 1

    def failures(self) -> list[MigrationEvent]:
        return [event for event in self.events if event.level == "error"]

    @property
    def summary(self) -> dict[str, int]:
        return {"migrated": self.migrated, "skipped": self.skipped, "failed": self.failed}

    def exit_status(self) -> ExitStatus:
        if self.migrated == 0:
            return "HardFailure"
        if self.failed > 0:
            return "PartialSuccess"
        return "Success"
