"""
Utility functions for the component migration tool.
"""

from __future__ import annotations

import logging
import os
import tempfile
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from .report import MigrationEvent

logger: logging.Logger = logging.getLogger(__name__)

EVENT_LEVELS: dict[str, int] = {"info": logging.INFO, "warning": logging.WARNING, "error": logging.ERROR}


def setup_logging(*, verbose: bool = False) -> None:
    """Configure logging for the migration process."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(), logging.FileHandler("migration.log", mode="a")],
    )


def log_event(event: MigrationEvent) -> None:
    """Log a report event at its own level."""
    component = f" [{event.component_name}]" if event.component_name else ""
    location = event.file or "batch"
    logging.getLogger("component_migrator.report").log(
        EVENT_LEVELS[event.level], f"{location}{component}: {event.message}"
    )


class FileSystemWriter:
    """OutputWriter that writes files atomically, creating parent directories."""

    def write(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                _ = handle.write(text)
            os.replace(tmp_name, path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        logger.debug(f"Wrote {path}")
