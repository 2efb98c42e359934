"""Configuration value objects and TOML loading.

The CLI resolves flags into a MigrationConfig; target conventions live in a
NamingConfig that can also be read from a ``component_migrator.toml`` file.
Flags given on the command line take precedence over the file.
"""

from __future__ import annotations

import json
import logging
import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal

from .exceptions import ConfigError
from .import_rules import alias_prefixes

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "component_migrator.toml"

DefaultPropStyle = Literal["explicit-default", "assigned-defaults-object"]
MismatchStrategy = Literal["approximate", "strict"]

DEFAULT_PROP_STYLES: tuple[str, ...] = ("explicit-default", "assigned-defaults-object")
MISMATCH_STRATEGIES: tuple[str, ...] = ("approximate", "strict")

DEFAULT_IGNORE_DIRS: tuple[str, ...] = ("node_modules", ".git", "dist", "build", "coverage", "__tests__")

JS_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
PATH_ALIAS_FILES: tuple[str, ...] = ("tsconfig.json", "jsconfig.json")


@dataclass(frozen=True)
class NamingConfig:
    """Target naming, path and test conventions."""

    import_prefix_map: dict[str, str] = field(default_factory=dict)
    test_attribute_convention: str | None = "data-testid"
    default_prop_style: DefaultPropStyle = "explicit-default"
    provenance_suffix: str = "migrated_from_source"
    rename_overrides: dict[str, str] = field(default_factory=dict)
    path_overrides: dict[str, str] = field(default_factory=dict)
    mismatch_strategy: MismatchStrategy = "approximate"
    provenance_header: bool = True
    target_subdir: str = "src"
    target_aliases: dict[str, str] = field(default_factory=dict)  # Alias prefix -> directory prefix in the target

    @property
    def namespace(self) -> str:
        """Directory name that marks migrated files with their origin."""
        return f"components_{self.provenance_suffix}"

    @classmethod
    def for_tag(cls, tag: str, **kwargs: Any) -> NamingConfig:
        return cls(provenance_suffix=f"migrated_from_{tag}", **kwargs)


@dataclass(frozen=True)
class MigrationConfig:
    """Everything one batch run needs, resolved before the run starts."""

    source_dir: Path
    target_dir: Path
    generate_tests: bool = False
    dry_run: bool = False
    naming: NamingConfig = field(default_factory=NamingConfig)
    max_workers: int = 4
    component_dirs: tuple[str, ...] = ()  # Empty means the whole source tree
    ignore_dirs: tuple[str, ...] = DEFAULT_IGNORE_DIRS


def _string_table(data: dict[str, Any], key: str) -> dict[str, str]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        msg = f"[naming.{key}] must be a table of strings"
        raise ConfigError(msg)
    table: dict[str, str] = {}
    for name, target in value.items():
        if not isinstance(target, str):
            msg = f"[naming.{key}] value for {name!r} must be a string"
            raise ConfigError(msg)
        table[str(name)] = target
    return table


def validate_naming(naming: NamingConfig) -> NamingConfig:
    """Check enumerated options and the rename overrides.

    Raises:
        ConfigError: If an option has an unknown value, or a rename override
            names something that is not a JavaScript identifier
    """
    if naming.default_prop_style not in DEFAULT_PROP_STYLES:
        msg = f"Unknown default prop style: {naming.default_prop_style}"
        raise ConfigError(msg)
    if naming.mismatch_strategy not in MISMATCH_STRATEGIES:
        msg = f"Unknown mismatch strategy: {naming.mismatch_strategy}"
        raise ConfigError(msg)
    if not naming.provenance_suffix or "/" in naming.provenance_suffix:
        msg = f"Invalid provenance suffix: {naming.provenance_suffix!r}"
        raise ConfigError(msg)
    for source, target in naming.rename_overrides.items():
        for name in (source, target):
            if not JS_IDENTIFIER.match(name):
                msg = f"Invalid rename override {source!r} -> {target!r}: {name!r} is not an identifier"
                raise ConfigError(msg)
    return naming


def naming_from_table(data: dict[str, Any], base: NamingConfig | None = None) -> NamingConfig:
    """Build a NamingConfig from a parsed ``[naming]`` table."""
    naming = base or NamingConfig()
    updates: dict[str, Any] = {}
    for key in ("import_prefix_map", "rename_overrides", "path_overrides"):
        if key in data:
            updates[key] = _string_table(data, key)
    for key in ("test_attribute_convention", "default_prop_style", "provenance_suffix", "mismatch_strategy", "target_subdir"):
        if key in data:
            updates[key] = data[key]
    if "provenance_header" in data:
        updates["provenance_header"] = bool(data["provenance_header"])
    if "tag" in data and "provenance_suffix" not in data:
        updates["provenance_suffix"] = f"migrated_from_{data['tag']}"
    return validate_naming(replace(naming, **updates))


def load_config_file(config_path: Path | None = None, root: Path | None = None) -> dict[str, Any]:
    """Read the TOML configuration file, returning an empty table if absent."""
    explicit = config_path is not None
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    try:
        raw = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        if explicit:
            msg = f"Config file not found: {config_path}"
            raise ConfigError(msg) from None
        return {}
    except OSError as e:
        msg = f"Could not read config file {config_path}: {e}"
        raise ConfigError(msg) from e
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e
    logger.debug(f"Loaded configuration from {config_path}")
    return data


def discovery_from_table(data: dict[str, Any]) -> dict[str, tuple[str, ...]]:
    """Read the optional ``[discovery]`` table into MigrationConfig keyword arguments."""
    result: dict[str, tuple[str, ...]] = {}
    for key in ("component_dirs", "ignore_dirs"):
        if key in data:
            value = data[key]
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                msg = f"[discovery.{key}] must be a list of strings"
                raise ConfigError(msg)
            result[key] = tuple(value)
    return result


def load_path_aliases(project_dir: Path) -> dict[str, str]:
    """Read wildcard path aliases from a project's tsconfig.json or jsconfig.json.

    Returns:
        {alias prefix: directory prefix}, empty when neither file declares any
    """
    for name in PATH_ALIAS_FILES:
        config_path = project_dir / name
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            continue
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring path aliases in {config_path}: {e}")
            continue
        options = data.get("compilerOptions") if isinstance(data, dict) else None
        if not isinstance(options, dict) or not isinstance(options.get("paths"), dict):
            continue
        base_url = options.get("baseUrl", ".")
        aliases = alias_prefixes(options["paths"], base_url if isinstance(base_url, str) else ".")
        logger.debug(f"Loaded {len(aliases)} path aliases from {config_path}")
        return aliases
    return {}
