"""
Tests for CLI module.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest

from component_migrator.cli import build_config, main, parse_arguments, print_report
from component_migrator.exceptions import ConfigError, FatalError
from component_migrator.report import FileEvents, MigrationReport

if TYPE_CHECKING:
    from collections.abc import Callable


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a stray component_migrator.toml in the working directory out of the tests."""
    monkeypatch.chdir(tmp_path)


@pytest.mark.unit
class TestParseArguments:
    """Test command line parsing."""

    def test_positional_and_defaults(self) -> None:
        args = parse_arguments(["old", "new"])
        assert args.source_dir == Path("old")
        assert args.target_dir == Path("new")
        assert args.dry_run is False
        assert args.generate_tests is False
        assert args.import_prefix is None
        assert args.workers is None

    def test_repeatable_options(self) -> None:
        args = parse_arguments(["old", "new", "-i", "../lib:@/lib", "--import-prefix", "~/:@/", "-r", "Btn:Button"])
        assert args.import_prefix == ["../lib:@/lib", "~/:@/"]
        assert args.rename == ["Btn:Button"]

    def test_invalid_prop_style_exits(self) -> None:
        with pytest.raises(SystemExit):
            parse_arguments(["old", "new", "--default-prop-style", "static"])


@pytest.mark.unit
class TestBuildConfig:
    """Test resolving flags and the TOML file into a MigrationConfig."""

    def test_flags(self) -> None:
        args = parse_arguments(
            [
                "old",
                "new",
                "--tag",
                "B",
                "--dry-run",
                "--generate-tests",
                "-i",
                "../lib:@/lib",
                "--default-prop-style",
                "assigned-defaults-object",
                "--test-attribute",
                "data-qa",
                "--strict-imports",
                "-w",
                "2",
            ]
        )
        config = build_config(args)
        assert config.dry_run is True
        assert config.generate_tests is True
        assert config.max_workers == 2
        assert config.naming.namespace == "components_migrated_from_B"
        assert config.naming.import_prefix_map == {"../lib": "@/lib"}
        assert config.naming.default_prop_style == "assigned-defaults-object"
        assert config.naming.test_attribute_convention == "data-qa"
        assert config.naming.mismatch_strategy == "strict"

    def test_flags_override_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "migrate.toml"
        _ = config_file.write_text(
            '[naming]\ntag = "A"\n\n[naming.import_prefix_map]\n"../lib" = "@/old"\n"../ui" = "@/ui"\n\n'
            '[discovery]\ncomponent_dirs = ["src"]\n',
            encoding="utf-8",
        )
        args = parse_arguments(["old", "new", "-c", str(config_file), "-t", "B", "-i", "../lib:@/lib"])
        config = build_config(args)
        assert config.naming.provenance_suffix == "migrated_from_B"
        assert config.naming.import_prefix_map == {"../lib": "@/lib", "../ui": "@/ui"}
        assert config.component_dirs == ("src",)
        assert config.max_workers == 4

    def test_default_config_file_in_working_directory(self, tmp_path: Path) -> None:
        _ = (tmp_path / "component_migrator.toml").write_text('[naming]\nprovenance_header = false\n', encoding="utf-8")
        config = build_config(parse_arguments(["old", "new"]))
        assert config.naming.provenance_header is False

    @pytest.mark.parametrize(
        "argv",
        [
            ["old", "new", "-i", "no-colon"],
            ["old", "new", "-r", ":Button"],
            ["old", "new", "-w", "0"],
            ["old", "new", "-c", "missing.toml"],
        ],
    )
    def test_invalid_configuration(self, argv: list[str]) -> None:
        with pytest.raises(ConfigError):
            build_config(parse_arguments(argv))


@pytest.mark.unit
class TestPrintReport:
    def test_summary_and_failures(self, capsys: pytest.CaptureFixture[str]) -> None:
        report = MigrationReport()
        ok = FileEvents(file="Button.jsx", outcome="migrated")
        ok.info("Migrated")
        bad = FileEvents(file="Legacy.jsx")
        bad.error("No function component found", kind="UnrecognizedShape")
        bad.outcome = "failed"
        report.merge(ok)
        report.merge(bad)

        print_report(report)
        captured = capsys.readouterr()

        assert "Migrated: 1  Skipped: 0  Failed: 1" in captured.out
        assert "FAILED Legacy.jsx: UnrecognizedShape: No function component found" in captured.out


@pytest.mark.unit
class TestMain:
    """Test exit codes of the entry point."""

    @pytest.mark.parametrize(("status", "code"), [("Success", 0), ("PartialSuccess", 2), ("HardFailure", 1)])
    def test_exit_code_follows_report(self, status: str, code: int) -> None:
        report = MagicMock()
        report.exit_status.return_value = status
        report.summary = {"migrated": 0, "skipped": 0, "failed": 0}
        report.failures.return_value = []
        with (
            patch("component_migrator.cli.setup_logging"),
            patch("component_migrator.cli.Orchestrator") as orchestrator_class,
            pytest.raises(SystemExit) as excinfo,
        ):
            orchestrator_class.return_value.run.return_value = report
            main(["old", "new"])
        assert excinfo.value.code == code

    def test_fatal_error_exits_3(self) -> None:
        with (
            patch("component_migrator.cli.setup_logging"),
            patch("component_migrator.cli.Orchestrator") as orchestrator_class,
            pytest.raises(SystemExit) as excinfo,
        ):
            orchestrator_class.return_value.run.side_effect = FatalError("Source directory does not exist")
            main(["old", "new"])
        assert excinfo.value.code == 3

    def test_config_error_exits_3(self) -> None:
        with (
            patch("component_migrator.cli.setup_logging"),
            patch("component_migrator.cli.Orchestrator") as orchestrator_class,
            pytest.raises(SystemExit) as excinfo,
        ):
            main(["old", "new", "--rename", "bad"])
        assert excinfo.value.code == 3
        orchestrator_class.assert_not_called()

    @pytest.mark.integration
    @pytest.mark.allow_warnings
    def test_end_to_end(self, make_project: Callable[..., Path], button_source: str) -> None:
        source = make_project("source", {"Button.jsx": button_source})
        target = make_project("target", {})
        with patch("component_migrator.cli.setup_logging"), pytest.raises(SystemExit) as excinfo:
            main([str(source), str(target), "--generate-tests", "--tag", "legacy"])
        assert excinfo.value.code == 0
        namespace = target / "src" / "components_migrated_from_legacy"
        assert (namespace / "Button.jsx").exists()
        assert (namespace / "__tests__" / "Button.test.jsx").exists()
