import threading

import pytest

from component_migrator.report import FileEvents, MigrationEvent, MigrationReport


def finished(file: str, outcome: str) -> FileEvents:
    buffer = FileEvents(file=file)
    if outcome == "failed":
        buffer.error("boom", kind="UnrecognizedShape")
    else:
        buffer.info(outcome)
    buffer.outcome = outcome  # type: ignore[assignment]
    return buffer


@pytest.mark.unit
class TestFileEvents:
    def test_events_carry_component_name_at_time_of_recording(self) -> None:
        buffer = FileEvents(file="Button.jsx")
        buffer.info("parsed")
        buffer.component_name = "Button"
        buffer.warning("cross-cutting effect")
        assert buffer.events == [
            MigrationEvent(level="info", file="Button.jsx", message="parsed"),
            MigrationEvent(level="warning", file="Button.jsx", message="cross-cutting effect", component_name="Button"),
        ]

    def test_error_records_kind(self) -> None:
        buffer = FileEvents(file="x.jsx")
        buffer.error("bad", kind="Unparseable")
        assert buffer.events[0].error_kind == "Unparseable"


@pytest.mark.unit
class TestMigrationReport:
    """Test counters, ordering and exit status."""

    def test_merge_counts_outcomes(self) -> None:
        report = MigrationReport()
        for file, outcome in [("a", "migrated"), ("b", "skipped"), ("c", "failed"), ("d", "migrated")]:
            report.merge(finished(file, outcome))
        assert report.summary == {"migrated": 2, "skipped": 1, "failed": 1}
        assert [event.file for event in report] == ["a", "b", "c", "d"]
        assert len(report) == 4
        assert [event.file for event in report.failures()] == ["c"]

    def test_batch_level_events_are_not_counted(self) -> None:
        report = MigrationReport()
        batch = FileEvents(file="")
        batch.warning("framework mismatch")
        report.merge(batch)
        assert report.summary == {"migrated": 0, "skipped": 0, "failed": 0}
        assert len(report) == 1

    @pytest.mark.parametrize(
        ("outcomes", "status"),
        [
            (["migrated", "migrated"], "Success"),
            (["migrated", "failed"], "PartialSuccess"),
            (["failed", "failed"], "HardFailure"),
            (["skipped"], "HardFailure"),
            ([], "HardFailure"),
        ],
    )
    def test_exit_status(self, outcomes: list[str], status: str) -> None:
        report = MigrationReport()
        for index, outcome in enumerate(outcomes):
            report.merge(finished(str(index), outcome))
        assert report.exit_status() == status

    def test_events_snapshot_is_immutable(self) -> None:
        report = MigrationReport()
        report.merge(finished("a", "migrated"))
        snapshot = report.events
        report.merge(finished("b", "migrated"))
        assert len(snapshot) == 1
        assert isinstance(snapshot, tuple)

    def test_concurrent_appends(self) -> None:
        report = MigrationReport()
        event = MigrationEvent(level="info", file="x", message="m")

        def append_many() -> None:
            for _ in range(200):
                report.append(event)

        threads = [threading.Thread(target=append_many) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(report) == 800
