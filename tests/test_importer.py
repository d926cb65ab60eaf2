# =============================================================================
# tests/test_importer.py - Import Executor Tests
# =============================================================================
# Tests for the all-or-nothing validation gate, per-row failure isolation,
# progress reporting and result status.
#
# The executor's backend collaborators are plain callables, so no Supabase
# mocking is needed here.
# =============================================================================

import pytest

from core.models.imports import GLOBAL_ERROR_KEY, ImportStatus
from lib.importer import ImportExecutor, ImportSnapshot


@pytest.fixture
def snapshot(category_index):
    return ImportSnapshot(existing_codes={"OLD1"}, category_index=category_index)


class RecordingBackend:
    """create_supplier stand-in that records payloads and can fail by code."""

    def __init__(self, fail_codes=()):
        self.created = []
        self.fail_codes = set(fail_codes)

    def __call__(self, payload):
        if payload.code in self.fail_codes:
            raise RuntimeError("connection reset")
        self.created.append(payload)
        return {"id": f"id-{payload.code}"}


class TestValidationGate:
    """Any validation error means zero writes."""

    def test_one_invalid_row_blocks_all(self, make_row, snapshot):
        backend = RecordingBackend()
        rows = [make_row(2, code="F001"), make_row(3, code="OLD1")]

        result = ImportExecutor(lambda: snapshot, backend).run(rows)

        assert backend.created == []
        assert result.validation_failed is True
        assert result.success_count == 0
        assert result.error_count == 1
        assert result.status == ImportStatus.ERROR
        assert result.errors == {"OLD1": ["code 'OLD1' already exists."]}

    def test_snapshot_is_loaded_at_run_time(self, make_row, category_index):
        """A code created after the review step is caught by the run."""
        calls = []

        def loader():
            calls.append(1)
            return ImportSnapshot(existing_codes={"F001"}, category_index=category_index)

        result = ImportExecutor(loader, RecordingBackend()).run([make_row(code="F001")])

        assert calls == [1]
        assert result.validation_failed is True

    def test_snapshot_failure_is_global_error(self, make_row):
        def loader():
            raise RuntimeError("database unavailable")

        backend = RecordingBackend()
        result = ImportExecutor(loader, backend).run([make_row()])

        assert backend.created == []
        assert result.status == ImportStatus.ERROR
        assert GLOBAL_ERROR_KEY in result.errors
        assert "database unavailable" in result.errors[GLOBAL_ERROR_KEY][0]


class TestExecution:
    """Sequential creation."""

    def test_all_rows_created(self, make_row, snapshot):
        backend = RecordingBackend()
        rows = [
            make_row(2, code="F001", category_text="Moda Feminina, plus size"),
            make_row(3, code="F002"),
        ]

        result = ImportExecutor(lambda: snapshot, backend).run(
            rows, image_map={"F001": ["https://cdn.test/1.jpg"]}
        )

        assert result.status == ImportStatus.SUCCESS
        assert result.success_count == 2
        assert result.error_count == 0
        assert [p.code for p in backend.created] == ["F001", "F002"]
        assert backend.created[0].category_ids == ["cat-fem", "cat-plus"]
        assert backend.created[0].images == ["https://cdn.test/1.jpg"]
        assert backend.created[1].images == []

    def test_failure_does_not_stop_run(self, make_row, snapshot):
        backend = RecordingBackend(fail_codes={"F002"})
        rows = [make_row(2, code="F001"), make_row(3, code="F002"), make_row(4, code="F003")]

        result = ImportExecutor(lambda: snapshot, backend).run(rows)

        assert [p.code for p in backend.created] == ["F001", "F003"]
        assert result.status == ImportStatus.PARTIAL
        assert result.success_count == 2
        assert result.error_count == 1
        assert result.errors == {"F002": ["import failed: connection reset"]}
        assert result.success_count + result.error_count == result.total_rows

    def test_every_row_failing_is_error(self, make_row, snapshot):
        backend = RecordingBackend(fail_codes={"F001"})

        result = ImportExecutor(lambda: snapshot, backend).run([make_row(code="F001")])

        assert result.status == ImportStatus.ERROR
        assert result.validation_failed is False

    def test_image_counts_carried(self, make_row, snapshot):
        result = ImportExecutor(lambda: snapshot, RecordingBackend()).run(
            [make_row()], images_uploaded=4, images_failed=1
        )

        assert result.images_uploaded == 4
        assert result.images_failed == 1


class TestProgress:
    """Progress callback."""

    def test_monotonic_and_ends_at_100(self, make_row, snapshot):
        progress = []
        rows = [make_row(n, code=f"F{n:03d}") for n in range(2, 5)]

        ImportExecutor(lambda: snapshot, RecordingBackend()).run(rows, on_progress=progress.append)

        assert progress == [33, 66, 100]

    def test_empty_input(self, snapshot):
        progress = []
        backend = RecordingBackend()

        result = ImportExecutor(lambda: snapshot, backend).run([], on_progress=progress.append)

        assert result.total_rows == 0
        assert result.status == ImportStatus.SUCCESS
        assert progress == [100]
        assert backend.created == []
