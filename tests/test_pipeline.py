"""Integration tests for production_extractor.pipeline -- real zips, real DBF, real XLSX."""

from datetime import datetime

import openpyxl
import pytest

from production_extractor.exceptions import MissingTableError
from production_extractor.filesystem import FileSystem
from production_extractor.models import ArchiveState
from production_extractor.pipeline import ArchivePipeline, BatchResult

from dbf_fixtures import DEFAULT_FINAL_ROWS, FINAL_TEXT_FIELDS


def _rows(path):
    wb = openpyxl.load_workbook(path)
    rows = [[c.value for c in row] for row in wb.active.iter_rows()]
    wb.close()
    return rows


@pytest.fixture
def archive_dir(config):
    return config.paths.archive_path


@pytest.fixture
def pipeline(config):
    return ArchivePipeline(config)


# ============================================================================
# Happy path
# ============================================================================

class TestWritten:

    def test_report_written_and_archive_deleted(self, pipeline, config, archive_dir, make_archive):
        archive = make_archive(archive_dir, "store-042.zip")
        result = pipeline.process_archive(archive)

        assert result.state is ArchiveState.WRITTEN
        assert result.history == [
            ArchiveState.PENDING, ArchiveState.GATED, ArchiveState.EXTRACTED,
            ArchiveState.ENRICHED, ArchiveState.WRITTEN,
        ]
        assert result.summary_count == 2
        assert result.output_path == config.paths.output_path / "store-042.xlsx"
        assert result.output_path.exists()
        assert result.deleted
        assert not archive.exists()

    def test_report_contents(self, pipeline, archive_dir, make_archive):
        result = pipeline.process_archive(make_archive(archive_dir, "store-042.zip"))
        header, e1, e2 = _rows(result.output_path)

        assert header[0] == "Employee"
        assert e1[:4] == ["E1", 3, 12, 18]
        assert e1[4:7] == ["E1", "Smithe", "Joe"]
        assert e1[7] == datetime(2024, 1, 15)
        assert e1[8] == "0042"
        assert e1[9] == "S-004"
        assert e1[10] == pytest.approx(10.0)
        assert e1[11:] == [2, 1, 0]

        assert e2[:4] == ["E2", 1, 1, 10]
        assert e2[5:7] == ["Doe", "Ann"]
        assert e2[10] == 0
        assert e2[11:] == [0, 0, 0]

    def test_unknown_employee_has_blank_names(self, pipeline, archive_dir, make_archive):
        archive = make_archive(
            archive_dir, "store.zip",
            final_rows=[("E9", "2024-01-15 09:00:00", 1, 1, "1.0000", "S-9")],
        )
        result = pipeline.process_archive(archive)
        _, row = _rows(result.output_path)
        assert row[0] == "E9"
        assert row[5] is None and row[6] is None

    def test_upper_case_entry_names(self, pipeline, archive_dir, make_archive):
        archive = make_archive(archive_dir, "store.zip", upper_entry_names=True)
        assert pipeline.process_archive(archive).state is ArchiveState.WRITTEN

    def test_kelley_archive_uses_filename_metadata(self, pipeline, archive_dir, make_archive):
        archive = make_archive(archive_dir, "Kelley-001122334-240301.zip")
        result = pipeline.process_archive(archive)
        _, e1, _ = _rows(result.output_path)
        assert e1[7] == datetime(2024, 3, 1)
        assert e1[8] == "Kelley00"

    def test_unparseable_invoice_date_is_blank(self, pipeline, archive_dir, make_archive):
        archive = make_archive(archive_dir, "store.zip", today_rows=[])
        result = pipeline.process_archive(archive)
        assert result.state is ArchiveState.WRITTEN
        _, e1, _ = _rows(result.output_path)
        assert e1[7] is None

    def test_work_dir_cleaned_up(self, pipeline, config, archive_dir, make_archive):
        pipeline.process_archive(make_archive(archive_dir, "store.zip"))
        assert not (config.paths.work_path / "store").exists()


# ============================================================================
# Skipped / blank / failed
# ============================================================================

class TestOtherOutcomes:

    def test_excluded_archive_skipped_and_deleted(self, pipeline, config, archive_dir, make_archive):
        archive = make_archive(archive_dir, "0002-RX-store.zip")
        result = pipeline.process_archive(archive)
        assert result.state is ArchiveState.SKIPPED
        assert result.history == [ArchiveState.PENDING, ArchiveState.SKIPPED]
        assert result.deleted
        assert not archive.exists()
        assert not (config.paths.output_path / "0002-RX-store.xlsx").exists()

    def test_prefix_without_marker_is_processed(self, pipeline, archive_dir, make_archive):
        archive = make_archive(archive_dir, "0002-store.zip")
        assert pipeline.process_archive(archive).state is ArchiveState.WRITTEN

    def test_blank_archive_logged_and_kept(self, pipeline, config, archive_dir, make_archive):
        archive = make_archive(
            archive_dir, "empty.zip",
            final_rows=[("", "2024-01-15 10:00:00", 1, 1, "1.0000", "S-1")],
        )
        result = pipeline.process_archive(archive)
        assert result.state is ArchiveState.BLANK
        assert archive.exists()
        assert not result.deleted
        assert result.output_path is None
        log = config.paths.error_log_path.read_text(encoding="utf-8")
        assert log.splitlines() == ["Zip File Is Blank: empty.zip"]

    def test_missing_table_fails_and_keeps_archive(self, pipeline, config, archive_dir, make_archive):
        archive = make_archive(archive_dir, "store.zip", omit={"employee"})
        result = pipeline.process_archive(archive)
        assert result.state is ArchiveState.FAILED
        assert "employee" in result.error
        assert archive.exists()
        assert not config.paths.output_path.exists()
        assert not (config.paths.work_path / "store").exists()

    def test_bad_numeric_fails_and_keeps_archive(self, pipeline, config, archive_dir, make_archive):
        archive = make_archive(
            archive_dir, "store.zip",
            final_fields=FINAL_TEXT_FIELDS,
            final_rows=[("E1", "2024-01-15 10:00:00", "abc", "1", "1.0", "S-1")],
        )
        result = pipeline.process_archive(archive)
        assert result.state is ArchiveState.FAILED
        assert "units" in result.error
        assert archive.exists()
        assert not (config.paths.output_path / "store.xlsx").exists()

    def test_empty_units_cell_fails_and_keeps_archive(self, pipeline, config, archive_dir, make_archive):
        archive = make_archive(
            archive_dir, "store.zip",
            final_rows=[("E1", "2024-01-15 10:00:00", None, 2, "3.0000", "S-1")],
        )
        result = pipeline.process_archive(archive)
        assert result.state is ArchiveState.FAILED
        assert "units" in result.error
        assert archive.exists()
        assert not (config.paths.output_path / "store.xlsx").exists()

    def test_error_after_report_written_fails_archive_only(self, config, archive_dir, make_archive):
        class ExplodingDelete(FileSystem):
            def delete(self, path):
                raise RuntimeError("disk went away")

        make_archive(archive_dir, "a.zip")
        make_archive(archive_dir, "b.zip")
        pipeline = ArchivePipeline(config, fs=ExplodingDelete(config.paths.error_log_path))

        batch = pipeline.run_batch()

        assert [r.state for r in batch.results] == [ArchiveState.FAILED, ArchiveState.FAILED]
        assert batch.results[0].error == "disk went away"
        assert ArchiveState.WRITTEN not in batch.results[0].history

    def test_corrupt_zip_fails(self, pipeline, archive_dir):
        archive = archive_dir / "broken.zip"
        archive.write_bytes(b"not a zip file")
        result = pipeline.process_archive(archive)
        assert result.state is ArchiveState.FAILED
        assert archive.exists()

    def test_missing_table_error_names_table(self, pipeline, tmp_path, archive_dir, make_archive):
        archive = make_archive(archive_dir, "store.zip", omit={"today"})
        work_dir = tmp_path / "scratch"
        work_dir.mkdir()
        with pytest.raises(MissingTableError) as exc_info:
            pipeline._extract_tables(archive, work_dir)
        assert exc_info.value.table == "today"
        assert "store.zip" in str(exc_info.value)


# ============================================================================
# Dry run
# ============================================================================

class TestDryRun:

    def test_nothing_written_or_deleted(self, config, archive_dir, make_archive):
        written = make_archive(archive_dir, "store.zip")
        skipped = make_archive(archive_dir, "5001-rx.zip")
        blank = make_archive(archive_dir, "empty.zip", final_rows=[])

        batch = ArchivePipeline(config, dry_run=True).run_batch()

        assert batch.dry_run
        by_name = {r.name: r for r in batch.results}
        assert by_name["store.zip"].state is ArchiveState.WRITTEN
        assert by_name["store.zip"].output_path == config.paths.output_path / "store.xlsx"
        assert by_name["5001-rx.zip"].state is ArchiveState.SKIPPED
        assert by_name["empty.zip"].state is ArchiveState.BLANK
        assert written.exists() and skipped.exists() and blank.exists()
        assert not (config.paths.output_path / "store.xlsx").exists()
        assert not config.paths.error_log_path.exists()


# ============================================================================
# Batch
# ============================================================================

class TestRunBatch:

    def test_archives_processed_in_sorted_order(self, pipeline, archive_dir, make_archive):
        for name in ["c.zip", "a.zip", "b.zip"]:
            make_archive(archive_dir, name)
        (archive_dir / "notes.txt").write_text("ignore me", encoding="utf-8")

        batch = pipeline.run_batch()

        assert [r.name for r in batch.results] == ["a.zip", "b.zip", "c.zip"]
        assert batch.count(ArchiveState.WRITTEN) == 3
        assert not batch.has_failures
        assert batch.completed_at >= batch.started_at

    def test_one_failure_does_not_stop_batch(self, pipeline, archive_dir, make_archive):
        make_archive(archive_dir, "a.zip", omit={"final"})
        make_archive(archive_dir, "b.zip")

        batch = pipeline.run_batch()

        assert batch.state_counts == {"failed": 1, "written": 1}
        assert [r.name for r in batch.failed] == ["a.zip"]
        assert batch.has_failures

    def test_rerun_picks_up_only_kept_archives(self, pipeline, archive_dir, make_archive):
        make_archive(archive_dir, "a.zip")
        make_archive(archive_dir, "b.zip", final_rows=[])

        first = pipeline.run_batch()
        second = pipeline.run_batch()

        assert [r.state for r in first.results] == [ArchiveState.WRITTEN, ArchiveState.BLANK]
        assert [r.name for r in second.results] == ["b.zip"]
        assert second.results[0].state is ArchiveState.BLANK

    def test_explicit_archive_dir(self, pipeline, tmp_path, make_archive):
        other = tmp_path / "other"
        other.mkdir()
        make_archive(other, "x.zip")
        batch = pipeline.run_batch(other)
        assert [r.name for r in batch.results] == ["x.zip"]

    def test_missing_archive_dir_raises(self, pipeline, tmp_path):
        with pytest.raises(FileNotFoundError):
            pipeline.run_batch(tmp_path / "missing")

    def test_same_input_same_report(self, config, tmp_path, make_archive):
        first_dir = tmp_path / "run1"
        second_dir = tmp_path / "run2"
        first_dir.mkdir()
        second_dir.mkdir()
        make_archive(first_dir, "store.zip", final_rows=DEFAULT_FINAL_ROWS)
        make_archive(second_dir, "store.zip", final_rows=DEFAULT_FINAL_ROWS)

        pipeline = ArchivePipeline(config)
        first = _rows(pipeline.run_batch(first_dir).results[0].output_path)
        second = _rows(pipeline.run_batch(second_dir).results[0].output_path)
        assert first == second


class TestBatchResult:

    def test_empty(self):
        batch = BatchResult()
        assert batch.duration_seconds == 0.0
        assert batch.state_counts == {}
        assert not batch.has_failures

    def test_duration(self):
        batch = BatchResult(
            started_at=datetime(2024, 1, 15, 10, 0, 0),
            completed_at=datetime(2024, 1, 15, 10, 0, 30),
        )
        assert batch.duration_seconds == 30.0
