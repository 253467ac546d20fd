"""Production Extractor -- Pipeline Orchestrator.

Runs every archive in the archive directory through:

    1. Gate          skip-and-delete excluded vendor archives
    2. Extract       pull final / employee / today out of the zip
    3. Resolve       invoice date + store number
    4. Index         employee id -> names
    5. Aggregate     per-employee sums and gap statistics
    6. Write         one summary workbook per archive, then delete the archive
                     (or log the archive as blank and keep it)

Each archive is isolated: whatever goes wrong with one is recorded on its
:class:`ArchiveResult` and the batch moves on to the next.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from . import archive_gate
from .aggregation import aggregate
from .archive_store import ArchiveStore
from .config import AppConfig
from .data_loader import load_employee_records, load_raw_records
from .employee_index import build_employee_index
from .exceptions import MissingTableError, ProductionExtractorError
from .filesystem import FileSystem
from .metadata_resolver import resolve_metadata
from .models import ArchiveResult, ArchiveState, EmployeeSummary, GateDecision
from .report_writer import ReportWriter
from .table_reader import Table, TableReader

logger = logging.getLogger(__name__)

BLANK_ARCHIVE_MESSAGE = "Zip File Is Blank: {name}"


# ---------------------------------------------------------------------------
# Batch Result
# ---------------------------------------------------------------------------

@dataclass
class BatchResult:
    """Container for one batch run over the archive directory."""

    results: list[ArchiveResult] = field(default_factory=list)
    dry_run: bool = False

    # Timing
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def duration_seconds(self) -> float:
        """Batch execution time in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0

    def count(self, state: ArchiveState) -> int:
        return sum(1 for r in self.results if r.state is state)

    @property
    def state_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for r in self.results:
            counts[r.state.value] = counts.get(r.state.value, 0) + 1
        return counts

    @property
    def failed(self) -> list[ArchiveResult]:
        return [r for r in self.results if r.state is ArchiveState.FAILED]

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class ArchivePipeline:
    """Processes archives one at a time according to an :class:`AppConfig`.

    Collaborators default to the real implementations and can be swapped
    out for tests.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        store: Optional[ArchiveStore] = None,
        reader: Optional[TableReader] = None,
        writer: Optional[ReportWriter] = None,
        fs: Optional[FileSystem] = None,
        dry_run: bool = False,
    ) -> None:
        self.config = config
        self.store = store or ArchiveStore()
        self.reader = reader or TableReader(encoding=config.archive.table_encoding)
        self.writer = writer or ReportWriter(
            sheet_name=config.report.sheet_name,
            unknown_name_placeholder=config.report.unknown_name_placeholder,
        )
        self.fs = fs or FileSystem(config.paths.error_log_path)
        self.dry_run = dry_run

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def run_batch(self, archive_dir: str | Path | None = None) -> BatchResult:
        """Process every archive in *archive_dir* (config default if None)."""
        batch = BatchResult(dry_run=self.dry_run, started_at=datetime.now())
        root = Path(archive_dir) if archive_dir else self.config.paths.archive_path

        archives = self.fs.list_archives(root, self.config.archive.pattern)
        logger.info("Found %d archives in %s", len(archives), root)

        for archive in archives:
            batch.results.append(self.process_archive(archive))

        batch.completed_at = datetime.now()
        logger.info(
            "Batch complete in %.1f seconds: %s",
            batch.duration_seconds, batch.state_counts,
        )
        return batch

    # ------------------------------------------------------------------
    # Single archive
    # ------------------------------------------------------------------

    def process_archive(self, archive: str | Path) -> ArchiveResult:
        """Run one archive through the state machine.  Never raises."""
        archive = Path(archive)
        result = ArchiveResult(archive=archive)

        decision = archive_gate.decide_with_config(archive.name, self.config.archive)
        if decision is GateDecision.SKIP_AND_DELETE:
            result.advance(ArchiveState.SKIPPED)
            logger.info("Skipping excluded archive %s", archive.name)
            print(f"Skipped: {archive.name}")
            if not self.dry_run:
                result.deleted = self.fs.delete(archive)
            return result

        result.advance(ArchiveState.GATED)
        work_dir: Path | None = None
        try:
            work_dir = self.fs.prepare_work_dir(self.config.paths.work_path, archive)
            tables = self._extract_tables(archive, work_dir)
            result.advance(ArchiveState.EXTRACTED)

            summaries = self._enrich(archive, tables)
            result.summary_count = len(summaries)
            result.advance(ArchiveState.ENRICHED)

            if summaries:
                self._write(result, summaries)
            else:
                self._report_blank(result)

        except MissingTableError as exc:
            logger.error("%s", exc)
            print(f"Failed: {archive.name} -- {exc}")
            result.fail(exc)
        except ProductionExtractorError as exc:
            logger.error("Data error in %s: %s", archive.name, exc)
            print(f"Failed: {archive.name} -- {exc}")
            result.fail(exc)
        except Exception as exc:
            logger.exception("Unexpected error processing %s", archive.name)
            print(f"Failed: {archive.name} -- {exc}")
            result.fail(exc)
        finally:
            if work_dir is not None:
                self.fs.remove_dir(work_dir)

        return result

    def _extract_tables(self, archive: Path, work_dir: Path) -> dict[str, Table]:
        """Extract and read every configured table, failing on the first missing one."""
        tables: dict[str, Table] = {}
        for table_name, entry_name in self.config.archive.tables.items():
            path = self.store.extract(archive, entry_name, work_dir)
            if path is None:
                raise MissingTableError(archive, table_name)
            tables[table_name] = self.reader.read(path)
        return tables

    def _enrich(self, archive: Path, tables: dict[str, Table]) -> list[EmployeeSummary]:
        metadata = resolve_metadata(
            tables["today"].first_row, archive.name, self.config.metadata,
        )
        if not metadata.has_invoice_date:
            logger.warning("%s: invoice date unparseable, using sentinel", archive.name)

        index = build_employee_index(load_employee_records(tables["employee"]))
        records = load_raw_records(tables["final"])
        return aggregate(records, index, metadata)

    def _write(self, result: ArchiveResult, summaries: list[EmployeeSummary]) -> None:
        archive = result.archive
        output_path = self.output_path_for(archive)
        if self.dry_run:
            logger.info("[DRY RUN] Would write %d rows to %s", len(summaries), output_path)
            result.output_path = output_path
            result.advance(ArchiveState.WRITTEN)
            return

        result.output_path = self.writer.write(output_path, summaries)
        print(f"Processed: {archive.name} -> {output_path.name} ({len(summaries)} employees)")
        result.deleted = self.fs.delete(archive)
        result.advance(ArchiveState.WRITTEN)

    def _report_blank(self, result: ArchiveResult) -> None:
        message = BLANK_ARCHIVE_MESSAGE.format(name=result.name)
        logger.warning(message)
        print(message)
        if not self.dry_run:
            self.fs.append_error(message)
        result.advance(ArchiveState.BLANK)

    def output_path_for(self, archive: Path) -> Path:
        return self.config.paths.output_path / f"{archive.stem}{self.config.report.file_suffix}"
