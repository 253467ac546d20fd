"""Data models for the Production Extractor.

All models are plain dataclasses with type hints.  Input rows are frozen
once read; per-archive results are built fresh for every archive and
dropped after its report is written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

# Stand-in invoice date when the ``today`` extract has no usable date.
SENTINEL_DATE: date = date.min


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class GateDecision(Enum):
    """What the archive gate decided for a single archive file."""

    SKIP_AND_DELETE = "skip_and_delete"
    PROCESS = "process"


class ArchiveState(Enum):
    """Lifecycle states of one archive as it moves through the pipeline.

    Happy path: PENDING -> GATED -> EXTRACTED -> ENRICHED -> WRITTEN.
    PENDING may end in SKIPPED, ENRICHED may end in BLANK, and any state
    after GATED may end in FAILED.
    """

    PENDING = "pending"
    GATED = "gated"
    EXTRACTED = "extracted"
    ENRICHED = "enriched"
    WRITTEN = "written"
    SKIPPED = "skipped"
    BLANK = "blank"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({
    ArchiveState.WRITTEN,
    ArchiveState.SKIPPED,
    ArchiveState.BLANK,
    ArchiveState.FAILED,
})


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RawRecord:
    """One row of the ``final`` extract.

    Numeric and time fields keep the value exactly as the table reader
    returned it; :mod:`aggregation` parses them so a bad value fails the
    archive instead of being coerced at load time.
    """

    employee: str
    time: Any = None
    units: Any = None
    quantity2: Any = None
    price: Any = None
    serial: str = ""


@dataclass(frozen=True)
class EmployeeRecord:
    """One row of the ``employee`` extract."""

    emp_id: str
    last_name: str = ""
    first_name: str = ""


@dataclass(frozen=True)
class ArchiveMetadata:
    """Per-archive invoice date and store number."""

    invoice_date: date = SENTINEL_DATE
    store_number: str = ""

    @property
    def has_invoice_date(self) -> bool:
        """False when the date fell back to the sentinel."""
        return self.invoice_date != SENTINEL_DATE

    @property
    def invoice_date_text(self) -> str:
        """Invoice date rendered as ``MM/dd/yy``, e.g. ``01/15/24``."""
        return self.invoice_date.strftime("%m/%d/%y")


# ---------------------------------------------------------------------------
# Output records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EmployeeSummary:
    """Aggregated production figures for one employee in one archive."""

    employee_id: str
    record_count: int
    total_extended_qty: Decimal
    total_extended_price: Decimal
    last_name: str = ""
    first_name: str = ""
    invoice_date: date = SENTINEL_DATE
    store_number: str = ""
    last_serial: str = ""
    avg_gap_minutes: float = 0.0
    gap5_count: int = 0
    gap10_count: int = 0
    gap15_count: int = 0

    @property
    def has_name(self) -> bool:
        return bool(self.last_name or self.first_name)


@dataclass
class ArchiveResult:
    """Outcome of running one archive through the pipeline."""

    archive: Path
    state: ArchiveState = ArchiveState.PENDING
    history: list[ArchiveState] = field(default_factory=lambda: [ArchiveState.PENDING])
    summary_count: int = 0
    output_path: Path | None = None
    error: str = ""
    deleted: bool = False

    @property
    def name(self) -> str:
        return self.archive.name

    def advance(self, state: ArchiveState) -> None:
        """Move to *state*, recording it in the history."""
        if self.state.is_terminal:
            raise RuntimeError(
                f"{self.name}: cannot leave terminal state {self.state.value}"
            )
        self.state = state
        self.history.append(state)

    def fail(self, error: BaseException | str) -> None:
        self.error = str(error)
        self.advance(ArchiveState.FAILED)
