"""Production Extractor - per-employee production summaries from POS archives.

Dataclasses for extract rows, archive metadata and employee summaries,
plus the pipeline that turns a directory of nightly archives into one
summary workbook per archive.
"""

from .models import (
    SENTINEL_DATE,
    ArchiveMetadata,
    ArchiveResult,
    ArchiveState,
    EmployeeRecord,
    EmployeeSummary,
    GateDecision,
    RawRecord,
)

from .pipeline import ArchivePipeline, BatchResult

__all__ = [
    "SENTINEL_DATE",
    "ArchiveMetadata",
    "ArchivePipeline",
    "ArchiveResult",
    "ArchiveState",
    "BatchResult",
    "EmployeeRecord",
    "EmployeeSummary",
    "GateDecision",
    "RawRecord",
]
