"""Production Extractor -- Exception types.

Every failure the pipeline treats as "this archive failed, move on" derives
from :class:`ProductionExtractorError`, so the orchestrator's per-archive
catch boundary can tell expected data problems apart from programming bugs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class ProductionExtractorError(Exception):
    """Base class for all per-archive data errors."""


class MissingTableError(ProductionExtractorError):
    """A required extract (``final``, ``employee``, ``today``) is not in the archive."""

    def __init__(self, archive: str | Path, table: str) -> None:
        self.archive = str(archive)
        self.table = table
        super().__init__(f"Required table '{table}' not found in {Path(archive).name}")


class MissingColumnError(ProductionExtractorError):
    """A required column is absent from an extract's header."""

    def __init__(self, table: str, column: str, columns: list[str]) -> None:
        self.table = table
        self.column = column
        self.columns = list(columns)
        super().__init__(
            f"Required column '{column}' not found in '{table}'. "
            f"Header row: {self.columns}"
        )


class NumericConversionError(ProductionExtractorError):
    """A quantity or price field holds a value that is not a number."""

    def __init__(self, field: str, value: Any, employee: str = "") -> None:
        self.field = field
        self.value = value
        self.employee = employee
        where = f" (employee {employee})" if employee else ""
        super().__init__(f"Cannot convert {field}={value!r} to a decimal{where}")


class UnsupportedTableError(ProductionExtractorError):
    """The table reader was handed a file type it does not understand."""

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        super().__init__(f"Unsupported table file type: {Path(path).name}")
