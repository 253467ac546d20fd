"""Production Extractor - Summary spreadsheet writer.

Writes one ``.xlsx`` workbook per archive with a single
``Employee Summary`` sheet.  Column order, headers and number formats
are fixed by :data:`REPORT_COLUMNS`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import openpyxl
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from .models import SENTINEL_DATE, EmployeeSummary

logger = logging.getLogger(__name__)

QTY_FORMAT = "#,##0.0000"
AVG_FORMAT = "0.00"
COUNT_FORMAT = "0"
DATE_FORMAT = "mm/dd/yy"


@dataclass(frozen=True)
class ReportColumn:
    """One output column: header text, value getter, optional number format."""
    header: str
    getter: Callable[[EmployeeSummary], Any]
    number_format: Optional[str] = None
    width: int = 12


def _invoice_date(s: EmployeeSummary):
    return None if s.invoice_date == SENTINEL_DATE else s.invoice_date


REPORT_COLUMNS: tuple[ReportColumn, ...] = (
    ReportColumn("Employee", lambda s: s.employee_id),
    ReportColumn("Count_Record", lambda s: s.record_count, COUNT_FORMAT),
    ReportColumn("Total_Ext_Qty", lambda s: s.total_extended_qty, QTY_FORMAT, 16),
    ReportColumn("Total_Ext_Price", lambda s: s.total_extended_price, QTY_FORMAT, 16),
    ReportColumn("EMP_ID", lambda s: s.employee_id),
    ReportColumn("LAST_NAME", lambda s: s.last_name, width=18),
    ReportColumn("FIRST_NAME", lambda s: s.first_name, width=18),
    ReportColumn("INV_DATE", _invoice_date, DATE_FORMAT),
    ReportColumn("STORE_NUM", lambda s: s.store_number),
    ReportColumn("SERIAL", lambda s: s.last_serial, width=16),
    ReportColumn("AVG_DELTA", lambda s: s.avg_gap_minutes, AVG_FORMAT),
    ReportColumn("GAP5_COUNT", lambda s: s.gap5_count, COUNT_FORMAT),
    ReportColumn("GAP10_COUNT", lambda s: s.gap10_count, COUNT_FORMAT),
    ReportColumn("GAP15_COUNT", lambda s: s.gap15_count, COUNT_FORMAT),
)

_NAME_HEADERS = frozenset({"LAST_NAME", "FIRST_NAME"})


class ReportWriter:
    """Serializes :class:`EmployeeSummary` rows to an XLSX workbook."""

    def __init__(
        self,
        sheet_name: str = "Employee Summary",
        unknown_name_placeholder: str = "",
    ) -> None:
        self.sheet_name = sheet_name
        self.unknown_name_placeholder = unknown_name_placeholder

    def write(
        self,
        output_path: str | Path,
        summaries: Sequence[EmployeeSummary],
        columns: Sequence[ReportColumn] = REPORT_COLUMNS,
    ) -> Path:
        """Write *summaries* to *output_path*, replacing any existing file.

        Returns:
            The path written.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = self.sheet_name

        bold = Font(bold=True)
        for col_idx, column in enumerate(columns, start=1):
            cell = ws.cell(row=1, column=col_idx, value=column.header)
            cell.font = bold
            ws.column_dimensions[get_column_letter(col_idx)].width = column.width

        for row_idx, summary in enumerate(summaries, start=2):
            for col_idx, column in enumerate(columns, start=1):
                value = column.getter(summary)
                if column.header in _NAME_HEADERS and not value:
                    value = self.unknown_name_placeholder or None
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                if column.number_format and value is not None:
                    cell.number_format = column.number_format

        ws.freeze_panes = "A2"
        wb.save(output_path)
        wb.close()

        logger.info("Wrote %d rows to %s", len(summaries), output_path.name)
        return output_path
