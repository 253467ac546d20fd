"""Production Extractor - Extract Data Loader.

Turns the three extracted tables into typed records:

+--------------+----------------------------------------------------------+
| Extract      | Becomes                                                  |
+==============+==========================================================+
| ``final``    | :class:`RawRecord` per production row                    |
| ``employee`` | :class:`EmployeeRecord` per roster row                   |
| ``today``    | first row only, read positionally by the metadata step   |
+--------------+----------------------------------------------------------+

Columns are mapped by *header text* through alias lists, so the loader
is resilient to column reordering and to DBF's upper-cased, 10-character
field names.

Usage::

    from production_extractor.data_loader import load_raw_records

    records = load_raw_records(TableReader().read("work/final.dbf"))
"""

from __future__ import annotations

import logging
from typing import Any

from .exceptions import MissingColumnError
from .models import EmployeeRecord, RawRecord
from .table_reader import Table, TableRow

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Column header aliases
# ---------------------------------------------------------------------------

_FINAL_HEADERS: dict[str, list[str]] = {
    "employee":  ["employee", "emp", "emp_id", "empid"],
    "time":      ["time", "timestamp", "datetime", "trans_time"],
    "units":     ["units", "unit"],
    "quantity2": ["quantity2", "qty2", "quantity"],
    "price":     ["price", "unit_price"],
    "serial":    ["serial", "serial_no", "serialno"],
}
_FINAL_REQUIRED = ("employee", "units", "quantity2", "price")

_EMPLOYEE_HEADERS: dict[str, list[str]] = {
    "emp_id":     ["empid", "emp_id", "employee", "id"],
    "last_name":  ["lastname", "last_name", "lname", "last"],
    "first_name": ["firstname", "first_name", "fname", "first"],
}
_EMPLOYEE_REQUIRED = ("emp_id",)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def load_raw_records(table: Table) -> list[RawRecord]:
    """Convert the ``final`` table into :class:`RawRecord` objects.

    Numeric and time fields are passed through untouched; the aggregation
    step owns their parsing.  Rows with a blank employee id are kept here
    and filtered during aggregation.

    Raises:
        MissingColumnError: a required column has no matching header.
    """
    header_map = _build_header_map(table, _FINAL_HEADERS, "final", _FINAL_REQUIRED)

    records = [
        RawRecord(
            employee=_clean_str(_cell_value(row, header_map, "employee")),
            time=_cell_value(row, header_map, "time"),
            units=_cell_value(row, header_map, "units"),
            quantity2=_cell_value(row, header_map, "quantity2"),
            price=_cell_value(row, header_map, "price"),
            serial=_clean_str(_cell_value(row, header_map, "serial")),
        )
        for row in table
    ]
    logger.info("Loaded %d production rows from final", len(records))
    return records


def load_employee_records(table: Table) -> list[EmployeeRecord]:
    """Convert the ``employee`` table into :class:`EmployeeRecord` objects, in row order."""
    header_map = _build_header_map(
        table, _EMPLOYEE_HEADERS, "employee", _EMPLOYEE_REQUIRED,
    )

    records = [
        EmployeeRecord(
            emp_id=_clean_str(_cell_value(row, header_map, "emp_id")),
            last_name=_clean_str(_cell_value(row, header_map, "last_name")),
            first_name=_clean_str(_cell_value(row, header_map, "first_name")),
        )
        for row in table
    ]
    logger.info("Loaded %d employee rows", len(records))
    return records


# ---------------------------------------------------------------------------
# Header map builder
# ---------------------------------------------------------------------------

def _build_header_map(
    table: Table,
    header_spec: dict[str, list[str]],
    table_name: str,
    required: tuple[str, ...] = (),
) -> dict[str, int]:
    """Map logical field names to 0-based column indices.

    Matches each column header against the known aliases in
    *header_spec*, case-insensitively.
    """
    header_map: dict[str, int] = {}
    headers = [str(c).strip().lower() for c in table.columns]

    for logical_name, aliases in header_spec.items():
        for alias in aliases:
            if alias.lower() in headers:
                header_map[logical_name] = headers.index(alias.lower())
                break

    for key in required:
        if key not in header_map:
            raise MissingColumnError(table_name, key, table.columns)

    logger.debug("Header map for %s (%d/%d): %s",
                 table_name, len(header_map), len(header_spec), list(header_map))
    return header_map


# ---------------------------------------------------------------------------
# Cell reading helpers
# ---------------------------------------------------------------------------

def _cell_value(row: TableRow, header_map: dict[str, int], field_name: str) -> Any:
    """Read a cell by logical field name; None if unmapped or past the row end."""
    idx = header_map.get(field_name)
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def _clean_str(val: Any) -> str:
    """Convert a cell value to a stripped string.  None becomes ``""``.

    Whole-number floats (DBF numeric id columns) lose their ``.0``.
    """
    if val is None:
        return ""
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val).strip()
