"""Employee id -> (last name, first name) lookup built from the ``employee`` extract."""

from __future__ import annotations

import logging
from typing import Iterable

from .models import EmployeeRecord

logger = logging.getLogger(__name__)

EmployeeIndex = dict[str, tuple[str, str]]


def build_employee_index(records: Iterable[EmployeeRecord]) -> EmployeeIndex:
    """Map each employee id to the names on its *last* row.

    Rows sharing an id overwrite earlier ones in input order, so the
    highest row position wins regardless of how the names sort.
    """
    index: EmployeeIndex = {}
    duplicates = 0
    for rec in records:
        emp_id = rec.emp_id.strip()
        if not emp_id:
            continue
        if emp_id in index:
            duplicates += 1
        index[emp_id] = (rec.last_name, rec.first_name)

    logger.debug(
        "Employee index: %d ids (%d duplicate rows overwritten)",
        len(index), duplicates,
    )
    return index


def resolve_names(index: EmployeeIndex, emp_id: str) -> tuple[str, str]:
    """Return ``(last_name, first_name)`` for *emp_id*, empty strings if unknown."""
    return index.get(emp_id.strip(), ("", ""))
