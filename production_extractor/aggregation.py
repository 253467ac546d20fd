"""
Aggregation Engine

Groups ``final`` rows by employee and computes, per employee:

    record_count          number of rows
    total_extended_qty    sum(units * quantity2)
    total_extended_price  sum(price * units * quantity2)
    avg_gap_minutes       mean time between consecutive timestamped rows
    gap5/10/15_count      gaps of at least 5 / 10 / 15 minutes

Sums use ``Decimal`` throughout.  A quantity or price that is not a
number fails the whole archive with :class:`NumericConversionError`; a
timestamp that cannot be read only drops out of the gap statistics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Sequence

from .employee_index import EmployeeIndex, resolve_names
from .exceptions import NumericConversionError
from .models import ArchiveMetadata, EmployeeSummary, RawRecord

logger = logging.getLogger(__name__)

# Gap thresholds in minutes.  A single gap can count toward all three.
GAP_THRESHOLDS: tuple[int, int, int] = (5, 10, 15)

# Anchor for time-of-day values so they can be sorted and subtracted.
_TIME_ONLY_ANCHOR = date(1900, 1, 1)

_TIMESTAMP_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%y %H:%M:%S",
    "%Y%m%d%H%M%S",
)

_TIME_OF_DAY_FORMATS: tuple[str, ...] = (
    "%H:%M:%S",
    "%H:%M",
    "%I:%M:%S %p",
    "%I:%M %p",
)


# ---------------------------------------------------------------------------
# Field parsing
# ---------------------------------------------------------------------------

def to_decimal(value: Any, field: str, employee: str = "") -> Decimal:
    """Convert a numeric extract field to ``Decimal``.

    An empty field (``None``) fails like any other non-number.  Floats go
    through ``str`` so ``0.1`` stays ``Decimal("0.1")``.

    Raises:
        NumericConversionError: *value* is not a finite number.
    """
    if value is None or isinstance(value, bool):
        raise NumericConversionError(field, value, employee)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        s = str(value).strip().replace(",", "")
        try:
            result = Decimal(s)
        except InvalidOperation:
            raise NumericConversionError(field, value, employee) from None

    if not result.is_finite():
        raise NumericConversionError(field, value, employee)
    return result


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a ``time`` field, returning None when it cannot be read.

    Time-of-day values are pinned to a fixed date so rows from the same
    export still sort and subtract correctly.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, time):
        return datetime.combine(_TIME_ONLY_ANCHOR, value)

    s = str(value).strip()
    if not s:
        return None
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    for fmt in _TIME_OF_DAY_FORMATS:
        try:
            return datetime.combine(_TIME_ONLY_ANCHOR, datetime.strptime(s, fmt).time())
        except ValueError:
            continue
    return None


# ---------------------------------------------------------------------------
# Gap statistics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GapStats:
    """Time-gap statistics for one employee."""
    avg_minutes: float = 0.0
    gap5_count: int = 0
    gap10_count: int = 0
    gap15_count: int = 0


def compute_gap_stats(times: Iterable[datetime]) -> GapStats:
    """Compute gap statistics over a set of timestamps.

    Timestamps are sorted first; gaps are the differences between
    neighbours.  Fewer than two timestamps means no gaps and an
    average of ``0.0``.

    >>> from datetime import datetime as dt
    >>> compute_gap_stats([dt(2024, 1, 1, 10, 0), dt(2024, 1, 1, 10, 6),
    ...                    dt(2024, 1, 1, 10, 20)])
    GapStats(avg_minutes=10.0, gap5_count=2, gap10_count=1, gap15_count=0)
    """
    ordered = sorted(times)
    gaps = [
        (ordered[i] - ordered[i - 1]).total_seconds() / 60.0
        for i in range(1, len(ordered))
    ]
    if not gaps:
        return GapStats()

    t5, t10, t15 = GAP_THRESHOLDS
    return GapStats(
        avg_minutes=sum(gaps) / len(gaps),
        gap5_count=sum(1 for g in gaps if g >= t5),
        gap10_count=sum(1 for g in gaps if g >= t10),
        gap15_count=sum(1 for g in gaps if g >= t15),
    )


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------

def group_by_employee(records: Iterable[RawRecord]) -> dict[str, list[RawRecord]]:
    """Group records by stripped employee id, dropping blank ids.

    Dict order is the first-appearance order of each id.
    """
    groups: dict[str, list[RawRecord]] = {}
    dropped = 0
    for rec in records:
        emp_id = (rec.employee or "").strip()
        if not emp_id:
            dropped += 1
            continue
        groups.setdefault(emp_id, []).append(rec)

    if dropped:
        logger.debug("Dropped %d rows with a blank employee id", dropped)
    return groups


def summarize_group(
    employee_id: str,
    rows: Sequence[RawRecord],
    index: EmployeeIndex,
    metadata: ArchiveMetadata,
) -> EmployeeSummary:
    """Build the :class:`EmployeeSummary` for one employee's rows."""
    total_qty = Decimal(0)
    total_price = Decimal(0)
    times: list[datetime] = []

    for rec in rows:
        units = to_decimal(rec.units, "units", employee_id)
        quantity2 = to_decimal(rec.quantity2, "quantity2", employee_id)
        price = to_decimal(rec.price, "price", employee_id)
        extended = units * quantity2
        total_qty += extended
        total_price += price * extended

        ts = parse_timestamp(rec.time)
        if ts is not None:
            times.append(ts)

    gaps = compute_gap_stats(times)
    last_name, first_name = resolve_names(index, employee_id)

    return EmployeeSummary(
        employee_id=employee_id,
        record_count=len(rows),
        total_extended_qty=total_qty,
        total_extended_price=total_price,
        last_name=last_name,
        first_name=first_name,
        invoice_date=metadata.invoice_date,
        store_number=metadata.store_number,
        last_serial=rows[-1].serial,
        avg_gap_minutes=gaps.avg_minutes,
        gap5_count=gaps.gap5_count,
        gap10_count=gaps.gap10_count,
        gap15_count=gaps.gap15_count,
    )


def aggregate(
    records: Iterable[RawRecord],
    index: EmployeeIndex,
    metadata: ArchiveMetadata,
) -> list[EmployeeSummary]:
    """Summarize ``final`` rows per employee.

    Args:
        records: Rows of the ``final`` extract in file order.
        index: Employee name lookup from :func:`build_employee_index`.
        metadata: Invoice date and store number stamped on every summary.

    Returns:
        One summary per distinct non-blank employee id, in order of first
        appearance.  Empty when no row has an employee id.

    Raises:
        NumericConversionError: a ``units``, ``quantity2`` or ``price``
            value is not a number.
    """
    groups = group_by_employee(records)
    summaries = [
        summarize_group(emp_id, rows, index, metadata)
        for emp_id, rows in groups.items()
    ]
    logger.debug("Aggregated %d employees", len(summaries))
    return summaries
