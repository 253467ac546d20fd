"""
Metadata Resolver

Derives the invoice date and store number for an archive.

Default path reads both from the first row of the ``today`` extract
(column 0 = date, column 6 = store).  Archives from the Kelley vendor
carry the store number and date in the file name instead, e.g.
``Kelley-001122334-240115.zip``; for those the file name wins.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional, Sequence

from .config import MetadataConfig
from .data_loader import _clean_str
from .models import SENTINEL_DATE, ArchiveMetadata

logger = logging.getLogger(__name__)

# Six digits that are not part of a longer digit run.
_FILENAME_DATE_PATTERN = re.compile(r"(?<!\d)(\d{6})(?!\d)")

_DATE_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y-%m-%d",
    "%Y%m%d",
    "%m-%d-%Y",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",
)


def parse_invoice_date(val: Any) -> date:
    """Parse a ``today`` cell into a date, returning the sentinel on failure.

    Handles ``date`` / ``datetime`` objects from the DBF reader and the
    usual string renderings.  Never raises.
    """
    if val is None:
        return SENTINEL_DATE
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val

    s = str(val).strip()
    if not s:
        return SENTINEL_DATE
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue

    logger.debug("Unparseable invoice date %r -- using sentinel", val)
    return SENTINEL_DATE


def parse_filename_date(filename: str) -> Optional[date]:
    """Return the ``yyMMdd`` date embedded in *filename*, or None."""
    match = _FILENAME_DATE_PATTERN.search(filename)
    if match is None:
        return None
    try:
        return datetime.strptime(match.group(1), "%y%m%d").date()
    except ValueError:
        logger.debug("Digits %s in %s are not a yyMMdd date", match.group(1), filename)
        return None


def _cell(row: Optional[Sequence[Any]], idx: int) -> Any:
    if row is None or idx >= len(row):
        return None
    return row[idx]


def resolve_metadata(
    today_row: Optional[Sequence[Any]],
    filename: str | Path,
    cfg: Optional[MetadataConfig] = None,
) -> ArchiveMetadata:
    """Build :class:`ArchiveMetadata` for one archive.

    Args:
        today_row: First row of the ``today`` extract, indexable by
            position.  ``None`` when the extract has no rows.
        filename: The archive's file name (a path is reduced to its name).
        cfg: Column positions and override keyword; defaults if omitted.

    Returns:
        The resolved metadata.  A missing or unparseable date yields
        :data:`~production_extractor.models.SENTINEL_DATE`.
    """
    cfg = cfg or MetadataConfig()
    name = Path(filename).name

    invoice_date = parse_invoice_date(_cell(today_row, cfg.invoice_date_column))
    store_number = _clean_str(_cell(today_row, cfg.store_number_column))

    if cfg.override_keyword and cfg.override_keyword.lower() in name.lower():
        if len(name) >= cfg.store_prefix_length:
            store_number = name[:cfg.store_prefix_length].replace("-", "")

        filename_date = parse_filename_date(name)
        if filename_date is not None:
            invoice_date = filename_date

        logger.debug(
            "%s override for %s: store=%s date=%s",
            cfg.override_keyword, name, store_number, invoice_date,
        )

    return ArchiveMetadata(invoice_date=invoice_date, store_number=store_number)
