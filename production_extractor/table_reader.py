"""Production Extractor - Tabular extract reader.

Reads one extracted file into a :class:`Table` of ordered columns and
rows.  Rows can be indexed by position or by column name (names match
case-insensitively, since DBF field names arrive upper-cased).

Supported formats
~~~~~~~~~~~~~~~~~
* ``.dbf`` -- dBASE tables from the point-of-sale export, via ``dbfread``.
* ``.csv`` -- comma-separated with a header row, for hand-built fixtures
  and re-exports.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dbfread import DBF

from .exceptions import UnsupportedTableError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Table container
# ---------------------------------------------------------------------------

class TableRow(Sequence):
    """A single row, indexable by position or by column name."""

    __slots__ = ("_values", "_positions")

    def __init__(self, values: Sequence[Any], positions: dict[str, int]) -> None:
        self._values = tuple(values)
        self._positions = positions

    def __len__(self) -> int:
        return len(self._values)

    def __getitem__(self, key):
        if isinstance(key, str):
            try:
                return self._values[self._positions[key.lower()]]
            except KeyError:
                raise KeyError(key) from None
        return self._values[key]

    def get(self, name: str, default: Any = None) -> Any:
        idx = self._positions.get(name.lower())
        if idx is None or idx >= len(self._values):
            return default
        return self._values[idx]

    def __repr__(self) -> str:
        return f"TableRow({list(self._values)!r})"


@dataclass
class Table:
    """Ordered column names plus ordered rows."""

    columns: list[str] = field(default_factory=list)
    rows: list[TableRow] = field(default_factory=list)
    source: Optional[str] = None

    @classmethod
    def from_rows(
        cls,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        source: Optional[str] = None,
    ) -> Table:
        positions = _positions(columns)
        return cls(
            columns=list(columns),
            rows=[TableRow(r, positions) for r in rows],
            source=source,
        )

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[TableRow]:
        return iter(self.rows)

    @property
    def first_row(self) -> Optional[TableRow]:
        return self.rows[0] if self.rows else None

    def has_column(self, name: str) -> bool:
        return name.lower() in {c.lower() for c in self.columns}


def _positions(columns: Sequence[str]) -> dict[str, int]:
    """Lower-cased column name -> position.  First occurrence wins."""
    positions: dict[str, int] = {}
    for idx, name in enumerate(columns):
        positions.setdefault(str(name).strip().lower(), idx)
    return positions


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------

class TableReader:
    """Reads extracted ``.dbf`` / ``.csv`` files into :class:`Table` objects."""

    def __init__(self, encoding: str = "cp1252") -> None:
        self.encoding = encoding

    def read(self, path: str | Path) -> Table:
        """Read *path* into a Table.

        Raises:
            FileNotFoundError: *path* does not exist.
            UnsupportedTableError: the suffix is neither ``.dbf`` nor ``.csv``.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Table file not found: {path}")

        suffix = path.suffix.lower()
        if suffix == ".dbf":
            table = self._read_dbf(path)
        elif suffix == ".csv":
            table = self._read_csv(path)
        else:
            raise UnsupportedTableError(path)

        logger.debug(
            "Read %s: %d columns, %d rows", path.name, len(table.columns), len(table),
        )
        return table

    def _read_dbf(self, path: Path) -> Table:
        dbf = DBF(
            str(path),
            encoding=self.encoding,
            char_decode_errors="replace",
            ignore_missing_memofile=True,
        )
        columns = list(dbf.field_names)
        rows = [[record.get(name) for name in columns] for record in dbf]
        return Table.from_rows(columns, rows, source=str(path))

    def _read_csv(self, path: Path) -> Table:
        with open(path, "r", encoding=self.encoding, newline="") as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if header is None:
                return Table(source=str(path))
            columns = [h.strip() for h in header]
            rows = [r for r in reader if any(cell.strip() for cell in r)]
        return Table.from_rows(columns, rows, source=str(path))
