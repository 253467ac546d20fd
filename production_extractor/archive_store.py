"""Zip archive access: pull a single named extract out of an archive."""

from __future__ import annotations

import logging
import shutil
import zipfile
from pathlib import Path, PurePosixPath
from typing import Optional

logger = logging.getLogger(__name__)


class ArchiveStore:
    """Extracts named entries from point-of-sale zip archives."""

    @staticmethod
    def find_entry(zf: zipfile.ZipFile, entry_name: str) -> Optional[zipfile.ZipInfo]:
        """Return the first member whose base name matches *entry_name* (case-insensitive)."""
        wanted = entry_name.lower()
        for info in zf.infolist():
            if info.is_dir():
                continue
            if PurePosixPath(info.filename).name.lower() == wanted:
                return info
        return None

    def extract(
        self,
        archive_path: str | Path,
        entry_name: str,
        dest_dir: str | Path,
    ) -> Optional[Path]:
        """Extract *entry_name* from *archive_path* into *dest_dir*.

        The entry is written flat as ``dest_dir / entry_name`` (any folder
        inside the zip is dropped), overwriting a previous extraction.

        Returns:
            Path to the extracted file, or None if the archive has no
            such entry.

        Raises:
            zipfile.BadZipFile: *archive_path* is not a readable zip.
        """
        dest = Path(dest_dir)
        dest.mkdir(parents=True, exist_ok=True)

        with zipfile.ZipFile(archive_path) as zf:
            info = self.find_entry(zf, entry_name)
            if info is None:
                logger.debug("%s: no entry named %s", Path(archive_path).name, entry_name)
                return None

            target = dest / entry_name
            with zf.open(info) as src, open(target, "wb") as out:
                shutil.copyfileobj(src, out)

        logger.debug("Extracted %s -> %s", info.filename, target)
        return target
