"""Filesystem housekeeping: work directories, archive deletion and the error log."""

from __future__ import annotations

import fnmatch
import logging
import shutil
import threading
from pathlib import Path

logger = logging.getLogger(__name__)


class FileSystem:
    """Local filesystem operations used by the pipeline.

    Deletions are best-effort: failures are logged and reported through
    the return value, never raised.
    """

    def __init__(self, error_log: str | Path) -> None:
        self.error_log = Path(error_log)
        self._log_lock = threading.Lock()

    def list_archives(self, archive_dir: str | Path, pattern: str = "*.zip") -> list[Path]:
        """Archives in *archive_dir* matching *pattern*, sorted by name.  Matching ignores case."""
        root = Path(archive_dir)
        if not root.is_dir():
            raise FileNotFoundError(f"Archive directory not found: {root}")
        wanted = pattern.lower()
        return sorted(
            p for p in root.iterdir()
            if p.is_file() and fnmatch.fnmatchcase(p.name.lower(), wanted)
        )

    def prepare_work_dir(self, work_root: str | Path, archive: str | Path) -> Path:
        """Return an empty work directory for *archive*, clearing leftovers."""
        work = Path(work_root) / Path(archive).stem
        if work.exists():
            shutil.rmtree(work)
        work.mkdir(parents=True)
        return work

    def remove_dir(self, path: str | Path) -> bool:
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            return True
        except OSError as exc:
            logger.warning("Could not remove work directory %s: %s", path, exc)
            return False
        return True

    def delete(self, path: str | Path) -> bool:
        """Delete a file.  Returns False (and logs) when the delete fails."""
        path = Path(path)
        try:
            path.unlink()
        except OSError as exc:
            logger.warning("Failed to delete %s: %s", path.name, exc)
            print(f"  Failed to delete {path.name}: {exc}")
            return False
        logger.info("Deleted %s", path.name)
        return True

    def append_error(self, message: str) -> None:
        """Append one line to the error log (single writer at a time)."""
        with self._log_lock:
            self.error_log.parent.mkdir(parents=True, exist_ok=True)
            with open(self.error_log, "a", encoding="utf-8") as f:
                f.write(message.rstrip("\n") + "\n")
