"""
Archive Gate

Decides, per archive file name, whether an archive is worth opening.

Archives whose name starts with one of the excluded vendor prefixes
(``0002-`` / ``5001-``) *and* mentions ``rx`` anywhere belong to a
category whose extracts never hold production data.  They are deleted
unopened; everything else is processed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from .config import ArchiveConfig
from .models import GateDecision

logger = logging.getLogger(__name__)

DEFAULT_SKIP_PREFIXES: tuple[str, ...] = ("0002-", "5001-")
DEFAULT_SKIP_MARKER: str = "rx"


def decide(
    filename: str | Path,
    skip_prefixes: Optional[Iterable[str]] = None,
    skip_marker: Optional[str] = None,
) -> GateDecision:
    """Return the gate decision for an archive.

    Args:
        filename: Archive file name (a full path is reduced to its name).
        skip_prefixes: Prefixes compared case-insensitively against the
            start of the name.  Defaults to ``0002-`` and ``5001-``.
        skip_marker: Substring that must also appear (case-insensitive).

    Examples:
        >>> decide("0002-RX-nightly.zip")
        <GateDecision.SKIP_AND_DELETE: 'skip_and_delete'>
        >>> decide("0002-store12.zip")
        <GateDecision.PROCESS: 'process'>
    """
    name = Path(filename).name.lower()
    prefixes = DEFAULT_SKIP_PREFIXES if skip_prefixes is None else tuple(skip_prefixes)
    marker = DEFAULT_SKIP_MARKER if skip_marker is None else skip_marker

    prefix_hit = any(name[:len(p)] == p.lower() for p in prefixes if p)
    if prefix_hit and marker and marker.lower() in name:
        logger.debug("Gate: %s matches exclusion rule", filename)
        return GateDecision.SKIP_AND_DELETE
    return GateDecision.PROCESS


def decide_with_config(filename: str | Path, archive_cfg: ArchiveConfig) -> GateDecision:
    """Gate an archive using the prefixes/marker from configuration."""
    return decide(
        filename,
        skip_prefixes=archive_cfg.skip_prefixes,
        skip_marker=archive_cfg.skip_marker,
    )
