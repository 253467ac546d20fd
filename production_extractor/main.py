"""Production Extractor -- Command-line entry point.

Converts nightly point-of-sale archive exports into per-employee
production summary spreadsheets:

    1. Load configuration (config.yaml or defaults)
    2. List archives in the archive directory
    3. Run each archive through the pipeline (see pipeline.py)
    4. Print summary: archives written, skipped, blank, failed

Usage::

    # From the project root:
    python -m production_extractor.main

    # With a custom config:
    python -m production_extractor.main --config path/to/custom.yaml

    # Override directories:
    python -m production_extractor.main --archive-dir D:/exports --output-dir D:/reports

    # Dry run (no reports, no deletions, no error log):
    python -m production_extractor.main --dry-run
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import yaml

from .config import AppConfig, get_config
from .models import ArchiveState
from .pipeline import ArchivePipeline, BatchResult

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def configure_logging(config: AppConfig, *, verbose: bool = False, log_file: bool = True) -> None:
    """Console logging at INFO (DEBUG with *verbose*), plus the configured log file."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        path = config.paths.log_file_path
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        handlers=handlers,
        force=True,
    )


# ---------------------------------------------------------------------------
# Summary Printer
# ---------------------------------------------------------------------------

def print_batch_summary(batch: BatchResult) -> None:
    """Print a human-readable summary of the batch run."""
    print()
    print("=" * 65)
    print("  Production Extractor -- Batch Summary"
          + ("  [DRY RUN]" if batch.dry_run else ""))
    print("=" * 65)
    print(f"  Archives found : {len(batch.results)}")
    print(f"  Written        : {batch.count(ArchiveState.WRITTEN)}")
    print(f"  Skipped        : {batch.count(ArchiveState.SKIPPED)}")
    print(f"  Blank          : {batch.count(ArchiveState.BLANK)}")
    print(f"  Failed         : {batch.count(ArchiveState.FAILED)}")
    print(f"  Duration       : {batch.duration_seconds:.1f}s")

    if batch.results:
        print("-" * 65)
        for r in batch.results:
            detail = r.error or (f"{r.summary_count} employees" if r.summary_count else "")
            print(f"  {r.state.value:<8s} {r.name:<40s} {detail}")
    print("=" * 65)


def exit_code_for(batch: BatchResult) -> int:
    """0 unless at least one archive failed; skipped and blank archives are not failures."""
    return 1 if batch.has_failures else 0


# ---------------------------------------------------------------------------
# CLI Entry Point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Production Extractor - per-employee summaries from POS archives",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m production_extractor.main\n"
            "  python -m production_extractor.main --archive-dir exports/\n"
            "  python -m production_extractor.main --config custom.yaml --dry-run\n"
            "  python -m production_extractor.main --verbose\n"
        ),
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config.yaml (default: project root config.yaml)",
    )
    parser.add_argument(
        "--archive-dir",
        type=str,
        default=None,
        help="Directory holding the zip archives (overrides config)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for summary workbooks (overrides config)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Aggregate only: no reports, no deletions, no error-log entries",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Log to the console only",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point for the production extractor.

    Returns:
        Exit code (0 = every archive handled, 1 = an archive failed or
        the run could not start).
    """
    args = build_parser().parse_args(argv)

    try:
        config = get_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"\nERROR: {exc}")
        return 1

    # Command-line directories are relative to the working directory.
    if args.archive_dir:
        config.paths.archive_dir = str(Path(args.archive_dir).resolve())
    if args.output_dir:
        config.paths.output_dir = str(Path(args.output_dir).resolve())

    configure_logging(config, verbose=args.verbose, log_file=not args.no_log_file)
    logger.info("=" * 65)
    logger.info("  Production Extractor")
    logger.info("=" * 65)

    try:
        if not args.dry_run:
            config.paths.ensure_dirs()
        pipeline = ArchivePipeline(config, dry_run=args.dry_run)
        batch = pipeline.run_batch()
    except FileNotFoundError as exc:
        logger.error("File not found: %s", exc)
        print(f"\nERROR: {exc}")
        return 1
    except Exception as exc:
        logger.exception("Unexpected error in batch")
        print(f"\nUNEXPECTED ERROR: {exc}")
        return 1

    print_batch_summary(batch)
    return exit_code_for(batch)


if __name__ == "__main__":
    sys.exit(main())
