"""
Production Extractor -- Configuration Module

Centralizes all configuration for the production summary batch job.
Loads defaults from dataclasses, then overlays any overrides from config.yaml.

Usage:
    from production_extractor.config import get_config
    cfg = get_config()                         # loads config.yaml if present
    cfg = get_config("path/to/custom.yaml")    # loads a specific file
    print(cfg.paths.resolve(cfg.paths.archive_dir))
    print(cfg.archive.skip_prefixes)           # ['0002-', '5001-']
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

# ---------------------------------------------------------------------------
# Path constants -- everything relative to the project root
# ---------------------------------------------------------------------------
_THIS_DIR = Path(__file__).resolve().parent          # production_extractor/
PROJECT_ROOT = _THIS_DIR.parent                       # repository root
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config.yaml"


# ===================================================================
# 1. Filesystem Paths
# ===================================================================

@dataclass
class PathsConfig:
    """Input, output and scratch locations (relative to project root unless absolute)."""
    archive_dir: str = "data/archives"
    output_dir: str = "output/reports"
    work_dir: str = "output/work"
    error_log: str = "output/errors.txt"
    log_file: str = "output/production_extractor.log"

    def resolve(self, rel_path: str | Path) -> Path:
        p = Path(rel_path)
        if not p.is_absolute():
            p = PROJECT_ROOT / p
        return p

    @property
    def archive_path(self) -> Path:
        return self.resolve(self.archive_dir)

    @property
    def output_path(self) -> Path:
        return self.resolve(self.output_dir)

    @property
    def work_path(self) -> Path:
        return self.resolve(self.work_dir)

    @property
    def error_log_path(self) -> Path:
        return self.resolve(self.error_log)

    @property
    def log_file_path(self) -> Path:
        return self.resolve(self.log_file)

    def ensure_dirs(self) -> None:
        """Create output directories if they don't exist."""
        for d in (self.output_path, self.work_path):
            d.mkdir(parents=True, exist_ok=True)
        for f in (self.error_log_path, self.log_file_path):
            f.parent.mkdir(parents=True, exist_ok=True)


# ===================================================================
# 2. Archive Selection & Extraction
# ===================================================================

@dataclass
class ArchiveConfig:
    """Which archives to pick up, which to discard, and what to pull out of them."""
    pattern: str = "*.zip"

    # Archives from this vendor/category never carry production data.
    # Both conditions must hold: prefix match AND marker present.
    skip_prefixes: list[str] = field(default_factory=lambda: ["0002-", "5001-"])
    skip_marker: str = "rx"

    # Logical table name -> entry name inside the archive.
    tables: dict[str, str] = field(default_factory=lambda: {
        "final": "final.dbf",
        "employee": "employee.dbf",
        "today": "today.dbf",
    })

    # Character encoding for DBF / CSV text fields.
    table_encoding: str = "cp1252"


# ===================================================================
# 3. Metadata Resolution
# ===================================================================

@dataclass
class MetadataConfig:
    """Where invoice date and store number come from."""
    # Vendor whose archive names carry store number and date.
    override_keyword: str = "Kelley"
    store_prefix_length: int = 9

    # Positions in the first row of the ``today`` extract.
    invoice_date_column: int = 0
    store_number_column: int = 6


# ===================================================================
# 4. Report Output
# ===================================================================

@dataclass
class ReportConfig:
    """Spreadsheet output settings."""
    sheet_name: str = "Employee Summary"
    file_suffix: str = ".xlsx"
    # Display text for employees missing from the employee extract.
    unknown_name_placeholder: str = ""


# ===================================================================
# Master Config
# ===================================================================

@dataclass
class AppConfig:
    """Top-level configuration container for the Production Extractor."""
    paths: PathsConfig = field(default_factory=PathsConfig)
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


# ===================================================================
# YAML Loading
# ===================================================================

def _apply_yaml_to_config(cfg: AppConfig, data: dict) -> None:
    """Apply a parsed YAML dict onto an AppConfig instance."""

    # --- tables merge rather than replace, so one entry can be renamed ---
    archive_data = data.get("archive")
    if isinstance(archive_data, dict) and isinstance(archive_data.get("tables"), dict):
        cfg.archive.tables.update(
            {str(k): str(v) for k, v in archive_data["tables"].items()}
        )

    _section_map = {
        "paths": cfg.paths,
        "archive": cfg.archive,
        "metadata": cfg.metadata,
        "report": cfg.report,
    }

    for section_key, section_obj in _section_map.items():
        if section_key in data and isinstance(data[section_key], dict):
            for attr, val in data[section_key].items():
                if attr == "tables" and section_obj is cfg.archive:
                    continue
                if hasattr(section_obj, attr):
                    setattr(section_obj, attr, val)


def get_config(yaml_path: Optional[str | Path] = None) -> AppConfig:
    """Build an AppConfig, optionally overlaying values from a YAML file.

    Args:
        yaml_path: Path to a config.yaml file.  If None, looks for the
                   default config.yaml at the project root.  If that file
                   doesn't exist, returns pure defaults.

    Returns:
        Fully populated AppConfig instance.

    Raises:
        FileNotFoundError: An explicit *yaml_path* was given but is missing.
    """
    cfg = AppConfig()

    if yaml_path is not None:
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
    else:
        path = DEFAULT_CONFIG_PATH

    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        _apply_yaml_to_config(cfg, data)

    return cfg
