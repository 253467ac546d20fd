"""Shared fixtures: configuration rooted in tmp_path, DBF and archive builders."""

import pytest

from production_extractor.config import AppConfig

from dbf_fixtures import build_archive, write_dbf


@pytest.fixture
def dbf_writer():
    return write_dbf


@pytest.fixture
def config(tmp_path) -> AppConfig:
    """Config with every path inside tmp_path."""
    cfg = AppConfig()
    cfg.paths.archive_dir = str(tmp_path / "archives")
    cfg.paths.output_dir = str(tmp_path / "reports")
    cfg.paths.work_dir = str(tmp_path / "work")
    cfg.paths.error_log = str(tmp_path / "errors.txt")
    cfg.paths.log_file = str(tmp_path / "run.log")
    (tmp_path / "archives").mkdir()
    return cfg


@pytest.fixture
def make_archive(tmp_path):
    """``make_archive(archive_dir, name, **options)`` -- see dbf_fixtures.build_archive."""
    def _make(archive_dir, name, **options):
        return build_archive(archive_dir, name, tmp_path / "build", **options)
    return _make
