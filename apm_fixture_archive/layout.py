from __future__ import annotations

from pathlib import Path

from .models import ArchiveConfig

DATA_FILENAME = "data.json.gz"
MAPPINGS_FILENAME = "mappings.json"
ARCHIVE_FILENAMES = (DATA_FILENAME, MAPPINGS_FILENAME)
ES_ARCHIVER_SUBDIR = Path("fixtures") / "es_archiver"


def archive_output_dir(config: ArchiveConfig) -> Path:
    return config.archives_dir / config.archive_name


def archive_output_files(config: ArchiveConfig) -> list[Path]:
    out_dir = archive_output_dir(config)
    return [out_dir / name for name in ARCHIVE_FILENAMES]


def profile_dir(config: ArchiveConfig, profile: str) -> Path:
    return config.fixtures_root / profile


def profile_archive_dir(config: ArchiveConfig, profile: str) -> Path:
    return profile_dir(config, profile) / ES_ARCHIVER_SUBDIR / config.archive_name


def metadata_path(config: ArchiveConfig, profile: str) -> Path:
    return profile_dir(config, profile) / config.metadata_filename
