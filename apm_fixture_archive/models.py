from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

from .utils import format_iso_millis

DEFAULT_WINDOW_OFFSET = timedelta(hours=1)
DEFAULT_WINDOW_LENGTH = timedelta(minutes=30)


@dataclass(frozen=True, slots=True)
class TimeWindow:
    start: datetime
    end: datetime

    @property
    def start_iso(self) -> str:
        return format_iso_millis(self.start)

    @property
    def end_iso(self) -> str:
        return format_iso_millis(self.end)

    def as_metadata(self) -> dict[str, str]:
        return {"start": self.start_iso, "end": self.end_iso}


@dataclass(frozen=True, slots=True)
class ArchiveConfig:
    es_url: str
    kibana_url: str
    archive_name: str
    indices: tuple[str, ...]
    profiles: tuple[str, ...]
    root: Path
    archives_dir: Path
    fixtures_root: Path
    metadata_filename: str
    es_archiver_command: tuple[str, ...]
    lint_command: tuple[str, ...]
    lint_glob: str
    lint_args: tuple[str, ...] = ()
    run_lint: bool = True
    window_offset: timedelta = DEFAULT_WINDOW_OFFSET
    window_length: timedelta = DEFAULT_WINDOW_LENGTH


@dataclass(slots=True)
class ProfileResult:
    profile: str
    archive_dir: Path
    metadata_path: Path
    copied_files: list[Path] = field(default_factory=list)
    checksums: dict[str, str] = field(default_factory=dict)
    entries: int = 0
