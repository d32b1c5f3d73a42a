from __future__ import annotations

from typing import Any

from .layout import ARCHIVE_FILENAMES, metadata_path, profile_archive_dir
from .metadata import load_metadata
from .models import ArchiveConfig
from .utils import parse_iso


def _window_is_valid(window: Any) -> bool:
    if not isinstance(window, dict):
        return False
    try:
        return parse_iso(str(window["start"])) < parse_iso(str(window["end"]))
    except (KeyError, ValueError):
        return False


def build_metadata_report(config: ArchiveConfig) -> dict[str, Any]:
    profiles: dict[str, Any] = {}
    for profile in config.profiles:
        path = metadata_path(config, profile)
        archive_dir = profile_archive_dir(config, profile)
        archives = dict(sorted(load_metadata(path).items()))
        profiles[profile] = {
            "metadata_path": str(path),
            "metadata_present": path.exists(),
            "archive_files_present": all((archive_dir / name).exists() for name in ARCHIVE_FILENAMES),
            "archives": archives,
            "invalid_windows": sorted(name for name, window in archives.items() if not _window_is_valid(window)),
        }
    return {"archive_name": config.archive_name, "profiles": profiles}


def format_metadata_report(report: dict[str, Any]) -> str:
    lines = []
    lines.append("APM Fixture Archives")
    lines.append("====================")
    lines.append(f"Current archive: {report['archive_name']}")

    for profile, info in report["profiles"].items():
        lines.append(f"\n{profile} ({info['metadata_path']}):")
        if not info["metadata_present"]:
            lines.append("- no metadata file")
            continue
        if not info["archives"]:
            lines.append("- none")
        for name, window in info["archives"].items():
            flag = " (invalid window)" if name in info["invalid_windows"] else ""
            window = window if isinstance(window, dict) else {}
            lines.append(f"- {name}: {window.get('start', '?')} -> {window.get('end', '?')}{flag}")
        if not info["archive_files_present"]:
            lines.append(f"- missing fixture files for {report['archive_name']}")

    return "\n".join(lines) + "\n"
