from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Any

from .archive_query import serialize_query
from .layout import archive_output_dir, archive_output_files
from .models import ArchiveConfig

LOGGER = logging.getLogger(__name__)


def build_save_command(config: ArchiveConfig, query: dict[str, Any]) -> list[str]:
    return [
        *config.es_archiver_command,
        "save",
        config.archive_name,
        ",".join(config.indices),
        f"--dir={config.archives_dir}",
        f"--kibana-url={config.kibana_url}",
        f"--es-url={config.es_url}",
        f"--query={serialize_query(query)}",
    ]


def build_lint_command(config: ArchiveConfig) -> list[str]:
    return [*config.lint_command, config.lint_glob, *config.lint_args]


def _run(cmd: list[str], cwd: Path) -> None:
    LOGGER.debug("Running %s (cwd=%s)", shlex.join(cmd), cwd)
    # stdio is inherited so the tool's own progress output reaches the console.
    subprocess.run(cmd, cwd=str(cwd), check=True)


def run_es_archiver(config: ArchiveConfig, query: dict[str, Any]) -> list[Path]:
    cmd = build_save_command(config, query)
    LOGGER.info("Saving archive %s from %s", config.archive_name, config.es_url)
    _run(cmd, config.root)
    return archive_output_files(config)


def run_lint(config: ArchiveConfig) -> None:
    cmd = build_lint_command(config)
    LOGGER.info("Linting metadata files matching %s", config.lint_glob)
    _run(cmd, config.root)


def cleanup_archive_output(config: ArchiveConfig) -> None:
    """Remove the temporary archive, its directory and the archives root.

    Every target must exist; a missing one raises FileNotFoundError.
    """
    for path in archive_output_files(config):
        path.unlink()
    archive_output_dir(config).rmdir()
    config.archives_dir.rmdir()
    LOGGER.info("Removed temporary archives under %s", config.archives_dir)
