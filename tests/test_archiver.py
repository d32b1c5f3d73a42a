import json
import subprocess
from datetime import datetime, timezone
from pathlib import Path

import pytest

from apm_fixture_archive.archive_query import build_archive_query, compute_time_window
from apm_fixture_archive.archiver import (
    build_lint_command,
    build_save_command,
    cleanup_archive_output,
    run_es_archiver,
    run_lint,
)
from apm_fixture_archive.config import apply_cli_overrides, build_archive_config, load_config

QUERY = build_archive_query(compute_time_window(datetime(2020, 6, 12, 11, 0, tzinfo=timezone.utc)))


def _config(root: Path):
    cfg = apply_cli_overrides(
        load_config(None),
        {
            "endpoints": {"es_url": "http://es:9200", "kibana_url": "http://kb:5601"},
            "paths": {"root": str(root)},
        },
    )
    return build_archive_config(cfg)


def test_save_command_arguments(tmp_path: Path) -> None:
    cmd = build_save_command(_config(tmp_path), QUERY)
    assert cmd[:5] == [
        "node",
        "scripts/es_archiver",
        "save",
        "apm_8.0.0",
        "apm-*-transaction,apm-*-span,apm-*-error,apm-*-metric,.ml-anomalies*,.ml-config",
    ]
    assert cmd[5] == f"--dir={tmp_path / '.archives'}"
    assert cmd[6] == "--kibana-url=http://kb:5601"
    assert cmd[7] == "--es-url=http://es:9200"
    assert cmd[8].startswith("--query=")
    assert json.loads(cmd[8].split("=", 1)[1]) == QUERY


def test_lint_command_targets_metadata_glob(tmp_path: Path) -> None:
    assert build_lint_command(_config(tmp_path)) == [
        "node",
        "scripts/eslint",
        "**/*/archives_metadata.ts",
        "--fix",
    ]


def test_run_es_archiver_runs_in_root_and_checks_status(tmp_path: Path, monkeypatch) -> None:
    calls = []

    def fake_run(cmd, cwd=None, check=False):
        calls.append((cmd, cwd, check))
        return subprocess.CompletedProcess(cmd, 0)

    monkeypatch.setattr("apm_fixture_archive.archiver.subprocess.run", fake_run)
    config = _config(tmp_path)

    produced = run_es_archiver(config, QUERY)

    assert calls == [(build_save_command(config, QUERY), str(tmp_path), True)]
    assert [p.name for p in produced] == ["data.json.gz", "mappings.json"]


def test_failing_subprocess_propagates(tmp_path: Path, monkeypatch) -> None:
    def fake_run(cmd, cwd=None, check=False):
        raise subprocess.CalledProcessError(1, cmd)

    monkeypatch.setattr("apm_fixture_archive.archiver.subprocess.run", fake_run)
    with pytest.raises(subprocess.CalledProcessError):
        run_lint(_config(tmp_path))


def test_cleanup_removes_archive_tree(tmp_path: Path) -> None:
    config = _config(tmp_path)
    out_dir = tmp_path / ".archives" / "apm_8.0.0"
    out_dir.mkdir(parents=True)
    (out_dir / "data.json.gz").write_bytes(b"\x1f\x8b")
    (out_dir / "mappings.json").write_text("{}", encoding="utf-8")

    cleanup_archive_output(config)

    assert not (tmp_path / ".archives").exists()


def test_cleanup_fails_when_archive_is_missing(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        cleanup_archive_output(_config(tmp_path))
