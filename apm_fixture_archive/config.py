from __future__ import annotations

import json
import shlex
from pathlib import Path
from typing import Any

import yaml

from .models import ArchiveConfig

DEFAULT_INDICES = [
    # APM data, ECS '@timestamp'
    "apm-*-transaction",
    "apm-*-span",
    "apm-*-error",
    "apm-*-metric",
    # ML data, 'timestamp'
    ".ml-anomalies*",
    ".ml-config",
]

DEFAULT_CONFIG: dict[str, Any] = {
    "endpoints": {
        "es_url": None,
        "kibana_url": None,
    },
    "archive": {
        "name": "apm_8.0.0",
        "indices": DEFAULT_INDICES,
        "profiles": ["trial", "basic"],
    },
    "paths": {
        # archives_dir and fixtures_root are resolved against root when relative.
        "root": ".",
        "archives_dir": ".archives",
        "fixtures_root": "x-pack/test/apm_api_integration",
        "metadata_filename": "archives_metadata.ts",
    },
    "commands": {
        "es_archiver": ["node", "scripts/es_archiver"],
        "lint": ["node", "scripts/eslint"],
        "lint_glob": "**/*/archives_metadata.ts",
        "lint_args": ["--fix"],
        "run_lint": True,
    },
    "runtime": {
        "log_level": "INFO",
    },
}


class ConfigError(ValueError):
    pass


def _deep_update(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def load_config(config_path: str | Path | None) -> dict[str, Any]:
    cfg = json.loads(json.dumps(DEFAULT_CONFIG))
    if not config_path:
        return cfg
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ValueError("Config root must be a mapping")
    _deep_update(cfg, payload)
    return cfg


def apply_cli_overrides(cfg: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    def _drop_none(value: Any) -> Any:
        if isinstance(value, dict):
            return {k: _drop_none(v) for k, v in value.items() if v is not None}
        if isinstance(value, list):
            return [_drop_none(v) for v in value if v is not None]
        return value

    cleaned = _drop_none(overrides)
    _deep_update(cfg, cleaned)
    return cfg


def load_list_from_value(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    if isinstance(value, str):
        return [s.strip() for s in value.split(",") if s.strip()]
    return [str(value).strip()]


def _command_from_value(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(shlex.split(value))
    return tuple(load_list_from_value(value))


def _resolve_under(root: Path, value: Any) -> Path:
    path = Path(str(value))
    if path.is_absolute():
        return path
    return root / path


def _require(value: Any, flag: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ConfigError(f"{flag} is not set")
    return text


def build_archive_config(cfg: dict[str, Any], *, require_endpoints: bool = True) -> ArchiveConfig:
    endpoints = cfg.get("endpoints") or {}
    archive = cfg.get("archive") or {}
    paths = cfg.get("paths") or {}
    commands = cfg.get("commands") or {}

    if require_endpoints:
        es_url = _require(endpoints.get("es_url"), "--es-url")
        kibana_url = _require(endpoints.get("kibana_url"), "--kibana-url")
    else:
        es_url = str(endpoints.get("es_url") or "")
        kibana_url = str(endpoints.get("kibana_url") or "")

    archive_name = str(archive.get("name") or "").strip()
    if not archive_name:
        raise ConfigError("archive.name must not be empty")
    indices = load_list_from_value(archive.get("indices"))
    if not indices:
        raise ConfigError("archive.indices must list at least one index pattern")
    profiles = load_list_from_value(archive.get("profiles"))
    if not profiles:
        raise ConfigError("archive.profiles must list at least one target profile")

    root = Path(str(paths.get("root") or "."))
    return ArchiveConfig(
        es_url=es_url,
        kibana_url=kibana_url,
        archive_name=archive_name,
        indices=tuple(indices),
        profiles=tuple(profiles),
        root=root,
        archives_dir=_resolve_under(root, paths.get("archives_dir") or ".archives"),
        fixtures_root=_resolve_under(root, paths.get("fixtures_root") or "."),
        metadata_filename=str(paths.get("metadata_filename") or "archives_metadata.ts"),
        es_archiver_command=_command_from_value(commands.get("es_archiver")),
        lint_command=_command_from_value(commands.get("lint")),
        lint_glob=str(commands.get("lint_glob") or ""),
        lint_args=_command_from_value(commands.get("lint_args")),
        run_lint=bool(commands.get("run_lint", True)),
    )
