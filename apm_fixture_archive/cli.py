from __future__ import annotations

import argparse
import json
import logging
import shlex
import subprocess
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from . import __version__
from .archive_query import build_archive_query, compute_time_window
from .archiver import cleanup_archive_output, run_es_archiver, run_lint
from .config import ConfigError, apply_cli_overrides, build_archive_config, load_config
from .distribute import distribute_archive
from .models import ArchiveConfig
from .status import build_metadata_report, format_metadata_report
from .utils import setup_logging

LOGGER = logging.getLogger(__name__)


def create_archive(config: ArchiveConfig, now: datetime | None = None) -> dict[str, Any]:
    window = compute_time_window(now, offset=config.window_offset, length=config.window_length)
    LOGGER.info("Archiving from %s to %s...", window.start_iso, window.end_iso)

    query = build_archive_query(window)
    run_es_archiver(config, query)

    results = distribute_archive(config, window)

    cleanup_archive_output(config)

    if config.run_lint:
        run_lint(config)
    else:
        LOGGER.info("Skipping lint of metadata files")

    return {
        "archive_name": config.archive_name,
        "window": window.as_metadata(),
        "profiles": [
            {
                "profile": r.profile,
                "archive_dir": str(r.archive_dir),
                "metadata_path": str(r.metadata_path),
                "checksums": r.checksums,
                "entries": r.entries,
            }
            for r in results
        ],
    }


def _create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="apm-fixture-archive")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="cmd", required=True)

    create = sub.add_parser("create", help="Snapshot APM/ML data into the functional test fixtures")
    create.add_argument("--config", type=Path)
    create.add_argument("--log-level")
    create.add_argument("--es-url")
    create.add_argument("--kibana-url")
    create.add_argument("--archive-name")
    create.add_argument("--indices", help="Comma separated index patterns")
    create.add_argument("--profiles", help="Comma separated target profiles, e.g. trial,basic")
    create.add_argument("--root", type=Path, help="Working directory for es_archiver and the linter")
    create.add_argument("--skip-lint", action="store_true")

    query = sub.add_parser("query", help="Print the window and query a create run would use")
    query.add_argument("--config", type=Path)
    query.add_argument("--log-level")
    query.add_argument("--archive-name")

    metadata = sub.add_parser("metadata", help="Show archive windows recorded per profile")
    metadata.add_argument("--config", type=Path)
    metadata.add_argument("--log-level")
    metadata.add_argument("--root", type=Path)
    metadata.add_argument("--profiles")

    return parser


def _command_create(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    cfg = apply_cli_overrides(
        cfg,
        {
            "endpoints": {
                "es_url": args.es_url,
                "kibana_url": args.kibana_url,
            },
            "archive": {
                "name": args.archive_name,
                "indices": args.indices,
                "profiles": args.profiles,
            },
            "paths": {
                "root": str(args.root) if args.root else None,
            },
            "commands": {
                "run_lint": False if args.skip_lint else None,
            },
        },
    )
    config = build_archive_config(cfg)

    summary = create_archive(config)
    for profile in summary["profiles"]:
        print(f"{profile['profile']}: {profile['archive_dir']} ({profile['entries']} archive entries)")
    print(f"Archive {summary['archive_name']} covers {summary['window']['start']} to {summary['window']['end']}")
    return 0


def _command_query(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    cfg = apply_cli_overrides(cfg, {"archive": {"name": args.archive_name}})
    config = build_archive_config(cfg, require_endpoints=False)

    window = compute_time_window(offset=config.window_offset, length=config.window_length)
    payload = {
        "archive_name": config.archive_name,
        "indices": list(config.indices),
        "window": window.as_metadata(),
        "query": build_archive_query(window),
    }
    print(json.dumps(payload, indent=2))
    return 0


def _command_metadata(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    cfg = apply_cli_overrides(
        cfg,
        {
            "archive": {"profiles": args.profiles},
            "paths": {"root": str(args.root) if args.root else None},
        },
    )
    config = build_archive_config(cfg, require_endpoints=False)
    report = build_metadata_report(config)
    print(format_metadata_report(report), end="")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _create_parser()
    args = parser.parse_args(argv)

    cfg = load_config(getattr(args, "config", None))
    setup_logging(args.log_level or cfg.get("runtime", {}).get("log_level", "INFO"))

    try:
        if args.cmd == "create":
            return _command_create(args)
        if args.cmd == "query":
            return _command_query(args)
        if args.cmd == "metadata":
            return _command_metadata(args)
    except ConfigError as exc:
        LOGGER.error("%s", exc)
        return 1
    except subprocess.CalledProcessError as exc:
        cmd = exc.cmd if isinstance(exc.cmd, str) else shlex.join(str(c) for c in exc.cmd)
        LOGGER.error("Command exited with status %s: %s", exc.returncode, cmd)
        return 1
    except OSError as exc:
        LOGGER.error("Filesystem error: %s", exc)
        return 1

    parser.error(f"Unhandled command: {args.cmd}")
    return 2


def _single_command_main(cmd: str) -> int:
    return main([cmd, *sys.argv[1:]])


def main_create() -> int:
    return _single_command_main("create")


if __name__ == "__main__":
    raise SystemExit(main())
