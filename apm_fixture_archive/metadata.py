from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from .models import TimeWindow
from .utils import atomic_write_text, dump_json

LOGGER = logging.getLogger(__name__)

MODULE_PREFIX = "export default"
_MODULE_PREFIX_RE = re.compile(r"^\s*export\s+default\s+")
# Group 1 is a quoted string (kept verbatim), group 2 a comment (dropped).
_STRING_OR_COMMENT_RE = re.compile(
    r"""("(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*')|(/\*.*?\*/|//[^\n]*)""",
    re.DOTALL,
)


def _strip_comments(text: str) -> str:
    return _STRING_OR_COMMENT_RE.sub(
        lambda m: m.group(1) if m.group(1) is not None else " ",
        text,
    )


def _strip_module_wrapper(text: str) -> str:
    body = _MODULE_PREFIX_RE.sub("", _strip_comments(text), count=1).strip()
    if body.endswith(";"):
        body = body[:-1].rstrip()
    return body


def parse_metadata_text(text: str) -> dict[str, Any]:
    # YAML flow style covers both the JSON we write and the object literal the
    # linter rewrites it into (license header, single quotes, bare keys,
    # trailing commas) once comments are gone.
    payload = yaml.safe_load(_strip_module_wrapper(text))
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError("Metadata root must be a mapping")
    return {str(key): value for key, value in payload.items()}


def load_metadata(path: Path) -> dict[str, Any]:
    if not path.exists():
        LOGGER.debug("No metadata at %s, starting empty", path)
        return {}
    try:
        return parse_metadata_text(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError, ValueError) as exc:
        LOGGER.warning("Ignoring unreadable metadata %s: %s", path, exc)
        return {}


def merge_metadata(current: dict[str, Any], archive_name: str, window: TimeWindow) -> dict[str, Any]:
    merged = dict(current)
    merged[archive_name] = window.as_metadata()
    return merged


def render_metadata(path: Path, payload: dict[str, Any]) -> str:
    body = dump_json(payload)
    if path.suffix.lower() == ".json":
        return body + "\n"
    return f"{MODULE_PREFIX} {body};\n"


def write_metadata(path: Path, payload: dict[str, Any]) -> None:
    atomic_write_text(path, render_metadata(path, payload))


def update_metadata(path: Path, archive_name: str, window: TimeWindow) -> dict[str, Any]:
    merged = merge_metadata(load_metadata(path), archive_name, window)
    write_metadata(path, merged)
    return merged
