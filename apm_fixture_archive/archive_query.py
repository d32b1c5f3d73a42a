from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any

from .models import DEFAULT_WINDOW_LENGTH, DEFAULT_WINDOW_OFFSET, TimeWindow
from .utils import to_utc

# APM documents carry the ECS '@timestamp', ML documents carry 'timestamp'.
TIMESTAMP_FIELDS = ("@timestamp", "timestamp")


def compute_time_window(
    now: datetime | None = None,
    *,
    offset: timedelta = DEFAULT_WINDOW_OFFSET,
    length: timedelta = DEFAULT_WINDOW_LENGTH,
) -> TimeWindow:
    """Return the window ``[now - offset, now - offset + length)``.

    The start is truncated to whole milliseconds, so it can be up to 1 ms
    earlier than ``now - offset``. ``end - start`` is always exactly ``length``.
    """
    if length <= timedelta(0):
        raise ValueError("Window length must be positive")
    current = to_utc(now) if now is not None else datetime.now(timezone.utc)
    start = current - offset
    start = start.replace(microsecond=(start.microsecond // 1000) * 1000)
    return TimeWindow(start=start, end=start + length)


def _range_clause(field: str, window: TimeWindow) -> dict[str, Any]:
    return {"range": {field: {"gte": window.start_iso, "lt": window.end_iso}}}


def _missing_timestamps_clause() -> dict[str, Any]:
    return {
        "bool": {
            "must_not": [{"exists": {"field": field}} for field in TIMESTAMP_FIELDS],
        }
    }


def build_archive_query(window: TimeWindow) -> dict[str, Any]:
    """Select documents inside the window on either timestamp field.

    Documents without any timestamp (saved objects, ML job configs) are kept as well.
    """
    should = [_range_clause(field, window) for field in TIMESTAMP_FIELDS]
    should.append(_missing_timestamps_clause())
    return {
        "bool": {
            "should": should,
            "minimum_should_match": 1,
        }
    }


def serialize_query(query: dict[str, Any]) -> str:
    return json.dumps(query, separators=(",", ":"))
