"""Parse raw self-reports and stored rows into normalized tab records."""

from __future__ import annotations

import time

import dateutil.parser as parser

from mru_tabs.history.exclusion import ExclusionRuleSet
from mru_tabs.history.models import UNKNOWN_POSITION, TabRecord, new_record_id

# Numeric timestamps above this are taken to be epoch milliseconds.
_MS_THRESHOLD = 1e11


def parse_record(
    raw: dict,
    rules: ExclusionRuleSet | None = None,
    max_title_length: int = 300,
) -> TabRecord | None:
    """Normalize one raw record; returns None for filtered/invalid rows.

    Rows without an ``id`` get a fresh one, so the same function handles
    stored history entries and inbound self-reports.
    """
    if not isinstance(raw, dict):
        return None
    url = str(raw.get("url") or "").strip()
    if not url:
        return None
    if rules is not None and rules.is_excluded(url):
        return None

    last_accessed = _coerce_timestamp(
        raw.get("lastAccessed", raw.get("last_accessed", raw.get("timestamp")))
    )
    if last_accessed is None:
        last_accessed = time.time()

    title = str(raw.get("title") or "").strip()
    if len(title) > max_title_length:
        title = title[:max_title_length]

    record_id = str(raw.get("id") or "").strip() or new_record_id(last_accessed)

    return TabRecord(
        id=record_id,
        url=url,
        title=title,
        position_hint=_coerce_position(
            raw.get("index", raw.get("positionHint", raw.get("position_hint")))
        ),
        last_accessed=last_accessed,
        closed=_coerce_closed(raw.get("closed")),
    )


def parse_records(raw_rows: list, rules: ExclusionRuleSet | None = None) -> list[TabRecord]:
    """Parse a list of rows, dropping the ones that do not parse."""
    records = []
    for raw in raw_rows or []:
        record = parse_record(raw, rules)
        if record is not None:
            records.append(record)
    return records


def _coerce_position(value) -> int:
    if value is None or isinstance(value, bool):
        return UNKNOWN_POSITION
    try:
        position = int(value)
    except (TypeError, ValueError):
        return UNKNOWN_POSITION
    return position if position >= 0 else UNKNOWN_POSITION


def _coerce_timestamp(value) -> float | None:
    """Epoch seconds from seconds, milliseconds or an ISO-8601 string."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        ts = float(value)
        return ts / 1000.0 if ts > _MS_THRESHOLD else ts
    text = str(value).strip()
    if not text:
        return None
    try:
        return _coerce_timestamp(float(text))
    except ValueError:
        pass
    try:
        return parser.isoparse(text).timestamp()
    except (ValueError, OverflowError):
        return None


def _coerce_closed(value) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    v = str(value).strip().lower()
    if v in {"1", "true", "yes"}:
        return True
    if v in {"0", "false", "no"}:
        return False
    return None
