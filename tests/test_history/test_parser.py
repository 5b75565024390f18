"""Tests for the tab record parser."""

from datetime import datetime, timezone

from mru_tabs.history.exclusion import ExclusionRuleSet
from mru_tabs.history.models import UNKNOWN_POSITION, TabRecord
from mru_tabs.history.parser import parse_record, parse_records


def test_parse_stored_record():
    raw = {
        "id": "tab_1_abc",
        "url": "https://example.com/page",
        "title": "Example Page",
        "index": 3,
        "lastAccessed": 1700000000000,
        "closed": False,
    }
    result = parse_record(raw)
    assert isinstance(result, TabRecord)
    assert result.id == "tab_1_abc"
    assert result.position_hint == 3
    assert result.last_accessed == 1700000000.0
    assert result.closed is False


def test_parse_self_report_assigns_id():
    result = parse_record({"url": "https://example.com/", "title": "Example"})
    assert result is not None
    assert result.id.startswith("tab_")
    assert result.position_hint == UNKNOWN_POSITION
    assert result.closed is None


def test_parse_snake_case_keys():
    result = parse_record({
        "url": "https://example.com/",
        "position_hint": "4",
        "last_accessed": 1700000000,
    })
    assert result.position_hint == 4
    assert result.last_accessed == 1700000000.0


def test_parse_iso_timestamp():
    result = parse_record({"url": "https://example.com/", "timestamp": "2024-01-01T00:00:00+00:00"})
    expected = datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp()
    assert result.last_accessed == expected


def test_parse_bad_timestamp_uses_now():
    result = parse_record({"url": "https://example.com/", "timestamp": "not a date"})
    assert result is not None
    assert result.last_accessed > 1_600_000_000


def test_parse_bad_index_is_unknown():
    result = parse_record({"url": "https://example.com/", "index": "first"})
    assert result.position_hint == UNKNOWN_POSITION


def test_parse_bool_index_is_unknown():
    result = parse_record({"url": "https://example.com/", "index": True})
    assert result.position_hint == UNKNOWN_POSITION


def test_parse_empty_url():
    assert parse_record({"url": "", "title": "x"}) is None
    assert parse_record({"title": "no url"}) is None


def test_parse_non_dict():
    assert parse_record("https://example.com/") is None
    assert parse_record(None) is None


def test_parse_applies_exclusion_rules():
    rules = ExclusionRuleSet()
    assert parse_record({"url": "about:blank"}, rules) is None
    assert parse_record({"url": "about:blank"}) is not None


def test_parse_truncates_long_title():
    result = parse_record({"url": "https://example.com/", "title": "x" * 500})
    assert len(result.title) == 300


def test_parse_records_skips_invalid():
    rows = [{"url": "https://a.example/"}, {"url": ""}, "junk", {"url": "https://b.example/"}]
    records = parse_records(rows)
    assert [r.url for r in records] == ["https://a.example/", "https://b.example/"]
