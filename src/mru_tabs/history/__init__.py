"""MRU tab history: records, exclusion rules, storage and the history manager."""

from mru_tabs.history.exclusion import DEFAULT_EXCLUDED_PATTERNS, ExclusionRuleSet
from mru_tabs.history.manager import HISTORY_KEY, HistoryManager, ReconcilePolicy
from mru_tabs.history.models import UNKNOWN_POSITION, TabRecord, new_record_id
from mru_tabs.history.parser import parse_record, parse_records
from mru_tabs.history.store import BaseKeyValueStore, MemoryKeyValueStore, SqliteKeyValueStore

__all__ = [
    "DEFAULT_EXCLUDED_PATTERNS",
    "ExclusionRuleSet",
    "HISTORY_KEY",
    "HistoryManager",
    "ReconcilePolicy",
    "UNKNOWN_POSITION",
    "TabRecord",
    "new_record_id",
    "parse_record",
    "parse_records",
    "BaseKeyValueStore",
    "MemoryKeyValueStore",
    "SqliteKeyValueStore",
]
