"""MRU history engine: upsert, reconciliation and switch reordering."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Iterable

from mru_tabs.history.exclusion import ExclusionRuleSet
from mru_tabs.history.models import TabRecord
from mru_tabs.history.parser import parse_records
from mru_tabs.history.store import BaseKeyValueStore

logger = logging.getLogger(__name__)

HISTORY_KEY = "mruTabHistoryWithIndices"


@dataclass(frozen=True)
class ReconcilePolicy:
    """Thresholds guarding reconciliation against stale registry reads.

    Attributes:
        min_live_urls: Skip when the registry reports fewer live urls than
            this while history is longer than ``min_history_size``.
        min_history_size: History length above which ``min_live_urls`` applies.
        max_removal_ratio: Skip when a larger share of history would be removed.
    """

    min_live_urls: int = 2
    min_history_size: int = 3
    max_removal_ratio: float = 0.70


def reorder_after_switch(
    history: list[TabRecord],
    resolved: TabRecord,
    current: TabRecord | None,
) -> list[TabRecord]:
    """``[resolved, current, ...rest]`` with both removed from the rest."""
    head = [resolved]
    skip = {resolved.url}
    if current is not None and current.url != resolved.url:
        head.append(current)
        skip.add(current.url)
    return head + [tab for tab in history if tab.url not in skip]


def promote(history: list[TabRecord], selected: TabRecord) -> list[TabRecord]:
    """Move ``selected`` to the front, keeping the remainder in order."""
    return [selected] + [tab for tab in history if tab.url != selected.url]


class HistoryManager:
    """Owns the ordered tab history kept in a shared key/value store.

    Every operation loads the history, changes it and writes it back; nothing
    is cached between calls because other instances write the same key.

    Args:
        store: Backing key/value store.
        rules: Exclusion rules applied to everything entering history.
        policy: Reconciliation safety thresholds.
        clock: Wall clock returning epoch seconds.
    """

    def __init__(
        self,
        store: BaseKeyValueStore,
        rules: ExclusionRuleSet | None = None,
        policy: ReconcilePolicy | None = None,
        clock: Callable[[], float] = time.time,
        key: str = HISTORY_KEY,
    ):
        self.store = store
        self.rules = rules or ExclusionRuleSet()
        self.policy = policy or ReconcilePolicy()
        self.clock = clock
        self.key = key

    # ---- Persistence ----

    def load(self) -> list[TabRecord]:
        raw = self.store.get(self.key)
        if not raw:
            return []
        try:
            rows = json.loads(raw)
        except ValueError as e:
            logger.warning("History blob is not valid JSON, treating as empty: %s", e)
            return []
        if not isinstance(rows, list):
            logger.warning("History blob is not a list, treating as empty")
            return []
        records = parse_records(rows)
        if len(records) != len(rows):
            logger.debug("Skipped %d malformed history entries", len(rows) - len(records))
        return records

    def save(self, history: list[TabRecord]) -> None:
        self.store.set(self.key, json.dumps([tab.to_dict() for tab in history]))
        logger.debug("Saved history with %d entries", len(history))

    def clear(self) -> None:
        self.save([])
        logger.info("Tab history cleared")

    # ---- Mutations ----

    def upsert(self, record: TabRecord) -> TabRecord | None:
        """Put ``record`` at the front, replacing any entry with the same url.

        Returns the record as stored, which keeps the id of an existing entry
        for the same url, or None if the url is excluded.
        """
        if self.rules.is_excluded(record.url):
            return None
        history = self.load()
        record = _with_known_id(history, record)
        history = [record] + [tab for tab in history if tab.url != record.url]
        self.save(history)
        return record

    def reconcile(self, live_urls: Iterable[str]) -> list[TabRecord]:
        """Drop entries whose page is no longer open, unless that looks unsafe."""
        live = set(live_urls)
        history = self.load()
        if not history:
            return history

        total = len(history)
        if len(live) < self.policy.min_live_urls and total > self.policy.min_history_size:
            logger.warning(
                "Only %d live urls for %d history entries, skipping reconciliation",
                len(live),
                total,
            )
            return history

        filtered = [tab for tab in history if tab.url in live]
        removed = total - len(filtered)
        if removed > 0 and removed / total > self.policy.max_removal_ratio:
            logger.warning(
                "Reconciliation would remove %d of %d entries, skipping as likely stale",
                removed,
                total,
            )
            return history
        if removed == 0 and all(tab.closed is False for tab in history):
            return history

        for tab in history:
            if tab.url not in live:
                logger.debug("Removing closed tab from history: %s", tab.title)
        filtered = [replace(tab, closed=False) for tab in filtered]
        self.save(filtered)
        if removed:
            logger.info("Removed %d closed tabs from history", removed)
        return filtered

    def merge_discovered(self, records: Iterable[TabRecord]) -> list[TabRecord]:
        """Prepend registry-known pages that history has never seen."""
        history = self.load()
        known = {tab.url for tab in history}
        found: list[TabRecord] = []
        for record in records:
            if record.url in known or self.rules.is_excluded(record.url):
                continue
            known.add(record.url)
            found.append(record)
        if not found:
            return history
        logger.info("Adding %d discovered tabs to history", len(found))
        history = found + history
        self.save(history)
        return history

    def reorder_after_switch(
        self,
        resolved: TabRecord,
        current: TabRecord | None,
    ) -> list[TabRecord]:
        history = self.load()
        resolved = _with_known_id(history, resolved)
        if current is not None:
            current = _with_known_id(history, current.touched(self.clock()))
        history = reorder_after_switch(history, resolved, current)
        self.save(history)
        return history

    def promote(self, selected: TabRecord) -> list[TabRecord]:
        history = self.load()
        history = promote(history, _with_known_id(history, selected))
        self.save(history)
        return history

    def mark_closed(self, url: str) -> bool:
        """Flag an entry as presumed gone after a failed activation."""
        history = self.load()
        changed = False
        for i, tab in enumerate(history):
            if tab.url == url:
                history[i] = replace(tab, closed=True)
                changed = True
        if changed:
            self.save(history)
        return changed


def _with_known_id(history: list[TabRecord], record: TabRecord) -> TabRecord:
    """``record`` carrying the id already stored for its url, if any."""
    existing = next((tab for tab in history if tab.url == record.url), None)
    if existing is None or existing.id == record.id:
        return record
    return replace(record, id=existing.id)
