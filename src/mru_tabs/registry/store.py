"""Live-tab registry kept in the same key/value store as the history."""

from __future__ import annotations

import json
import logging

from mru_tabs.exceptions import HistoryStoreError, RegistryQueryError
from mru_tabs.history.parser import parse_record
from mru_tabs.history.models import TabRecord
from mru_tabs.history.store import BaseKeyValueStore
from mru_tabs.registry.base import BaseTabRegistry

logger = logging.getLogger(__name__)

TAB_KEY_PREFIX = "tab:"


class StoreTabRegistry(BaseTabRegistry):
    """One ``tab:<instance_id>`` key per open instance.

    Lets several processes that share a SQLite store see each other's tabs.
    """

    def __init__(self, store: BaseKeyValueStore, prefix: str = TAB_KEY_PREFIX):
        self.store = store
        self.prefix = prefix

    async def query(self) -> dict[str, TabRecord | None]:
        try:
            keys = self.store.keys(self.prefix)
            tabs: dict[str, TabRecord | None] = {}
            for key in keys:
                raw = self.store.get(key)
                tabs[key[len(self.prefix):]] = self._decode(key, raw)
        except HistoryStoreError as e:
            raise RegistryQueryError(f"Failed to read live tabs: {e}") from e
        return tabs

    async def publish(self, instance_id: str, record: TabRecord) -> None:
        try:
            self.store.set(self.prefix + instance_id, json.dumps(record.to_dict()))
        except HistoryStoreError as e:
            raise RegistryQueryError(f"Failed to publish tab {instance_id}: {e}") from e

    async def unregister(self, instance_id: str) -> None:
        try:
            self.store.delete(self.prefix + instance_id)
        except HistoryStoreError as e:
            raise RegistryQueryError(f"Failed to unregister tab {instance_id}: {e}") from e

    @staticmethod
    def _decode(key: str, raw: str | None) -> TabRecord | None:
        if not raw:
            return None
        try:
            return parse_record(json.loads(raw))
        except ValueError:
            logger.debug("Ignoring unreadable registry entry %s", key)
            return None
