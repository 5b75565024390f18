"""In-process live-tab registry."""

from __future__ import annotations

from mru_tabs.history.models import TabRecord
from mru_tabs.registry.base import BaseTabRegistry


class MemoryTabRegistry(BaseTabRegistry):
    """Registry shared by switchers living in the same process."""

    def __init__(self) -> None:
        self._tabs: dict[str, TabRecord | None] = {}

    def register(self, instance_id: str) -> None:
        """Track an instance that has not reported itself yet."""
        self._tabs.setdefault(instance_id, None)

    async def query(self) -> dict[str, TabRecord | None]:
        return dict(self._tabs)

    async def publish(self, instance_id: str, record: TabRecord) -> None:
        self._tabs[instance_id] = record

    async def unregister(self, instance_id: str) -> None:
        self._tabs.pop(instance_id, None)
