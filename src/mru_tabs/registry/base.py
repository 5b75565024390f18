"""Abstract base class for live-tab registries."""

from __future__ import annotations

from abc import ABC, abstractmethod

from mru_tabs.history.models import TabRecord


class BaseTabRegistry(ABC):
    """Abstract interface to the last self-report of every open page instance.

    Registry contents are used to prune and discover history entries, never
    to order them.
    """

    @abstractmethod
    async def query(self) -> dict[str, TabRecord | None]:
        """Map each open instance id to its last self-report (None if it has none)."""
        ...

    @abstractmethod
    async def publish(self, instance_id: str, record: TabRecord) -> None:
        """Store the latest self-report of one instance."""
        ...

    @abstractmethod
    async def unregister(self, instance_id: str) -> None:
        """Forget an instance whose page has closed."""
        ...


def live_urls(tabs: dict[str, TabRecord | None]) -> set[str]:
    """Urls of every instance that has reported itself."""
    return {record.url for record in tabs.values() if record is not None and record.url}
