"""Live-tab registries used to reconcile history against open pages.

The HTTP client needs the optional ``http`` extra. Import it explicitly:
    from mru_tabs.registry.http import HttpTabRegistry
"""

from mru_tabs.registry.base import BaseTabRegistry, live_urls
from mru_tabs.registry.memory import MemoryTabRegistry
from mru_tabs.registry.store import TAB_KEY_PREFIX, StoreTabRegistry


def __getattr__(name):
    """Lazy import for the registry that requires optional dependencies."""
    if name == "HttpTabRegistry":
        from mru_tabs.registry.http import HttpTabRegistry
        return HttpTabRegistry
    raise AttributeError(f"module 'mru_tabs.registry' has no attribute {name!r}")


__all__ = [
    "BaseTabRegistry",
    "live_urls",
    "MemoryTabRegistry",
    "StoreTabRegistry",
    "TAB_KEY_PREFIX",
    "HttpTabRegistry",
]
