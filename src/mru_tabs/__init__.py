"""Most-recently-used tab switching for browsers without an ordered tab API.

Pages report their own identity, a shared history keeps them in MRU order,
and a cycle session drives hold-to-preview selection. Use explicit imports:
    from mru_tabs.cycle import TabSwitcher
    from mru_tabs.history import HistoryManager, TabRecord
"""

__version__ = "0.1.0"
