"""Cycle preview session, input event mapping and the per-instance switcher."""

from mru_tabs.cycle.controller import TabSwitcher, build_history
from mru_tabs.cycle.events import Action, InputEvent, KeyBindings, translate
from mru_tabs.cycle.session import BACKWARD, FORWARD, CycleSession

__all__ = [
    "TabSwitcher",
    "build_history",
    "Action",
    "InputEvent",
    "KeyBindings",
    "translate",
    "BACKWARD",
    "FORWARD",
    "CycleSession",
]
