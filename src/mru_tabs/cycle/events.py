"""Map raw input events onto cycle session transitions."""

from __future__ import annotations

from dataclasses import dataclass

from mru_tabs.cycle.session import BACKWARD, FORWARD

# Action names
BEGIN_PREVIEW = "begin_preview"
ADVANCE = "advance"
SELECT_AT = "select_at"
CONFIRM = "confirm"
CANCEL = "cancel"
HARD_CANCEL = "hard_cancel"
SWITCH_PREVIOUS = "switch_previous"
CLOSE = "close"
REFRESH = "refresh"
IGNORE = "ignore"

# Event kinds
KEYDOWN = "keydown"
KEYUP = "keyup"
POINTER = "pointer"
VISIBILITY = "visibility"
UNLOAD = "unload"


@dataclass(frozen=True)
class InputEvent:
    """A host input event, however it was delivered."""

    kind: str  # "keydown" | "keyup" | "pointer" | "visibility" | "unload"
    key: str = ""
    alt: bool = False
    shift: bool = False
    index: int | None = None  # pointer target row
    visible: bool = True  # visibility events only


@dataclass(frozen=True)
class KeyBindings:
    modifier: str = "Alt"
    cycle_key: str = "Tab"
    cancel_key: str = "Escape"
    hard_cancel_key: str = "Dead"  # backtick on layouts where it is a dead key
    switch_key: str | None = None


@dataclass(frozen=True)
class Action:
    name: str
    direction: str = FORWARD
    index: int | None = None


def translate(
    event: InputEvent,
    session_open: bool,
    bindings: KeyBindings | None = None,
) -> Action:
    """Single entry point from input events to the transition vocabulary."""
    keys = bindings or KeyBindings()
    direction = BACKWARD if event.shift else FORWARD

    if event.kind == UNLOAD:
        return Action(CLOSE)

    if event.kind == VISIBILITY:
        return Action(REFRESH) if event.visible else Action(HARD_CANCEL)

    if event.kind == POINTER:
        if session_open and event.index is not None:
            return Action(SELECT_AT, index=event.index)
        return Action(IGNORE)

    if event.kind == KEYUP:
        if event.key == keys.modifier and session_open:
            return Action(CONFIRM)
        return Action(IGNORE)

    if event.kind != KEYDOWN:
        return Action(IGNORE)

    if event.key == keys.hard_cancel_key:
        return Action(HARD_CANCEL)
    if event.key == keys.cancel_key:
        # Outside a preview Escape belongs to the page.
        return Action(CANCEL) if session_open else Action(IGNORE)
    if event.alt and event.key == keys.cycle_key:
        if session_open:
            return Action(ADVANCE, direction=direction)
        return Action(BEGIN_PREVIEW, direction=direction)
    if keys.switch_key and event.alt and event.key == keys.switch_key and not session_open:
        return Action(SWITCH_PREVIOUS)
    return Action(IGNORE)
