"""Hold-to-preview cycle session state machine."""

from __future__ import annotations

import logging

from mru_tabs.exceptions import CycleSessionError
from mru_tabs.history.models import TabRecord

logger = logging.getLogger(__name__)

FORWARD = "forward"
BACKWARD = "backward"

CLOSED = "closed"
OPEN = "open"


class CycleSession:
    """Selection over a history snapshot while the cycle gesture is held.

    The session has no side effects of its own: ``confirm`` returns the tab
    to switch to and the caller performs the activation and reorder.
    """

    def __init__(self) -> None:
        self.snapshot: list[TabRecord] = []
        self.selection_index = 0
        self.start_index = 0
        self.active = False

    @property
    def state(self) -> str:
        return OPEN if self.active else CLOSED

    @property
    def selected(self) -> TabRecord | None:
        if not self.active:
            return None
        return self.snapshot[self.selection_index]

    def begin_preview(self, snapshot: list[TabRecord], direction: str = FORWARD) -> bool:
        """Open on ``snapshot``; returns False when there is nothing to cycle."""
        if self.active:
            raise CycleSessionError("Cycle session is already open")
        if len(snapshot) <= 1:
            logger.debug("Not opening cycle preview for %d tabs", len(snapshot))
            return False

        self.snapshot = list(snapshot)
        if direction == BACKWARD and len(self.snapshot) > 2:
            self.selection_index = len(self.snapshot) - 1
        else:
            self.selection_index = 1
        self.start_index = self.selection_index
        self.active = True
        return True

    def advance(self, direction: str = FORWARD) -> int:
        self._require_open("advance")
        step = 1 if direction == FORWARD else -1
        length = len(self.snapshot)
        self.selection_index = (self.selection_index + step + length) % length
        return self.selection_index

    def select_at(self, index: int) -> int:
        self._require_open("select")
        if not 0 <= index < len(self.snapshot):
            raise CycleSessionError(
                f"Selection {index} out of range for {len(self.snapshot)} tabs"
            )
        self.selection_index = index
        return index

    def confirm(self) -> TabRecord | None:
        """Close the session; the selected tab if the selection moved, else None."""
        self._require_open("confirm")
        target = None
        if self.selection_index != self.start_index:
            target = self.snapshot[self.selection_index]
        else:
            logger.debug("Tab selection unchanged, not switching")
        self._reset()
        return target

    def cancel(self) -> None:
        self._reset()

    def hard_cancel(self) -> None:
        self._reset()

    def _require_open(self, action: str) -> None:
        if not self.active:
            raise CycleSessionError(f"Cannot {action}: cycle session is closed")

    def _reset(self) -> None:
        self.snapshot = []
        self.selection_index = 0
        self.start_index = 0
        self.active = False
