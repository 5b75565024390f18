"""Data models for the tab history module."""

from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass, replace

# Sentinel for a page whose position in the host's tab strip is unknown.
UNKNOWN_POSITION = -1

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_record_id(now: float | None = None) -> str:
    """Opaque id assigned when a page is first observed."""
    ms = int((time.time() if now is None else now) * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"tab_{ms}_{suffix}"


@dataclass
class TabRecord:
    """One known page in the MRU history."""

    id: str
    url: str
    title: str
    position_hint: int = UNKNOWN_POSITION
    last_accessed: float = 0.0  # epoch seconds
    closed: bool | None = None  # None = never verified, True = presumed gone

    def __post_init__(self) -> None:
        if not self.title:
            self.title = self.url
        if self.position_hint < 0:
            self.position_hint = UNKNOWN_POSITION

    @property
    def has_position(self) -> bool:
        return self.position_hint >= 0

    def touched(self, now: float) -> TabRecord:
        """Copy with a refreshed access time."""
        return replace(self, last_accessed=now)

    def to_dict(self) -> dict:
        """Serialize in the camelCase shape used by the store and self-reports."""
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "index": self.position_hint,
            "lastAccessed": int(self.last_accessed * 1000),
            "closed": self.closed,
        }
