"""Rules rejecting non-content pages before they enter history."""

from __future__ import annotations

import logging
import re
from typing import Iterable

logger = logging.getLogger(__name__)

# Order matters: the first matching pattern is the one reported.
DEFAULT_EXCLUDED_PATTERNS: tuple[str, ...] = (
    r"service_worker",
    r"sw_iframe",
    r"^about:",
    r"^chrome:",
    r"^safari-extension:",
    r"^data:",
    r"^javascript:",
    r"^blob:",
)


class ExclusionRuleSet:
    """Ordered, case-insensitive url patterns that are never tracked.

    Args:
        patterns: Regular expressions tested in order against a page url.
    """

    def __init__(self, patterns: Iterable[str] = DEFAULT_EXCLUDED_PATTERNS):
        self.patterns = tuple(patterns)
        self._compiled = tuple(re.compile(p, re.IGNORECASE) for p in self.patterns)

    def match(self, url: str) -> str | None:
        """Return the first pattern matching ``url``, or None."""
        for pattern, compiled in zip(self.patterns, self._compiled):
            if compiled.search(url or ""):
                return pattern
        return None

    def is_excluded(self, url: str) -> bool:
        pattern = self.match(url)
        if pattern is not None:
            logger.debug("Excluding %s (matches %s)", url, pattern)
            return True
        return False

    def __repr__(self) -> str:
        return f"ExclusionRuleSet({len(self.patterns)} patterns)"
