"""Pick the tab a "switch to previous" gesture should land on."""

from __future__ import annotations

import logging

from mru_tabs.history.models import TabRecord

logger = logging.getLogger(__name__)


def resolve_previous(history: list[TabRecord], current_url: str) -> TabRecord | None:
    """Most recent tab other than ``current_url``, preferring known positions.

    Returns None when history holds fewer than two distinct urls.
    """
    if len({tab.url for tab in history}) < 2:
        return None

    for tab in history:
        if tab.url == current_url:
            continue
        if tab.has_position:
            return tab
        logger.debug("Skipping tab without position: %s", tab.title)

    for tab in history:
        if tab.url != current_url:
            logger.debug("No tab with a known position, using %s", tab.title)
            return tab
    return None


def switch_token(record: TabRecord) -> str:
    """Opaque token for the activation executor: position if known, else title.

    Records always carry a title; an untitled page is titled by its url.
    """
    if record.has_position:
        return str(record.position_hint)
    return record.title
