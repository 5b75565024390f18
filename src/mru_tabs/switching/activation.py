"""Fire-and-forget executors that move focus to another tab."""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from urllib.parse import quote

from mru_tabs.exceptions import ActivationError

logger = logging.getLogger(__name__)

DEFAULT_DEEPLINK_PREFIX = "raycast://script-commands/switch-safari-tab-url"
DEFAULT_OPEN_COMMAND = "open"


def _sanitize_applescript(text: str) -> str:
    """Sanitize a string for safe inclusion in AppleScript double-quoted strings."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _launch(argv: list[str]) -> None:
    """Start a process without waiting for it; there is no result to wait for."""
    logger.debug(f"Launching: {argv[0]} {' '.join(argv[1:])[:200]}")
    try:
        subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        raise ActivationError(f"Failed to launch {argv[0]}: {e}") from e


class ActivationExecutor(ABC):
    """Abstract interface for the cross-instance focus switch.

    ``activate`` returns nothing and gives no success signal; it raises
    ``ActivationError`` only when the request could not even be issued.
    """

    @abstractmethod
    def activate(self, token: str) -> None:
        """Request a switch to the tab identified by ``token``."""
        ...


class DeepLinkExecutor(ActivationExecutor):
    """Hands the token to a launcher deep link, e.g. a Raycast script command.

    Args:
        prefix: Deep link the token is appended to as ``?arguments=``.
        open_command: Program that opens the link (``open`` on macOS).
    """

    def __init__(
        self,
        prefix: str = DEFAULT_DEEPLINK_PREFIX,
        open_command: str = DEFAULT_OPEN_COMMAND,
    ):
        self.prefix = prefix
        self.open_command = open_command

    def build_link(self, token: str) -> str:
        return f"{self.prefix}?arguments={quote(token, safe='')}"

    def activate(self, token: str) -> None:
        link = self.build_link(token)
        _launch([self.open_command, link])
        logger.info(f"Requested tab switch via {link}")


class AppleScriptExecutor(ActivationExecutor):
    """Focuses a Safari tab through ``osascript``.

    A numeric token is a 0-based tab index in the front window; anything
    else selects the first tab whose name contains it.
    """

    def __init__(self, application: str = "Safari"):
        self.application = application

    def build_script(self, token: str) -> str:
        app = _sanitize_applescript(self.application)
        if token.isdigit():
            return (
                f'tell application "{app}"\n'
                f'    tell front window to set current tab to tab {int(token) + 1}\n'
                f'    activate\n'
                f'end tell'
            )
        safe_token = _sanitize_applescript(token)
        return (
            f'tell application "{app}"\n'
            f'    repeat with w in windows\n'
            f'        repeat with t in tabs of w\n'
            f'            if name of t contains "{safe_token}" then\n'
            f'                set current tab of w to t\n'
            f'                set index of w to 1\n'
            f'                activate\n'
            f'                return\n'
            f'            end if\n'
            f'        end repeat\n'
            f'    end repeat\n'
            f'end tell'
        )

    def activate(self, token: str) -> None:
        _launch(["osascript", "-e", self.build_script(token)])
        logger.info(f"Requested {self.application} tab switch to {token!r}")
