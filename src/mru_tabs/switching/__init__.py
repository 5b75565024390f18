"""Switch-target resolution and activation executors."""

from mru_tabs.switching.activation import (
    DEFAULT_DEEPLINK_PREFIX,
    ActivationExecutor,
    AppleScriptExecutor,
    DeepLinkExecutor,
)
from mru_tabs.switching.resolver import resolve_previous, switch_token

__all__ = [
    "DEFAULT_DEEPLINK_PREFIX",
    "ActivationExecutor",
    "AppleScriptExecutor",
    "DeepLinkExecutor",
    "resolve_previous",
    "switch_token",
]
