"""Runtime settings, read from ``MRU_TABS_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from mru_tabs.exceptions import ConfigError
from mru_tabs.history.exclusion import DEFAULT_EXCLUDED_PATTERNS
from mru_tabs.history.manager import ReconcilePolicy
from mru_tabs.switching.activation import DEFAULT_DEEPLINK_PREFIX, DEFAULT_OPEN_COMMAND

ENV_PREFIX = "MRU_TABS_"

DEFAULT_DB_PATH = Path.home() / ".local" / "share" / "mru-tabs" / "history.db"


@dataclass(frozen=True)
class Settings:
    """Tunables for one tab switcher. Durations are in seconds."""

    db_path: Path = DEFAULT_DB_PATH
    deeplink_prefix: str = DEFAULT_DEEPLINK_PREFIX
    open_command: str = DEFAULT_OPEN_COMMAND
    registry_url: str | None = None
    registry_timeout: float = 2.0
    open_debounce: float = 0.05
    double_press_window: float = 0.5
    retry_delay: float = 0.3
    switch_guard: float = 1.0
    pointer_confirm_delay: float = 0.05
    min_live_urls: int = 2
    min_history_size: int = 3
    max_removal_ratio: float = 0.70
    excluded_patterns: tuple[str, ...] = field(default=DEFAULT_EXCLUDED_PATTERNS)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            value = env.get(ENV_PREFIX + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        kwargs: dict = {}
        for name, attr in (
            ("DEEPLINK_PREFIX", "deeplink_prefix"),
            ("OPEN_COMMAND", "open_command"),
            ("REGISTRY_URL", "registry_url"),
        ):
            value = get(name)
            if value is not None:
                kwargs[attr] = value

        value = get("DB_PATH")
        if value is not None:
            kwargs["db_path"] = Path(value).expanduser()
        value = get("REGISTRY_TIMEOUT")
        if value is not None:
            kwargs["registry_timeout"] = _to_float("REGISTRY_TIMEOUT", value)

        for name, attr in (
            ("OPEN_DEBOUNCE_MS", "open_debounce"),
            ("DOUBLE_PRESS_MS", "double_press_window"),
            ("RETRY_DELAY_MS", "retry_delay"),
            ("SWITCH_GUARD_MS", "switch_guard"),
            ("POINTER_CONFIRM_MS", "pointer_confirm_delay"),
        ):
            value = get(name)
            if value is not None:
                kwargs[attr] = _to_float(name, value) / 1000.0

        for name, attr in (
            ("MIN_LIVE_URLS", "min_live_urls"),
            ("MIN_HISTORY_SIZE", "min_history_size"),
        ):
            value = get(name)
            if value is not None:
                kwargs[attr] = _to_int(name, value)

        value = get("MAX_REMOVAL_RATIO")
        if value is not None:
            ratio = _to_float("MAX_REMOVAL_RATIO", value)
            if ratio > 1.0:
                raise ConfigError(
                    f"{ENV_PREFIX}MAX_REMOVAL_RATIO must be between 0 and 1, got {value!r}"
                )
            kwargs["max_removal_ratio"] = ratio

        return cls(**kwargs)

    def reconcile_policy(self) -> ReconcilePolicy:
        return ReconcilePolicy(
            min_live_urls=self.min_live_urls,
            min_history_size=self.min_history_size,
            max_removal_ratio=self.max_removal_ratio,
        )


def _to_float(name: str, value: str) -> float:
    try:
        number = float(value)
    except ValueError as e:
        raise ConfigError(f"{ENV_PREFIX}{name} must be a number, got {value!r}") from e
    if number < 0:
        raise ConfigError(f"{ENV_PREFIX}{name} must not be negative, got {value!r}")
    return number


def _to_int(name: str, value: str) -> int:
    try:
        number = int(value)
    except ValueError as e:
        raise ConfigError(f"{ENV_PREFIX}{name} must be an integer, got {value!r}") from e
    if number < 0:
        raise ConfigError(f"{ENV_PREFIX}{name} must not be negative, got {value!r}")
    return number
