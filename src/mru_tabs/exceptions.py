"""Unified exception hierarchy for mru-tabs."""


class MruTabsError(Exception):
    """Base exception for all mru-tabs errors."""


# History
class HistoryError(MruTabsError):
    """Base exception for tab history operations."""


class HistoryStoreError(HistoryError):
    """Failed to read or write the persisted history store."""


# Live-tab registry
class RegistryError(MruTabsError):
    """Base exception for live-tab registry operations."""


class RegistryQueryError(RegistryError):
    """Failed to query or update the live-tab registry."""


# Activation
class ActivationError(MruTabsError):
    """The activation executor could not launch a tab switch."""


# Cycle preview
class CycleSessionError(MruTabsError):
    """Invalid transition on a cycle preview session."""


# Config
class ConfigError(MruTabsError):
    """Invalid configuration value."""
