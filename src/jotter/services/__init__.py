"""Service layer: persisted settings."""

from .settings import Settings, SettingsStore, active_env_overrides, parse_overrides

__all__ = ["Settings", "SettingsStore", "active_env_overrides", "parse_overrides"]
