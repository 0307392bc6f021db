"""Configuration settings for procguard.

This module provides a Settings class that wraps the ConfigManager,
providing property-based access to configuration values with an
environment-variable fallback when no manager is attached.
"""

from __future__ import annotations

import os
from typing import Any

from procguard.config.constants import ENV_PREFIX
from procguard.config.defaults import get_default_config
from procguard.config.manager import ConfigManager

_DEFAULTS = get_default_config()


def _default(key: str) -> Any:
    node: Any = _DEFAULTS
    for part in key.split("."):
        node = node[part]
    return node


class Settings:
    """Process-guard settings.

    Lookup order: attached ConfigManager, then ``PROCGUARD_*`` environment
    variables (``process.new_session`` -> ``PROCGUARD_PROCESS_NEW_SESSION``),
    then the built-in defaults.
    """

    def __init__(self, config_manager: ConfigManager | None = None):
        self._config_manager = config_manager

    def attach(self, config_manager: ConfigManager | None) -> None:
        self._config_manager = config_manager

    @staticmethod
    def env_key(key: str) -> str:
        return ENV_PREFIX + key.replace(".", "_").upper()

    def _get(self, key: str) -> Any:
        default = _default(key)
        if self._config_manager:
            return self._config_manager.get(key, default)
        env_val = os.getenv(self.env_key(key))
        if not env_val:
            return default
        if isinstance(default, bool):
            return env_val.lower() in ("true", "1", "yes", "on")
        if isinstance(default, float):
            return float(env_val)
        return env_val

    # Process Configuration
    @property
    def terminate_grace_period(self) -> float:
        return float(self._get("process.terminate_grace_period"))

    @property
    def new_session(self) -> bool:
        return bool(self._get("process.new_session"))

    # Registry Configuration
    @property
    def hook_release_timeout(self) -> float:
        return float(self._get("registry.hook_release_timeout"))

    @property
    def handle_sigterm(self) -> bool:
        return bool(self._get("shutdown.handle_sigterm"))

    # Environment Configuration
    @property
    def direct_query(self) -> bool:
        return bool(self._get("environment.direct_query"))

    @property
    def probe_encoding(self) -> str | None:
        return self._get("environment.probe_encoding")

    # Logging Configuration
    @property
    def log_level(self) -> str:
        return self._get("log_level")

    @property
    def log_format(self) -> str:
        return self._get("log_format")

    @property
    def log_colors(self) -> bool:
        return bool(self._get("log_colors"))


# Global settings instance (attach a config manager to make it file-backed)
settings = Settings()
