"""Configuration manager with reload support."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from threading import RLock
from typing import Any, TypeVar

from procguard.config.constants import CONFIG_FILE_NAME
from procguard.config.defaults import get_default_config
from procguard.config.providers import (
    ConfigProvider,
    LayeredConfigProvider,
    LocalFileConfigProvider,
)
from procguard.config.schema import deep_merge, validate_config
from procguard.utils.logger import get_logger

logger = get_logger("config.manager")

T = TypeVar("T")


class ConfigManager:
    """Manages procguard configuration.

    Wraps a provider (local file, layered, ...) and allows registering
    callbacks for configuration changes. Loaded values are normalized
    through the schema, so ``get`` sees e.g. upper-case log levels.
    """

    def __init__(self, provider: ConfigProvider):
        self.provider = provider
        self._config: dict[str, Any] = {}
        self._change_callbacks: list[Callable[[dict[str, Any]], None]] = []
        self._loaded = False
        self._lock = RLock()

    @property
    def loaded(self) -> bool:
        return self._loaded

    def initialize(self) -> None:
        """Load the initial configuration from the provider."""
        with self._lock:
            self._config = validate_config(self.provider.load())
            self._loaded = True
        logger.info("Configuration initialized", config_keys=list(self._config.keys()))

    def reload(self) -> None:
        """Re-read the provider and notify callbacks if anything changed."""
        new_config = validate_config(self.provider.load())
        with self._lock:
            old_config = self._config
            self._config = new_config

        changed_keys = [
            key
            for key in set(old_config.keys()) | set(new_config.keys())
            if old_config.get(key) != new_config.get(key)
        ]
        if changed_keys:
            logger.info("Configuration reloaded", changed_keys=changed_keys)
            self._notify_callbacks()
        else:
            logger.debug("Configuration reloaded with no changes")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by key; dotted keys walk nested sections."""
        with self._lock:
            node: Any = self._config
            for part in key.split("."):
                if isinstance(node, dict) and part in node:
                    node = node[part]
                else:
                    return default
            return node

    def get_typed(self, key: str, expected_type: type[T], default: T) -> T:
        """Get a typed configuration value with validation."""
        value = self.get(key, default)
        # bool is an int subclass; an int where a float is expected is fine
        if expected_type is float and isinstance(value, int) and not isinstance(value, bool):
            return float(value)  # type: ignore[return-value]
        if not isinstance(value, expected_type):
            logger.warning(
                "Config type mismatch, using default",
                key=key,
                expected=expected_type.__name__,
                actual=type(value).__name__,
            )
            return default
        return value

    def get_str(self, key: str, default: str = "") -> str:
        return self.get_typed(key, str, default)

    def get_float(self, key: str, default: float = 0.0) -> float:
        return self.get_typed(key, float, default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        return self.get_typed(key, bool, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value and persist it.

        Dotted keys address nested sections, e.g. ``process.new_session``.
        """
        update: dict[str, Any] = value
        for part in reversed(key.split(".")):
            update = {part: update}
        self.update(update)

    def update(self, updates: dict[str, Any]) -> None:
        """Update multiple configuration values at once."""
        with self._lock:
            user_cfg = getattr(self.provider, "_user_config", None)
            if not isinstance(user_cfg, dict):
                user_cfg = {}
            # Persist only the user layer so defaults stay upgradable
            self.provider.save(deep_merge(user_cfg, updates))
            self._config = validate_config(deep_merge(self._config, updates))

        logger.info("Configuration updated", keys=list(updates.keys()))
        self._notify_callbacks()

    def get_all(self) -> dict[str, Any]:
        """Get the entire configuration dictionary."""
        with self._lock:
            return self._config.copy()

    def register_change_callback(
        self, callback: Callable[[dict[str, Any]], None]
    ) -> None:
        """Register a callback to be called when configuration changes."""
        self._change_callbacks.append(callback)

    def _notify_callbacks(self) -> None:
        config = self.get_all()
        for callback in self._change_callbacks:
            try:
                callback(config.copy())
            except Exception as e:
                logger.error(
                    "Error in config change callback",
                    error=str(e),
                    callback=getattr(callback, "__name__", repr(callback)),
                )


# Global config manager instance
_config_manager: ConfigManager | None = None


def create_config_manager(
    config_dir: Path,
    *,
    local_config_path: Path | None = None,
    defaults: dict[str, Any] | None = None,
) -> ConfigManager:
    """Create the global config manager.

    Args:
        config_dir: Directory holding the user-level config.json
        local_config_path: Optional project-scoped config.json for overrides
        defaults: Default configuration values
    """
    global _config_manager

    if defaults is None:
        defaults = get_default_config()
    config_path = config_dir / CONFIG_FILE_NAME
    base_provider = LocalFileConfigProvider(config_path, defaults=defaults)
    provider: ConfigProvider = base_provider
    if local_config_path:
        provider = LayeredConfigProvider(
            [
                base_provider,
                LocalFileConfigProvider(
                    local_config_path, defaults={}, create_if_missing=False
                ),
            ],
            primary_index=0,
        )
    _config_manager = ConfigManager(provider)

    logger.info("Config manager created", config_path=str(config_path))
    return _config_manager


def get_config_manager() -> ConfigManager:
    """Get the global config manager instance."""
    if _config_manager is None:
        raise RuntimeError(
            "Config manager not initialized. Call create_config_manager() first."
        )
    return _config_manager
