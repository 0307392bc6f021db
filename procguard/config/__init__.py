"""Configuration module for procguard."""

from procguard.errors import ConfigValidationError

from .defaults import get_default_config
from .manager import ConfigManager, create_config_manager, get_config_manager
from .providers import ConfigProvider, LayeredConfigProvider, LocalFileConfigProvider
from .schema import ProcGuardConfig, deep_merge, validate_config
from .settings import Settings, settings

__all__ = [
    "settings",
    "Settings",
    "ConfigManager",
    "ConfigValidationError",
    "ProcGuardConfig",
    "create_config_manager",
    "get_config_manager",
    "ConfigProvider",
    "LayeredConfigProvider",
    "LocalFileConfigProvider",
    "deep_merge",
    "get_default_config",
    "validate_config",
]
