from __future__ import annotations

import codecs
from copy import deepcopy
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from procguard.errors import ConfigValidationError


def deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge updates into base without mutating inputs.

    - Keys present in updates with non-None values are merged/overwritten
    - Keys present in updates with None values are skipped (preserve base value)
    - Keys not present in updates are preserved from base
    """
    result = deepcopy(base)
    for key, value in updates.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        elif key in result and value is None:
            continue
        else:
            result[key] = value
    return result


class ProcessConfig(BaseModel):
    terminate_grace_period: float = Field(default=3.0, ge=0)
    new_session: bool = True

    model_config = ConfigDict(extra="ignore")


class RegistryConfig(BaseModel):
    hook_release_timeout: float = Field(default=20.0, gt=0)

    model_config = ConfigDict(extra="ignore")


class ShutdownConfig(BaseModel):
    handle_sigterm: bool = False

    model_config = ConfigDict(extra="ignore")


class EnvironmentConfig(BaseModel):
    direct_query: bool = True
    probe_encoding: str | None = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("probe_encoding")
    @classmethod
    def check_encoding(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            codecs.lookup(value)
        except LookupError as exc:
            raise ValueError(f"Unknown encoding '{value}'") from exc
        return value


class ProcGuardConfig(BaseModel):
    process: ProcessConfig = Field(default_factory=ProcessConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    shutdown: ShutdownConfig = Field(default_factory=ShutdownConfig)
    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["pretty", "json"] = "pretty"
    log_colors: bool = True

    model_config = ConfigDict(extra="ignore")

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


def validate_config(config: dict[str, Any]) -> dict[str, Any]:
    """Validate configuration using the Pydantic schema.

    Raises:
        ConfigValidationError: With structured list of human-readable error messages.
    """
    try:
        return ProcGuardConfig.model_validate(config).model_dump(mode="json")
    except ValidationError as e:
        raise ConfigValidationError(_extract_validation_errors(e)) from e


def _extract_validation_errors(exc: ValidationError) -> list[str]:
    """Convert Pydantic ValidationError to list of human-readable messages."""
    errors = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err["loc"]) if err["loc"] else "config"
        msg = err["msg"]

        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]

        if err["type"] == "missing":
            errors.append(f"Missing required field: {loc}")
        elif err["type"] in ("float_type", "float_parsing"):
            errors.append(f"Expected number at '{loc}'")
        elif err["type"] in ("bool_type", "bool_parsing"):
            errors.append(f"Expected boolean at '{loc}'")
        elif err["type"] == "dict_type" or err["type"] == "model_type":
            errors.append(f"Expected object at '{loc}'")
        else:
            errors.append(f"{loc}: {msg}")

    return errors if errors else ["Invalid configuration"]
