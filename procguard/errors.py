"""Exception hierarchy for procguard."""

from __future__ import annotations


class ProcGuardError(Exception):
    """Base class for all procguard errors."""


class RegistrationError(ProcGuardError):
    """The host runtime refused to add or remove a shutdown hook.

    Non-fatal: the registry logs it and keeps its bookkeeping consistent.
    """


class SpawnError(ProcGuardError, OSError):
    """A helper or managed process could not be launched.

    Also raised when the host OS family has no way to list its environment.
    """


class ConfigValidationError(ProcGuardError):
    """Structured configuration validation error."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))
