"""Core logic - process registry, shutdown hooks and environment capture."""

from .environment import EnvironmentAcquirer, parse_environment_output
from .hooks import AtexitHookRegistrar, HookRegistrar, ShutdownHook
from .process_registry import HookState, ProcessHandle, ProcessRegistry

__all__ = [
    "AtexitHookRegistrar",
    "EnvironmentAcquirer",
    "HookRegistrar",
    "HookState",
    "ProcessHandle",
    "ProcessRegistry",
    "ShutdownHook",
    "parse_environment_output",
]
