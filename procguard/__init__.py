"""Keep child processes from outliving their host, and capture the host environment."""

from procguard.core import (
    AtexitHookRegistrar,
    EnvironmentAcquirer,
    HookRegistrar,
    HookState,
    ProcessHandle,
    ProcessRegistry,
    ShutdownHook,
    parse_environment_output,
)
from procguard.errors import (
    ConfigValidationError,
    ProcGuardError,
    RegistrationError,
    SpawnError,
)
from procguard.execution import CapturedOutput, CommandLine, SubprocessRunner
from procguard.execution.launcher import ManagedProcess, ProcessLauncher
from procguard.platforms import OSFamily, detect_os_family, get_os_adapter

__version__ = "0.1.0"

__all__ = [
    "AtexitHookRegistrar",
    "CapturedOutput",
    "CommandLine",
    "ConfigValidationError",
    "EnvironmentAcquirer",
    "HookRegistrar",
    "HookState",
    "ManagedProcess",
    "OSFamily",
    "ProcGuardError",
    "ProcessHandle",
    "ProcessLauncher",
    "ProcessRegistry",
    "RegistrationError",
    "ShutdownHook",
    "SpawnError",
    "SubprocessRunner",
    "detect_os_family",
    "get_os_adapter",
    "parse_environment_output",
]
