from __future__ import annotations

import os
import shlex
import subprocess
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from procguard.execution.command_line import CommandLine


class OSFamily(str, Enum):
    """Host operating-system families."""

    WINDOWS = "windows"
    WIN9X = "win9x"
    OS2 = "os/2"
    UNIX = "unix"
    ZOS = "z/os"
    NETWARE = "netware"
    OS400 = "os/400"
    MAC_CLASSIC = "mac"  # Mac OS 9 and earlier
    UNKNOWN = "unknown"


class OSAdapter(Protocol):
    family: OSFamily
    line_separator: str
    output_encoding: str | None

    def read_environment(self) -> dict[str, str] | None: ...
    def env_probe_command(self) -> CommandLine | None: ...
    def detect_shell(self) -> str | None: ...
    def shlex_split(self, command: str) -> list[str]: ...
    def make_shell_exec(self, command: str) -> tuple[list[str], dict[str, Any]]: ...
    def spawn_kwargs(self, *, new_session: bool = True) -> dict[str, Any]: ...
    def terminate_process(self, proc: Any, grace_period: float = 3.0) -> None: ...


class BaseOSAdapter:
    family: OSFamily = OSFamily.UNKNOWN
    line_separator: str = "\n"
    # None = decode probe output with the platform default encoding
    output_encoding: str | None = None

    def read_environment(self) -> dict[str, str] | None:
        """Direct environment accessor; None when the target has none."""
        return None

    def env_probe_command(self) -> CommandLine | None:
        """Command that prints ``NAME=value`` lines; None if the family has none."""
        return None

    def detect_shell(self) -> str | None:
        raise NotImplementedError

    def shlex_split(self, command: str) -> list[str]:
        return shlex.split(command, posix=True)

    def make_shell_exec(self, command: str) -> tuple[list[str], dict[str, Any]]:
        """Build argv and extra subprocess kwargs to execute a command via system shell.

        Subclasses should override for platform-specific behavior.
        """
        raise NotImplementedError

    def spawn_kwargs(self, *, new_session: bool = True) -> dict[str, Any]:
        """Extra ``subprocess.Popen`` kwargs for managed processes."""
        return {}

    def terminate_process(self, proc: Any, grace_period: float = 3.0) -> None:
        """Terminate a running process appropriately for the platform.

        The default asks politely, waits ``grace_period`` seconds and then
        kills. Subclasses override to reach whole process trees.
        """
        if proc.poll() is not None:
            return
        try:
            proc.terminate()
        except ProcessLookupError:
            return
        try:
            proc.wait(timeout=grace_period)
        except subprocess.TimeoutExpired:
            try:
                proc.kill()
            except ProcessLookupError:
                return
            proc.wait()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(family={self.family.value!r})"


def host_environment() -> dict[str, str]:
    """Copy of the interpreter's own environment block."""
    return dict(os.environ)
