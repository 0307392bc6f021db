from __future__ import annotations

import os
import shutil
from typing import Any

from procguard.execution.command_line import CommandLine

from .base import BaseOSAdapter, OSFamily, host_environment


class WindowsAdapter(BaseOSAdapter):
    family = OSFamily.WINDOWS
    line_separator = "\r\n"
    probe_shell = "cmd"

    def read_environment(self) -> dict[str, str] | None:
        return host_environment()

    def env_probe_command(self) -> CommandLine | None:
        return CommandLine(executable=self.probe_shell, arguments=["/c", "set"])

    def detect_shell(self) -> str | None:
        # Prefer COMSPEC, then PowerShell, then cmd.exe
        comspec = os.environ.get("COMSPEC")
        if comspec:
            return comspec
        ps = shutil.which("powershell.exe") or shutil.which("pwsh.exe")
        return ps or "cmd.exe"

    def shlex_split(self, command: str) -> list[str]:
        import shlex

        return shlex.split(command, posix=False)

    def make_shell_exec(self, command: str) -> tuple[list[str], dict[str, Any]]:
        shell_path = self.detect_shell() or "cmd.exe"
        low = shell_path.lower()
        if low.endswith("powershell.exe") or low.endswith("pwsh.exe"):
            argv = [
                shell_path,
                "-NoProfile",
                "-NonInteractive",
                "-ExecutionPolicy",
                "Bypass",
                "-Command",
                command,
            ]
            return argv, {}
        return [shell_path, "/d", "/s", "/c", command], {}
