from __future__ import annotations

import os
import signal
import subprocess
from pathlib import Path
from typing import Any

from procguard.execution.command_line import CommandLine

from .base import BaseOSAdapter, OSFamily, host_environment

# Some systems have /bin/env, others /usr/bin/env
ENV_PROBE_CANDIDATES: tuple[str, ...] = ("/bin/env", "/usr/bin/env")

SHELL_SEARCH_DIRS: tuple[str, ...] = (
    "/bin",
    "/usr/bin",
    "/usr/local/bin",
    "/run/current-system/sw/bin",  # NixOS
    "/opt/homebrew/bin",  # Homebrew (Apple Silicon)
    "/system/bin",  # Android
    "/data/data/com.termux/files/usr/bin",
)

SHELL_EXECUTABLES: tuple[str, ...] = ("sh", "bash", "dash", "ksh", "zsh")


def _is_executable(path: str | os.PathLike[str]) -> bool:
    try:
        p = Path(path)
        return p.is_file() and os.access(p, os.X_OK)
    except OSError:
        return False


def _is_readable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.R_OK)


class PosixAdapter(BaseOSAdapter):
    family = OSFamily.UNIX

    def read_environment(self) -> dict[str, str] | None:
        return host_environment()

    def env_probe_command(self) -> CommandLine | None:
        for candidate in ENV_PROBE_CANDIDATES:
            if _is_readable(candidate):
                return CommandLine(executable=candidate)
        # rely on PATH
        return CommandLine(executable="env")

    def detect_shell(self) -> str | None:
        # 1) Respect SHELL if it points to an existing executable
        shell = os.environ.get("SHELL")
        if shell and _is_executable(shell):
            return shell

        # 2) Known dirs x shell names (POSIX-first priority)
        for name in SHELL_EXECUTABLES:
            for d in SHELL_SEARCH_DIRS:
                p = f"{d}/{name}"
                if _is_executable(p):
                    return p

        # 3) Last resort
        return "/bin/sh"

    def make_shell_exec(self, command: str) -> tuple[list[str], dict[str, Any]]:
        shell_path = self.detect_shell() or "/bin/sh"
        return [shell_path, "-c", command], {}

    def spawn_kwargs(self, *, new_session: bool = True) -> dict[str, Any]:
        # A new session makes the child a group leader so the whole tree can be signalled
        return {"start_new_session": True} if new_session else {}

    def terminate_process(self, proc: Any, grace_period: float = 3.0) -> None:
        if proc.poll() is not None:
            return
        pgid = self._own_group(proc)
        if pgid is None:
            super().terminate_process(proc, grace_period)
            return

        try:
            os.killpg(pgid, signal.SIGTERM)
        except ProcessLookupError:
            return
        try:
            proc.wait(timeout=grace_period)
            return
        except subprocess.TimeoutExpired:
            pass
        try:
            os.killpg(pgid, signal.SIGKILL)
        except ProcessLookupError:
            return
        proc.wait()

    @staticmethod
    def _own_group(proc: Any) -> int | None:
        """Process group id of ``proc`` if it leads a group other than ours."""
        pid = getattr(proc, "pid", None)
        if not pid:
            return None
        try:
            pgid = os.getpgid(pid)
        except ProcessLookupError:
            return None
        if pgid != pid or pgid == os.getpgrp():
            return None
        return pgid
