"""Synchronous output capture for short-lived helper processes."""

from __future__ import annotations

import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from procguard.errors import SpawnError
from procguard.execution.command_line import CommandLine
from procguard.utils.logger import get_logger

logger = get_logger("execution.runner")


@dataclass(frozen=True)
class CapturedOutput:
    stdout: bytes
    stderr: bytes = b""
    returncode: int | None = None


class ProcessRunner(Protocol):
    def capture_output(
        self,
        command: CommandLine,
        env: Mapping[str, str] | None = None,
        cwd: str | None = None,
    ) -> CapturedOutput: ...


class SubprocessRunner:
    """Run a command to completion and hand back everything it printed.

    There is deliberately no timeout: a helper that never exits blocks the
    caller. The exit status is reported, not checked.
    """

    def capture_output(
        self,
        command: CommandLine,
        env: Mapping[str, str] | None = None,
        cwd: str | None = None,
    ) -> CapturedOutput:
        argv = command.to_argv()
        logger.debug("Running helper process", argv=argv, cwd=cwd)
        try:
            completed = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=dict(env) if env is not None else None,
                cwd=cwd,
                check=False,
            )
        except OSError as e:
            raise SpawnError(f"Cannot launch {command.executable!r}: {e}") from e

        logger.debug(
            "Helper process finished",
            argv=argv,
            exit_code=completed.returncode,
            stdout_bytes=len(completed.stdout),
            stderr_bytes=len(completed.stderr),
        )
        return CapturedOutput(
            stdout=completed.stdout,
            stderr=completed.stderr,
            returncode=completed.returncode,
        )
