"""Spawn child processes that are tracked by a ProcessRegistry."""

from __future__ import annotations

import subprocess
import threading
from collections.abc import Mapping, Sequence
from typing import IO, Any

from procguard.config.settings import Settings
from procguard.config.settings import settings as default_settings
from procguard.core.environment import EnvironmentAcquirer
from procguard.core.process_registry import ProcessRegistry
from procguard.errors import SpawnError
from procguard.execution.command_line import CommandLine
from procguard.platforms import get_os_adapter
from procguard.platforms.base import BaseOSAdapter
from procguard.utils.logger import get_logger

logger = get_logger("execution.launcher")

_Stream = int | IO[Any] | None


class ManagedProcess:
    """A ``subprocess.Popen`` that leaves its registry once it is gone."""

    def __init__(
        self,
        popen: subprocess.Popen,
        registry: ProcessRegistry,
        adapter: BaseOSAdapter,
        grace_period: float,
        argv: list[str],
    ):
        self.popen = popen
        self.argv = argv
        self._registry = registry
        self._adapter = adapter
        self._grace_period = grace_period
        self._released = False
        self._release_lock = threading.Lock()

    @property
    def pid(self) -> int:
        return self.popen.pid

    @property
    def returncode(self) -> int | None:
        return self.popen.returncode

    def is_alive(self) -> bool:
        return self.popen.poll() is None

    def wait(self, timeout: float | None = None) -> int:
        """Wait for exit and stop tracking the process.

        Raises ``subprocess.TimeoutExpired`` if it is still running.
        """
        code = self.popen.wait(timeout=timeout)
        self._release()
        return code

    def destroy(self) -> None:
        """Best-effort termination of the process (and its group on POSIX)."""
        if self.is_alive():
            logger.debug("Destroying process", pid=self.pid, argv=self.argv)
            try:
                self._adapter.terminate_process(self.popen, self._grace_period)
            except OSError as e:
                logger.warning("Failed to terminate process", pid=self.pid, error=str(e))
        self._release()

    def _release(self) -> None:
        with self._release_lock:
            if self._released:
                return
            self._released = True
        self._registry.remove(self)

    def __enter__(self) -> ManagedProcess:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.destroy()

    def __repr__(self) -> str:
        state = "running" if self.popen.returncode is None else f"exit={self.popen.returncode}"
        return f"<ManagedProcess pid={self.popen.pid} {state} argv={self.argv!r}>"


class ProcessLauncher:
    """Starts processes with a seeded environment and registers them."""

    def __init__(
        self,
        registry: ProcessRegistry,
        environment: EnvironmentAcquirer | None = None,
        adapter: BaseOSAdapter | None = None,
        settings: Settings | None = None,
    ):
        self._settings = settings or default_settings
        self.registry = registry
        self.adapter = adapter if adapter is not None else get_os_adapter()
        if environment is None:
            environment = EnvironmentAcquirer(self.adapter, settings=self._settings)
        self.environment = environment

    def spawn(
        self,
        command: CommandLine | Sequence[str] | str,
        *,
        env: Mapping[str, str] | None = None,
        inherit_environment: bool = True,
        cwd: str | None = None,
        stdin: _Stream = None,
        stdout: _Stream = None,
        stderr: _Stream = None,
    ) -> ManagedProcess:
        """Start ``command`` and track it until it is waited for or destroyed.

        A plain string is run through the system shell; a ``CommandLine`` or
        argv list is executed directly.
        """
        argv, extra = self._resolve(command)

        child_env = self.environment.get_environment() if inherit_environment else {}
        if env:
            child_env.update({str(k): str(v) for k, v in env.items()})

        kwargs = self.adapter.spawn_kwargs(new_session=self._settings.new_session)
        kwargs.update(extra)
        try:
            popen = subprocess.Popen(
                argv,
                env=child_env,
                cwd=cwd,
                stdin=stdin,
                stdout=stdout,
                stderr=stderr,
                **kwargs,
            )
        except OSError as e:
            raise SpawnError(f"Cannot launch {argv[0]!r}: {e}") from e

        handle = ManagedProcess(
            popen,
            self.registry,
            self.adapter,
            self._settings.terminate_grace_period,
            argv,
        )
        self.registry.add(handle)
        logger.info("Process started", pid=popen.pid, argv=argv)
        return handle

    def _resolve(
        self, command: CommandLine | Sequence[str] | str
    ) -> tuple[list[str], dict[str, Any]]:
        if isinstance(command, CommandLine):
            return command.to_argv(), {}
        if isinstance(command, str):
            if not command.strip():
                raise ValueError("Command is empty")
            return self.adapter.make_shell_exec(command)
        argv = [str(part) for part in command]
        if not argv:
            raise ValueError("Command is empty")
        return argv, {}
