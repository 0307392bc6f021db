"""Capture of the host environment for seeding child processes.

The snapshot is taken once per ``EnvironmentAcquirer`` and then served as
copies. It comes straight from the interpreter where the platform adapter
offers that, otherwise from the output of the platform's ``env``/``set``
helper.
"""

from __future__ import annotations

import locale
import os
import re
import threading

from procguard.config.settings import Settings
from procguard.config.settings import settings as default_settings
from procguard.errors import SpawnError
from procguard.execution.runner import ProcessRunner, SubprocessRunner
from procguard.platforms import get_os_adapter
from procguard.platforms.base import BaseOSAdapter
from procguard.utils.logger import env_logger as logger

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def _split_lines(text: str) -> list[str]:
    lines = _LINE_BREAK.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _add_variable(environment: dict[str, str], entry: str) -> None:
    name, _, value = entry.partition("=")
    if not name:
        logger.debug("Skipping environment entry without a name", entry=entry[:80])
        return
    environment[name] = value


def parse_environment_output(text: str, line_separator: str = os.linesep) -> dict[str, str]:
    """Parse ``NAME=value`` lines as printed by ``env`` or ``set``.

    Values may span several lines: a line without ``=`` belongs to the
    variable before it and is re-joined with ``line_separator``.
    """
    environment: dict[str, str] = {}
    pending: str | None = None
    for line in _split_lines(text):
        if "=" not in line:
            if pending is None:
                logger.debug("Dropping continuation line with no variable", line=line[:80])
                continue
            pending += line_separator + line
            continue
        if pending is not None:
            _add_variable(environment, pending)
        pending = line
    # Lines are consumed one ahead, so the last variable is still pending
    if pending is not None:
        _add_variable(environment, pending)
    return environment


class EnvironmentAcquirer:
    """Lazily computed, cached environment snapshot."""

    def __init__(
        self,
        adapter: BaseOSAdapter | None = None,
        runner: ProcessRunner | None = None,
        *,
        direct_query: bool | None = None,
        probe_encoding: str | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or default_settings
        self.adapter = adapter if adapter is not None else get_os_adapter()
        self.runner = runner if runner is not None else SubprocessRunner()
        self.direct_query = settings.direct_query if direct_query is None else direct_query
        self.probe_encoding = probe_encoding or settings.probe_encoding
        self._lock = threading.Lock()
        self._environment: dict[str, str] | None = None

    def get_environment(self) -> dict[str, str]:
        """Return a private copy of the environment snapshot.

        Raises:
            SpawnError: the OS family has no direct accessor and no usable
                helper command, or the helper could not be launched.
        """
        with self._lock:
            if self._environment is None:
                self._environment = self._create_environment()
            return dict(self._environment)

    def _create_environment(self) -> dict[str, str]:
        if self.direct_query:
            environment = self.adapter.read_environment()
            if environment is not None:
                logger.debug(
                    "Environment captured", source="direct", variables=len(environment)
                )
                return dict(environment)
        return self._probe_environment()

    def _probe_environment(self) -> dict[str, str]:
        command = self.adapter.env_probe_command()
        if command is None:
            raise SpawnError(
                "Cannot determine the environment on OS family "
                f"'{self.adapter.family.value}': no helper command known"
            )

        captured = self.runner.capture_output(command)
        # Some shells exit non-zero after printing everything; use what we got
        if captured.returncode:
            logger.debug(
                "Environment helper exited with non-zero status",
                command=str(command),
                exit_code=captured.returncode,
            )

        environment = parse_environment_output(
            self._decode(captured.stdout), self.adapter.line_separator
        )
        logger.info(
            "Environment captured",
            source="probe",
            command=str(command),
            variables=len(environment),
        )
        return environment

    def _decode(self, data: bytes) -> str:
        encoding = self.probe_encoding or self.adapter.output_encoding
        if encoding:
            try:
                return data.decode(encoding)
            except (LookupError, UnicodeDecodeError) as e:
                logger.debug(
                    "Falling back to platform encoding",
                    encoding=encoding,
                    error=str(e),
                )
        return data.decode(locale.getpreferredencoding(False), errors="replace")
