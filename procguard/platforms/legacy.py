"""Adapters for OS families that CPython no longer ships for.

None of these targets offers a trustworthy direct environment accessor, so
the environment is always obtained by probing a helper command.
"""

from __future__ import annotations

from procguard.execution.command_line import CommandLine

from .base import BaseOSAdapter, OSFamily
from .posix import PosixAdapter
from .windows import WindowsAdapter


class OS2Adapter(WindowsAdapter):
    # Same mechanism as Windows 2000
    family = OSFamily.OS2

    def read_environment(self) -> dict[str, str] | None:
        return None


class Win9xAdapter(WindowsAdapter):
    family = OSFamily.WIN9X
    probe_shell = "command.com"

    def read_environment(self) -> dict[str, str] | None:
        return None

    def detect_shell(self) -> str | None:
        return "command.com"


class ZOSAdapter(PosixAdapter):
    family = OSFamily.ZOS
    # EBCDIC; not every Python build ships this codec
    output_encoding = "cp1047"

    def read_environment(self) -> dict[str, str] | None:
        return None


class NetWareAdapter(BaseOSAdapter):
    family = OSFamily.NETWARE

    def env_probe_command(self) -> CommandLine | None:
        return CommandLine(executable="env")


class OS400Adapter(NetWareAdapter):
    family = OSFamily.OS400
    output_encoding = "cp500"


class MacClassicAdapter(BaseOSAdapter):
    family = OSFamily.MAC_CLASSIC


class UnknownAdapter(BaseOSAdapter):
    family = OSFamily.UNKNOWN
