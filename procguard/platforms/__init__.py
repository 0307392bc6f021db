from __future__ import annotations

import os
import platform
import sys

from .base import BaseOSAdapter, OSAdapter, OSFamily
from .legacy import (
    MacClassicAdapter,
    NetWareAdapter,
    OS2Adapter,
    OS400Adapter,
    UnknownAdapter,
    Win9xAdapter,
    ZOSAdapter,
)
from .posix import PosixAdapter
from .windows import WindowsAdapter

_ADAPTERS: dict[OSFamily, type[BaseOSAdapter]] = {
    OSFamily.WINDOWS: WindowsAdapter,
    OSFamily.WIN9X: Win9xAdapter,
    OSFamily.OS2: OS2Adapter,
    OSFamily.UNIX: PosixAdapter,
    OSFamily.ZOS: ZOSAdapter,
    OSFamily.NETWARE: NetWareAdapter,
    OSFamily.OS400: OS400Adapter,
    OSFamily.MAC_CLASSIC: MacClassicAdapter,
    OSFamily.UNKNOWN: UnknownAdapter,
}

WIN9X_RELEASES = ("95", "98", "me")


def detect_os_family(
    system_platform: str | None = None,
    os_name: str | None = None,
    release: str | None = None,
) -> OSFamily:
    """Classify the host OS.

    Arguments default to ``sys.platform``, ``os.name`` and
    ``platform.release()``; pass them explicitly to classify another host.
    """
    system_platform = (system_platform if system_platform is not None else sys.platform).lower()
    os_name = os_name if os_name is not None else os.name

    if system_platform.startswith("os2"):
        return OSFamily.OS2
    if system_platform == "zos":
        return OSFamily.ZOS
    if system_platform == "os400":
        return OSFamily.OS400
    if system_platform.startswith("netware"):
        return OSFamily.NETWARE
    if os_name == "nt":
        if release is None:
            release = platform.release()
        if release.lower() in WIN9X_RELEASES:
            return OSFamily.WIN9X
        return OSFamily.WINDOWS
    if os_name == "posix":
        return OSFamily.UNIX
    if os_name == "mac":
        return OSFamily.MAC_CLASSIC
    return OSFamily.UNKNOWN


def get_os_adapter(family: OSFamily | str | None = None) -> BaseOSAdapter:
    """Return an OS-specific adapter instance, detecting the family if omitted."""
    if family is None:
        family = detect_os_family()
    return _ADAPTERS[OSFamily(family)]()


__all__ = [
    "BaseOSAdapter",
    "OSAdapter",
    "OSFamily",
    "PosixAdapter",
    "WindowsAdapter",
    "OS2Adapter",
    "Win9xAdapter",
    "ZOSAdapter",
    "NetWareAdapter",
    "OS400Adapter",
    "MacClassicAdapter",
    "UnknownAdapter",
    "detect_os_family",
    "get_os_adapter",
]
