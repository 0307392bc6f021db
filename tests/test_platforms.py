"""Tests for OS family detection and platform adapters."""

import os
import signal
import subprocess
import sys
import time

import pytest

from procguard.platforms import (
    NetWareAdapter,
    PosixAdapter,
    WindowsAdapter,
    detect_os_family,
    get_os_adapter,
)
from procguard.platforms import posix as posix_module
from procguard.platforms.base import OSFamily


@pytest.mark.parametrize(
    ("system_platform", "os_name", "release", "expected"),
    [
        ("linux", "posix", "6.1", OSFamily.UNIX),
        ("darwin", "posix", "23.0", OSFamily.UNIX),
        ("freebsd14", "posix", "14.0", OSFamily.UNIX),
        ("win32", "nt", "10", OSFamily.WINDOWS),
        ("win32", "nt", "98", OSFamily.WIN9X),
        ("win32", "nt", "Me", OSFamily.WIN9X),
        ("os2emx", "os2", "", OSFamily.OS2),
        ("zos", "posix", "", OSFamily.ZOS),
        ("os400", "posix", "", OSFamily.OS400),
        ("netware", "nw", "", OSFamily.NETWARE),
        ("mac", "mac", "", OSFamily.MAC_CLASSIC),
        ("amiga", "amiga", "", OSFamily.UNKNOWN),
    ],
)
def test_detect_os_family(system_platform, os_name, release, expected):
    assert detect_os_family(system_platform, os_name, release) is expected


def test_detect_os_family_defaults_to_host():
    family = detect_os_family()
    expected = OSFamily.WINDOWS if os.name == "nt" else OSFamily.UNIX

    assert family is expected


@pytest.mark.parametrize(
    ("family", "argv"),
    [
        (OSFamily.OS2, ["cmd", "/c", "set"]),
        (OSFamily.WINDOWS, ["cmd", "/c", "set"]),
        (OSFamily.WIN9X, ["command.com", "/c", "set"]),
        (OSFamily.NETWARE, ["env"]),
        (OSFamily.OS400, ["env"]),
    ],
)
def test_probe_command_per_family(family, argv):
    command = get_os_adapter(family).env_probe_command()

    assert command is not None
    assert command.to_argv() == argv


@pytest.mark.parametrize("family", [OSFamily.MAC_CLASSIC, OSFamily.UNKNOWN])
def test_no_probe_command_for_unsupported_families(family):
    assert get_os_adapter(family).env_probe_command() is None


@pytest.mark.parametrize("family", [OSFamily.UNIX, OSFamily.ZOS])
@pytest.mark.parametrize(
    ("readable", "expected"),
    [
        ({"/bin/env", "/usr/bin/env"}, "/bin/env"),
        ({"/usr/bin/env"}, "/usr/bin/env"),
        (set(), "env"),
    ],
)
def test_unix_probe_prefers_existing_env(monkeypatch, family, readable, expected):
    """/bin/env, then /usr/bin/env, then whatever PATH finds."""
    monkeypatch.setattr(posix_module, "_is_readable", lambda path: path in readable)

    command = get_os_adapter(family).env_probe_command()

    assert command.to_argv() == [expected]


@pytest.mark.parametrize(
    ("family", "has_direct"),
    [
        (OSFamily.UNIX, True),
        (OSFamily.WINDOWS, True),
        (OSFamily.WIN9X, False),
        (OSFamily.OS2, False),
        (OSFamily.ZOS, False),
        (OSFamily.NETWARE, False),
        (OSFamily.OS400, False),
        (OSFamily.MAC_CLASSIC, False),
    ],
)
def test_direct_environment_accessor(family, has_direct):
    env = get_os_adapter(family).read_environment()

    assert (env is not None) == has_direct
    if has_direct:
        assert env == dict(os.environ)


def test_line_separators_and_encodings():
    assert get_os_adapter(OSFamily.WINDOWS).line_separator == "\r\n"
    assert get_os_adapter(OSFamily.OS2).line_separator == "\r\n"
    assert get_os_adapter(OSFamily.UNIX).line_separator == "\n"
    assert get_os_adapter(OSFamily.ZOS).output_encoding == "cp1047"
    assert get_os_adapter(OSFamily.OS400).output_encoding == "cp500"
    assert get_os_adapter(OSFamily.UNIX).output_encoding is None


def test_get_os_adapter_accepts_tag_strings():
    assert isinstance(get_os_adapter("netware"), NetWareAdapter)
    assert get_os_adapter("os/400").family is OSFamily.OS400


def test_windows_shell_exec_uses_comspec(monkeypatch):
    monkeypatch.setenv("COMSPEC", r"C:\Windows\System32\cmd.exe")

    argv, extra = WindowsAdapter().make_shell_exec("echo hi")

    assert argv == [r"C:\Windows\System32\cmd.exe", "/d", "/s", "/c", "echo hi"]
    assert extra == {}


def test_windows_split_keeps_backslashes():
    assert WindowsAdapter().shlex_split(r"C:\tools\env.exe /c") == [
        r"C:\tools\env.exe",
        "/c",
    ]


def test_posix_shell_exec_wraps_in_dash_c():
    argv, _ = PosixAdapter().make_shell_exec("echo hi")

    assert argv[-2:] == ["-c", "echo hi"]


def test_posix_spawn_kwargs_start_new_session():
    assert PosixAdapter().spawn_kwargs() == {"start_new_session": True}
    assert PosixAdapter().spawn_kwargs(new_session=False) == {}
    assert WindowsAdapter().spawn_kwargs() == {}


@pytest.mark.skipif(os.name != "posix", reason="process groups are POSIX-only")
def test_posix_terminate_signals_process_group():
    """A group leader is stopped with SIGTERM sent to its whole group."""
    proc = subprocess.Popen(
        [sys.executable, "-c", "import time; time.sleep(60)"], start_new_session=True
    )

    PosixAdapter().terminate_process(proc, grace_period=5.0)

    assert proc.returncode == -signal.SIGTERM


def test_terminate_escalates_to_kill():
    """A process that ignores SIGTERM is killed after the grace period."""
    script = (
        "import signal, sys, time; "
        "signal.signal(signal.SIGTERM, signal.SIG_IGN); "
        "print('ready', flush=True); time.sleep(60)"
    )
    adapter = get_os_adapter()
    proc = subprocess.Popen(
        [sys.executable, "-c", script],
        stdout=subprocess.PIPE,
        **adapter.spawn_kwargs(),
    )
    assert proc.stdout.readline().strip() == b"ready"

    started = time.monotonic()
    adapter.terminate_process(proc, grace_period=0.5)

    assert proc.returncode is not None
    assert time.monotonic() - started < 10
    proc.stdout.close()


def test_terminate_already_exited_process_is_noop():
    proc = subprocess.Popen([sys.executable, "-c", "pass"])
    proc.wait()

    get_os_adapter().terminate_process(proc, grace_period=0.1)

    assert proc.returncode == 0
