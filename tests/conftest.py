"""Shared pytest fixtures for all tests."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from procguard.errors import RegistrationError


class FakeHookRegistrar:
    """In-memory HookRegistrar that can simulate interpreter shutdown."""

    def __init__(self, *, fail_register: bool = False, fail_deregister: bool = False):
        self.fail_register = fail_register
        self.fail_deregister = fail_deregister
        self.registered: list = []
        self.register_calls = 0
        self.deregister_calls = 0
        self.max_registered = 0
        self._running = False
        self._lock = threading.Lock()

    def register(self, callback) -> None:
        with self._lock:
            self.register_calls += 1
            if self.fail_register:
                raise RegistrationError("register refused")
            if any(cb is callback for cb in self.registered):
                raise RegistrationError("already registered")
            self.registered.append(callback)
            self.max_registered = max(self.max_registered, len(self.registered))

    def deregister(self, callback) -> bool:
        with self._lock:
            self.deregister_calls += 1
            if self.fail_deregister:
                raise RegistrationError("deregister refused")
            for index, cb in enumerate(self.registered):
                if cb is callback:
                    del self.registered[index]
                    return True
            return False

    def is_running(self) -> bool:
        return self._running

    def begin_shutdown(self) -> list:
        """Take the hooks off the table as the interpreter does before running them."""
        with self._lock:
            self._running = True
            hooks, self.registered = self.registered, []
        return hooks

    def fire(self) -> None:
        """Run every registered hook the way the interpreter would at exit."""
        with self._lock:
            self._running = True
            hooks = list(self.registered)
        for hook in hooks:
            hook()


class RecordingHandle:
    """Process handle that counts destroy() calls."""

    def __init__(self, name: str = "proc", *, fail: bool = False):
        self.name = name
        self.fail = fail
        self.destroy_calls = 0

    def destroy(self) -> None:
        self.destroy_calls += 1
        if self.fail:
            raise OSError(f"cannot destroy {self.name}")

    def __repr__(self) -> str:
        return f"RecordingHandle({self.name!r})"


@pytest.fixture
def registrar() -> FakeHookRegistrar:
    return FakeHookRegistrar()


@pytest.fixture(autouse=True)
def clean_procguard_env(monkeypatch):
    """Keep PROCGUARD_* variables from the developer's shell out of the tests."""
    import os

    for key in list(os.environ):
        if key.startswith("PROCGUARD_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def temp_config_dir(tmp_path_factory) -> Path:
    return Path(tmp_path_factory.mktemp("procguard_config"))


@pytest.fixture
def registrar_factory():
    return FakeHookRegistrar


@pytest.fixture
def make_handle():
    def _make(name: str = "proc", *, fail: bool = False) -> RecordingHandle:
        return RecordingHandle(name, fail=fail)

    return _make
