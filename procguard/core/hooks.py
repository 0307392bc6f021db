"""Shutdown-hook plumbing between the process registry and the host runtime.

``HookRegistrar`` is the seam: production code uses ``AtexitHookRegistrar``,
tests substitute a double that can simulate interpreter shutdown.
"""

from __future__ import annotations

import atexit
import signal
import threading
from collections.abc import Callable
from typing import Protocol

from procguard.config.constants import SHUTDOWN_HOOK_NAME
from procguard.errors import RegistrationError
from procguard.utils.logger import get_logger

logger = get_logger("hooks")


class HookRegistrar(Protocol):
    def register(self, callback: Callable[[], None]) -> None: ...
    def deregister(self, callback: Callable[[], None]) -> bool: ...
    def is_running(self) -> bool: ...


class ShutdownHook:
    """Callable handed to the host runtime.

    Once released it stays registered-or-not as the runtime decides, but any
    later invocation is a no-op.
    """

    def __init__(
        self,
        action: Callable[[ShutdownHook], None],
        name: str = SHUTDOWN_HOOK_NAME,
    ):
        self.name = name
        self._action = action
        self._enabled = True
        self._state_lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def __call__(self) -> None:
        with self._state_lock:
            if not self._enabled:
                return
            self._idle.clear()
        try:
            self._action(self)
        finally:
            self._idle.set()

    def release(self, timeout: float) -> bool:
        """Disable the hook and wait for an in-flight invocation to finish.

        Returns False if an invocation was still running after ``timeout``.
        """
        with self._state_lock:
            self._enabled = False
        return self._idle.wait(timeout)

    def __repr__(self) -> str:
        state = "enabled" if self._enabled else "released"
        return f"<ShutdownHook {self.name!r} {state}>"


class AtexitHookRegistrar:
    """HookRegistrar backed by the ``atexit`` module.

    atexit only fires on a normal interpreter exit. With ``handle_sigterm``
    a SIGTERM is turned into ``SystemExit`` so the hooks run then as well.
    """

    def __init__(self, *, handle_sigterm: bool = False):
        self._handle_sigterm = handle_sigterm
        self._lock = threading.Lock()
        self._wrappers: dict[int, Callable[[], None]] = {}
        self._started: set[int] = set()
        self._running = False
        self._sigterm_installed = False

    def register(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if self._running:
                raise RegistrationError("Interpreter shutdown in progress")
            key = id(callback)
            if key in self._wrappers:
                raise RegistrationError(f"Hook already registered: {callback!r}")

            def _run() -> None:
                with self._lock:
                    self._running = True
                    self._started.add(key)
                callback()

            atexit.register(_run)
            self._wrappers[key] = _run
            if self._handle_sigterm:
                self._install_sigterm_handler()
        logger.debug("Shutdown hook registered", hook=repr(callback))

    def deregister(self, callback: Callable[[], None]) -> bool:
        with self._lock:
            key = id(callback)
            wrapper = self._wrappers.pop(key, None)
            if wrapper is None:
                return False
            if key in self._started:
                # Already running; it cannot be taken back
                self._started.discard(key)
                return False
            atexit.unregister(wrapper)
        logger.debug("Shutdown hook deregistered", hook=repr(callback))
        return True

    def is_running(self) -> bool:
        return self._running

    def _install_sigterm_handler(self) -> None:
        if self._sigterm_installed:
            return
        if threading.current_thread() is not threading.main_thread():
            logger.warning("SIGTERM handler can only be installed from the main thread")
            return
        if signal.getsignal(signal.SIGTERM) not in (signal.SIG_DFL, None):
            logger.info("SIGTERM already handled by the application; leaving it alone")
            self._sigterm_installed = True
            return

        def _on_sigterm(signum, frame):
            logger.info("Received SIGTERM, exiting so shutdown hooks run")
            raise SystemExit(128 + signum)

        signal.signal(signal.SIGTERM, _on_sigterm)
        self._sigterm_installed = True
