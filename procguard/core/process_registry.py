"""Registry of live child processes that must not outlive the host.

The registry owns exactly one shutdown hook while it tracks at least one
process. The hook is registered when the first process is added and
withdrawn when the last one is removed, so an idle host carries no hook.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Protocol

from procguard.config.settings import Settings
from procguard.config.settings import settings as default_settings
from procguard.core.hooks import AtexitHookRegistrar, HookRegistrar, ShutdownHook
from procguard.errors import RegistrationError
from procguard.utils.logger import registry_logger as logger


class HookState(str, Enum):
    """Lifecycle of the registry's shutdown hook."""

    NOT_REGISTERED = "not_registered"
    REGISTERED = "registered"
    RUNNING = "running"  # terminal for the hook instance


class ProcessHandle(Protocol):
    def destroy(self) -> None: ...


class ProcessRegistry:
    """Thread-safe set of process handles destroyed on host shutdown.

    Handles are tracked by identity and never owned: whoever spawned a
    process still decides when to reap it and must ``remove`` it afterwards.

    The lock is re-entrant because a handle's ``destroy`` may call back into
    ``remove`` while the destroy loop holds it.
    """

    def __init__(
        self,
        registrar: HookRegistrar | None = None,
        *,
        hook_release_timeout: float | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or default_settings
        if registrar is None:
            registrar = AtexitHookRegistrar(handle_sigterm=settings.handle_sigterm)
        if hook_release_timeout is None:
            hook_release_timeout = settings.hook_release_timeout

        self._registrar = registrar
        self._hook_release_timeout = hook_release_timeout
        self._processes: list[ProcessHandle] = []
        self._lock = threading.RLock()
        self._state = HookState.NOT_REGISTERED
        self._hook: ShutdownHook | None = None

    @property
    def state(self) -> HookState:
        return self._state

    def is_registered(self) -> bool:
        """True while the shutdown hook is registered or already running."""
        return self._state is not HookState.NOT_REGISTERED

    def add(self, handle: ProcessHandle) -> bool:
        """Track ``handle``; registers the shutdown hook on the first one."""
        with self._lock:
            if not self._processes:
                self._add_shutdown_hook()
            self._processes.append(handle)
            return self._contains(handle)

    def remove(self, handle: ProcessHandle) -> bool:
        """Stop tracking ``handle``; withdraws the hook when the set empties."""
        with self._lock:
            for index, tracked in enumerate(self._processes):
                if tracked is handle:
                    del self._processes[index]
                    break
            else:
                return False

            if not self._processes and self._state is HookState.REGISTERED:
                self._remove_shutdown_hook()
            return True

    def on_termination(self) -> None:
        """Destroy every tracked process.

        Normally invoked by the shutdown hook. Calling it directly is allowed;
        the hook then does nothing when the host fires it later.
        """
        with self._lock:
            self._state = HookState.RUNNING
            members = list(self._processes)
            logger.info("Destroying tracked processes", count=len(members))
            self._destroy_each(members)

    def close(self, destroy_remaining: bool = True) -> None:
        """Explicit shutdown for owners that manage the registry's lifetime."""
        with self._lock:
            if destroy_remaining and self._processes:
                logger.info(
                    "Closing registry with live processes", count=len(self._processes)
                )
                self._destroy_each(list(self._processes))
            self._processes.clear()
            if self._state is HookState.REGISTERED:
                self._remove_shutdown_hook()

    def snapshot(self) -> list[ProcessHandle]:
        with self._lock:
            return list(self._processes)

    def __len__(self) -> int:
        with self._lock:
            return len(self._processes)

    def __contains__(self, handle: object) -> bool:
        with self._lock:
            return self._contains(handle)

    def __enter__(self) -> ProcessRegistry:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"<ProcessRegistry processes={len(self._processes)} "
            f"hook={self._state.value}>"
        )

    # Lock must be held by the caller for everything below

    def _contains(self, handle: object) -> bool:
        return any(tracked is handle for tracked in self._processes)

    def _add_shutdown_hook(self) -> None:
        if self._state is HookState.RUNNING:
            return
        hook = ShutdownHook(self._on_hook_fired)
        try:
            self._registrar.register(hook)
        except RegistrationError as e:
            logger.warning("Could not register shutdown hook", error=str(e))
            return
        self._hook = hook
        self._state = HookState.REGISTERED
        logger.debug("Shutdown hook registered", hook=hook.name)

    def _remove_shutdown_hook(self) -> None:
        hook = self._hook
        if hook is None:
            self._state = HookState.NOT_REGISTERED
            return

        try:
            removed = self._registrar.deregister(hook)
        except RegistrationError as e:
            logger.warning("Shutdown hook deregistration failed", error=str(e))
            removed = False
        timeout = self._hook_release_timeout
        if not removed:
            logger.warning("Could not remove shutdown hook", hook=hook.name)
            if self._registrar.is_running():
                # Already fired and blocked on our lock; it returns as stale
                timeout = 0.0

        if not hook.release(timeout) and timeout:
            logger.warning(
                "Shutdown hook still running after release timeout",
                hook=hook.name,
                timeout=self._hook_release_timeout,
            )
        self._hook = None
        self._state = HookState.NOT_REGISTERED
        logger.debug("Shutdown hook removed", hook=hook.name)

    def _on_hook_fired(self, hook: ShutdownHook) -> None:
        with self._lock:
            if hook is not self._hook:
                # Released while the runtime was already calling it
                return
            if self._state is HookState.RUNNING:
                # on_termination was already called directly
                return
            self.on_termination()

    @staticmethod
    def _destroy_each(members: list[ProcessHandle]) -> None:
        for handle in members:
            try:
                handle.destroy()
            except Exception:
                logger.warning(
                    "Failed to destroy process", handle=repr(handle), exc_info=True
                )
