"""Concurrency tests for ProcessRegistry hook bookkeeping."""

import threading

from procguard.core.process_registry import HookState, ProcessRegistry


def _run_threads(targets):
    threads = [threading.Thread(target=t) for t in targets]
    for t in threads:
        t.start()
    for t in threads:
        t.join(30)
        assert not t.is_alive()


def test_parallel_add_remove_keeps_single_hook(registrar, make_handle):
    """Many threads churning handles never produce a second hook."""
    registry = ProcessRegistry(registrar)
    start = threading.Barrier(8)

    def _churn(worker: int):
        def _body():
            handles = [make_handle(f"{worker}-{i}") for i in range(50)]
            start.wait()
            for h in handles:
                assert registry.add(h) is True
                assert registry.is_registered()
            for h in handles:
                assert registry.remove(h) is True

        return _body

    _run_threads([_churn(w) for w in range(8)])

    assert len(registry) == 0
    assert registry.state is HookState.NOT_REGISTERED
    assert registrar.registered == []
    assert registrar.max_registered == 1
    assert registrar.register_calls == registrar.deregister_calls


def test_remove_last_races_with_add(registrar, make_handle):
    """Removing the last handle while another is added stays consistent."""
    registry = ProcessRegistry(registrar)

    for round_no in range(200):
        last = make_handle(f"last-{round_no}")
        newcomer = make_handle(f"new-{round_no}")
        registry.add(last)
        gate = threading.Barrier(2)

        def _remove():
            gate.wait()
            registry.remove(last)

        def _add():
            gate.wait()
            registry.add(newcomer)

        _run_threads([_remove, _add])

        assert list(registry.snapshot()) == [newcomer]
        assert registry.is_registered()
        assert len(registrar.registered) == 1

        registry.remove(newcomer)
        assert not registry.is_registered()
        assert registrar.registered == []

    assert registrar.max_registered == 1


def test_termination_sees_consistent_members(registrar, make_handle):
    """Handles added before the hook fires are all destroyed exactly once."""
    registry = ProcessRegistry(registrar)
    handles = [make_handle(str(i)) for i in range(100)]

    def _adder(chunk):
        def _body():
            for h in chunk:
                registry.add(h)

        return _body

    _run_threads([_adder(handles[i::4]) for i in range(4)])
    registrar.fire()

    assert all(h.destroy_calls == 1 for h in handles)
