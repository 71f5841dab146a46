"""Tests for running each client connection on its own thread."""

import threading
import time

from connection_threads import ConnectionThreads


def test_every_submitted_connection_runs_concurrently() -> None:
    release = threading.Event()
    started: list[int] = []
    lock = threading.Lock()

    def _blocking_handler(_sock: object, address: tuple[str, int]) -> None:
        with lock:
            started.append(address[1])
        release.wait(timeout=2)

    connections = ConnectionThreads(_blocking_handler)
    try:
        for port in range(100):
            assert connections.submit(object(), ("127.0.0.1", port)) is True

        deadline = time.time() + 2
        while len(started) < 100 and time.time() < deadline:
            time.sleep(0.01)

        assert sorted(started) == list(range(100))
        assert connections.active_count == 100
    finally:
        release.set()
        connections.shutdown(graceful=True)

    assert connections.active_count == 0


def test_graceful_shutdown_waits_for_running_handlers() -> None:
    finished: list[tuple[str, int]] = []

    def _slow_handler(_sock: object, address: tuple[str, int]) -> None:
        time.sleep(0.1)
        finished.append(address)

    connections = ConnectionThreads(_slow_handler)
    for index in range(3):
        assert connections.submit(object(), ("127.0.0.1", index))

    connections.shutdown(graceful=True, timeout=2.0)

    assert sorted(finished) == [("127.0.0.1", 0), ("127.0.0.1", 1), ("127.0.0.1", 2)]


def test_drain_times_out_while_a_handler_is_stuck() -> None:
    release = threading.Event()
    connections = ConnectionThreads(lambda _sock, _addr: release.wait(timeout=2))
    connections.submit(object(), ("127.0.0.1", 0))
    try:
        assert connections.wait_for_drain(timeout=0.05) is False
    finally:
        release.set()

    assert connections.wait_for_drain(timeout=2.0) is True


def test_submit_after_shutdown_is_refused() -> None:
    connections = ConnectionThreads(lambda _sock, _addr: None)
    connections.shutdown()

    assert connections.submit(object(), ("127.0.0.1", 0)) is False


def test_concurrent_shutdowns_close_exactly_once() -> None:
    connections = ConnectionThreads(lambda _sock, _addr: None)
    callers = [
        threading.Thread(target=connections.shutdown, kwargs={"graceful": True})
        for _ in range(8)
    ]
    for caller in callers:
        caller.start()
    for caller in callers:
        caller.join(timeout=2)

    assert not any(caller.is_alive() for caller in callers)
    assert connections.submit(object(), ("127.0.0.1", 0)) is False


def test_handler_exception_still_releases_the_connection() -> None:
    def _broken_handler(_sock: object, _addr: tuple[str, int]) -> None:
        raise RuntimeError("boom")

    connections = ConnectionThreads(_broken_handler)
    connections.submit(object(), ("127.0.0.1", 0))

    assert connections.wait_for_drain(timeout=2.0) is True
