"""One handler thread per accepted client connection."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

ClientAddress = tuple[str, int]
ConnectionHandler = Callable[[object, ClientAddress], None]


class ConnectionThreads:
    """Runs every accepted connection on its own daemon thread.

    Nothing is queued and no connection waits for another. The only shared
    state is the set of live threads, kept so shutdown can drain them.
    """

    def __init__(self, handler: ConnectionHandler) -> None:
        self._handler = handler
        self._live: set[threading.Thread] = set()
        self._live_changed = threading.Condition()
        self._closed = False
        self._ids = itertools.count(1)

    @property
    def active_count(self) -> int:
        with self._live_changed:
            return len(self._live)

    def submit(self, client_socket: object, address: ClientAddress) -> bool:
        """Start a thread for the connection; False once shut down."""
        with self._live_changed:
            if self._closed:
                return False
            thread = threading.Thread(
                target=self._run,
                args=(client_socket, address),
                name=f"static-conn-{next(self._ids)}",
                daemon=True,
            )
            self._live.add(thread)
        try:
            thread.start()
        except RuntimeError:
            logger.exception("Could not start a thread for %s", address[0])
            self._forget(thread)
            return False
        return True

    def wait_for_drain(self, timeout: float) -> bool:
        """Block until every connection thread has finished."""
        deadline = time.monotonic() + timeout
        with self._live_changed:
            while self._live:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._live_changed.wait(timeout=remaining)
        return True

    def shutdown(self, *, graceful: bool = False, timeout: float = 2.0) -> None:
        with self._live_changed:
            if self._closed:
                return
            self._closed = True
        if graceful:
            self.wait_for_drain(timeout)

    def _forget(self, thread: threading.Thread) -> None:
        with self._live_changed:
            self._live.discard(thread)
            self._live_changed.notify_all()

    def _run(self, client_socket: object, address: ClientAddress) -> None:
        try:
            self._handler(client_socket, address)
        except Exception:
            logger.exception("Connection handler failed for %s", address[0])
        finally:
            self._forget(threading.current_thread())
