"""A bounded pool of named database connections shared between threads."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from contextlib import contextmanager
from typing import Any, Callable, Iterator

log = logging.getLogger(__name__)


class PoolExhaustedError(RuntimeError):
    """Raised when no connection became free within the waiting time."""


class ConnectionPool:
    """Hands out connections created by ``connect(name)`` and takes them back.

    At most ``max_connections`` connections exist. When all are in use,
    :meth:`open_connection` waits up to ``wait_time`` seconds, checking every
    ``wait_interval`` seconds, for one to be returned. Returned connections
    are reused rather than closed.
    """

    def __init__(
        self,
        connect: Callable[[str], Any],
        max_connections: int = 14,
        wait_interval: float = 0.1,
        wait_time: float = 1.0,
    ) -> None:
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        self._connect = connect
        self._max = max_connections
        self._wait_interval = wait_interval
        self._wait_time = wait_time
        self._cond = threading.Condition()
        self._connections: dict[str, Any] = {}
        self._in_use: deque[str] = deque()
        self._idle: deque[str] = deque()

    @property
    def max_connections(self) -> int:
        return self._max

    @property
    def in_use(self) -> int:
        with self._cond:
            return len(self._in_use)

    @property
    def idle(self) -> int:
        with self._cond:
            return len(self._idle)

    def _total(self) -> int:
        return len(self._in_use) + len(self._idle)

    def open_connection(self) -> Any:
        """Take an idle connection, or create one while the pool has room."""
        with self._cond:
            deadline = time.monotonic() + self._wait_time
            while not self._idle and self._total() >= self._max:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._cond.wait(min(self._wait_interval, remaining))

            if self._idle:
                name = self._idle.popleft()
            elif self._total() < self._max:
                name = f"connection-{self._total()}"
            else:
                log.warning("all connections are in use")
                raise PoolExhaustedError("all connections are in use")

            connection = self._connections.get(name)
            if connection is None:
                log.debug("creating connection %s", name)
                connection = self._connect(name)
                self._connections[name] = connection
            self._in_use.append(name)
            return connection

    def _name_of(self, connection: Any) -> str | None:
        for name, candidate in self._connections.items():
            if candidate is connection:
                return name
        return None

    def close_connection(self, connection: Any) -> None:
        """Return ``connection`` to the pool and wake one waiting thread."""
        with self._cond:
            name = self._name_of(connection)
            if name is not None and name in self._in_use:
                self._in_use.remove(name)
                self._idle.append(name)
                self._cond.notify()
            log.debug(
                "pool: all=%d used=%d idle=%d",
                self._total(),
                len(self._in_use),
                len(self._idle),
            )

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Borrow a connection for the duration of a ``with`` block."""
        conn = self.open_connection()
        try:
            yield conn
        finally:
            self.close_connection(conn)

    def close_all(self) -> None:
        """Close every connection the pool has created and forget them."""
        with self._cond:
            for name, conn in self._connections.items():
                close = getattr(conn, "close", None)
                if close is None:
                    continue
                try:
                    close()
                except Exception:  # noqa: BLE001 - driver-specific errors
                    log.warning("failed to close connection %s", name, exc_info=True)
            self._connections.clear()
            self._in_use.clear()
            self._idle.clear()
            self._cond.notify_all()