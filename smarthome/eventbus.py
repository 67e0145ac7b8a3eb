"""Simple signals and the application-wide event bus."""

from __future__ import annotations

import threading
from functools import lru_cache
from typing import Any, Callable


class Signal:
    """A list of callbacks invoked in connection order by :meth:`emit`."""

    def __init__(self) -> None:
        self._callbacks: list[Callable[..., Any]] = []
        self._lock = threading.Lock()

    def connect(self, callback: Callable[..., Any]) -> None:
        with self._lock:
            self._callbacks.append(callback)

    def disconnect(self, callback: Callable[..., Any]) -> None:
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                raise ValueError("callback is not connected") from None

    def emit(self, *args: Any) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback(*args)


class EventBus:
    """Signals through which handlers notify the rest of the client."""

    def __init__(self) -> None:
        self.login_validation_success = Signal()
        self.login_user_init = Signal()
        self.register_success = Signal()
        self.password_change_success = Signal()
        self.update_user_avatar = Signal()


@lru_cache(maxsize=None)
def default_bus() -> EventBus:
    """The shared application event bus."""
    return EventBus()