"""Registry of connected WebSocket clients keyed by user id."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

log = logging.getLogger(__name__)


class ConnectionManager:
    """Routes incoming messages to a handler and outgoing ones to clients.

    ``message_handler(socket, message)`` receives every text (``str``) and
    binary (``bytes``) message. Sockets must offer ``send(text)`` and
    ``send_binary(data)``.
    """

    def __init__(self, message_handler: Callable[[Any, Any], Any]) -> None:
        self._handler = message_handler
        self._clients: dict[str, Any] = {}
        self._lock = threading.Lock()

    def add_client(self, user_id: str, socket: Any) -> None:
        """Register ``socket`` for ``user_id``, replacing any earlier one."""
        log.debug("client %s added to the connection table", user_id)
        with self._lock:
            self._clients[user_id] = socket

    def find_user(self, socket: Any) -> str | None:
        """The user id registered for ``socket``, if any."""
        with self._lock:
            for user_id, candidate in self._clients.items():
                if candidate is socket:
                    return user_id
        return None

    def remove_socket(self, socket: Any) -> str | None:
        """Forget a disconnected ``socket``; return the user id it belonged to."""
        with self._lock:
            for user_id, candidate in self._clients.items():
                if candidate is socket:
                    del self._clients[user_id]
                    log.debug("client %s disconnected", user_id)
                    return user_id
        return None

    def on_text_message(self, socket: Any, message: str) -> Any:
        return self._handler(socket, message)

    def on_binary_message(self, socket: Any, data: bytes) -> Any:
        return self._handler(socket, bytes(data))

    def _socket_for(self, user_id: str) -> Any:
        with self._lock:
            return self._clients.get(user_id)

    def send_text_message(self, user_id: str, message: str) -> bool:
        """Send text to ``user_id``; ``False`` if that user is not connected."""
        socket = self._socket_for(user_id)
        if socket is None:
            return False
        socket.send(message)
        return True

    def send_binary_message(self, user_id: str, data: bytes) -> bool:
        """Send binary data to ``user_id``; ``False`` if not connected."""
        socket = self._socket_for(user_id)
        if socket is None:
            return False
        socket.send_binary(bytes(data))
        return True