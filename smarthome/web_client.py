"""WebSocket connection to the server with event callbacks and signals."""

from __future__ import annotations

import abc
import logging
import threading
from typing import Any, Callable

import websocket

from smarthome.eventbus import Signal

log = logging.getLogger(__name__)

ConnectionFactory = Callable[
    [str, Callable[[], Any], Callable[[Any], Any], Callable[[str], Any], Callable[[], Any]],
    Any,
]


class WebClientPort(abc.ABC):
    """A message channel to the server.

    Received text goes out on ``text_message``, binary data on
    ``binary_data``.
    """

    def __init__(self) -> None:
        self.text_message = Signal()
        self.binary_data = Signal()

    @abc.abstractmethod
    def connect_to_server(self, url: str, callback: Callable[[], Any] | None = None) -> None:
        """Open the connection; ``callback`` runs once it is established."""

    @abc.abstractmethod
    def disconnect(self) -> None:
        """Close the connection."""

    @abc.abstractmethod
    def send_text_message(self, message: str) -> None:
        """Send a text frame."""

    @abc.abstractmethod
    def send_binary_data(self, data: bytes) -> None:
        """Send a binary frame."""


class _SocketConnection:
    """A WebSocket run by a background thread."""

    def __init__(self, url, on_open, on_message, on_error, on_close) -> None:
        self._app = websocket.WebSocketApp(
            url,
            on_open=lambda ws: on_open(),
            on_message=lambda ws, message: on_message(message),
            on_error=lambda ws, error: on_error(str(error)),
            on_close=lambda ws, code, reason: on_close(),
        )
        self._thread = threading.Thread(target=self._app.run_forever, daemon=True)
        self._thread.start()

    def send_text(self, message: str) -> None:
        self._app.send(message)

    def send_binary(self, data: bytes) -> None:
        self._app.send(data, opcode=websocket.ABNF.OPCODE_BINARY)

    def close(self) -> None:
        self._app.close()


class WebClient(WebClientPort):
    """WebSocket client.

    ``connection_factory(url, on_open, on_message, on_error, on_close)``
    opens a connection offering ``send_text``, ``send_binary`` and
    ``close``; ``on_message`` takes ``str`` for text and ``bytes`` for
    binary frames.
    """

    def __init__(self, connection_factory: ConnectionFactory | None = None) -> None:
        super().__init__()
        self._factory = connection_factory if connection_factory is not None else _SocketConnection
        self._connection: Any = None
        self._connected = False
        self._url = ""
        self._message_callback: Callable[[str], Any] | None = None
        self._error_callback: Callable[[str], Any] | None = None
        self._connected_callback: Callable[[], Any] | None = None
        self._disconnected_callback: Callable[[], Any] | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_connected(self) -> bool:
        return self._connected

    def connect_to_server(self, url: str, callback: Callable[[], Any] | None = None) -> None:
        """Connect to ``url`` unless already connected."""
        if self._connected:
            return
        self._url = url
        log.info("attempting to connect to server at %s", url)

        def connected() -> None:
            if callback is not None:
                callback()

        self.on_connected(connected)
        self._connection = self._factory(
            url, self._handle_open, self._handle_message, self._handle_error, self._handle_close
        )

    def on_message(self, callback: Callable[[str], Any] | None) -> "WebClient":
        self._message_callback = callback
        return self

    def on_error(self, callback: Callable[[str], Any] | None) -> "WebClient":
        self._error_callback = callback
        return self

    def on_connected(self, callback: Callable[[], Any] | None) -> "WebClient":
        self._connected_callback = callback
        return self

    def on_disconnected(self, callback: Callable[[], Any] | None) -> "WebClient":
        self._disconnected_callback = callback
        return self

    def _handle_open(self) -> None:
        if self._connected_callback is not None:
            self._connected = True
            self._connected_callback()

    def _handle_message(self, message: Any) -> None:
        if isinstance(message, (bytes, bytearray)):
            self.binary_data.emit(bytes(message))
            return
        if self._message_callback is not None:
            self._message_callback(message)
        self.text_message.emit(message)

    def _handle_error(self, error: str) -> None:
        log.warning("websocket error: %s", error)
        if self._error_callback is not None:
            self._error_callback(error)

    def _handle_close(self) -> None:
        self._connected = False
        if self._disconnected_callback is not None:
            self._disconnected_callback()

    def disconnect(self) -> None:
        if self._connected:
            self._connection.close()
            self._connected = False

    def send_text_message(self, message: str) -> None:
        if self._connection is None:
            log.warning("cannot send text: not connected")
            return
        self._connection.send_text(message)

    def send_binary_data(self, data: bytes) -> None:
        if self._connection is None:
            log.warning("cannot send binary data: not connected")
            return
        self._connection.send_binary(bytes(data))