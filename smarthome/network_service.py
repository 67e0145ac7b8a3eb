"""Facade over the WebSocket and HTTP clients used by the rest of the client."""

from __future__ import annotations

from typing import Any, Callable

from smarthome.client_handlers import ClientHandlers
from smarthome.dispatch import MessageDispatcher
from smarthome.http_client import HttpCallback, HttpClientPort
from smarthome.web_client import WebClientPort

DEFAULT_SERVER_URL = "ws://localhost:8888"


class NetworkService:
    """Sends over both channels and feeds everything received to the dispatcher."""

    def __init__(
        self,
        web_client: WebClientPort,
        http_client: HttpClientPort,
        dispatcher: MessageDispatcher | None = None,
        server_url: str = DEFAULT_SERVER_URL,
    ) -> None:
        self._web = web_client
        self._http = http_client
        self._dispatcher = (
            dispatcher if dispatcher is not None else MessageDispatcher(ClientHandlers())
        )
        self._server_url = server_url
        self._web.text_message.connect(self._dispatcher.handle_text_message)
        self._web.binary_data.connect(self._dispatcher.handle_binary_data)
        self._http.http_text_response.connect(self._dispatcher.handle_text_message)
        self._http.http_data_response.connect(self._dispatcher.handle_binary_data)

    @property
    def dispatcher(self) -> MessageDispatcher:
        return self._dispatcher

    def connect_to_server(self, callback: Callable[[], Any] | None = None) -> None:
        def connected() -> None:
            if callback is not None:
                callback()

        self._web.connect_to_server(self._server_url, connected)

    def disconnect(self) -> None:
        self._web.disconnect()

    def send_web_text_message(self, message: str) -> None:
        self._web.send_text_message(message)

    def send_web_binary_data(self, data: bytes) -> None:
        self._web.send_binary_data(data)

    def send_http_request(
        self,
        request_type: str,
        data: bytes,
        content_type: str,
        callback: HttpCallback | None = None,
    ) -> None:
        self._http.send_request(request_type, data, content_type, callback)