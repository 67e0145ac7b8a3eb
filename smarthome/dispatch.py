"""Routes incoming server messages to handlers by their type."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping

from smarthome.client_handlers import ClientHandlers
from smarthome.packets import parse_data_packets

log = logging.getLogger(__name__)

Handler = Callable[[Mapping[str, Any], bytes], Any]


class MessageDispatcher:
    """Calls ``handler(params, data)`` for each message with a known type.

    Given :class:`ClientHandlers`, the ``loginValidationSuccess`` and
    ``loginSuccess`` types are registered; given a mapping, its entries are.
    """

    def __init__(self, handlers: ClientHandlers | Mapping[str, Handler] | None = None) -> None:
        self._handlers: dict[str, Handler] = {}
        if isinstance(handlers, ClientHandlers):
            self.register("loginValidationSuccess", handlers.handle_login_validation_success)
            self.register("loginSuccess", handlers.handle_login_success)
        elif handlers is not None:
            for message_type, handler in handlers.items():
                self.register(message_type, handler)

    def register(self, message_type: str, handler: Handler) -> None:
        self._handlers[message_type] = handler

    def handle_text_message(self, message: str | bytes) -> bool:
        """Dispatch a JSON text message; ``True`` if a handler took it."""
        if isinstance(message, (bytes, bytearray)):
            try:
                message = bytes(message).decode("utf-8")
            except UnicodeDecodeError:
                return False
        try:
            document = json.loads(message)
        except json.JSONDecodeError:
            log.debug("ignoring malformed text message")
            return False
        if not isinstance(document, dict):
            return False
        message_type = document.get("type")
        params = document.get("params")
        if not isinstance(message_type, str):
            message_type = ""
        if not isinstance(params, dict):
            params = {}
        handler = self._handlers.get(message_type)
        if handler is None:
            return False
        handler(params, b"")
        return True

    def handle_binary_data(self, data: bytes) -> int:
        """Dispatch every packet in ``data``; return how many were handled."""
        handled = 0
        for packet in parse_data_packets(data):
            handler = self._handlers.get(packet.type)
            if handler is None:
                continue
            handler(packet.params, packet.data)
            handled += 1
        return handled