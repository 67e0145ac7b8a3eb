"""The currently logged-in user and the login handshake."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from smarthome.eventbus import EventBus, Signal, default_bus
from smarthome.locator import network_service
from smarthome.packets import text_packet
from smarthome.tokens import TokenManager

log = logging.getLogger(__name__)


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


class LoginUserManager:
    """Tracks the logged-in user and completes the login after validation.

    When the bus reports a successful validation, the token is saved and a
    ``login`` message is sent over the WebSocket once connected. When the
    bus delivers the user's data, it is stored and ``login_user_loaded``
    is emitted.
    """

    def __init__(
        self,
        bus: EventBus | None = None,
        tokens: TokenManager | None = None,
        service_provider: Callable[[], Any] = network_service,
    ) -> None:
        self._bus = bus if bus is not None else default_bus()
        self._tokens = tokens if tokens is not None else TokenManager()
        self._service_provider = service_provider
        self._user_id = ""
        self._user_name = ""
        self.login_user_loaded = Signal()
        self._bus.login_validation_success.connect(self._on_validation_success)
        self._bus.login_user_init.connect(self.on_init_login_user)

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def user_name(self) -> str:
        return self._user_name

    def _on_validation_success(self, params: Mapping[str, Any]) -> None:
        user_id = _text(params.get("user_id"))
        self._tokens.save_token(_text(params.get("token")))
        service = self._service_provider()
        if service is None:
            log.warning("no network service available to complete login")
            return

        def send_login() -> None:
            message = text_packet("login", {"user_id": user_id}, self._tokens.token)
            service.send_web_text_message(message)

        service.connect_to_server(send_login)

    def on_init_login_user(self, user: Mapping[str, Any]) -> None:
        """Store the logged-in user's id and name and announce them."""
        self._user_id = _text(user.get("user_id"))
        self._user_name = _text(user.get("user_name"))
        self.login_user_loaded.emit(user)

    def clear(self) -> None:
        self._user_id = ""
        self._user_name = ""