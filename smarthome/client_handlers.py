"""Handlers for messages the server sends to the client."""

from __future__ import annotations

import io
import logging
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Mapping

from PIL import Image

from smarthome.client_images import ClientAvatarStore
from smarthome.eventbus import EventBus, default_bus

log = logging.getLogger(__name__)


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


class ClientHandlers:
    """Turn server messages into event-bus notifications."""

    def __init__(
        self, bus: EventBus | None = None, avatars: ClientAvatarStore | None = None
    ) -> None:
        self._bus = bus if bus is not None else default_bus()
        self._avatars = (
            avatars if avatars is not None else ClientAvatarStore(Path.home() / ".smarthome")
        )

    def handle_login_validation_success(
        self, params: Mapping[str, Any], data: bytes = b""
    ) -> None:
        self._bus.login_validation_success.emit(params)

    def handle_login_success(self, params: Mapping[str, Any], data: bytes = b"") -> Future:
        """Store the user's avatar, then announce the logged-in user."""
        user = dict(params)
        log.debug("login success: %s", user)
        user_id = _text(user.get("user_id"))
        self._avatars.set_login_user(user_id)
        return self._avatars.save_bytes(
            data, user_id, lambda: self._bus.login_user_init.emit(user)
        )

    def handle_register_success(self, params: Mapping[str, Any], data: bytes = b"") -> None:
        self._bus.register_success.emit(params)

    def handle_update_user_avatar(
        self, params: Mapping[str, Any], data: bytes = b""
    ) -> Image.Image | None:
        """Decode the new avatar and announce it; ``None`` if unreadable."""
        user_id = _text(params.get("user_id"))
        try:
            with Image.open(io.BytesIO(bytes(data))) as opened:
                opened.load()
                avatar = opened.copy()
        except (OSError, ValueError):
            log.warning("failed to load avatar for user %s", user_id)
            return None
        self._bus.update_user_avatar.emit(user_id, avatar)
        return avatar