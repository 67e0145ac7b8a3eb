"""HTTP request handlers for registration and user management."""

from __future__ import annotations

import io
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from PIL import Image

from smarthome.avatars import AvatarStore
from smarthome.dbutils import (
    RegisterMessage,
    change_password,
    insert_user,
    query_user_detail,
)
from smarthome.ids import IdKind, generate_id
from smarthome.packets import all_binary_packet, binary_packet, frame_packet
from smarthome.query import DatabaseQuery, QueryError

log = logging.getLogger(__name__)

JSON_TYPE = "application/json"
BINARY_TYPE = "application/octet-stream"


@dataclass
class HttpResponse:
    """A response body together with its content type."""

    body: bytes
    content_type: str = JSON_TYPE

    @classmethod
    def from_json(cls, document: Mapping[str, Any]) -> "HttpResponse":
        text = json.dumps(document, separators=(",", ":"), ensure_ascii=False)
        return cls(text.encode("utf-8"), JSON_TYPE)

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8"))


class ServerHandlers:
    """Handlers taking a request's JSON params and binary data."""

    def __init__(self, query: DatabaseQuery, avatars: AvatarStore) -> None:
        self._query = query
        self._avatars = avatars

    def handle_register(self, params: Mapping[str, Any], data: bytes = b"") -> HttpResponse | None:
        """Create an account; reply with its new id and password.

        Returns ``None`` (no reply) when the account could not be created.
        """
        try:
            user_id = generate_id(IdKind.USER, self._query)
        except QueryError:
            log.debug("could not generate a user id")
            return None
        message = RegisterMessage(
            user_id=user_id,
            username=str(params.get("user_name", "")),
            password=str(params.get("password", "")),
            confidential=str(params.get("confidential", "")),
        )
        ok = self._query.execute_transaction(
            lambda conn: insert_user(message, self._avatars, self._query, conn)
        )
        if not ok:
            return None
        return HttpResponse.from_json(
            {
                "type": "registerSuccess",
                "params": {"user_id": message.user_id, "password": message.password},
            }
        )

    def handle_query_user(self, params: Mapping[str, Any], data: bytes = b"") -> HttpResponse:
        """Reply with the details of ``params["query_id"]`` as a binary packet."""
        query_id = str(params.get("query_id", ""))
        try:
            detail = query_user_detail(query_id, self._query)
        except QueryError:
            detail = {"error": ""}
        packet = binary_packet("queryUser", detail, b"")
        return HttpResponse(all_binary_packet(frame_packet(packet)), BINARY_TYPE)

    def handle_password_change(
        self, params: Mapping[str, Any], data: bytes = b""
    ) -> HttpResponse:
        """Change the password if the security answer matches the stored one."""
        user_id = str(params.get("user_id", ""))
        confidential = str(params.get("confidential", ""))
        password = str(params.get("password", ""))
        confidential_right = True

        def work(conn: Any) -> bool:
            nonlocal confidential_right
            detail = query_user_detail(user_id, self._query, conn)
            if detail.get("confidential", "") != confidential:
                confidential_right = False
                return False
            return change_password(user_id, password, self._query, conn)

        try:
            ok = self._query.execute_transaction(work)
        except QueryError:
            ok = False
        return HttpResponse.from_json(
            {"type": "passwordChange", "params": {"error": not (ok and confidential_right)}}
        )

    def handle_update_user_avatar(
        self, params: Mapping[str, Any], data: bytes = b""
    ) -> bytes | None:
        """Store the uploaded avatar and return the payload to forward.

        Returns ``None`` if ``data`` is not a readable image.
        """
        user_id = str(params.get("user_id", ""))
        data = bytes(data)
        try:
            with Image.open(io.BytesIO(data)) as opened:
                opened.load()
                image = opened.copy()
        except (OSError, ValueError):
            log.warning("failed to load avatar for user %s", user_id)
            return None
        self._avatars.save_image(image, user_id).result()
        packet = binary_packet("updateUserAvatar", dict(params), data)
        return all_binary_packet(frame_packet(packet))