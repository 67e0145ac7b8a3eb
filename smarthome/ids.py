"""Random numeric identifiers that are unique within the database."""

from __future__ import annotations

import enum
import secrets
from typing import Any

_ID_LENGTH = 10

_LOOKUPS = {
    "user": "select user_id from user where user_id=?",
    "group": "select group_id from `group` where group_id=?",
}


class IdKind(enum.Enum):
    USER = "user"
    GROUP = "group"


class ChatType(enum.Enum):
    USER = "user"  # private chat with a friend
    GROUP = "group"


def random_id(length: int) -> str:
    """A string of ``length`` random digits, each from 0 to 8."""
    return "".join(str(secrets.randbelow(9)) for _ in range(max(length, 0)))


def generate_id(kind: IdKind, query: Any) -> str:
    """Draw 10-digit ids until one is not yet used by a user or group.

    ``query`` must provide ``execute_query(sql, params)``; its errors
    propagate.
    """
    sql = _LOOKUPS[IdKind(kind).value]
    while True:
        candidate = random_id(_ID_LENGTH)
        if not query.execute_query(sql, [candidate]):
            return candidate