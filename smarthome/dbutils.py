"""Database helpers for logging in, registering and editing users."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from smarthome.avatars import AvatarStore
from smarthome.query import DatabaseQuery, QueryError

log = logging.getLogger(__name__)


@dataclass
class RegisterMessage:
    """What a new account is created from."""

    user_id: str
    username: str
    password: str
    confidential: str = ""


@dataclass
class UserInfo:
    """Editable personal details of a user."""

    user_id: str
    username: str = ""
    gender: int = 0
    age: int = 0
    phone_number: str = ""
    email: str = ""
    birthday: datetime | None = None
    signature: str = ""


def validate_password(
    user_id: str, password: str, query: DatabaseQuery, connection: Any = None
) -> bool:
    """Whether ``password`` is the stored password of ``user_id``.

    A failed query or an unknown user counts as a mismatch.
    """
    try:
        rows = query.execute_query(
            "select password from user where user_id=?", [user_id], connection
        )
    except QueryError:
        log.debug("password validation failed for %s", user_id)
        return False
    if not rows:
        log.debug("no user %s", user_id)
        return False
    return rows[0].get("password") == password


def insert_user(
    message: RegisterMessage,
    avatars: AvatarStore,
    query: DatabaseQuery,
    connection: Any = None,
) -> bool:
    """Insert a newly registered user; ``False`` if the insert failed."""
    avatar_path = avatars.user_folder() / f"{message.user_id}.png"
    try:
        query.execute_non_query(
            "insert into user (user_id,user_name,password,avatar_path,confidential)"
            "values(?,?,?,?,?)",
            [
                message.user_id,
                message.username,
                message.password,
                str(avatar_path),
                message.confidential,
            ],
            connection,
        )
    except QueryError:
        log.debug("inserting user %s failed", message.user_id)
        return False
    return True


def query_user_detail(
    user_id: str, query: DatabaseQuery, connection: Any = None
) -> dict[str, Any]:
    """All stored fields of ``user_id``, or an empty dict if there is none.

    Raises :class:`QueryError` when the query itself fails.
    """
    rows = query.execute_query("select u.* from user u where u.user_id=?", [user_id], connection)
    if not rows:
        log.debug("user detail query for %s found nothing", user_id)
        return {}
    return rows[0]


def change_password(
    user_id: str, password: str, query: DatabaseQuery, connection: Any = None
) -> bool:
    """Store a new password for ``user_id``; ``False`` if the update failed."""
    try:
        query.execute_non_query(
            "UPDATE user SET password=? WHERE user_id=?", [password, user_id], connection
        )
    except QueryError:
        log.debug("password change for %s failed", user_id)
        return False
    return True