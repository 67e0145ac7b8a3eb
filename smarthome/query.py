"""Parameterised queries, updates and transactions over a connection pool."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Sequence

from smarthome.pool import ConnectionPool

log = logging.getLogger(__name__)

_INT_FIELDS = frozenset({"age", "gender", "groupMemberCount"})


class QueryError(RuntimeError):
    """Raised when a statement fails to execute."""


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, (bool, int)):
        return int(value)
    if isinstance(value, float):
        return int(value)
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _month_day(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime("%m-%d")
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10]).strftime("%m-%d")
        except ValueError:
            return ""
    return ""


def _convert(field: str, value: Any) -> Any:
    if field == "birthday":
        return _month_day(value)
    if field in _INT_FIELDS:
        return _to_int(value)
    return _to_text(value)


def _rollback(connection: Any) -> None:
    try:
        connection.rollback()
    except Exception:  # noqa: BLE001 - driver-specific errors
        log.warning("rollback failed", exc_info=True)


class DatabaseQuery:
    """Runs statements with ``?`` placeholders on pooled DB-API connections."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def execute_query(
        self, sql: str, params: Sequence[Any] = (), connection: Any = None
    ) -> list[dict[str, Any]]:
        """Run a SELECT and return its rows as dictionaries.

        ``birthday`` becomes ``"MM-dd"``; ``age``, ``gender`` and
        ``groupMemberCount`` become integers; every other field a string.
        """
        if connection is not None:
            return self._select(connection, sql, params)
        with self._pool.connection() as conn:
            return self._select(conn, sql, params)

    def _select(self, connection: Any, sql: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        cursor = connection.cursor()
        try:
            cursor.execute(sql, tuple(params))
            rows = cursor.fetchall()
            names = [column[0] for column in cursor.description or ()]
        except Exception as exc:  # noqa: BLE001 - driver-specific errors
            log.debug("query failed: %s", exc)
            raise QueryError(str(exc)) from exc
        finally:
            cursor.close()
        return [
            {name: _convert(name, value) for name, value in zip(names, row)} for row in rows
        ]

    def execute_non_query(
        self, sql: str, params: Sequence[Any] = (), connection: Any = None
    ) -> int:
        """Run an INSERT, UPDATE or similar; return the affected row count.

        Without ``connection`` the change is committed at once; with one, the
        caller's transaction decides.
        """
        if connection is not None:
            return self._modify(connection, sql, params)
        with self._pool.connection() as conn:
            try:
                count = self._modify(conn, sql, params)
                conn.commit()
            except QueryError:
                _rollback(conn)
                raise
            except Exception as exc:  # noqa: BLE001 - driver-specific errors
                _rollback(conn)
                raise QueryError(str(exc)) from exc
            return count

    def _modify(self, connection: Any, sql: str, params: Sequence[Any]) -> int:
        cursor = connection.cursor()
        try:
            cursor.execute(sql, tuple(params))
            return cursor.rowcount
        except Exception as exc:  # noqa: BLE001 - driver-specific errors
            log.debug("statement failed: %s", exc)
            raise QueryError(str(exc)) from exc
        finally:
            cursor.close()

    def execute_transaction(self, callback: Callable[[Any], bool]) -> bool:
        """Run ``callback(connection)`` in a transaction.

        A truthy result commits; a falsy one, a failed commit, or an
        exception rolls back. Exceptions from the callback propagate.
        """
        with self._pool.connection() as conn:
            try:
                ok = bool(callback(conn))
            except BaseException:
                _rollback(conn)
                raise
            if not ok:
                log.debug("rolling back transaction")
                _rollback(conn)
                return False
            try:
                conn.commit()
            except Exception:  # noqa: BLE001 - driver-specific errors
                log.warning("failed to commit transaction", exc_info=True)
                _rollback(conn)
                return False
            return True