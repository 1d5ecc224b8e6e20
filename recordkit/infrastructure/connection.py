"""
Connection and statement contracts consumed by the lifecycle engine.

Any object with `prepare(sql)` and `last_insert_id()` can serve as a
connection. Plain DB-API connections (sqlite3, psycopg) are wrapped in
`DbApiConnection`.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class Statement(Protocol):
    """A prepared statement bound to one SQL string."""

    def execute(self, params: Optional[Mapping[str, Any]] = None) -> None:
        ...

    def fetch_row(self) -> Optional[Dict[str, Any]]:
        """Next row as a column->value mapping, or None at the end."""
        ...

    def fetch_column(self) -> Any:
        """First column of the next row, or None at the end."""
        ...


@runtime_checkable
class Connection(Protocol):
    def prepare(self, sql: str) -> Statement:
        ...

    def last_insert_id(self) -> Any:
        ...


class DbApiStatement:
    def __init__(self, connection: "DbApiConnection", sql: str) -> None:
        self._connection = connection
        self.sql = sql
        self._cursor: Any = None

    def execute(self, params: Optional[Mapping[str, Any]] = None) -> None:
        cursor = self._connection.raw.cursor()
        if params:
            cursor.execute(self.sql, dict(params))
        else:
            cursor.execute(self.sql)
        self._cursor = cursor
        self._connection._last_cursor = cursor

    def fetch_row(self) -> Optional[Dict[str, Any]]:
        if self._cursor is None or self._cursor.description is None:
            return None
        row = self._cursor.fetchone()
        if row is None:
            return None
        names = [d[0] for d in self._cursor.description]
        return dict(zip(names, row))

    def fetch_column(self) -> Any:
        row = self.fetch_row()
        if not row:
            return None
        return next(iter(row.values()))


class DbApiConnection:
    """
    Adapter exposing a DB-API 2.0 connection through the Connection contract.

    The wrapped connection is expected to run in autocommit mode; transaction
    control stays with whoever opened it.
    """

    def __init__(self, raw: Any) -> None:
        self.raw = raw
        self._last_cursor: Any = None

    def prepare(self, sql: str) -> DbApiStatement:
        return DbApiStatement(self, sql)

    def last_insert_id(self) -> Any:
        if self._last_cursor is None:
            return None
        return getattr(self._last_cursor, "lastrowid", None)

    def close(self) -> None:
        self.raw.close()


def as_connection(conn: Any) -> Connection:
    """Return `conn` unchanged when it fulfils the contract, else wrap it."""
    if isinstance(conn, Connection):
        return conn
    return DbApiConnection(conn)


__all__ = ["Statement", "Connection", "DbApiStatement", "DbApiConnection", "as_connection"]
