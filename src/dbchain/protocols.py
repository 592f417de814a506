"""
Canonical protocol definitions for dbchain.

Every module that needs a Connection, Cursor, Action, RowMapper or
ConnectionSource imports it from here.

Architecture:
    ::

        protocols.py
        ├── Cursor            — DB-API 2.0 cursor subset used by the factories
        ├── Connection        — DB-API 2.0 connection (sqlite3, psycopg2, ...)
        ├── Action            — callable (connection) -> T
        ├── RowMapper         — callable (row, row_index) -> T
        └── ConnectionSource  — get() -> Connection

    Auto-commit is deliberately absent from Connection: DB-API leaves it
    driver specific, see ``dbchain.autocommit``.

Guardrails:
    ❌ DON'T: Redefine these protocols in other modules
    ✅ DO: Import from dbchain.protocols

    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts

Tags:
    protocol, connection, cursor, action, dbchain, contracts
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, TypeVar, runtime_checkable

T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class Cursor(Protocol):
    """
    DB-API 2.0 cursor subset.

    ``execute`` plays the part of preparing and binding a statement,
    ``fetchone`` advances the result forward-only, ``close`` releases both.
    """

    description: Any
    rowcount: int
    lastrowid: Any

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Execute a statement with positional parameters."""
        ...

    def fetchone(self) -> Any:
        """Fetch the next row, or None if exhausted."""
        ...

    def close(self) -> None:
        """Release the statement and any open result."""
        ...


@runtime_checkable
class Connection(Protocol):
    """
    Minimal DB-API 2.0 connection.

    Satisfied by ``sqlite3.Connection``, psycopg2/psycopg connections,
    SQLAlchemy pool proxies and ``dbchain.adapters.SqliteConnection``.
    """

    def cursor(self) -> Any:
        """Open a new cursor."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...

    def close(self) -> None:
        """Close the connection."""
        ...


@runtime_checkable
class Action(Protocol[T_co]):
    """A unit of work against a connection. Plain functions qualify."""

    def __call__(self, connection: Any) -> T_co:
        ...


@runtime_checkable
class RowMapper(Protocol[T_co]):
    """Maps one result row to a value. ``row_index`` starts at 0."""

    def __call__(self, row: Any, row_index: int) -> T_co:
        ...


@runtime_checkable
class ConnectionSource(Protocol):
    """Supplies a live connection on demand."""

    def get(self) -> Any:
        ...


__all__ = [
    "Cursor",
    "Connection",
    "Action",
    "RowMapper",
    "ConnectionSource",
]
