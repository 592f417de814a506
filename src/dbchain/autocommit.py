"""Auto-commit mode access across DB-API drivers.

DB-API 2.0 does not standardise how a connection's auto-commit mode is
read or switched. The transaction wrapper needs both, so this module
resolves the mode for the drivers dbchain is used with:

==============================  =========================================
Connection                      Auto-commit is
==============================  =========================================
SQLAlchemy pool proxy           whatever the proxied DBAPI connection says
``sqlite3.Connection``          ``autocommit`` when it is a bool (3.12+
                                ``sqlite3.connect(autocommit=...)``), else
                                ``isolation_level is None``
psycopg2, psycopg, mysql-conn,  boolean ``autocommit`` attribute
``SqliteConnection``
PyMySQL                         ``get_autocommit()`` / ``autocommit(flag)``
==============================  =========================================

Anything else raises ``UnsupportedConnectionError``.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from sqlalchemy.pool import PoolProxiedConnection

from dbchain.errors import (
    DbChainError,
    TransactionError,
    UnsupportedConnectionError,
    wrap_driver_error,
)


# Python 3.12+ sqlite3 connections report -1 here unless opened with
# ``autocommit=True/False``; older versions have no such attribute.
_SQLITE_LEGACY = getattr(sqlite3, "LEGACY_TRANSACTION_CONTROL", -1)


def _sqlite_uses_pep249_control(conn: sqlite3.Connection) -> bool:
    return isinstance(getattr(conn, "autocommit", _SQLITE_LEGACY), bool)


def _unwrap(connection: Any) -> Any:
    while isinstance(connection, PoolProxiedConnection):
        connection = connection.dbapi_connection
    return connection


def get_autocommit(connection: Any) -> bool:
    """Return True if *connection* commits every statement on its own."""
    conn = _unwrap(connection)
    try:
        if isinstance(conn, sqlite3.Connection):
            if _sqlite_uses_pep249_control(conn):
                return conn.autocommit
            return conn.isolation_level is None
        flag = getattr(conn, "autocommit", None)
        if isinstance(flag, bool):
            return flag
        getter = getattr(conn, "get_autocommit", None)
        if callable(getter):
            return bool(getter())
    except DbChainError:
        raise
    except Exception as e:
        raise wrap_driver_error(
            "Failed to read auto-commit mode", e, error_class=TransactionError
        ) from e
    raise UnsupportedConnectionError(conn)


def set_autocommit(connection: Any, value: bool) -> None:
    """Switch auto-commit on or off for *connection*."""
    conn = _unwrap(connection)
    try:
        if isinstance(conn, sqlite3.Connection):
            if _sqlite_uses_pep249_control(conn):
                conn.autocommit = value
            else:
                conn.isolation_level = None if value else ""
            return
        flag = getattr(conn, "autocommit", None)
        if isinstance(flag, bool):
            conn.autocommit = value
            return
        if callable(flag) and callable(getattr(conn, "get_autocommit", None)):
            flag(value)
            return
    except DbChainError:
        raise
    except Exception as e:
        raise wrap_driver_error(
            "Failed to set auto-commit mode", e, error_class=TransactionError
        ) from e
    raise UnsupportedConnectionError(conn)


__all__ = [
    "get_autocommit",
    "set_autocommit",
]
