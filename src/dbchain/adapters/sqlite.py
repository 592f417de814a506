"""SQLite connection adapter.

Wraps a raw :class:`sqlite3.Connection` and exposes its auto-commit mode
as a boolean ``autocommit`` property, the way psycopg2 and friends do.
``sqlite3`` itself models auto-commit through ``isolation_level``: ``None``
means auto-commit, anything else means the driver opens transactions
implicitly before DML.

Usage::

    from dbchain.adapters import SqliteConnection

    conn = SqliteConnection(":memory:")
    conn.autocommit             # True
    conn.autocommit = False     # statements now run inside a transaction
    cur = conn.cursor()
    cur.execute("CREATE TABLE t (id INTEGER)")
    conn.commit()
    conn.close()
"""

from __future__ import annotations

import sqlite3
from typing import Any

from dbchain.errors import ConnectionAcquisitionError


class SqliteConnection:
    """Adapter: ``sqlite3.Connection`` → ``Connection`` protocol.

    Defaults to auto-commit on, like most server drivers after connect.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        autocommit: bool = True,
        timeout: float = 5.0,
        row_factory: Any = None,
    ) -> None:
        try:
            self._conn = sqlite3.connect(
                path,
                timeout=timeout,
                check_same_thread=False,
                isolation_level=None if autocommit else "",
            )
        except sqlite3.Error as e:
            raise ConnectionAcquisitionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ).with_context(source=path) from e
        if row_factory is not None:
            self._conn.row_factory = row_factory
        self._path = path

    # -- Connection protocol -----------------------------------------------

    def cursor(self) -> sqlite3.Cursor:
        return self._conn.cursor()

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()

    # -- auto-commit -------------------------------------------------------

    @property
    def autocommit(self) -> bool:
        return self._conn.isolation_level is None

    @autocommit.setter
    def autocommit(self, value: bool) -> None:
        self._conn.isolation_level = None if value else ""

    # -- convenience -------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._conn.in_transaction

    @property
    def raw(self) -> sqlite3.Connection:
        """Access the underlying ``sqlite3.Connection`` (e.g. for pragmas)."""
        return self._conn

    def __repr__(self) -> str:
        return f"SqliteConnection({self._path!r}, autocommit={self.autocommit})"
