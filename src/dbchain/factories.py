"""
Ready-made actions for common statements.

Features:
    - **sql_update:** parameterised DML, returns the affected row count
    - **sql_update_and_return_key:** DML returning the generated key
    - **sql_query:** parameterised query, rows mapped by a RowMapper
    - **sql_suppress / sql_suppress_or_none:** turn database failures into
      a fallback value

Every factory opens one cursor per invocation and closes it on every exit
path. Driver failures while opening, executing or reading are raised as
``QueryError`` with the SQL attached; a failing ``close()`` is logged and
never hides the result or the primary failure.

Examples:
    >>> remove = sql_update("DELETE FROM t WHERE id = ?", 5)
    >>> new_id = sql_update_and_return_key("INSERT INTO t (name) VALUES (?)", "a")
    >>> names = sql_query("SELECT name FROM t", single_column_row_mapper(str))

Tags:
    factory, update, query, generated-key, dbchain
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

from dbchain.actions import ChainableAction, describe
from dbchain.errors import (
    DbChainError,
    KeyNotGeneratedError,
    is_database_error,
    wrap_driver_error,
)
from dbchain.logging import get_logger
from dbchain.protocols import RowMapper

logger = get_logger(__name__)

T = TypeVar("T")


@contextmanager
def _open_cursor(connection: Any, sql: str) -> Iterator[Any]:
    try:
        cursor = connection.cursor()
    except DbChainError:
        raise
    except Exception as e:
        raise wrap_driver_error("Failed to open cursor", e, sql=sql) from e
    try:
        yield cursor
    finally:
        try:
            cursor.close()
        except Exception as e:
            logger.debug("cursor_close_failed", sql=sql, error=repr(e))


@contextmanager
def _driver_errors(message: str, sql: str) -> Iterator[None]:
    try:
        yield
    except DbChainError:
        raise
    except Exception as e:
        raise wrap_driver_error(message, e, sql=sql) from e


def _execute(cursor: Any, sql: str, params: Sequence[Any]) -> None:
    with _driver_errors("Statement failed", sql):
        cursor.execute(sql, tuple(params))


@dataclass(frozen=True)
class Update(ChainableAction[int]):
    sql: str
    params: tuple[Any, ...] = ()

    def __call__(self, connection: Any) -> int:
        with _open_cursor(connection, self.sql) as cursor:
            _execute(cursor, self.sql, self.params)
            return cursor.rowcount

    def __str__(self) -> str:
        return self.sql


@dataclass(frozen=True)
class UpdateReturningKey(ChainableAction[Any]):
    """
    Update that returns the key the database generated.

    The key is the first column of the first row the statement returned
    (``INSERT ... RETURNING id``); statements that return no rows fall back
    to the DB-API ``lastrowid`` extension. Drivers such as sqlite3 keep
    ``lastrowid`` from earlier statements, so it only counts when this
    statement affected rows.
    """

    sql: str
    params: tuple[Any, ...] = ()

    def __call__(self, connection: Any) -> Any:
        with _open_cursor(connection, self.sql) as cursor:
            _execute(cursor, self.sql, self.params)
            with _driver_errors("Failed to read generated key", self.sql):
                if cursor.description is not None:
                    row = cursor.fetchone()
                    key = row[0] if row is not None else None
                elif cursor.rowcount is not None and cursor.rowcount > 0:
                    key = cursor.lastrowid
                else:
                    key = None
            if key is None:
                raise KeyNotGeneratedError("No key was generated").with_context(sql=self.sql)
            return key

    def __str__(self) -> str:
        return f"{self.sql} -> key"


@dataclass(frozen=True)
class Query(ChainableAction[list[T]]):
    sql: str
    row_mapper: RowMapper[T]
    params: tuple[Any, ...] = ()

    def __call__(self, connection: Any) -> list[T]:
        results: list[T] = []
        with _open_cursor(connection, self.sql) as cursor:
            _execute(cursor, self.sql, self.params)
            row_index = 0
            while True:
                with _driver_errors("Failed to fetch row", self.sql):
                    row = cursor.fetchone()
                if row is None:
                    break
                results.append(self.row_mapper(row, row_index))
                row_index += 1
        return results

    def __str__(self) -> str:
        return self.sql


@dataclass(frozen=True)
class Suppress(ChainableAction[T]):
    """Returns ``fallback`` when *action* fails with a database error.

    Any other exception propagates.
    """

    action: Callable[[Any], T]
    fallback: T

    def __call__(self, connection: Any) -> T:
        try:
            return self.action(connection)
        except Exception as e:
            if not is_database_error(e):
                raise
            logger.info("database_error_suppressed", action=describe(self.action), error=repr(e))
            return self.fallback

    def __str__(self) -> str:
        return f"suppress {{{describe(self.action)}}}"


def sql_update(sql: str, *params: Any) -> ChainableAction[int]:
    """Parameterised update; returns the affected row count."""
    return Update(sql, params)


def sql_update_and_return_key(sql: str, *params: Any) -> ChainableAction[Any]:
    """Parameterised update; returns the single generated key."""
    return UpdateReturningKey(sql, params)


def sql_query(sql: str, row_mapper: RowMapper[T], *params: Any) -> ChainableAction[list[T]]:
    """Parameterised query; one ``row_mapper(row, index)`` call per row, in cursor order."""
    return Query(sql, row_mapper, params)


def sql_suppress(action: Callable[[Any], T], fallback: T) -> ChainableAction[T]:
    """Return *fallback* instead of raising when *action* hits a database error."""
    return Suppress(action, fallback)


def sql_suppress_or_none(action: Callable[[Any], T]) -> ChainableAction[T | None]:
    """Like ``sql_suppress`` with ``None`` as the fallback."""
    return Suppress(action, None)


__all__ = [
    "Update",
    "UpdateReturningKey",
    "Query",
    "Suppress",
    "sql_update",
    "sql_update_and_return_key",
    "sql_query",
    "sql_suppress",
    "sql_suppress_or_none",
]
