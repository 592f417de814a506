"""Tests for dbchain.factories: update, key-returning update, query, suppression."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from dbchain.errors import (
    ConfigError,
    KeyNotGeneratedError,
    QueryError,
)
from dbchain.factories import (
    Query,
    Suppress,
    Update,
    UpdateReturningKey,
    sql_query,
    sql_suppress,
    sql_suppress_or_none,
    sql_update,
    sql_update_and_return_key,
)
from tests._support.fakes import RecordingConnection, driver_error


def mock_connection(cursor: MagicMock) -> MagicMock:
    connection = MagicMock()
    connection.cursor.return_value = cursor
    return connection


class TestSqlUpdate:
    def test_prepares_binds_and_returns_rowcount(self):
        cursor = MagicMock()
        cursor.rowcount = 1
        connection = mock_connection(cursor)

        result = sql_update("DELETE FROM t WHERE id=?", 5)(connection)

        assert result == 1
        connection.cursor.assert_called_once_with()
        cursor.execute.assert_called_once_with("DELETE FROM t WHERE id=?", (5,))
        cursor.close.assert_called_once_with()

    def test_binds_params_in_order(self):
        conn = RecordingConnection(rowcount=3)
        sql_update("UPDATE t SET a=?, b=? WHERE c=?", "x", 2, None)(conn)
        assert conn.cursors[0].executed == [("UPDATE t SET a=?, b=? WHERE c=?", ("x", 2, None))]

    def test_no_params(self):
        conn = RecordingConnection(rowcount=0)
        assert sql_update("DELETE FROM t")(conn) == 0
        assert conn.cursors[0].executed == [("DELETE FROM t", ())]

    def test_closes_cursor_after_execute_failure(self):
        conn = RecordingConnection(execute_error=driver_error("no such table: t"))

        with pytest.raises(QueryError) as exc_info:
            sql_update("DELETE FROM t")(conn)

        assert conn.calls == ["cursor", "execute", "close"]
        assert exc_info.value.context.sql == "DELETE FROM t"
        assert "no such table" in str(exc_info.value)

    def test_close_failure_does_not_hide_result(self):
        conn = RecordingConnection(rowcount=2, close_error=driver_error("already closed"))
        assert sql_update("DELETE FROM t")(conn) == 2

    def test_close_failure_does_not_hide_primary_failure(self):
        conn = RecordingConnection(
            execute_error=driver_error("syntax error"),
            close_error=driver_error("already closed"),
        )
        with pytest.raises(QueryError, match="syntax error"):
            sql_update("DELET FROM t")(conn)

    def test_cursor_open_failure_is_query_error(self):
        connection = MagicMock()
        connection.cursor.side_effect = driver_error("closed database")
        with pytest.raises(QueryError, match="closed database"):
            sql_update("DELETE FROM t")(connection)

    def test_str_is_sql(self):
        assert str(sql_update("DELETE FROM t WHERE id=?", 5)) == "DELETE FROM t WHERE id=?"

    def test_action_is_immutable(self):
        action = sql_update("DELETE FROM t WHERE id=?", 5)
        assert isinstance(action, Update)
        with pytest.raises(AttributeError):
            action.sql = "DROP TABLE t"  # type: ignore[misc]


class TestSqlUpdateAndReturnKey:
    def test_returns_first_column_of_first_returned_row(self):
        cursor = MagicMock()
        cursor.fetchone.return_value = (82,)
        connection = mock_connection(cursor)

        key = sql_update_and_return_key("INSERT INTO t (name) VALUES (?) RETURNING id", "a")(connection)

        assert key == 82
        cursor.execute.assert_called_once_with(
            "INSERT INTO t (name) VALUES (?) RETURNING id", ("a",)
        )
        cursor.fetchone.assert_called_once_with()
        cursor.close.assert_called_once_with()

    def test_falls_back_to_lastrowid(self):
        conn = RecordingConnection(lastrowid=17, rowcount=1, description=None)
        assert sql_update_and_return_key("INSERT INTO t (name) VALUES (?)", "a")(conn) == 17

    def test_stale_lastrowid_ignored_when_no_rows_affected(self):
        conn = RecordingConnection(lastrowid=2, rowcount=0, description=None)
        with pytest.raises(KeyNotGeneratedError):
            sql_update_and_return_key("UPDATE t SET a = 1 WHERE id = ?", 999)(conn)

    def test_no_key_raises(self):
        conn = RecordingConnection(lastrowid=None, description=None)
        with pytest.raises(KeyNotGeneratedError) as exc_info:
            sql_update_and_return_key("UPDATE t SET a = 1")(conn)
        assert exc_info.value.context.sql == "UPDATE t SET a = 1"
        assert conn.calls[-1] == "close"

    def test_empty_returning_result_raises(self):
        conn = RecordingConnection(rows=[], description=[("id",)])
        with pytest.raises(KeyNotGeneratedError):
            sql_update_and_return_key("INSERT INTO t DEFAULT VALUES RETURNING id")(conn)
        assert conn.cursors[0].closed

    def test_reads_only_first_row(self):
        conn = RecordingConnection(rows=[(1,), (2,)], description=[("id",)])
        assert sql_update_and_return_key("INSERT ... RETURNING id")(conn) == 1
        assert conn.calls.count("fetchone") == 1

    def test_closes_cursor_after_execute_failure(self):
        conn = RecordingConnection(execute_error=driver_error("UNIQUE constraint failed"))
        with pytest.raises(QueryError):
            sql_update_and_return_key("INSERT INTO t (name) VALUES (?)", "a")(conn)
        assert conn.calls == ["cursor", "execute", "close"]

    def test_str(self):
        action = sql_update_and_return_key("INSERT INTO t (name) VALUES (?)", "a")
        assert isinstance(action, UpdateReturningKey)
        assert str(action) == "INSERT INTO t (name) VALUES (?) -> key"


class TestSqlQuery:
    def test_maps_rows_in_cursor_order(self):
        cursor = MagicMock()
        cursor.fetchone.side_effect = [("alice",), ("bob",), None]
        connection = mock_connection(cursor)
        mapper = MagicMock(side_effect=lambda row, index: f"{index}:{row[0]}")

        result = sql_query("SELECT name FROM users WHERE active = ?", mapper, True)(connection)

        assert result == ["0:alice", "1:bob"]
        assert [c.args for c in mapper.call_args_list] == [(("alice",), 0), (("bob",), 1)]
        cursor.execute.assert_called_once_with("SELECT name FROM users WHERE active = ?", (True,))
        cursor.close.assert_called_once_with()

    def test_empty_result(self):
        conn = RecordingConnection(rows=[])
        mapper = MagicMock()
        assert sql_query("SELECT 1 WHERE 0", mapper)(conn) == []
        mapper.assert_not_called()
        assert conn.cursors[0].closed

    def test_mapper_failure_propagates_and_closes_cursor(self):
        conn = RecordingConnection(rows=[(1,), (2,)])

        def mapper(row, index):
            if index == 1:
                raise TypeError("unexpected column type")
            return row[0]

        with pytest.raises(TypeError, match="unexpected column type"):
            sql_query("SELECT id FROM t", mapper)(conn)
        assert conn.calls[-1] == "close"

    def test_fetch_failure_is_query_error(self):
        cursor = MagicMock()
        cursor.fetchone.side_effect = [(1,), driver_error("database disk image is malformed")]
        connection = mock_connection(cursor)

        with pytest.raises(QueryError, match="malformed"):
            sql_query("SELECT id FROM t", lambda row, i: row[0])(connection)
        cursor.close.assert_called_once_with()

    def test_is_reusable(self):
        mapper = lambda row, index: row[0]  # noqa: E731
        action = sql_query("SELECT id FROM t", mapper)
        assert isinstance(action, Query)
        assert action(RecordingConnection(rows=[(1,)])) == [1]
        assert action(RecordingConnection(rows=[(2,), (3,)])) == [2, 3]


class TestSuppress:
    def test_database_error_returns_fallback(self):
        def failing(conn):
            raise QueryError("table is locked")

        assert sql_suppress(failing, -1)(RecordingConnection()) == -1

    def test_raw_driver_error_returns_fallback(self):
        def failing(conn):
            raise driver_error("database is locked")

        assert sql_suppress(failing, "fallback")(RecordingConnection()) == "fallback"

    def test_success_passes_through(self):
        assert sql_suppress(lambda conn: 7, -1)(RecordingConnection()) == 7

    def test_other_errors_propagate(self):
        def failing(conn):
            raise ValueError("bug in action")

        with pytest.raises(ValueError):
            sql_suppress(failing, -1)(RecordingConnection())

    def test_config_errors_propagate(self):
        def failing(conn):
            raise ConfigError("driver missing")

        with pytest.raises(ConfigError):
            sql_suppress(failing, -1)(RecordingConnection())

    def test_wraps_factory_actions(self):
        conn = RecordingConnection(execute_error=driver_error("no such table: t"))
        assert sql_suppress(sql_update("DELETE FROM t"), 0)(conn) == 0
        assert conn.cursors[0].closed

    def test_or_none(self):
        def failing(conn):
            raise QueryError("gone")

        action = sql_suppress_or_none(failing)
        assert isinstance(action, Suppress)
        assert action(RecordingConnection()) is None

    def test_str(self):
        assert str(sql_suppress(sql_update("DELETE FROM t"), 0)) == "suppress {DELETE FROM t}"
