"""
Connection sources.

A connection source hands out live connections on demand. dbchain never
closes what a source hands out; ownership stays with whoever configured
the source.

Architecture:
    ::

        ConnectionSource.get() -> Connection
        ├── DirectConnectionSource    — new connection on every get()
        │   ├── driver_connection_source("psycopg2", dsn)
        │   ├── engine_connection_source(engine_or_url)   (pool checkout)
        │   └── sqlite_connection_source(path)
        └── CachingConnectionSource   — first get() acquires, later calls
                                        reuse it (lock-guarded, one acquisition)

Guardrails:
    ❌ DON'T: Share a cached connection between concurrently running actions
    ✅ DO: Cache per thread, or use an engine source for concurrent work

    The caching source never refreshes a broken connection and never
    closes it. Build a new source to recover.

Examples:
    >>> source = CachingConnectionSource(driver_connection_source("sqlite3", "app.db"))
    >>> source.get() is source.get()
    True

Tags:
    connection, connection-source, caching, pool, sqlalchemy, dbchain
"""

from __future__ import annotations

import importlib
import threading
from collections.abc import Callable
from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine

from dbchain.adapters.sqlite import SqliteConnection
from dbchain.errors import ConfigError, ConnectionAcquisitionError, DbChainError
from dbchain.logging import get_logger
from dbchain.protocols import ConnectionSource

logger = get_logger(__name__)


class DirectConnectionSource:
    """Calls ``connect(*args, **kwargs)`` on every ``get()``. Keeps no state."""

    def __init__(
        self,
        connect: Callable[..., Any],
        *args: Any,
        description: str | None = None,
        **kwargs: Any,
    ) -> None:
        self._connect = connect
        self._args = args
        self._kwargs = kwargs
        self.description = description or getattr(connect, "__qualname__", repr(connect))

    def get(self) -> Any:
        try:
            connection = self._connect(*self._args, **self._kwargs)
        except DbChainError:
            raise
        except Exception as e:
            raise ConnectionAcquisitionError(
                f"Failed to acquire connection from {self.description}: {e}",
                cause=e,
            ).with_context(source=self.description) from e
        logger.debug("connection_acquired", source=self.description)
        return connection

    def __repr__(self) -> str:
        return f"DirectConnectionSource({self.description!r})"


class CachingConnectionSource:
    """
    Acquires once from *source* and hands out the same connection forever.

    A lock scopes the "create if absent" check, so concurrent first callers
    block until the single acquisition finishes and then share its result.
    A failed acquisition caches nothing.
    """

    def __init__(self, source: ConnectionSource) -> None:
        self._source = source
        self._connection: Any = None
        self._lock = threading.Lock()

    def get(self) -> Any:
        with self._lock:
            if self._connection is None:
                self._connection = self._source.get()
                logger.info("connection_cached", source=repr(self._source))
        return self._connection

    @property
    def is_cached(self) -> bool:
        return self._connection is not None

    def __repr__(self) -> str:
        return f"CachingConnectionSource({self._source!r})"


# ── Factories ────────────────────────────────────────────────────────────


def _load_driver(driver: str) -> Callable[..., Any]:
    try:
        module = importlib.import_module(driver)
    except ImportError as e:
        raise ConfigError(
            f"Database driver {driver!r} is not installed", cause=e
        ).with_context(source=driver) from e
    connect = getattr(module, "connect", None)
    if not callable(connect):
        raise ConfigError(f"{driver!r} is not a DB-API driver (no connect())").with_context(
            source=driver
        )
    return connect


def driver_connection_source(driver: str, *args: Any, **kwargs: Any) -> DirectConnectionSource:
    """
    Connect through a DB-API driver module named by *driver*.

    The module is resolved on every ``get()``, so a missing driver surfaces
    as ``ConfigError`` at acquisition time rather than at construction.

    Usage:
        source = driver_connection_source("psycopg2", "dbname=app user=app")
        source = driver_connection_source("sqlite3", "app.db")
    """

    def connect() -> Any:
        return _load_driver(driver)(*args, **kwargs)

    return DirectConnectionSource(connect, description=f"{driver}.connect")


def create_engine(
    url: str,
    *,
    echo: bool = False,
    pool_size: int | None = None,
    max_overflow: int | None = None,
    pool_timeout: int | None = None,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``postgresql://…``, etc.)
    echo:
        If ``True``, log all SQL.
    pool_size, max_overflow, pool_timeout:
        Connection pool parameters (ignored for SQLite).
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = _sa_create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    pool_kwargs: dict[str, Any] = {}
    if pool_size is not None:
        pool_kwargs["pool_size"] = pool_size
    if max_overflow is not None:
        pool_kwargs["max_overflow"] = max_overflow
    if pool_timeout is not None:
        pool_kwargs["pool_timeout"] = pool_timeout

    return _sa_create_engine(url, echo=echo, **pool_kwargs, **kwargs)


class EngineConnectionSource(DirectConnectionSource):
    """
    Checks connections out of a SQLAlchemy engine's pool.

    Each ``get()`` returns a DBAPI connection proxy from
    ``engine.raw_connection()``; closing it returns it to the pool.
    """

    def __init__(self, engine: Engine) -> None:
        super().__init__(
            engine.raw_connection,
            description=engine.url.render_as_string(hide_password=True),
        )
        self.engine = engine

    def __repr__(self) -> str:
        return f"EngineConnectionSource({self.description!r})"


def engine_connection_source(engine: Engine | str, **engine_kwargs: Any) -> EngineConnectionSource:
    """Pool checkout source; a URL is turned into an engine with :func:`create_engine` first."""
    if isinstance(engine, str):
        engine = create_engine(engine, **engine_kwargs)
    return EngineConnectionSource(engine)


def sqlite_connection_source(
    path: str = ":memory:", *, autocommit: bool = True, **kwargs: Any
) -> DirectConnectionSource:
    """A new :class:`SqliteConnection` per ``get()``."""
    return DirectConnectionSource(
        SqliteConnection, path, autocommit=autocommit, description=f"sqlite:{path}", **kwargs
    )


__all__ = [
    "DirectConnectionSource",
    "CachingConnectionSource",
    "driver_connection_source",
    "create_engine",
    "EngineConnectionSource",
    "engine_connection_source",
    "sqlite_connection_source",
]
