"""Connection source factory: build a source from a URL string.

Supported URL schemes
---------------------
==================  ==========================================  ==================
Scheme              Example                                     Source
==================  ==========================================  ==================
``memory``          ``memory`` or ``:memory:`` or ``None``       cached SQLite RAM
``sqlite``          ``sqlite:///path/to/file.db``                SqliteConnection
``(file path)``     ``./data/my.db`` or ``/tmp/app.db``          SqliteConnection
anything else       ``postgresql://user:pw@host:port/db``        SQLAlchemy engine
==================  ==========================================  ==================

An in-memory database lives exactly as long as its connection, so
``memory`` sources are always cached; otherwise every ``get()`` would
see a fresh, empty database.

Usage
-----
::

    from dbchain.connection import connection_source_from_url

    source = connection_source_from_url("app.db")
    source = connection_source_from_url("postgresql://app@db/app", pool_size=10)
    source = connection_source_from_url("postgresql://app@db/app", cache=True)
"""

from __future__ import annotations

from typing import Any

from dbchain.logging import get_logger
from dbchain.protocols import ConnectionSource
from dbchain.settings import DbChainSettings
from dbchain.sources import (
    CachingConnectionSource,
    engine_connection_source,
    sqlite_connection_source,
)

logger = get_logger(__name__)


def _parse_url(db: str | None) -> tuple[str, str]:
    """Parse a database URL into (scheme, target).

    Returns
    -------
    tuple[str, str]
        (scheme, target) where scheme is one of:
        ``"memory"``, ``"sqlite"``, ``"file"``, ``"engine"``.
    """
    if db is None or db in ("", "memory", ":memory:"):
        return "memory", ":memory:"

    if db.startswith("sqlite://"):
        path = db[len("sqlite://"):]
        if path.startswith("/"):
            path = path[1:]
        if not path or path == ":memory:":
            return "memory", ":memory:"
        return "sqlite", path

    if "://" in db:
        scheme, rest = db.split("://", 1)
        if scheme.startswith(("postgresql+async", "postgres+async")):
            # Async drivers cannot back a sync DB-API source; use the default driver.
            return "engine", f"{scheme.split('+')[0]}://{rest}"
        return "engine", db

    return "file", db


def connection_source_from_url(
    db: str | None = None,
    *,
    cache: bool = False,
    **engine_kwargs: Any,
) -> ConnectionSource:
    """Create a connection source from a URL, path, or keyword.

    Parameters
    ----------
    db:
        ``None`` / ``"memory"`` for in-memory SQLite, a file path or
        ``sqlite:///`` URL for file SQLite, any other SQLAlchemy URL for an
        engine-backed source.
    cache:
        Wrap the source in ``CachingConnectionSource``.
    **engine_kwargs:
        Forwarded to ``dbchain.sources.create_engine`` for engine URLs.
    """
    scheme, target = _parse_url(db)

    if scheme == "memory":
        source: ConnectionSource = sqlite_connection_source(":memory:")
        cache = True
    elif scheme in ("sqlite", "file"):
        source = sqlite_connection_source(target)
    else:
        source = engine_connection_source(target, **engine_kwargs)

    logger.debug("connection_source_created", scheme=scheme, cached=cache)
    return CachingConnectionSource(source) if cache else source


def connection_source_from_settings(settings: DbChainSettings | None = None) -> ConnectionSource:
    """Create the connection source described by *settings* (or the environment)."""
    settings = settings or DbChainSettings()
    return connection_source_from_url(
        settings.database_url,
        cache=settings.cache_connection,
        **settings.engine_options(),
    )


__all__ = [
    "connection_source_from_url",
    "connection_source_from_settings",
]
