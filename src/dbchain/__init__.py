"""
dbchain - composable database actions over DB-API connections.

    from dbchain import run, sql_tx, sql_update, sql_query, single_column_row_mapper
    from dbchain import connection_source_from_url

    source = connection_source_from_url("app.db", cache=True)

    transfer = sql_tx(
        sql_update("UPDATE accounts SET balance = balance - ? WHERE id = ?", 10, 1)
        .then_discard(sql_update("UPDATE accounts SET balance = balance + ? WHERE id = ?", 10, 2))
    )
    run(transfer, source)

    balances = run(sql_query("SELECT balance FROM accounts", single_column_row_mapper(int)), source)

Modules
-------
protocols       Connection, Cursor, Action, RowMapper, ConnectionSource contracts
actions         ChainableAction with then_discard / then_replace
transaction     sql_tx transaction wrapper
factories       sql_update, sql_update_and_return_key, sql_query, sql_suppress
mappers         Stock row mappers
sources         Direct, driver, engine (pool) and caching connection sources
connection      URL → connection source
runner          run() entry point
autocommit      Cross-driver auto-commit access
errors          DbChainError hierarchy
settings        DbChainSettings (DBCHAIN_* environment)
logging         structlog configuration
"""

from dbchain.actions import ChainableAction, sql_make_chainable
from dbchain.connection import connection_source_from_settings, connection_source_from_url
from dbchain.errors import (
    ConfigError,
    ConnectionAcquisitionError,
    DatabaseError,
    DbChainError,
    ExecutionError,
    KeyNotGeneratedError,
    QueryError,
    TransactionError,
    is_database_error,
)
from dbchain.factories import (
    sql_query,
    sql_suppress,
    sql_suppress_or_none,
    sql_update,
    sql_update_and_return_key,
)
from dbchain.mappers import dict_row_mapper, single_column_row_mapper, tuple_row_mapper
from dbchain.protocols import Action, Connection, ConnectionSource, RowMapper
from dbchain.runner import run, run_in_transaction
from dbchain.settings import DbChainSettings
from dbchain.sources import (
    CachingConnectionSource,
    DirectConnectionSource,
    driver_connection_source,
    engine_connection_source,
    sqlite_connection_source,
)
from dbchain.transaction import sql_tx

__version__ = "0.1.0"

__all__ = [
    # Protocols
    "Action",
    "Connection",
    "ConnectionSource",
    "RowMapper",
    # Actions
    "ChainableAction",
    "sql_make_chainable",
    "sql_tx",
    "sql_update",
    "sql_update_and_return_key",
    "sql_query",
    "sql_suppress",
    "sql_suppress_or_none",
    # Mappers
    "single_column_row_mapper",
    "tuple_row_mapper",
    "dict_row_mapper",
    # Sources
    "DirectConnectionSource",
    "CachingConnectionSource",
    "driver_connection_source",
    "engine_connection_source",
    "sqlite_connection_source",
    "connection_source_from_url",
    "connection_source_from_settings",
    # Runner
    "run",
    "run_in_transaction",
    # Errors
    "DbChainError",
    "ConfigError",
    "DatabaseError",
    "ConnectionAcquisitionError",
    "QueryError",
    "KeyNotGeneratedError",
    "TransactionError",
    "ExecutionError",
    "is_database_error",
    # Settings
    "DbChainSettings",
]
