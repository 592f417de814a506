"""
Structured error types for dbchain.

Every failure that leaves the library is a ``DbChainError`` carrying a
category, a retry hint, structured context and the chained cause. Driver
exceptions (``sqlite3.Error``, ``psycopg2.Error``, SQLAlchemy's
``DBAPIError``, ...) are translated at the point where dbchain talks to
the driver so callers only ever need to catch one family.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                        DbChainError                           │
        │        (category, retryable, context, cause)                  │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  ConfigError            DatabaseError          ExecutionError │
        │  (CONFIG)               (DATABASE)             (DATABASE)     │
        │      │                      │                                 │
        │  UnsupportedConnection  ConnectionAcquisitionError            │
        │                         QueryError                            │
        │                           └── KeyNotGeneratedError            │
        │                         TransactionError                      │
        └──────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Swallow the driver exception
    ✅ DO: Pass it as cause= (or use wrap_driver_error)

    ❌ DON'T: Catch sqlite3.Error / psycopg2.Error in application code
    ✅ DO: Catch DatabaseError, or use is_database_error()

Examples:
    >>> try:
    ...     raise sqlite3.OperationalError("no such table: t")
    ... except sqlite3.Error as e:
    ...     raise wrap_driver_error("Query failed", e, sql="SELECT * FROM t")
    Traceback (most recent call last):
    ...
    QueryError: Query failed: no such table: t

Tags:
    error-handling, exception-hierarchy, error-context, dbchain
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy.exc import DBAPIError


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and logging.

    Attributes:
        DATABASE: Acquisition, statement, cursor or transaction failures
        CONFIG: Missing drivers, unsupported connections, bad settings
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    DATABASE = "DATABASE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        action: ``str()`` of the action that failed
        sql: SQL text of the statement that failed
        source: Description of the connection source involved
        metadata: Additional key-value pairs
    """

    action: str | None = None
    sql: str | None = None
    source: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["action", "sql", "source"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class DbChainError(Exception):
    """
    Base exception for all dbchain errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can
    be overridden per instance. When ``cause`` is given it becomes the
    exception's ``__cause__`` so tracebacks show the driver error.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> DbChainError:
        """
        Add context to this error (fluent API).

        Usage:
            raise QueryError("Failed").with_context(sql=sql, table="users")
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(DbChainError):
    """Missing driver, unsupported connection type or invalid settings."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class UnsupportedConnectionError(ConfigError):
    """The connection exposes no auto-commit mode dbchain knows how to drive."""

    def __init__(self, connection: Any, message: str | None = None):
        self.connection_type = type(connection).__name__
        super().__init__(
            message or f"Cannot control auto-commit on {self.connection_type} connections",
        )


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(DbChainError):
    """Database-operation failure: statement, cursor or transaction."""

    default_category = ErrorCategory.DATABASE


class ConnectionAcquisitionError(DatabaseError):
    """A connection source could not produce a connection."""

    default_retryable = True


class QueryError(DatabaseError):
    """Preparing, executing or reading a statement failed."""


class KeyNotGeneratedError(QueryError):
    """A key-returning update produced no generated key."""


class TransactionError(DatabaseError):
    """Commit, rollback or auto-commit switching failed."""


class ExecutionError(DbChainError):
    """
    Uniform failure raised by the runner.

    Wraps any database-operation failure, acquisition included, so callers
    of ``run()`` see a single error kind. The original is kept as ``cause``.
    """

    default_category = ErrorCategory.DATABASE


# =============================================================================
# HELPERS
# =============================================================================


def _is_dbapi_module(module_name: str) -> bool:
    top_level = sys.modules.get(module_name.split(".", 1)[0])
    return top_level is not None and hasattr(top_level, "apilevel")


def is_dbapi_error(error: BaseException) -> bool:
    """
    Check if an exception was raised by a DB-API 2.0 driver.

    DB-API drivers share no common base class. Every compliant driver
    module declares ``apilevel``, so an exception whose ``Error`` base lives
    in such a module is treated as a driver error.
    """
    if isinstance(error, DBAPIError):
        return True
    for cls in type(error).__mro__:
        if cls.__name__ == "Error" and _is_dbapi_module(cls.__module__):
            return True
    return False


def is_database_error(error: BaseException) -> bool:
    """Check if an exception is a database-operation failure of any origin."""
    return isinstance(error, DatabaseError) or is_dbapi_error(error)


def wrap_driver_error(
    message: str,
    error: BaseException,
    *,
    error_class: type[DatabaseError] = QueryError,
    **context: Any,
) -> DatabaseError:
    """
    Translate a driver exception into a ``DatabaseError``.

    dbchain errors pass through unchanged (context is still attached) so a
    failure translated deep inside a chain is not wrapped twice.
    """
    if isinstance(error, DatabaseError):
        return error.with_context(**context)  # type: ignore[return-value]
    return error_class(f"{message}: {error}", cause=error).with_context(**context)  # type: ignore[return-value]


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "DbChainError",
    "ConfigError",
    "UnsupportedConnectionError",
    "DatabaseError",
    "ConnectionAcquisitionError",
    "QueryError",
    "KeyNotGeneratedError",
    "TransactionError",
    "ExecutionError",
    "is_dbapi_error",
    "is_database_error",
    "wrap_driver_error",
]
