"""
Runner - the single entry point that executes actions end-to-end.

    run(action, source)
        │
        ├── source.get()           ← acquisition failure ─┐
        ├── action(connection)     ← database failure  ───┤
        │                                                 ▼
        └── result                          ExecutionError(cause=original)

Any failure to acquire a connection (including a missing driver or bad
configuration) and database failures of any origin raised by the action
(dbchain ``DatabaseError``, raw DB-API driver errors, SQLAlchemy
``DBAPIError``) reach the caller as ``ExecutionError``. Other errors raised
by the action propagate untouched.
The runner never closes the connection: that is the source's business.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, TypeVar

from dbchain.actions import describe
from dbchain.errors import ExecutionError, is_database_error
from dbchain.logging import get_logger
from dbchain.protocols import ConnectionSource
from dbchain.transaction import sql_tx

logger = get_logger(__name__)

T = TypeVar("T")


def _failed(label: str, error: Exception) -> ExecutionError:
    logger.warning("action_failed", action=label, error=repr(error))
    return ExecutionError(f"Action failed: {error}", cause=error).with_context(action=label)


def run(action: Callable[[Any], T], connection_source: ConnectionSource) -> T:
    """Acquire a connection from *connection_source* and run *action* on it."""
    label = describe(action)
    started = time.perf_counter()
    logger.debug("action_started", action=label)
    try:
        connection = connection_source.get()
    except Exception as e:
        raise _failed(label, e) from e
    try:
        result = action(connection)
    except Exception as e:
        if not is_database_error(e):
            raise
        raise _failed(label, e) from e
    logger.debug(
        "action_completed",
        action=label,
        duration_ms=round((time.perf_counter() - started) * 1000, 3),
    )
    return result


def run_in_transaction(action: Callable[[Any], T], connection_source: ConnectionSource) -> T:
    """Shorthand for ``run(sql_tx(action), connection_source)``."""
    return run(sql_tx(action), connection_source)


__all__ = [
    "run",
    "run_in_transaction",
]
