"""
Transaction wrapper.

``sql_tx(action)`` runs *action* inside a transaction boundary:

    ┌──────────────────────────────────────────────────────────────┐
    │ original = get_autocommit(conn)                              │
    │ set_autocommit(conn, False)                                  │
    │ try:                                                         │
    │     result = action(conn); conn.commit(); return result      │
    │ except BaseException:                                        │
    │     conn.rollback(); raise  ← always the original failure    │
    │ finally:                                                     │
    │     set_autocommit(conn, original)   ← exactly once          │
    └──────────────────────────────────────────────────────────────┘

The wrapper scopes exactly one action. To make several actions atomic,
chain them first::

    sql_tx(debit.then_discard(credit).then_discard(journal))

Interrupts (``KeyboardInterrupt``, ``SystemExit``) roll back too; switching
auto-commit back on would otherwise commit the partial work.

A rollback that fails never replaces the failure that triggered it: the
rollback error is logged and attached to the original exception as a note
(and, for dbchain errors, under ``context.metadata["rollback_error"]``).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from dbchain.actions import ChainableAction, describe
from dbchain.autocommit import get_autocommit, set_autocommit
from dbchain.errors import DbChainError, TransactionError, wrap_driver_error
from dbchain.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _commit(connection: Any) -> None:
    try:
        connection.commit()
    except DbChainError:
        raise
    except Exception as e:
        raise wrap_driver_error("Commit failed", e, error_class=TransactionError) from e


def _rollback_after(connection: Any, error: BaseException, action: str) -> None:
    try:
        connection.rollback()
    except Exception as rollback_error:
        logger.error(
            "rollback_failed",
            action=action,
            error=repr(error),
            rollback_error=repr(rollback_error),
        )
        error.add_note(f"rollback failed: {rollback_error!r}")
        if isinstance(error, DbChainError):
            error.with_context(rollback_error=repr(rollback_error))


@dataclass(frozen=True)
class Transaction(ChainableAction[T]):
    """Commit-on-success, rollback-on-failure decorator around one action."""

    action: Callable[[Any], T]

    def __call__(self, connection: Any) -> T:
        original_autocommit = get_autocommit(connection)
        set_autocommit(connection, False)
        failed = False
        try:
            result = self.action(connection)
            _commit(connection)
            logger.debug("transaction_committed", action=str(self))
            return result
        except BaseException as e:
            failed = True
            logger.debug("transaction_rolling_back", action=str(self), error=repr(e))
            _rollback_after(connection, e, str(self))
            raise
        finally:
            if failed:
                _restore_quietly(connection, original_autocommit)
            else:
                set_autocommit(connection, original_autocommit)

    def __str__(self) -> str:
        return f"tx {{{describe(self.action)}}}"


def _restore_quietly(connection: Any, autocommit: bool) -> None:
    # Another failure is already propagating; it wins.
    try:
        set_autocommit(connection, autocommit)
    except Exception as e:
        logger.error("autocommit_restore_failed", autocommit=autocommit, error=repr(e))


def sql_tx(action: Callable[[Any], T]) -> ChainableAction[T]:
    """Wrap *action* so it runs in its own transaction."""
    return Transaction(action)


__all__ = [
    "Transaction",
    "sql_tx",
]
