"""
Composable actions.

An action is any callable taking a connection and returning a result.
``ChainableAction`` adds two sequencing operators; every concrete action
dbchain builds (updates, queries, transactions, ...) is one.

Architecture:
    ::

        ChainableAction[T]  (abstract, immutable)
        ├── Chainable            — adapter around a plain callable
        ├── ThenDiscard          — run a, run b, return a's result
        ├── ThenReplace          — run a, run b, return b's result
        ├── Transaction          — dbchain.transaction
        ├── Update               ┐
        ├── UpdateReturningKey   ├ dbchain.factories
        ├── Query                │
        └── Suppress             ┘

    Chaining never mutates its operands. A chain node holds references to
    both children and invokes them left to right against the same
    connection, so ``a.then_discard(b).then_replace(c)`` runs a, b, c in
    that order, each exactly once, and any failure stops the chain.

Examples:
    >>> cleanup = sql_update("DELETE FROM sessions WHERE user_id = ?", 7)
    >>> audit = sql_update("INSERT INTO audit (event) VALUES (?)", "logout")
    >>> deleted = run(cleanup.then_discard(audit), source)

Tags:
    action, composition, chaining, dbchain
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")
S = TypeVar("S")


def describe(action: Any) -> str:
    """Human-readable label for an action, used in logs and error context."""
    if isinstance(action, ChainableAction):
        return str(action)
    return getattr(action, "__qualname__", None) or repr(action)


class ChainableAction(ABC, Generic[T]):
    """
    An action that can be sequenced with other actions.

    Subclasses implement ``__call__``. Instances are immutable, so one
    action can be invoked any number of times and chained from freely.
    """

    @abstractmethod
    def __call__(self, connection: Any) -> T:
        """Run the action against *connection*."""
        ...

    def then_discard(self, action: Callable[[Any], Any]) -> ChainableAction[T]:
        """Run this action, then *action*; keep this action's result."""
        return ThenDiscard(self, action)

    def then_replace(self, action: Callable[[Any], S]) -> ChainableAction[S]:
        """Run this action for its side effects, then return *action*'s result."""
        return ThenReplace(self, action)


@dataclass(frozen=True)
class Chainable(ChainableAction[T]):
    """Adapter lifting a plain callable into a ``ChainableAction``."""

    action: Callable[[Any], T]

    def __call__(self, connection: Any) -> T:
        return self.action(connection)

    def __str__(self) -> str:
        return describe(self.action)


@dataclass(frozen=True)
class ThenDiscard(ChainableAction[T]):
    first: Callable[[Any], T]
    second: Callable[[Any], Any]

    def __call__(self, connection: Any) -> T:
        result = self.first(connection)
        self.second(connection)
        return result

    def __str__(self) -> str:
        return f"{describe(self.first)}; {describe(self.second)}"


@dataclass(frozen=True)
class ThenReplace(ChainableAction[S]):
    first: Callable[[Any], Any]
    second: Callable[[Any], S]

    def __call__(self, connection: Any) -> S:
        self.first(connection)
        return self.second(connection)

    def __str__(self) -> str:
        return f"{describe(self.first)}; {describe(self.second)}"


def sql_make_chainable(action: Callable[[Any], T]) -> ChainableAction[T]:
    """Lift *action* into a ``ChainableAction`` without changing what it does.

    Actions that are already chainable are returned as is.
    """
    if isinstance(action, ChainableAction):
        return action
    return Chainable(action)


__all__ = [
    "ChainableAction",
    "Chainable",
    "ThenDiscard",
    "ThenReplace",
    "describe",
    "sql_make_chainable",
]
