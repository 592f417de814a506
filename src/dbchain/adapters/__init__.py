"""Connection adapters that bring stdlib drivers up to the ``Connection`` protocol."""

from .sqlite import SqliteConnection

__all__ = [
    "SqliteConnection",
]
