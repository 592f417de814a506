"""Stock row mappers for ``sql_query``.

A row mapper is any callable ``(row, row_index) -> value``; these cover
the common shapes.
"""

from __future__ import annotations

from typing import Any, TypeVar

from dbchain.protocols import RowMapper

T = TypeVar("T")


def single_column_row_mapper(column_type: type[T] | None = None) -> RowMapper[T]:
    """Map each row to its first column.

    With *column_type*, non-NULL values that are not instances of it raise
    ``TypeError``.
    """

    def map_row(row: Any, row_index: int) -> T:
        value = row[0]
        if column_type is not None and value is not None and not isinstance(value, column_type):
            raise TypeError(
                f"Row {row_index}: expected {column_type.__name__}, got {type(value).__name__}"
            )
        return value

    return map_row


def tuple_row_mapper(row: Any, row_index: int) -> tuple[Any, ...]:
    return tuple(row)


def dict_row_mapper(*columns: str) -> RowMapper[dict[str, Any]]:
    """Map each row to a dict.

    Named *columns* are zipped with the row positionally. Without names the
    row's own ``keys()`` are used (``sqlite3.Row``, dict-like rows).
    """

    def map_row(row: Any, row_index: int) -> dict[str, Any]:
        if columns:
            if len(columns) != len(row):
                raise ValueError(
                    f"Row {row_index}: {len(row)} columns, {len(columns)} names given"
                )
            return dict(zip(columns, row))
        return {key: row[key] for key in row.keys()}

    return map_row


__all__ = [
    "single_column_row_mapper",
    "tuple_row_mapper",
    "dict_row_mapper",
]
