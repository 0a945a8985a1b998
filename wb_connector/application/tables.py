"""
An insertion-ordered, sparse table that pages are decoded into.

A Table is what one page decodes into (a "partial" table). Partial tables
are combined with first-write-wins semantics into the merged result, which
is handed to callers as a pandas DataFrame.
"""

from typing import Any, Dict, Hashable, Iterable, List, Optional

import pandas


class Table:
    """Ordered mapping of row key -> (column key -> value)."""

    def __init__(self):
        self._rows: Dict[Hashable, Dict[Hashable, Any]] = {}
        self._columns: Dict[Hashable, type] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, row: Hashable) -> bool:
        return row in self._rows

    @property
    def rows(self) -> List[Hashable]:
        return list(self._rows)

    @property
    def columns(self) -> List[Hashable]:
        return list(self._columns)

    def column_type(self, column: Hashable) -> type:
        return self._columns[column]

    def add_row(self, row: Hashable) -> bool:
        """Adds a row key if absent. Existing keys keep their position."""
        if row in self._rows:
            return False
        self._rows[row] = {}
        return True

    def add_column(self, column: Hashable, value_type: type = float) -> bool:
        """Registers a column key against its value type if absent."""
        if column in self._columns:
            return False
        self._columns[column] = value_type
        return True

    def set(self, row: Hashable, column: Hashable, value: Any):
        """Sets a cell, overwriting any previous value."""
        if row not in self._rows:
            raise KeyError(f"Row {row!r} does not exist in table")
        if column not in self._columns:
            raise KeyError(f"Column {column!r} does not exist in table")
        self._rows[row][column] = value

    def has(self, row: Hashable, column: Hashable) -> bool:
        return column in self._rows.get(row, ())

    def get(self, row: Hashable, column: Hashable, default: Any = None) -> Any:
        return self._rows.get(row, {}).get(column, default)

    def absorb(self, other: "Table"):
        """
        Copies rows, columns and cells of another table into this one.

        Cells already set here are left untouched (first-write-wins).
        """
        for column in other._columns:
            self.add_column(column, other._columns[column])
        for row, values in other._rows.items():
            self.add_row(row)
            target = self._rows[row]
            for column, value in values.items():
                target.setdefault(column, value)

    @classmethod
    def combine_first(cls, tables: Iterable["Table"]) -> "Table":
        """Merges tables in the given order, earliest table winning."""
        merged = cls()
        for table in tables:
            merged.absorb(table)
        return merged

    def to_frame(
        self,
        index_name: Optional[str] = None,
        columns_name: Optional[str] = None,
    ) -> pandas.DataFrame:
        """Materialises the table as a DataFrame, keeping key order."""
        columns = self.columns
        data = {
            column: [values.get(column) for values in self._rows.values()]
            for column in columns
        }
        frame = pandas.DataFrame(
            data,
            index=pandas.Index(self.rows, name=index_name, dtype=object),
            columns=pandas.Index(columns, name=columns_name, dtype=object),
        )
        numeric = [c for c in columns if self._columns[c] in (float, int)]
        if numeric:
            frame[numeric] = frame[numeric].astype(float)
        return frame
