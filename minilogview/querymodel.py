"""A read-only table model holding the result of one SQL query."""

from __future__ import annotations

import sqlite3
from typing import Any

USER_ROLE = 0x0100
"""First role number handed out to columns by :meth:`QueryModel.role_names`."""


class QueryModel:
    """Runs a query on a SQLite connection and exposes its rows and columns."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._headers: list[str] = []
        self._rows: list[tuple[Any, ...]] = []
        self.query = ""

    def refresh_query(self, query: str) -> None:
        """Replace the model's contents with the result of ``query``.

        On failure the model is left empty and the database error propagates.
        """
        self.query = query
        self._headers = []
        self._rows = []
        cursor = self._connection.execute(query)
        try:
            description = cursor.description or ()
            headers = [entry[0] for entry in description]
            rows = cursor.fetchall() if headers else []
        finally:
            cursor.close()
        self._headers = headers
        self._rows = [tuple(row) for row in rows]

    def row_count(self) -> int:
        return len(self._rows)

    def column_count(self) -> int:
        return len(self._headers)

    def header(self, column: int) -> str:
        """Name of ``column``; raises IndexError when it does not exist."""
        if not 0 <= column < len(self._headers):
            raise IndexError(f"column {column} out of range")
        return self._headers[column]

    def data(self, row: int, column: int) -> Any:
        """Value at ``row``/``column``, or None outside the table."""
        if not (0 <= row < len(self._rows) and 0 <= column < len(self._headers)):
            return None
        return self._rows[row][column]

    def role_names(self) -> dict[int, str]:
        """Map of role number to column name, one role per column."""
        return {USER_ROLE + index: name for index, name in enumerate(self._headers)}

    def get(self, row: int) -> dict[str, Any]:
        """The row as a mapping of column name to value; empty if out of range."""
        if not 0 <= row < len(self._rows):
            return {}
        return dict(zip(self._headers, self._rows[row]))

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self):
        for row in range(len(self._rows)):
            yield self.get(row)