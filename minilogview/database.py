"""State and queries behind the log table view: table, columns, filters, sorting and paging."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

from minilogview.filters import where_clause
from minilogview.querymodel import QueryModel

log = logging.getLogger(__name__)

DEFAULT_TABLE = "MinifilterLog"

ROLE_DEFINITIONS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "MinifilterLog": (
            "LogID",
            "SeqNum",
            "OprType",
            "PreOpTime",
            "PostOpTime",
            "ProcessId",
            "ProcessFilePath",
            "ThreadId",
            "MajorOp",
            "MinorOp",
            "IrpFlags",
            "DeviceObj",
            "FileObj",
            "FileTransaction",
            "OpStatus",
            "Information",
            "Arg1",
            "Arg2",
            "Arg3",
            "Arg4",
            "Arg5",
            "Arg6",
            "OpFileName",
            "RequestorMode",
            "RuleID",
            "RuleAction",
        ),
        "Alerts": ("AlertID", "Timestamp", "AlertMessage"),
    }
)
"""Columns known for each table, in display order."""


class Signal:
    """A list of callbacks run, in connection order, whenever the signal is emitted."""

    def __init__(self) -> None:
        self._callbacks: list[Callable[[], Any]] = []

    def connect(self, callback: Callable[[], Any]) -> None:
        self._callbacks.append(callback)

    def emit(self) -> None:
        for callback in list(self._callbacks):
            callback()


class DatabaseManager:
    """Builds and runs the paged, filtered and sorted query shown in the log table."""

    def __init__(self) -> None:
        self._connection: sqlite3.Connection | None = None
        self._model: QueryModel | None = None
        self._current_table = ""
        self._all_columns: list[str] = []
        self._selected_roles: list[str] = []
        self._filters: dict[str, Any] = {}
        self._sort_column = ""
        self._sort_order = "ASC"
        self._rows_per_page = 100
        self._total_pages = 1
        self._current_page = 0

        self.current_table_changed = Signal()
        self.selected_roles_changed = Signal()
        self.filters_changed = Signal()
        self.sort_column_changed = Signal()
        self.sort_order_changed = Signal()
        self.rows_per_page_changed = Signal()
        self.total_pages_changed = Signal()
        self.current_page_changed = Signal()
        self.query_has_refreshed = Signal()

    # ------------------------------------------------------------------ lifecycle

    def open(self, path: str) -> None:
        """Open the SQLite database at ``path`` and show its log table.

        Raises sqlite3.Error when the database cannot be opened or queried.
        """
        self.close()
        self._connection = sqlite3.connect(path)
        self._model = QueryModel(self._connection)
        self._current_table = DEFAULT_TABLE
        self._all_columns = list(ROLE_DEFINITIONS[DEFAULT_TABLE])
        self._selected_roles = list(self._all_columns)
        self._sort_order = "ASC"
        self._total_pages = 1
        self.refresh_query()

    def close(self) -> None:
        """Close the database, if one is open."""
        if self._connection is not None:
            self._connection.close()
        self._connection = None
        self._model = None

    def __enter__(self) -> DatabaseManager:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def connection(self) -> sqlite3.Connection | None:
        return self._connection

    @property
    def model(self) -> QueryModel | None:
        """The model holding the current page of rows, or None when closed."""
        return self._model

    def _require_open(self) -> sqlite3.Connection:
        if self._connection is None:
            raise RuntimeError("no database is open")
        return self._connection

    def _refresh_if_open(self) -> None:
        if self._connection is not None:
            self.refresh_query()

    # ------------------------------------------------------------------ queries

    def run_query(self, query: str) -> None:
        """Load the result of ``query`` into the model."""
        self._require_open()
        assert self._model is not None
        self._model.refresh_query(query)
        self.query_has_refreshed.emit()

    def refresh_query(self) -> None:
        """Re-run the current query with the active filters, sorting and page."""
        self.apply_filters_with_sort(self._filters, self._sort_column, self._sort_order)
        self.update_total_pages()

    def unique_values(self, column_name: str) -> list[str]:
        """Distinct values of a column in the current table, sorted case-insensitively."""
        if not column_name:
            raise ValueError("column name must not be empty")
        connection = self._require_open()
        cursor = connection.execute(f"SELECT DISTINCT {column_name} FROM {self._current_table}")
        try:
            values = ["" if value is None else str(value) for (value, *_) in cursor]
        finally:
            cursor.close()
        return sorted(values, key=str.lower)

    def apply_filters_with_sort(
        self,
        filters: Mapping[str, Any],
        sort_column: str = "",
        sort_order: str = "ASC",
    ) -> str:
        """Build the page query for ``filters`` and sorting, run it and return it."""
        self._require_open()
        if not self._selected_roles:
            raise ValueError(f"no columns selected for table {self._current_table!r}")
        parts = [f"SELECT {', '.join(self._selected_roles)} FROM {self._current_table}"]
        where = where_clause(filters)
        if where:
            parts.append(where)
        if sort_column:
            parts.append(f"ORDER BY {sort_column} {sort_order.upper()}")
        offset = self._current_page * self._rows_per_page
        parts.append(f"LIMIT {self._rows_per_page} OFFSET {offset}")
        query = " ".join(parts)
        self.run_query(query)
        return query

    def update_total_pages(self) -> None:
        """Recount the filtered rows and keep the current page within range."""
        connection = self._require_open()
        count_query = f"SELECT COUNT(*) FROM {self._current_table}"
        where = where_clause(self._filters)
        if where:
            count_query += " " + where
        row = connection.execute(count_query).fetchone()
        count = int(row[0]) if row and row[0] is not None else 0

        self._total_pages = -(-count // self._rows_per_page)
        self.total_pages_changed.emit()

        if self._current_page >= self._total_pages:
            self._current_page = max(0, self._total_pages - 1)
            self.current_page_changed.emit()

    # ------------------------------------------------------------------ table

    @property
    def current_table(self) -> str:
        return self._current_table

    @current_table.setter
    def current_table(self, table: str) -> None:
        if table == self._current_table:
            return
        self._current_table = table
        if table in ROLE_DEFINITIONS:
            self._all_columns = list(ROLE_DEFINITIONS[table])
        else:
            log.warning("No predefined roles for table: %s", table)
            self._all_columns = []
        self._selected_roles = list(self._all_columns)
        self.current_table_changed.emit()
        self.selected_roles_changed.emit()

        self._filters.clear()
        self.filters_changed.emit()

        self._current_page = 0
        self.current_page_changed.emit()

        self._refresh_if_open()

    # ------------------------------------------------------------------ columns

    def role_names(self) -> list[str]:
        """All columns available in the current table."""
        return list(self._all_columns)

    @property
    def selected_roles(self) -> list[str]:
        return list(self._selected_roles)

    @selected_roles.setter
    def selected_roles(self, roles: Iterable[str]) -> None:
        ordered = self.sorted_by_model_order(roles)
        if ordered != self._selected_roles:
            self._selected_roles = ordered
            self.selected_roles_changed.emit()

    def sorted_by_model_order(self, roles: Iterable[str]) -> list[str]:
        """The known columns among ``roles``, in the table's column order."""
        wanted = set(roles)
        return [column for column in self._all_columns if column in wanted]

    def toggle_role(self, role: str, selected: bool) -> None:
        """Show or hide one column; hiding it also drops its filter."""
        if selected and role not in self._selected_roles:
            self._selected_roles.append(role)
        elif not selected and role in self._selected_roles:
            self._selected_roles = [column for column in self._selected_roles if column != role]
            if role in self._filters:
                del self._filters[role]
                self.filters_changed.emit()

        self._selected_roles = self.sorted_by_model_order(self._selected_roles)
        self.selected_roles_changed.emit()
        self._refresh_if_open()

    # ------------------------------------------------------------------ filters

    @property
    def filters(self) -> dict[str, Any]:
        return dict(self._filters)

    @filters.setter
    def filters(self, filters: Mapping[str, Any]) -> None:
        new_filters = dict(filters)
        if new_filters != self._filters:
            self._filters = new_filters
            self.filters_changed.emit()
            self._current_page = 0
            self.current_page_changed.emit()

    def set_filter(self, key: str, value: Any) -> None:
        """Set one filter; the query is not re-run until the next refresh."""
        self._filters[key] = value
        self.filters_changed.emit()

    def remove_filter(self, key: str) -> None:
        """Drop one filter and re-run the query from the first page."""
        if key not in self._filters:
            log.debug("Filter not found: %s", key)
            return
        del self._filters[key]
        self.filters_changed.emit()
        self._current_page = 0
        self.current_page_changed.emit()
        self._refresh_if_open()

    def clear_filters(self) -> None:
        """Drop all filters and re-run the query from the first page."""
        if not self._filters:
            return
        self._filters.clear()
        self.filters_changed.emit()
        self._current_page = 0
        self.current_page_changed.emit()
        self._refresh_if_open()

    # ------------------------------------------------------------------ sorting

    @property
    def sort_column(self) -> str:
        return self._sort_column

    @sort_column.setter
    def sort_column(self, column: str) -> None:
        if column != self._sort_column:
            self._sort_column = column
            self.sort_column_changed.emit()

    @property
    def sort_order(self) -> str:
        return self._sort_order

    @sort_order.setter
    def sort_order(self, order: str) -> None:
        if order != self._sort_order:
            self._sort_order = order
            self.sort_order_changed.emit()

    # ------------------------------------------------------------------ paging

    @property
    def rows_per_page(self) -> int:
        return self._rows_per_page

    @rows_per_page.setter
    def rows_per_page(self, rows: int) -> None:
        if rows < 1:
            raise ValueError(f"rows per page must be positive, got {rows}")
        if rows != self._rows_per_page:
            self._rows_per_page = rows
            self.rows_per_page_changed.emit()
            self._refresh_if_open()

    @property
    def total_pages(self) -> int:
        return self._total_pages

    @property
    def current_page(self) -> int:
        return self._current_page

    @current_page.setter
    def current_page(self, page: int) -> None:
        if page != self._current_page and page >= 0:
            self._current_page = page
            self.current_page_changed.emit()
            self._refresh_if_open()