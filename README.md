# minilogview

`minilogview` is a small library for browsing a SQLite database that holds a log of file-system
minifilter operations. The log is kept in a `MinifilterLog` table and alerts are kept in an
`Alerts` table. With the library you choose which columns to show, filter by column and sort the
rows. It returns results one page at a time and also reads a set of summary views.

It uses only the standard library.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Browsing the log

```python
from minilogview.database import DatabaseManager

with DatabaseManager() as manager:
    manager.open("log.db")

    manager.set_filter("ProcessId", "4242")
    manager.set_filter("OpFileName", "%.txt")
    manager.refresh_query()

    for row in manager.model:          # each row is a dict of column name to value
        print(row)
    print(manager.total_pages)
```

`open(path)` connects to the database and selects the `MinifilterLog` table with all of its
columns. Each page holds 100 rows. If the database cannot be opened or queried, `open` raises
`sqlite3.Error`. If a query method is called while no database is open, it raises `RuntimeError`.
`close()` closes the connection. Leaving the `with` block also closes it.

The current state of the manager is kept in these properties:

- `current_table`: set it to `"Alerts"` to switch tables. Switching resets the columns, the
  filters and the page.
- `selected_roles`: the columns that are shown. They always keep the table's own column order.
- `filters`: a mapping of column name to value. Setting it goes back to the first page.
- `sort_column` and `sort_order`: the column to sort by and the direction, `"ASC"` or `"DESC"`.
- `rows_per_page`: must be positive.
- `current_page`: counted from zero.
- `total_pages`: read only.

You can also call these methods:

- `role_names()` lists every column of the current table.
- `toggle_role(role, selected)` shows or hides one column. Hiding a column also drops its filter.
- `set_filter(key, value)` sets one filter. It does not re-run the query. `remove_filter(key)` and
  `clear_filters()` re-run the query from the first page.
- `apply_filters_with_sort(filters, sort_column, sort_order)` builds the page query, runs it and
  returns the SQL text. It raises `ValueError` if no columns are selected.
- `refresh_query()` re-runs the query with the current filters and sort. It then calls
  `update_total_pages()`. That call counts the matching rows and keeps `current_page` in range.
- `unique_values(column)` returns the distinct values of a column as strings, sorted without regard
  to case.

When its state changes, the manager emits a `Signal`. The signals are `current_table_changed`,
`selected_roles_changed`, `filters_changed`, `sort_column_changed`, `sort_order_changed`,
`rows_per_page_changed`, `total_pages_changed`, `current_page_changed` and `query_has_refreshed`.
To register a callback that takes no arguments, use `signal.connect(callback)`.

## Query models

`minilogview.querymodel.QueryModel` holds the result of a single query on a `sqlite3` connection.
Call `refresh_query(sql)` to load a result. The model provides these methods:

- `row_count()` and `column_count()`.
- `header(column)`. It raises `IndexError` if the column is out of range.
- `data(row, column)`. It returns `None` if the cell is outside the table.
- `get(row)`. It returns the row as a dict, or an empty dict if the row is out of range.
- `role_names()`. It maps role numbers, starting at `USER_ROLE`, to column names.

## How filter values are read

`minilogview.filters` turns each column and value into an SQL condition:

- A value that contains `%` or `_` is matched with `LIKE`. Any value in the `OpFileName` or
  `ProcessFilePath` column is also matched with `LIKE`.
- A value in the `PreOpTime` or `PostOpTime` column is read as a date and time. It gives a lower
  bound (`>=`) for `PreOpTime` and an upper bound (`<=`) for `PostOpTime`.
- A value in an integer column is compared as a number. The integer columns are `LogID`, `SeqNum`,
  `ProcessId`, `ThreadId`, `RuleID`, `MajorOp`, `MinorOp` and `OpStatus`. If the value is not a
  32-bit integer, it is logged and skipped.
- Any other value is compared as text, with single quotes doubled.

Empty values are ignored. Conditions are joined with `AND` in order of column name.

```python
from minilogview.filters import filter_condition, where_clause

filter_condition("ProcessId", "12")            # 'ProcessId = 12'
where_clause({"ProcessId": "12", "OpFileName": "%.log"})
# "WHERE OpFileName LIKE '%.log' AND ProcessId = 12"
```

## Timestamps

The log stores times as Windows FILETIME ticks. Each tick is 100 nanoseconds, counted from 1601.

```python
from minilogview.timestamps import filetime_to_string, flexible_datetime_to_ticks

filetime_to_string(116444736000000000)   # '1970-01-01 00:00:00.0000000'
flexible_datetime_to_ticks("2025")        # ticks at 2025-01-01 00:00:00 UTC
```

`filetime_to_string` raises `ValueError` if the tick count is before 1970 or unreasonably large.

`flexible_datetime_to_ticks` accepts a partial date such as `2025` or `2025-03` and fills in the
missing parts. A time, when given, must be in full `hh:mm:ss` form. A fraction after `.` is read as
up to seven digits of ticks, so `2025-03-01 12:00:00.5` is valid. If the input is not a valid
date-time, the function raises `ValueError`.

## Summary views

`minilogview.registry.DataModelRegistry(connection)` keeps one `QueryModel` for each summary view.
Examples are `total_ops`, `recent_activity`, `duration_summary`, `file_counts` and
`process_counts`. The `models` property lists all of them. `refresh_all_models()` re-runs every
view. If a database error occurs, it is raised to the caller.

```python
from minilogview.registry import DataModelRegistry

registry = DataModelRegistry(manager.connection)
registry.refresh_all_models()
print(registry.total_ops.get(0))
```

## What it does not do

The package has no graphical interface and no command-line tool. It is a library to build one on.
It does not create the database, its tables or the `View_*` summary views. The database must
already contain them.