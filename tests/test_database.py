import sqlite3

import pytest

from minilogview.database import ROLE_DEFINITIONS, DatabaseManager, Signal
from minilogview.timestamps import FILETIME_EPOCH, TICKS_PER_SECOND

COLUMNS = ROLE_DEFINITIONS["MinifilterLog"]
ALERT_COLUMNS = ROLE_DEFINITIONS["Alerts"]


def _ticks(seconds):
    return FILETIME_EPOCH + seconds * TICKS_PER_SECOND


ROWS = [
    (1, 100, r"C:\logs\a.txt", "UserMode", _ticks(1)),
    (2, 200, r"C:\logs\b.txt", "KernelMode", _ticks(2)),
    (3, 100, r"D:\data\c.bin", "UserMode", _ticks(3)),
    (4, 300, r"C:\logs\d.txt", "kernel", _ticks(4)),
    (5, 100, r"D:\data\e.bin", "Idle", _ticks(5)),
]


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "log.db"
    connection = sqlite3.connect(path)
    connection.execute(f"CREATE TABLE MinifilterLog ({', '.join(COLUMNS)})")
    connection.execute(f"CREATE TABLE Alerts ({', '.join(ALERT_COLUMNS)})")
    connection.executemany(
        "INSERT INTO MinifilterLog (LogID, ProcessId, OpFileName, RequestorMode, PreOpTime)"
        " VALUES (?, ?, ?, ?, ?)",
        ROWS,
    )
    connection.execute("INSERT INTO Alerts VALUES (1, 'now', 'alert one')")
    connection.commit()
    connection.close()
    return str(path)


@pytest.fixture
def manager(db_path):
    with DatabaseManager() as opened:
        opened.open(db_path)
        yield opened


def _ids(manager):
    return [row["LogID"] for row in manager.model]


def _record(signal, events, name):
    signal.connect(lambda: events.append(name))


def test_signal_runs_callbacks_in_order():
    signal = Signal()
    calls = []
    signal.connect(lambda: calls.append("a"))
    signal.connect(lambda: calls.append("b"))
    signal.emit()
    signal.emit()
    assert calls == ["a", "b", "a", "b"]


def test_open_sets_defaults(manager):
    assert manager.current_table == "MinifilterLog"
    assert manager.selected_roles == list(COLUMNS)
    assert manager.role_names() == list(COLUMNS)
    assert manager.sort_order == "ASC"
    assert manager.total_pages == 1
    assert manager.model.row_count() == len(ROWS)
    assert manager.model.column_count() == len(COLUMNS)


def test_open_missing_directory_raises(tmp_path):
    with pytest.raises(sqlite3.OperationalError):
        DatabaseManager().open(str(tmp_path / "missing" / "log.db"))


def test_operations_without_database_raise():
    manager = DatabaseManager()
    with pytest.raises(RuntimeError):
        manager.refresh_query()
    with pytest.raises(RuntimeError):
        manager.unique_values("LogID")


def test_close_drops_model(manager):
    manager.close()
    assert manager.model is None
    with pytest.raises(RuntimeError):
        manager.run_query("SELECT 1")


def test_paging(manager):
    manager.rows_per_page = 2
    assert manager.total_pages == 3
    manager.current_page = 2
    assert _ids(manager) == [5]
    manager.current_page = -1
    assert manager.current_page == 2


def test_current_page_is_clamped(manager):
    manager.rows_per_page = 2
    manager.current_page = 10
    assert manager.current_page == manager.total_pages - 1


def test_rows_per_page_must_be_positive(manager):
    with pytest.raises(ValueError):
        manager.rows_per_page = 0
    assert manager.rows_per_page == 100
    assert manager.total_pages == 1
    assert manager.model.row_count() == len(ROWS)


def test_integer_filter(manager):
    manager.set_filter("ProcessId", "100")
    manager.refresh_query()
    assert _ids(manager) == [1, 3, 5]


def test_path_filter_uses_like(manager):
    manager.set_filter("OpFileName", "C:%")
    manager.refresh_query()
    assert _ids(manager) == [1, 2, 4]


def test_time_filter_is_lower_bound(manager):
    manager.set_filter("PreOpTime", "1970-01-01 00:00:03")
    manager.refresh_query()
    assert _ids(manager) == [3, 4, 5]


def test_invalid_integer_filter_is_ignored(manager):
    manager.set_filter("LogID", "abc")
    manager.refresh_query()
    assert _ids(manager) == [row[0] for row in ROWS]


def test_apply_filters_with_sort_returns_query(manager):
    query = manager.apply_filters_with_sort({}, "LogID", "desc")
    expected = (
        "SELECT " + ", ".join(COLUMNS) + " FROM MinifilterLog ORDER BY LogID DESC LIMIT 100 OFFSET 0"
    )
    assert query == expected
    assert _ids(manager) == sorted((row[0] for row in ROWS), reverse=True)


def test_refresh_uses_sort_settings(manager):
    manager.sort_column = "ProcessId"
    manager.sort_order = "DESC"
    manager.refresh_query()
    assert manager.model.get(0)["ProcessId"] == max(row[1] for row in ROWS)


def test_toggle_role_drops_column_and_filter(manager):
    manager.set_filter("ProcessId", "100")
    manager.toggle_role("ProcessId", False)
    assert "ProcessId" not in manager.selected_roles
    assert "ProcessId" not in manager.filters
    assert "ProcessId" not in manager.model.role_names().values()
    assert manager.model.row_count() == len(ROWS)
    manager.toggle_role("ProcessId", True)
    assert manager.selected_roles == list(COLUMNS)


def test_selected_roles_follow_model_order(manager):
    events = []
    _record(manager.selected_roles_changed, events, "roles")
    manager.selected_roles = ["OpFileName", "LogID", "Bogus"]
    assert manager.selected_roles == ["LogID", "OpFileName"]
    manager.selected_roles = ["LogID", "OpFileName"]
    assert events == ["roles"]


def test_sorted_by_model_order(manager):
    assert manager.sorted_by_model_order(["RuleAction", "SeqNum", "LogID"]) == [
        "LogID",
        "SeqNum",
        "RuleAction",
    ]


def test_switch_table_resets_state(manager):
    manager.set_filter("ProcessId", "100")
    events = []
    _record(manager.current_table_changed, events, "table")
    _record(manager.filters_changed, events, "filters")
    manager.current_table = "Alerts"
    assert manager.selected_roles == list(ALERT_COLUMNS)
    assert manager.filters == {}
    assert manager.current_page == 0
    assert list(manager.model.role_names().values()) == list(ALERT_COLUMNS)
    assert events == ["table", "filters"]


def test_unknown_table_has_no_columns(manager):
    with pytest.raises(ValueError):
        manager.current_table = "Nope"
    assert manager.role_names() == []


def test_unique_values_sorted_case_insensitively(manager):
    assert manager.unique_values("RequestorMode") == ["Idle", "kernel", "KernelMode", "UserMode"]
    with pytest.raises(ValueError):
        manager.unique_values("")


def test_filters_setter_resets_page(manager):
    manager.rows_per_page = 2
    manager.current_page = 1
    events = []
    _record(manager.filters_changed, events, "filters")
    manager.filters = {"ProcessId": "100"}
    assert manager.current_page == 0
    manager.filters = {"ProcessId": "100"}
    assert events == ["filters"]


def test_clear_filters(manager):
    manager.set_filter("ProcessId", "200")
    manager.refresh_query()
    events = []
    _record(manager.filters_changed, events, "filters")
    manager.clear_filters()
    manager.clear_filters()
    assert events == ["filters"]
    assert manager.model.row_count() == len(ROWS)


def test_remove_filter(manager):
    manager.set_filter("ProcessId", "200")
    manager.set_filter("OpFileName", "C:%")
    manager.remove_filter("ProcessId")
    assert manager.filters == {"OpFileName": "C:%"}
    assert _ids(manager) == [1, 2, 4]
    events = []
    _record(manager.filters_changed, events, "filters")
    manager.remove_filter("Missing")
    assert events == []


def test_run_query_emits_refresh(manager):
    events = []
    _record(manager.query_has_refreshed, events, "refreshed")
    manager.run_query("SELECT LogID FROM MinifilterLog WHERE LogID = 2")
    assert events == ["refreshed"]
    assert manager.model.get(0) == {"LogID": 2}