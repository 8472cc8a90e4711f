"""The set of summary models shown on the statistics pages."""

from __future__ import annotations

import sqlite3
from collections.abc import Mapping
from types import MappingProxyType

from minilogview.querymodel import QueryModel

QUERIES: Mapping[str, str] = MappingProxyType(
    {
        "recent_activity": (
            "SELECT TimeBucket * 5 AS TimeInSeconds, MajorOp, Count "
            "FROM View_RecentOpsGrouped ORDER BY TimeInSeconds ASC"
        ),
        "total_ops": "SELECT * FROM View_TotalOperations",
        "total_alerts": "SELECT * FROM View_TotalAlerts",
        "duration": "SELECT * FROM View_OperationDuration",
        "duration_summary": "SELECT * FROM View_OpDurationSummary",
        "breakdown": "SELECT * FROM View_OperationBreakdown",
        "requestor_mode": "SELECT * FROM View_RequestorModeCount",
        "op_status": "SELECT * FROM View_OpStatusCount",
        "opr_type_by_mode": "SELECT * FROM View_OpTypeByRequestor",
        "major_op_by_mode": "SELECT * FROM View_MajorOpByRequestor",
        "file_counts": "SELECT * FROM View_FileOpCounts",
        "process_counts": "SELECT * FROM View_ProcessOpCounts",
        "thread_breakdown": "SELECT * FROM View_ThreadBreakdown",
    }
)
"""Query behind each summary model, keyed by the model's attribute name."""


class DataModelRegistry:
    """Holds one query model per statistics view and refreshes them together."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self.recent_activity = QueryModel(connection)
        self.total_ops = QueryModel(connection)
        self.total_alerts = QueryModel(connection)
        self.duration = QueryModel(connection)
        self.duration_summary = QueryModel(connection)
        self.breakdown = QueryModel(connection)
        self.requestor_mode = QueryModel(connection)
        self.op_status = QueryModel(connection)
        self.opr_type_by_mode = QueryModel(connection)
        self.major_op_by_mode = QueryModel(connection)
        self.file_counts = QueryModel(connection)
        self.process_counts = QueryModel(connection)
        self.thread_breakdown = QueryModel(connection)

    @property
    def models(self) -> dict[str, QueryModel]:
        """All models, keyed by attribute name."""
        return {name: getattr(self, name) for name in QUERIES}

    def refresh_all_models(self) -> None:
        """Re-run every model's query; a database error propagates."""
        for name, model in self.models.items():
            model.refresh_query(QUERIES[name])