"""Translation of column filters into SQL WHERE conditions."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from minilogview.timestamps import flexible_datetime_to_ticks

log = logging.getLogger(__name__)

INT_COLUMNS = frozenset(
    {"LogID", "SeqNum", "ProcessId", "ThreadId", "RuleID", "MajorOp", "MinorOp", "OpStatus"}
)
PATH_COLUMNS = frozenset({"OpFileName", "ProcessFilePath"})
TIME_COLUMNS = {"PreOpTime": ">=", "PostOpTime": "<="}

_INT_RE = re.compile(r"[+-]?\d+")
_INT_MIN, _INT_MAX = -(2**31), 2**31 - 1


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def filter_condition(column: str, value: Any) -> str | None:
    """SQL condition for one filter, or None when the filter contributes none.

    Values with ``%`` or ``_`` and path columns match with LIKE; time columns
    are lower (PreOpTime) or upper (PostOpTime) bounds; integer columns match
    numerically; everything else matches as text.
    """
    text = _as_text(value).strip()
    if not text:
        return None

    if "%" in text or "_" in text or column in PATH_COLUMNS:
        return f"{column} LIKE {_quote(text)}"

    if column in TIME_COLUMNS:
        try:
            ticks = flexible_datetime_to_ticks(text)
        except ValueError:
            log.warning("Invalid date-time for column %s: %s", column, text)
            return None
        return f"{column} {TIME_COLUMNS[column]} {ticks}"

    if column in INT_COLUMNS:
        number = int(text) if _INT_RE.fullmatch(text) else None
        if number is None or not _INT_MIN <= number <= _INT_MAX:
            log.warning("Invalid integer for column %s: %s", column, text)
            return None
        return f"{column} = {number}"

    return f"{column} = {_quote(text)}"


def build_conditions(filters: Mapping[str, Any]) -> list[str]:
    """Conditions for all filters, in column-name order, skipping empty ones."""
    conditions = (filter_condition(column, value) for column, value in sorted(filters.items()))
    return [condition for condition in conditions if condition is not None]


def where_clause(filters: Mapping[str, Any]) -> str:
    """``WHERE a AND b ...`` for the filters, or an empty string if there are none."""
    conditions = build_conditions(filters)
    if not conditions:
        return ""
    return "WHERE " + " AND ".join(conditions)