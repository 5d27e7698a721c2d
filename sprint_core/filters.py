from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Dict, List, Optional

import pandas as pd

from sprint_core.exceptions import UnknownFilterError

ALL_VALUES = ""

# filter field -> record column
FILTER_COLUMNS: Dict[str, str] = {
    "week": "week",
    "ticket_type": "ticket_type",
    "assignee": "assignee",
    "task_force": "task_force",
    "epic": "epic",
}

FILTER_LABELS: Dict[str, str] = {
    "week": "All Weeks",
    "ticket_type": "All Types",
    "assignee": "All Assignees",
    "task_force": "All Task Forces",
    "epic": "All Epics",
}

# UI control ids accepted as aliases for the filter fields
CONTROL_IDS: Dict[str, str] = {
    "weekFilter": "week",
    "typeFilter": "ticket_type",
    "assigneeFilter": "assignee",
    "taskForceFilter": "task_force",
    "epicFilter": "epic",
    "ticketType": "ticket_type",
    "taskForce": "task_force",
}


@dataclass(frozen=True)
class SprintFilters:
    week: str = ALL_VALUES
    ticket_type: str = ALL_VALUES
    assignee: str = ALL_VALUES
    task_force: str = ALL_VALUES
    epic: str = ALL_VALUES

    def active(self) -> Dict[str, str]:
        """Return only the filters that constrain the records."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name)}


def resolve_filter_name(name: str) -> str:
    key = CONTROL_IDS.get(name, name)
    if key not in FILTER_COLUMNS:
        raise UnknownFilterError(f"Unknown filter: {name!r}")
    return key


def _as_filter_value(value: object) -> str:
    if value is None:
        return ALL_VALUES
    try:
        if pd.isna(value):
            return ALL_VALUES
    except (TypeError, ValueError):
        pass
    return str(value)


def normalize_filters(raw: Optional[dict]) -> SprintFilters:
    raw = raw or {}
    values: Dict[str, str] = {}
    for name, value in raw.items():
        try:
            key = resolve_filter_name(name)
        except UnknownFilterError:
            continue
        values[key] = _as_filter_value(value)
    return SprintFilters(**values)


def with_filter(filters: SprintFilters, name: str, value: object) -> SprintFilters:
    return replace(filters, **{resolve_filter_name(name): _as_filter_value(value)})


def unique_values(df: pd.DataFrame, column: str) -> List[str]:
    """Distinct non-empty values of ``column`` in first-seen order."""
    if df.empty or column not in df.columns:
        return []
    series = df[column].astype(str)
    series = series[series != ""]
    return [str(v) for v in pd.unique(series)]


def filter_options(df: pd.DataFrame) -> Dict[str, List[str]]:
    """Selectable values per filter, each list led by the ``ALL_VALUES`` sentinel."""
    return {name: [ALL_VALUES] + unique_values(df, column) for name, column in FILTER_COLUMNS.items()}


def reconcile_filters(filters: SprintFilters, options: Dict[str, List[str]]) -> SprintFilters:
    """Unset any filter whose value is not offered by ``options``."""
    stale = {name: ALL_VALUES for name, value in filters.active().items() if value not in options.get(name, [])}
    if not stale:
        return filters
    return replace(filters, **stale)


def apply_filters(df: pd.DataFrame, filters: SprintFilters) -> pd.DataFrame:
    if df.empty:
        return df.copy()
    mask = pd.Series(True, index=df.index)
    for name, value in filters.active().items():
        column = FILTER_COLUMNS[name]
        if column not in df.columns:
            mask &= False
            continue
        mask &= df[column].astype(str) == value
    return df[mask].copy()
