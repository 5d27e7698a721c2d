from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from sprint_core.data import RECORD_COLUMNS, IngestReport, story_points_numeric
from sprint_core.filters import SprintFilters

KEY_COLUMNS = ["sprint", "ticket_type", "assignee", "epic"]


def compute_debug(filters: SprintFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    records: pd.DataFrame = ctx.get("records", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered_records", pd.DataFrame())
    ingest: IngestReport = ctx.get("ingest") or IngestReport(rows_parsed=len(records))

    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "row_counts": {
            "records": int(len(records)),
            "filtered_records": int(len(filtered)),
        },
        "cleaning_checks": {
            "source": ingest.source,
            "rows_parsed": int(ingest.rows_parsed),
            "blank_rows_dropped": int(ingest.blank_rows_dropped),
            "story_points_coerced_to_zero": 0,
            "negative_story_points": 0,
        },
        "empty_keys": {col: 0 for col in KEY_COLUMNS},
        "extra_columns": [],
    }
    if records.empty:
        return payload

    if "story_points" in records.columns:
        lead = records["story_points"].astype(str).str.match(r"^\s*[+-]?\d+")
        payload["cleaning_checks"]["story_points_coerced_to_zero"] = int((~lead).sum())
        payload["cleaning_checks"]["negative_story_points"] = int((story_points_numeric(records) < 0).sum())

    for col in KEY_COLUMNS:
        if col in records.columns:
            payload["empty_keys"][col] = int((records[col].astype(str).str.strip() == "").sum())

    payload["extra_columns"] = [str(c) for c in records.columns if c not in RECORD_COLUMNS]
    return payload
