from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from sprint_core.data import story_points_numeric
from sprint_core.filters import SprintFilters, unique_values
from sprint_core.settings import DashboardSettings


def completed_mask(df: pd.DataFrame, settings: Optional[DashboardSettings] = None) -> pd.Series:
    settings = settings or DashboardSettings()
    if df.empty or "status" not in df.columns:
        return pd.Series(False, index=df.index)
    return df["status"].astype(str) == settings.completed_status


def summary_stats(df: pd.DataFrame, settings: Optional[DashboardSettings] = None) -> Dict[str, int]:
    done = completed_mask(df, settings)
    points = story_points_numeric(df)
    return {
        "completed_count": int(done.sum()),
        "completed_points": int(points[done].sum()),
        "active_contributors": len(unique_values(df, "assignee")),
        "sprint_count": len(unique_values(df, "sprint")),
        "total_records": int(len(df)),
    }


def compute_summary(
    filters: SprintFilters,
    ctx: Dict[str, Any],
    *,
    settings: Optional[DashboardSettings] = None,
) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered_records", pd.DataFrame())
    return {"filters": asdict(filters), "kpis": summary_stats(df, settings)}
