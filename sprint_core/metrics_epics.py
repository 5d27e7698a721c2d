from __future__ import annotations

from typing import Optional

import altair as alt
import pandas as pd

from sprint_core.data import story_points_numeric
from sprint_core.metrics_overview import completed_mask
from sprint_core.settings import DashboardSettings

SERIES_COLORS = {"Completed": "rgba(34, 197, 94, 0.8)", "Remaining": "rgba(251, 191, 36, 0.8)"}


def truncate_label(label: str, max_len: int = 15) -> str:
    return label[:max_len] + "..." if len(label) > max_len else label


def epic_progress(df: pd.DataFrame, settings: Optional[DashboardSettings] = None) -> pd.DataFrame:
    """Total, completed and remaining story points per epic, in first-seen order.

    The ``label`` column is for display only; ``epic`` is the untruncated key.
    """
    settings = settings or DashboardSettings()
    cols = ["epic", "label", "total", "completed", "remaining"]
    if df.empty:
        return pd.DataFrame({c: pd.Series(dtype=str if c in ("epic", "label") else "int64") for c in cols})
    points = story_points_numeric(df)
    base = pd.DataFrame(
        {
            "epic": df["epic"].astype(str),
            "total": points,
            "completed": points.where(completed_mask(df, settings), 0),
        }
    )
    out = base.groupby("epic", sort=False)[["total", "completed"]].sum().reset_index()
    out["remaining"] = out["total"] - out["completed"]
    out["label"] = out["epic"].apply(lambda e: truncate_label(e, settings.epic_label_max))
    for c in ("total", "completed", "remaining"):
        out[c] = out[c].astype("int64")
    return out[cols]


def build_epic_chart(series: pd.DataFrame, settings: Optional[DashboardSettings] = None) -> alt.Chart:
    settings = settings or DashboardSettings()
    long_df = series.melt(
        id_vars=["epic", "label"],
        value_vars=["completed", "remaining"],
        var_name="series",
        value_name="points",
    )
    long_df["series"] = long_df["series"].str.capitalize()
    long_df["series_order"] = (long_df["series"] == "Remaining").astype(int)
    max_len = settings.epic_label_max
    return (
        alt.Chart(long_df)
        .mark_bar(strokeWidth=1)
        .encode(
            x=alt.X(
                "epic:N",
                title="Epic",
                sort=series["epic"].tolist(),
                axis=alt.Axis(
                    labelAngle=0,
                    grid=False,
                    labelExpr=f"length(datum.label) > {max_len} ? substring(datum.label, 0, {max_len}) + '...' : datum.label",
                ),
            ),
            y=alt.Y(
                "points:Q",
                title="Story Points",
                stack="zero",
                axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False),
            ),
            color=alt.Color(
                "series:N",
                title=None,
                scale=alt.Scale(domain=list(SERIES_COLORS), range=list(SERIES_COLORS.values())),
                legend=alt.Legend(orient="top"),
            ),
            order=alt.Order("series_order:Q"),
            tooltip=[
                alt.Tooltip("label:N", title="Epic"),
                alt.Tooltip("series:N", title="Series"),
                alt.Tooltip("points:Q", title="Story Points"),
            ],
        )
        .properties(height=settings.chart_height, title="Epic Progress")
    )
