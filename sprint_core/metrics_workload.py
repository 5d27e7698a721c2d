from __future__ import annotations

from typing import Optional

import altair as alt
import pandas as pd

from sprint_core.data import story_points_numeric
from sprint_core.settings import DashboardSettings

TEAM_COLORS = [
    "#FF6384", "#36A2EB", "#FFCE56", "#4BC0C0", "#9966FF", "#FF9F40",
    "#FF6384", "#C9CBCF", "#4BC0C0", "#FF6384", "#36A2EB",
]


def load_by_assignee(df: pd.DataFrame, settings: Optional[DashboardSettings] = None) -> pd.DataFrame:
    """Story points of every status per assignee, in first-seen order."""
    if df.empty:
        return pd.DataFrame({"assignee": pd.Series(dtype=str), "points": pd.Series(dtype="int64")})
    base = pd.DataFrame({"assignee": df["assignee"].astype(str), "points": story_points_numeric(df)})
    out = base.groupby("assignee", sort=False)["points"].sum().reset_index()
    out["points"] = out["points"].astype("int64")
    return out


def build_workload_chart(series: pd.DataFrame, settings: Optional[DashboardSettings] = None) -> alt.Chart:
    settings = settings or DashboardSettings()
    domain = series["assignee"].tolist()
    return (
        alt.Chart(series)
        .mark_arc(innerRadius=60, stroke="#ffffff", strokeWidth=2)
        .encode(
            theta=alt.Theta("points:Q", stack=True),
            color=alt.Color(
                "assignee:N",
                title="Assignee",
                scale=alt.Scale(domain=domain, range=TEAM_COLORS[: max(1, len(domain))]),
                legend=alt.Legend(orient="right"),
            ),
            order=alt.Order("order:Q"),
            tooltip=[alt.Tooltip("assignee:N", title="Assignee"), alt.Tooltip("points:Q", title="Story Points")],
        )
        .transform_window(order="row_number()")
        .properties(height=settings.chart_height, title="Team Workload")
    )
