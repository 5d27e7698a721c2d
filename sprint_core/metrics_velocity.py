from __future__ import annotations

from typing import Optional

import altair as alt
import pandas as pd

from sprint_core.data import story_points_numeric
from sprint_core.metrics_overview import completed_mask
from sprint_core.settings import DashboardSettings

VELOCITY_COLOR = "#3b82f6"


def velocity_by_sprint(df: pd.DataFrame, settings: Optional[DashboardSettings] = None) -> pd.DataFrame:
    """Completed story points per sprint, sprints in ascending string order."""
    if df.empty:
        return pd.DataFrame({"sprint": pd.Series(dtype=str), "points": pd.Series(dtype="int64")})
    done = completed_mask(df, settings)
    base = pd.DataFrame({"sprint": df["sprint"].astype(str), "points": story_points_numeric(df)})[done]
    out = base.groupby("sprint", sort=True)["points"].sum().reset_index()
    out["points"] = out["points"].astype("int64")
    return out


def build_velocity_chart(series: pd.DataFrame, settings: Optional[DashboardSettings] = None) -> alt.LayerChart:
    settings = settings or DashboardSettings()
    base = alt.Chart(series).encode(
        x=alt.X("sprint:N", title="Sprint", sort=None, axis=alt.Axis(labelAngle=0, grid=False)),
        y=alt.Y(
            "points:Q",
            title="Velocity (Story Points)",
            scale=alt.Scale(zero=True),
            axis=alt.Axis(gridDash=[4, 4], domain=False, ticks=False),
        ),
        tooltip=[alt.Tooltip("sprint:N", title="Sprint"), alt.Tooltip("points:Q", title="Story Points")],
    )
    area = base.mark_area(color=VELOCITY_COLOR, opacity=0.1, interpolate="monotone")
    line = base.mark_line(
        color=VELOCITY_COLOR,
        interpolate="monotone",
        point=alt.OverlayMarkDef(filled=True, size=80, color=VELOCITY_COLOR, stroke="#ffffff", strokeWidth=2),
    )
    return (area + line).properties(height=settings.chart_height, title="Sprint Velocity")
