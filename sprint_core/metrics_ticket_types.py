from __future__ import annotations

from typing import Optional

import altair as alt
import pandas as pd

from sprint_core.settings import DashboardSettings

TYPE_COLORS = [
    "rgba(34, 197, 94, 0.8)",
    "rgba(239, 68, 68, 0.8)",
    "rgba(168, 85, 247, 0.8)",
    "rgba(251, 191, 36, 0.8)",
    "rgba(59, 130, 246, 0.8)",
]


def count_by_ticket_type(df: pd.DataFrame, settings: Optional[DashboardSettings] = None) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame({"ticket_type": pd.Series(dtype=str), "count": pd.Series(dtype="int64")})
    out = df.groupby(df["ticket_type"].astype(str), sort=False).size().reset_index(name="count")
    out["count"] = out["count"].astype("int64")
    return out


def build_ticket_type_chart(series: pd.DataFrame, settings: Optional[DashboardSettings] = None) -> alt.Chart:
    settings = settings or DashboardSettings()
    domain = series["ticket_type"].tolist()
    return (
        alt.Chart(series)
        .mark_bar(strokeWidth=1)
        .encode(
            x=alt.X("ticket_type:N", title="Ticket Type", sort=None, axis=alt.Axis(labelAngle=0, grid=False)),
            y=alt.Y(
                "count:Q",
                title="Number of Tickets",
                scale=alt.Scale(zero=True),
                axis=alt.Axis(tickMinStep=1, format="d", gridDash=[4, 4], domain=False, ticks=False),
            ),
            color=alt.Color(
                "ticket_type:N",
                scale=alt.Scale(domain=domain, range=TYPE_COLORS),
                legend=None,
            ),
            tooltip=[alt.Tooltip("ticket_type:N", title="Type"), alt.Tooltip("count:Q", title="Tickets")],
        )
        .properties(height=settings.chart_height, title="Ticket Types")
    )
