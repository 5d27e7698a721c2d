from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DashboardSettings:
    status_clear_seconds: float = 3.0
    epic_label_max: int = 15
    export_filename: str = "sprint_data_filtered.csv"
    completed_status: str = "Completed"
    chart_height: int = 300


def normalize_settings(raw: dict | None = None) -> DashboardSettings:
    raw = raw or {}

    status_clear_seconds = raw.get("status_clear_seconds", 3.0)
    try:
        status_clear_seconds = float(status_clear_seconds)
    except Exception:
        status_clear_seconds = 3.0
    status_clear_seconds = max(0.0, status_clear_seconds)

    epic_label_max = raw.get("epic_label_max", 15)
    try:
        epic_label_max = int(epic_label_max)
    except Exception:
        epic_label_max = 15
    epic_label_max = max(1, epic_label_max)

    chart_height = raw.get("chart_height", 300)
    try:
        chart_height = int(chart_height)
    except Exception:
        chart_height = 300
    chart_height = max(100, min(1200, chart_height))

    export_filename = (raw.get("export_filename") or "sprint_data_filtered.csv").strip()
    completed_status = raw.get("completed_status") or "Completed"

    return DashboardSettings(
        status_clear_seconds=status_clear_seconds,
        epic_label_max=epic_label_max,
        export_filename=export_filename,
        completed_status=str(completed_status),
        chart_height=chart_height,
    )
