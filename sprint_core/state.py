from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd

from sprint_core.charts import CHART_SLOTS, ChartHandle, ChartRegistry
from sprint_core.data import (
    IngestReport,
    RecordSource,
    load_dashboard_data,
    parse_records,
    prepare_context,
)
from sprint_core.exceptions import (
    InvalidFilterValueError,
    NothingToExportError,
    RecordParseError,
    RecordReadError,
    UnknownEventError,
)
from sprint_core.export import NO_DATA_NOTICE, export_csv
from sprint_core.filters import SprintFilters, reconcile_filters, resolve_filter_name, with_filter
from sprint_core.metrics_debug import compute_debug
from sprint_core.metrics_epics import build_epic_chart, epic_progress
from sprint_core.metrics_overview import compute_summary
from sprint_core.metrics_ticket_types import build_ticket_type_chart, count_by_ticket_type
from sprint_core.metrics_velocity import build_velocity_chart, velocity_by_sprint
from sprint_core.metrics_workload import build_workload_chart, load_by_assignee
from sprint_core.settings import DashboardSettings

logger = logging.getLogger(__name__)

STATUS_LOADING = "loading"
STATUS_SUCCESS = "success"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class UploadStatus:
    message: str = ""
    kind: str = ""
    posted_at: float = 0.0

    def visible_message(self, now: float, clear_after: float) -> str:
        if self.kind in (STATUS_SUCCESS, STATUS_ERROR) and now - self.posted_at >= clear_after:
            return ""
        return self.message


CHART_BUILDERS: Dict[str, Tuple[Callable[..., pd.DataFrame], Callable[..., Any]]] = {
    "velocity": (velocity_by_sprint, build_velocity_chart),
    "team": (load_by_assignee, build_workload_chart),
    "ticket_type": (count_by_ticket_type, build_ticket_type_chart),
    "epic": (epic_progress, build_epic_chart),
}

SHORTCUTS: Dict[str, str] = {
    "e": "export",
    "r": "clear_filters",
}


class DashboardState:
    """Record store, filter state and chart bindings for one dashboard.

    Every input arrives through :meth:`dispatch`. A handler mutates state,
    then :meth:`refresh_views` recomputes filtered records, summary and
    charts in that order.
    """

    def __init__(
        self,
        records: Optional[pd.DataFrame] = None,
        *,
        settings: Optional[DashboardSettings] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or DashboardSettings()
        self.clock = clock
        self.filters = SprintFilters()
        self.charts = ChartRegistry()
        self.status = UploadStatus()
        self.notice = ""
        self.series: Dict[str, pd.DataFrame] = {}
        self.summary: Dict[str, Any] = {}
        self.data_ctx: Dict[str, Any] = load_dashboard_data(records)
        self.ctx: Dict[str, Any] = {}
        self.handlers: Dict[str, Callable[..., Any]] = {
            "upload": self.handle_upload,
            "set_filter": self.set_filter,
            "set_filters": self.set_filters,
            "clear_filters": self.clear_filters,
            "export": self.export,
            "resize": self.handle_resize,
            "settings": self.update_settings,
            "key": self.handle_key,
        }
        self.refresh_views()

    # ---------------- Views ----------------
    @property
    def records(self) -> pd.DataFrame:
        return self.data_ctx["records"]

    @property
    def filtered_records(self) -> pd.DataFrame:
        return self.ctx["filtered_records"]

    @property
    def options(self) -> Dict[str, List[str]]:
        return self.data_ctx["options"]

    @property
    def ingest(self) -> IngestReport:
        return self.data_ctx["ingest"]

    def refresh_views(self) -> None:
        self.ctx = prepare_context(self.filters, self.data_ctx)
        self.summary = compute_summary(self.filters, self.ctx, settings=self.settings)
        self.rebuild_charts()

    def rebuild_charts(self) -> None:
        filtered = self.filtered_records
        for slot in CHART_SLOTS:
            aggregate, build = CHART_BUILDERS[slot]
            series = aggregate(filtered, self.settings)
            self.series[slot] = series
            self.charts.replace(slot, build(series, self.settings))
        logger.debug("rebuilt %d charts for %d filtered records", len(CHART_SLOTS), len(filtered))

    def chart_payload(self, slot: str) -> Dict[str, Any]:
        handle: Optional[ChartHandle] = self.charts.get(slot)
        if handle is None:
            raise KeyError(slot)
        return {
            "filters": self.summary.get("filters", {}),
            "series": self.series[slot].to_dict(orient="records"),
            "revision": handle.revision,
            "charts": {slot: handle.spec},
        }

    def debug_report(self) -> Dict[str, Any]:
        return compute_debug(self.filters, self.ctx)

    def visible_status(self) -> str:
        return self.status.visible_message(self.clock(), self.settings.status_clear_seconds)

    def _post_status(self, message: str, kind: str) -> None:
        self.status = UploadStatus(message=message, kind=kind, posted_at=self.clock())

    # ---------------- Events ----------------
    def dispatch(self, event: str, *args: Any, **kwargs: Any) -> Any:
        handler = self.handlers.get(event)
        if handler is None:
            raise UnknownEventError(f"No handler for event {event!r}")
        return handler(*args, **kwargs)

    def replace_records(self, records: pd.DataFrame, report: Optional[IngestReport] = None) -> None:
        self.data_ctx = load_dashboard_data(records, report)
        self.filters = reconcile_filters(self.filters, self.options)
        self.refresh_views()
        logger.info("record store replaced with %d records", len(records))

    def handle_upload(self, source: Optional[RecordSource], name: str = "upload") -> bool:
        if source is None:
            return False
        self._post_status("Parsing CSV...", STATUS_LOADING)
        try:
            records, report = parse_records(source, name=name)
        except RecordParseError:
            self._post_status("Error parsing CSV file", STATUS_ERROR)
            return False
        except RecordReadError:
            self._post_status("Error reading file", STATUS_ERROR)
            return False
        self.replace_records(records, report)
        self._post_status(f"Successfully loaded {len(records)} records", STATUS_SUCCESS)
        return True

    def _with_checked_filter(self, filters: SprintFilters, name: str, value: object) -> SprintFilters:
        key = resolve_filter_name(name)
        new_filters = with_filter(filters, key, value)
        if getattr(new_filters, key) not in self.options[key]:
            raise InvalidFilterValueError(f"{value!r} is not a {key} in the loaded records")
        return new_filters

    def set_filter(self, name: str, value: object) -> SprintFilters:
        return self.set_filters({name: value})

    def set_filters(self, values: Dict[str, object]) -> SprintFilters:
        """Apply several filter changes at once; any invalid value leaves all filters untouched."""
        new_filters = self.filters
        for name, value in values.items():
            new_filters = self._with_checked_filter(new_filters, name, value)
        self.filters = new_filters
        self.refresh_views()
        return self.filters

    def clear_filters(self) -> SprintFilters:
        self.filters = SprintFilters()
        self.refresh_views()
        return self.filters

    def export(self) -> Optional[str]:
        try:
            content = export_csv(self.filtered_records)
        except NothingToExportError:
            self.notice = NO_DATA_NOTICE
            return None
        self.notice = ""
        return content

    def handle_resize(self) -> None:
        self.charts.refresh_all()

    def update_settings(self, settings: DashboardSettings) -> None:
        if settings == self.settings:
            return
        self.settings = settings
        self.refresh_views()

    def shortcut_for(self, key: str, *, ctrl: bool = False, meta: bool = False) -> Optional[str]:
        if not (ctrl or meta):
            return None
        return SHORTCUTS.get(key)

    def handle_key(self, key: str, *, ctrl: bool = False, meta: bool = False) -> Tuple[bool, Any]:
        """Run the shortcut bound to ``key``.

        Returns ``(handled, result)``: ``handled`` means the browser default is
        suppressed, ``result`` is whatever the bound event returned (the CSV
        text for export).
        """
        event = self.shortcut_for(key, ctrl=ctrl, meta=meta)
        if event is None:
            return False, None
        return True, self.dispatch(event)
