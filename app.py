import pandas as pd
import streamlit as st
import streamlit.components.v1 as components
from contextlib import contextmanager
from typing import Dict, Optional

from sprint_core.filters import FILTER_LABELS, SprintFilters
from sprint_core.settings import normalize_settings
from sprint_core.state import STATUS_ERROR, STATUS_LOADING, DashboardState

FILTER_TITLES = {
    "week": "Week",
    "ticket_type": "Ticket Type",
    "assignee": "Assignee",
    "task_force": "Task Force",
    "epic": "Epic",
}

SHORTCUT_SCRIPT = """
<script>
const doc = window.parent.document;
if (!doc.__sprintShortcuts) {
  doc.__sprintShortcuts = true;
  doc.addEventListener('keydown', (e) => {
    if (!(e.ctrlKey || e.metaKey)) return;
    const label = {e: 'Export CSV', r: 'Clear Filters'}[e.key];
    if (!label) return;
    e.preventDefault();
    const btn = Array.from(doc.querySelectorAll('button')).find(b => b.innerText.trim() === label);
    if (btn) btn.click();
  });
}
</script>
"""


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: SprintFilters) -> str:
    active = filters.active()
    chips = [
        f"{FILTER_TITLES[name]}: {active[name]}" if name in active else FILTER_LABELS[name]
        for name in FILTER_TITLES
    ]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def get_dashboard() -> DashboardState:
    if "dashboard" not in st.session_state:
        st.session_state["dashboard"] = DashboardState()
    return st.session_state["dashboard"]


def filter_key(name: str) -> str:
    return f"filter_{name}"


def on_filter_change(name: str):
    get_dashboard().dispatch("set_filter", name, st.session_state[filter_key(name)])


def on_clear_filters():
    get_dashboard().dispatch("clear_filters")


def on_blocked_export():
    get_dashboard().dispatch("export")


def handle_uploaded_file(dash: DashboardState, uploaded) -> None:
    if uploaded is None:
        return
    signature = (uploaded.name, uploaded.size, getattr(uploaded, "file_id", None))
    if st.session_state.get("_last_upload") == signature:
        return
    st.session_state["_last_upload"] = signature
    dash.dispatch("upload", uploaded.getvalue(), name=uploaded.name)


def render_status(dash: DashboardState):
    message = dash.visible_status()
    if not message:
        return
    if dash.status.kind == STATUS_ERROR:
        st.error(message)
    elif dash.status.kind == STATUS_LOADING:
        st.info(message)
    else:
        st.success(message)


def render_export(dash: DashboardState):
    if dash.filtered_records.empty:
        st.button("Export CSV", on_click=on_blocked_export, use_container_width=True)
    else:
        st.download_button(
            "Export CSV",
            data=dash.export().encode("utf-8"),
            file_name=dash.settings.export_filename,
            mime="text/csv",
            use_container_width=True,
        )
    if dash.notice:
        st.warning(dash.notice)
        dash.notice = ""


def render_kpi_tiles(kpis: Dict[str, int]):
    cols = st.columns(4)
    cols[0].metric("Completed Tickets", f"{kpis.get('completed_count', 0):,}", help="Records with status Completed.")
    cols[1].metric("Story Points Delivered", f"{kpis.get('completed_points', 0):,}", help="Story points of Completed records.")
    cols[2].metric("Active Developers", f"{kpis.get('active_contributors', 0):,}", help="Distinct assignees in the filtered records.")
    cols[3].metric("Sprints", f"{kpis.get('sprint_count', 0):,}", help="Distinct sprints in the filtered records.")


def render_chart(dash: DashboardState, slot: str, title: str, empty_text: Optional[str] = None):
    with card(title):
        handle = dash.charts.get(slot)
        series: pd.DataFrame = dash.series.get(slot, pd.DataFrame())
        if handle is None or handle.chart is None or series.empty:
            st.info(empty_text or "No data for the current filters.")
            return
        st.altair_chart(handle.chart, use_container_width=True)


# ---------- UI setup ----------
st.set_page_config(page_title="Sprint Analytics Dashboard", layout="wide")
inject_base_styles()
st.title("Sprint Analytics Dashboard")
st.caption("Velocity, workload and epic progress for the loaded sprint tickets.")
components.html(SHORTCUT_SCRIPT, height=0)

dashboard = get_dashboard()

# ----- Sidebar: data + filters -----
with st.sidebar:
    st.markdown("### Data")
    uploaded_file = st.file_uploader("Upload sprint CSV", type=["csv"], key="csv_upload")
    handle_uploaded_file(dashboard, uploaded_file)
    render_status(dashboard)

    st.markdown("---")
    st.markdown("### Filters")
    for filter_name, title in FILTER_TITLES.items():
        key = filter_key(filter_name)
        st.session_state[key] = getattr(dashboard.filters, filter_name)
        st.selectbox(
            title,
            options=dashboard.options[filter_name],
            format_func=lambda v, n=filter_name: v or FILTER_LABELS[n],
            key=key,
            on_change=on_filter_change,
            args=(filter_name,),
        )
    st.button("Clear Filters", on_click=on_clear_filters, use_container_width=True)
    render_export(dashboard)
    st.caption("Shortcuts: Ctrl/Cmd+E export, Ctrl/Cmd+R clear filters.")

    st.markdown("---")
    with st.expander("Advanced settings", expanded=False):
        chart_height = st.slider("Chart height", min_value=200, max_value=600, value=dashboard.settings.chart_height, step=20)
        epic_label_max = st.slider("Epic label length", min_value=5, max_value=40, value=dashboard.settings.epic_label_max)
        status_clear_seconds = st.slider("Status message seconds", 1.0, 10.0, dashboard.settings.status_clear_seconds, 0.5)
    dashboard.dispatch(
        "settings",
        normalize_settings(
            {
                "chart_height": chart_height,
                "epic_label_max": epic_label_max,
                "status_clear_seconds": status_clear_seconds,
            }
        ),
    )

# ----- Main page -----
st.markdown(f"<div class='chip-row'>{format_filter_summary(dashboard.filters)}</div>", unsafe_allow_html=True)
with card("Summary"):
    render_kpi_tiles(dashboard.summary.get("kpis", {}))

top = st.columns(2)
with top[0]:
    render_chart(dashboard, "velocity", "Sprint Velocity", "No completed work for the current filters.")
with top[1]:
    render_chart(dashboard, "team", "Team Workload")
bottom = st.columns(2)
with bottom[0]:
    render_chart(dashboard, "ticket_type", "Ticket Types")
with bottom[1]:
    render_chart(dashboard, "epic", "Epic Progress")

with st.expander("Data Quality / Debug", expanded=False):
    report = dashboard.debug_report()
    st.markdown("**Row counts**")
    st.write(report["row_counts"])
    st.markdown("**Cleaning checks**")
    st.write(report["cleaning_checks"])
    st.markdown("**Empty grouping keys**")
    st.write(report["empty_keys"])
    if report["extra_columns"]:
        st.markdown("**Extra columns**")
        st.write(report["extra_columns"])
    st.dataframe(dashboard.filtered_records, hide_index=True, use_container_width=True)
