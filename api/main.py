from __future__ import annotations

import logging
import math
from dataclasses import asdict

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import FiltersModel, KeyEventModel, MetaOptionsResponse, UploadStatusResponse
from sprint_core.charts import CHART_SLOTS
from sprint_core.exceptions import DashboardError
from sprint_core.filters import FILTER_LABELS
from sprint_core.state import DashboardState

app = FastAPI(title="Sprint Analytics Dashboard API", version="0.1.0")
app.state.dashboard = DashboardState()
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_dashboard(request: Request) -> DashboardState:
    return request.app.state.dashboard


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        ),
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _state_payload(dash: DashboardState) -> dict:
    return {
        "filters": asdict(dash.filters),
        "kpis": dash.summary.get("kpis", {}),
        "status": dash.visible_status(),
        "notice": dash.notice,
    }


@app.get("/meta/options")
def meta_options(dash: DashboardState = Depends(get_dashboard)):
    try:
        return _json(MetaOptionsResponse(options=dash.options, labels=FILTER_LABELS).model_dump())
    except Exception as exc:
        logger.exception("meta_options failed")
        return _error(exc)


@app.get("/filters")
def get_filters(dash: DashboardState = Depends(get_dashboard)):
    return _json({"filters": asdict(dash.filters)})


@app.post("/filters")
def set_filters(filters: FiltersModel, dash: DashboardState = Depends(get_dashboard)):
    try:
        dash.dispatch("set_filters", filters.model_dump(exclude_unset=True))
        return _json(_state_payload(dash))
    except DashboardError as exc:
        return _error(exc, status_code=400)
    except Exception as exc:
        logger.exception("set_filters failed")
        return _error(exc)


@app.post("/filters/clear")
def clear_filters(dash: DashboardState = Depends(get_dashboard)):
    try:
        dash.dispatch("clear_filters")
        return _json(_state_payload(dash))
    except Exception as exc:
        logger.exception("clear_filters failed")
        return _error(exc)


@app.get("/overview")
def overview(dash: DashboardState = Depends(get_dashboard)):
    try:
        payload = _state_payload(dash)
        payload["series"] = {slot: dash.series[slot].to_dict(orient="records") for slot in CHART_SLOTS}
        payload["charts"] = dash.charts.specs()
        return _json(payload)
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.get("/charts/{name}")
def chart(name: str, dash: DashboardState = Depends(get_dashboard)):
    if name not in CHART_SLOTS:
        return JSONResponse(status_code=404, content={"error": f"Unknown chart: {name}", "type": "KeyError"})
    try:
        return _json(dash.chart_payload(name))
    except Exception as exc:
        logger.exception("chart %s failed", name)
        return _error(exc)


@app.post("/charts/refresh")
def refresh_charts(dash: DashboardState = Depends(get_dashboard)):
    try:
        dash.dispatch("resize")
        return _json({slot: dash.charts.get(slot).revision for slot in CHART_SLOTS})
    except Exception as exc:
        logger.exception("refresh_charts failed")
        return _error(exc)


@app.post("/upload")
async def upload(request: Request, dash: DashboardState = Depends(get_dashboard)):
    body = await request.body()
    if not body:
        return Response(status_code=204)
    name = request.headers.get("x-filename", "upload.csv")
    try:
        ok = dash.dispatch("upload", body, name=name)
    except Exception as exc:
        logger.exception("upload failed")
        return _error(exc)
    status = UploadStatusResponse(
        ok=ok,
        message=dash.status.message,
        kind=dash.status.kind,
        records=len(dash.records),
    )
    return _json(status.model_dump(), status_code=200 if ok else 400)


def _export_response(dash: DashboardState, content: str | None) -> Response:
    if content is None:
        return JSONResponse(status_code=409, content={"notice": dash.notice})
    filename = dash.settings.export_filename
    return Response(
        content=content.encode("utf-8"),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@app.get("/export")
def export(dash: DashboardState = Depends(get_dashboard)):
    try:
        return _export_response(dash, dash.dispatch("export"))
    except Exception as exc:
        logger.exception("export failed")
        return _error(exc)


@app.post("/keys")
def keys(event: KeyEventModel, dash: DashboardState = Depends(get_dashboard)):
    try:
        handled, result = dash.dispatch("key", event.key, ctrl=event.ctrl, meta=event.meta)
        if handled and dash.shortcut_for(event.key, ctrl=event.ctrl, meta=event.meta) == "export":
            return _export_response(dash, result)
        return _json({"handled": handled, **_state_payload(dash)})
    except Exception as exc:
        logger.exception("keys failed")
        return _error(exc)


@app.get("/debug")
def debug(dash: DashboardState = Depends(get_dashboard)):
    try:
        return _json(dash.debug_report())
    except Exception as exc:
        logger.exception("debug failed")
        return _error(exc)
