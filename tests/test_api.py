"""Tests for the JSON API."""

import pytest
from fastapi.testclient import TestClient

from api.main import app
from sprint_core.state import DashboardState

UPLOAD_CSV = (
    "sprint,ticketId,ticketType,assignee,epic,storyPoints,status\n"
    "Sprint 9,X-1,Story,Dana,Search,5,Completed\n"
)


@pytest.fixture
def client():
    app.state.dashboard = DashboardState()
    return TestClient(app)


class TestMeta:
    """Tests for option and filter endpoints."""

    def test_options(self, client):
        resp = client.get("/meta/options")
        assert resp.status_code == 200
        body = resp.json()
        assert body["options"]["assignee"] == ["", "Alice Johnson", "Bob Smith", "Charlie Brown"]
        assert body["labels"]["week"] == "All Weeks"

    def test_set_and_clear_filters(self, client):
        resp = client.post("/filters", json={"assignee": "Alice Johnson"})
        assert resp.status_code == 200
        assert resp.json()["kpis"]["completed_count"] == 2
        assert resp.json()["kpis"]["completed_points"] == 10
        assert client.get("/filters").json()["filters"]["assignee"] == "Alice Johnson"

        resp = client.post("/filters/clear")
        assert resp.json()["filters"]["assignee"] == ""
        assert resp.json()["kpis"]["completed_points"] == 26

    def test_partial_update_keeps_other_filters(self, client):
        client.post("/filters", json={"week": "2024-W01"})
        client.post("/filters", json={"ticket_type": "Bug"})
        filters = client.get("/filters").json()["filters"]
        assert filters["week"] == "2024-W01"
        assert filters["ticket_type"] == "Bug"

    def test_invalid_value_is_400(self, client):
        resp = client.post("/filters", json={"assignee": "Nobody"})
        assert resp.status_code == 400
        assert resp.json()["type"] == "InvalidFilterValueError"

    def test_invalid_value_leaves_filters_unchanged(self, client):
        resp = client.post("/filters", json={"week": "2024-W01", "assignee": "Nobody"})
        assert resp.status_code == 400
        filters = client.get("/filters").json()["filters"]
        assert filters["week"] == ""
        assert filters["assignee"] == ""
        assert client.get("/overview").json()["kpis"]["completed_points"] == 26


class TestOverviewAndCharts:
    """Tests for overview and chart endpoints."""

    def test_overview(self, client):
        body = client.get("/overview").json()
        assert body["kpis"]["sprint_count"] == 3
        assert set(body["charts"]) == {"velocity", "team", "ticket_type", "epic"}
        assert body["series"]["velocity"] == [
            {"sprint": "Sprint 23", "points": 11},
            {"sprint": "Sprint 24", "points": 5},
            {"sprint": "Sprint 25", "points": 10},
        ]

    def test_single_chart(self, client):
        body = client.get("/charts/epic").json()
        assert body["series"][1]["label"] == "API Optimizatio..."
        assert body["series"][1]["epic"] == "API Optimization"

    def test_unknown_chart_is_404(self, client):
        assert client.get("/charts/burndown").status_code == 404

    def test_refresh_bumps_revisions(self, client):
        body = client.post("/charts/refresh").json()
        assert body == {"velocity": 1, "team": 1, "ticket_type": 1, "epic": 1}


class TestUploadAndExport:
    """Tests for upload and export endpoints."""

    def test_upload_replaces_store(self, client):
        resp = client.post("/upload", content=UPLOAD_CSV, headers={"x-filename": "s.csv"})
        assert resp.status_code == 200
        assert resp.json()["records"] == 1
        assert resp.json()["kind"] == "success"
        assert client.get("/meta/options").json()["options"]["assignee"] == ["", "Dana"]

    def test_bad_upload_keeps_store(self, client):
        resp = client.post("/upload", content="sprint,week\nS1,W1\nS2,W2,x,y\n")
        assert resp.status_code == 400
        assert resp.json()["message"] == "Error parsing CSV file"
        assert resp.json()["records"] == 6

    def test_empty_upload_is_ignored(self, client):
        assert client.post("/upload", content=b"").status_code == 204

    def test_export(self, client):
        client.post("/filters", json={"assignee": "Bob Smith"})
        resp = client.get("/export")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "sprint_data_filtered.csv" in resp.headers["content-disposition"]
        assert resp.text.splitlines()[1].startswith('"Sprint 23","2024-W01","PROJ-124"')

    def test_export_blocked_when_empty(self, client):
        client.post("/filters", json={"week": "2024-W01", "assignee": "Charlie Brown"})
        resp = client.get("/export")
        assert resp.status_code == 409
        assert resp.json()["notice"] == "No data to export"

    def test_ctrl_r_shortcut(self, client):
        client.post("/filters", json={"epic": "User Dashboard"})
        body = client.post("/keys", json={"key": "r", "ctrl": True}).json()
        assert body["handled"] is True
        assert body["filters"]["epic"] == ""

    def test_ctrl_e_shortcut_returns_csv(self, client):
        client.post("/filters", json={"assignee": "Bob Smith"})
        resp = client.post("/keys", json={"key": "e", "ctrl": True})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert resp.text == client.get("/export").text

    def test_ctrl_e_shortcut_blocked_when_empty(self, client):
        client.post("/filters", json={"week": "2024-W01", "assignee": "Charlie Brown"})
        resp = client.post("/keys", json={"key": "e", "meta": True})
        assert resp.status_code == 409
        assert resp.json()["notice"] == "No data to export"

    def test_shifted_shortcut_not_handled(self, client):
        client.post("/filters", json={"epic": "User Dashboard"})
        body = client.post("/keys", json={"key": "R", "ctrl": True}).json()
        assert body["handled"] is False
        assert body["filters"]["epic"] == "User Dashboard"

    def test_export_failure_is_500(self, client):
        def broken():
            raise RuntimeError("disk full")

        app.state.dashboard.handlers["export"] = broken
        resp = client.get("/export")
        assert resp.status_code == 500
        assert resp.json() == {"error": "disk full", "type": "RuntimeError"}

    def test_debug(self, client):
        body = client.get("/debug").json()
        assert body["row_counts"]["records"] == 6
        assert body["cleaning_checks"]["source"] == "sample"
