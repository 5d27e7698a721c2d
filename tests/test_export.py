"""Tests for CSV export."""

import pandas as pd
import pytest

from sprint_core.data import parse_records
from sprint_core.exceptions import NothingToExportError
from sprint_core.export import export_csv
from sprint_core.filters import SprintFilters, apply_filters


class TestExportCsv:
    """Tests for export_csv."""

    def test_header_is_first_record_keys_quoted(self, sample):
        header = export_csv(sample).split("\n")[0]
        assert header == (
            '"sprint","week","ticket_id","ticket_type","assignee","task_force",'
            '"epic","story_points","status","start_date","completed_date"'
        )

    def test_every_field_quoted_and_missing_empty(self, sample):
        lines = export_csv(sample).split("\n")
        assert len(lines) == 7
        assert lines[3].startswith('"Sprint 24","2024-W02","PROJ-125"')
        assert lines[3].endswith('"2024-01-08",""')

    def test_no_trailing_newline(self, sample):
        assert not export_csv(sample).endswith("\n")

    def test_quotes_embedded_delimiters(self, sample):
        sample.loc[0, "epic"] = 'Billing, "v2"'
        assert '"Billing, ""v2"""' in export_csv(sample)

    def test_empty_records_raise(self, sample):
        with pytest.raises(NothingToExportError):
            export_csv(sample.iloc[0:0])


class TestExportRoundTrip:
    """Exported records re-parse to the same records."""

    @pytest.mark.parametrize(
        "filters",
        [
            SprintFilters(),
            SprintFilters(assignee="Alice Johnson"),
            SprintFilters(week="2024-W02", task_force="Backend"),
        ],
    )
    def test_round_trip(self, sample, filters):
        filtered = apply_filters(sample, filters).reset_index(drop=True)
        reparsed, _ = parse_records(export_csv(filtered))
        pd.testing.assert_frame_equal(reparsed, filtered, check_dtype=False)

    def test_round_trip_keeps_extra_columns_and_commas(self):
        original, _ = parse_records('sprint,epic,priority\nS1,"Search, v2",High\nS2,,Low\n')
        reparsed, _ = parse_records(export_csv(original))
        pd.testing.assert_frame_equal(reparsed, original, check_dtype=False)
