from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from sprint_core.exceptions import RecordParseError, RecordReadError
from sprint_core.filters import SprintFilters, apply_filters, filter_options, normalize_filters

logger = logging.getLogger(__name__)

RECORD_COLUMNS: List[str] = [
    "sprint",
    "week",
    "ticket_id",
    "ticket_type",
    "assignee",
    "task_force",
    "epic",
    "story_points",
    "status",
    "start_date",
    "completed_date",
]

HEADER_ALIASES: Dict[str, str] = {
    "Sprint": "sprint",
    "Week": "week",
    "ticketId": "ticket_id",
    "Ticket ID": "ticket_id",
    "ticketType": "ticket_type",
    "Ticket Type": "ticket_type",
    "Type": "ticket_type",
    "Assignee": "assignee",
    "taskForce": "task_force",
    "Task Force": "task_force",
    "Team": "task_force",
    "Epic": "epic",
    "storyPoints": "story_points",
    "Story Points": "story_points",
    "Status": "status",
    "startDate": "start_date",
    "Start Date": "start_date",
    "completedDate": "completed_date",
    "Completed Date": "completed_date",
}

SAMPLE_RECORDS: List[Dict[str, Optional[str]]] = [
    {
        "sprint": "Sprint 23",
        "week": "2024-W01",
        "ticket_id": "PROJ-123",
        "ticket_type": "Feature",
        "assignee": "Alice Johnson",
        "task_force": "Frontend",
        "epic": "User Dashboard",
        "story_points": "8",
        "status": "Completed",
        "start_date": "2024-01-01",
        "completed_date": "2024-01-05",
    },
    {
        "sprint": "Sprint 23",
        "week": "2024-W01",
        "ticket_id": "PROJ-124",
        "ticket_type": "Bug",
        "assignee": "Bob Smith",
        "task_force": "Backend",
        "epic": "API Optimization",
        "story_points": "3",
        "status": "Completed",
        "start_date": "2024-01-02",
        "completed_date": "2024-01-04",
    },
    {
        "sprint": "Sprint 24",
        "week": "2024-W02",
        "ticket_id": "PROJ-125",
        "ticket_type": "Feature",
        "assignee": "Alice Johnson",
        "task_force": "Frontend",
        "epic": "User Dashboard",
        "story_points": "13",
        "status": "In Progress",
        "start_date": "2024-01-08",
        "completed_date": None,
    },
    {
        "sprint": "Sprint 24",
        "week": "2024-W02",
        "ticket_id": "PROJ-126",
        "ticket_type": "Feature",
        "assignee": "Charlie Brown",
        "task_force": "Backend",
        "epic": "Payment System",
        "story_points": "5",
        "status": "Completed",
        "start_date": "2024-01-08",
        "completed_date": "2024-01-12",
    },
    {
        "sprint": "Sprint 25",
        "week": "2024-W03",
        "ticket_id": "PROJ-127",
        "ticket_type": "Bug",
        "assignee": "Alice Johnson",
        "task_force": "Frontend",
        "epic": "User Dashboard",
        "story_points": "2",
        "status": "Completed",
        "start_date": "2024-01-15",
        "completed_date": "2024-01-16",
    },
    {
        "sprint": "Sprint 25",
        "week": "2024-W03",
        "ticket_id": "PROJ-128",
        "ticket_type": "Feature",
        "assignee": "Bob Smith",
        "task_force": "Backend",
        "epic": "Payment System",
        "story_points": "8",
        "status": "Completed",
        "start_date": "2024-01-15",
        "completed_date": "2024-01-19",
    },
]

RecordSource = Union[bytes, str, io.IOBase]


@dataclass(frozen=True)
class IngestReport:
    source: str = "sample"
    rows_parsed: int = 0
    blank_rows_dropped: int = 0


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def coerce_str_safe(df: pd.DataFrame) -> pd.DataFrame:
    """Hold every field as a string, with missing values as ``""``."""
    df = df.fillna("")
    for col in df.columns:
        df[col] = df[col].astype(str)
    return df


def ensure_record_columns(df: pd.DataFrame, cols: Iterable[str] = RECORD_COLUMNS) -> pd.DataFrame:
    for col in cols:
        if col not in df.columns:
            df[col] = ""
    return df


def normalize_records(df: pd.DataFrame) -> pd.DataFrame:
    df = df.rename(columns=lambda c: HEADER_ALIASES.get(str(c).strip(), str(c).strip()))
    df = drop_duplicate_columns(df)
    df = coerce_str_safe(df)
    df = ensure_record_columns(df)
    return df.reset_index(drop=True)


def blank_row_mask(df: pd.DataFrame) -> pd.Series:
    if df.empty:
        return pd.Series(False, index=df.index)
    return df.apply(lambda col: col.astype(str).str.strip() == "").all(axis=1)


def drop_blank_rows(df: pd.DataFrame) -> pd.DataFrame:
    return df[~blank_row_mask(df)].reset_index(drop=True)


def story_points_numeric(df: pd.DataFrame) -> pd.Series:
    """Leading integer of each story-point value; anything else counts as 0."""
    if df.empty or "story_points" not in df.columns:
        return pd.Series(0, index=df.index, dtype="int64")
    lead = df["story_points"].astype(str).str.extract(r"^\s*([+-]?\d+)", expand=False)
    return pd.to_numeric(lead, errors="coerce").fillna(0).astype("int64")


def load_sample_data() -> pd.DataFrame:
    return normalize_records(pd.DataFrame(SAMPLE_RECORDS))


def _read_text(source: RecordSource) -> str:
    try:
        raw = source.read() if hasattr(source, "read") else source
        if isinstance(raw, (bytes, bytearray)):
            return bytes(raw).decode("utf-8-sig")
        return str(raw)
    except (OSError, UnicodeDecodeError) as exc:
        logger.exception("failed to read uploaded file")
        raise RecordReadError(str(exc)) from exc


def _is_blank_line(row: List[str]) -> bool:
    return not row or (len(row) == 1 and not row[0].strip())


def check_field_counts(text: str) -> None:
    """Raise RecordParseError for the first row whose width differs from the header."""
    rows = csv.reader(io.StringIO(text))
    width: Optional[int] = None
    try:
        for row in rows:
            if _is_blank_line(row):
                continue
            if width is None:
                width = len(row)
            elif len(row) != width:
                kind = "few" if len(row) < width else "many"
                raise RecordParseError(f"Too {kind} fields on line {rows.line_num}: expected {width}, saw {len(row)}")
    except csv.Error as exc:
        raise RecordParseError(str(exc)) from exc


def parse_records(source: RecordSource, *, name: str = "upload") -> tuple[pd.DataFrame, IngestReport]:
    text = _read_text(source)
    try:
        check_field_counts(text)
        df = pd.read_csv(
            io.StringIO(text),
            header=0,
            index_col=False,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        df = pd.DataFrame(columns=RECORD_COLUMNS)
    except RecordParseError as exc:
        logger.warning("CSV parse error in %s: %s", name, exc)
        raise
    except pd.errors.ParserError as exc:
        logger.warning("CSV parse error in %s: %s", name, exc)
        raise RecordParseError(str(exc)) from exc

    df = normalize_records(df)
    parsed = len(df)
    df = drop_blank_rows(df)
    report = IngestReport(source=name, rows_parsed=parsed, blank_rows_dropped=parsed - len(df))
    logger.info("parsed %d records from %s (%d blank rows dropped)", len(df), name, report.blank_rows_dropped)
    return df, report


def load_dashboard_data(records: Optional[pd.DataFrame] = None, report: Optional[IngestReport] = None) -> Dict[str, object]:
    if records is None:
        records = load_sample_data()
        report = IngestReport(source="sample", rows_parsed=len(records))
    return {
        "records": records,
        "options": filter_options(records),
        "ingest": report or IngestReport(rows_parsed=len(records)),
    }


def prepare_context(filters: dict | SprintFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    records: pd.DataFrame = data_ctx.get("records", pd.DataFrame(columns=RECORD_COLUMNS))
    filt = filters if isinstance(filters, SprintFilters) else normalize_filters(filters)
    return {
        "filters": filt,
        "records": records,
        "options": data_ctx.get("options") or filter_options(records),
        "ingest": data_ctx.get("ingest"),
        "filtered_records": apply_filters(records, filt),
    }
