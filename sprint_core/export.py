from __future__ import annotations

import csv
import logging

import pandas as pd

from sprint_core.exceptions import NothingToExportError

logger = logging.getLogger(__name__)

NO_DATA_NOTICE = "No data to export"


def export_csv(df: pd.DataFrame) -> str:
    """Render records as CSV with every field quoted and missing values empty.

    The header is the column order of the first record.
    """
    if df is None or df.empty:
        raise NothingToExportError(NO_DATA_NOTICE)
    out = df.fillna("").astype(str).to_csv(
        index=False,
        quoting=csv.QUOTE_ALL,
        lineterminator="\n",
    )
    logger.info("exported %d records", len(df))
    return out.rstrip("\n")
