"""Excel export of stored runs (one row per run plus a per-kilometre sheet)."""

from __future__ import annotations

import logging
from os import PathLike
from pathlib import Path
from typing import Sequence

import pandas as pd
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from .config import (
    EXCEL_AUTOSIZE_COLUMNS,
    EXCEL_AUTOSIZE_MAX_ROWS,
    EXCEL_AUTOSIZE_MAX_WIDTH,
    EXCEL_AUTOSIZE_MIN_WIDTH,
    EXCEL_AUTOSIZE_PADDING,
)
from .models import RunSummary
from .splits import format_duration, format_pace

RUNS_SHEET = "Runs"
SPLITS_SHEET = "Splits"

RUNS_COLUMNS = [
    "Run ID",
    "Date",
    "Distance (km)",
    "Duration",
    "Avg Pace (min/km)",
    "Avg Speed (km/h)",
    "Max Speed (km/h)",
    "Elevation Gain (m)",
    "Elevation Loss (m)",
    "Route Matched",
    "Notes",
]
SPLITS_COLUMNS = ["Run ID", "Date", "Km", "Distance (m)", "Duration (s)", "Pace"]

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(patternType="solid", fgColor="FFFF40FF")
HEADER_BORDER = Border(
    left=Side(style="thin", color="000000"),
    right=Side(style="thin", color="000000"),
    top=Side(style="thin", color="000000"),
    bottom=Side(style="thin", color="000000"),
)

LOGGER = logging.getLogger(__name__)

PathInput = str | Path | PathLike[str]


def _runs_frame(runs: Sequence[RunSummary]) -> pd.DataFrame:
    rows = [
        {
            "Run ID": run.id,
            "Date": run.date,
            "Distance (km)": round(run.distance_m / 1000.0, 2),
            "Duration": format_duration(run.duration_s),
            "Avg Pace (min/km)": format_pace(run.duration_s, run.distance_m),
            "Avg Speed (km/h)": round(run.average_speed_kmh, 1),
            "Max Speed (km/h)": round(run.max_speed_kmh, 1),
            "Elevation Gain (m)": run.elevation_gain_m,
            "Elevation Loss (m)": run.elevation_loss_m,
            "Route Matched": "Yes" if run.route_matched else "No",
            "Notes": run.notes or "",
        }
        for run in runs
    ]
    return pd.DataFrame(rows, columns=RUNS_COLUMNS)


def _splits_frame(runs: Sequence[RunSummary]) -> pd.DataFrame:
    rows = []
    for run in runs:
        for split in run.splits:
            rows.append(
                {
                    "Run ID": run.id,
                    "Date": run.date,
                    "Km": split.km_index,
                    "Distance (m)": round(split.distance_m, 1),
                    "Duration (s)": round(split.duration_s, 1),
                    "Pace": split.pace_label,
                }
            )
    return pd.DataFrame(rows, columns=SPLITS_COLUMNS)


def _style_header_row(ws: Worksheet, max_col: int) -> None:
    for col_idx in range(1, max_col + 1):
        cell = ws.cell(row=1, column=col_idx)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = HEADER_BORDER


def _autosize(ws: Worksheet) -> None:
    if not EXCEL_AUTOSIZE_COLUMNS or ws.max_row > EXCEL_AUTOSIZE_MAX_ROWS:
        return
    for col_cells in ws.columns:
        col_letter = getattr(col_cells[0], "column_letter", None)
        if not col_letter:
            continue
        max_len = max(
            (len(str(cell.value)) for cell in col_cells if cell.value is not None),
            default=0,
        )
        ws.column_dimensions[col_letter].width = min(
            EXCEL_AUTOSIZE_MAX_WIDTH,
            max(EXCEL_AUTOSIZE_MIN_WIDTH, max_len + EXCEL_AUTOSIZE_PADDING),
        )


def write_run_history(filepath: PathInput, runs: Sequence[RunSummary]) -> None:
    """Write ``runs`` to a fresh workbook at ``filepath``."""

    path = Path(filepath)
    frames = ((RUNS_SHEET, _runs_frame(runs)), (SPLITS_SHEET, _splits_frame(runs)))
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, df in frames:
            df.to_excel(writer, sheet_name=sheet_name, index=False)
            ws = writer.sheets[sheet_name]
            _style_header_row(ws, len(df.columns))
            _autosize(ws)
    LOGGER.info("Wrote %d runs to %s", len(runs), path)


__all__ = ["RUNS_SHEET", "SPLITS_SHEET", "write_run_history"]
