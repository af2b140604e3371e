"""JSON and Excel writers for grouped routes."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from os import PathLike
from pathlib import Path
from typing import Any, Dict, List, Sequence

import pandas as pd
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.utils.exceptions import IllegalCharacterError
from openpyxl.worksheet.worksheet import Worksheet

from . import config
from .errors import ExportError
from .models import RouteGroup
from .routes.progress import METRICS, chronological, format_pace, progress_frame

ROUTES_SHEET = "Routes"
MAX_SHEET_NAME_LEN = 31
EXCEL_DATETIME_FORMAT = "yyyy-mm-dd hh:mm:ss"
PACE_TEXT_COLUMN = "Pace (m:ss/km)"

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(patternType="solid", fgColor="FFFC4C02")
HEADER_BORDER = Border(
    left=Side(style="thin", color="000000"),
    right=Side(style="thin", color="000000"),
    top=Side(style="thin", color="000000"),
    bottom=Side(style="thin", color="000000"),
)

LOGGER = logging.getLogger(__name__)

PathInput = str | Path | PathLike[str]


def routes_to_json(groups: Sequence[RouteGroup], *, indent: int | None = 2) -> str:
    """Serialise routes (with their member activities) as JSON."""

    return json.dumps([group.to_dict() for group in groups], indent=indent)


def write_routes_json(filepath: PathInput, groups: Sequence[RouteGroup]) -> None:
    path = Path(filepath)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(routes_to_json(groups), encoding="utf-8")
    except OSError as exc:
        raise ExportError(f"Failed to write routes JSON {path}: {exc}") from exc
    LOGGER.info("Wrote %d routes to %s", len(groups), path)


def _naive_utc(value: datetime | None) -> datetime | None:
    # Excel cannot store timezone-aware datetimes.
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _summary_row(group: RouteGroup) -> Dict[str, Any]:
    dated = [a.start_date for a in chronological(group.activities) if a.start_date]
    lat, lon = group.center_point
    return {
        "Route": group.id,
        "Runs": group.size,
        "Avg Distance (km)": round(group.average_distance / 1000.0, 2),
        "Avg Heart Rate (bpm)": (
            round(group.average_heart_rate, 1)
            if group.average_heart_rate is not None
            else None
        ),
        "Center Lat": lat,
        "Center Lon": lon,
        "First Run": _naive_utc(dated[0]) if dated else None,
        "Last Run": _naive_utc(dated[-1]) if dated else None,
    }


def build_routes_frame(groups: Sequence[RouteGroup]) -> pd.DataFrame:
    """One summary row per route, in route order."""

    df = pd.DataFrame([_summary_row(group) for group in groups])
    if df.empty:
        return pd.DataFrame(columns=config.ROUTES_COLUMN_ORDER)
    ordered = [c for c in config.ROUTES_COLUMN_ORDER if c in df.columns]
    remaining = [c for c in df.columns if c not in ordered]
    return df[ordered + remaining]


def _unique_sheet_name(base: str, used: set[str]) -> str:
    base = base[:MAX_SHEET_NAME_LEN]
    name = base
    i = 1
    while name in used:
        suffix = f"_{i}"
        name = base[: MAX_SHEET_NAME_LEN - len(suffix)] + suffix
        i += 1
    used.add(name)
    return name


def _autosize(ws: Worksheet) -> None:
    if not config.EXCEL_AUTOSIZE_COLUMNS or ws.max_row > config.EXCEL_AUTOSIZE_MAX_ROWS:
        return
    for col_cells in ws.columns:
        max_len = 0
        col_letter = getattr(col_cells[0], "column_letter", None)
        for cell in col_cells:
            if cell.value is None:
                continue
            max_len = max(max_len, len(str(cell.value)))
        width = min(
            config.EXCEL_AUTOSIZE_MAX_WIDTH,
            max(config.EXCEL_AUTOSIZE_MIN_WIDTH, max_len + config.EXCEL_AUTOSIZE_PADDING),
        )
        if col_letter:
            ws.column_dimensions[col_letter].width = width


def _style_header_row(ws: Worksheet, max_col: int) -> None:
    for col_idx in range(1, max_col + 1):
        cell = ws.cell(row=1, column=col_idx)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = HEADER_BORDER


def _progress_sheet_frame(group: RouteGroup) -> pd.DataFrame:
    df = progress_frame(group)
    df["start_date"] = [_naive_utc(value) for value in df["start_date"]]
    pace_column = f"{METRICS['pace'].label} ({METRICS['pace'].unit})"
    df.insert(
        df.columns.get_loc(pace_column) + 1,
        PACE_TEXT_COLUMN,
        [format_pace(None if pd.isna(value) else value) for value in df[pace_column]],
    )
    return df.rename(
        columns={"activity_id": "Activity ID", "name": "Name", "start_date": "Date"}
    )


def _clean_cell(value: Any) -> Any:
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def _strip_illegal_characters(df: pd.DataFrame) -> pd.DataFrame:
    # Activity names may carry control characters that openpyxl refuses.
    text_columns = [
        c for c in df.columns
        if pd.api.types.is_object_dtype(df[c]) or pd.api.types.is_string_dtype(df[c])
    ]
    if not text_columns:
        return df
    cleaned = df.copy()
    for column in text_columns:
        cleaned[column] = cleaned[column].map(_clean_cell)
    return cleaned


def _write_sheet(
    writer: pd.ExcelWriter, df: pd.DataFrame, base_name: str, used: set[str]
) -> str:
    sheet_name = _unique_sheet_name(base_name, used)
    _strip_illegal_characters(df).to_excel(writer, sheet_name=sheet_name, index=False)
    ws = writer.sheets[sheet_name]
    _style_header_row(ws, len(df.columns))
    _autosize(ws)
    return sheet_name


def write_routes_workbook(filepath: PathInput, groups: Sequence[RouteGroup]) -> List[str]:
    """Write a ``Routes`` summary sheet plus one progress sheet per route.

    Returns:
        Sheet names in the order they were written.

    Raises:
        ExportError: If the workbook cannot be written.
    """

    path = Path(filepath)
    used: set[str] = set()
    written: List[str] = []
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with pd.ExcelWriter(
            path, engine="openpyxl", datetime_format=EXCEL_DATETIME_FORMAT
        ) as writer:
            written.append(_write_sheet(writer, build_routes_frame(groups), ROUTES_SHEET, used))
            for group in groups:
                written.append(
                    _write_sheet(writer, _progress_sheet_frame(group), group.id, used)
                )
    except (OSError, ValueError, IllegalCharacterError) as exc:
        raise ExportError(f"Failed to write routes workbook {path}: {exc}") from exc
    LOGGER.info("Wrote routes workbook %s (sheets=%d)", path, len(written))
    return written


__all__ = [
    "build_routes_frame",
    "routes_to_json",
    "write_routes_json",
    "write_routes_workbook",
]
