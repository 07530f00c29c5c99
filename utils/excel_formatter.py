"""
Spreadsheet codec for the enrichment pipeline.

Reading turns an uploaded workbook (or CSV) into an ordered list of row dicts
keyed by the header row. Writing goes through ExcelFormatter, which lays rows
out as a styled Excel table with sized columns and hands back either a file on
disk or the raw .xlsx bytes for an HTTP response.
"""

import datetime
import io
import numbers
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd
from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from utils import log


XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
DEFAULT_SHEET_NAME = "Sheet1"

_EMPTY_HEADER = "__EMPTY"
_INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")
_WRITABLE_TYPES = (str, numbers.Number, datetime.date, datetime.time)


class SpreadsheetError(ValueError):
    """Raised when an upload holds no usable sheet or rows."""
    pass


@dataclass
class SheetData:
    """First sheet of a parsed upload."""
    sheet_name: str
    columns: List[str]
    rows: List[Dict[str, Any]] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------

def _column_names(header: List[Any]) -> List[str]:
    """Header cells -> unique column names (blank headers become __EMPTY, __EMPTY_1, ...)."""
    names: List[str] = []
    used = set()
    for cell in header:
        base = _EMPTY_HEADER if cell is None or str(cell).strip() == "" else str(cell)
        name = base
        n = 0
        while name in used:
            n += 1
            name = f"{base}_{n}"
        used.add(name)
        names.append(name)
    return names


def _is_blank_row(values) -> bool:
    return all(v is None or v == "" for v in values)


def _read_xlsx(data: bytes) -> SheetData:
    wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        if not wb.sheetnames:
            raise SpreadsheetError("Excel file is empty")
        sheet_name = wb.sheetnames[0]
        raw = [list(r) for r in wb[sheet_name].iter_rows(values_only=True)]
    finally:
        wb.close()

    # Leading blank rows are not part of the table
    while raw and _is_blank_row(raw[0]):
        raw.pop(0)
    if not raw:
        raise SpreadsheetError("Sheet contains no data")

    width = max(len(r) for r in raw)
    header = raw[0] + [None] * (width - len(raw[0]))
    columns = _column_names(header)

    rows = []
    for values in raw[1:]:
        if _is_blank_row(values):
            continue
        values = values + [None] * (width - len(values))
        rows.append(dict(zip(columns, values)))

    if not rows:
        raise SpreadsheetError("Sheet contains no data")
    return SheetData(sheet_name=sheet_name, columns=columns, rows=rows)


def _read_csv(data: bytes, sheet_name: str) -> SheetData:
    try:
        # Only empty cells are missing; "NA", "NULL" and friends are real tickers
        df = pd.read_csv(io.BytesIO(data), keep_default_na=False, na_values=[""])
    except pd.errors.EmptyDataError:
        raise SpreadsheetError("Excel file is empty")

    df = df.dropna(how="all")
    if df.empty:
        raise SpreadsheetError("Sheet contains no data")

    columns = _column_names(list(df.columns))
    df.columns = columns
    df = df.astype(object).where(pd.notna(df), None)
    return SheetData(sheet_name=sheet_name, columns=columns, rows=df.to_dict("records"))


def read_rows(data: bytes, filename: Optional[str] = None) -> SheetData:
    """
    Parse an uploaded spreadsheet into rows.

    :param data: Raw file bytes (.xlsx, or .csv when ``filename`` says so)
    :param filename: Original file name, used to pick the reader and name CSV sheets
    :raises SpreadsheetError: if the file is empty or the first sheet has no data rows
    """
    if not data:
        raise SpreadsheetError("Excel file is empty")

    if filename and filename.lower().endswith(".csv"):
        stem = os.path.splitext(os.path.basename(filename))[0]
        return _read_csv(data, sheet_name=safe_sheet_name(stem))
    return _read_xlsx(data)


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def safe_sheet_name(name: Optional[str]) -> str:
    """Excel sheet titles: at most 31 chars, none of []:*?/\\."""
    cleaned = _INVALID_SHEET_CHARS.sub("_", name or "").strip()[:31]
    return cleaned or DEFAULT_SHEET_NAME


def _cell_value(value: Any) -> Any:
    if value is None or isinstance(value, _WRITABLE_TYPES):
        return value
    return str(value)


def column_union(rows: List[Dict[str, Any]]) -> List[str]:
    """All column names across rows, in first-seen order."""
    columns: Dict[str, None] = {}
    for row in rows:
        for key in row:
            columns.setdefault(key, None)
    return list(columns)


class ExcelFormatter:
    def __init__(self):
        # Create a reference to an empty Excel workbook
        self.wb = Workbook()
        self._table_names = set()
        self._sheets_written = 0

    def _table_name(self, sheet_name: str) -> str:
        base = re.sub(r"[^A-Za-z0-9_.]", "", sheet_name) or "Table"
        if not (base[0].isalpha() or base[0] == "_"):
            base = f"T_{base}"
        display_name = base
        counter = 2
        while display_name in self._table_names:
            display_name = f"{base}_{counter}"
            counter += 1
        self._table_names.add(display_name)
        return display_name

    def add_rows(self, rows: List[Dict[str, Any]], sheet_name: str = DEFAULT_SHEET_NAME) -> None:
        """
        Write row dicts to a sheet as a styled Excel table.

        The header is the union of all row keys in first-seen order; cells a row
        doesn't have are left blank.

        :param rows: Ordered row dicts (e.g. enriched output rows)
        :param sheet_name: Title of the sheet, sanitized for Excel
        """
        sheet_name = safe_sheet_name(sheet_name)
        if self._sheets_written == 0:
            ws = self.wb.active
            ws.title = sheet_name
        else:
            ws = self.wb.create_sheet(title=sheet_name)
        self._sheets_written += 1

        columns = column_union(rows)
        header = [str(c) for c in columns]
        ws.append(header)
        for row in rows:
            ws.append([_cell_value(row.get(c)) for c in columns])

        # Excel tables need a data row and unique header names
        if rows and columns and len(set(header)) == len(header):
            table_ref = f"A1:{get_column_letter(len(columns))}{len(rows) + 1}"
            table = Table(displayName=self._table_name(sheet_name), ref=table_ref)
            table.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showFirstColumn=False,
                showLastColumn=False,
                showRowStripes=True,
                showColumnStripes=False
            )
            ws.add_table(table)

        # Sample up to 500 rows to avoid slow iteration on large uploads
        sample = rows[:500]
        for i, col in enumerate(columns, start=1):
            max_len = max(len(str(v)) for v in [col] + [r.get(col, "") for r in sample])
            ws.column_dimensions[get_column_letter(i)].width = min(max_len + 4, 60)

    def to_bytes(self) -> bytes:
        """Serialize the workbook to .xlsx bytes and start a fresh one."""
        buf = io.BytesIO()
        self.wb.save(buf)
        self.__reset_workbook()
        return buf.getvalue()

    def save(self, filename: str, location: str) -> str:
        """
        Save the workbook to ``location/filename`` and start a fresh one.

        :param filename: Output name, must end in .xlsx
        :param location: Existing directory to write into
        :returns: Full path of the written file
        """
        ext = os.path.splitext(filename)[1].lower()
        if ext != ".xlsx":
            raise ValueError(f"Output file must be .xlsx, got '{filename}'")
        if not os.path.isdir(location):
            raise ValueError(f"Output directory does not exist: {location}")

        spath = os.path.join(location, filename)
        self.wb.save(spath)
        self.__reset_workbook()
        log.ok(f"Saved workbook to {spath}")
        return spath

    def __reset_workbook(self):
        self.wb = Workbook()
        self._table_names = set()
        self._sheets_written = 0


def encode_rows(rows: List[Dict[str, Any]], sheet_name: str = DEFAULT_SHEET_NAME) -> bytes:
    """Rows -> single-sheet .xlsx bytes."""
    ef = ExcelFormatter()
    ef.add_rows(rows, sheet_name=sheet_name)
    return ef.to_bytes()
