"""Read allocation exports into :class:`RawTable` objects.

Supported sources:
  - delimited text (csv, tsv, txt) with the delimiter sniffed among comma,
    tab, semicolon and pipe
  - Excel workbooks (xlsx, xlsm, xls), first worksheet unless told otherwise
  - pasted clipboard text

Every cell is read as a string (``dtype=str``) so that item numbers such as
``00123`` keep their leading zeros. Blank cells become ``""`` and rows that
are entirely blank are dropped.
"""
from __future__ import annotations

import csv
import io
import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd
from openpyxl import load_workbook

from .models import RawTable
from .standards.aliases import PASTE_HEADER_KEYWORDS

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {".csv", ".tsv", ".txt"}
EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
OPENPYXL_SUFFIXES = {".xlsx", ".xlsm"}
SUPPORTED_SUFFIXES = TEXT_SUFFIXES | EXCEL_SUFFIXES

# Pasted text above this size is refused.
DEFAULT_MAX_TEXT_CHARS = 10_000_000

_UNNAMED_RX = re.compile(r"^Unnamed: \d+$")


class SourceReadError(ValueError):
    """The import source is missing, unsupported, corrupt or empty."""


def _sniff_delimiter(path: Path) -> str:
    if path.suffix.lower() == ".tsv":
        return "\t"
    try:
        with open(path, "r", encoding="utf-8-sig", errors="replace", newline="") as f:
            sample = f.read(64 * 1024)
    except OSError as exc:
        raise SourceReadError(f"Failed to read delimited file {path}: {exc}") from exc
    if not sample.strip():
        return ","
    try:
        return csv.Sniffer().sniff(sample, delimiters=",\t;|").delimiter
    except csv.Error:
        return ","


def _clean_header(name: object) -> str:
    s = "" if name is None else str(name).strip()
    if _UNNAMED_RX.match(s):
        return ""
    return s


def frame_to_table(frame: pd.DataFrame, source: Optional[str] = None, raw_headers: Optional[Sequence[str]] = None) -> RawTable:
    """Convert a string-typed DataFrame into a :class:`RawTable`."""
    width = len(frame.columns)
    if raw_headers is not None and len(raw_headers) <= width:
        headers = ["" if h is None else str(h).strip() for h in raw_headers] + [""] * (width - len(raw_headers))
    else:
        headers = [_clean_header(c) for c in frame.columns]
    frame = frame.fillna("")
    rows: List[List[str]] = []
    for values in frame.itertuples(index=False, name=None):
        row = ["" if v is None else str(v).strip() for v in values]
        if any(row):
            rows.append(row)
    return RawTable(headers=headers, rows=rows, source=source)


def _has_content(fields: Sequence[str]) -> bool:
    return any(str(v).strip() for v in fields)


def _read_delimited(path: Path) -> pd.DataFrame:
    """Read delimited text with the first non-blank line as the header.

    Columns span the widest line. Header cells past the header line are blank
    and shorter rows are padded, so ragged exports (a trailing delimiter on
    some lines, title lines above a pivot header) still load.
    """

    sep = _sniff_delimiter(path)
    try:
        with open(path, "r", encoding="utf-8-sig", errors="replace", newline="") as f:
            lines = [fields for fields in csv.reader(f, delimiter=sep) if _has_content(fields)]
    except (OSError, csv.Error) as exc:
        raise SourceReadError(f"Failed to read delimited file {path}: {exc}") from exc
    if not lines:
        raise SourceReadError(f"Input file is empty: {path}")
    width = max(len(fields) for fields in lines)
    ragged = sum(1 for fields in lines[1:] if len(fields) > len(lines[0]))

    try:
        frame = pd.read_csv(
            path,
            dtype=str,
            sep=sep,
            header=None,
            names=list(range(width)),
            keep_default_na=False,
            encoding="utf-8-sig",
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as exc:
        raise SourceReadError(f"Input file is empty: {path}") from exc
    except Exception as exc:
        raise SourceReadError(f"Failed to read delimited file {path}: {exc}") from exc
    if ragged:
        logger.warning("%s: %d rows have more fields than the %d-column header", path, ragged, len(lines[0]))

    frame = frame.fillna("")
    start = next((i for i, row in enumerate(frame.itertuples(index=False, name=None)) if _has_content(row)), None)
    if start is None:
        raise SourceReadError(f"Input file is empty: {path}")
    body = frame.iloc[start + 1 :].reset_index(drop=True)
    body.columns = [str(v) for v in frame.iloc[start]]
    return body


def read_frame(path: str | Path, sheet_name: Optional[str | int] = None) -> pd.DataFrame:
    """Read a delimited text or Excel file into an all-string DataFrame.

    Raises :class:`SourceReadError` when the file is missing, has an
    unsupported extension, or cannot be parsed.
    """

    path = Path(path)
    if not path.exists():
        raise SourceReadError(f"Input file not found: {path}")
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise SourceReadError(f"Unsupported input file extension for {path}")

    if suffix in TEXT_SUFFIXES:
        return _read_delimited(path)

    try:
        return pd.read_excel(path, sheet_name=sheet_name if sheet_name is not None else 0, dtype=str, keep_default_na=False)
    except Exception as exc:
        raise SourceReadError(f"Failed to read Excel file {path}: {exc}") from exc


def _excel_header(path: Path, sheet_name: Optional[str | int] = None) -> Optional[List[str]]:
    """First non-blank worksheet row as written, before pandas de-duplicates names."""
    if path.suffix.lower() not in OPENPYXL_SUFFIXES:
        return None
    try:
        wb = load_workbook(path, read_only=True, data_only=True)
    except Exception as exc:
        raise SourceReadError(f"Failed to read Excel file {path}: {exc}") from exc
    try:
        if isinstance(sheet_name, str):
            ws = wb[sheet_name]
        else:
            ws = wb.worksheets[sheet_name or 0]
        for values in ws.iter_rows(values_only=True):
            cells = ["" if v is None else str(v) for v in values]
            if _has_content(cells):
                while cells and not cells[-1].strip():
                    cells.pop()
                return cells
    finally:
        wb.close()
    return None


def load_table(path: str | Path, sheet_name: Optional[str | int] = None) -> RawTable:
    """Load an allocation export as headers plus string rows."""
    path = Path(path)
    frame = read_frame(path, sheet_name=sheet_name)
    if len(frame.columns) == 0:
        raise SourceReadError(f"Input file has no columns: {path}")
    table = frame_to_table(frame, source=str(path), raw_headers=_excel_header(path, sheet_name))
    logger.debug("Loaded %s: %d columns, %d rows", path, len(table.headers), len(table.rows))
    return table


def _looks_like_header(cells: Sequence[str]) -> bool:
    hits = 0
    for cell in cells:
        low = cell.strip().lower()
        if any(keyword in low for keyword in PASTE_HEADER_KEYWORDS):
            hits += 1
    return hits >= 2


def table_from_text(text: str, max_chars: int = DEFAULT_MAX_TEXT_CHARS, source: str = "<pasted>") -> RawTable:
    """Parse pasted spreadsheet text.

    Tab-delimited when the first line contains a tab, comma-delimited
    otherwise. The first line is used as the header when at least two of its
    cells mention a header keyword (store, item, qty, ...); otherwise headers
    are synthesized as ``Column 1..n`` and every line is data.
    """

    if text is None or not text.strip():
        raise SourceReadError("Pasted text is empty")
    if len(text) > max_chars:
        raise SourceReadError(f"Pasted text is too large ({len(text)} characters, limit {max_chars})")

    lines = [line for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n") if line.strip()]
    delimiter = "\t" if "\t" in lines[0] else ","
    parsed = [[cell.strip() for cell in row] for row in csv.reader(io.StringIO("\n".join(lines)), delimiter=delimiter)]
    parsed = [row for row in parsed if any(row)]
    if not parsed:
        raise SourceReadError("Pasted text has no rows")

    width = max(len(row) for row in parsed)
    if _looks_like_header(parsed[0]):
        headers = parsed[0] + [""] * (width - len(parsed[0]))
        body = parsed[1:]
        synthetic = False
    else:
        headers = [f"Column {i + 1}" for i in range(width)]
        body = parsed
        synthetic = True
    rows = [row + [""] * (width - len(row)) for row in body]
    return RawTable(headers=headers, rows=rows, source=source, synthetic_headers=synthetic)
