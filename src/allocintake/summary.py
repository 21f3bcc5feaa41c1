"""Totals and export helpers for reconciled allocation entries."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Literal

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font

from .models import AllocationEntry

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["Location", "Location Name", "Item Number", "Description", "Quantity", "SKU", "Rank"]

SortMode = Literal["qty-desc", "qty-asc", "item-asc", "item-desc"]
SORT_MODES = ("qty-desc", "qty-asc", "item-asc", "item-desc")


def entries_to_frame(entries: Iterable[AllocationEntry]) -> pd.DataFrame:
    records = [e.to_record() for e in entries]
    frame = pd.DataFrame.from_records(records, columns=EXPORT_COLUMNS)
    frame["Quantity"] = frame["Quantity"].astype("int64")
    return frame


def item_totals(entries: Iterable[AllocationEntry], sort_mode: SortMode = "qty-desc") -> pd.DataFrame:
    """Total quantity and store count per item.

    Ties in quantity are broken by item number so the output is deterministic.
    """

    if sort_mode not in SORT_MODES:
        raise ValueError(f"Unknown sort mode {sort_mode!r}; expected one of {SORT_MODES}")
    frame = entries_to_frame(entries)
    if frame.empty:
        return pd.DataFrame(columns=["Item Number", "Description", "Quantity", "Stores"])
    grouped = (
        frame.groupby("Item Number", sort=False)
        .agg(
            Description=("Description", lambda s: next((v for v in s if v), "")),
            Quantity=("Quantity", "sum"),
            Stores=("Location", "nunique"),
        )
        .reset_index()
    )
    if sort_mode == "qty-desc":
        grouped = grouped.sort_values(["Quantity", "Item Number"], ascending=[False, True], kind="mergesort")
    elif sort_mode == "qty-asc":
        grouped = grouped.sort_values(["Quantity", "Item Number"], ascending=[True, True], kind="mergesort")
    elif sort_mode == "item-asc":
        grouped = grouped.sort_values("Item Number", ascending=True, kind="mergesort")
    else:
        grouped = grouped.sort_values("Item Number", ascending=False, kind="mergesort")
    return grouped.reset_index(drop=True)


def store_totals(entries: Iterable[AllocationEntry]) -> pd.DataFrame:
    """Total quantity and item count per store, ordered by store code."""
    frame = entries_to_frame(entries)
    if frame.empty:
        return pd.DataFrame(columns=["Location", "Location Name", "Rank", "Quantity", "Items"])
    grouped = (
        frame.groupby(["Location", "Location Name", "Rank"], sort=True)
        .agg(Quantity=("Quantity", "sum"), Items=("Item Number", "nunique"))
        .reset_index()
    )
    return grouped


def _auto_fit_columns(ws) -> None:
    for col_cells in ws.columns:
        max_len = max((len(str(c.value)) for c in col_cells if c.value is not None), default=0)
        ws.column_dimensions[col_cells[0].column_letter].width = min(max(10, max_len + 2), 60)


def _append_frame(ws, frame: pd.DataFrame) -> None:
    ws.append(list(frame.columns))
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in frame.itertuples(index=False, name=None):
        ws.append([v.item() if hasattr(v, "item") else v for v in row])
    _auto_fit_columns(ws)
    ws.freeze_panes = "A2"


def write_entries(entries: List[AllocationEntry], path: str | Path) -> Path:
    """Write entries to ``.csv`` or ``.xlsx`` with the standard export columns.

    Workbooks get a second ``Item Totals`` sheet.
    """

    path = Path(path)
    frame = entries_to_frame(entries)
    path.parent.mkdir(parents=True, exist_ok=True)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        frame.to_csv(path, index=False, encoding="utf-8-sig")
    elif suffix == ".xlsx":
        wb = Workbook()
        ws = wb.active
        ws.title = "Allocations"
        _append_frame(ws, frame)
        _append_frame(wb.create_sheet("Item Totals"), item_totals(entries))
        wb.save(path)
    else:
        raise ValueError(f"Unsupported export extension for {path}")
    logger.info("Wrote %d allocation rows to %s", len(frame), path)
    return path
