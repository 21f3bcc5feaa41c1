"""Pivot-layout exports: one row per item, one column per store code.

Example::

    Item,Description,101,102,103
    A100,Widget,5,,2

is unpivoted into a long table with ``Store``, ``Item``, ``Quantity`` and
``Description`` columns that the regular pipeline can reconcile.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import pandas as pd

from .models import RawTable
from .quantity_normalizer import parse_decimal
from .standards.aliases import DESCRIPTION_ALIASES, PIVOT_ITEM_HEADERS

logger = logging.getLogger(__name__)

# Header row may sit below a few title lines.
MAX_HEADER_SCAN = 10
MIN_STORE_COLUMNS = 3

PIVOT_HEADERS = ["Store", "Item", "Quantity"]
PIVOT_HEADERS_WITH_DESC = PIVOT_HEADERS + ["Description"]


@dataclass(frozen=True)
class PivotLayout:
    header_row: int  # -1 when the table headers are the pivot header
    item_index: int
    description_index: Optional[int]
    store_columns: Tuple[Tuple[int, str], ...]


def _is_store_code_header(text: str) -> bool:
    s = str(text).strip()
    if not s.isdigit():
        return False
    return 100 <= int(s) <= 999


def _layout_from_header(cells: List[str], header_row: int) -> Optional[PivotLayout]:
    if not cells:
        return None
    if str(cells[0]).strip().lower() not in PIVOT_ITEM_HEADERS:
        return None
    stores = tuple((i, str(c).strip()) for i, c in enumerate(cells) if i > 0 and _is_store_code_header(c))
    if len(stores) < MIN_STORE_COLUMNS:
        return None
    desc_keys = {a.casefold() for a in DESCRIPTION_ALIASES}
    desc_idx = next((i for i, c in enumerate(cells) if str(c).strip().casefold() in desc_keys), None)
    return PivotLayout(header_row=header_row, item_index=0, description_index=desc_idx, store_columns=stores)


def detect_pivot_layout(table: RawTable) -> Optional[PivotLayout]:
    """Return the pivot layout of ``table`` or ``None`` for a regular long table.

    A pivot header starts with an item header (Item, Item No, Item Number,
    SKU) and has at least three store-code columns (``100``..``999``).
    """

    layout = _layout_from_header(list(table.headers), -1)
    if layout is not None:
        return layout
    for i, row in enumerate(table.rows[: MAX_HEADER_SCAN - 1]):
        layout = _layout_from_header(list(row), i)
        if layout is not None:
            return layout
    return None


def _skip_item(value: str) -> bool:
    low = value.strip().lower()
    return not low or low in {"item", "total"} or "suggested" in low


def _is_empty_cell(value: str) -> bool:
    val = parse_decimal(value)
    return not str(value).strip() or (val is not None and val == 0)


def unpivot_table(table: RawTable, layout: PivotLayout) -> RawTable:
    """Melt store columns into rows. Blank and zero cells are dropped."""
    width = max([len(table.headers)] + [len(r) for r in table.rows]) if table.rows else len(table.headers)
    body = [list(r) + [""] * (width - len(r)) for r in table.rows[layout.header_row + 1 :]]
    frame = pd.DataFrame(body, columns=range(width), dtype=str) if body else pd.DataFrame(columns=range(width), dtype=str)

    frame = frame[~frame[layout.item_index].fillna("").map(_skip_item).astype(bool)]
    id_vars = [layout.item_index]
    if layout.description_index is not None:
        id_vars.append(layout.description_index)
    store_names = {idx: code for idx, code in layout.store_columns}
    long = pd.melt(frame, id_vars=id_vars, value_vars=list(store_names), var_name="store_col", value_name="qty")
    long["qty"] = long["qty"].fillna("")
    long = long[~long["qty"].map(_is_empty_cell).astype(bool)]

    rows: List[List[str]] = []
    for rec in long.itertuples(index=False, name=None):
        item = str(rec[0]).strip()
        desc = str(rec[1]).strip() if layout.description_index is not None else None
        store_col, qty = rec[-2], str(rec[-1]).strip()
        row = [store_names[store_col], item, qty]
        if desc is not None:
            row.append(desc)
        rows.append(row)

    headers = PIVOT_HEADERS_WITH_DESC if layout.description_index is not None else PIVOT_HEADERS
    logger.info("Unpivoted %d store columns into %d rows", len(layout.store_columns), len(rows))
    return RawTable(headers=list(headers), rows=rows, source=table.source)
