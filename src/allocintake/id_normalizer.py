from __future__ import annotations

import re
from typing import Any

import pandas as pd


_WS_RX = re.compile(r"\s+")


def _is_blank(x: Any) -> bool:
    return x is None or (isinstance(x, float) and pd.isna(x))


def normalize_item_id(x: Any) -> str:
    """Canonical form of an item number or SKU: trimmed and upper-cased.

    ``None``/NaN and whitespace-only input give ``""``. Idempotent.
    """

    if _is_blank(x):
        return ""
    return str(x).strip().upper()


def normalize_store_key(x: Any) -> str:
    """Lookup key for a store code or store name."""
    if _is_blank(x):
        return ""
    return str(x).strip().upper()


def clean_cell(x: Any) -> str:
    if _is_blank(x):
        return ""
    return str(x).strip()


def normalize_description(x: Any) -> str:
    """Trim and collapse inner whitespace, preserving casing."""
    if _is_blank(x):
        return ""
    s = str(x).replace("\u2013", "-").replace("\u2014", "-")
    return _WS_RX.sub(" ", s).strip()
