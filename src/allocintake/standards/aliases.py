"""Fixed header alias lists used for column role detection.

Order matters: earlier aliases win when several headers match the same role.
"""
from __future__ import annotations

from typing import Dict, Tuple

from ..models import ColumnRole

STORE_ALIASES: Tuple[str, ...] = (
    "Store Name",
    "Shop Name",
    "Loc Name",
    "Location Code",
    "Store Code",
    "Store",
    "Shop",
    "Location",
    "Loc",
)

ITEM_ALIASES: Tuple[str, ...] = (
    "Item",
    "Item No",
    "Item No.",
    "Item Number",
    "Product",
    "SKU",
)

QUANTITY_ALIASES: Tuple[str, ...] = (
    "Qty",
    "Quantity",
    "Amount",
    "Allocation",
    "Units",
    "Maximum Inventory",
    "Max Inv",
    "Reorder Point",
)

DESCRIPTION_ALIASES: Tuple[str, ...] = (
    "Description",
    "Desc",
    "Item Description",
    "ItemDescription",
)

RANK_ALIASES: Tuple[str, ...] = (
    "Rank",
    "Store Rank",
    "StoreRank",
    "Priority",
)

ROLE_ALIASES: Dict[ColumnRole, Tuple[str, ...]] = {
    ColumnRole.STORE: STORE_ALIASES,
    ColumnRole.ITEM: ITEM_ALIASES,
    ColumnRole.QUANTITY: QUANTITY_ALIASES,
    ColumnRole.DESCRIPTION: DESCRIPTION_ALIASES,
}

# Keywords that mark the first line of pasted text as a header line.
PASTE_HEADER_KEYWORDS: Tuple[str, ...] = (
    "store",
    "item",
    "qty",
    "quantity",
    "location",
    "sku",
    "desc",
    "name",
    "product",
    "amount",
)

# First-column headers that identify a pivot export (one row per item).
PIVOT_ITEM_HEADERS: Tuple[str, ...] = ("item", "item no", "item number", "sku")

# Catalog file column aliases, compared case-insensitively.
CATALOG_ITEM_NUMBER_ALIASES: Tuple[str, ...] = ("number", "item", "item number", "item no", "item_number")
CATALOG_ITEM_DESC_ALIASES: Tuple[str, ...] = ("description", "desc", "item description")
CATALOG_ITEM_SKU_ALIASES: Tuple[str, ...] = ("sku", "skus", "aliases")
CATALOG_STORE_CODE_ALIASES: Tuple[str, ...] = ("code", "id", "store", "store code", "location", "store_id")
CATALOG_STORE_NAME_ALIASES: Tuple[str, ...] = ("name", "store name", "location name", "store_name")
CATALOG_STORE_RANK_ALIASES: Tuple[str, ...] = ("rank", "store rank", "priority")
