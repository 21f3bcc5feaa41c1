"""Reference catalogs: the item dictionary and the store dictionary.

Catalogs are loaded once and passed into the pipeline as an immutable
:class:`ReferenceCatalogs` snapshot. The matchers built from them are created
eagerly so the snapshot can be shared across worker threads.

Supported catalog files:
  - CSV / Excel with case-insensitive column aliases (``number``/``item``,
    ``description``, ``sku``; ``code``/``store``, ``name``, ``rank``)
  - JSON in the dictionary export format::

        {"items": [{"number": "A100", "desc": "Widget", "sku": ["SKU1"]}],
         "stores": [{"id": 101, "name": "Downtown", "rank": "A"}]}
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .loader import read_frame
from .matchers import ItemDictionaryMatcher, StoreDictionaryMatcher
from .models import DEFAULT_RANK, DictionaryItem, StoreRank, StoreRecord
from .standards.aliases import (
    CATALOG_ITEM_DESC_ALIASES,
    CATALOG_ITEM_NUMBER_ALIASES,
    CATALOG_ITEM_SKU_ALIASES,
    CATALOG_STORE_CODE_ALIASES,
    CATALOG_STORE_NAME_ALIASES,
    CATALOG_STORE_RANK_ALIASES,
)

logger = logging.getLogger(__name__)

_SKU_SPLIT_RX = re.compile(r"[;,|]")


@dataclass(frozen=True)
class ReferenceCatalogs:
    items: Tuple[DictionaryItem, ...] = ()
    stores: Tuple[StoreRecord, ...] = ()
    item_matcher: Optional[ItemDictionaryMatcher] = field(default=None, init=False, repr=False, compare=False)
    store_matcher: Optional[StoreDictionaryMatcher] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "stores", tuple(self.stores))
        if self.items:
            object.__setattr__(self, "item_matcher", ItemDictionaryMatcher(self.items))
        if self.stores:
            object.__setattr__(self, "store_matcher", StoreDictionaryMatcher(self.stores))

    @property
    def has_items(self) -> bool:
        return self.item_matcher is not None

    @property
    def has_stores(self) -> bool:
        return self.store_matcher is not None

    @property
    def is_empty(self) -> bool:
        return not self.has_items and not self.has_stores


EMPTY_CATALOGS = ReferenceCatalogs()


def _resolve_column(columns: Iterable[str], aliases: Sequence[str]) -> Optional[str]:
    lower_map: Dict[str, str] = {}
    for col in columns:
        lower_map.setdefault(str(col).strip().lower(), col)
    for alias in aliases:
        if alias in lower_map:
            return lower_map[alias]
    return None


def _first_columns(frame: pd.DataFrame) -> pd.DataFrame:
    # repeated header names resolve to their first column
    return frame.loc[:, ~frame.columns.duplicated()]


def _cell(value: object) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


def _split_skus(value: object) -> Tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        parts = [_cell(v) for v in value]
    else:
        parts = [p.strip() for p in _SKU_SPLIT_RX.split(_cell(value))]
    return tuple(p for p in parts if p)


def _parse_rank(value: object) -> StoreRank:
    return StoreRank.parse(value) or DEFAULT_RANK


def items_from_frame(frame: pd.DataFrame) -> List[DictionaryItem]:
    frame = _first_columns(frame)
    number_col = _resolve_column(frame.columns, CATALOG_ITEM_NUMBER_ALIASES)
    if number_col is None:
        raise ValueError(f"Item catalog has no item number column (columns: {list(frame.columns)})")
    desc_col = _resolve_column(frame.columns, CATALOG_ITEM_DESC_ALIASES)
    sku_col = _resolve_column(frame.columns, CATALOG_ITEM_SKU_ALIASES)

    items: List[DictionaryItem] = []
    for _, row in frame.iterrows():
        number = _cell(row[number_col])
        if not number:
            continue
        items.append(
            DictionaryItem(
                number=number,
                description=_cell(row[desc_col]) if desc_col else "",
                skus=_split_skus(row[sku_col]) if sku_col else (),
            )
        )
    return items


def stores_from_frame(frame: pd.DataFrame) -> List[StoreRecord]:
    frame = _first_columns(frame)
    code_col = _resolve_column(frame.columns, CATALOG_STORE_CODE_ALIASES)
    if code_col is None:
        raise ValueError(f"Store catalog has no store code column (columns: {list(frame.columns)})")
    name_col = _resolve_column(frame.columns, CATALOG_STORE_NAME_ALIASES)
    rank_col = _resolve_column(frame.columns, CATALOG_STORE_RANK_ALIASES)

    stores: List[StoreRecord] = []
    for _, row in frame.iterrows():
        code = _cell(row[code_col])
        if not code:
            continue
        stores.append(
            StoreRecord(
                code=code,
                name=_cell(row[name_col]) if name_col else "",
                rank=_parse_rank(row[rank_col]) if rank_col else DEFAULT_RANK,
            )
        )
    return stores


def _read_json(path: Path) -> Dict:
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse dictionary JSON {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Dictionary JSON {path} must be an object with 'items' and/or 'stores'")
    return data


def items_from_json(data: Dict) -> List[DictionaryItem]:
    items: List[DictionaryItem] = []
    for raw in data.get("items", []) or []:
        number = _cell(raw.get("number"))
        if not number:
            continue
        items.append(
            DictionaryItem(
                number=number,
                description=_cell(raw.get("desc", raw.get("description"))),
                skus=_split_skus(raw.get("sku", raw.get("skus", []))),
            )
        )
    return items


def stores_from_json(data: Dict) -> List[StoreRecord]:
    stores: List[StoreRecord] = []
    for raw in data.get("stores", []) or []:
        code = _cell(raw.get("id", raw.get("code")))
        if not code:
            continue
        stores.append(StoreRecord(code=code, name=_cell(raw.get("name")), rank=_parse_rank(raw.get("rank"))))
    return stores


def _check_exists(path: Path) -> None:
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")


def load_item_catalog(path: str | Path) -> List[DictionaryItem]:
    path = Path(path)
    _check_exists(path)
    if path.suffix.lower() == ".json":
        items = items_from_json(_read_json(path))
    else:
        items = items_from_frame(read_frame(path))
    logger.info("Loaded %d catalog items from %s", len(items), path)
    return items


def load_store_catalog(path: str | Path) -> List[StoreRecord]:
    path = Path(path)
    _check_exists(path)
    if path.suffix.lower() == ".json":
        stores = stores_from_json(_read_json(path))
    else:
        stores = stores_from_frame(read_frame(path))
    logger.info("Loaded %d catalog stores from %s", len(stores), path)
    return stores


def load_catalogs(items_path: str | Path | None = None, stores_path: str | Path | None = None) -> ReferenceCatalogs:
    """Build a :class:`ReferenceCatalogs` snapshot from optional catalog files.

    A single JSON dictionary file may be given for both arguments; it is
    parsed once.
    """

    items: List[DictionaryItem] = []
    stores: List[StoreRecord] = []
    if items_path and stores_path and Path(items_path) == Path(stores_path) and Path(items_path).suffix.lower() == ".json":
        path = Path(items_path)
        _check_exists(path)
        data = _read_json(path)
        items = items_from_json(data)
        stores = stores_from_json(data)
        logger.info("Loaded %d items and %d stores from %s", len(items), len(stores), path)
        return ReferenceCatalogs(items=tuple(items), stores=tuple(stores))
    if items_path:
        items = load_item_catalog(items_path)
    if stores_path:
        stores = load_store_catalog(stores_path)
    return ReferenceCatalogs(items=tuple(items), stores=tuple(stores))
