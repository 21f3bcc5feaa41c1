"""Deterministic record linkage against the item and store dictionaries.

Both matchers are built once from an immutable dictionary snapshot and only
perform exact, case-insensitive key lookups. Items resolve to the earliest
matching record in dictionary order; stores resolve by code before name.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .id_normalizer import normalize_item_id, normalize_store_key
from .models import AllocationEntry, DictionaryItem, StoreRecord

logger = logging.getLogger(__name__)


class ItemDictionaryMatcher:
    """Resolve raw item identifiers to canonical :class:`DictionaryItem` records.

    ``match(identifier, sku_candidate)`` returns the first item in dictionary
    order that satisfies any of:
      - its number equals the identifier
      - its SKUs contain the identifier
      - its SKUs contain the SKU candidate
    """

    def __init__(self, items: Iterable[DictionaryItem]):
        self._items: Tuple[DictionaryItem, ...] = tuple(items)
        # key -> position of the earliest item carrying it
        self._by_number: Dict[str, int] = {}
        self._by_sku: Dict[str, int] = {}
        dup_numbers: List[str] = []
        for pos, item in enumerate(self._items):
            key = normalize_item_id(item.number)
            if key:
                if key in self._by_number:
                    dup_numbers.append(key)
                else:
                    self._by_number[key] = pos
            for sku in item.skus:
                sku_key = normalize_item_id(sku)
                if sku_key and sku_key not in self._by_sku:
                    self._by_sku[sku_key] = pos
        if dup_numbers:
            logger.warning("Item dictionary has %d duplicate numbers; keeping first occurrence (e.g. %s)", len(dup_numbers), dup_numbers[0])

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> Tuple[DictionaryItem, ...]:
        return self._items

    def lookup_keys(self) -> Set[str]:
        """All normalized numbers and SKUs, used for content-based column detection."""
        return set(self._by_number) | set(self._by_sku)

    def match(self, identifier: object, sku_candidate: object = None) -> Optional[DictionaryItem]:
        key = normalize_item_id(identifier)
        cand = normalize_item_id(sku_candidate)
        hits: List[int] = []
        if key:
            for index in (self._by_number, self._by_sku):
                pos = index.get(key)
                if pos is not None:
                    hits.append(pos)
        if cand:
            pos = self._by_sku.get(cand)
            if pos is not None:
                hits.append(pos)
        if not hits:
            return None
        return self._items[min(hits)]

    def enrich(self, entry: AllocationEntry) -> bool:
        """Replace the entry's item number with the canonical one.

        The description is filled only when blank and an existing SKU is kept.
        Returns False, leaving the entry untouched, when nothing matches.
        """

        item = self.match(entry.item_number, entry.sku)
        if item is None:
            return False
        entry.item_number = item.number
        if not (entry.description or "").strip() and item.description:
            entry.description = item.description
        if not (entry.sku or "").strip():
            entry.sku = item.primary_sku
        return True


class StoreDictionaryMatcher:
    """Resolve raw store tokens by store code first, then by store name."""

    def __init__(self, stores: Iterable[StoreRecord]):
        self._stores: Tuple[StoreRecord, ...] = tuple(stores)
        self._by_code: Dict[str, StoreRecord] = {}
        self._by_name: Dict[str, StoreRecord] = {}
        dups = 0
        for store in self._stores:
            code_key = normalize_store_key(store.code)
            if code_key:
                if code_key in self._by_code:
                    dups += 1
                else:
                    self._by_code[code_key] = store
            name_key = normalize_store_key(store.name)
            if name_key and name_key not in self._by_name:
                self._by_name[name_key] = store
        if dups:
            logger.warning("Store dictionary has %d duplicate codes; keeping first occurrence", dups)

    def __len__(self) -> int:
        return len(self._stores)

    @property
    def stores(self) -> Tuple[StoreRecord, ...]:
        return self._stores

    def contains(self, token: object) -> bool:
        return self.match(token) is not None

    def match(self, token: object) -> Optional[StoreRecord]:
        key = normalize_store_key(token)
        if not key:
            return None
        return self._by_code.get(key) or self._by_name.get(key)

    def enrich(self, entry: AllocationEntry) -> bool:
        """Swap the raw store token for the canonical code and name.

        The store rank is applied unless the row carried its own rank.
        Unmatched entries keep the trimmed raw token as both id and name.
        """

        token = (entry.store_id or "").strip()
        store = self.match(token)
        if store is None:
            entry.store_id = token
            if not (entry.store_name or "").strip():
                entry.store_name = token
            return False
        entry.store_id = store.code
        entry.store_name = store.name
        if not entry.rank_from_row:
            entry.rank = store.rank
        return True
