"""Core record types shared by the detection, matching and pipeline modules."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class StoreRank(str, Enum):
    """Coarse store priority tier. A is the highest priority, D the lowest."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"

    @classmethod
    def parse(cls, value: object) -> Optional["StoreRank"]:
        if value is None:
            return None
        token = str(value).strip().upper()
        if not token:
            return None
        try:
            return cls(token)
        except ValueError:
            return None


DEFAULT_RANK = StoreRank.D


class ColumnRole(str, Enum):
    STORE = "store"
    ITEM = "item"
    QUANTITY = "quantity"
    DESCRIPTION = "description"


class DetectionSource(int, Enum):
    """How a column role was assigned, ordered by confidence."""

    POSITIONAL = 1
    CONTENT_HEURISTIC = 2
    HEADER = 3
    DICTIONARY = 4
    MAPPING = 5


@dataclass(frozen=True)
class DictionaryItem:
    number: str
    description: str = ""
    skus: Tuple[str, ...] = ()

    @property
    def primary_sku(self) -> Optional[str]:
        for sku in self.skus:
            if sku and sku.strip():
                return sku
        return None


@dataclass(frozen=True)
class StoreRecord:
    code: str
    name: str
    rank: StoreRank = DEFAULT_RANK


@dataclass
class AllocationEntry:
    """One canonical allocation line.

    ``quantity`` must be strictly positive; rows that would produce anything
    else are filtered out before an entry is built.
    """

    store_id: str
    store_name: str
    item_number: str
    description: str
    quantity: int
    rank: StoreRank = DEFAULT_RANK
    sku: Optional[str] = None
    rank_from_row: bool = field(default=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError(f"AllocationEntry quantity must be positive, got {self.quantity}")

    def sort_key(self) -> Tuple[str, str]:
        return (self.store_id, self.item_number)

    def to_record(self) -> Dict[str, object]:
        return {
            "Location": self.store_id,
            "Location Name": self.store_name,
            "Item Number": self.item_number,
            "Description": self.description,
            "Quantity": self.quantity,
            "SKU": self.sku or "",
            "Rank": self.rank.value,
        }


@dataclass(frozen=True)
class ColumnRoleAssignment:
    """Result of column role detection for one table.

    Header names are kept for reporting; indices are what the pipeline uses,
    since exports can repeat a header name.
    """

    store_column: Optional[str] = None
    item_column: Optional[str] = None
    quantity_column: Optional[str] = None
    description_column: Optional[str] = None
    store_index: Optional[int] = None
    item_index: Optional[int] = None
    quantity_index: Optional[int] = None
    description_index: Optional[int] = None
    sources: Dict[ColumnRole, DetectionSource] = field(default_factory=dict)

    def index_for(self, role: ColumnRole) -> Optional[int]:
        return {
            ColumnRole.STORE: self.store_index,
            ColumnRole.ITEM: self.item_index,
            ColumnRole.QUANTITY: self.quantity_index,
            ColumnRole.DESCRIPTION: self.description_index,
        }[role]

    def column_for(self, role: ColumnRole) -> Optional[str]:
        return {
            ColumnRole.STORE: self.store_column,
            ColumnRole.ITEM: self.item_column,
            ColumnRole.QUANTITY: self.quantity_column,
            ColumnRole.DESCRIPTION: self.description_column,
        }[role]

    def describe(self) -> str:
        parts = []
        for role in ColumnRole:
            idx = self.index_for(role)
            if idx is None:
                parts.append(f"{role.value}=<unset>")
                continue
            src = self.sources.get(role)
            label = src.name.lower() if src is not None else "?"
            parts.append(f"{role.value}={self.column_for(role)!r}[{idx}] ({label})")
        return ", ".join(parts)


@dataclass
class RawTable:
    headers: List[str]
    rows: List[List[str]]
    source: Optional[str] = None
    # True when headers were generated (``Column 1..n``) rather than read
    synthetic_headers: bool = False

    def __len__(self) -> int:
        return len(self.rows)


# Skip reasons recorded in ReconciliationResult.skipped
SKIP_HEADER_ECHO = "header_echo"
SKIP_MISSING_QUANTITY = "missing_quantity"
SKIP_NON_POSITIVE_QUANTITY = "non_positive_quantity"


@dataclass
class ReconciliationResult:
    entries: List[AllocationEntry]
    assignment: ColumnRoleAssignment
    rows_read: int = 0
    skipped: Counter = field(default_factory=Counter)
    unmatched_items: Counter = field(default_factory=Counter)
    unmatched_stores: Counter = field(default_factory=Counter)
    layout: str = "long"
    source: Optional[str] = None

    @property
    def skipped_count(self) -> int:
        return int(sum(self.skipped.values()))

    @property
    def total_quantity(self) -> int:
        return sum(e.quantity for e in self.entries)

    def summary(self) -> Dict[str, object]:
        return {
            "source": self.source,
            "layout": self.layout,
            "rows_read": self.rows_read,
            "entries": len(self.entries),
            "skipped": dict(self.skipped),
            "unmatched_items": len(self.unmatched_items),
            "unmatched_stores": len(self.unmatched_stores),
            "total_quantity": self.total_quantity,
        }


@dataclass
class ImportResult:
    """Outcome of importing a single source. Failures carry ``error`` instead of a result."""

    source: str
    result: Optional[ReconciliationResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None

    @property
    def entries(self) -> List[AllocationEntry]:
        return list(self.result.entries) if self.result is not None else []

    @property
    def message(self) -> str:
        if self.ok and self.result is not None:
            return f"Imported {len(self.result.entries)} allocation rows from {self.source}"
        return self.error or f"Failed to import {self.source}"
