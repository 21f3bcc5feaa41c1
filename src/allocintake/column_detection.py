"""Column role detection for allocation exports.

Assigns the store, item, quantity and description roles to column indices
using a cascade of signals. Each signal has a confidence level
(:class:`DetectionSource`); a later stage only replaces a role that is unset
or held at lower confidence:

  1. header names matched against fixed alias lists (``HEADER``)
  2. item column by dictionary hits (``DICTIONARY``)
  3. quantity column by numeric prevalence (``CONTENT_HEURISTIC``)
  4. store column by dictionary hits (``DICTIONARY``) or, without a store
     dictionary, by a digit/letter/distinctness score (``CONTENT_HEURISTIC``)
  5. explicit header mappings from configuration (``MAPPING``)
  6. positional fallback: store=0, item=1, quantity=2 (``POSITIONAL``)

Content stages only run when content detection is enabled and at least one
dictionary is supplied. Ties between columns go to the lowest index.
"""
from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional, Sequence, Set

from .catalog import ReferenceCatalogs
from .config import PipelineConfig
from .id_normalizer import normalize_item_id
from .models import ColumnRole, ColumnRoleAssignment, DetectionSource
from .quantity_normalizer import is_numeric
from .standards.aliases import ROLE_ALIASES

logger = logging.getLogger(__name__)

_STORE_CODE_RX = re.compile(r"^\d{1,4}$")
_LETTER_RX = re.compile(r"[A-Za-z]")

POSITIONAL_DEFAULTS: Dict[ColumnRole, int] = {
    ColumnRole.STORE: 0,
    ColumnRole.ITEM: 1,
    ColumnRole.QUANTITY: 2,
}


def _header_key(text: object) -> str:
    return "" if text is None else str(text).strip().casefold()


def build_header_index(headers: Sequence[str]) -> Dict[str, int]:
    """Map casefolded, trimmed header names to the first column that carries them."""
    index: Dict[str, int] = {}
    for i, h in enumerate(headers):
        key = _header_key(h)
        if key and key not in index:
            index[key] = i
    return index


def match_header_alias(headers: Sequence[str], aliases: Sequence[str], header_index: Optional[Dict[str, int]] = None) -> Optional[int]:
    """Index of the first alias (in alias order) present among the headers."""
    header_index = header_index if header_index is not None else build_header_index(headers)
    for alias in aliases:
        idx = header_index.get(_header_key(alias))
        if idx is not None:
            return idx
    return None


class _RoleState:
    """Mutable working state of the cascade for one table."""

    def __init__(self, width: int):
        self.width = width
        self.index: Dict[ColumnRole, int] = {}
        self.source: Dict[ColumnRole, DetectionSource] = {}

    def claimed_by_other(self, role: ColumnRole) -> Set[int]:
        return {idx for r, idx in self.index.items() if r != role}

    def assign(self, role: ColumnRole, idx: int, source: DetectionSource) -> bool:
        current = self.source.get(role)
        if current is not None and current > source:
            return False
        # Release lower-confidence roles sitting on the same column.
        for other, other_idx in list(self.index.items()):
            if other == role or other_idx != idx:
                continue
            if self.source[other] >= source:
                return False
            del self.index[other]
            del self.source[other]
        self.index[role] = idx
        self.source[role] = source
        return True


def _best_column(width: int, score: Callable[[int], int], exclude: Set[int] = frozenset()) -> Optional[int]:
    best_idx: Optional[int] = None
    best_score = 0
    for idx in range(width):
        if idx in exclude:
            continue
        s = score(idx)
        if s > best_score:
            best_score = s
            best_idx = idx
    return best_idx


def _column_values(sample: Sequence[Sequence[str]], idx: int) -> List[str]:
    return [str(row[idx]).strip() if idx < len(row) and row[idx] is not None else "" for row in sample]


def _item_dictionary_score(sample: Sequence[Sequence[str]], keys: Set[str]) -> Callable[[int], int]:
    def score(idx: int) -> int:
        return sum(1 for v in _column_values(sample, idx) if v and normalize_item_id(v) in keys)

    return score


def _numeric_score(sample: Sequence[Sequence[str]]) -> Callable[[int], int]:
    def score(idx: int) -> int:
        return sum(1 for v in _column_values(sample, idx) if v and is_numeric(v))

    return score


def _store_dictionary_score(sample: Sequence[Sequence[str]], catalogs: ReferenceCatalogs) -> Callable[[int], int]:
    matcher = catalogs.store_matcher

    def score(idx: int) -> int:
        return sum(1 for v in _column_values(sample, idx) if v and matcher.contains(v))

    return score


def store_heuristic_score(values: Sequence[str]) -> int:
    """Score a column as a store column without a store dictionary.

    ``3 x`` cells that look like short numeric store codes, plus ``1 x`` cells
    containing a letter, plus ``min(10, distinct values)``.
    """

    non_empty = [v.strip() for v in values if v and v.strip()]
    if not non_empty:
        return 0
    codes = sum(1 for v in non_empty if _STORE_CODE_RX.match(v))
    names = sum(1 for v in non_empty if _LETTER_RX.search(v))
    distinct = len({v.casefold() for v in non_empty})
    return 3 * codes + names + min(10, distinct)


def detect_column_roles(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    catalogs: Optional[ReferenceCatalogs] = None,
    config: Optional[PipelineConfig] = None,
) -> ColumnRoleAssignment:
    """Assign column roles for one table. Never raises; unset roles are ``None``."""
    config = config or PipelineConfig()
    headers = ["" if h is None else str(h) for h in headers]
    width = len(headers)
    state = _RoleState(width)
    header_index = build_header_index(headers)

    # 1. header names
    for role, aliases in ROLE_ALIASES.items():
        idx = match_header_alias(headers, aliases, header_index)
        if idx is not None:
            state.assign(role, idx, DetectionSource.HEADER)

    has_catalogs = catalogs is not None and not catalogs.is_empty
    if config.use_content_detection and has_catalogs and width:
        sample = list(rows[: config.sample_size])

        # 2. item column by dictionary hits
        if catalogs.has_items:
            keys = catalogs.item_matcher.lookup_keys()
            idx = _best_column(width, _item_dictionary_score(sample, keys))
            if idx is not None:
                state.assign(ColumnRole.ITEM, idx, DetectionSource.DICTIONARY)

        # 3. quantity column by numeric prevalence
        if ColumnRole.QUANTITY not in state.index:
            idx = _best_column(width, _numeric_score(sample), exclude=state.claimed_by_other(ColumnRole.QUANTITY))
            if idx is not None:
                state.assign(ColumnRole.QUANTITY, idx, DetectionSource.CONTENT_HEURISTIC)

        # 4. store column
        if catalogs.has_stores:
            idx = _best_column(width, _store_dictionary_score(sample, catalogs))
            if idx is not None:
                state.assign(ColumnRole.STORE, idx, DetectionSource.DICTIONARY)
        elif ColumnRole.STORE not in state.index:
            idx = _best_column(
                width,
                lambda i: store_heuristic_score(_column_values(sample, i)),
                exclude=state.claimed_by_other(ColumnRole.STORE),
            )
            if idx is not None:
                state.assign(ColumnRole.STORE, idx, DetectionSource.CONTENT_HEURISTIC)

    # 5. explicit mappings
    for role, header in (config.header_mappings or {}).items():
        idx = header_index.get(_header_key(header))
        if idx is None:
            logger.warning("Mapped %s column %r not found in headers; ignoring mapping", role.value, header)
            continue
        state.assign(role, idx, DetectionSource.MAPPING)

    # 6. positional fallback
    for role, idx in POSITIONAL_DEFAULTS.items():
        if role not in state.index and idx < width and idx not in state.claimed_by_other(role):
            state.assign(role, idx, DetectionSource.POSITIONAL)

    def name(role: ColumnRole) -> Optional[str]:
        idx = state.index.get(role)
        return headers[idx] if idx is not None else None

    return ColumnRoleAssignment(
        store_column=name(ColumnRole.STORE),
        item_column=name(ColumnRole.ITEM),
        quantity_column=name(ColumnRole.QUANTITY),
        description_column=name(ColumnRole.DESCRIPTION),
        store_index=state.index.get(ColumnRole.STORE),
        item_index=state.index.get(ColumnRole.ITEM),
        quantity_index=state.index.get(ColumnRole.QUANTITY),
        description_index=state.index.get(ColumnRole.DESCRIPTION),
        sources=dict(state.source),
    )
