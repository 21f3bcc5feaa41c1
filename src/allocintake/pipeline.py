"""Reconciliation pipeline: raw table rows -> canonical allocation entries.

Order of operations (fixed):
  1. unpivot store-per-column exports (when enabled and detected)
  2. detect column roles
  3. per row: drop header echoes and rows without a positive quantity, then
     build one :class:`AllocationEntry`
  4. enrich against the item dictionary, then the store dictionary
  5. stable sort by ``(store_id, item_number)``

Per-row anomalies are counted, never raised. Only an unreadable source fails
an import.
"""
from __future__ import annotations

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .catalog import EMPTY_CATALOGS, ReferenceCatalogs
from .column_detection import build_header_index, detect_column_roles
from .config import PipelineConfig
from .header_filter import is_header_echo
from .id_normalizer import clean_cell, normalize_description, normalize_item_id
from .loader import SourceReadError, load_table, table_from_text
from .models import (
    DEFAULT_RANK,
    SKIP_HEADER_ECHO,
    SKIP_MISSING_QUANTITY,
    SKIP_NON_POSITIVE_QUANTITY,
    AllocationEntry,
    ColumnRole,
    ImportResult,
    RawTable,
    ReconciliationResult,
    StoreRank,
)
from .pivot import PIVOT_HEADERS_WITH_DESC, detect_pivot_layout, unpivot_table
from .quantity_normalizer import parse_decimal
from .standards.aliases import DESCRIPTION_ALIASES, RANK_ALIASES

logger = logging.getLogger(__name__)


def _cell_at(row: Sequence[str], idx: Optional[int]) -> str:
    if idx is None or idx >= len(row):
        return ""
    return clean_cell(row[idx])


def _alias_indices(header_index: Dict[str, int], aliases: Sequence[str]) -> List[int]:
    out: List[int] = []
    for alias in aliases:
        idx = header_index.get(alias.strip().casefold())
        if idx is not None and idx not in out:
            out.append(idx)
    return out


def _row_rank(row: Sequence[str], rank_indices: Sequence[int]) -> Optional[StoreRank]:
    for idx in rank_indices:
        rank = StoreRank.parse(_cell_at(row, idx))
        if rank is not None:
            return rank
    return None


def _row_description(row: Sequence[str], desc_index: Optional[int], fallback_indices: Sequence[int]) -> str:
    if desc_index is not None:
        return normalize_description(_cell_at(row, desc_index))
    for idx in fallback_indices:
        value = normalize_description(_cell_at(row, idx))
        if value:
            return value
    return ""


def _pivot_config(config: PipelineConfig, with_description: bool) -> PipelineConfig:
    mappings = {ColumnRole.STORE: "Store", ColumnRole.ITEM: "Item", ColumnRole.QUANTITY: "Quantity"}
    if with_description:
        mappings[ColumnRole.DESCRIPTION] = "Description"
    return config.model_copy(update={"use_content_detection": False, "header_mappings": mappings})


def reconcile_rows(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    catalogs: Optional[ReferenceCatalogs] = None,
    config: Optional[PipelineConfig] = None,
    source: Optional[str] = None,
    synthetic_headers: bool = False,
) -> ReconciliationResult:
    """Reconcile already-loaded rows into sorted, enriched allocation entries.

    With ``synthetic_headers`` there is no real header row to echo, so the
    header-echo filter is not applied.
    """
    catalogs = catalogs or EMPTY_CATALOGS
    config = config or PipelineConfig()
    headers = ["" if h is None else str(h) for h in headers]
    layout_name = "long"

    if config.detect_pivot:
        layout = detect_pivot_layout(RawTable(headers=list(headers), rows=[list(r) for r in rows[:10]]))
        if layout is not None:
            pivoted = unpivot_table(RawTable(headers=list(headers), rows=[list(r) for r in rows], source=source), layout)
            headers, rows = pivoted.headers, pivoted.rows
            synthetic_headers = False
            config = _pivot_config(config, headers == PIVOT_HEADERS_WITH_DESC)
            layout_name = "pivot"

    assignment = detect_column_roles(headers, rows, catalogs=catalogs, config=config)
    logger.info("Detected columns for %s: %s", source or "<rows>", assignment.describe())

    header_index = build_header_index(headers)
    desc_fallback = _alias_indices(header_index, DESCRIPTION_ALIASES)
    rank_indices = _alias_indices(header_index, RANK_ALIASES)

    skipped: Counter = Counter()
    entries: List[AllocationEntry] = []
    for row in rows:
        if not synthetic_headers and is_header_echo(row, headers):
            skipped[SKIP_HEADER_ECHO] += 1
            continue
        qty_value = parse_decimal(_cell_at(row, assignment.quantity_index))
        if qty_value is None:
            skipped[SKIP_MISSING_QUANTITY] += 1
            continue
        quantity = int(qty_value)
        if quantity <= 0:
            skipped[SKIP_NON_POSITIVE_QUANTITY] += 1
            continue
        store_token = _cell_at(row, assignment.store_index)
        rank = _row_rank(row, rank_indices)
        entries.append(
            AllocationEntry(
                store_id=store_token,
                store_name=store_token,
                item_number=normalize_item_id(_cell_at(row, assignment.item_index)),
                description=_row_description(row, assignment.description_index, desc_fallback),
                quantity=quantity,
                rank=rank or DEFAULT_RANK,
                rank_from_row=rank is not None,
            )
        )

    unmatched_items: Counter = Counter()
    if catalogs.has_items:
        for entry in entries:
            if not catalogs.item_matcher.enrich(entry):
                unmatched_items[entry.item_number] += 1
    unmatched_stores: Counter = Counter()
    if catalogs.has_stores:
        for entry in entries:
            if not catalogs.store_matcher.enrich(entry):
                unmatched_stores[entry.store_id] += 1

    entries.sort(key=lambda e: (e.store_id, e.item_number))

    result = ReconciliationResult(
        entries=entries,
        assignment=assignment,
        rows_read=len(rows),
        skipped=skipped,
        unmatched_items=unmatched_items,
        unmatched_stores=unmatched_stores,
        layout=layout_name,
        source=source,
    )
    logger.info(
        "Reconciled %s: %d rows read, %d entries, %d skipped %s",
        source or "<rows>",
        result.rows_read,
        len(entries),
        result.skipped_count,
        dict(skipped) if skipped else "",
    )
    if unmatched_items:
        logger.info("%d item identifiers not found in item dictionary", len(unmatched_items))
    if unmatched_stores:
        logger.info("%d store tokens not found in store dictionary", len(unmatched_stores))
    return result


def reconcile_table(
    table: RawTable,
    catalogs: Optional[ReferenceCatalogs] = None,
    config: Optional[PipelineConfig] = None,
) -> ReconciliationResult:
    return reconcile_rows(
        table.headers,
        table.rows,
        catalogs=catalogs,
        config=config,
        source=table.source,
        synthetic_headers=table.synthetic_headers,
    )


def reconcile_file(
    path: str | Path,
    catalogs: Optional[ReferenceCatalogs] = None,
    config: Optional[PipelineConfig] = None,
    sheet_name: Optional[str | int] = None,
) -> ReconciliationResult:
    """Load and reconcile one file. Raises :class:`SourceReadError` when unreadable."""
    table = load_table(path, sheet_name=sheet_name)
    return reconcile_table(table, catalogs=catalogs, config=config)


def import_allocations(
    path: str | Path,
    catalogs: Optional[ReferenceCatalogs] = None,
    config: Optional[PipelineConfig] = None,
    sheet_name: Optional[str | int] = None,
) -> ImportResult:
    """Like :func:`reconcile_file` but reports unreadable sources as a failed result."""
    try:
        result = reconcile_file(path, catalogs=catalogs, config=config, sheet_name=sheet_name)
    except SourceReadError as exc:
        logger.error("Import failed for %s: %s", path, exc)
        return ImportResult(source=str(path), error=str(exc))
    return ImportResult(source=str(path), result=result)


def import_pasted_text(
    text: str,
    catalogs: Optional[ReferenceCatalogs] = None,
    config: Optional[PipelineConfig] = None,
) -> ImportResult:
    config = config or PipelineConfig()
    try:
        table = table_from_text(text, max_chars=config.max_text_chars)
    except SourceReadError as exc:
        logger.error("Import failed for pasted text: %s", exc)
        return ImportResult(source="<pasted>", error=str(exc))
    return ImportResult(source=table.source or "<pasted>", result=reconcile_table(table, catalogs=catalogs, config=config))


def reconcile_many(
    paths: Sequence[str | Path],
    catalogs: Optional[ReferenceCatalogs] = None,
    config: Optional[PipelineConfig] = None,
    max_workers: Optional[int] = None,
) -> List[ImportResult]:
    """Import several files concurrently; results keep the input order.

    The catalogs snapshot is shared read-only between workers.
    """

    if not paths:
        return []
    workers = max_workers or min(8, len(paths))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(lambda p: import_allocations(p, catalogs=catalogs, config=config), paths))
    failed = sum(1 for r in results if not r.ok)
    logger.info("Imported %d files (%d failed)", len(results), failed)
    return results
