"""
allocintake: reconcile third-party allocation exports into canonical records.

Column roles are inferred from header names and cell content, rows are
cleaned and normalized, and identifiers are linked to the item and store
dictionaries before the result is sorted by store and item.
"""

from .catalog import ReferenceCatalogs, load_catalogs, load_item_catalog, load_store_catalog
from .column_detection import detect_column_roles
from .config import AppConfig, PipelineConfig, load_config
from .header_filter import is_header_echo
from .id_normalizer import normalize_item_id
from .loader import SourceReadError, load_table, table_from_text
from .matchers import ItemDictionaryMatcher, StoreDictionaryMatcher
from .models import (
    AllocationEntry,
    ColumnRole,
    ColumnRoleAssignment,
    DictionaryItem,
    ImportResult,
    RawTable,
    ReconciliationResult,
    StoreRank,
    StoreRecord,
)
from .pipeline import (
    import_allocations,
    import_pasted_text,
    reconcile_file,
    reconcile_many,
    reconcile_rows,
    reconcile_table,
)
from .quantity_normalizer import parse_quantity

__all__ = [
    "AllocationEntry",
    "AppConfig",
    "ColumnRole",
    "ColumnRoleAssignment",
    "DictionaryItem",
    "ImportResult",
    "ItemDictionaryMatcher",
    "PipelineConfig",
    "RawTable",
    "ReconciliationResult",
    "ReferenceCatalogs",
    "SourceReadError",
    "StoreDictionaryMatcher",
    "StoreRank",
    "StoreRecord",
    "detect_column_roles",
    "import_allocations",
    "import_pasted_text",
    "is_header_echo",
    "load_catalogs",
    "load_config",
    "load_item_catalog",
    "load_store_catalog",
    "load_table",
    "normalize_item_id",
    "parse_quantity",
    "reconcile_file",
    "reconcile_many",
    "reconcile_rows",
    "reconcile_table",
    "table_from_text",
]
