"""Unit tests for column role detection."""
from allocintake.catalog import ReferenceCatalogs
from allocintake.column_detection import (
    build_header_index,
    detect_column_roles,
    match_header_alias,
    store_heuristic_score,
)
from allocintake.config import PipelineConfig
from allocintake.models import ColumnRole, DetectionSource
from allocintake.standards.aliases import QUANTITY_ALIASES, STORE_ALIASES


class TestHeaderMatching:
    def test_alias_priority_beats_column_order(self):
        headers = ["Location", "Store Name"]
        # "Store Name" is earlier in the alias list than "Location"
        assert match_header_alias(headers, STORE_ALIASES) == 1

    def test_case_and_whitespace_insensitive(self):
        assert match_header_alias(["  qty  "], QUANTITY_ALIASES) == 0

    def test_no_substring_matching_for_roles(self):
        assert match_header_alias(["Store Number"], STORE_ALIASES) is None

    def test_duplicate_header_resolves_to_first(self):
        assert build_header_index(["Qty", "Item", "QTY"])["qty"] == 0

    def test_header_only_detection(self):
        a = detect_column_roles(["Store", "Item No", "Quantity", "Desc"], [["101", "A100", "5", "x"]])
        assert (a.store_index, a.item_index, a.quantity_index, a.description_index) == (0, 1, 2, 3)
        assert a.store_column == "Store"
        assert a.sources[ColumnRole.ITEM] == DetectionSource.HEADER


class TestPositionalFallback:
    def test_unknown_headers_fall_back_to_positions(self):
        a = detect_column_roles(["A", "B", "C", "D"], [["1", "2", "3", "4"]])
        assert (a.store_index, a.item_index, a.quantity_index) == (0, 1, 2)
        assert a.description_index is None
        assert a.sources[ColumnRole.QUANTITY] == DetectionSource.POSITIONAL

    def test_fallback_only_for_existing_columns(self):
        a = detect_column_roles(["A", "B"], [["1", "2"]])
        assert a.store_index == 0
        assert a.item_index == 1
        assert a.quantity_index is None

    def test_empty_headers(self):
        a = detect_column_roles([], [])
        assert a.store_index is None and a.item_index is None and a.quantity_index is None


class TestContentDetection:
    def test_item_dictionary_overrides_header(self, item_catalogs):
        headers = ["Store", "Item", "Code", "Qty"]
        rows = [["101", "junk", "SKU1", "5"], ["102", "junk", "B200", "3"]]
        a = detect_column_roles(headers, rows, catalogs=item_catalogs)
        assert a.item_index == 2
        assert a.sources[ColumnRole.ITEM] == DetectionSource.DICTIONARY

    def test_location_sku_units_scenario(self, item_catalogs):
        a = detect_column_roles(["Location", "SKU", "Units"], [["001", "SKU1", "10"]], catalogs=item_catalogs)
        assert (a.store_index, a.item_index, a.quantity_index) == (0, 1, 2)

    def test_quantity_by_numeric_prevalence(self, item_catalogs):
        headers = ["Store", "Item", "Col X", "Col Y"]
        rows = [["101", "A100", "n/a", "4"], ["102", "B200", "n/a", "7"]]
        a = detect_column_roles(headers, rows, catalogs=item_catalogs)
        assert a.quantity_index == 3
        assert a.sources[ColumnRole.QUANTITY] == DetectionSource.CONTENT_HEURISTIC

    def test_quantity_header_not_overridden_by_numbers(self, item_catalogs):
        headers = ["Store", "Item", "Qty", "Other"]
        rows = [["101", "A100", "", "4"], ["102", "B200", "2", "7"]]
        a = detect_column_roles(headers, rows, catalogs=item_catalogs)
        assert a.quantity_index == 2

    def test_store_dictionary_by_name(self, catalogs):
        headers = ["Branch", "Item", "Qty"]
        rows = [["Downtown", "A100", "1"], ["uptown", "B200", "2"]]
        a = detect_column_roles(headers, rows, catalogs=catalogs)
        assert a.store_index == 0
        assert a.sources[ColumnRole.STORE] == DetectionSource.DICTIONARY

    def test_store_heuristic_without_store_dictionary(self, item_catalogs):
        headers = ["Item", "Site", "Qty"]
        rows = [["A100", "101", "5"], ["B200", "102", "6"], ["A100", "103", "2"]]
        a = detect_column_roles(headers, rows, catalogs=item_catalogs)
        assert a.item_index == 0
        assert a.quantity_index == 2
        assert a.store_index == 1
        assert a.sources[ColumnRole.STORE] == DetectionSource.CONTENT_HEURISTIC

    def test_ties_go_to_lowest_index(self, item_catalogs):
        headers = ["X", "Y", "Z"]
        rows = [["A100", "A100", "1"], ["B200", "B200", "2"]]
        a = detect_column_roles(headers, rows, catalogs=item_catalogs)
        assert a.item_index == 0

    def test_content_detection_needs_a_dictionary(self):
        headers = ["Item", "Site", "Col X", "Col Y"]
        rows = [["A100", "101", "n/a", "5"]]
        a = detect_column_roles(headers, rows)
        # No dictionary: header names plus positional only
        assert a.item_index == 0
        assert a.store_index is None or a.store_index != 0
        assert a.quantity_index == 2

    def test_content_detection_can_be_disabled(self, item_catalogs):
        headers = ["Store", "Item", "Code", "Qty"]
        rows = [["101", "junk", "SKU1", "5"]]
        cfg = PipelineConfig(use_content_detection=False)
        a = detect_column_roles(headers, rows, catalogs=item_catalogs, config=cfg)
        assert a.item_index == 1

    def test_sample_size_limits_rows_considered(self, item_catalogs):
        headers = ["X", "Y", "Qty"]
        rows = [["A100", "zz", "1"]] + [["zz", "B200", "1"]] * 5
        a = detect_column_roles(headers, rows, catalogs=item_catalogs, config=PipelineConfig(sample_size=1))
        assert a.item_index == 0

    def test_deterministic(self, catalogs):
        headers = ["Branch", "Code", "Units", "Note"]
        rows = [["Harbor", "SKU2", "3", "x"], ["101", "A100", "1", "y"]]
        first = detect_column_roles(headers, rows, catalogs=catalogs)
        second = detect_column_roles(list(headers), [list(r) for r in rows], catalogs=catalogs)
        assert first == second


class TestMappings:
    def test_mapping_overrides_detection(self, item_catalogs):
        headers = ["Store", "Item", "Code", "Qty", "Alloc Qty"]
        rows = [["101", "junk", "SKU1", "5", "9"]]
        cfg = PipelineConfig(header_mappings={"quantity": "Alloc Qty", "item": "item"})
        a = detect_column_roles(headers, rows, catalogs=item_catalogs, config=cfg)
        assert a.quantity_index == 4
        assert a.item_index == 1
        assert a.sources[ColumnRole.QUANTITY] == DetectionSource.MAPPING

    def test_missing_mapped_header_is_ignored(self):
        cfg = PipelineConfig(header_mappings={"store": "Nope"})
        a = detect_column_roles(["Store", "Item", "Qty"], [["1", "2", "3"]], config=cfg)
        assert a.store_index == 0
        assert a.sources[ColumnRole.STORE] == DetectionSource.HEADER

    def test_mapping_releases_role_on_same_column(self):
        cfg = PipelineConfig(header_mappings={"quantity": "Store"})
        a = detect_column_roles(["Store", "Item", "Other"], [["5", "A100", "x"]], config=cfg)
        assert a.quantity_index == 0
        assert a.store_index != 0


def test_store_heuristic_score():
    assert store_heuristic_score(["101", "102", "101"]) == 3 * 3 + 0 + 2
    assert store_heuristic_score(["Downtown", "Uptown"]) == 0 + 2 + 2
    assert store_heuristic_score(["", " "]) == 0
