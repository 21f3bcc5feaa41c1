"""Unit tests for the reconciliation pipeline over in-memory rows."""
from allocintake.catalog import ReferenceCatalogs
from allocintake.config import PipelineConfig
from allocintake.models import RawTable, StoreRank
from allocintake.pipeline import import_pasted_text, reconcile_rows, reconcile_table


def _keys(result):
    return [(e.store_id, e.item_number, e.quantity) for e in result.entries]


def test_location_sku_units_end_to_end(item_catalogs):
    result = reconcile_rows(["Location", "SKU", "Units"], [["001", "SKU1", "10"]], catalogs=item_catalogs)
    assert len(result.entries) == 1
    e = result.entries[0]
    assert (e.store_id, e.item_number, e.quantity) == ("001", "A100", 10)
    assert e.description == "Blue Widget"
    assert e.sku == "SKU1"


def test_skips_are_counted_not_raised():
    headers = ["Store", "Item", "Qty"]
    rows = [
        ["Store", "Item", "Qty"],
        ["101", "A100", "5"],
        ["101", "B200", "0"],
        ["102", "A100", "-3"],
        ["102", "B200", ""],
        ["103", "C300", "abc"],
        ["103", "C300", "2.7"],
    ]
    result = reconcile_rows(headers, rows)
    assert _keys(result) == [("101", "A100", 5), ("103", "C300", 2)]
    assert result.skipped == {"header_echo": 1, "non_positive_quantity": 2, "missing_quantity": 2}
    assert result.skipped_count == 5
    assert result.rows_read == 7


def test_output_sorted_by_store_then_item_and_stable():
    headers = ["Store", "Item", "Qty", "Desc"]
    rows = [
        ["102", "B", "1", "first"],
        ["101", "Z", "1", ""],
        ["102", "A", "1", ""],
        ["102", "B", "2", "second"],
        ["101", "A", "1", ""],
    ]
    result = reconcile_rows(headers, rows)
    keys = [(e.store_id, e.item_number) for e in result.entries]
    assert keys == sorted(keys)
    dup = [e.description for e in result.entries if (e.store_id, e.item_number) == ("102", "B")]
    assert dup == ["first", "second"]


def test_ordinal_sort_is_case_sensitive():
    result = reconcile_rows(["Store", "Item", "Qty"], [["b", "X", "1"], ["B", "X", "1"], ["a", "X", "1"]])
    assert [e.store_id for e in result.entries] == ["B", "a", "b"]


def test_no_dictionaries_keeps_raw_tokens():
    result = reconcile_rows(["Store", "Item", "Qty"], [[" Shop 9 ", "sku1", "4"]])
    e = result.entries[0]
    assert (e.store_id, e.store_name, e.item_number) == ("Shop 9", "Shop 9", "SKU1")
    assert e.rank == StoreRank.D
    assert not result.unmatched_items and not result.unmatched_stores


def test_store_enrichment_and_rank(catalogs):
    headers = ["Store Name", "Item", "Qty"]
    rows = [["downtown", "A100", "1"], ["Harbor", "B200", "2"], ["Nowhere", "C300", "3"]]
    result = reconcile_rows(headers, rows, catalogs=catalogs)
    assert [(e.store_id, e.store_name, e.rank) for e in result.entries] == [
        ("101", "Downtown", StoreRank.A),
        ("103", "Harbor", StoreRank.C),
        ("Nowhere", "Nowhere", StoreRank.D),
    ]
    assert result.unmatched_stores == {"Nowhere": 1}


def test_rank_column_wins_over_store_rank(catalogs):
    headers = ["Store", "Item", "Qty", "Priority"]
    rows = [["101", "A100", "1", "c"], ["102", "A100", "1", "??"]]
    result = reconcile_rows(headers, rows, catalogs=catalogs)
    assert [e.rank for e in result.entries] == [StoreRank.C, StoreRank.B]


def test_description_normalized_and_unmatched_item_counted(item_catalogs):
    headers = ["Store", "Item", "Qty", "Item Description"]
    result = reconcile_rows(headers, [["101", "ZZ9", "1", " Loose   Text "]], catalogs=item_catalogs)
    e = result.entries[0]
    assert e.description == "Loose Text"
    assert result.unmatched_items == {"ZZ9": 1}


def test_existing_description_not_overwritten(item_catalogs):
    result = reconcile_rows(["Store", "Item", "Qty", "Desc"], [["101", "A100", "1", "Export text"]], catalogs=item_catalogs)
    assert result.entries[0].description == "Export text"


def test_mapping_config_used():
    cfg = PipelineConfig(header_mappings={"quantity": "Alloc"})
    result = reconcile_rows(["Store", "Item", "Qty", "Alloc"], [["101", "A100", "1", "9"]], config=cfg)
    assert result.entries[0].quantity == 9


def test_empty_table():
    result = reconcile_rows(["Store", "Item", "Qty"], [])
    assert result.entries == []
    assert result.skipped_count == 0


def test_pivot_rows_are_reconciled(catalogs):
    headers = ["Item", "101", "102", "103"]
    rows = [["SKU2", "1", "", "3"], ["total", "1", "0", "3"]]
    result = reconcile_rows(headers, rows, catalogs=catalogs)
    assert result.layout == "pivot"
    assert [(e.store_id, e.item_number, e.quantity, e.rank) for e in result.entries] == [
        ("101", "B200", 1, StoreRank.A),
        ("103", "B200", 3, StoreRank.C),
    ]


def test_pivot_detection_can_be_disabled():
    cfg = PipelineConfig(detect_pivot=False)
    result = reconcile_rows(["Item", "101", "102", "103"], [["A100", "1", "2", "3"]], config=cfg)
    assert result.layout == "long"


def test_reconcile_table_carries_source():
    table = RawTable(headers=["Store", "Item", "Qty"], rows=[["1", "A", "1"]], source="feed.csv")
    assert reconcile_table(table).source == "feed.csv"


def test_pasted_text(item_catalogs):
    res = import_pasted_text("Store\tSKU\tQty\n101\tSKU2\t4\n", catalogs=item_catalogs)
    assert res.ok
    assert [(e.store_id, e.item_number, e.quantity) for e in res.entries] == [("101", "B200", 4)]


def test_pasted_text_too_large():
    res = import_pasted_text("Store,Item,Qty\n101,A,1\n", config=PipelineConfig(max_text_chars=5))
    assert not res.ok
    assert "too large" in res.message


def test_shared_catalogs_are_not_mutated(items):
    cats = ReferenceCatalogs(items=items)
    reconcile_rows(["Store", "Item", "Qty", "Desc"], [["1", "A100", "1", "changed"]], catalogs=cats)
    assert cats.items[0].description == "Blue Widget"


def test_headerless_pasted_rows_are_not_header_echoes():
    res = import_pasted_text("1,A100,3\n2,B200,5\n")
    assert res.ok
    assert [(e.store_id, e.item_number, e.quantity) for e in res.entries] == [("1", "A100", 3), ("2", "B200", 5)]
    assert res.result.skipped_count == 0


def test_pasted_header_repeat_is_still_filtered():
    res = import_pasted_text("Store,Item,Qty\n101,A100,2\nStore,Item,Qty\n102,B200,1\n")
    assert [(e.store_id, e.item_number) for e in res.entries] == [("101", "A100"), ("102", "B200")]
    assert res.result.skipped == {"header_echo": 1}


def test_synthetic_headers_skip_echo_filter():
    table = RawTable(headers=["Column 1", "Column 2", "Column 3"], rows=[["1", "A", "3"]], synthetic_headers=True)
    result = reconcile_table(table)
    assert _keys(result) == [("1", "A", 3)]
