import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from allocintake.catalog import ReferenceCatalogs  # noqa: E402
from allocintake.models import DictionaryItem, StoreRank, StoreRecord  # noqa: E402


@pytest.fixture
def items():
    return (
        DictionaryItem(number="A100", description="Blue Widget", skus=("SKU1", "SKU-1B")),
        DictionaryItem(number="B200", description="Red Gadget", skus=("SKU2",)),
        DictionaryItem(number="C300", description="", skus=()),
    )


@pytest.fixture
def stores():
    return (
        StoreRecord(code="101", name="Downtown", rank=StoreRank.A),
        StoreRecord(code="102", name="Uptown", rank=StoreRank.B),
        StoreRecord(code="103", name="Harbor", rank=StoreRank.C),
    )


@pytest.fixture
def catalogs(items, stores):
    return ReferenceCatalogs(items=items, stores=stores)


@pytest.fixture
def item_catalogs(items):
    return ReferenceCatalogs(items=items)
