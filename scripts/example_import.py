"""
Example usage of the allocation import pipeline.

Loads the item/store dictionaries named in the config, imports one export
and prints the detected columns, skip counts and item totals.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from allocintake import import_allocations, load_catalogs, load_config
from allocintake.logging_utils import setup_logging
from allocintake.summary import item_totals


def main():
    config_file = "config/allocintake.example.yaml"
    input_file = sys.argv[1] if len(sys.argv) > 1 else "data/raw/allocation.csv"

    config = load_config(config_file)
    setup_logging(config.logging)

    if not Path(input_file).exists():
        print(f"Input file not found: {input_file}")
        print("Expected a csv/xlsx export such as:")
        print()
        print("Store,Item,Qty,Description")
        print("101,A100,5,Blue Widget")
        return 1

    catalogs = load_catalogs(config.catalogs.items, config.catalogs.stores) if (config.catalogs.items or config.catalogs.stores) else None
    res = import_allocations(input_file, catalogs=catalogs, config=config.pipeline)
    if not res.ok:
        print(res.message)
        return 1

    result = res.result
    print("Detected columns:", result.assignment.describe())
    print("Summary:", result.summary())
    print()
    print(item_totals(result.entries).head(20).to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
