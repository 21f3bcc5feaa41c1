"""Command-line entry point: import allocation exports and write a combined file."""
from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .catalog import load_catalogs
from .config import AppConfig, load_config
from .logging_utils import setup_logging
from .models import AllocationEntry
from .pipeline import reconcile_many
from .summary import write_entries


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Reconcile allocation exports against item and store dictionaries")
    p.add_argument("inputs", nargs="+", help="Allocation export files (csv, tsv, txt, xlsx)")
    p.add_argument("--config", default=None, help="Path to a YAML config file")
    p.add_argument("--items", default=None, help="Item catalog (csv, xlsx or json); overrides config")
    p.add_argument("--stores", default=None, help="Store catalog (csv, xlsx or json); overrides config")
    p.add_argument("--output", default=None, help="Write combined entries to this .csv or .xlsx file")
    p.add_argument("--workers", type=int, default=None, help="Number of files imported in parallel")
    p.add_argument("--no-content-detection", action="store_true", help="Detect columns by header names only")
    return p


def run(args: argparse.Namespace) -> int:
    config: AppConfig = load_config(args.config)
    logger = setup_logging(config.logging)

    pipeline_cfg = config.pipeline
    if args.no_content_detection:
        pipeline_cfg = pipeline_cfg.model_copy(update={"use_content_detection": False})

    catalogs = load_catalogs(
        items_path=args.items or config.catalogs.items,
        stores_path=args.stores or config.catalogs.stores,
    )
    results = reconcile_many(args.inputs, catalogs=catalogs, config=pipeline_cfg, max_workers=args.workers)

    combined: List[AllocationEntry] = []
    for res in results:
        if res.ok:
            logger.info(res.message)
            combined.extend(res.entries)
        else:
            logger.error(res.message)
    combined.sort(key=lambda e: (e.store_id, e.item_number))

    if args.output:
        write_entries(combined, args.output)
    return 0 if all(r.ok for r in results) else 1


def main(argv: Optional[List[str]] = None) -> None:
    args = build_arg_parser().parse_args(argv)
    sys.exit(run(args))


if __name__ == "__main__":  # pragma: no cover
    main()
