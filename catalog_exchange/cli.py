"""Command-line interface for catalog export and import."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path to allow imports when run as script
sys.path.insert(0, str(Path(__file__).parent.parent))

__all__ = ["main", "parse_args", "run_export", "run_import", "show_stats"]

from catalog_exchange.config import DB_PATH, EXPORT_DIR
from catalog_exchange.errors import ExchangeError
from catalog_exchange.logging_config import setup_logging
from catalog_exchange.report import error_report_frame, summarize_import
from catalog_exchange.schema import ENTITY_KINDS, get_columns
from catalog_exchange.store import (
    SqliteCatalogGateway,
    get_product_count,
    get_variant_count,
    init_db,
    load_snapshot,
)
from catalog_exchange.transport import FileSystemTransport
from catalog_exchange.workflows import export_catalog, import_payloads, reconcile


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Bulk catalog exchange: products/variants CSV export and import",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export the catalog database to data/exports/products.csv (+ variants.csv)
  python -m catalog_exchange.cli --export data/exports

  # Export with browser-style timestamped names
  python -m catalog_exchange.cli --export data/exports --timestamped

  # Check an import without touching the database
  python -m catalog_exchange.cli --import products.csv variants.csv

  # Import and apply (upsert by product id)
  python -m catalog_exchange.cli --import products.csv variants.csv --apply

  # Show the columns of the variants file
  python -m catalog_exchange.cli --list-columns variant
        """,
    )

    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument(
        "--export",
        metavar="DIR",
        nargs="?",
        const=EXPORT_DIR,
        help=f"Export the catalog to DIR (default: {EXPORT_DIR})",
    )
    action.add_argument(
        "--import",
        dest="import_files",
        metavar="FILE",
        nargs="+",
        help="Import one or more products/variants CSV files",
    )
    action.add_argument(
        "--stats",
        action="store_true",
        help="Show catalog database statistics and exit",
    )
    action.add_argument(
        "--list-columns",
        metavar="KIND",
        choices=list(ENTITY_KINDS),
        help=f"List the columns of one file kind and exit. Choices: {list(ENTITY_KINDS)}",
    )

    parser.add_argument(
        "--db",
        default=DB_PATH,
        help=f"SQLite catalog database path (default: {DB_PATH})",
    )
    parser.add_argument(
        "--timestamped",
        action="store_true",
        help="Use products_export_<ms>.csv style names for --export",
    )
    parser.add_argument(
        "--apply",
        action="store_true",
        help="With --import: reconcile the drafts into the database",
    )
    parser.add_argument(
        "--keep-error-rows",
        action="store_true",
        help="With --apply: also write rows that had cell errors (best-effort values)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level (default: INFO)",
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Don't write JSONL log files",
    )

    return parser.parse_args(argv)


def run_export(db_path: str, directory: str, timestamped: bool = False) -> List[str]:
    init_db(db_path)
    snapshot = load_snapshot(db_path)
    locations = export_catalog(snapshot, FileSystemTransport(directory), timestamped=timestamped)
    for location in locations:
        print(f"Wrote {location}")
    return locations


def run_import(paths: List[str], db_path: str, apply: bool = False, keep_error_rows: bool = False) -> int:
    """Import files and print what was found. Returns the process exit code."""
    payloads = []
    for path in paths:
        payloads.append((path, Path(path).read_bytes()))

    result = import_payloads(payloads)

    print(f"\n{'='*50}")
    print(f"Product drafts: {len(result.products)}")
    print(f"Attached variants: {sum(len(p.variants) for p in result.products)}")
    print(f"Problems: {result.errors.total}")
    print(f"{'='*50}")

    if result.products:
        print(summarize_import(result).to_string(index=False))

    if not result.errors.is_empty:
        print("\nProblems:")
        print(error_report_frame(result.errors).to_string(index=False))

    if apply:
        gateway = SqliteCatalogGateway(db_path, skip_rows_with_errors=not keep_error_rows)
        outcomes = reconcile(result, gateway)
        print("\nApplied:")
        for outcome in outcomes:
            print(f"  {outcome.product_id}: {outcome.action} ({outcome.variants} variants)")

    return 1 if result.errors.schema_errors else 0


def show_stats(db_path: str) -> None:
    """Display catalog database statistics."""
    init_db(db_path)

    print(f"\n{'='*50}")
    print(f"Database: {db_path}")
    print(f"{'='*50}")
    print(f"\nProducts: {get_product_count(db_path)}")
    print(f"Variants: {get_variant_count(db_path)}")
    print()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)
    setup_logging(level=getattr(logging, args.log_level), log_to_file=not args.no_log_file)

    if args.list_columns:
        for column in get_columns(args.list_columns):
            print(f"  {column.name}: {column.codec}")
        return 0

    if args.stats:
        show_stats(args.db)
        return 0

    try:
        if args.export:
            run_export(args.db, args.export, timestamped=args.timestamped)
            return 0
        return run_import(args.import_files, args.db, apply=args.apply, keep_error_rows=args.keep_error_rows)
    except (ExchangeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
