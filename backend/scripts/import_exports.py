"""
Script to import customs export spreadsheets from disk.

Usage:
    python scripts/import_exports.py <file> [<file> ...] --category fruits
"""
import argparse
import logging
import sys
import os
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from tradeintel.db.database import SessionLocal, engine, Base
from tradeintel import models  # noqa: F401
from tradeintel.services.importer import ImportOptions, import_file


def import_exports(paths, category, identity_strategy="random", per_row_commit=False):
    """Import each file and print its summary."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    results = {}

    try:
        for path in paths:
            path = Path(path)
            if not path.exists():
                print(f"✗ File not found: {path}")
                continue

            print(f"Importing {path} as {category}...")
            options = ImportOptions(
                identity_strategy=identity_strategy,
                defer_commit=not per_row_commit,
            )
            try:
                summary = import_file(db, path.read_bytes(), path.name, category, options)
            except ValueError as e:
                db.rollback()
                print(f"✗ {path.name}: {e}")
                continue

            results[path.name] = summary
            print(
                f"✓ {path.name}: {summary.inserted} inserted, {summary.skipped} skipped "
                f"({summary.duplicates} duplicates, {summary.failed} failed, {summary.no_id} no ID)"
            )
            if summary.inserted == 0:
                print(f"  Columns found: {', '.join(summary.columns_found)}")

        print("\n" + "="*50)
        print("Import Summary:")
        print("="*50)
        for name, summary in results.items():
            print(f"{name}: {summary.inserted}/{summary.total_rows} rows (batch: {summary.upload_batch})")
    finally:
        db.close()

    return results


def main(argv=None):
    parser = argparse.ArgumentParser(description="Import customs export spreadsheets")
    parser.add_argument("files", nargs="+", help="xlsx/xls/csv files to import")
    parser.add_argument("--category", required=True, help="category tag, e.g. fruits or vegetables")
    parser.add_argument(
        "--identity",
        choices=["random", "digest"],
        default="random",
        help="how to key rows that have no declaration id",
    )
    parser.add_argument(
        "--per-row-commit",
        action="store_true",
        help="commit after every inserted row instead of once per file",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    results = import_exports(args.files, args.category, args.identity, args.per_row_commit)
    return 0 if results else 1


if __name__ == "__main__":
    sys.exit(main())
