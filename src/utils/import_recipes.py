"""
CLI for recipe batch import.

Imports recipes from a JSON array or a CSV file (header row) and costs
them against the ingredient catalog. Accepted rows are saved in one
atomic write; nutrition enrichment runs in the background afterwards.

Usage:
    python -m src.utils.import_recipes recipes.csv
    python -m src.utils.import_recipes recipes.json --no-enrich
    python -m src.utils.import_recipes recipes.csv --wait-enrichment 120 --verbose

Exit Codes:
    0 - Success (all rows imported)
    1 - Partial success (some rows failed)
    2 - Complete failure (nothing imported, or the batch write failed)
    3 - Invalid arguments or unreadable file
"""

import argparse
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from src.services.database import close_connections, initialize_app_database
from src.services.enrichment_dispatcher import (
    get_enrichment_dispatcher,
    shutdown_enrichment_dispatcher,
)
from src.services.exceptions import CatalogImportError, DatabaseError
from src.services.logging_utils import configure_logging
from src.services.recipe_import_service import ImportResult, import_recipes


# Exit code constants
EXIT_SUCCESS = 0
EXIT_PARTIAL = 1
EXIT_FAILURE = 2
EXIT_INVALID_ARGS = 3


def load_rows(file_path: str) -> List[Dict[str, Any]]:
    """
    Read import rows from a .json or .csv file.

    JSON files must hold an array of objects. CSV files must have a header
    row; every following line becomes one row keyed by the header.

    Args:
        file_path: Path to the file

    Returns:
        List of row dictionaries, in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        CatalogImportError: If the file type or content shape is wrong
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    suffix = path.suffix.lower()
    if suffix == ".json":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise CatalogImportError(f"Invalid JSON in {file_path}: {e}")
        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            raise CatalogImportError(f"{file_path} must contain a JSON array of objects")
        return data

    if suffix == ".csv":
        # utf-8-sig drops the BOM spreadsheet exports add
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)
            if not reader.fieldnames:
                raise CatalogImportError(f"{file_path} has no header row")
            return [dict(row) for row in reader]

    raise CatalogImportError(f"Unsupported file type '{suffix}': expected .json or .csv")


def get_exit_code(result: ImportResult) -> int:
    """
    Determine exit code based on import result.

    Returns:
        Exit code: 0=success, 1=partial, 2=failure
    """
    if result.commit_failed:
        return EXIT_FAILURE
    if result.has_errors:
        if result.imported_count > 0:
            return EXIT_PARTIAL
        return EXIT_FAILURE
    return EXIT_SUCCESS


def print_verbose_details(result: ImportResult) -> None:
    """Print every row error and the new record ids."""
    if result.errors:
        print("\nFailed Rows:")
        for detail in result.errors:
            print(f"  - [{detail.row_index}] {detail.recipe_name}")
            for message in detail.errors:
                print(f"      {message}")

    if result.record_ids:
        print("\nCreated Recipe IDs:")
        print("  " + ", ".join(str(record_id) for record_id in result.record_ids))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="import_recipes",
        description="Import and cost a batch of recipes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s recipes.csv                        # Import, enrich in background
  %(prog)s recipes.json --no-enrich           # Skip nutrition enrichment
  %(prog)s recipes.csv --wait-enrichment 120  # Wait up to 2 min for enrichment

Exit Codes:
  0 - Success (all rows imported)
  1 - Partial success (some rows failed)
  2 - Complete failure (nothing imported)
  3 - Invalid arguments or unreadable file
        """,
    )

    parser.add_argument(
        "file",
        help="Path to recipes .json or .csv file",
    )

    parser.add_argument(
        "--no-enrich",
        action="store_true",
        help="Do not request nutrition estimates for imported recipes",
    )

    parser.add_argument(
        "--wait-enrichment",
        type=float,
        default=0.0,
        metavar="SECONDS",
        help="Wait up to SECONDS for background enrichment before exiting (default: 0)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed output for each row",
    )

    return parser


def main(args=None):
    """Main CLI entry point."""
    parser = build_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.wait_enrichment < 0:
        print("Error: --wait-enrichment must be zero or greater", file=sys.stderr)
        return EXIT_INVALID_ARGS

    configure_logging(logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        rows = load_rows(parsed_args.file)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_ARGS
    except CatalogImportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_ARGS

    enrich = not parsed_args.no_enrich

    try:
        initialize_app_database()
        result = import_recipes(rows, enrich=enrich)

        print(result.get_summary())
        if parsed_args.verbose:
            print_verbose_details(result)

        if enrich and result.record_ids and parsed_args.wait_enrichment > 0:
            dispatcher = get_enrichment_dispatcher()
            if dispatcher is not None:
                print(f"Waiting up to {parsed_args.wait_enrichment:g}s for nutrition enrichment...")
                if not dispatcher.wait(timeout=parsed_args.wait_enrichment):
                    print("Enrichment still running; unfinished recipes keep no nutrition data")

        return get_exit_code(result)

    except DatabaseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    finally:
        shutdown_enrichment_dispatcher(wait=False, cancel_pending=True)
        close_connections()


if __name__ == "__main__":
    sys.exit(main())
