"""
CLI for ingredient catalog import.

Adds catalog ingredients (name, unit, costPerUnit, ...) from a JSON array
or a CSV file (header row). Invalid rows are reported and skipped; valid
rows are saved together in one atomic write.

Usage:
    python -m src.utils.import_catalog ingredients.csv
    python -m src.utils.import_catalog ingredients.json --verbose

Exit Codes:
    0 - Success (all rows imported)
    1 - Partial success (some rows failed)
    2 - Complete failure (no rows imported, or critical error)
    3 - Invalid arguments or unreadable file
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from src.services.database import close_connections, initialize_app_database
from src.services.exceptions import CatalogImportError, DatabaseError
from src.services.ingredient_service import IngredientBatchResult, add_ingredients_batch
from src.services.logging_utils import configure_logging
from src.utils.import_recipes import (
    EXIT_FAILURE,
    EXIT_INVALID_ARGS,
    EXIT_PARTIAL,
    EXIT_SUCCESS,
    load_rows,
)


def get_exit_code(result: IngredientBatchResult) -> int:
    """
    Determine exit code based on batch result.

    Returns:
        Exit code: 0=success, 1=partial, 2=failure
    """
    if not result.success or result.count == 0:
        return EXIT_FAILURE
    if result.errors:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def get_summary(result: IngredientBatchResult, verbose: bool = False) -> str:
    """Generate user-friendly summary for CLI display."""
    lines = [
        "=" * 60,
        "Ingredient Import Summary",
        "=" * 60,
        f"  Imported: {result.count}",
        f"  Failed:   {len([e for e in result.errors if e.index >= 0])}",
    ]

    errors = result.errors if verbose else result.errors[:10]
    if errors:
        lines.append("\nErrors:")
        for error in errors:
            where = "batch" if error.index < 0 else f"row {error.index}"
            lines.append(f"  - [{where}] {error.message}")
        if len(result.errors) > len(errors):
            lines.append(f"  ... and {len(result.errors) - len(errors)} more errors")

    lines.append("=" * 60)
    return "\n".join(lines)


def main(args=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="import_catalog",
        description="Add ingredients to the costing catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ingredients.csv              # Import all valid rows
  %(prog)s ingredients.json --verbose   # Show every row error

Exit Codes:
  0 - Success (all rows imported)
  1 - Partial success (some rows failed)
  2 - Complete failure (no rows imported)
  3 - Invalid arguments or unreadable file
        """,
    )

    parser.add_argument(
        "file",
        help="Path to ingredients .json or .csv file",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed output for each row",
    )

    parsed_args = parser.parse_args(args)

    configure_logging(logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        rows = load_rows(parsed_args.file)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_ARGS
    except CatalogImportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_ARGS

    try:
        initialize_app_database()
        result = add_ingredients_batch(rows)
        print(get_summary(result, verbose=parsed_args.verbose))
        return get_exit_code(result)

    except DatabaseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    finally:
        close_connections()


if __name__ == "__main__":
    sys.exit(main())
