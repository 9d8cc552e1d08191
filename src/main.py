"""
Main entry point for the Kitchen Costing command-line tool.

Dispatches to the import commands:

    kitchen-costing recipes recipes.csv [--no-enrich] [--wait-enrichment SECONDS]
    kitchen-costing ingredients ingredients.csv
    kitchen-costing info
"""

import argparse
import sys

from src.utils import import_catalog, import_recipes
from src.utils.config import get_config


COMMANDS = {
    "recipes": import_recipes.main,
    "ingredients": import_catalog.main,
}


def print_info() -> int:
    """Print version and configuration details."""
    config = get_config()
    print(f"{config.app_name} v{config.app_version}")
    print(f"Environment: {config.environment}")
    print(f"Database: {config.database_url}")
    print(f"Catalog duplicate policy: {config.duplicate_policy}")
    if config.enrichment_enabled:
        print(f"Nutrition estimator: {config.nutrition_api_url} ({config.nutrition_model})")
    else:
        print("Nutrition estimator: disabled (set NUTRITION_API_URL to enable)")
    return 0


def main(args=None) -> int:
    """
    Main application entry point.

    Returns:
        Exit code of the selected command
    """
    parser = argparse.ArgumentParser(
        prog="kitchen-costing",
        description="Recipe batch import and costing",
    )
    parser.add_argument(
        "command",
        choices=sorted(COMMANDS) + ["info"],
        help="recipes: import recipes; ingredients: import catalog; info: show configuration",
    )
    parser.add_argument("command_args", nargs=argparse.REMAINDER)

    parsed_args = parser.parse_args(args)

    if parsed_args.command == "info":
        return print_info()
    return COMMANDS[parsed_args.command](parsed_args.command_args)


if __name__ == "__main__":
    sys.exit(main())
