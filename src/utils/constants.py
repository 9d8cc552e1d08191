"""
Constants for the Kitchen Costing application.

This module defines all system-wide constants including:
- Application metadata
- Validation limits for ingredients and recipes
- Ingredient string delimiters
- Import pipeline defaults (timeouts, worker counts)
"""

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Kitchen Costing"
APP_VERSION = "0.1.0"
DATABASE_VERSION = "1.0"
DATABASE_FILENAME = "kitchen_costing.db"

# ============================================================================
# Validation Limits
# ============================================================================

MIN_RECIPE_NAME_LENGTH = 3
MIN_INSTRUCTIONS_LENGTH = 10
MIN_INGREDIENT_NAME_LENGTH = 2

MAX_NAME_LENGTH = 200
MAX_URL_LENGTH = 2000

# ============================================================================
# Ingredient String Format
# ============================================================================

# "Name1:Qty1:Unit1;Name2:Qty2:Unit2"
ENTRY_SEPARATOR = ";"
FIELD_SEPARATOR = ":"
FIELDS_PER_ENTRY = 3

# Dietary tags arrive as "vegan, gluten-free"
TAG_SEPARATOR = ","

# Joins "<qty><unit> <name>" pairs in the estimator summary
SUMMARY_SEPARATOR = "; "

# ============================================================================
# Import Pipeline Defaults
# ============================================================================

DEFAULT_COMMIT_TIMEOUT_SECONDS = 15.0
DEFAULT_ESTIMATOR_TIMEOUT_SECONDS = 60.0
DEFAULT_ENRICHMENT_WORKERS = 4
DEFAULT_NUTRITION_MODEL = "gpt-4o-mini"

DUPLICATE_POLICY_LAST_WINS = "last_wins"
DUPLICATE_POLICY_REJECT = "reject"
DUPLICATE_POLICIES = (DUPLICATE_POLICY_LAST_WINS, DUPLICATE_POLICY_REJECT)

# Synthetic error entry for a failed batch commit
COMMIT_FAILURE_ROW_INDEX = -1
COMMIT_FAILURE_LABEL = "Batch commit"

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "is required"
ERROR_INVALID_NUMBER = "must be a valid number"
ERROR_INVALID_POSITIVE = "must be greater than zero"
ERROR_INVALID_NON_NEGATIVE = "must be zero or greater"
ERROR_INVALID_INTEGER = "must be a whole number zero or greater"
ERROR_INVALID_URL = "must be a valid http(s) URL"

ERROR_MALFORMED_ENTRY = "malformed entry: '{segment}', expected Name:Quantity:Unit"
ERROR_INVALID_QUANTITY = "invalid quantity '{raw}' for ingredient '{name}'"
ERROR_NO_VALID_INGREDIENTS = "no valid ingredients could be parsed"
ERROR_INGREDIENT_NOT_FOUND = "Ingredient '{name}' not found in catalog"
ERROR_INGREDIENT_NEGATIVE_COST = "Ingredient '{name}' has a negative catalog cost"
ERROR_INGREDIENT_AMBIGUOUS = (
    "Ingredient '{name}' is ambiguous: {count} catalog entries share this name"
)
ERROR_COMMIT_FAILED = "failed to save recipe batch: {reason}"
