"""
Input validation functions for the Kitchen Costing application.

This module provides validation functions for all user inputs including:
- Numeric validation (positive, non-negative, whole numbers)
- String validation (required, minimum and maximum length)
- URL validation
- Whole-record validation for recipes and catalog ingredients

Validators return (is_valid, error_message) tuples rather than raising, so
callers can collect every problem in a record before reporting.
"""

import math
from typing import Any, List, Optional, Tuple
from urllib.parse import urlparse

from .constants import (
    MAX_NAME_LENGTH,
    MAX_URL_LENGTH,
    MIN_INGREDIENT_NAME_LENGTH,
    MIN_INSTRUCTIONS_LENGTH,
    MIN_RECIPE_NAME_LENGTH,
    TAG_SEPARATOR,
    ERROR_REQUIRED_FIELD,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_POSITIVE,
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_INTEGER,
    ERROR_INVALID_URL,
)


def coerce_text(value: Any) -> Optional[str]:
    """
    Convert a raw cell value to a string, keeping None as None.

    Spreadsheet decoders hand over numbers for numeric-looking cells; the
    validators only deal in text.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


def is_blank(value: Any) -> bool:
    """True for None and for strings that are empty after stripping."""
    return value is None or (isinstance(value, str) and value.strip() == "")


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a string field is not empty.

    Args:
        value: The string value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if is_blank(value):
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    return True, ""


def validate_min_length(
    value: Optional[str], min_length: int, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a string has at least min_length characters after trimming.

    Args:
        value: The string value to validate
        min_length: Minimum number of characters
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None or len(value.strip()) < min_length:
        return False, f"{field_name}: must be at least {min_length} characters"
    return True, ""


def validate_string_length(
    value: Optional[str], max_length: int, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a string doesn't exceed maximum length.

    Args:
        value: The string value to validate
        max_length: Maximum allowed length
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value and len(value) > max_length:
        return False, f"{field_name}: must be {max_length} characters or less"
    return True, ""


def _to_finite_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        num_value = float(value)
    except (ValueError, TypeError):
        return None
    if not math.isfinite(num_value):
        return None
    return num_value


def validate_positive_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a finite positive number (> 0).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    num_value = _to_finite_float(value)
    if num_value is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if num_value <= 0:
        return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
    return True, ""


def validate_non_negative_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a finite non-negative number (>= 0).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    num_value = _to_finite_float(value)
    if num_value is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if num_value < 0:
        return False, f"{field_name}: {ERROR_INVALID_NON_NEGATIVE}"
    return True, ""


def parse_optional_int(value: Any) -> Optional[int]:
    """
    Parse a whole number from an int, an integral float or a numeric string.

    Returns:
        The integer, or None when the value is blank or not a whole number
    """
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    num_value = _to_finite_float(value.strip() if isinstance(value, str) else value)
    if num_value is None or not num_value.is_integer():
        return None
    return int(num_value)


def validate_non_negative_integer(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a whole number zero or greater.

    Args:
        value: The value to validate (int, integral float or numeric string)
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    parsed = parse_optional_int(value)
    if parsed is None or parsed < 0:
        return False, f"{field_name}: {ERROR_INVALID_INTEGER}"
    return True, ""


def validate_url(value: Optional[str], field_name: str = "URL") -> Tuple[bool, str]:
    """
    Validate an absolute http(s) URL.

    Args:
        value: The URL string to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str) or len(value) > MAX_URL_LENGTH or any(c.isspace() for c in value):
        return False, f"{field_name}: {ERROR_INVALID_URL}"
    try:
        parsed = urlparse(value)
    except ValueError:
        return False, f"{field_name}: {ERROR_INVALID_URL}"
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False, f"{field_name}: {ERROR_INVALID_URL}"
    return True, ""


def validate_recipe_data(data: dict) -> Tuple[bool, list]:
    """
    Validate the scalar fields of a recipe.

    Expects snake_case keys: name, instructions, prep_time, image_url.
    Error messages use the import column names (name, instructions,
    prepTime, imageUrl) since that is what users see in their files.

    Args:
        data: Dictionary containing recipe fields

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    name = coerce_text(data.get("name"))
    is_valid, error = validate_required_string(name, "name")
    if not is_valid:
        errors.append(error)
    else:
        for is_valid, error in (
            validate_min_length(name, MIN_RECIPE_NAME_LENGTH, "name"),
            validate_string_length(name.strip(), MAX_NAME_LENGTH, "name"),
        ):
            if not is_valid:
                errors.append(error)

    instructions = coerce_text(data.get("instructions"))
    is_valid, error = validate_required_string(instructions, "instructions")
    if not is_valid:
        errors.append(error)
    else:
        is_valid, error = validate_min_length(instructions, MIN_INSTRUCTIONS_LENGTH, "instructions")
        if not is_valid:
            errors.append(error)

    # Optional, blank means absent
    prep_time = data.get("prep_time")
    if not is_blank(prep_time):
        is_valid, error = validate_non_negative_integer(prep_time, "prepTime")
        if not is_valid:
            errors.append(error)

    image_url = coerce_text(data.get("image_url"))
    if not is_blank(image_url):
        is_valid, error = validate_url(image_url.strip(), "imageUrl")
        if not is_valid:
            errors.append(error)

    return len(errors) == 0, errors


def validate_ingredient_data(data: dict) -> Tuple[bool, list]:
    """
    Validate all fields for a catalog ingredient.

    Args:
        data: Dictionary containing ingredient fields (name, unit,
            cost_per_unit, and optional current_stock, low_stock_threshold)

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    name = coerce_text(data.get("name"))
    is_valid, error = validate_required_string(name, "name")
    if not is_valid:
        errors.append(error)
    else:
        for is_valid, error in (
            validate_min_length(name, MIN_INGREDIENT_NAME_LENGTH, "name"),
            validate_string_length(name.strip(), MAX_NAME_LENGTH, "name"),
        ):
            if not is_valid:
                errors.append(error)

    is_valid, error = validate_required_string(coerce_text(data.get("unit")), "unit")
    if not is_valid:
        errors.append(error)

    is_valid, error = validate_positive_number(data.get("cost_per_unit"), "costPerUnit")
    if not is_valid:
        errors.append(error)

    for key, label in (("low_stock_threshold", "lowStockThreshold"), ("current_stock", "currentStock")):
        if not is_blank(data.get(key)):
            is_valid, error = validate_non_negative_number(data.get(key), label)
            if not is_valid:
                errors.append(error)

    return len(errors) == 0, errors


def sanitize_string(value: Any) -> Optional[str]:
    """
    Sanitize a value by stripping whitespace and converting empty strings to None.

    Args:
        value: The value to sanitize

    Returns:
        Sanitized string or None
    """
    text = coerce_text(value)
    if text is None:
        return None
    stripped = text.strip()
    return stripped if stripped else None


def parse_decimal(value: Any, default: float = 0.0) -> float:
    """
    Safely parse a value to a finite float.

    Args:
        value: The value to parse
        default: Default value if parsing fails

    Returns:
        Parsed float value or default
    """
    if value is None:
        return default
    num_value = _to_finite_float(value)
    return default if num_value is None else num_value


def split_tags(value: Any) -> List[str]:
    """
    Split a comma-separated tag string, trimming and dropping empty entries.

    Example:
        >>> split_tags(" vegan, ,gluten-free ")
        ['vegan', 'gluten-free']
    """
    text = coerce_text(value)
    if not text:
        return []
    return [tag.strip() for tag in text.split(TAG_SEPARATOR) if tag.strip()]
