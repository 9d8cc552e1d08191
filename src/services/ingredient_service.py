"""
Ingredient Service - catalog management for costing ingredients.

This service provides:
- Single ingredient creation with validation
- Lookup and listing
- Batch creation with per-row errors and one atomic commit

Usage:
    from src.services import ingredient_service

    ingredient = ingredient_service.create_ingredient(
        {"name": "Tomato", "unit": "g", "cost_per_unit": 0.005}
    )
    result = ingredient_service.add_ingredients_batch(rows)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from src.models import Ingredient
from src.services.database import session_scope
from src.services.exceptions import DatabaseError, IngredientNotFound, ValidationError
from src.services.logging_utils import get_service_logger, log_operation
from src.utils.validators import is_blank, parse_decimal, sanitize_string, validate_ingredient_data

logger = get_service_logger(__name__)

# Input column name -> Ingredient attribute
_INGREDIENT_KEY_ALIASES = {
    "name": "name",
    "unit": "unit",
    "costPerUnit": "cost_per_unit",
    "cost_per_unit": "cost_per_unit",
    "category": "category",
    "supplier": "supplier",
    "allergen": "allergen",
    "description": "description",
    "currentStock": "current_stock",
    "current_stock": "current_stock",
    "lowStockThreshold": "low_stock_threshold",
    "low_stock_threshold": "low_stock_threshold",
}

_NUMERIC_FIELDS = ("cost_per_unit", "current_stock", "low_stock_threshold")


@dataclass
class IngredientBatchError:
    """One rejected row of a batch (index -1 for batch-level failures)."""

    index: int
    message: str
    data: Optional[Dict[str, Any]] = None


@dataclass
class IngredientBatchResult:
    """Result of add_ingredients_batch()."""

    success: bool
    count: int
    errors: List[IngredientBatchError] = field(default_factory=list)
    ingredient_ids: List[int] = field(default_factory=list)


def normalize_ingredient_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map camelCase or snake_case keys to Ingredient attribute names."""
    normalized = {}
    for key, value in data.items():
        attr = _INGREDIENT_KEY_ALIASES.get(key)
        if attr is not None and attr not in normalized:
            normalized[attr] = value
    return normalized


def _build_ingredient(data: Dict[str, Any]) -> Ingredient:
    return Ingredient(
        name=sanitize_string(data.get("name")),
        unit=sanitize_string(data.get("unit")),
        cost_per_unit=parse_decimal(data.get("cost_per_unit")),
        category=sanitize_string(data.get("category")),
        supplier=sanitize_string(data.get("supplier")),
        allergen=sanitize_string(data.get("allergen")),
        description=sanitize_string(data.get("description")),
        current_stock=None
        if is_blank(data.get("current_stock"))
        else parse_decimal(data.get("current_stock")),
        low_stock_threshold=None
        if is_blank(data.get("low_stock_threshold"))
        else parse_decimal(data.get("low_stock_threshold")),
    )


def create_ingredient(ingredient_data: Dict[str, Any]) -> Ingredient:
    """
    Create a new catalog ingredient.

    Args:
        ingredient_data: Dictionary with ingredient fields (camelCase or
            snake_case): name, unit, cost_per_unit required

    Returns:
        Created Ingredient instance

    Raises:
        ValidationError: If data validation fails
        DatabaseError: If database operation fails
    """
    data = normalize_ingredient_data(ingredient_data)
    is_valid, errors = validate_ingredient_data(data)
    if not is_valid:
        raise ValidationError(errors)

    try:
        with session_scope() as session:
            ingredient = _build_ingredient(data)
            session.add(ingredient)
            session.flush()
            session.refresh(ingredient)
            return ingredient
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create ingredient", e)


def get_ingredient(ingredient_id: int) -> Ingredient:
    """
    Retrieve an ingredient by ID.

    Raises:
        IngredientNotFound: If ingredient doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            ingredient = session.get(Ingredient, ingredient_id)
            if ingredient is None:
                raise IngredientNotFound(ingredient_id)
            return ingredient
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve ingredient {ingredient_id}", e)


def list_ingredients(search: Optional[str] = None) -> List[Ingredient]:
    """
    List catalog ingredients ordered by name.

    Args:
        search: Optional case-insensitive substring filter on name

    Returns:
        List of Ingredient instances
    """
    try:
        with session_scope() as session:
            query = session.query(Ingredient)
            if search:
                query = query.filter(Ingredient.name.ilike(f"%{search.strip()}%"))
            return query.order_by(Ingredient.name).all()
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to list ingredients", e)


def add_ingredients_batch(rows: List[Dict[str, Any]]) -> IngredientBatchResult:
    """
    Create many catalog ingredients in one atomic commit.

    Unparsable numeric cells count as 0 (so a blank cost is then rejected
    as not positive). Invalid rows are reported and skipped; valid rows
    are committed together or not at all.

    Args:
        rows: Ingredient dictionaries (camelCase or snake_case keys)

    Returns:
        IngredientBatchResult with count of created ingredients and
        per-row errors
    """
    valid: List[Dict[str, Any]] = []
    errors: List[IngredientBatchError] = []

    for index, raw in enumerate(rows):
        data = normalize_ingredient_data(raw)
        for key in _NUMERIC_FIELDS:
            data[key] = parse_decimal(data.get(key))
        is_valid, messages = validate_ingredient_data(data)
        if is_valid:
            valid.append(data)
        else:
            errors.append(
                IngredientBatchError(index, "Validation failed: " + ", ".join(messages), dict(raw))
            )

    if not valid:
        log_operation(
            logger,
            operation="add_ingredients_batch",
            outcome="nothing_to_commit",
            level=logging.WARNING,
            error_count=len(errors),
        )
        if not errors:
            errors = [IngredientBatchError(-1, "No valid ingredients were processed")]
        return IngredientBatchResult(success=False, count=0, errors=errors)

    try:
        with session_scope() as session:
            ingredients = [_build_ingredient(data) for data in valid]
            session.add_all(ingredients)
            session.flush()
            ids = [ingredient.id for ingredient in ingredients]
    except SQLAlchemyError as e:
        log_operation(
            logger,
            operation="add_ingredients_batch",
            outcome="commit_failed",
            level=logging.ERROR,
            error=str(e),
        )
        batch_error = IngredientBatchError(-1, "Failed to save the ingredient batch to the database")
        return IngredientBatchResult(success=False, count=0, errors=[batch_error] + errors)

    log_operation(
        logger,
        operation="add_ingredients_batch",
        outcome="committed",
        count=len(ids),
        error_count=len(errors),
    )
    return IngredientBatchResult(success=True, count=len(ids), errors=errors, ingredient_ids=ids)
