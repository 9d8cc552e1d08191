"""
Recipe Service - single recipe management.

This service provides:
- Creating one recipe from catalog ingredient ids
- Recipe lookup and listing

Costing and the enrichment summary follow the same rules as the batch
import: cost is the sum of quantity x catalog cost_per_unit, with no unit
conversion, and nutrition enrichment is fired only after the commit.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from src.models import Ingredient, Recipe
from src.services.catalog_index import CatalogEntry
from src.services.database import session_scope
from src.services.enrichment_dispatcher import (
    EnrichmentDispatcher,
    EnrichmentJob,
    get_enrichment_dispatcher,
)
from src.services.exceptions import (
    DatabaseError,
    IngredientNotFound,
    RecipeNotFound,
    ValidationError,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.services.row_validator import RecipeDraft, ResolvedIngredient, finite_cost, format_quantity
from src.services.stores import draft_to_model
from src.utils.constants import SUMMARY_SEPARATOR
from src.utils.validators import (
    coerce_text,
    is_blank,
    parse_optional_int,
    sanitize_string,
    split_tags,
    validate_positive_number,
    validate_recipe_data,
    validate_required_string,
)

logger = get_service_logger(__name__)


def _validate_ingredient_lines(ingredients_data: List[Dict[str, Any]]) -> List[str]:
    errors = []
    if not ingredients_data:
        errors.append("ingredients: at least one ingredient is required")
    for position, line in enumerate(ingredients_data or [], start=1):
        label = f"ingredient {position}"
        if line.get("ingredient_id") is None:
            errors.append(f"{label} ingredient_id: is required")
        is_valid, error = validate_positive_number(line.get("quantity"), f"{label} quantity")
        if not is_valid:
            errors.append(error)
        is_valid, error = validate_required_string(coerce_text(line.get("unit")), f"{label} unit")
        if not is_valid:
            errors.append(error)
    return errors


def build_recipe_draft(
    recipe_data: Dict[str, Any], lines: List[Dict[str, Any]], catalog: Dict[int, CatalogEntry]
) -> RecipeDraft:
    """
    Build a costed draft from validated recipe fields and ingredient lines.

    Args:
        recipe_data: Recipe fields (snake_case)
        lines: Ingredient lines with ingredient_id, quantity and unit
        catalog: Catalog entries by id; every line's id must be present

    Returns:
        RecipeDraft ready to be persisted
    """
    resolved = []
    summary_parts = []
    cost = 0.0
    for line in lines:
        entry = catalog[line["ingredient_id"]]
        quantity = float(line["quantity"])
        unit = coerce_text(line["unit"]).strip()
        resolved.append(ResolvedIngredient(entry.id, entry.name, quantity, unit))
        summary_parts.append(f"{format_quantity(quantity)}{unit} {entry.name}")
        cost += quantity * (entry.cost_per_unit or 0.0)

    prep_time = recipe_data.get("prep_time")
    return RecipeDraft(
        name=sanitize_string(recipe_data.get("name")),
        instructions=coerce_text(recipe_data.get("instructions")).strip(),
        ingredients=tuple(resolved),
        cost=finite_cost(cost),
        dietary_tags=tuple(split_tags(recipe_data.get("dietary_tags"))),
        ingredient_summary=SUMMARY_SEPARATOR.join(summary_parts),
        category=sanitize_string(recipe_data.get("category")),
        prep_time=None if is_blank(prep_time) else parse_optional_int(prep_time),
        cuisine=sanitize_string(recipe_data.get("cuisine")),
        image_url=sanitize_string(recipe_data.get("image_url")),
    )


def create_recipe(
    recipe_data: Dict[str, Any],
    ingredients_data: List[Dict[str, Any]],
    dispatcher: Optional[EnrichmentDispatcher] = None,
) -> Recipe:
    """
    Create a new recipe with ingredient lines.

    Args:
        recipe_data: Recipe fields: name, instructions required; category,
            prep_time, cuisine, image_url, dietary_tags optional
        ingredients_data: List of dicts with ingredient_id, quantity, unit
        dispatcher: Enrichment dispatcher (default: the global dispatcher)

    Returns:
        Created Recipe instance (with ingredient lines loaded)

    Raises:
        ValidationError: If recipe or ingredient data is invalid
        IngredientNotFound: If an ingredient id is not in the catalog
        DatabaseError: If database operation fails
    """
    _, recipe_errors = validate_recipe_data(recipe_data)
    errors = list(recipe_errors) + _validate_ingredient_lines(ingredients_data)
    if errors:
        raise ValidationError(errors)

    try:
        with session_scope() as session:
            catalog = {}
            for line in ingredients_data:
                ingredient_id = line["ingredient_id"]
                ingredient = session.get(Ingredient, ingredient_id)
                if ingredient is None:
                    raise IngredientNotFound(ingredient_id)
                catalog[ingredient_id] = CatalogEntry.from_model(ingredient)

            draft = build_recipe_draft(recipe_data, ingredients_data, catalog)
            recipe = draft_to_model(draft)
            session.add(recipe)
            session.flush()
            session.refresh(recipe)
            # Load lines before the session closes
            _ = recipe.recipe_ingredients
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create recipe", e)

    log_operation(
        logger,
        operation="create_recipe",
        outcome="created",
        record_id=recipe.id,
        recipe_name=recipe.name,
        cost=recipe.cost,
    )

    if dispatcher is None:
        dispatcher = get_enrichment_dispatcher()
    if dispatcher is not None:
        dispatcher.fire(EnrichmentJob(recipe.id, draft.name, draft.ingredient_summary))
    else:
        log_operation(
            logger,
            operation="create_recipe",
            outcome="enrichment_disabled",
            level=logging.DEBUG,
            record_id=recipe.id,
        )

    return recipe


def get_recipe(recipe_id: int) -> Recipe:
    """
    Retrieve a recipe by ID, with its ingredient lines.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = session.get(Recipe, recipe_id)
            if recipe is None:
                raise RecipeNotFound(recipe_id)
            _ = recipe.recipe_ingredients
            return recipe
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve recipe {recipe_id}", e)


def list_recipes() -> List[Recipe]:
    """List all recipes ordered by name."""
    try:
        with session_scope() as session:
            return session.query(Recipe).order_by(Recipe.name).all()
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to list recipes", e)
