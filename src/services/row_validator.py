"""
Row Validator & Costing Engine.

Turns one raw import row into either a committable RecipeDraft or a list of
error messages. Every problem in the row is reported together (field
errors, parse errors, unknown ingredients), so a user can fix a row in
one pass. A row with any error is rejected in full.

Usage:
    from src.services.row_validator import ImportRow, validate_row

    outcome = validate_row(0, ImportRow.from_dict(raw), catalog_index)
    if outcome.accepted:
        drafts.append(outcome.draft)
"""

import math
from dataclasses import dataclass, field
from functools import reduce
from typing import Any, Dict, List, Mapping, Optional, Tuple

from src.services.catalog_index import CatalogIndex
from src.services.ingredient_parser import ParsedIngredient, parse_ingredients_string
from src.utils.constants import (
    ERROR_INGREDIENT_AMBIGUOUS,
    ERROR_INGREDIENT_NEGATIVE_COST,
    ERROR_INGREDIENT_NOT_FOUND,
    ERROR_NO_VALID_INGREDIENTS,
    ERROR_REQUIRED_FIELD,
    SUMMARY_SEPARATOR,
)
from src.utils.validators import (
    coerce_text,
    is_blank,
    parse_optional_int,
    sanitize_string,
    split_tags,
    validate_recipe_data,
)


# ============================================================================
# Data Classes
# ============================================================================

# Input column name -> ImportRow attribute
_ROW_KEY_ALIASES = {
    "name": "name",
    "instructions": "instructions",
    "ingredientsString": "ingredients_string",
    "ingredients_string": "ingredients_string",
    "category": "category",
    "prepTime": "prep_time",
    "prep_time": "prep_time",
    "cuisine": "cuisine",
    "imageUrl": "image_url",
    "image_url": "image_url",
    "dietaryTags": "dietary_tags",
    "dietary_tags": "dietary_tags",
}


@dataclass(frozen=True)
class ImportRow:
    """
    One recipe to import, as decoded from the source file.

    Values are kept as they arrived (strings, numbers or None); validation
    does all coercion.
    """

    name: Any = None
    instructions: Any = None
    ingredients_string: Any = None
    category: Any = None
    prep_time: Any = None
    cuisine: Any = None
    image_url: Any = None
    dietary_tags: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ImportRow":
        """
        Build a row from a dict with camelCase or snake_case keys.

        Unknown keys are ignored.
        """
        values = {}
        for key, value in data.items():
            attr = _ROW_KEY_ALIASES.get(key)
            if attr is not None and attr not in values:
                values[attr] = value
        return cls(**values)


@dataclass(frozen=True)
class ResolvedIngredient:
    """An ingredient line matched to a catalog entry."""

    catalog_id: int
    name: str
    quantity: float
    unit: str


@dataclass(frozen=True)
class RecipeDraft:
    """A validated recipe waiting for the batch commit."""

    name: str
    instructions: str
    ingredients: Tuple[ResolvedIngredient, ...]
    cost: float
    dietary_tags: Tuple[str, ...] = ()
    ingredient_summary: str = ""
    category: Optional[str] = None
    prep_time: Optional[int] = None
    cuisine: Optional[str] = None
    image_url: Optional[str] = None


@dataclass(frozen=True)
class ImportErrorDetail:
    """Why one input row was not imported."""

    row_index: int
    recipe_name: str
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row_index": self.row_index,
            "recipe_name": self.recipe_name,
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class RowOutcome:
    """Result of validating one row: a draft, or the reasons it has none."""

    row_index: int
    recipe_name: str
    draft: Optional[RecipeDraft]
    errors: Tuple[str, ...]

    @property
    def accepted(self) -> bool:
        return self.draft is not None

    def to_error_detail(self) -> ImportErrorDetail:
        return ImportErrorDetail(self.row_index, self.recipe_name, list(self.errors))


@dataclass(frozen=True)
class Costing:
    """Accumulator for the ingredient resolution fold."""

    resolved: Tuple[ResolvedIngredient, ...] = ()
    errors: Tuple[str, ...] = ()
    cost: float = 0.0
    summary_parts: Tuple[str, ...] = ()

    @property
    def summary(self) -> str:
        return SUMMARY_SEPARATOR.join(self.summary_parts)


# ============================================================================
# Costing
# ============================================================================


def format_quantity(quantity: float) -> str:
    """Render a quantity for the estimator summary: 500.0 -> "500", 0.25 -> "0.25"."""
    if float(quantity).is_integer():
        return str(int(quantity))
    return repr(float(quantity))


def _resolve_step(catalog_index: CatalogIndex):
    def step(acc: Costing, item: ParsedIngredient) -> Costing:
        if catalog_index.is_ambiguous(item.name):
            message = ERROR_INGREDIENT_AMBIGUOUS.format(
                name=item.name, count=catalog_index.duplicate_count(item.name)
            )
            return Costing(acc.resolved, acc.errors + (message,), acc.cost, acc.summary_parts)

        entry = catalog_index.lookup(item.name)
        if entry is None:
            message = ERROR_INGREDIENT_NOT_FOUND.format(name=item.name)
            return Costing(acc.resolved, acc.errors + (message,), acc.cost, acc.summary_parts)

        if entry.cost_per_unit is not None and entry.cost_per_unit < 0:
            message = ERROR_INGREDIENT_NEGATIVE_COST.format(name=entry.name)
            return Costing(acc.resolved, acc.errors + (message,), acc.cost, acc.summary_parts)

        resolved = ResolvedIngredient(
            catalog_id=entry.id,
            name=entry.name,
            quantity=item.quantity,
            unit=item.unit,
        )
        # Quantity is multiplied straight into the base-unit cost; no unit conversion
        unit_cost = entry.cost_per_unit if entry.cost_per_unit is not None else 0.0
        return Costing(
            resolved=acc.resolved + (resolved,),
            errors=acc.errors,
            cost=acc.cost + item.quantity * unit_cost,
            summary_parts=acc.summary_parts
            + (f"{format_quantity(item.quantity)}{item.unit} {entry.name}",),
        )

    return step


def cost_ingredients(
    ingredients: Tuple[ParsedIngredient, ...], catalog_index: CatalogIndex
) -> Costing:
    """
    Resolve parsed ingredients against the catalog and total their cost.

    Args:
        ingredients: Parsed (name, quantity, unit) triples
        catalog_index: Lookup built for this import

    Returns:
        Costing with resolved lines, resolution errors, raw cost and summary
    """
    return reduce(_resolve_step(catalog_index), ingredients, Costing())


def finite_cost(cost: float) -> float:
    """Coerce non-finite or negative totals to 0.0."""
    return cost if math.isfinite(cost) and cost >= 0 else 0.0


# ============================================================================
# Row Validation
# ============================================================================


def row_label(row_index: int, name: Any) -> str:
    """Best-effort name for reports: the recipe name, else the file row number."""
    label = sanitize_string(name)
    # Row 1 of the source file is the header
    return label if label else f"Row {row_index + 2}"


def validate_row(row_index: int, row: ImportRow, catalog_index: CatalogIndex) -> RowOutcome:
    """
    Validate, resolve and cost one import row.

    Args:
        row_index: 0-based position of the row in the input
        row: The raw row
        catalog_index: Catalog lookup for this import

    Returns:
        RowOutcome with a draft when the row is clean, otherwise every
        error found in the row

    Raises:
        TypeError: If catalog_index is None
    """
    if catalog_index is None:
        raise TypeError("validate_row() requires a catalog index, got None")

    is_valid, field_errors = validate_recipe_data(
        {
            "name": row.name,
            "instructions": row.instructions,
            "prep_time": row.prep_time,
            "image_url": row.image_url,
        }
    )
    errors: List[str] = list(field_errors)

    ingredients_text = coerce_text(row.ingredients_string)
    if not ingredients_text:
        errors.append(f"ingredientsString: {ERROR_REQUIRED_FIELD}")

    parsed = parse_ingredients_string(ingredients_text)
    errors.extend(parsed.errors)
    if ingredients_text and parsed.is_empty:
        errors.append(ERROR_NO_VALID_INGREDIENTS)

    costing = cost_ingredients(parsed.ingredients, catalog_index)
    errors.extend(costing.errors)

    recipe_name = row_label(row_index, row.name)
    if errors:
        return RowOutcome(row_index, recipe_name, None, tuple(errors))

    draft = RecipeDraft(
        name=sanitize_string(row.name),
        instructions=coerce_text(row.instructions).strip(),
        ingredients=costing.resolved,
        cost=finite_cost(costing.cost),
        dietary_tags=tuple(split_tags(row.dietary_tags)),
        ingredient_summary=costing.summary,
        category=sanitize_string(row.category),
        prep_time=None if is_blank(row.prep_time) else parse_optional_int(row.prep_time),
        cuisine=sanitize_string(row.cuisine),
        image_url=sanitize_string(row.image_url),
    )
    return RowOutcome(row_index, recipe_name, draft, ())
