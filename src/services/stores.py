"""
Catalog and record stores used by the recipe import pipeline.

The pipeline only talks to these two interfaces:

- CatalogStore.list_all(): full catalog snapshot
- RecordStore.create_all(drafts): atomic multi-recipe create
- RecordStore.update_one(record_id, nutritional_info): independent
  single-recipe update, applied later by the enrichment dispatcher

The Sql* implementations run on the application database through
session_scope(), one transaction per call.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

from sqlalchemy.exc import SQLAlchemyError

from src.models import Ingredient, Recipe, RecipeIngredient
from src.services.catalog_index import CatalogEntry
from src.services.database import session_scope
from src.services.exceptions import DatabaseError, RecipeNotFound
from src.services.row_validator import RecipeDraft


class CatalogStore(ABC):
    """Read access to the ingredient catalog."""

    @abstractmethod
    def list_all(self) -> List[CatalogEntry]:
        """Return every catalog entry."""


class RecordStore(ABC):
    """Write access to recipe records."""

    @abstractmethod
    def create_all(self, drafts: Sequence[RecipeDraft]) -> List[int]:
        """
        Create all drafts in one atomic write.

        Returns:
            New record ids, in draft order, once the write is durable

        Raises:
            DatabaseError: If anything fails; nothing is committed
        """

    @abstractmethod
    def update_one(self, record_id: int, nutritional_info: Dict[str, Any]) -> None:
        """
        Set nutritional_info on a single record.

        Raises:
            RecipeNotFound: If the record doesn't exist
            DatabaseError: If the update fails
        """


class SqlCatalogStore(CatalogStore):
    """CatalogStore backed by the ingredients table."""

    def list_all(self) -> List[CatalogEntry]:
        try:
            with session_scope() as session:
                rows = session.query(Ingredient).order_by(Ingredient.id).all()
                return [CatalogEntry.from_model(row) for row in rows]
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to read ingredient catalog", e)


def draft_to_model(draft: RecipeDraft) -> Recipe:
    """Build an unsaved Recipe (with ingredient lines) from a draft."""
    recipe = Recipe(
        name=draft.name,
        instructions=draft.instructions,
        category=draft.category,
        prep_time=draft.prep_time,
        cuisine=draft.cuisine,
        image_url=draft.image_url,
        dietary_tags=list(draft.dietary_tags),
        cost=draft.cost,
    )
    recipe.recipe_ingredients = [
        RecipeIngredient(
            ingredient_id=line.catalog_id,
            name=line.name,
            quantity=line.quantity,
            unit=line.unit,
        )
        for line in draft.ingredients
    ]
    return recipe


class SqlRecordStore(RecordStore):
    """RecordStore backed by the recipes and recipe_ingredients tables."""

    def create_all(self, drafts: Sequence[RecipeDraft]) -> List[int]:
        if not drafts:
            return []
        try:
            with session_scope() as session:
                recipes = [draft_to_model(draft) for draft in drafts]
                session.add_all(recipes)
                session.flush()
                ids = [recipe.id for recipe in recipes]
            # Ids are only handed out after session_scope() has committed
            return ids
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to create {len(drafts)} recipe(s)", e)

    def update_one(self, record_id: int, nutritional_info: Dict[str, Any]) -> None:
        try:
            with session_scope() as session:
                recipe = session.get(Recipe, record_id)
                if recipe is None:
                    raise RecipeNotFound(record_id)
                recipe.nutritional_info = dict(nutritional_info)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to update recipe {record_id}", e)
