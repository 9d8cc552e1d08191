"""Tests for the ORM models."""

import pytest
from sqlalchemy.exc import IntegrityError

from src.models import Ingredient, Recipe, RecipeIngredient


class TestIngredient:
    def test_is_low_stock(self):
        assert Ingredient(current_stock=5, low_stock_threshold=10).is_low_stock
        assert Ingredient(current_stock=10, low_stock_threshold=10).is_low_stock
        assert not Ingredient(current_stock=11, low_stock_threshold=10).is_low_stock

    def test_no_threshold_is_never_low(self):
        assert not Ingredient(current_stock=0).is_low_stock
        assert not Ingredient(low_stock_threshold=3).is_low_stock

    def test_persisted_defaults(self, test_db):
        session = test_db()
        ingredient = Ingredient(name="Flour", unit="kg", cost_per_unit=1.2)
        session.add(ingredient)
        session.commit()

        assert ingredient.id is not None
        assert len(ingredient.uuid) == 36
        assert ingredient.created_at is not None
        assert "Flour" in repr(ingredient)
        session.close()


class TestRecipe:
    def test_to_dict_with_ingredient_lines(self, test_db, sample_catalog):
        session = test_db()
        recipe = Recipe(name="Salsa", instructions="Chop and mix everything.", cost=1.0)
        recipe.recipe_ingredients = [
            RecipeIngredient(ingredient_id=sample_catalog["Tomato"], name="Tomato", quantity=200, unit="g")
        ]
        session.add(recipe)
        session.commit()

        data = recipe.to_dict(include_relationships=True)

        assert data["name"] == "Salsa"
        assert data["dietary_tags"] == []
        assert data["nutritional_info"] is None
        assert isinstance(data["created_at"], str)
        assert data["ingredients"][0]["name"] == "Tomato"
        assert data["ingredients"][0]["quantity"] == 200
        assert not recipe.has_nutrition
        session.close()

    def test_to_dict_without_relationships(self):
        recipe = Recipe(name="Salsa", instructions="Chop and mix everything.")
        assert "ingredients" not in recipe.to_dict()


class TestCheckConstraints:
    """Database-level guards on costs and quantities."""

    def _assert_rejected(self, session, obj):
        session.add(obj)
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_negative_ingredient_cost_rejected(self, test_db):
        session = test_db()
        self._assert_rejected(session, Ingredient(name="Tomato", unit="g", cost_per_unit=-0.005))
        session.close()

    def test_missing_ingredient_cost_allowed(self, test_db):
        session = test_db()
        session.add(Ingredient(name="Water", unit="ml", cost_per_unit=None))
        session.commit()
        assert session.query(Ingredient).count() == 1
        session.close()

    def test_negative_recipe_cost_rejected(self, test_db):
        session = test_db()
        self._assert_rejected(
            session, Recipe(name="Salsa", instructions="Chop and mix everything.", cost=-2.5)
        )
        session.close()

    def test_non_positive_line_quantity_rejected(self, test_db, sample_catalog):
        session = test_db()
        recipe = Recipe(name="Salsa", instructions="Chop and mix everything.", cost=0.0)
        recipe.recipe_ingredients = [
            RecipeIngredient(ingredient_id=sample_catalog["Tomato"], name="Tomato", quantity=0, unit="g")
        ]
        self._assert_rejected(session, recipe)
        session.close()
