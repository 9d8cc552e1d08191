"""
Recipe models for costed recipes.

This module contains:
- Recipe: Main recipe model with metadata, stored cost and nutrition estimate
- RecipeIngredient: Junction table linking recipes to catalog ingredients
"""

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    Text,
    ForeignKey,
    Index,
    JSON,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class Recipe(BaseModel):
    """
    Recipe model representing a costed recipe.

    Attributes:
        name: Recipe name (required)
        instructions: Preparation instructions (required)
        category: Recipe category (e.g., "Soup", "Dessert")
        prep_time: Preparation time in minutes
        cuisine: Cuisine (e.g., "Italian")
        image_url: Optional image URL
        dietary_tags: List of free-text tags (e.g., ["vegan", "gluten-free"])
        cost: Sum of quantity x catalog cost_per_unit at creation time
        nutritional_info: Estimated nutrition, absent until enrichment succeeds
    """

    __tablename__ = "recipes"

    name = Column(String(200), nullable=False, index=True)
    instructions = Column(Text, nullable=False)
    category = Column(String(100), nullable=True)
    prep_time = Column(Integer, nullable=True)
    cuisine = Column(String(100), nullable=True)
    image_url = Column(String(2000), nullable=True)
    dietary_tags = Column(JSON, nullable=False, default=list)

    cost = Column(Float, nullable=False, default=0.0)

    # Written once, after the recipe is committed
    nutritional_info = Column(JSON, nullable=True)

    recipe_ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="RecipeIngredient.id",
    )

    __table_args__ = (
        Index("idx_recipe_name", "name"),
        Index("idx_recipe_category", "category"),
        CheckConstraint("cost >= 0", name="ck_recipe_cost_non_negative"),
    )

    def __repr__(self) -> str:
        """String representation of recipe."""
        return f"Recipe(id={self.id}, name='{self.name}', cost={self.cost})"

    @property
    def has_nutrition(self) -> bool:
        return self.nutritional_info is not None

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert recipe to dictionary.

        Args:
            include_relationships: If True, include ingredient lines

        Returns:
            Dictionary representation
        """
        result = super().to_dict(include_relationships=False)
        if include_relationships:
            result["ingredients"] = [ri.to_dict() for ri in self.recipe_ingredients]
        return result


class RecipeIngredient(BaseModel):
    """
    Junction table linking recipes to catalog ingredients with quantities.

    The unit is stored as written in the recipe; it is never converted to
    the catalog entry's base unit.

    Attributes:
        recipe_id: Foreign key to Recipe
        ingredient_id: Foreign key to Ingredient (catalog entry)
        name: Catalog name at resolution time
        quantity: Amount used (positive)
        unit: Unit as written in the recipe
    """

    __tablename__ = "recipe_ingredients"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="RESTRICT"), nullable=False
    )

    name = Column(String(200), nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(50), nullable=False)

    recipe = relationship("Recipe", back_populates="recipe_ingredients")
    ingredient = relationship("Ingredient", back_populates="recipe_ingredients")

    __table_args__ = (
        Index("idx_recipe_ingredient_recipe", "recipe_id"),
        Index("idx_recipe_ingredient_ingredient", "ingredient_id"),
        CheckConstraint("quantity > 0", name="ck_recipe_ingredient_quantity_positive"),
    )

    def __repr__(self) -> str:
        """String representation of recipe ingredient."""
        return (
            f"RecipeIngredient(recipe_id={self.recipe_id}, "
            f"ingredient_id={self.ingredient_id}, "
            f"quantity={self.quantity}, unit='{self.unit}')"
        )
