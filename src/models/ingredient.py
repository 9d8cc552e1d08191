"""
Ingredient model for the reference catalog.

Each row is a catalog entry: an ingredient name with a cost for exactly
one unit of its base unit. Recipe import resolves ingredient references
against these rows by case-insensitive name.

Example: "Tomato" costing 0.005 per "g"
"""

from sqlalchemy import Column, String, Text, Float, Index, CheckConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel


class Ingredient(BaseModel):
    """
    Ingredient model representing one catalog entry.

    Attributes:
        name: Display name, also the case-insensitive import join key
        unit: Base unit that cost_per_unit refers to (free-form, e.g. "kg", "piece")
        cost_per_unit: Monetary cost of one base unit (non-negative)
        category: Optional grouping (e.g., "Vegetables", "Dairy")
        supplier: Optional supplier name
        allergen: Optional allergen note (e.g., "gluten")
        description: Optional detailed description
        current_stock: Stock on hand, in base units
        low_stock_threshold: Stock level that counts as low
    """

    __tablename__ = "ingredients"

    name = Column(String(200), nullable=False, index=True)
    unit = Column(String(50), nullable=False)
    # Nullable for rows created before costing existed; treated as 0 when costing
    cost_per_unit = Column(Float, nullable=True)

    category = Column(String(100), nullable=True)
    supplier = Column(String(200), nullable=True)
    allergen = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)

    current_stock = Column(Float, nullable=True)
    low_stock_threshold = Column(Float, nullable=True)

    recipe_ingredients = relationship(
        "RecipeIngredient", back_populates="ingredient", lazy="select"
    )

    __table_args__ = (
        Index("idx_ingredient_name", "name"),
        Index("idx_ingredient_category", "category"),
        CheckConstraint(
            "cost_per_unit IS NULL OR cost_per_unit >= 0",
            name="ck_ingredient_cost_non_negative",
        ),
    )

    def __repr__(self) -> str:
        """String representation of ingredient."""
        return (
            f"Ingredient(id={self.id}, name='{self.name}', "
            f"cost_per_unit={self.cost_per_unit}, unit='{self.unit}')"
        )

    @property
    def is_low_stock(self) -> bool:
        """True when a threshold is set and stock is at or below it."""
        if self.low_stock_threshold is None or self.current_stock is None:
            return False
        return self.current_stock <= self.low_stock_threshold
