"""Services package - Business logic layer for Kitchen Costing.

This package contains all service modules that provide business logic
and database operations for the application.

Architecture:
- Services: Stateless functions organized by domain (ingredient, recipe, import)
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy
- Validation: Input validation before database operations

Import Pipeline:
- catalog_index: Case-insensitive catalog lookup built per import
- ingredient_parser: "Name:Quantity:Unit;..." parsing
- row_validator: Row validation, ingredient resolution and costing
- recipe_import_service: Batch import entry point and atomic commit
- enrichment_dispatcher: Background nutrition enrichment
- nutrition_estimator: External nutrition estimator client
- stores: Catalog and recipe stores used by the pipeline

Service Modules:
- ingredient_service: Ingredient catalog operations and batch creation
- recipe_service: Single recipe creation and lookup

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- logging_utils: Structured operation logging
"""

from . import (
    database,
    ingredient_service,
    recipe_service,
)

from .exceptions import (
    ServiceError,
    IngredientNotFound,
    RecipeNotFound,
    ValidationError,
    DatabaseError,
    EstimatorError,
    CatalogImportError,
)

from .recipe_import_service import ImportResult, import_recipes

__all__ = [
    "database",
    "ingredient_service",
    "recipe_service",
    "ServiceError",
    "IngredientNotFound",
    "RecipeNotFound",
    "ValidationError",
    "DatabaseError",
    "EstimatorError",
    "CatalogImportError",
    "ImportResult",
    "import_recipes",
]
