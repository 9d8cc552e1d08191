"""Service layer exception classes for Kitchen Costing.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application.

Row-level import problems (bad fields, malformed ingredient strings, unknown
catalog names) are never raised; they are reported in the import result.
These exceptions cover everything else.

Exception Hierarchy:
    ServiceError (base)
    ├── IngredientNotFound
    ├── RecipeNotFound
    ├── ValidationError
    ├── DatabaseError
    ├── EstimatorError
    └── CatalogImportError
"""


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


class IngredientNotFound(ServiceError):
    """Raised when a catalog ingredient cannot be found by ID."""

    def __init__(self, ingredient_id: int):
        self.ingredient_id = ingredient_id
        super().__init__(f"Ingredient with ID {ingredient_id} not found")


class RecipeNotFound(ServiceError):
    """Raised when a recipe cannot be found by ID."""

    def __init__(self, recipe_id: int):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class ValidationError(ServiceError):
    """Raised when data validation fails.

    Args:
        errors: List of human-readable validation messages

    Example:
        >>> raise ValidationError(["name: is required", "unit: is required"])
        ValidationError: Validation failed: name: is required; unit: is required
    """

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class EstimatorError(ServiceError):
    """Raised when the nutrition estimator fails or returns an unusable result.

    Args:
        message: What went wrong
        original_error: Underlying exception (HTTP error, JSON error), if any
    """

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Nutrition estimate failed: {message}")


class CatalogImportError(ServiceError):
    """Raised when an import file cannot be read or has the wrong shape."""

    pass
