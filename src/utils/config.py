"""
Configuration management for the Kitchen Costing application.

This module handles:
- Database path configuration
- Environment-specific configuration (development vs. production)
- Import pipeline settings (commit timeout, enrichment workers, catalog
  duplicate policy)
- Nutrition estimator settings
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import (
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
    DATABASE_VERSION,
    DEFAULT_COMMIT_TIMEOUT_SECONDS,
    DEFAULT_ENRICHMENT_WORKERS,
    DEFAULT_ESTIMATOR_TIMEOUT_SECONDS,
    DEFAULT_NUTRITION_MODEL,
    DUPLICATE_POLICIES,
    DUPLICATE_POLICY_LAST_WINS,
)

logger = logging.getLogger(__name__)

ENV_VAR_ENVIRONMENT = "KITCHEN_COSTING_ENV"
ENV_VAR_DATABASE_URL = "KITCHEN_COSTING_DB_URL"


def _env_float(name: str, default: float) -> float:
    """Read a positive float from the environment, falling back to default."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not a number, using {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring {name}={raw!r}: must be positive, using {default}")
        return default
    return value


def _env_int(name: str, default: int) -> int:
    """Read a positive integer from the environment, falling back to default."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not an integer, using {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring {name}={raw!r}: must be positive, using {default}")
        return default
    return value


class Config:
    """
    Application configuration manager.

    Handles database location, environment mode and the tunables of the
    recipe import pipeline. Values are read from the environment once, at
    construction time.
    """

    def __init__(self, environment: str = "production"):
        """
        Initialize configuration.

        Args:
            environment: Environment mode - 'production' or 'development'
        """
        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = APP_VERSION
        self._database_version = DATABASE_VERSION

        if environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_data_dir()

        self._database_dir = self._base_dir
        self._database_path = self._database_dir / DATABASE_FILENAME
        self._database_url_override = os.environ.get(ENV_VAR_DATABASE_URL, "").strip() or None

        # Import pipeline
        self._commit_timeout = _env_float("COMMIT_TIMEOUT_SECONDS", DEFAULT_COMMIT_TIMEOUT_SECONDS)
        self._enrichment_workers = _env_int("ENRICHMENT_WORKERS", DEFAULT_ENRICHMENT_WORKERS)

        policy = os.environ.get("CATALOG_DUPLICATE_POLICY", "").strip().lower()
        if policy and policy not in DUPLICATE_POLICIES:
            logger.warning(
                f"Ignoring CATALOG_DUPLICATE_POLICY={policy!r}, "
                f"expected one of {', '.join(DUPLICATE_POLICIES)}"
            )
            policy = ""
        self._duplicate_policy = policy or DUPLICATE_POLICY_LAST_WINS

        # Nutrition estimator (OpenAI-compatible chat completions endpoint)
        self._nutrition_api_url = os.environ.get("NUTRITION_API_URL", "").strip() or None
        self._nutrition_api_key = os.environ.get("NUTRITION_API_KEY", "").strip() or None
        self._nutrition_model = (
            os.environ.get("NUTRITION_MODEL", "").strip() or DEFAULT_NUTRITION_MODEL
        )
        self._nutrition_timeout = _env_float(
            "NUTRITION_TIMEOUT_SECONDS", DEFAULT_ESTIMATOR_TIMEOUT_SECONDS
        )

    def _get_project_data_dir(self) -> Path:
        """Project data/ directory, used in development."""
        project_root = Path(__file__).parent.parent.parent
        return project_root / "data"

    def _get_user_data_dir(self) -> Path:
        """Per-user application directory, used in production."""
        return Path.home() / ".kitchen_costing"

    def ensure_directories(self) -> None:
        """Create the database directory if it doesn't exist."""
        self._database_dir.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        """Application name."""
        return self._app_name

    @property
    def app_version(self) -> str:
        """Application version."""
        return self._app_version

    @property
    def database_version(self) -> str:
        """Database schema version."""
        return self._database_version

    @property
    def database_path(self) -> Path:
        """Full path to the database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        KITCHEN_COSTING_DB_URL wins over the environment-derived file path.
        """
        if self._database_url_override:
            return self._database_url_override
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def commit_timeout(self) -> float:
        """Seconds the batch commit may wait on a locked database."""
        return self._commit_timeout

    @property
    def enrichment_workers(self) -> int:
        """Worker threads for nutrition enrichment."""
        return self._enrichment_workers

    @property
    def duplicate_policy(self) -> str:
        """How duplicate catalog names resolve: 'last_wins' or 'reject'."""
        return self._duplicate_policy

    @property
    def nutrition_api_url(self) -> Optional[str]:
        """Base URL of the nutrition estimator, or None when disabled."""
        return self._nutrition_api_url

    @property
    def nutrition_api_key(self) -> Optional[str]:
        return self._nutrition_api_key

    @property
    def nutrition_model(self) -> str:
        return self._nutrition_model

    @property
    def nutrition_timeout(self) -> float:
        """Seconds allowed for a single estimator call."""
        return self._nutrition_timeout

    @property
    def enrichment_enabled(self) -> bool:
        return self._nutrition_api_url is not None

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def database_exists(self) -> bool:
        """
        Check if database file exists.

        Returns:
            True if database file exists, False otherwise
        """
        return self._database_path.exists()

    def __repr__(self) -> str:
        """String representation of config."""
        return f"Config(environment='{self.environment}', database_url='{self.database_url}')"


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument - this prevents accidental database
    switching mid-session.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    KITCHEN_COSTING_ENV or defaults to production. Ignored if
                    singleton already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(ENV_VAR_ENVIRONMENT, "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton to prevent database switching."
        )

    return _config_instance


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None


def get_database_url() -> str:
    """
    Get the database URL.

    Returns:
        SQLAlchemy database URL string
    """
    return get_config().database_url
