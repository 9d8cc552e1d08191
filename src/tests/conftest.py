"""Pytest configuration and fixtures for service layer tests."""

import logging
import threading
import time

import pytest
from sqlalchemy.orm import sessionmaker

from src.models.base import Base
from src.services.catalog_index import CatalogEntry
from src.services.database import create_database_engine
from src.services.enrichment_dispatcher import shutdown_enrichment_dispatcher
from src.services.exceptions import DatabaseError, EstimatorError, RecipeNotFound
from src.services.nutrition_estimator import Estimator, NutritionResult
from src.services.stores import CatalogStore, RecordStore
from src.utils.config import reset_config

CONFIG_ENV_VARS = (
    "KITCHEN_COSTING_ENV",
    "KITCHEN_COSTING_DB_URL",
    "COMMIT_TIMEOUT_SECONDS",
    "ENRICHMENT_WORKERS",
    "CATALOG_DUPLICATE_POLICY",
    "NUTRITION_API_URL",
    "NUTRITION_API_KEY",
    "NUTRITION_MODEL",
    "NUTRITION_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Run every test against default configuration with enrichment disabled."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    shutdown_enrichment_dispatcher(wait=False, cancel_pending=True)
    reset_config()
    # CLI tests call configure_logging()
    for name in ("kitchen_costing", "src"):
        logging.getLogger(name).setLevel(logging.NOTSET)


@pytest.fixture(scope="function")
def test_db(tmp_path):
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates a SQLite database file under tmp_path
    2. Creates all tables
    3. Provides the session factory to the test
    4. Disposes of the engine after the test completes

    A file database (not :memory:) lets enrichment worker threads open
    their own connections.
    """
    engine = create_database_engine(f"sqlite:///{tmp_path / 'test.db'}", commit_timeout=5.0)

    # Create all tables
    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    # Monkey-patch the global session factory for tests
    import src.services.database as db_module

    original_get_session_factory = db_module.get_session_factory
    db_module.get_session_factory = lambda: session_factory

    yield session_factory

    # Restore original session factory
    db_module.get_session_factory = original_get_session_factory
    engine.dispose()


@pytest.fixture(scope="function")
def sample_catalog(test_db):
    """Provide Tomato (0.005 per g) and Onion (0.3 per unit) in the database.

    Returns:
        Dict of ingredient name -> id
    """
    from src.models import Ingredient

    session = test_db()
    tomato = Ingredient(name="Tomato", unit="g", cost_per_unit=0.005, category="Vegetables")
    onion = Ingredient(name="Onion", unit="unit", cost_per_unit=0.3, category="Vegetables")
    session.add_all([tomato, onion])
    session.commit()
    ids = {"Tomato": tomato.id, "Onion": onion.id}
    session.close()
    return ids


@pytest.fixture
def catalog_entries():
    """In-memory catalog snapshot matching sample_catalog."""
    return [
        CatalogEntry(id=1, name="Tomato", cost_per_unit=0.005, base_unit="g"),
        CatalogEntry(id=2, name="Onion", cost_per_unit=0.3, base_unit="unit"),
    ]


# ============================================================================
# In-memory collaborators
# ============================================================================


class StaticCatalogStore(CatalogStore):
    """CatalogStore returning a fixed list."""

    def __init__(self, entries):
        self.entries = list(entries)
        self.calls = 0

    def list_all(self):
        self.calls += 1
        return list(self.entries)


class InMemoryRecordStore(RecordStore):
    """RecordStore that keeps recipes in a dict and records every call."""

    def __init__(self, fail_create=False, fail_update=False, first_id=100):
        self.fail_create = fail_create
        self.fail_update = fail_update
        self.next_id = first_id
        self.records = {}
        self.create_calls = []
        self.updates = []
        self._lock = threading.Lock()

    def create_all(self, drafts):
        with self._lock:
            self.create_calls.append(list(drafts))
            if self.fail_create:
                raise DatabaseError("disk I/O error")
            ids = []
            for draft in drafts:
                self.records[self.next_id] = {"draft": draft, "nutritional_info": None}
                ids.append(self.next_id)
                self.next_id += 1
            return ids

    def update_one(self, record_id, nutritional_info):
        with self._lock:
            self.updates.append((record_id, nutritional_info))
            if self.fail_update:
                raise DatabaseError("database is locked")
            if record_id not in self.records:
                raise RecipeNotFound(record_id)
            self.records[record_id]["nutritional_info"] = nutritional_info


class StubEstimator(Estimator):
    """Estimator returning a fixed result, optionally failing or stalling."""

    def __init__(self, result=None, error=None, delay=0.0, fail_for=()):
        self.result = result or NutritionResult(
            calories=250.0,
            protein_grams=8.0,
            fat_grams=5.0,
            carbohydrate_grams=40.0,
            disclaimer="Estimates only.",
        )
        self.error = error
        self.delay = delay
        self.fail_for = set(fail_for)
        self.calls = []
        self._lock = threading.Lock()

    def estimate(self, recipe_name, ingredient_summary):
        with self._lock:
            self.calls.append((recipe_name, ingredient_summary))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if recipe_name in self.fail_for:
            raise EstimatorError(f"no estimate for {recipe_name}")
        return self.result


@pytest.fixture
def catalog_store(catalog_entries):
    return StaticCatalogStore(catalog_entries)


@pytest.fixture
def record_store():
    return InMemoryRecordStore()


@pytest.fixture
def stub_estimator():
    return StubEstimator()


@pytest.fixture
def make_record_store():
    """Factory for record stores with failure switches."""
    return InMemoryRecordStore


@pytest.fixture
def make_estimator():
    """Factory for estimators with custom behaviour."""
    return StubEstimator


@pytest.fixture
def make_catalog_store():
    """Factory for catalog stores over arbitrary entries."""
    return StaticCatalogStore
