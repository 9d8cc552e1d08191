"""Tests for database session handling and maintenance helpers."""

import pytest
from sqlalchemy import inspect

from src.models import Ingredient
from src.services.database import reset_database, session_scope


class TestSessionScope:
    def test_commits_on_success(self, test_db):
        with session_scope() as session:
            session.add(Ingredient(name="Flour", unit="kg", cost_per_unit=1.2))

        session = test_db()
        assert session.query(Ingredient).count() == 1
        session.close()

    def test_rolls_back_on_error(self, test_db):
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                session.add(Ingredient(name="Flour", unit="kg", cost_per_unit=1.2))
                session.flush()
                raise RuntimeError("abort")

        session = test_db()
        assert session.query(Ingredient).count() == 0
        session.close()


class TestResetDatabase:
    """Tests for reset_database()."""

    def test_requires_confirmation(self, sample_catalog):
        with pytest.raises(ValueError, match="confirm=True"):
            reset_database()

        with session_scope() as session:
            assert session.query(Ingredient).count() == 2

    def test_empties_catalog_and_keeps_tables(self, test_db, sample_catalog):
        engine = test_db.kw["bind"]

        reset_database(confirm=True, engine=engine)

        tables = inspect(engine).get_table_names()
        assert {"ingredients", "recipes", "recipe_ingredients"} <= set(tables)
        session = test_db()
        assert session.query(Ingredient).count() == 0
        session.close()
