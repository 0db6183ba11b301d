"""Initial migration — upgrade builds the ORM's tables, downgrade drops them."""

from __future__ import annotations

import importlib.util
from pathlib import Path

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

from fluxstack.database import Base

MIGRATION = Path(__file__).resolve().parent.parent / "alembic" / "versions" / "001_initial_schema.py"


def _load_migration():
    spec = importlib.util.spec_from_file_location("initial_schema", MIGRATION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _run(step: str) -> set[str]:
    module = _load_migration()
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            module.upgrade()
            if step == "downgrade":
                module.downgrade()
        tables = set(inspect(conn).get_table_names())
    engine.dispose()
    return tables


def test_upgrade_matches_models():
    assert _run("upgrade") == set(Base.metadata.tables)


def test_upgrade_creates_unique_slug_and_token_columns():
    module = _load_migration()
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            module.upgrade()
        inspector = inspect(conn)
        post_columns = {c["name"] for c in inspector.get_columns("posts")}
        session_uniques = inspector.get_unique_constraints("user_sessions")
    engine.dispose()

    assert {"slug", "title", "content", "is_published"} <= post_columns
    assert any(u["column_names"] == ["token_hash"] for u in session_uniques)


def test_downgrade_drops_everything():
    assert _run("downgrade") == set()
