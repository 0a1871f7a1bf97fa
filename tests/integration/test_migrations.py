"""Alembic migrations against a SQLite file, compared with the ORM metadata."""

from collections.abc import Generator
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import CheckConstraint, UniqueConstraint, create_engine, inspect, text

from care_assistant.config import get_settings
from care_assistant.db.models import Base

ALEMBIC_DIR = Path(__file__).resolve().parents[2] / "care_assistant" / "db" / "alembic"


@pytest.fixture
def migration_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[str, None, None]:
    """Point the settings, and so the Alembic env, at a fresh SQLite file."""
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    get_settings.cache_clear()
    yield url
    get_settings.cache_clear()


def alembic_config() -> Config:
    # No ini file, so env.py leaves logging configuration alone
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    return config


def test_upgrade_matches_models(migration_url: str) -> None:
    command.upgrade(alembic_config(), "head")

    engine = create_engine(migration_url)
    try:
        inspector = inspect(engine)
        assert set(inspector.get_table_names()) - {"alembic_version"} == set(Base.metadata.tables)

        with engine.connect() as conn:
            for name, table in Base.metadata.tables.items():
                columns = {c["name"]: c["nullable"] for c in inspector.get_columns(name)}
                assert columns == {c.name: c.nullable for c in table.columns}, name

                indexes = {i["name"] for i in inspector.get_indexes(name)}
                assert indexes == {i.name for i in table.indexes}, name

                foreign_keys = {
                    (tuple(fk["constrained_columns"]), fk["referred_table"])
                    for fk in inspector.get_foreign_keys(name)
                }
                assert foreign_keys == {
                    ((fk.parent.name,), fk.column.table.name) for fk in table.foreign_keys
                }, name

                ddl = conn.execute(
                    text("SELECT sql FROM sqlite_master WHERE type = 'table' AND name = :name"),
                    {"name": name},
                ).scalar_one()
                for constraint in table.constraints:
                    if isinstance(constraint, (CheckConstraint, UniqueConstraint)):
                        assert f"CONSTRAINT {constraint.name}" in ddl, (name, constraint.name)
    finally:
        engine.dispose()


def test_migrated_schema_stores_fixed_ids_as_text(migration_url: str) -> None:
    command.upgrade(alembic_config(), "head")

    engine = create_engine(migration_url)
    try:
        with engine.begin() as conn:
            conn.execute(
                text(
                    "INSERT INTO users (id, email, password_hash, role) "
                    "VALUES ('00000000000000000000000000000002', 'user@test.com', 'stub', 'USER')"
                )
            )
            stored = conn.execute(text("SELECT typeof(id), created_at FROM users")).one()
    finally:
        engine.dispose()

    assert stored[0] == "text"
    assert stored[1] is not None


def test_downgrade_removes_every_table(migration_url: str) -> None:
    config = alembic_config()
    command.upgrade(config, "head")
    command.downgrade(config, "base")

    engine = create_engine(migration_url)
    try:
        assert set(inspect(engine).get_table_names()) - {"alembic_version"} == set()
    finally:
        engine.dispose()
