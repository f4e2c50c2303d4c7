from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from shared_lists.internal.db import Base

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"


@pytest.fixture()
def alembic_config(tmp_path):
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    config.set_main_option("sqlalchemy.url", f"sqlite:///{tmp_path / 'migrated.db'}")
    return config


class TestMigrations:
    """The migration chain builds the same schema as the models."""

    def test_upgrade_creates_every_table(self, alembic_config):
        command.upgrade(alembic_config, "head")

        engine = create_engine(alembic_config.get_main_option("sqlalchemy.url"))
        tables = set(inspect(engine).get_table_names())
        assert set(Base.metadata.tables) <= tables

    def test_upgrade_matches_model_columns(self, alembic_config):
        command.upgrade(alembic_config, "head")

        inspector = inspect(create_engine(alembic_config.get_main_option("sqlalchemy.url")))
        for name, table in Base.metadata.tables.items():
            migrated = {c["name"] for c in inspector.get_columns(name)}
            assert migrated == set(table.columns.keys()), name

    def test_event_index(self, alembic_config):
        command.upgrade(alembic_config, "head")

        inspector = inspect(create_engine(alembic_config.get_main_option("sqlalchemy.url")))
        indexes = {i["name"]: i["column_names"] for i in inspector.get_indexes("event")}
        assert indexes["event_list_id_at_idx"] == ["list_id", "at"]

    def test_downgrade_drops_everything(self, alembic_config):
        command.upgrade(alembic_config, "head")
        command.downgrade(alembic_config, "base")

        engine = create_engine(alembic_config.get_main_option("sqlalchemy.url"))
        tables = set(inspect(engine).get_table_names())
        assert tables <= {"alembic_version"}
