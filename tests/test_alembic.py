"""
test_alembic.py — Verify the Alembic migration chain against a scratch database

Runs `upgrade head` / `downgrade base` on a temp SQLite file and checks
the resulting tables match the models.

Called by: pytest
Depends on: alembic/, bidtracker.models
"""

from pathlib import Path
from unittest.mock import patch

import pytest
from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect

from bidtracker.config import settings
from bidtracker.models import Base

ALEMBIC_DIR = Path(__file__).parent.parent / "alembic"


@pytest.fixture()
def alembic_cfg(tmp_path):
    cfg = Config()
    cfg.set_main_option("script_location", str(ALEMBIC_DIR))
    url = f"sqlite:///{tmp_path / 'migrate.db'}"
    with patch.object(settings, "database_url", url):
        yield cfg, url


def test_single_head():
    script = ScriptDirectory(str(ALEMBIC_DIR))
    assert script.get_heads() == ["001_initial"]


def test_base_revision_has_no_parent():
    script = ScriptDirectory(str(ALEMBIC_DIR))
    assert script.get_revision("001_initial").down_revision is None


def test_upgrade_creates_every_model_table(alembic_cfg):
    cfg, url = alembic_cfg
    command.upgrade(cfg, "head")
    tables = set(inspect(create_engine(url)).get_table_names())
    assert set(Base.metadata.tables) <= tables
    assert "alembic_version" in tables


def test_downgrade_drops_tables(alembic_cfg):
    cfg, url = alembic_cfg
    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")
    tables = set(inspect(create_engine(url)).get_table_names())
    assert not (set(Base.metadata.tables) & tables)
