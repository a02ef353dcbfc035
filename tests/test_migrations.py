"""Tests that the Alembic baseline builds the same schema as the models."""

from pathlib import Path

import pytest
from flask_migrate import downgrade, upgrade
from sqlalchemy import inspect, text

from dealdesk import create_app
from dealdesk.config import config_by_name
from dealdesk.extensions import db

MIGRATIONS_DIR = str(Path(__file__).resolve().parents[1] / "migrations")

CRM_TABLES = {"organizations", "contacts", "deals", "projects", "tasks"}


def _migrated_app(tmp_path, monkeypatch):
    monkeypatch.setattr(
        config_by_name["testing"],
        "SQLALCHEMY_DATABASE_URI",
        f"sqlite:///{tmp_path / 'migrated.db'}",
    )
    return create_app("testing")


def test_upgrade_creates_crm_tables(tmp_path, monkeypatch):
    migrated = _migrated_app(tmp_path, monkeypatch)
    with migrated.app_context():
        upgrade(directory=MIGRATIONS_DIR)
        tables = set(inspect(db.engine).get_table_names())

    assert CRM_TABLES <= tables


@pytest.mark.parametrize("table", sorted(CRM_TABLES))
def test_migrated_columns_match_models(tmp_path, monkeypatch, table):
    migrated = _migrated_app(tmp_path, monkeypatch)
    with migrated.app_context():
        upgrade(directory=MIGRATIONS_DIR)
        model_columns = {c.name for c in db.metadata.tables[table].columns}
        migrated_columns = {c["name"] for c in inspect(db.engine).get_columns(table)}

    assert migrated_columns == model_columns


def test_created_at_filled_by_database(tmp_path, monkeypatch):
    migrated = _migrated_app(tmp_path, monkeypatch)
    with migrated.app_context():
        upgrade(directory=MIGRATIONS_DIR)
        with db.engine.begin() as conn:
            conn.execute(text("INSERT INTO organizations (id, name) VALUES ('org-1', 'Acme')"))
            created_at = conn.execute(
                text("SELECT created_at FROM organizations WHERE id = 'org-1'")
            ).scalar()

    assert created_at is not None


def test_downgrade_drops_crm_tables(tmp_path, monkeypatch):
    migrated = _migrated_app(tmp_path, monkeypatch)
    with migrated.app_context():
        upgrade(directory=MIGRATIONS_DIR)
        downgrade(directory=MIGRATIONS_DIR, revision="base")
        tables = set(inspect(db.engine).get_table_names())

    assert not (CRM_TABLES & tables)
