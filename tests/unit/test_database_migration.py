"""
------------------------------------------------------------------------------
Project:        Subly
File:           tests/unit/test_database_migration.py
Version:        1.0.0
Description:    Schema convergence against temporary databases, using both
                the shipped registry and synthetic ones.
------------------------------------------------------------------------------
"""

import logging
import sqlite3
import pytest

from core.database import DatabaseManager, split_statements
from core.migrations import MIGRATIONS, Migration, MigrationError, build_registry

SYNTHETIC = build_registry([
    Migration(1, "create_a", "CREATE TABLE a (id INTEGER PRIMARY KEY);"),
    Migration(2, "create_b", "CREATE TABLE b (id INTEGER PRIMARY KEY);\nCREATE INDEX idx_b ON b(id);"),
    Migration(3, "create_c", "CREATE TABLE c (id INTEGER PRIMARY KEY);"),
])


def _tables(db_path):
    conn = sqlite3.connect(db_path)
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
    finally:
        conn.close()
    return {r[0] for r in rows}


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "subly.db")


def test_fresh_database_applies_everything(db_path):
    db = DatabaseManager(db_path)
    applied = db.init_db()

    assert applied == [m.version for m in MIGRATIONS]
    assert db.applied_versions() == applied
    assert db.current_version() == MIGRATIONS[-1].version

    tables = _tables(db_path)
    for name in ("subscriptions", "payment_records", "expenses", "categories", "currencies",
                 "household_members", "payment_methods", "tags", "config", "currency_rate_history"):
        assert name in tables
    db.close()


def test_each_statement_is_traced(db_path, caplog):
    caplog.set_level(logging.DEBUG, logger="subly.db.migrations.sql")
    db = DatabaseManager(db_path, SYNTHETIC)
    db.init_db()
    db.close()

    traced = [r.getMessage() for r in caplog.records if r.name == "subly.db.migrations.sql"]
    assert traced[0] == "v1: CREATE TABLE a (id INTEGER PRIMARY KEY);"
    assert "v2: CREATE INDEX idx_b ON b(id);" in traced
    assert len(traced) == 4


def test_rerun_is_noop(db_path):
    db = DatabaseManager(db_path, migrations=SYNTHETIC)
    db.init_db()
    installed = db.connection.execute(
        "SELECT version, installed_on FROM _migrations ORDER BY version").fetchall()
    db.close()

    db = DatabaseManager(db_path, migrations=SYNTHETIC)
    assert db.init_db() == []
    again = db.connection.execute(
        "SELECT version, installed_on FROM _migrations ORDER BY version").fetchall()
    assert [tuple(r) for r in again] == [tuple(r) for r in installed]
    db.close()


def test_new_release_applies_only_newer_versions(db_path):
    db = DatabaseManager(db_path, migrations=SYNTHETIC[:1])
    assert db.init_db() == [1]
    db.close()

    db = DatabaseManager(db_path, migrations=SYNTHETIC)
    assert db.init_db() == [2, 3]
    assert db.applied_versions() == [1, 2, 3]
    db.close()


def test_failure_stops_and_keeps_prior_versions(db_path):
    registry = build_registry([
        Migration(1, "create_a", "CREATE TABLE a (id INTEGER PRIMARY KEY);"),
        Migration(2, "broken", "CREATE TABLE half (id INTEGER);\nCREATE TABLE a (id INTEGER);"),
        Migration(3, "create_c", "CREATE TABLE c (id INTEGER PRIMARY KEY);"),
    ])
    db = DatabaseManager(db_path, migrations=registry)

    with pytest.raises(MigrationError) as exc_info:
        db.init_db()

    assert exc_info.value.version == 2
    assert db.applied_versions() == [1]
    tables = _tables(db_path)
    assert "a" in tables
    # The first statement of the failed version is rolled back as well
    assert "half" not in tables
    assert "c" not in tables
    db.close()


def test_failed_version_is_retried_after_fix(db_path):
    broken = build_registry([
        Migration(1, "create_a", "CREATE TABLE a (id INTEGER PRIMARY KEY);"),
        Migration(2, "create_b", "CREATE TABLE b (id INTEGER PRIMARY KEY"),
    ])
    db = DatabaseManager(db_path, migrations=broken)
    with pytest.raises(MigrationError):
        db.init_db()
    db.close()

    db = DatabaseManager(db_path, migrations=SYNTHETIC)
    assert db.init_db() == [2, 3]
    db.close()


def test_modified_migration_is_fatal(db_path):
    db = DatabaseManager(db_path, migrations=SYNTHETIC)
    db.init_db()
    db.close()

    edited = build_registry([
        Migration(1, "create_a", "CREATE TABLE a (id INTEGER PRIMARY KEY, name TEXT);"),
        *SYNTHETIC[1:],
    ])
    db = DatabaseManager(db_path, migrations=edited)
    with pytest.raises(MigrationError, match="modified") as exc_info:
        db.init_db()
    assert exc_info.value.version == 1
    db.close()


def test_missing_applied_migration_is_fatal(db_path):
    db = DatabaseManager(db_path, migrations=SYNTHETIC)
    db.init_db()
    db.close()

    db = DatabaseManager(db_path, migrations=SYNTHETIC[:2])
    with pytest.raises(MigrationError, match="missing"):
        db.init_db()
    db.close()


def test_applied_versions_on_untouched_database(db_path):
    db = DatabaseManager(db_path)
    assert db.applied_versions() == []
    assert db.current_version() == 0
    db.close()


def test_closed_connection_raises(db_path):
    db = DatabaseManager(db_path)
    db.close()
    with pytest.raises(MigrationError):
        db.init_db()


def test_config_values_roundtrip(db_path):
    db = DatabaseManager(db_path)
    db.init_db()

    assert db.get_config_value("sync_config") is None
    db.set_config_value("sync_config", {"deviceId": "dev_1234abcd", "enabled": True})
    db.set_config_value("sync_config", {"deviceId": "dev_1234abcd", "enabled": False})
    assert db.get_config_value("sync_config") == {"deviceId": "dev_1234abcd", "enabled": False}

    db.connection.execute("INSERT INTO config (key, value) VALUES ('raw', 'not json')")
    assert db.get_config_value("raw") == "not json"
    db.close()


def test_split_statements_respects_literals_and_triggers():
    script = """
    CREATE TABLE t (note TEXT DEFAULT 'a;b');
    CREATE TRIGGER tr AFTER INSERT ON t BEGIN
        UPDATE t SET note = 'x;' WHERE rowid = new.rowid;
    END;
    -- trailing comment
    """
    statements = split_statements(script)
    assert len(statements) == 3
    assert statements[0].startswith("CREATE TABLE t")
    assert statements[1].startswith("CREATE TRIGGER tr")
    assert statements[1].endswith("END;")
    assert statements[2] == "-- trailing comment"
