# tests/test_database.py
# Schema, migrations and transaction behaviour of the SQLite store

from __future__ import annotations

import shutil
import sqlite3
from pathlib import Path

import pytest

from flowstate.errors import SchemaVersionError
from flowstate.repositories.db import Database, split_statements
from flowstate.utils.paths import MIGRATIONS_DIR


def _columns(db: Database, table: str) -> list[str]:
    return [r["name"] for r in db.query(f"PRAGMA table_info({table})")]


def test_migrations_build_current_schema(db: Database):
    assert db.schema_version() == 4
    assert _columns(db, "tasks") == [
        "id", "title", "is_done", "description", "position", "priority", "due_date",
    ]
    assert set(_columns(db, "subtasks")) == {
        "id", "task_id", "title", "description", "is_done", "priority", "position", "due_date",
    }

    fks = db.query("PRAGMA foreign_key_list(subtasks)")
    assert len(fks) == 1
    assert fks[0]["table"] == "tasks"
    assert fks[0]["from"] == "task_id"
    assert fks[0]["on_delete"] == "CASCADE"

    indexes = {r["name"] for r in db.query("PRAGMA index_list(subtasks)")}
    assert "idx_subtasks_task_id" in indexes


def test_foreign_keys_are_enforced(db: Database):
    assert db.query("PRAGMA foreign_keys")[0][0] == 1


def test_run_migrations_twice_applies_nothing(db: Database):
    assert db.run_migrations() == []
    assert db.schema_version() == 4


def test_upgrade_from_first_version_keeps_rows(tmp_path: Path, qapp):
    v1_dir = tmp_path / "v1"
    v1_dir.mkdir()
    shutil.copy(MIGRATIONS_DIR / "0001_create_tasks.sql", v1_dir)

    database = Database(tmp_path / "old.db")
    try:
        assert database.run_migrations(v1_dir) == ["0001_create_tasks.sql"]
        with database.transaction("tasks") as con:
            con.execute("INSERT INTO tasks(title, is_done) VALUES ('legacy', 1)")

        applied = database.run_migrations()
        assert applied == [
            "0002_task_details.sql",
            "0003_create_subtasks.sql",
            "0004_due_dates.sql",
        ]
        row = database.query("SELECT * FROM tasks")[0]
        assert row["title"] == "legacy"
        assert row["is_done"] == 1
        assert row["description"] == ""
        assert row["position"] == 0
        assert row["priority"] == 0
        assert row["due_date"] is None
    finally:
        database.close()


def test_database_from_newer_build_is_rejected(db: Database):
    with db.transaction() as con:
        con.execute(
            "INSERT INTO schema_migrations(filename, applied_at) VALUES ('0099_future.sql', '2030-01-01')"
        )
    with pytest.raises(SchemaVersionError) as err:
        db.run_migrations()
    assert err.value.unknown == ["0099_future.sql"]


def test_failed_transaction_rolls_back_and_publishes_nothing(db: Database):
    seen: list = []
    db.invalidation.tablesChanged.connect(seen.append)

    with pytest.raises(RuntimeError):
        with db.transaction("tasks") as con:
            con.execute("INSERT INTO tasks(title) VALUES ('ghost')")
            raise RuntimeError("boom")

    assert db.query("SELECT COUNT(*) FROM tasks")[0][0] == 0
    assert seen == []


def test_nested_transactions_commit_once(db: Database):
    seen: list = []
    db.invalidation.tablesChanged.connect(seen.append)

    with db.transaction("tasks") as con:
        con.execute("INSERT INTO tasks(title) VALUES ('parent')")
        with db.transaction("subtasks") as inner:
            inner.execute("INSERT INTO subtasks(id, task_id, title) VALUES ('s1', 1, 'child')")
        assert seen == []

    assert seen == [{"tasks", "subtasks"}]
    assert db.query("SELECT COUNT(*) FROM subtasks")[0][0] == 1


def test_inner_failure_rolls_back_outer_work(db: Database):
    with pytest.raises(sqlite3.IntegrityError):
        with db.transaction("tasks", "subtasks") as con:
            con.execute("INSERT INTO tasks(title) VALUES ('parent')")
            with db.transaction("subtasks") as inner:
                inner.execute("INSERT INTO subtasks(id, task_id, title) VALUES ('s1', 404, 'orphan')")

    assert db.query("SELECT COUNT(*) FROM tasks")[0][0] == 0
    assert db.query("SELECT COUNT(*) FROM subtasks")[0][0] == 0


def test_interrupted_migration_is_reapplied_cleanly(tmp_path: Path, qapp, monkeypatch: pytest.MonkeyPatch):
    db_file = tmp_path / "crash.db"
    record = Database._record_migration

    def crash_on_details(con, filename):
        if filename == "0002_task_details.sql":
            raise KeyboardInterrupt
        record(con, filename)

    database = Database(db_file)
    try:
        monkeypatch.setattr(Database, "_record_migration", staticmethod(crash_on_details))
        with pytest.raises(KeyboardInterrupt):
            database.run_migrations()
        assert database.applied() == {"0001_create_tasks.sql"}
        assert "description" not in _columns(database, "tasks")
    finally:
        database.close()
    monkeypatch.undo()

    reopened = Database(db_file)
    try:
        assert reopened.run_migrations() == [
            "0002_task_details.sql",
            "0003_create_subtasks.sql",
            "0004_due_dates.sql",
        ]
        assert reopened.schema_version() == 4
        assert _columns(reopened, "tasks").count("description") == 1
    finally:
        reopened.close()


def test_failing_migration_leaves_no_partial_schema(tmp_path: Path, qapp):
    mig_dir = tmp_path / "migrations"
    mig_dir.mkdir()
    shutil.copy(MIGRATIONS_DIR / "0001_create_tasks.sql", mig_dir)
    (mig_dir / "0002_broken.sql").write_text(
        "ALTER TABLE tasks ADD COLUMN notes TEXT;\nALTER TABLE missing ADD COLUMN x INTEGER;\n",
        encoding="utf-8",
    )

    database = Database(tmp_path / "broken.db")
    try:
        with pytest.raises(sqlite3.OperationalError):
            database.run_migrations(mig_dir)
        assert database.applied() == {"0001_create_tasks.sql"}
        assert "notes" not in _columns(database, "tasks")
    finally:
        database.close()


def test_split_statements_keeps_comments_and_quoted_semicolons():
    script = (
        "-- header\n"
        "CREATE TABLE t (a TEXT DEFAULT ';');\n"
        "INSERT INTO t(a) VALUES ('x;y'); INSERT INTO t(a) VALUES ('z');\n"
        "-- trailing note\n"
    )
    statements = [s.strip() for s in split_statements(script)]
    assert statements == [
        "-- header\nCREATE TABLE t (a TEXT DEFAULT ';');",
        "INSERT INTO t(a) VALUES ('x;y');",
        "INSERT INTO t(a) VALUES ('z');",
    ]
