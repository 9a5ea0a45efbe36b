# Rev 0.4.0

"""SQLite connection, transactions & migration runner (Rev 0.4.0)
- WAL mode, foreign_keys=ON
- Applies SQL files in flowstate/data/migrations in lexical order, each with its
  schema_migrations row in one transaction
- Tracks applied files in schema_migrations(filename TEXT PRIMARY KEY, applied_at UTC)
- One writer at a time; committed writes are published to the InvalidationTracker
"""
from __future__ import annotations
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Iterator, Sequence

from flowstate.errors import SchemaVersionError
from flowstate.repositories.live_query import InvalidationTracker
from flowstate.utils.logging_setup import get_logger
from flowstate.utils.paths import MIGRATIONS_DIR


def split_statements(sql: str) -> Iterator[str]:
    """Yield the complete statements of a migration script one at a time."""
    start = 0
    for i, ch in enumerate(sql):
        if ch == ";" and sqlite3.complete_statement(sql[start : i + 1]):
            yield sql[start : i + 1]
            start = i + 1
    rest = sql[start:]
    if any(line.strip() and not line.strip().startswith("--") for line in rest.splitlines()):
        yield rest  # unterminated tail; sqlite reports it if it is malformed


class Database:
    def __init__(self, path: Path | str) -> None:
        self._log = get_logger("db")
        self.path = Path(path)
        if str(path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.path), isolation_level=None, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL;")
        self.conn.execute("PRAGMA foreign_keys=ON;")
        self.conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_migrations (filename TEXT PRIMARY KEY, applied_at TEXT NOT NULL)"
        )
        self.invalidation = InvalidationTracker()
        self._lock = threading.RLock()
        self._depth = 0
        self._touched: set[str] = set()
        self._log.info("SQLite open %s", self.path)

    def close(self) -> None:
        with self._lock:
            self.conn.close()
        self._log.info("SQLite closed %s", self.path)

    # -------------------------
    # Migrations
    # -------------------------
    def applied(self) -> set[str]:
        rows = self.query("SELECT filename FROM schema_migrations")
        return {r[0] for r in rows}

    def schema_version(self) -> int:
        return len(self.applied())

    def run_migrations(self, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
        shipped = sorted(migrations_dir.glob("*.sql"))
        applied = self.applied()
        unknown = sorted(applied - {p.name for p in shipped})
        if unknown:
            raise SchemaVersionError(unknown)
        to_apply = [p for p in shipped if p.name not in applied]
        for p in to_apply:
            self._log.info("Applying migration %s", p.name)
            # script and bookkeeping row commit together or not at all
            with self.transaction() as con:
                for statement in split_statements(p.read_text(encoding="utf-8")):
                    con.execute(statement)
                self._record_migration(con, p.name)
        return [p.name for p in to_apply]

    @staticmethod
    def _record_migration(con: sqlite3.Connection, filename: str) -> None:
        con.execute(
            "INSERT INTO schema_migrations(filename, applied_at) VALUES(?, ?)",
            (filename, datetime.now(timezone.utc).isoformat()),
        )

    # -------------------------
    # Transactions & reads
    # -------------------------
    @contextmanager
    def transaction(self, *tables: str) -> Iterator[sqlite3.Connection]:
        """
        Atomic unit of work. Nested calls join the outermost transaction; the
        tables named by every level are published once the outermost commits.
        """
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self.conn.execute("BEGIN IMMEDIATE;")
                self._touched = set()
            self._depth += 1
            self._touched.update(tables)
            try:
                yield self.conn
            except BaseException:
                self._depth -= 1
                if outermost:
                    self._rollback()
                raise
            self._depth -= 1
            if not outermost:
                return
            try:
                self.conn.execute("COMMIT;")
            except sqlite3.Error:
                self._rollback()
                raise
            touched, self._touched = self._touched, set()
        self.invalidation.notify(touched)

    def _rollback(self) -> None:
        self._touched = set()
        if self.conn.in_transaction:
            self.conn.execute("ROLLBACK;")

    @contextmanager
    def read(self) -> Iterator[sqlite3.Connection]:
        """Plain reads on the shared connection. Takes the in-process lock but no SQLite write lock."""
        with self._lock:
            yield self.conn

    def query(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        with self.read() as con:
            return con.execute(sql, params).fetchall()
