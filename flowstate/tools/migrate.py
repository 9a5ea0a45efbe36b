# File: flowstate/tools/migrate.py
# Usage examples:
#   python -m flowstate.tools.migrate status
#   python -m flowstate.tools.migrate up
#   python -m flowstate.tools.migrate up --db /path/to/flowstate.db
#
# Notes:
# - DB path defaults to env FLOWSTATE_DB, then settings.json, then the XDG data dir
# - Applies flowstate/data/migrations/*.sql in lexicographic order
# - Exit code 2 when the DB holds migrations this build does not ship

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from flowstate.errors import SchemaVersionError
from flowstate.repositories.db import Database
from flowstate.utils.config import resolve_db_path
from flowstate.utils.logging_setup import setup_logging
from flowstate.utils.paths import MIGRATIONS_DIR


def cmd_status(db: Path, migrations_dir: Path) -> int:
    database = Database(db)
    try:
        applied = database.applied()
        shipped = [p.name for p in sorted(migrations_dir.glob("*.sql"))]

        print(f"DB: {db}")
        print(f"Migrations dir: {migrations_dir}")
        print(f"Applied count: {len(applied)}")
        for name in sorted(applied):
            mark = "✔" if name in shipped else "?"
            print(f"  {mark} {name}")

        pending = [name for name in shipped if name not in applied]
        print(f"Pending count: {len(pending)}")
        for name in pending:
            print(f"  ⧗ {name}")
        unknown = sorted(applied - set(shipped))
        if unknown:
            print(f"⚠️  DB is newer than this build; unknown migrations: {', '.join(unknown)}")
            return 2
        return 0
    finally:
        database.close()


def cmd_up(db: Path, migrations_dir: Path) -> int:
    database = Database(db)
    try:
        try:
            applied_now = database.run_migrations(migrations_dir)
        except SchemaVersionError as e:
            print(f"✖ {e}", file=sys.stderr)
            return 2
        if applied_now:
            for name in applied_now:
                print(f"→ Applied migration: {name}")
        else:
            print("Nothing to apply.")
        print(f"Schema version: {database.schema_version()}")
        return 0
    finally:
        database.close()


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="flowstate-migrate", description="flowstate schema migrations")
    parser.add_argument("command", choices=["status", "up"])
    parser.add_argument("--db", type=Path, default=None, help="SQLite database path")
    parser.add_argument("--migrations", type=Path, default=MIGRATIONS_DIR, help="Directory of *.sql migrations")
    parser.add_argument("--log-level", default=None, help="Also log to the flowstate log file at this level")
    args = parser.parse_args(argv)

    if args.log_level:
        setup_logging(args.log_level)

    db = args.db if args.db is not None else resolve_db_path()
    if args.command == "status":
        return cmd_status(db, args.migrations)
    return cmd_up(db, args.migrations)


if __name__ == "__main__":
    raise SystemExit(main())
