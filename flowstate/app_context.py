# flowstate application context
# Rev 0.2.0

from __future__ import annotations
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Dict, Optional

from .repositories.db import Database
from .repositories.sqlite_task_dao import SQLiteTaskDao
from .repositories.sqlite_task_repository import SQLiteTaskRepository
from .utils.config import resolve_db_path
from .utils.logging_setup import get_logger

MEMORY_DB = ":memory:"


@dataclass
class AppContext:
    """Central container for shared app resources. One per database file per process."""
    db_path: Path
    db: Database
    dao: SQLiteTaskDao
    tasks: SQLiteTaskRepository

    _instances: ClassVar[Dict[Path, "AppContext"]] = {}
    _guard: ClassVar[threading.Lock] = threading.Lock()

    @classmethod
    def create(cls, db_path: Optional[Path | str] = None) -> "AppContext":
        """Open (or reuse) the DB, run migrations, wire DAO and repository."""
        path = Path(db_path) if db_path is not None else resolve_db_path()
        # ":memory:" is a private database per connection, never a file
        key = path if str(path) == MEMORY_DB else path.expanduser().resolve()
        with cls._guard:
            existing = cls._instances.get(key)
            if existing is not None:
                return existing
            log = get_logger("AppContext")
            db = Database(key)
            try:
                applied = db.run_migrations()
            except Exception:
                db.close()
                raise
            dao = SQLiteTaskDao(db)
            ctx = cls(db_path=key, db=db, dao=dao, tasks=SQLiteTaskRepository(dao))
            cls._instances[key] = ctx
            log.info("AppContext initialized with DB=%s (applied %d migrations)", key, len(applied))
            return ctx

    def close(self) -> None:
        with self._guard:
            self._instances.pop(self.db_path, None)
        self.dao.close()
        self.db.close()
