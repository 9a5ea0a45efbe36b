# Rev 0.4.0
from __future__ import annotations

import sqlite3
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional

from flowstate.models.entities import SubTaskEntity, TaskEntity, TaskWithSubTasks
from flowstate.repositories.db import Database
from flowstate.repositories.live_query import LiveQuery
from flowstate.utils.logging_setup import get_logger

TASK_TABLES = ("tasks", "subtasks")

_TASK_COLUMNS = "id, title, description, is_done, position, priority, due_date"
_SUBTASK_COLUMNS = "id, task_id, title, description, is_done, priority, due_date, position"


class SQLiteTaskDao:
    """
    Direct SQL accessors for tasks + subtasks, aligned with migration 0004.
    Every write runs inside Database.transaction(); the composite calls nest
    the single-table helpers into one atomic unit.

    Live queries re-run on `reader`, a single worker by default, so the
    thread that owns them never waits on the connection lock.
    """

    def __init__(self, db: Database, reader: Optional[Executor] = None):
        self._db = db
        self._owns_reader = reader is None
        self._reader = reader or ThreadPoolExecutor(max_workers=1, thread_name_prefix="flowstate-read")
        self._log = get_logger("dao.tasks")

    def close(self) -> None:
        if self._owns_reader:
            self._reader.shutdown(wait=True, cancel_futures=True)

    # -------------------------
    # Row mapping
    # -------------------------
    @staticmethod
    def _row_to_task_entity(row: sqlite3.Row) -> TaskEntity:
        return TaskEntity(
            id=row["id"],
            title=row["title"],
            description=row["description"] or "",
            is_done=bool(row["is_done"]),
            position=row["position"],
            priority=row["priority"],
            due_date=row["due_date"],
        )

    @staticmethod
    def _row_to_subtask_entity(row: sqlite3.Row) -> SubTaskEntity:
        return SubTaskEntity(
            id=row["id"],
            task_id=row["task_id"],
            title=row["title"],
            description=row["description"] or "",
            is_done=bool(row["is_done"]),
            priority=row["priority"],
            due_date=row["due_date"],
            position=row["position"],
        )

    # -------------------------
    # Writes
    # -------------------------
    def upsert_task_entity(self, task: TaskEntity) -> int:
        """Insert (id == 0) or update by primary key; returns the row id."""
        with self._db.transaction("tasks") as con:
            rows = con.execute(
                f"""
                INSERT INTO tasks({_TASK_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title = excluded.title,
                    description = excluded.description,
                    is_done = excluded.is_done,
                    position = excluded.position,
                    priority = excluded.priority,
                    due_date = excluded.due_date
                RETURNING id
                """,
                (
                    task.id or None,
                    task.title,
                    task.description,
                    int(task.is_done),
                    task.position,
                    task.priority,
                    task.due_date,
                ),
            ).fetchall()
        return int(rows[0][0])

    def insert_subtasks(self, subtasks: Iterable[SubTaskEntity]) -> None:
        params = [
            (s.id, s.task_id, s.title, s.description, int(s.is_done), s.priority, s.due_date, s.position)
            for s in subtasks
        ]
        if not params:
            return
        with self._db.transaction("subtasks") as con:
            con.executemany(
                f"INSERT OR REPLACE INTO subtasks({_SUBTASK_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                params,
            )

    def delete_subtasks_by_task_id(self, task_id: int) -> int:
        with self._db.transaction("subtasks") as con:
            cur = con.execute("DELETE FROM subtasks WHERE task_id = ?", (task_id,))
        return cur.rowcount

    def delete_task_entity(self, task: TaskEntity) -> bool:
        # subtasks go with it through ON DELETE CASCADE
        with self._db.transaction(*TASK_TABLES) as con:
            cur = con.execute("DELETE FROM tasks WHERE id = ?", (task.id,))
        self._log.debug("delete task id=%s rows=%s", task.id, cur.rowcount)
        return cur.rowcount > 0

    def upsert_task_with_subtasks(self, task: TaskEntity, subtasks: List[SubTaskEntity]) -> int:
        """
        Save a task and replace its whole subtask set atomically:
        upsert parent, resolve id, drop old children, re-stamp and insert new ones.
        """
        with self._db.transaction(*TASK_TABLES):
            row_id = self.upsert_task_entity(task)
            task_id = row_id if task.id == 0 else task.id
            self.delete_subtasks_by_task_id(task_id)
            restamped = [
                SubTaskEntity(
                    id=s.id,
                    task_id=task_id,
                    title=s.title,
                    description=s.description,
                    is_done=s.is_done,
                    priority=s.priority,
                    due_date=s.due_date,
                    position=s.position,
                )
                for s in subtasks
            ]
            self.insert_subtasks(restamped)
        self._log.debug("upsert task id=%s subtasks=%d", task_id, len(restamped))
        return task_id

    def update_tasks(self, tasks: Iterable[TaskEntity]) -> int:
        """Persist the position column of each given row, in order. Missing rows are skipped."""
        params = [(t.position, t.id) for t in tasks]
        if not params:
            return 0
        with self._db.transaction("tasks") as con:
            con.executemany("UPDATE tasks SET position = ? WHERE id = ?", params)
        self._log.debug("update positions for %d tasks", len(params))
        return len(params)

    # -------------------------
    # Reads
    # -------------------------
    def get_tasks(self) -> List[TaskWithSubTasks]:
        with self._db.read() as con:
            task_rows = con.execute(
                f"SELECT {_TASK_COLUMNS} FROM tasks ORDER BY position ASC, id ASC"
            ).fetchall()
            sub_rows = con.execute(
                f"SELECT {_SUBTASK_COLUMNS} FROM subtasks ORDER BY task_id, position ASC, rowid ASC"
            ).fetchall()

        children: Dict[int, List[SubTaskEntity]] = {}
        for r in sub_rows:
            children.setdefault(r["task_id"], []).append(self._row_to_subtask_entity(r))
        return [
            TaskWithSubTasks(task=self._row_to_task_entity(r), sub_tasks=children.get(r["id"], []))
            for r in task_rows
        ]

    def get_task_by_id(self, task_id: int) -> Optional[TaskWithSubTasks]:
        with self._db.read() as con:
            rows = con.execute(f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ?", (task_id,)).fetchall()
            if not rows:
                return None
            sub_rows = con.execute(
                f"SELECT {_SUBTASK_COLUMNS} FROM subtasks WHERE task_id = ? ORDER BY position ASC, rowid ASC",
                (task_id,),
            ).fetchall()
        return TaskWithSubTasks(
            task=self._row_to_task_entity(rows[0]),
            sub_tasks=[self._row_to_subtask_entity(r) for r in sub_rows],
        )

    def observe_tasks(
        self, transform: Optional[Callable[[List[TaskWithSubTasks]], list]] = None
    ) -> LiveQuery:
        """Live version of get_tasks(); `transform` is applied to every result set."""
        if transform is None:
            return LiveQuery(self._db.invalidation, TASK_TABLES, self.get_tasks, self._reader)
        return LiveQuery(self._db.invalidation, TASK_TABLES, lambda: transform(self.get_tasks()), self._reader)
