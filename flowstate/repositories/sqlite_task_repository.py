# Rev 0.4.0
from __future__ import annotations

from typing import List, Optional, Sequence

from flowstate.models.entities import TaskWithSubTasks
from flowstate.models.mappers import subtask_to_entity, task_from_entity, task_to_entity
from flowstate.models.task import Task
from flowstate.repositories.live_query import LiveQuery
from flowstate.repositories.sqlite_task_dao import SQLiteTaskDao


def _to_domain(rows: List[TaskWithSubTasks]) -> List[Task]:
    return [task_from_entity(r) for r in rows]


class SQLiteTaskRepository:
    """
    TaskRepository over SQLite: splits domain tasks into parent/child rows for
    the DAO and maps query results back. sqlite3 errors propagate after the
    DAO's transaction has rolled back.
    """

    def __init__(self, dao: SQLiteTaskDao):
        self._dao = dao

    def get_tasks(self) -> LiveQuery:
        return self._dao.observe_tasks(_to_domain)

    def get_task_by_id(self, task_id: int) -> Optional[Task]:
        row = self._dao.get_task_by_id(task_id)
        return task_from_entity(row) if row else None

    def upsert_task(self, task: Task) -> int:
        entity = task_to_entity(task)
        subs = [subtask_to_entity(s, task_id=task.id) for s in task.sub_tasks]
        return self._dao.upsert_task_with_subtasks(entity, subs)

    def delete_task(self, task: Task) -> None:
        self._dao.delete_task_entity(task_to_entity(task))

    def update_tasks_order(self, tasks: Sequence[Task]) -> None:
        self._dao.update_tasks([task_to_entity(t) for t in tasks])
