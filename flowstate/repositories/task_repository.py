# Rev 0.4.0
from __future__ import annotations

from typing import Optional, Protocol, Sequence

from flowstate.models.task import Task
from flowstate.repositories.live_query import LiveQuery


class TaskRepository(Protocol):
    """
    The task contract view-models depend on. Implementations hide storage.
    Deleting or reordering a task that no longer exists affects nothing.
    """

    def get_tasks(self) -> LiveQuery:
        """Live query emitting list[Task] (with subtasks) in position order."""
        ...

    def get_task_by_id(self, task_id: int) -> Optional[Task]:
        ...

    def upsert_task(self, task: Task) -> int:
        """Insert or fully replace a task and its subtasks; returns the task id."""
        ...

    def delete_task(self, task: Task) -> None:
        ...

    def update_tasks_order(self, tasks: Sequence[Task]) -> None:
        ...
