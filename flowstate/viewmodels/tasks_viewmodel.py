# Rev 0.4.0: optimistic reorder + echo suppression
from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Callable, Iterable, Optional

from PySide6.QtCore import QObject, Signal

from flowstate.models.task import Priority, SubTask, Task
from flowstate.models.types import LOADING, Ready, TasksUiState
from flowstate.repositories.live_query import LiveQuery
from flowstate.repositories.task_repository import TaskRepository
from flowstate.utils.logging_setup import get_logger


class TasksViewModel(QObject):
    """
    VM for the task list.
    Emits:
      - stateChanged(state: Loading | Ready)

    Shows only tasks that are not done, in position order. Writes go to a
    background executor and are never awaited; the repository's live query
    brings the durable state back in.
    """

    stateChanged = Signal(object)

    def __init__(self, repository: TaskRepository, executor: Optional[Executor] = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._repo = repository
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="flowstate-io")
        self._state: TasksUiState = LOADING
        self._query: Optional[LiveQuery] = None
        self._log = get_logger("vm.tasks")

    # ---- state
    @property
    def state(self) -> TasksUiState:
        return self._state

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._state.tasks if isinstance(self._state, Ready) else ()

    # ---- lifecycle
    def start(self) -> None:
        if self._query is not None:
            return
        self._query = self._repo.get_tasks()
        self._query.resultsChanged.connect(self._on_tasks_loaded)
        self._query.start()

    def stop(self) -> None:
        """Stop observing. Writes already submitted still run to completion."""
        if self._query is None:
            return
        self._query.resultsChanged.disconnect(self._on_tasks_loaded)
        self._query.stop()
        self._query = None

    def close(self) -> None:
        self.stop()
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    # ---- commands
    def add_task(
        self,
        title: str,
        description: str = "",
        priority: Priority = Priority.NOTHING,
        due_date: Optional[int] = None,
        sub_tasks: Iterable[SubTask] = (),
    ) -> Optional[Future]:
        if not title or not title.strip():
            return None
        # one below the current minimum so it shows first without renumbering the rest
        min_position = min((t.position for t in self.tasks), default=0)
        task = Task(
            title=title,
            description=description,
            is_done=False,
            position=min_position - 1,
            priority=priority,
            due_date=due_date,
            sub_tasks=tuple(sub_tasks),
        )
        return self._submit("add task", self._repo.upsert_task, task)

    def update_task(
        self,
        original: Task,
        title: str,
        description: str,
        priority: Priority,
        due_date: Optional[int],
        sub_tasks: Iterable[SubTask],
    ) -> Optional[Future]:
        if not title or not title.strip():
            return None
        task = replace(
            original,
            title=title,
            description=description,
            priority=priority,
            due_date=due_date,
            sub_tasks=tuple(sub_tasks),
        )
        return self._submit("update task", self._repo.upsert_task, task)

    def delete_task(self, task: Task) -> Future:
        return self._submit("delete task", self._repo.delete_task, task)

    def toggle_task_done(self, task: Task) -> Future:
        return self._submit("toggle task", self._repo.upsert_task, replace(task, is_done=not task.is_done))

    def on_reorder(self, from_index: int, to_index: int) -> Optional[Future]:
        if not isinstance(self._state, Ready):
            return None
        items = list(self._state.tasks)
        if not (0 <= from_index < len(items) and 0 <= to_index < len(items)):
            self._log.warning("reorder out of range: %s -> %s (size %d)", from_index, to_index, len(items))
            return None

        item = items.pop(from_index)
        items.insert(to_index, item)
        renumbered = tuple(replace(t, position=i) for i, t in enumerate(items))

        self._publish(Ready(renumbered))
        return self._submit("reorder", self._repo.update_tasks_order, renumbered)

    # ---- internals
    def _on_tasks_loaded(self, tasks: list) -> None:
        visible = tuple(sorted((t for t in tasks if not t.is_done), key=lambda t: t.position))
        if isinstance(self._state, Ready) and self._state.tasks == visible:
            return  # echo of what is already on screen
        self._publish(Ready(visible))

    def _publish(self, state: TasksUiState) -> None:
        self._state = state
        self.stateChanged.emit(state)

    def _submit(self, label: str, fn: Callable[..., Any], *args: Any) -> Future:
        future = self._executor.submit(fn, *args)
        future.add_done_callback(lambda f: self._log_failure(label, f))
        return future

    def _log_failure(self, label: str, future: Future) -> None:
        if future.cancelled():
            self._log.warning("%s cancelled", label)
            return
        exc = future.exception()
        if exc is not None:
            self._log.error("%s failed", label, exc_info=exc)
