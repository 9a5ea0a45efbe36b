# Rev 0.4.0
from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable, List, Optional

from PySide6.QtCore import QObject, Signal

from flowstate.models.task import Priority, SubTask, new_subtask


class SubtasksDraftViewModel(QObject):
    """
    Editable copy of a task's subtasks while the task editor is open.
    Nothing is written here; result() goes back through TasksViewModel.add_task
    or update_task so the parent upsert replaces the set in one transaction.
    Emits:
      - subtasksChanged(rows: list[SubTask])
    """

    subtasksChanged = Signal(list)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._items: List[SubTask] = []

    def load(self, sub_tasks: Iterable[SubTask]) -> None:
        self._items = sorted(sub_tasks, key=lambda s: s.position)
        self._changed()

    def result(self) -> tuple[SubTask, ...]:
        return tuple(self._items)

    # ---- commands ----
    def add_subtask(
        self,
        title: str,
        *,
        description: str = "",
        priority: Priority = Priority.NOTHING,
        due_date: Optional[int] = None,
    ) -> Optional[SubTask]:
        if not title or not title.strip():
            return None
        position = max((s.position for s in self._items), default=-1) + 1
        sub = new_subtask(title, description=description, priority=priority, due_date=due_date, position=position)
        self._items.append(sub)
        self._changed()
        return sub

    def update_subtask(self, subtask_id: str, **fields: Any) -> bool:
        if "id" in fields:
            raise ValueError("subtask id cannot be changed")
        idx = self._index_of(subtask_id)
        if idx is None:
            return False
        if "title" in fields and not (fields["title"] or "").strip():
            return False
        self._items[idx] = replace(self._items[idx], **fields)
        self._changed()
        return True

    def toggle_subtask_done(self, subtask_id: str) -> bool:
        idx = self._index_of(subtask_id)
        if idx is None:
            return False
        sub = self._items[idx]
        return self.update_subtask(subtask_id, is_done=not sub.is_done)

    def remove_subtask(self, subtask_id: str) -> bool:
        idx = self._index_of(subtask_id)
        if idx is None:
            return False
        del self._items[idx]
        self._changed()
        return True

    def move_subtask(self, from_index: int, to_index: int) -> bool:
        if not (0 <= from_index < len(self._items) and 0 <= to_index < len(self._items)):
            return False
        item = self._items.pop(from_index)
        self._items.insert(to_index, item)
        self._items = [replace(s, position=i) for i, s in enumerate(self._items)]
        self._changed()
        return True

    # ---- internals ----
    def _index_of(self, subtask_id: str) -> Optional[int]:
        for i, s in enumerate(self._items):
            if s.id == subtask_id:
                return i
        return None

    def _changed(self) -> None:
        self.subtasksChanged.emit(list(self._items))
