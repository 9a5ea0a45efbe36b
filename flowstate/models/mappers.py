# Rev 0.4.0
"""Conversions between stored rows (entities) and domain objects."""
from __future__ import annotations

from typing import Any

from .entities import SubTaskEntity, TaskEntity, TaskWithSubTasks
from .task import Priority, SubTask, Task

_PRIORITIES = list(Priority)


def priority_to_ordinal(priority: Priority) -> int:
    return priority.ordinal


def priority_from_ordinal(ordinal: Any) -> Priority:
    """Unknown or out-of-range ordinals map to Priority.NOTHING."""
    if isinstance(ordinal, bool) or not isinstance(ordinal, int):
        return Priority.NOTHING
    if 0 <= ordinal < len(_PRIORITIES):
        return _PRIORITIES[ordinal]
    return Priority.NOTHING


def task_to_entity(task: Task) -> TaskEntity:
    return TaskEntity(
        id=task.id,
        title=task.title,
        description=task.description,
        is_done=task.is_done,
        position=task.position,
        priority=priority_to_ordinal(task.priority),
        due_date=task.due_date,
    )


def subtask_to_entity(sub: SubTask, task_id: int) -> SubTaskEntity:
    return SubTaskEntity(
        id=sub.id,
        task_id=task_id,
        title=sub.title,
        description=sub.description,
        is_done=sub.is_done,
        priority=priority_to_ordinal(sub.priority),
        due_date=sub.due_date,
        position=sub.position,
    )


def subtask_from_entity(entity: SubTaskEntity) -> SubTask:
    return SubTask(
        id=entity.id,
        title=entity.title,
        description=entity.description,
        is_done=entity.is_done,
        priority=priority_from_ordinal(entity.priority),
        due_date=entity.due_date,
        position=entity.position,
    )


def task_from_entity(row: TaskWithSubTasks) -> Task:
    t = row.task
    return Task(
        id=t.id,
        title=t.title,
        description=t.description,
        is_done=t.is_done,
        position=t.position,
        priority=priority_from_ordinal(t.priority),
        due_date=t.due_date,
        sub_tasks=tuple(subtask_from_entity(s) for s in row.sub_tasks),
    )
