# Rev 0.4.0
"""Domain objects for tasks and sub-tasks. Nothing here knows about SQLite."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Priority(Enum):
    # Declaration order is the storage ordinal; append new members at the end.
    NOTHING = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @property
    def ordinal(self) -> int:
        return self.value


@dataclass(frozen=True)
class SubTask:
    id: str
    title: str
    description: str = ""
    is_done: bool = False
    priority: Priority = Priority.NOTHING
    due_date: Optional[int] = None      # epoch millis
    position: int = 0


@dataclass(frozen=True)
class Task:
    title: str
    id: int = 0                          # 0 = not persisted yet
    description: str = ""
    is_done: bool = False
    position: int = 0
    priority: Priority = Priority.NOTHING
    due_date: Optional[int] = None      # epoch millis
    sub_tasks: tuple[SubTask, ...] = ()


def new_subtask(
    title: str,
    *,
    description: str = "",
    priority: Priority = Priority.NOTHING,
    due_date: Optional[int] = None,
    position: int = 0,
) -> SubTask:
    return SubTask(
        id=str(uuid.uuid4()),
        title=title,
        description=description,
        priority=priority,
        due_date=due_date,
        position=position,
    )
