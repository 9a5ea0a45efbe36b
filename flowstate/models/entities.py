# Rev 0.4.0
"""Row-shaped records aligned with schema migration 0004 (due dates)"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class TaskEntity:
    id: int                      # 0 until the store assigns one
    title: str
    description: str = ""
    is_done: bool = False
    position: int = 0
    priority: int = 0            # Priority ordinal
    due_date: Optional[int] = None


@dataclass
class SubTaskEntity:
    id: str
    task_id: int                 # FK -> tasks.id (ON DELETE CASCADE)
    title: str
    description: str = ""
    is_done: bool = False
    priority: int = 0
    due_date: Optional[int] = None
    position: int = 0


@dataclass
class TaskWithSubTasks:
    """Parent row plus its children; a query result, not a table."""
    task: TaskEntity
    sub_tasks: list[SubTaskEntity] = field(default_factory=list)
