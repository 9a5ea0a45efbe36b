from __future__ import annotations

import pytest

from flowstate.models.entities import SubTaskEntity, TaskEntity, TaskWithSubTasks
from flowstate.models.mappers import (
    priority_from_ordinal,
    priority_to_ordinal,
    subtask_to_entity,
    task_from_entity,
    task_to_entity,
)
from flowstate.models.task import Priority, SubTask, Task


@pytest.mark.parametrize("priority", list(Priority))
def test_priority_survives_ordinal_round_trip(priority: Priority):
    assert priority_from_ordinal(priority_to_ordinal(priority)) is priority


def test_priority_ordinals_are_stable():
    assert [priority_to_ordinal(p) for p in Priority] == [0, 1, 2, 3]
    assert [p.name for p in Priority] == ["NOTHING", "LOW", "MEDIUM", "HIGH"]


@pytest.mark.parametrize("stored", [99, 4, -1, None, "2", True])
def test_unknown_ordinal_falls_back_to_nothing(stored):
    assert priority_from_ordinal(stored) is Priority.NOTHING


def test_task_maps_to_rows_and_back():
    task = Task(
        id=7,
        title="Write report",
        description="quarterly",
        is_done=False,
        position=3,
        priority=Priority.HIGH,
        due_date=1_700_000_000_000,
        sub_tasks=(
            SubTask(id="a", title="outline", priority=Priority.LOW, position=0),
            SubTask(id="b", title="draft", is_done=True, due_date=1_700_000_500_000, position=1),
        ),
    )

    entity = task_to_entity(task)
    assert entity == TaskEntity(
        id=7, title="Write report", description="quarterly", is_done=False,
        position=3, priority=3, due_date=1_700_000_000_000,
    )
    subs = [subtask_to_entity(s, task_id=task.id) for s in task.sub_tasks]
    assert [s.task_id for s in subs] == [7, 7]
    assert subs[0].priority == 1

    assert task_from_entity(TaskWithSubTasks(task=entity, sub_tasks=subs)) == task


def test_out_of_range_row_priority_is_tolerated():
    row = TaskWithSubTasks(
        task=TaskEntity(id=1, title="from the future", priority=12),
        sub_tasks=[SubTaskEntity(id="x", task_id=1, title="child", priority=-5)],
    )
    task = task_from_entity(row)
    assert task.priority is Priority.NOTHING
    assert task.sub_tasks[0].priority is Priority.NOTHING
