# flowstate type definitions
# Rev 0.2.0

from __future__ import annotations
from dataclasses import dataclass
from typing import Union

from .task import Task


# Screen state for the task list: nothing received yet vs. a filtered list.
@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Ready:
    tasks: tuple[Task, ...] = ()


TasksUiState = Union[Loading, Ready]

LOADING = Loading()
