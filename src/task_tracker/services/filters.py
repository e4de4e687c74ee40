"""View-side projections over an already fetched task list.

Nothing here touches the store; every function is pure and can be rerun on
each filter change.
"""

from collections.abc import Iterable, Sequence
from enum import StrEnum
from typing import Protocol, TypeVar

from pydantic import BaseModel


class _HasCompleted(Protocol):
    completed: bool


T = TypeVar("T", bound=_HasCompleted)


class TaskFilter(StrEnum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


class TaskSummary(BaseModel):
    total: int
    active: int
    completed: int


def matches(task: _HasCompleted, task_filter: TaskFilter) -> bool:
    if task_filter is TaskFilter.ACTIVE:
        return not task.completed
    if task_filter is TaskFilter.COMPLETED:
        return task.completed
    return True


def filter_tasks(tasks: Iterable[T], task_filter: TaskFilter) -> list[T]:
    """Return the tasks visible under ``task_filter``, order preserved."""
    return [task for task in tasks if matches(task, task_filter)]


def summarize(tasks: Sequence[_HasCompleted]) -> TaskSummary:
    completed = len(filter_tasks(tasks, TaskFilter.COMPLETED))
    return TaskSummary(total=len(tasks), active=len(tasks) - completed, completed=completed)
