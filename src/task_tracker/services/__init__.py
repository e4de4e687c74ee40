"""Task handlers and view-side projections."""

from task_tracker.services.filters import TaskFilter, TaskSummary, filter_tasks, summarize
from task_tracker.services.tasks import (
    create_task,
    delete_task,
    get_task,
    get_tasks,
    update_task,
)


__all__ = [
    "TaskFilter",
    "TaskSummary",
    "create_task",
    "delete_task",
    "filter_tasks",
    "get_task",
    "get_tasks",
    "summarize",
    "update_task",
]
