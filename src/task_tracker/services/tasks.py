"""Task CRUD handlers.

Each handler takes an open SQLAlchemy session, issues a single statement
(update is a locked read followed by one write) and commits. Store errors
propagate unchanged; the caller's session scope rolls back.
"""

import logging
from datetime import datetime, timedelta

from opentelemetry import metrics, trace
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from task_tracker.errors import TaskNotFoundError
from task_tracker.models import Task, utcnow
from task_tracker.schemas import DeleteResult, TaskCreate, TaskPatch


logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)
meter = metrics.get_meter(__name__)

tasks_created = meter.create_counter(
    name="tasks.created",
    description="Tasks created",
    unit="{task}",
)
tasks_deleted = meter.create_counter(
    name="tasks.deleted",
    description="Tasks deleted",
    unit="{task}",
)


def create_task(session: Session, data: TaskCreate) -> Task:
    with tracer.start_as_current_span("task.create") as span:
        now = utcnow()
        task = Task(
            title=data.title,
            description=data.description,
            completed=False,
            created_at=now,
            updated_at=now,
        )
        session.add(task)
        session.commit()
        session.refresh(task)

        span.set_attribute("task.id", task.id)
        tasks_created.add(1)
        logger.info("Task created: %s", task.id)
        return task


def get_tasks(session: Session) -> list[Task]:
    """Return every task, most recently created first."""
    with tracer.start_as_current_span("task.list") as span:
        stmt = select(Task).order_by(Task.created_at.desc(), Task.id.desc())
        tasks = list(session.scalars(stmt))
        span.set_attribute("task.count", len(tasks))
        return tasks


def get_task(session: Session, task_id: int) -> Task:
    with tracer.start_as_current_span("task.get") as span:
        span.set_attribute("task.id", task_id)
        task = session.get(Task, task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task


def _touch(previous: datetime) -> datetime:
    """Next ``updated_at`` value, strictly after ``previous``."""
    now = utcnow()
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def update_task(session: Session, task_id: int, patch: TaskPatch) -> Task:
    """Apply the fields present in ``patch`` and refresh ``updated_at``.

    ``updated_at`` moves forward even when the patch is empty.

    Raises:
        TaskNotFoundError: no task has this id.
    """
    with tracer.start_as_current_span("task.update") as span:
        span.set_attribute("task.id", task_id)

        # Row lock on PostgreSQL; SQLite ignores FOR UPDATE
        task = session.get(Task, task_id, with_for_update=True)
        if task is None:
            raise TaskNotFoundError(task_id)

        if patch.title is not None:
            task.title = patch.title.value
        if patch.description is not None:
            task.description = patch.description.value
        if patch.completed is not None:
            task.completed = patch.completed.value
        task.updated_at = _touch(task.updated_at)

        session.commit()
        session.refresh(task)

        changed = patch.changed_fields()
        span.set_attribute("task.changed_fields", changed)
        logger.info("Task updated: %s fields=%s", task_id, ",".join(changed) or "-")
        return task


def delete_task(session: Session, task_id: int) -> DeleteResult:
    """Permanently remove a task.

    The affected-row count of the DELETE decides not-found, so a concurrent
    delete of the same id cannot produce two successes.

    Raises:
        TaskNotFoundError: no task has this id.
    """
    with tracer.start_as_current_span("task.delete") as span:
        span.set_attribute("task.id", task_id)

        stmt = (
            delete(Task)
            .where(Task.id == task_id)
            .execution_options(synchronize_session="evaluate")
        )
        result = session.execute(stmt)
        if result.rowcount == 0:
            session.rollback()
            raise TaskNotFoundError(task_id)
        session.commit()

        tasks_deleted.add(1)
        logger.info("Task deleted: %s", task_id)
        return DeleteResult(success=True)
