from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from task_tracker import services
from task_tracker.database import get_session
from task_tracker.schemas import DeleteResult, TaskCreate, TaskOut, TaskUpdate
from task_tracker.services.filters import TaskSummary


router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(task: TaskCreate, db: Session = Depends(get_session)):
    return services.create_task(db, task)


@router.get("", response_model=list[TaskOut])
def read_tasks(db: Session = Depends(get_session)):
    return services.get_tasks(db)


# Registered before "/{task_id}" so "summary" is not parsed as an id
@router.get("/summary", response_model=TaskSummary)
def read_summary(db: Session = Depends(get_session)):
    return services.summarize(services.get_tasks(db))


@router.get("/{task_id}", response_model=TaskOut)
def read_task(task_id: int, db: Session = Depends(get_session)):
    return services.get_task(db, task_id)


@router.patch("/{task_id}", response_model=TaskOut)
def update_task(task_id: int, changes: TaskUpdate, db: Session = Depends(get_session)):
    return services.update_task(db, task_id, changes.to_patch())


@router.delete("/{task_id}", response_model=DeleteResult)
def delete_task(task_id: int, db: Session = Depends(get_session)):
    return services.delete_task(db, task_id)
