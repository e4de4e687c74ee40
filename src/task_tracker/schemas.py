from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator


T = TypeVar("T")


@dataclass(frozen=True)
class Change(Generic[T]):
    """A value the caller explicitly supplied for a field.

    ``Change(None)`` means "set the field to null", while the absence of a
    ``Change`` means "leave the field alone".
    """

    value: T


@dataclass(frozen=True)
class TaskPatch:
    title: Change[str] | None = None
    description: Change[str | None] | None = None
    completed: Change[bool] | None = None

    def changed_fields(self) -> list[str]:
        return [
            name
            for name in ("title", "description", "completed")
            if getattr(self, name) is not None
        ]


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, description="Task title, must not be empty")
    description: str | None = Field(default=None, description="Optional free-form notes")


class TaskUpdate(BaseModel):
    """Partial update body. Only the fields present in the payload are applied."""

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    completed: bool | None = None

    @model_validator(mode="after")
    def reject_null_for_required_columns(self) -> "TaskUpdate":
        for name in ("title", "completed"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} may be omitted but not null")
        return self

    def to_patch(self) -> TaskPatch:
        present = self.model_fields_set
        return TaskPatch(
            title=Change(self.title) if "title" in present else None,
            description=Change(self.description) if "description" in present else None,
            completed=Change(self.completed) if "completed" in present else None,
        )


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None
    completed: bool
    created_at: datetime
    updated_at: datetime


class DeleteResult(BaseModel):
    success: bool
