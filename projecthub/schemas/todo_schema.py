# projecthub/schemas/todo_schema.py

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

from projecthub.models.todo import TODO_PRIORITIES, TODO_STATUSES


def _check_status(value):
    if value is not None and value not in TODO_STATUSES:
        raise ValueError("Status must be either pending, in_progress, or completed")
    return value


def _check_priority(value):
    if value is not None and value not in TODO_PRIORITIES:
        raise ValueError("Priority must be either low, medium, or high")
    return value


def _not_null(value, info):
    if value is None:
        raise ValueError(f"{info.field_name} cannot be null")
    return value


# --------- CREATE ----------
class TodoCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: Optional[int] = Field(None, alias="projectId")
    title: Optional[str] = None
    description: Optional[str] = None
    priority: str = "medium"
    due_date: Optional[datetime] = Field(None, alias="dueDate")

    @field_validator("priority")
    def priority_level(cls, value):
        return _check_priority(value)


# --------- UPDATE (PATCH) ----------
class TodoUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[datetime] = Field(None, alias="dueDate")

    @field_validator("title", "status", "priority", mode="before")
    def required_columns(cls, value, info):
        return _not_null(value, info)

    @field_validator("status")
    def status_value(cls, value):
        return _check_status(value)

    @field_validator("priority")
    def priority_level(cls, value):
        return _check_priority(value)


# --------- READ ----------
class TodoRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    project_id: int
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
