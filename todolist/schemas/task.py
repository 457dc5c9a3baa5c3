"""Pydantic schemas for task request/response validation."""

from pydantic import BaseModel, ConfigDict, StrictBool, field_validator, model_validator
from datetime import datetime
from typing import Optional, List


def _non_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("Task description must be a non-empty string")
    return value.strip()


class TaskCreate(BaseModel):
    description: str

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, value: str) -> str:
        return _non_blank(value)


class TaskUpdate(BaseModel):
    """Schema for updating an existing task."""

    description: Optional[str] = None
    completed: Optional[StrictBool] = None

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _non_blank(value)

    @model_validator(mode="after")
    def at_least_one_field(self) -> "TaskUpdate":
        if self.description is None and self.completed is None:
            raise ValueError("No valid updates provided")
        return self


class TaskResponse(BaseModel):
    """Schema for task responses from API."""

    id: str
    user_id: str
    description: str
    completed: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskEnvelope(BaseModel):
    task: TaskResponse


class TaskListResponse(BaseModel):
    tasks: List[TaskResponse]


class DeleteResponse(BaseModel):
    success: bool
    message: str
