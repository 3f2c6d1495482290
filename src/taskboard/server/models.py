"""Pydantic request / response models for the HTTP API.

Wire fields are camelCase; Python attributes stay snake_case.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..task_engine.model import Task


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

class TaskOut(ApiModel):
    """Task as returned to clients."""

    id: int
    title: str
    description: Optional[str] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    status: str
    sort_order: int = Field(alias="sortOrder")
    created_by: Optional[str] = Field(default=None, alias="createdBy")
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    @classmethod
    def from_task(cls, task: Task) -> "TaskOut":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            due_date=task.due_date,
            status=task.status.value,
            sort_order=task.sort_order,
            created_by=task.created_by,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class CreateTaskRequest(ApiModel):
    # Title presence is checked by the engine so a missing title is a 400.
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    status: Optional[str] = None


class UpdateTaskRequest(ApiModel):
    id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    status: Optional[str] = None


class ReorderColumnRequest(ApiModel):
    status: str
    ordered_ids: list[int] = Field(default_factory=list, alias="orderedIds")


class BoardResponse(ApiModel):
    columns: dict[str, list[TaskOut]]


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class RegisterRequest(ApiModel):
    email: str
    password: str


class LoginRequest(ApiModel):
    email: str
    password: str


class AuthUser(ApiModel):
    id: str
    username: str
    email: str


class AuthResponse(ApiModel):
    token: str
    user: AuthUser


class AuthStatus(ApiModel):
    enabled: bool
    authenticated: bool
    username: Optional[str] = None
