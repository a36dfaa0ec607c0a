from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import Field, model_validator

from crm_core.core.application.dtos.base_model import CrmBaseModel, CrmInputModel
from crm_core.core.domain.entities.task_entity import TaskEntity, TaskStatus


class TaskDTO(CrmBaseModel):
    id: uuid.UUID
    title: str
    description: str | None = None
    due_date: datetime | None = None
    status: TaskStatus
    assigned_to: uuid.UUID | None = None
    client_id: uuid.UUID | None = None
    is_overdue: bool = False
    is_due_today: bool = False
    created_at: datetime
    updated_at: datetime
    version: int
    shared_group_ids: list[uuid.UUID] | None = None

    @classmethod
    def from_entity(cls, task: TaskEntity) -> TaskDTO:
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            due_date=task.due_date,
            status=task.status,
            assigned_to=task.assigned_to,
            client_id=task.client_id,
            is_overdue=task.is_overdue(),
            is_due_today=task.is_due_today(),
            created_at=task.created_at,
            updated_at=task.updated_at,
            version=task.version,
            shared_group_ids=list(task.shared_group_ids) if task.shared_group_ids is not None else None,
        )


class CreateTaskDTO(CrmInputModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    due_date: datetime | None = None
    status: TaskStatus = TaskStatus.TODO
    assigned_to: uuid.UUID | None = None
    client_id: uuid.UUID | None = None
    shared_group_ids: list[uuid.UUID] | None = None


class UpdateTaskDTO(CrmInputModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    due_date: datetime | None = None
    status: TaskStatus | None = None
    assigned_to: uuid.UUID | None = None
    client_id: uuid.UUID | None = None
    shared_group_ids: list[uuid.UUID] | None = None
    version: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _no_null_for_required(self):
        for name in ("title", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"Pole {name} nie może być puste")
        return self


class TaskFilterDTO(CrmInputModel):
    status: TaskStatus | None = None
    assigned_to: uuid.UUID | None = None
    client_id: uuid.UUID | None = None
    order_by: Literal["due_date", "created_at", "updated_at"] | None = None
    direction: Literal["asc", "desc"] = "asc"
