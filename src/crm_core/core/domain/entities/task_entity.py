from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from crm_core.core.domain.entities._base import TimestampedEntity, as_aware

_UNSET: Any = object()


class TaskStatus(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class TaskEntity(TimestampedEntity):
    __slots__ = (
        "id",
        "title",
        "description",
        "due_date",
        "_status",
        "assigned_to",
        "client_id",
        "shared_group_ids",
    )

    def __init__(
        self,
        *,
        id: uuid.UUID,
        title: str,
        status: TaskStatus = TaskStatus.TODO,
        description: str | None = None,
        due_date: datetime | None = None,
        assigned_to: uuid.UUID | None = None,
        client_id: uuid.UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        version: int = 1,
        shared_group_ids: tuple[uuid.UUID, ...] | None = None,
    ) -> None:
        super().__init__(created_at, updated_at, version)
        self.id = id
        self.title = title
        self.description = description
        self.due_date = due_date
        self._status = TaskStatus(status)
        self.assigned_to = assigned_to
        self.client_id = client_id
        self.shared_group_ids = shared_group_ids

    @classmethod
    def from_persistence(cls, data: dict[str, Any]) -> TaskEntity:
        return cls(**data)

    def to_persistence(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "due_date": self.due_date,
            "status": self._status.value,
            "assigned_to": self.assigned_to,
            "client_id": self.client_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @property
    def status(self) -> TaskStatus:
        return self._status

    def change_status(self, new_status: TaskStatus) -> None:
        new_status = TaskStatus(new_status)
        if new_status is self._status:
            return
        self._status = new_status
        self._touch()

    def assign_to(self, user_id: uuid.UUID | None) -> None:
        self.assigned_to = user_id
        self._touch()

    def update_info(
        self,
        *,
        title: str = _UNSET,
        description: str | None = _UNSET,
        due_date: datetime | None = _UNSET,
        client_id: uuid.UUID | None = _UNSET,
    ) -> None:
        """Atualização parcial: só os argumentos informados mudam."""
        if title is not _UNSET:
            self.title = title
        if description is not _UNSET:
            self.description = description
        if due_date is not _UNSET:
            self.due_date = due_date
        if client_id is not _UNSET:
            self.client_id = client_id
        self._touch()

    def is_overdue(self) -> bool:
        if self.due_date is None or self._status is TaskStatus.COMPLETED:
            return False
        return as_aware(self.due_date) < datetime.now().astimezone()

    def is_due_today(self) -> bool:
        """Vence em [hoje 00:00, amanhã 00:00) no horário local do servidor."""
        if self.due_date is None:
            return False
        today = datetime.now().astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
        tomorrow = today + timedelta(days=1)
        return today <= as_aware(self.due_date) < tomorrow
