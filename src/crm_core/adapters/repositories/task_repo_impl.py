from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

from asgiref.sync import sync_to_async
from django.db.models import Q

from crm_core.adapters.repositories._orm_helpers import (
    apply_find_options,
    group_ids_of,
    replace_shared_groups,
    shared_with_user,
    versioned_update,
    without,
)
from crm_core.core.domain.entities.task_entity import TaskEntity, TaskStatus
from crm_core.core.domain.events.exceptions import ValidationError
from crm_core.core.domain.repositories.task_repository import TaskFilter, TaskFindOptions, TaskRepository
from plugins.django_interface.models import Task as TaskModel
from plugins.django_interface.models import User as UserModel


class TaskRepoImpl(TaskRepository):
    """Implementação Django do TaskRepository."""

    @staticmethod
    def _to_entity(m: TaskModel, include: frozenset[str]) -> TaskEntity:
        return TaskEntity.from_persistence({
            "id": m.id,
            "title": m.title,
            "description": m.description,
            "due_date": m.due_date,
            "status": m.status,
            "assigned_to": m.assigned_to_id,
            "client_id": m.client_id,
            "created_at": m.created_at,
            "updated_at": m.updated_at,
            "version": m.version,
            "shared_group_ids": group_ids_of(m) if "shared_groups" in include else None,
        })

    @staticmethod
    def _to_row(task: TaskEntity) -> dict[str, Any]:
        data = task.to_persistence()
        data["assigned_to_id"] = data.pop("assigned_to")
        if data["assigned_to_id"] and not UserModel.objects.filter(id=data["assigned_to_id"]).exists():
            raise ValidationError("Przypisany użytkownik nie istnieje")
        return data

    @staticmethod
    def _scoped(filtros: TaskFilter):
        qs = TaskModel.objects.all()
        if not filtros.is_admin:
            qs = qs.filter(
                Q(assigned_to_id=filtros.user_id) | Q(id__in=shared_with_user(TaskModel, filtros.user_id))
            )
        if filtros.status:
            qs = qs.filter(status=TaskStatus(filtros.status).value)
        if filtros.assigned_to:
            qs = qs.filter(assigned_to_id=filtros.assigned_to)
        if filtros.client_id:
            qs = qs.filter(client_id=filtros.client_id)
        return qs

    def _find_by_id(self, task_id: uuid.UUID, options: TaskFindOptions | None) -> TaskEntity | None:
        options = options or TaskFindOptions()
        qs = TaskModel.objects.filter(id=task_id)
        if "shared_groups" in options.include:
            qs = qs.prefetch_related("shared_groups")
        m = qs.first()
        return self._to_entity(m, options.include) if m else None

    def _find_many(self, filtros: TaskFilter, options: TaskFindOptions | None) -> list[TaskEntity]:
        options = options or TaskFindOptions()
        qs = self._scoped(filtros)
        if "shared_groups" in options.include:
            qs = qs.prefetch_related("shared_groups")
        return [self._to_entity(m, options.include) for m in apply_find_options(qs, options)]

    def _count(self, filtros: TaskFilter) -> int:
        return self._scoped(filtros).count()

    def _create(self, task: TaskEntity) -> TaskEntity:
        TaskModel.objects.create(**self._to_row(task), version=task.version)
        return task

    def _update(self, task: TaskEntity) -> TaskEntity:
        fields = without(self._to_row(task), ("id", "created_at"))
        task.version = versioned_update(TaskModel, task.id, task.version, fields)
        return task

    def _is_shared_with_user(self, task_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return TaskModel.objects.filter(id=task_id, shared_groups__users__id=user_id).exists()

    async def find_by_id(self, task_id: uuid.UUID, options: TaskFindOptions | None = None) -> TaskEntity | None:
        return await sync_to_async(self._find_by_id)(task_id, options)

    async def find_many(self, filtros: TaskFilter, options: TaskFindOptions | None = None) -> list[TaskEntity]:
        return await sync_to_async(self._find_many)(filtros, options)

    async def count(self, filtros: TaskFilter) -> int:
        return await sync_to_async(self._count)(filtros)

    async def create(self, task: TaskEntity) -> TaskEntity:
        return await sync_to_async(self._create)(task)

    async def update(self, task: TaskEntity) -> TaskEntity:
        return await sync_to_async(self._update)(task)

    async def delete(self, task_id: uuid.UUID) -> None:
        await sync_to_async(TaskModel.objects.filter(id=task_id).delete)()

    async def exists(self, task_id: uuid.UUID) -> bool:
        return await sync_to_async(TaskModel.objects.filter(id=task_id).exists)()

    async def is_shared_with_user(self, task_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return await sync_to_async(self._is_shared_with_user)(task_id, user_id)

    async def set_shared_groups(self, task_id: uuid.UUID, group_ids: Sequence[uuid.UUID]) -> None:
        await sync_to_async(replace_shared_groups)(TaskModel, task_id, group_ids)
