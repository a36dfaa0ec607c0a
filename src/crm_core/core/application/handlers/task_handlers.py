from __future__ import annotations

import uuid

import structlog

from crm_core.core.application.commands.task_commands import CreateTaskCommand, DeleteTaskCommand, UpdateTaskCommand
from crm_core.core.application.cqrs import CommandHandler, PagedResult, QueryHandler
from crm_core.core.application.dtos.task_dto import TaskDTO
from crm_core.core.application.handlers._pagination import page_window
from crm_core.core.application.queries.task_queries import GetTaskQuery, ListTasksQuery
from crm_core.core.application.services.activity_logger import ActivityLogger
from crm_core.core.domain.entities.task_entity import TaskEntity, TaskStatus
from crm_core.core.domain.entities.user_entity import ActingUser
from crm_core.core.domain.events.exceptions import ConcurrentUpdateError, ForbiddenError, NotFoundError
from crm_core.core.domain.repositories.find_options import OrderBy
from crm_core.core.domain.repositories.task_repository import TaskFilter, TaskFindOptions, TaskRepository
from crm_core.core.domain.services.access_policy import ClientAccessPolicy

logger = structlog.get_logger(__name__)

TASK_NOT_FOUND = "Zadanie nie znalezione"

_FIELD_LABELS = {
    "title": "title",
    "description": "description",
    "due_date": "dueDate",
    "status": "status",
    "assigned_to": "assignedTo",
    "client_id": "clientId",
    "shared_group_ids": "sharedGroupIds",
}


class _TaskHandlerBase:
    def __init__(self, repo: TaskRepository, access: ClientAccessPolicy, activity: ActivityLogger):
        self.repo = repo
        self.access = access
        self.activity = activity

    async def _ensure_task_access(self, task: TaskEntity, user: ActingUser) -> None:
        """ADMIN, responsável pela tarefa ou membro de um grupo com o qual ela foi compartilhada."""
        if user.is_admin or task.assigned_to == user.id:
            return
        if await self.repo.is_shared_with_user(task.id, user.id):
            return
        raise ForbiddenError("Brak uprawnień do tego zadania")

    async def _load_authorized(self, task_id: uuid.UUID, user: ActingUser, options=None) -> TaskEntity:
        task = await self.repo.find_by_id(task_id, options)
        if task is None:
            raise NotFoundError(TASK_NOT_FOUND)
        await self._ensure_task_access(task, user)
        return task


class CreateTaskHandler(_TaskHandlerBase, CommandHandler[CreateTaskCommand]):
    async def handle(self, command: CreateTaskCommand) -> TaskDTO:
        payload = command.payload
        if payload.client_id is not None:
            await self.access.ensure_access(payload.client_id, command.user)

        # sem responsável explícito a tarefa fica com quem a criou
        assigned_to = payload.assigned_to if "assigned_to" in payload.provided_fields() else command.user.id
        task = TaskEntity(
            id=uuid.uuid4(),
            title=payload.title,
            description=payload.description,
            due_date=payload.due_date,
            status=payload.status,
            assigned_to=assigned_to,
            client_id=payload.client_id,
        )
        task = await self.repo.create(task)
        if payload.shared_group_ids is not None:
            await self.repo.set_shared_groups(task.id, payload.shared_group_ids)
            task.shared_group_ids = tuple(payload.shared_group_ids)

        logger.info("task_created", task_id=str(task.id), assigned_to=str(assigned_to) if assigned_to else None)
        await self.activity.log_task_activity(
            command.user.id,
            "TASK_CREATED",
            task.id,
            {"title": task.title, "clientId": str(task.client_id) if task.client_id else None},
        )
        return TaskDTO.from_entity(task)


class UpdateTaskHandler(_TaskHandlerBase, CommandHandler[UpdateTaskCommand]):
    async def handle(self, command: UpdateTaskCommand) -> TaskDTO:
        task = await self._load_authorized(command.task_id, command.user)
        payload = command.payload
        present = payload.provided_fields()

        if payload.version is not None and payload.version != task.version:
            raise ConcurrentUpdateError()
        if "client_id" in present and payload.client_id is not None:
            await self.access.ensure_access(payload.client_id, command.user)

        was_completed = task.status is TaskStatus.COMPLETED
        info = {name: getattr(payload, name) for name in ("title", "description", "due_date", "client_id") if name in present}
        if info:
            task.update_info(**info)
        if "status" in present and payload.status is not None:
            task.change_status(payload.status)
        if "assigned_to" in present:
            task.assign_to(payload.assigned_to)

        if present & {"title", "description", "due_date", "client_id", "status", "assigned_to"}:
            task = await self.repo.update(task)
        if "shared_group_ids" in present:
            group_ids = payload.shared_group_ids or []
            await self.repo.set_shared_groups(task.id, group_ids)
            task.shared_group_ids = tuple(group_ids)

        updated_fields = [label for name, label in _FIELD_LABELS.items() if name in present]
        completed_now = not was_completed and task.status is TaskStatus.COMPLETED
        action = "TASK_COMPLETED" if completed_now else "TASK_UPDATED"
        logger.info("task_updated", task_id=str(task.id), fields=updated_fields, completed=completed_now)
        await self.activity.log_task_activity(command.user.id, action, task.id, {"updatedFields": updated_fields})
        return TaskDTO.from_entity(task)


class DeleteTaskHandler(_TaskHandlerBase, CommandHandler[DeleteTaskCommand]):
    async def handle(self, command: DeleteTaskCommand) -> None:
        task = await self._load_authorized(command.task_id, command.user)
        await self.repo.delete(task.id)
        logger.info("task_deleted", task_id=str(task.id))
        await self.activity.log_task_activity(command.user.id, "TASK_DELETED", task.id, {"title": task.title})


class GetTaskHandler(_TaskHandlerBase, QueryHandler[GetTaskQuery, TaskDTO]):
    async def handle(self, query: GetTaskQuery) -> TaskDTO:
        options = TaskFindOptions(include=frozenset({"shared_groups"}))
        task = await self._load_authorized(query.task_id, query.user, options)
        return TaskDTO.from_entity(task)


class ListTasksHandler(QueryHandler[ListTasksQuery, PagedResult[TaskDTO]]):
    def __init__(self, repo: TaskRepository, max_page_size: int = 200):
        self.repo = repo
        self.max_page_size = max_page_size

    async def handle(self, query: ListTasksQuery) -> PagedResult[TaskDTO]:
        f = query.filtros
        limit, offset = page_window(query.page, query.page_size, self.max_page_size)
        filtros = TaskFilter(
            user_id=query.user.id,
            user_role=query.user.role,
            status=f.status,
            assigned_to=f.assigned_to,
            client_id=f.client_id,
        )
        options = TaskFindOptions(
            order_by=OrderBy(f.order_by, f.direction) if f.order_by else None,
            limit=limit,
            offset=offset,
        )
        tasks = await self.repo.find_many(filtros, options)
        total = await self.repo.count(filtros)
        return PagedResult(
            items=[TaskDTO.from_entity(t) for t in tasks],
            total=total,
            page=query.page,
            page_size=query.page_size,
        )
