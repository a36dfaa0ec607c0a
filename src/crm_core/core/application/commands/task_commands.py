import uuid
from dataclasses import dataclass

from crm_core.core.application.cqrs import CommandDTO
from crm_core.core.application.dtos.task_dto import CreateTaskDTO, UpdateTaskDTO
from crm_core.core.domain.entities.user_entity import ActingUser


@dataclass(frozen=True)
class CreateTaskCommand(CommandDTO):
    payload: CreateTaskDTO
    user: ActingUser


@dataclass(frozen=True)
class UpdateTaskCommand(CommandDTO):
    task_id: uuid.UUID
    payload: UpdateTaskDTO
    user: ActingUser


@dataclass(frozen=True)
class DeleteTaskCommand(CommandDTO):
    task_id: uuid.UUID
    user: ActingUser
