import uuid
from dataclasses import dataclass

from crm_core.core.application.cqrs import PaginatedQueryDTO
from crm_core.core.application.dtos.task_dto import TaskFilterDTO
from crm_core.core.domain.entities.user_entity import ActingUser


@dataclass(frozen=True)
class GetTaskQuery:
    task_id: uuid.UUID
    user: ActingUser


@dataclass(frozen=True, kw_only=True)
class ListTasksQuery(PaginatedQueryDTO[TaskFilterDTO]):
    user: ActingUser
