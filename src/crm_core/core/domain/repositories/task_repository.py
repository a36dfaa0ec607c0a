import uuid
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from crm_core.core.domain.entities.task_entity import TaskEntity, TaskStatus
from crm_core.core.domain.repositories.find_options import AccessScopedFilter, FindOptions, OrderBy


@dataclass(frozen=True)
class TaskFilter(AccessScopedFilter):
    status: TaskStatus | None = None
    assigned_to: uuid.UUID | None = None
    client_id: uuid.UUID | None = None


class TaskFindOptions(FindOptions):
    INCLUDES = frozenset({"shared_groups"})
    ORDER_FIELDS = frozenset({"due_date", "created_at", "updated_at"})
    DEFAULT_ORDER = OrderBy("due_date", "asc")


class TaskRepository(ABC):
    @abstractmethod
    async def find_by_id(self, task_id: uuid.UUID, options: TaskFindOptions | None = None) -> TaskEntity | None:
        """Retorna a tarefa por ID."""
        ...

    @abstractmethod
    async def find_many(self, filtros: TaskFilter, options: TaskFindOptions | None = None) -> list[TaskEntity]:
        """
        Lista tarefas visíveis: não-admins veem as atribuídas a eles e as
        compartilhadas com um grupo deles.
        """
        ...

    @abstractmethod
    async def count(self, filtros: TaskFilter) -> int:
        ...

    @abstractmethod
    async def create(self, task: TaskEntity) -> TaskEntity:
        ...

    @abstractmethod
    async def update(self, task: TaskEntity) -> TaskEntity:
        """Atualiza com checagem de versão (`ConcurrentUpdateError`)."""
        ...

    @abstractmethod
    async def delete(self, task_id: uuid.UUID) -> None:
        ...

    @abstractmethod
    async def exists(self, task_id: uuid.UUID) -> bool:
        ...

    @abstractmethod
    async def is_shared_with_user(self, task_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Usuário pertence a algum grupo com o qual a tarefa é compartilhada."""
        ...

    @abstractmethod
    async def set_shared_groups(self, task_id: uuid.UUID, group_ids: Sequence[uuid.UUID]) -> None:
        ...
