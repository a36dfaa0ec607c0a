import uuid
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from crm_core.core.domain.entities.client_entity import ClientStatusChange
from crm_core.core.domain.entities.deal_entity import DealEntity
from crm_core.core.domain.repositories.find_options import AccessScopedFilter, FindOptions, OrderBy
from crm_core.core.domain.value_objects import DealStageValue


@dataclass(frozen=True)
class DealFilter(AccessScopedFilter):
    client_id: uuid.UUID | None = None
    stage: DealStageValue | None = None
    search: str | None = None


class DealFindOptions(FindOptions):
    INCLUDES = frozenset({"client", "shared_groups"})
    ORDER_FIELDS = frozenset({"updated_at", "created_at", "expected_close_date", "value"})
    DEFAULT_ORDER = OrderBy("updated_at", "desc")


class DealRepository(ABC):
    @abstractmethod
    async def find_by_id(self, deal_id: uuid.UUID, options: DealFindOptions | None = None) -> DealEntity | None:
        """
        Busca um negócio pelo id.
        """
        ...

    @abstractmethod
    async def find_many(self, filtros: DealFilter, options: DealFindOptions | None = None) -> list[DealEntity]:
        """
        Lista negócios visíveis ao usuário do filtro.
        Não-admins: cliente atribuído a ele, deal compartilhado com um grupo
        dele ou cliente compartilhado com um grupo dele.
        """
        ...

    @abstractmethod
    async def count(self, filtros: DealFilter) -> int:
        """Total com o mesmo escopo de `find_many` (para paginação)."""
        ...

    @abstractmethod
    async def create(self, deal: DealEntity) -> DealEntity:
        ...

    @abstractmethod
    async def update(self, deal: DealEntity) -> DealEntity:
        """
        Persiste o estado da entidade se `deal.version` ainda for a versão
        gravada; caso contrário levanta `ConcurrentUpdateError`.
        """
        ...

    @abstractmethod
    async def delete(self, deal_id: uuid.UUID) -> None:
        """Remoção física (sem tombstone)."""
        ...

    @abstractmethod
    async def exists(self, deal_id: uuid.UUID) -> bool:
        ...

    @abstractmethod
    async def set_shared_groups(self, deal_id: uuid.UUID, group_ids: Sequence[uuid.UUID]) -> None:
        """Substitui o conjunto de grupos com os quais o deal é compartilhado."""
        ...

    @abstractmethod
    async def close(self, deal: DealEntity, status_change: ClientStatusChange | None) -> DealEntity:
        """
        Grava, numa única transação, a nova etapa do deal e (se houver) a
        mudança de status do cliente + linha de histórico. Tudo ou nada.
        """
        ...
