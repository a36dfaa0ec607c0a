import uuid
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from crm_core.core.domain.entities.contact_entity import ContactEntity, ContactType
from crm_core.core.domain.repositories.find_options import AccessScopedFilter, FindOptions, OrderBy


@dataclass(frozen=True)
class ContactFilter(AccessScopedFilter):
    client_id: uuid.UUID | None = None
    type: ContactType | None = None
    author_id: uuid.UUID | None = None
    is_note: bool | None = None


class ContactFindOptions(FindOptions):
    INCLUDES = frozenset({"shared_groups"})
    ORDER_FIELDS = frozenset({"date", "created_at"})
    DEFAULT_ORDER = OrderBy("date", "desc")


class ContactRepository(ABC):
    @abstractmethod
    async def find_by_id(self, contact_id: uuid.UUID, options: ContactFindOptions | None = None) -> ContactEntity | None:
        ...

    @abstractmethod
    async def find_many(self, filtros: ContactFilter, options: ContactFindOptions | None = None) -> list[ContactEntity]:
        """
        Não-admins veem contatos de clientes atribuídos a eles ou
        compartilhados com um grupo deles, e contatos compartilhados
        diretamente com um grupo deles.
        """
        ...

    @abstractmethod
    async def count(self, filtros: ContactFilter) -> int:
        ...

    @abstractmethod
    async def create(self, contact: ContactEntity) -> ContactEntity:
        ...

    @abstractmethod
    async def update(self, contact: ContactEntity) -> ContactEntity:
        ...

    @abstractmethod
    async def delete(self, contact_id: uuid.UUID) -> None:
        ...

    @abstractmethod
    async def exists(self, contact_id: uuid.UUID) -> bool:
        ...

    @abstractmethod
    async def is_shared_with_user(self, contact_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        ...

    @abstractmethod
    async def set_shared_groups(self, contact_id: uuid.UUID, group_ids: Sequence[uuid.UUID]) -> None:
        ...
