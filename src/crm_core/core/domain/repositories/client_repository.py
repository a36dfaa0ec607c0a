import uuid
from abc import ABC, abstractmethod

from crm_core.core.domain.entities.client_entity import ClientEntity


class ClientRepository(ABC):
    @abstractmethod
    async def find_by_id(self, client_id: uuid.UUID) -> ClientEntity | None:
        """Retorna o cliente por ID."""
        ...

    @abstractmethod
    async def is_shared_with_user(self, client_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """Usuário pertence a algum grupo com o qual o cliente é compartilhado."""
        ...
