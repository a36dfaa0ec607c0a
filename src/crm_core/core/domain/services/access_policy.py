from __future__ import annotations

import uuid

from crm_core.core.domain.entities.client_entity import ClientEntity
from crm_core.core.domain.entities.user_entity import ActingUser
from crm_core.core.domain.events.exceptions import ForbiddenError, NotFoundError
from crm_core.core.domain.repositories.client_repository import ClientRepository


class ClientAccessPolicy:
    """
    Predicado de acesso a tudo que pendura num cliente (deals, contatos):
    ADMIN, o responsável pelo cliente, ou membro de um grupo com o qual o
    cliente foi compartilhado.
    """

    def __init__(self, client_repo: ClientRepository) -> None:
        self._clients = client_repo

    async def ensure_access(
        self,
        client_id: uuid.UUID,
        user: ActingUser,
        *,
        forbidden_message: str = "Brak uprawnień do tego klienta",
    ) -> ClientEntity:
        client = await self._clients.find_by_id(client_id)
        if client is None:
            raise NotFoundError("Klient nie znaleziony")

        if user.is_admin or client.is_assigned_to(user.id):
            return client
        if await self._clients.is_shared_with_user(client_id, user.id):
            return client
        raise ForbiddenError(forbidden_message)
