import uuid

from asgiref.sync import sync_to_async

from crm_core.core.domain.entities.client_entity import ClientEntity
from crm_core.core.domain.repositories.client_repository import ClientRepository
from plugins.django_interface.models import Client as ClientModel


def client_to_entity(m: ClientModel, with_groups: bool = False) -> ClientEntity:
    return ClientEntity(
        id=m.id,
        status=m.status,
        first_name=m.first_name,
        last_name=m.last_name,
        agency_name=m.agency_name,
        assigned_to=m.assigned_to_id,
        shared_group_ids=tuple(g.id for g in m.shared_groups.all()) if with_groups else (),
    )


class ClientRepoImpl(ClientRepository):
    """Leitura de clientes para autorização (Django ORM)."""

    def _find_by_id(self, client_id: uuid.UUID) -> ClientEntity | None:
        m = ClientModel.objects.prefetch_related("shared_groups").filter(id=client_id).first()
        return client_to_entity(m, with_groups=True) if m else None

    def _is_shared_with_user(self, client_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return ClientModel.objects.filter(id=client_id, shared_groups__users__id=user_id).exists()

    async def find_by_id(self, client_id: uuid.UUID) -> ClientEntity | None:
        return await sync_to_async(self._find_by_id)(client_id)

    async def is_shared_with_user(self, client_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return await sync_to_async(self._is_shared_with_user)(client_id, user_id)
