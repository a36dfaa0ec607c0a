from __future__ import annotations

import uuid
from collections.abc import Sequence

from asgiref.sync import sync_to_async
from django.db.models import Q

from crm_core.adapters.repositories._orm_helpers import (
    apply_find_options,
    client_scope_q,
    group_ids_of,
    replace_shared_groups,
    shared_with_user,
    versioned_update,
    without,
)
from crm_core.core.domain.entities.contact_entity import ContactEntity, ContactType
from crm_core.core.domain.repositories.contact_repository import ContactFilter, ContactFindOptions, ContactRepository
from plugins.django_interface.models import Contact as ContactModel


class ContactRepoImpl(ContactRepository):
    """Implementação Django do ContactRepository."""

    @staticmethod
    def _to_entity(m: ContactModel, include: frozenset[str]) -> ContactEntity:
        return ContactEntity.from_persistence({
            "id": m.id,
            "client_id": m.client_id,
            "type": m.type,
            "date": m.date,
            "notes": m.notes,
            "is_note": m.is_note,
            "user_id": m.user_id,
            "created_at": m.created_at,
            "updated_at": m.updated_at,
            "version": m.version,
            "shared_group_ids": group_ids_of(m) if "shared_groups" in include else None,
        })

    @staticmethod
    def _scoped(filtros: ContactFilter):
        qs = ContactModel.objects.all()
        if not filtros.is_admin:
            qs = qs.filter(
                Q(user_id=filtros.user_id)
                | client_scope_q(filtros.user_id)
                | Q(id__in=shared_with_user(ContactModel, filtros.user_id))
            )
        if filtros.client_id:
            qs = qs.filter(client_id=filtros.client_id)
        if filtros.type:
            qs = qs.filter(type=ContactType(filtros.type).value)
        if filtros.author_id:
            qs = qs.filter(user_id=filtros.author_id)
        if filtros.is_note is not None:
            qs = qs.filter(is_note=filtros.is_note)
        return qs

    def _find_by_id(self, contact_id: uuid.UUID, options: ContactFindOptions | None) -> ContactEntity | None:
        options = options or ContactFindOptions()
        qs = ContactModel.objects.filter(id=contact_id)
        if "shared_groups" in options.include:
            qs = qs.prefetch_related("shared_groups")
        m = qs.first()
        return self._to_entity(m, options.include) if m else None

    def _find_many(self, filtros: ContactFilter, options: ContactFindOptions | None) -> list[ContactEntity]:
        options = options or ContactFindOptions()
        qs = self._scoped(filtros)
        if "shared_groups" in options.include:
            qs = qs.prefetch_related("shared_groups")
        return [self._to_entity(m, options.include) for m in apply_find_options(qs, options)]

    def _count(self, filtros: ContactFilter) -> int:
        return self._scoped(filtros).count()

    def _create(self, contact: ContactEntity) -> ContactEntity:
        ContactModel.objects.create(**contact.to_persistence(), version=contact.version)
        return contact

    def _update(self, contact: ContactEntity) -> ContactEntity:
        fields = without(contact.to_persistence(), ("id", "client_id", "user_id", "created_at"))
        contact.version = versioned_update(ContactModel, contact.id, contact.version, fields)
        return contact

    def _is_shared_with_user(self, contact_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return ContactModel.objects.filter(id=contact_id, shared_groups__users__id=user_id).exists()

    async def find_by_id(self, contact_id: uuid.UUID, options: ContactFindOptions | None = None) -> ContactEntity | None:
        return await sync_to_async(self._find_by_id)(contact_id, options)

    async def find_many(self, filtros: ContactFilter, options: ContactFindOptions | None = None) -> list[ContactEntity]:
        return await sync_to_async(self._find_many)(filtros, options)

    async def count(self, filtros: ContactFilter) -> int:
        return await sync_to_async(self._count)(filtros)

    async def create(self, contact: ContactEntity) -> ContactEntity:
        return await sync_to_async(self._create)(contact)

    async def update(self, contact: ContactEntity) -> ContactEntity:
        return await sync_to_async(self._update)(contact)

    async def delete(self, contact_id: uuid.UUID) -> None:
        await sync_to_async(ContactModel.objects.filter(id=contact_id).delete)()

    async def exists(self, contact_id: uuid.UUID) -> bool:
        return await sync_to_async(ContactModel.objects.filter(id=contact_id).exists)()

    async def is_shared_with_user(self, contact_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        return await sync_to_async(self._is_shared_with_user)(contact_id, user_id)

    async def set_shared_groups(self, contact_id: uuid.UUID, group_ids: Sequence[uuid.UUID]) -> None:
        await sync_to_async(replace_shared_groups)(ContactModel, contact_id, group_ids)
