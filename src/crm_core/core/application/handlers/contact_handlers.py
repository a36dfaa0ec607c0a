from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog

from crm_core.core.application.commands.contact_commands import (
    CreateContactCommand,
    DeleteContactCommand,
    UpdateContactCommand,
)
from crm_core.core.application.cqrs import CommandHandler, PagedResult, QueryHandler
from crm_core.core.application.dtos.contact_dto import ContactDTO
from crm_core.core.application.handlers._pagination import page_window
from crm_core.core.application.queries.contact_queries import ListContactsQuery
from crm_core.core.application.services.activity_logger import ActivityLogger
from crm_core.core.domain.entities.contact_entity import ContactEntity
from crm_core.core.domain.entities.user_entity import ActingUser
from crm_core.core.domain.events.exceptions import ConcurrentUpdateError, NotFoundError
from crm_core.core.domain.repositories.contact_repository import ContactFilter, ContactFindOptions, ContactRepository
from crm_core.core.domain.repositories.find_options import OrderBy
from crm_core.core.domain.services.access_policy import ClientAccessPolicy

logger = structlog.get_logger(__name__)

CONTACT_NOT_FOUND = "Kontakt nie znaleziony"

_FIELD_LABELS = {
    "type": "type",
    "date": "date",
    "notes": "notes",
    "is_note": "isNote",
    "shared_group_ids": "sharedGroupIds",
}


class _ContactHandlerBase:
    def __init__(self, repo: ContactRepository, access: ClientAccessPolicy, activity: ActivityLogger):
        self.repo = repo
        self.access = access
        self.activity = activity

    async def _load_authorized(self, contact_id: uuid.UUID, user: ActingUser) -> ContactEntity:
        """
        ADMIN, autor do contato, membro de grupo com o qual o contato foi
        compartilhado, ou quem tem acesso ao cliente.
        """
        contact = await self.repo.find_by_id(contact_id)
        if contact is None:
            raise NotFoundError(CONTACT_NOT_FOUND)
        if user.is_admin or contact.user_id == user.id:
            return contact
        if await self.repo.is_shared_with_user(contact.id, user.id):
            return contact
        await self.access.ensure_access(contact.client_id, user, forbidden_message="Brak uprawnień do tego kontaktu")
        return contact


class CreateContactHandler(_ContactHandlerBase, CommandHandler[CreateContactCommand]):
    async def handle(self, command: CreateContactCommand) -> ContactDTO:
        payload = command.payload
        await self.access.ensure_access(payload.client_id, command.user)

        contact = ContactEntity(
            id=uuid.uuid4(),
            client_id=payload.client_id,
            type=payload.type,
            date=payload.date or datetime.now(timezone.utc),
            notes=payload.notes,
            is_note=payload.is_note,
            user_id=command.user.id,
        )
        contact = await self.repo.create(contact)
        if payload.shared_group_ids is not None:
            await self.repo.set_shared_groups(contact.id, payload.shared_group_ids)
            contact.shared_group_ids = tuple(payload.shared_group_ids)

        logger.info("contact_created", contact_id=str(contact.id), client_id=str(contact.client_id), is_note=contact.is_note)
        await self.activity.log_contact_activity(
            command.user.id,
            "CONTACT_CREATED",
            contact.id,
            {"clientId": str(contact.client_id), "type": contact.type.value if contact.type else None},
        )
        return ContactDTO.from_entity(contact)


class UpdateContactHandler(_ContactHandlerBase, CommandHandler[UpdateContactCommand]):
    async def handle(self, command: UpdateContactCommand) -> ContactDTO:
        contact = await self._load_authorized(command.contact_id, command.user)
        payload = command.payload
        present = payload.provided_fields()

        if payload.version is not None and payload.version != contact.version:
            raise ConcurrentUpdateError()

        info = {name: getattr(payload, name) for name in ("type", "date", "notes", "is_note") if name in present}
        if info:
            contact.update_info(**info)
            contact = await self.repo.update(contact)
        if "shared_group_ids" in present:
            group_ids = payload.shared_group_ids or []
            await self.repo.set_shared_groups(contact.id, group_ids)
            contact.shared_group_ids = tuple(group_ids)

        updated_fields = [label for name, label in _FIELD_LABELS.items() if name in present]
        logger.info("contact_updated", contact_id=str(contact.id), fields=updated_fields)
        await self.activity.log_contact_activity(
            command.user.id, "CONTACT_UPDATED", contact.id, {"updatedFields": updated_fields}
        )
        return ContactDTO.from_entity(contact)


class DeleteContactHandler(_ContactHandlerBase, CommandHandler[DeleteContactCommand]):
    async def handle(self, command: DeleteContactCommand) -> None:
        contact = await self._load_authorized(command.contact_id, command.user)
        await self.repo.delete(contact.id)
        logger.info("contact_deleted", contact_id=str(contact.id))
        await self.activity.log_contact_activity(
            command.user.id, "CONTACT_DELETED", contact.id, {"clientId": str(contact.client_id)}
        )


class ListContactsHandler(QueryHandler[ListContactsQuery, PagedResult[ContactDTO]]):
    def __init__(self, repo: ContactRepository, max_page_size: int = 200):
        self.repo = repo
        self.max_page_size = max_page_size

    async def handle(self, query: ListContactsQuery) -> PagedResult[ContactDTO]:
        f = query.filtros
        limit, offset = page_window(query.page, query.page_size, self.max_page_size)
        filtros = ContactFilter(
            user_id=query.user.id,
            user_role=query.user.role,
            client_id=f.client_id,
            type=f.type,
            author_id=f.user_id,
            is_note=f.is_note,
        )
        options = ContactFindOptions(
            order_by=OrderBy(f.order_by, f.direction) if f.order_by else None,
            limit=limit,
            offset=offset,
        )
        contacts = await self.repo.find_many(filtros, options)
        total = await self.repo.count(filtros)
        return PagedResult(
            items=[ContactDTO.from_entity(c) for c in contacts],
            total=total,
            page=query.page,
            page_size=query.page_size,
        )
