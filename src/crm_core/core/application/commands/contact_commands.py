import uuid
from dataclasses import dataclass

from crm_core.core.application.cqrs import CommandDTO
from crm_core.core.application.dtos.contact_dto import CreateContactDTO, UpdateContactDTO
from crm_core.core.domain.entities.user_entity import ActingUser


@dataclass(frozen=True)
class CreateContactCommand(CommandDTO):
    payload: CreateContactDTO
    user: ActingUser


@dataclass(frozen=True)
class UpdateContactCommand(CommandDTO):
    contact_id: uuid.UUID
    payload: UpdateContactDTO
    user: ActingUser


@dataclass(frozen=True)
class DeleteContactCommand(CommandDTO):
    contact_id: uuid.UUID
    user: ActingUser
