import uuid
from dataclasses import dataclass

from crm_core.core.application.cqrs import CommandDTO
from crm_core.core.application.dtos.deal_dto import CreateDealDTO, UpdateDealDTO
from crm_core.core.domain.entities.user_entity import ActingUser


@dataclass(frozen=True)
class CreateDealCommand(CommandDTO):
    payload: CreateDealDTO
    user: ActingUser


@dataclass(frozen=True)
class UpdateDealCommand(CommandDTO):
    deal_id: uuid.UUID
    payload: UpdateDealDTO
    user: ActingUser


@dataclass(frozen=True)
class CloseDealCommand(CommandDTO):
    """Fecha o deal como ganho (`won=True`) ou perdido."""
    deal_id: uuid.UUID
    won: bool
    user: ActingUser


@dataclass(frozen=True)
class DeleteDealCommand(CommandDTO):
    deal_id: uuid.UUID
    user: ActingUser
