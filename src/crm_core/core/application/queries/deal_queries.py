import uuid
from dataclasses import dataclass

from crm_core.core.application.cqrs import PaginatedQueryDTO
from crm_core.core.application.dtos.deal_dto import DealFilterDTO
from crm_core.core.domain.entities.user_entity import ActingUser


@dataclass(frozen=True)
class GetDealQuery:
    """
    Query para recuperar um deal por ID (com cliente e grupos).
    """
    deal_id: uuid.UUID
    user: ActingUser


@dataclass(frozen=True, kw_only=True)
class ListDealsQuery(PaginatedQueryDTO[DealFilterDTO]):
    """
    Query para listar deals visíveis ao usuário, com filtros em `filtros`.
    """
    user: ActingUser
