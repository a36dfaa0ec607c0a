from dataclasses import dataclass

from crm_core.core.application.cqrs import PaginatedQueryDTO
from crm_core.core.application.dtos.contact_dto import ContactFilterDTO
from crm_core.core.domain.entities.user_entity import ActingUser


@dataclass(frozen=True, kw_only=True)
class ListContactsQuery(PaginatedQueryDTO[ContactFilterDTO]):
    user: ActingUser
