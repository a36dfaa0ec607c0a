from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum

from crm_core.core.domain.entities._base import EntityMixin


class ClientStatus(str, Enum):
    NEW_LEAD = "NEW_LEAD"
    IN_CONTACT = "IN_CONTACT"
    DEMO_SENT = "DEMO_SENT"
    NEGOTIATION = "NEGOTIATION"
    ACTIVE_CLIENT = "ACTIVE_CLIENT"
    LOST = "LOST"


@dataclass(slots=True)
class ClientEntity(EntityMixin):
    """Projeção de leitura do cliente usada para autorização e status."""

    id: uuid.UUID
    status: ClientStatus
    first_name: str | None = None
    last_name: str | None = None
    agency_name: str | None = None
    assigned_to: uuid.UUID | None = None
    shared_group_ids: tuple[uuid.UUID, ...] = field(default_factory=tuple)

    def __post_init__(self):
        self.status = ClientStatus(self.status)

    @property
    def display_name(self) -> str:
        if self.agency_name:
            return self.agency_name
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    def is_assigned_to(self, user_id: uuid.UUID) -> bool:
        return self.assigned_to is not None and self.assigned_to == user_id


@dataclass(frozen=True, slots=True)
class ClientStatusChange(EntityMixin):
    """Linha de histórico gravada quando o status do cliente muda."""

    client_id: uuid.UUID
    status: ClientStatus
    changed_by: uuid.UUID | None
    notes: str | None = None
