from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum

from crm_core.core.domain.entities._base import EntityMixin
from crm_core.core.domain.events.exceptions import ValidationError


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"


@dataclass(frozen=True, slots=True)
class ActingUser(EntityMixin):
    """Usuário autenticado que executa o caso de uso."""

    id: uuid.UUID
    role: UserRole
    email: str

    def __post_init__(self):
        if self.role not in (UserRole.ADMIN, UserRole.USER, "ADMIN", "USER"):
            raise ValidationError(f"Role inválida: {self.role}")
        object.__setattr__(self, "role", UserRole(self.role))

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    @property
    def is_authenticated(self) -> bool:
        return True
