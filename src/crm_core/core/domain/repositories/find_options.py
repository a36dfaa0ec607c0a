from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import ClassVar, Literal

from crm_core.core.domain.entities.user_entity import UserRole
from crm_core.core.domain.events.exceptions import ValidationError

Direction = Literal["asc", "desc"]


@dataclass(frozen=True, slots=True)
class OrderBy:
    field: str
    direction: Direction = "desc"


@dataclass(frozen=True)
class FindOptions:
    """
    Opções comuns de leitura.

    Cada subclasse declara as listas permitidas de relações (`include`) e de
    campos de ordenação; qualquer outro valor é rejeitado antes de chegar ao
    ORDER BY.
    """

    INCLUDES: ClassVar[frozenset[str]] = frozenset()
    ORDER_FIELDS: ClassVar[frozenset[str]] = frozenset()
    DEFAULT_ORDER: ClassVar[OrderBy] = OrderBy("created_at", "desc")

    include: frozenset[str] = field(default_factory=frozenset)
    order_by: OrderBy | None = None
    limit: int | None = None
    offset: int = 0

    def __post_init__(self):
        object.__setattr__(self, "include", frozenset(self.include))
        unknown = self.include - self.INCLUDES
        if unknown:
            raise ValidationError(f"Nieznane relacje: {', '.join(sorted(unknown))}")
        if self.order_by is not None:
            if self.order_by.field not in self.ORDER_FIELDS:
                raise ValidationError(f"Niedozwolone pole sortowania: {self.order_by.field}")
            if self.order_by.direction not in ("asc", "desc"):
                raise ValidationError(f"Niedozwolony kierunek sortowania: {self.order_by.direction}")
        if self.limit is not None and self.limit < 0:
            raise ValidationError("limit nie może być ujemny")
        if self.offset < 0:
            raise ValidationError("offset nie może być ujemny")

    @property
    def effective_order(self) -> OrderBy:
        return self.order_by or self.DEFAULT_ORDER


@dataclass(frozen=True)
class AccessScopedFilter:
    """Todo filtro carrega o usuário para que o escopo de acesso vá para a query."""

    user_id: uuid.UUID
    user_role: UserRole

    @property
    def is_admin(self) -> bool:
        return UserRole(self.user_role) is UserRole.ADMIN
