from __future__ import annotations

from typing import Any

from django.conf import settings
from rest_framework import status
from rest_framework.response import Response

from crm_core.adapters.config import composition_root
from crm_core.core.application.cqrs import CommandBusImpl, PagedResult, QueryBusImpl
from crm_core.core.domain.entities.user_entity import ActingUser
from crm_core.core.domain.events.exceptions import ValidationError


# ───────────────────────────────  CQRS Buses  ────────────────────────────────
def command_bus() -> CommandBusImpl:
    return composition_root.container.command_bus()


def query_bus() -> QueryBusImpl:
    return composition_root.container.query_bus()


def acting_user(request) -> ActingUser:
    """`request.user` já autenticado (ActingUser ou model User) → ActingUser do domínio."""
    user = request.user
    if isinstance(user, ActingUser):
        return user
    return ActingUser(id=user.id, role=user.role, email=user.email)


# ╭──────────────────────────────────────────────────────────────────────────╮
# │ Helper mix-in – paginação + filtros                                      │
# ╰──────────────────────────────────────────────────────────────────────────╯
class PaginationFilterMixin:
    """Remove page/page_size do QueryDict e devolve filtros limpos."""

    @staticmethod
    def _pagination(request) -> tuple[int, int]:
        try:
            page = int(request.query_params.get("page", 1))
            size = int(request.query_params.get("page_size", settings.DEFAULT_PAGE_SIZE))
        except ValueError as exc:
            raise ValidationError("page i page_size muszą być liczbami całkowitymi") from exc
        return page, size

    @staticmethod
    def _filters(request) -> dict[str, Any]:
        params = request.query_params.copy()          # QueryDict mutável
        params.pop("page", None)
        params.pop("page_size", None)
        return {key: params.getlist(key) if key == "include" else params.get(key) for key in params}

    @staticmethod
    def _paged_response(res: PagedResult) -> Response:
        payload = {
            "results": [item.to_json_dict() for item in res.items],
            "total_items": res.total,
            "page": res.page,
            "page_size": res.page_size,
            "total_pages": res.total_pages,
            "items_on_page": len(res.items),
        }
        return Response(payload, status=status.HTTP_200_OK)
