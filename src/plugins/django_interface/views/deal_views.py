# ╭────────────────────────────────────────────────────────────────────────────╮
# │  ViewSet REST – Deals                                                     │
# │                                                                            │
# │  • Filtro seguro   → page/page_size fora, resto validado pelo DTO          │
# │  • Erros de domínio → crm_exception_handler                                │
# ╰────────────────────────────────────────────────────────────────────────────╯
from __future__ import annotations

import uuid

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from crm_core.core.application.commands.deal_commands import (
    CloseDealCommand,
    CreateDealCommand,
    DeleteDealCommand,
    UpdateDealCommand,
)
from crm_core.core.application.dtos.deal_dto import CreateDealDTO, DealFilterDTO, UpdateDealDTO
from crm_core.core.application.queries.deal_queries import GetDealQuery, ListDealsQuery
from crm_core.core.domain.events.exceptions import ValidationError
from plugins.django_interface.views.mixins import PaginationFilterMixin, acting_user, command_bus, query_bus

UUID_REGEX = "[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"


class DealViewSet(PaginationFilterMixin, viewsets.ViewSet):
    lookup_value_regex = UUID_REGEX

    def list(self, request):
        page, page_size = self._pagination(request)
        filtros = DealFilterDTO(**self._filters(request))
        res = query_bus().dispatch(
            ListDealsQuery(filtros=filtros, page=page, page_size=page_size, user=acting_user(request))
        )
        return self._paged_response(res)

    def retrieve(self, request, pk=None):
        deal = query_bus().dispatch(GetDealQuery(deal_id=uuid.UUID(pk), user=acting_user(request)))
        return Response(deal.to_json_dict())

    def create(self, request):
        payload = CreateDealDTO.model_validate(request.data)
        deal = command_bus().dispatch(CreateDealCommand(payload=payload, user=acting_user(request)))
        return Response(deal.to_json_dict(), status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        payload = UpdateDealDTO.model_validate(request.data)
        deal = command_bus().dispatch(
            UpdateDealCommand(deal_id=uuid.UUID(pk), payload=payload, user=acting_user(request))
        )
        return Response(deal.to_json_dict())

    def destroy(self, request, pk=None):
        command_bus().dispatch(DeleteDealCommand(deal_id=uuid.UUID(pk), user=acting_user(request)))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def close(self, request, pk=None):
        won = request.data.get("won")
        if not isinstance(won, bool):
            raise ValidationError("Pole won musi być wartością logiczną")
        deal = command_bus().dispatch(CloseDealCommand(deal_id=uuid.UUID(pk), won=won, user=acting_user(request)))
        return Response(deal.to_json_dict())
