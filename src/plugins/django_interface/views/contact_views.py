from __future__ import annotations

import uuid

from rest_framework import status, viewsets
from rest_framework.response import Response

from crm_core.core.application.commands.contact_commands import (
    CreateContactCommand,
    DeleteContactCommand,
    UpdateContactCommand,
)
from crm_core.core.application.dtos.contact_dto import ContactFilterDTO, CreateContactDTO, UpdateContactDTO
from crm_core.core.application.queries.contact_queries import ListContactsQuery
from plugins.django_interface.views.deal_views import UUID_REGEX
from plugins.django_interface.views.mixins import PaginationFilterMixin, acting_user, command_bus, query_bus


class ContactViewSet(PaginationFilterMixin, viewsets.ViewSet):
    lookup_value_regex = UUID_REGEX

    def list(self, request):
        page, page_size = self._pagination(request)
        filtros = ContactFilterDTO(**self._filters(request))
        res = query_bus().dispatch(
            ListContactsQuery(filtros=filtros, page=page, page_size=page_size, user=acting_user(request))
        )
        return self._paged_response(res)

    def create(self, request):
        payload = CreateContactDTO.model_validate(request.data)
        contact = command_bus().dispatch(CreateContactCommand(payload=payload, user=acting_user(request)))
        return Response(contact.to_json_dict(), status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        payload = UpdateContactDTO.model_validate(request.data)
        contact = command_bus().dispatch(
            UpdateContactCommand(contact_id=uuid.UUID(pk), payload=payload, user=acting_user(request))
        )
        return Response(contact.to_json_dict())

    def destroy(self, request, pk=None):
        command_bus().dispatch(DeleteContactCommand(contact_id=uuid.UUID(pk), user=acting_user(request)))
        return Response(status=status.HTTP_204_NO_CONTENT)
