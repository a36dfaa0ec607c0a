from __future__ import annotations

import uuid

from rest_framework import status, viewsets
from rest_framework.response import Response

from crm_core.core.application.commands.task_commands import CreateTaskCommand, DeleteTaskCommand, UpdateTaskCommand
from crm_core.core.application.dtos.task_dto import CreateTaskDTO, TaskFilterDTO, UpdateTaskDTO
from crm_core.core.application.queries.task_queries import GetTaskQuery, ListTasksQuery
from plugins.django_interface.views.deal_views import UUID_REGEX
from plugins.django_interface.views.mixins import PaginationFilterMixin, acting_user, command_bus, query_bus


class TaskViewSet(PaginationFilterMixin, viewsets.ViewSet):
    lookup_value_regex = UUID_REGEX

    def list(self, request):
        page, page_size = self._pagination(request)
        filtros = TaskFilterDTO(**self._filters(request))
        res = query_bus().dispatch(
            ListTasksQuery(filtros=filtros, page=page, page_size=page_size, user=acting_user(request))
        )
        return self._paged_response(res)

    def retrieve(self, request, pk=None):
        task = query_bus().dispatch(GetTaskQuery(task_id=uuid.UUID(pk), user=acting_user(request)))
        return Response(task.to_json_dict())

    def create(self, request):
        payload = CreateTaskDTO.model_validate(request.data)
        task = command_bus().dispatch(CreateTaskCommand(payload=payload, user=acting_user(request)))
        return Response(task.to_json_dict(), status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        payload = UpdateTaskDTO.model_validate(request.data)
        task = command_bus().dispatch(
            UpdateTaskCommand(task_id=uuid.UUID(pk), payload=payload, user=acting_user(request))
        )
        return Response(task.to_json_dict())

    def destroy(self, request, pk=None):
        command_bus().dispatch(DeleteTaskCommand(task_id=uuid.UUID(pk), user=acting_user(request)))
        return Response(status=status.HTTP_204_NO_CONTENT)
