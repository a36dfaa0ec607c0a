from __future__ import annotations

import uuid
from collections.abc import Sequence

import structlog
from asgiref.sync import sync_to_async
from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from crm_core.adapters.repositories._orm_helpers import (
    apply_find_options,
    client_scope_q,
    group_ids_of,
    replace_shared_groups,
    shared_with_user,
    versioned_update,
    without,
)
from crm_core.adapters.repositories.client_repo_impl import client_to_entity
from crm_core.core.domain.entities.client_entity import ClientStatusChange
from crm_core.core.domain.entities.deal_entity import DealEntity
from crm_core.core.domain.events.exceptions import NotFoundError
from crm_core.core.domain.repositories.deal_repository import DealFilter, DealFindOptions, DealRepository
from crm_core.core.domain.value_objects import DealStageValue
from plugins.django_interface.models import Client as ClientModel
from plugins.django_interface.models import ClientStatusHistory as ClientStatusHistoryModel
from plugins.django_interface.models import Deal as DealModel

logger = structlog.get_logger(__name__)


class DealRepoImpl(DealRepository):
    """Implementação Django do DealRepository."""

    # ────────────────────────────────── #
    # Mapeamento
    # ────────────────────────────────── #
    @staticmethod
    def _to_entity(m: DealModel, include: frozenset[str]) -> DealEntity:
        return DealEntity.from_persistence({
            "id": m.id,
            "client_id": m.client_id,
            "value": m.value,
            "currency": m.currency,
            "probability": m.probability,
            "stage": m.stage,
            "expected_close_date": m.expected_close_date,
            "notes": m.notes,
            "created_at": m.created_at,
            "updated_at": m.updated_at,
            "version": m.version,
            "client": client_to_entity(m.client) if "client" in include else None,
            "shared_group_ids": group_ids_of(m) if "shared_groups" in include else None,
        })

    @staticmethod
    def _with_includes(qs, include: frozenset[str]):
        if "client" in include:
            qs = qs.select_related("client")
        if "shared_groups" in include:
            qs = qs.prefetch_related("shared_groups")
        return qs

    @staticmethod
    def _scoped(filtros: DealFilter):
        qs = DealModel.objects.all()
        if not filtros.is_admin:
            # escopo de acesso dentro da query: a paginação e o total ficam corretos
            qs = qs.filter(
                client_scope_q(filtros.user_id)
                | Q(id__in=shared_with_user(DealModel, filtros.user_id))
            )
        if filtros.client_id:
            qs = qs.filter(client_id=filtros.client_id)
        if filtros.stage:
            qs = qs.filter(stage=DealStageValue(filtros.stage).value)
        if filtros.search:
            s = filtros.search
            qs = qs.filter(
                Q(notes__icontains=s)
                | Q(client__first_name__icontains=s)
                | Q(client__last_name__icontains=s)
                | Q(client__agency_name__icontains=s)
            )
        return qs

    # ────────────────────────────────── #
    # Síncronos (rodam via sync_to_async)
    # ────────────────────────────────── #
    def _find_by_id(self, deal_id: uuid.UUID, options: DealFindOptions | None) -> DealEntity | None:
        options = options or DealFindOptions()
        m = self._with_includes(DealModel.objects.filter(id=deal_id), options.include).first()
        return self._to_entity(m, options.include) if m else None

    def _find_many(self, filtros: DealFilter, options: DealFindOptions | None) -> list[DealEntity]:
        options = options or DealFindOptions()
        qs = self._with_includes(self._scoped(filtros), options.include)
        return [self._to_entity(m, options.include) for m in apply_find_options(qs, options)]

    def _count(self, filtros: DealFilter) -> int:
        return self._scoped(filtros).count()

    def _create(self, deal: DealEntity) -> DealEntity:
        DealModel.objects.create(**deal.to_persistence(), version=deal.version)
        return deal

    def _update(self, deal: DealEntity) -> DealEntity:
        fields = without(deal.to_persistence(), ("id", "client_id", "created_at"))
        deal.version = versioned_update(DealModel, deal.id, deal.version, fields)
        return deal

    def _delete(self, deal_id: uuid.UUID) -> None:
        DealModel.objects.filter(id=deal_id).delete()

    def _exists(self, deal_id: uuid.UUID) -> bool:
        return DealModel.objects.filter(id=deal_id).exists()

    def _set_shared_groups(self, deal_id: uuid.UUID, group_ids: Sequence[uuid.UUID]) -> None:
        replace_shared_groups(DealModel, deal_id, group_ids)

    @transaction.atomic
    def _close(self, deal: DealEntity, status_change: ClientStatusChange | None) -> DealEntity:
        self._update(deal)
        if status_change is not None:
            updated = ClientModel.objects.filter(id=status_change.client_id).update(
                status=status_change.status.value,
                version=F("version") + 1,
                updated_at=timezone.now(),
            )
            if not updated:
                raise NotFoundError("Klient nie znaleziony")
            ClientStatusHistoryModel.objects.create(
                client_id=status_change.client_id,
                status=status_change.status.value,
                changed_by_id=status_change.changed_by,
                notes=status_change.notes,
            )
        logger.debug("deal_close_committed", deal_id=str(deal.id), client_status_changed=status_change is not None)
        return deal

    # ────────────────────────────────── #
    # Interface assíncrona
    # ────────────────────────────────── #
    async def find_by_id(self, deal_id: uuid.UUID, options: DealFindOptions | None = None) -> DealEntity | None:
        return await sync_to_async(self._find_by_id)(deal_id, options)

    async def find_many(self, filtros: DealFilter, options: DealFindOptions | None = None) -> list[DealEntity]:
        return await sync_to_async(self._find_many)(filtros, options)

    async def count(self, filtros: DealFilter) -> int:
        return await sync_to_async(self._count)(filtros)

    async def create(self, deal: DealEntity) -> DealEntity:
        return await sync_to_async(self._create)(deal)

    async def update(self, deal: DealEntity) -> DealEntity:
        return await sync_to_async(self._update)(deal)

    async def delete(self, deal_id: uuid.UUID) -> None:
        await sync_to_async(self._delete)(deal_id)

    async def exists(self, deal_id: uuid.UUID) -> bool:
        return await sync_to_async(self._exists)(deal_id)

    async def set_shared_groups(self, deal_id: uuid.UUID, group_ids: Sequence[uuid.UUID]) -> None:
        await sync_to_async(self._set_shared_groups)(deal_id, group_ids)

    async def close(self, deal: DealEntity, status_change: ClientStatusChange | None) -> DealEntity:
        return await sync_to_async(self._close)(deal, status_change)
