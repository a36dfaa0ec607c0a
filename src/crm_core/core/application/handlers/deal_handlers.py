from __future__ import annotations

import structlog

from crm_core.adapters.observability.metrics import DEAL_STAGE_TRANSITIONS, DEALS_CLOSED
from crm_core.core.application.commands.deal_commands import (
    CloseDealCommand,
    CreateDealCommand,
    DeleteDealCommand,
    UpdateDealCommand,
)
from crm_core.core.application.cqrs import CommandHandler, PagedResult, QueryHandler
from crm_core.core.application.dtos.deal_dto import DealDTO
from crm_core.core.application.handlers._pagination import page_window
from crm_core.core.application.queries.deal_queries import GetDealQuery, ListDealsQuery
from crm_core.core.application.services.activity_logger import ActivityLogger
from crm_core.core.domain.entities.client_entity import ClientStatus, ClientStatusChange
from crm_core.core.domain.entities.deal_entity import DealEntity
from crm_core.core.domain.events.exceptions import (
    AlreadyClosedError,
    ConcurrentUpdateError,
    InvalidTransitionError,
    NotFoundError,
)
from crm_core.core.domain.repositories.deal_repository import DealFilter, DealFindOptions, DealRepository
from crm_core.core.domain.repositories.find_options import OrderBy
from crm_core.core.domain.services.access_policy import ClientAccessPolicy
from crm_core.core.domain.services.deal_pipeline_service import DealPipelineService
from crm_core.core.domain.value_objects import DealStage, DealStageValue, DealValue, Probability

logger = structlog.get_logger(__name__)

DEAL_NOT_FOUND = "Deal nie znaleziony"
DEAL_FORBIDDEN = "Brak uprawnień do tego deala"

# nome do atributo → nome exibido em `updatedFields`
_UPDATABLE_FIELDS = {
    "value": "value",
    "currency": "currency",
    "probability": "probability",
    "stage": "stage",
    "expected_close_date": "expectedCloseDate",
    "notes": "notes",
    "shared_group_ids": "sharedGroupIds",
}


class _DealHandlerBase:
    def __init__(
        self,
        repo: DealRepository,
        access: ClientAccessPolicy,
        activity: ActivityLogger,
    ):
        self.repo = repo
        self.access = access
        self.activity = activity

    async def _load_authorized(self, deal_id, user, options: DealFindOptions | None = None) -> DealEntity:
        deal = await self.repo.find_by_id(deal_id, options)
        if deal is None:
            raise NotFoundError(DEAL_NOT_FOUND)
        await self.access.ensure_access(deal.client_id, user, forbidden_message=DEAL_FORBIDDEN)
        return deal


# ─── CREATE ───────────────────────────────────────────────

class CreateDealHandler(_DealHandlerBase, CommandHandler[CreateDealCommand]):
    def __init__(self, repo, access, activity, default_currency: str = "PLN"):
        super().__init__(repo, access, activity)
        self.default_currency = default_currency

    async def handle(self, command: CreateDealCommand) -> DealDTO:
        payload = command.payload
        value = DealValue.create(payload.value, payload.currency or self.default_currency)
        probability = Probability.create(payload.probability)
        stage = DealStage.create(payload.stage or DealStageValue.LEAD)

        await self.access.ensure_access(payload.client_id, command.user)

        deal = DealEntity.create(
            client_id=payload.client_id,
            value=value,
            probability=probability,
            stage=stage,
            expected_close_date=payload.expected_close_date,
            notes=payload.notes,
        )
        deal = await self.repo.create(deal)
        if payload.shared_group_ids is not None:
            await self.repo.set_shared_groups(deal.id, payload.shared_group_ids)
            deal.shared_group_ids = tuple(payload.shared_group_ids)

        logger.info("deal_created", deal_id=str(deal.id), client_id=str(deal.client_id), stage=stage.value.value)
        await self.activity.log_deal_activity(
            command.user.id,
            "DEAL_CREATED",
            deal.id,
            {"clientId": str(deal.client_id), "value": float(value.amount), "currency": value.currency},
        )
        return DealDTO.from_entity(deal)


# ─── UPDATE ───────────────────────────────────────────────

class UpdateDealHandler(_DealHandlerBase, CommandHandler[UpdateDealCommand]):
    def __init__(self, repo, access, activity, pipeline: DealPipelineService):
        super().__init__(repo, access, activity)
        self.pipeline = pipeline

    async def handle(self, command: UpdateDealCommand) -> DealDTO:
        deal = await self._load_authorized(command.deal_id, command.user)
        payload = command.payload
        present = payload.provided_fields()

        if payload.version is not None and payload.version != deal.version:
            raise ConcurrentUpdateError()

        from_stage = deal.stage.value

        if "value" in present or "currency" in present:
            amount = payload.value if "value" in present else deal.value.amount
            currency = payload.currency if "currency" in present else deal.value.currency
            deal.update_value(DealValue.create(amount, currency))
        if "probability" in present:
            deal.update_probability(Probability.create(payload.probability))
        if "stage" in present:
            self.pipeline.change_stage(deal, DealStage.create(payload.stage))
        if "expected_close_date" in present:
            deal.set_expected_close_date(payload.expected_close_date)
        if "notes" in present:
            deal.update_notes(payload.notes)

        entity_fields = present & (_UPDATABLE_FIELDS.keys() - {"shared_group_ids"})
        if entity_fields:
            deal = await self.repo.update(deal)
        if "shared_group_ids" in present:
            group_ids = payload.shared_group_ids or []
            await self.repo.set_shared_groups(deal.id, group_ids)
            deal.shared_group_ids = tuple(group_ids)

        if deal.stage.value is not from_stage:
            DEAL_STAGE_TRANSITIONS.labels(from_stage=from_stage.value, to_stage=deal.stage.value.value).inc()

        updated_fields = [label for name, label in _UPDATABLE_FIELDS.items() if name in present]
        logger.info("deal_updated", deal_id=str(deal.id), fields=updated_fields)
        await self.activity.log_deal_activity(
            command.user.id, "DEAL_UPDATED", deal.id, {"updatedFields": updated_fields}
        )
        return DealDTO.from_entity(deal)


# ─── CLOSE ────────────────────────────────────────────────

class CloseDealHandler(_DealHandlerBase, CommandHandler[CloseDealCommand]):
    """
    Fecha um deal como ganho ou perdido.

    Ao ganhar, o cliente passa a ACTIVE_CLIENT (com uma linha de histórico)
    na mesma transação que grava a etapa do deal. O log de auditoria só é
    escrito depois do commit.
    """

    def __init__(self, repo, access, activity, pipeline: DealPipelineService):
        super().__init__(repo, access, activity)
        self.pipeline = pipeline

    async def handle(self, command: CloseDealCommand) -> DealDTO:
        deal = await self.repo.find_by_id(command.deal_id)
        if deal is None:
            raise NotFoundError(DEAL_NOT_FOUND)
        client = await self.access.ensure_access(deal.client_id, command.user, forbidden_message=DEAL_FORBIDDEN)

        if not self.pipeline.can_close_deal(deal):
            raise AlreadyClosedError()
        if command.won and not self.pipeline.can_win_deal(deal):
            raise InvalidTransitionError(
                f"Nie można wygrać deala na etapie {self.pipeline.get_stage_display_name(deal.stage.value)}"
            )

        from_stage = deal.stage.value
        target = DealStageValue.WON if command.won else DealStageValue.LOST
        self.pipeline.change_stage(deal, DealStage.create(target))

        status_change = None
        if command.won and client.status is not ClientStatus.ACTIVE_CLIENT:
            status_change = ClientStatusChange(
                client_id=client.id,
                status=ClientStatus.ACTIVE_CLIENT,
                changed_by=command.user.id,
                notes=f"Deal wygrany ({deal.id})",
            )

        deal = await self.repo.close(deal, status_change)

        outcome = "won" if command.won else "lost"
        DEAL_STAGE_TRANSITIONS.labels(from_stage=from_stage.value, to_stage=target.value).inc()
        DEALS_CLOSED.labels(outcome=outcome).inc()
        logger.info(
            "deal_closed",
            deal_id=str(deal.id),
            outcome=outcome,
            client_activated=status_change is not None,
        )
        await self.activity.log_deal_activity(
            command.user.id,
            "DEAL_WON" if command.won else "DEAL_LOST",
            deal.id,
            {
                "clientId": str(deal.client_id),
                "value": float(deal.value.amount),
                "currency": deal.value.currency,
            },
        )
        return DealDTO.from_entity(deal)


# ─── DELETE ───────────────────────────────────────────────

class DeleteDealHandler(_DealHandlerBase, CommandHandler[DeleteDealCommand]):
    async def handle(self, command: DeleteDealCommand) -> None:
        deal = await self._load_authorized(command.deal_id, command.user)
        await self.repo.delete(deal.id)

        logger.info("deal_deleted", deal_id=str(deal.id))
        await self.activity.log_deal_activity(
            command.user.id,
            "DEAL_DELETED",
            deal.id,
            {"clientId": str(deal.client_id), "value": float(deal.value.amount), "currency": deal.value.currency},
        )


# ─── QUERIES ──────────────────────────────────────────────

class GetDealHandler(_DealHandlerBase, QueryHandler[GetDealQuery, DealDTO]):
    async def handle(self, query: GetDealQuery) -> DealDTO:
        options = DealFindOptions(include=frozenset({"client", "shared_groups"}))
        deal = await self._load_authorized(query.deal_id, query.user, options)
        return DealDTO.from_entity(deal)


class ListDealsHandler(QueryHandler[ListDealsQuery, PagedResult[DealDTO]]):
    def __init__(self, repo: DealRepository, max_page_size: int = 200):
        self.repo = repo
        self.max_page_size = max_page_size

    async def handle(self, query: ListDealsQuery) -> PagedResult[DealDTO]:
        f = query.filtros
        limit, offset = page_window(query.page, query.page_size, self.max_page_size)

        filtros = DealFilter(
            user_id=query.user.id,
            user_role=query.user.role,
            client_id=f.client_id,
            stage=f.stage,
            search=f.search.strip() if f.search and f.search.strip() else None,
        )
        options = DealFindOptions(
            include=frozenset(f.include) | {"client"},
            order_by=OrderBy(f.order_by, f.direction) if f.order_by else None,
            limit=limit,
            offset=offset,
        )
        deals = await self.repo.find_many(filtros, options)
        total = await self.repo.count(filtros)
        return PagedResult(
            items=[DealDTO.from_entity(d) for d in deals],
            total=total,
            page=query.page,
            page_size=query.page_size,
        )
