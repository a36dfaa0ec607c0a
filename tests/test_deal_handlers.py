"""
Casos de uso de deals contra repositórios em memória.

Cobre os dois fluxos ponta-a-ponta do pipeline:
  • responsável fecha LEAD → WON e depois não consegue marcar LOST;
  • usuário sem vínculo com o cliente é barrado e o deal fica intacto.
"""

import uuid
from decimal import Decimal

from django.test import SimpleTestCase

from crm_core.adapters.observability.metrics import registry
from crm_core.core.application.commands.deal_commands import (
    CloseDealCommand,
    CreateDealCommand,
    DeleteDealCommand,
    UpdateDealCommand,
)
from crm_core.core.application.cqrs import CommandBusImpl, QueryBusImpl
from crm_core.core.application.dtos.deal_dto import CreateDealDTO, DealFilterDTO, UpdateDealDTO
from crm_core.core.application.handlers.deal_handlers import (
    CloseDealHandler,
    CreateDealHandler,
    DeleteDealHandler,
    GetDealHandler,
    ListDealsHandler,
    UpdateDealHandler,
)
from crm_core.core.application.queries.deal_queries import GetDealQuery, ListDealsQuery
from crm_core.core.application.services.activity_logger import ActivityLogger
from crm_core.core.domain.entities.client_entity import ClientEntity, ClientStatus
from crm_core.core.domain.entities.user_entity import ActingUser, UserRole
from crm_core.core.domain.events.exceptions import (
    AlreadyClosedError,
    ConcurrentUpdateError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from crm_core.core.domain.services.access_policy import ClientAccessPolicy
from crm_core.core.domain.services.deal_pipeline_service import DealPipelineService
from crm_core.core.domain.value_objects import DealStageValue
from tests.helpers.in_memory_repositories import (
    InMemoryActivityLogRepository,
    InMemoryClientRepository,
    InMemoryDealRepository,
    make_deal,
)


class DealHandlersTestBase(SimpleTestCase):
    def setUp(self):
        self.owner = ActingUser(id=uuid.uuid4(), role=UserRole.USER, email="owner@crm.pl")
        self.stranger = ActingUser(id=uuid.uuid4(), role=UserRole.USER, email="obcy@crm.pl")
        self.admin = ActingUser(id=uuid.uuid4(), role=UserRole.ADMIN, email="admin@crm.pl")

        self.clients = InMemoryClientRepository()
        self.client_lead = self.clients.add(
            ClientEntity(id=uuid.uuid4(), status=ClientStatus.NEGOTIATION, agency_name="Biuro Podróży Alfa",
                         assigned_to=self.owner.id)
        )
        self.deals = InMemoryDealRepository(self.clients)
        self.log_repo = InMemoryActivityLogRepository()

        access = ClientAccessPolicy(self.clients)
        activity = ActivityLogger(self.log_repo)
        pipeline = DealPipelineService()

        self.command_bus = CommandBusImpl()
        self.command_bus.register(CreateDealCommand, CreateDealHandler(self.deals, access, activity, "PLN"))
        self.command_bus.register(UpdateDealCommand, UpdateDealHandler(self.deals, access, activity, pipeline))
        self.command_bus.register(CloseDealCommand, CloseDealHandler(self.deals, access, activity, pipeline))
        self.command_bus.register(DeleteDealCommand, DeleteDealHandler(self.deals, access, activity))
        self.query_bus = QueryBusImpl()
        self.query_bus.register(GetDealQuery, GetDealHandler(self.deals, access, activity))
        self.query_bus.register(ListDealsQuery, ListDealsHandler(self.deals, max_page_size=50))

    async def _seed(self, **overrides):
        deal = make_deal(overrides.pop("client_id", self.client_lead.id), **overrides)
        await self.deals.create(deal)
        return deal


class CloseDealHandlerTests(DealHandlersTestBase):
    async def test_owner_wins_then_cannot_lose(self):
        deal = await self._seed(stage="LEAD", amount=5000)

        dto = await self.command_bus.adispatch(CloseDealCommand(deal_id=deal.id, won=True, user=self.owner))

        self.assertIs(dto.stage, DealStageValue.WON)
        self.assertEqual(self.clients.clients[self.client_lead.id].status, ClientStatus.ACTIVE_CLIENT)
        self.assertEqual(len(self.clients.history), 1)
        change = self.clients.history[0]
        self.assertEqual(change.changed_by, self.owner.id)
        self.assertEqual(change.notes, f"Deal wygrany ({deal.id})")

        self.assertEqual(self.log_repo.actions(), ["DEAL_WON"])
        entry = self.log_repo.entries[0]
        self.assertEqual(entry.entity_type, "Deal")
        self.assertEqual(entry.entity_id, deal.id)
        self.assertEqual(
            entry.details, {"clientId": str(self.client_lead.id), "value": 5000.0, "currency": "PLN"}
        )

        with self.assertRaises(AlreadyClosedError):
            await self.command_bus.adispatch(CloseDealCommand(deal_id=deal.id, won=False, user=self.owner))
        stored = await self.deals.find_by_id(deal.id)
        self.assertIs(stored.stage.value, DealStageValue.WON)
        self.assertEqual(len(self.clients.history), 1)

    async def test_stranger_is_forbidden_and_deal_unchanged(self):
        deal = await self._seed(stage="PROPOSAL")

        with self.assertRaises(ForbiddenError):
            await self.command_bus.adispatch(CloseDealCommand(deal_id=deal.id, won=True, user=self.stranger))

        stored = await self.deals.find_by_id(deal.id)
        self.assertIs(stored.stage.value, DealStageValue.PROPOSAL)
        self.assertEqual(stored.version, deal.version)
        self.assertEqual(self.clients.clients[self.client_lead.id].status, ClientStatus.NEGOTIATION)
        self.assertEqual(self.log_repo.entries, [])

    async def test_group_member_can_close(self):
        group = uuid.uuid4()
        self.clients.add_group(group, self.stranger.id)
        self.clients.clients[self.client_lead.id].shared_group_ids = (group,)
        deal = await self._seed()

        dto = await self.command_bus.adispatch(CloseDealCommand(deal_id=deal.id, won=False, user=self.stranger))
        self.assertIs(dto.stage, DealStageValue.LOST)

    async def test_lost_does_not_touch_client(self):
        deal = await self._seed(stage="NEGOTIATION")
        await self.command_bus.adispatch(CloseDealCommand(deal_id=deal.id, won=False, user=self.owner))
        self.assertEqual(self.clients.clients[self.client_lead.id].status, ClientStatus.NEGOTIATION)
        self.assertEqual(self.clients.history, [])
        self.assertEqual(self.log_repo.actions(), ["DEAL_LOST"])

    async def test_won_for_active_client_writes_no_history(self):
        self.clients.clients[self.client_lead.id].status = ClientStatus.ACTIVE_CLIENT
        deal = await self._seed()
        await self.command_bus.adispatch(CloseDealCommand(deal_id=deal.id, won=True, user=self.owner))
        self.assertEqual(self.clients.history, [])

    async def test_missing_deal(self):
        with self.assertRaises(NotFoundError):
            await self.command_bus.adispatch(CloseDealCommand(deal_id=uuid.uuid4(), won=True, user=self.admin))

    async def test_failed_close_rolls_everything_back(self):
        deal = await self._seed()
        self.deals.fail_on_close = True

        with self.assertRaises(RuntimeError):
            await self.command_bus.adispatch(CloseDealCommand(deal_id=deal.id, won=True, user=self.owner))

        stored = await self.deals.find_by_id(deal.id)
        self.assertIs(stored.stage.value, DealStageValue.LEAD)
        self.assertEqual(self.clients.clients[self.client_lead.id].status, ClientStatus.NEGOTIATION)
        self.assertEqual(self.clients.history, [])
        self.assertEqual(self.log_repo.entries, [])

    async def test_close_still_succeeds_when_activity_log_fails(self):
        self.log_repo.fail = True
        deal = await self._seed()
        before = registry.get_sample_value("crm_activity_log_failures_total", {"action": "DEAL_WON"}) or 0

        dto = await self.command_bus.adispatch(CloseDealCommand(deal_id=deal.id, won=True, user=self.owner))

        self.assertIs(dto.stage, DealStageValue.WON)
        after = registry.get_sample_value("crm_activity_log_failures_total", {"action": "DEAL_WON"})
        self.assertEqual(after, before + 1)

    async def test_close_counts_outcome(self):
        deal = await self._seed()
        before = registry.get_sample_value("crm_deals_closed_total", {"outcome": "lost"}) or 0
        await self.command_bus.adispatch(CloseDealCommand(deal_id=deal.id, won=False, user=self.admin))
        self.assertEqual(registry.get_sample_value("crm_deals_closed_total", {"outcome": "lost"}), before + 1)


class CreateDealHandlerTests(DealHandlersTestBase):
    async def test_defaults(self):
        payload = CreateDealDTO.model_validate({"clientId": str(self.client_lead.id), "value": "2500.5"})
        dto = await self.command_bus.adispatch(CreateDealCommand(payload=payload, user=self.owner))

        self.assertEqual(dto.currency, "PLN")
        self.assertEqual(dto.probability, 0)
        self.assertIs(dto.stage, DealStageValue.LEAD)
        self.assertEqual(dto.value, 2500.5)
        self.assertTrue(await self.deals.exists(dto.id))
        self.assertEqual(self.log_repo.actions(), ["DEAL_CREATED"])

    async def test_invalid_value_creates_nothing(self):
        payload = CreateDealDTO(client_id=self.client_lead.id, value=-1)
        with self.assertRaises(ValidationError):
            await self.command_bus.adispatch(CreateDealCommand(payload=payload, user=self.owner))
        self.assertEqual(self.deals.rows, {})

    async def test_stranger_cannot_create_for_foreign_client(self):
        payload = CreateDealDTO(client_id=self.client_lead.id, value=10)
        with self.assertRaises(ForbiddenError):
            await self.command_bus.adispatch(CreateDealCommand(payload=payload, user=self.stranger))
        self.assertEqual(self.deals.rows, {})

    async def test_unknown_client(self):
        payload = CreateDealDTO(client_id=uuid.uuid4(), value=10)
        with self.assertRaises(NotFoundError):
            await self.command_bus.adispatch(CreateDealCommand(payload=payload, user=self.admin))

    async def test_shared_groups_are_stored(self):
        group = uuid.uuid4()
        payload = CreateDealDTO(client_id=self.client_lead.id, value=10, shared_group_ids=[group])
        dto = await self.command_bus.adispatch(CreateDealCommand(payload=payload, user=self.owner))
        self.assertEqual(self.deals.shared[dto.id], (group,))
        self.assertEqual(dto.shared_group_ids, [group])


class UpdateDealHandlerTests(DealHandlersTestBase):
    async def test_partial_update_touches_only_present_fields(self):
        deal = await self._seed(amount=100, probability=20, notes="pierwsza")
        payload = UpdateDealDTO.model_validate({"probability": 60})

        dto = await self.command_bus.adispatch(UpdateDealCommand(deal_id=deal.id, payload=payload, user=self.owner))

        self.assertEqual(dto.probability, 60)
        self.assertEqual(dto.value, 100.0)
        self.assertEqual(dto.notes, "pierwsza")
        self.assertEqual(dto.version, deal.version + 1)
        self.assertEqual(self.log_repo.entries[-1].details, {"updatedFields": ["probability"]})

    async def test_explicit_null_clears_notes(self):
        deal = await self._seed(notes="do usunięcia")
        payload = UpdateDealDTO.model_validate({"notes": None})
        dto = await self.command_bus.adispatch(UpdateDealCommand(deal_id=deal.id, payload=payload, user=self.owner))
        self.assertIsNone(dto.notes)

    async def test_currency_alone_revalidates_amount(self):
        deal = await self._seed(amount="99.99")
        payload = UpdateDealDTO.model_validate({"currency": "eur"})
        dto = await self.command_bus.adispatch(UpdateDealCommand(deal_id=deal.id, payload=payload, user=self.owner))
        self.assertEqual(dto.currency, "EUR")
        self.assertEqual(Decimal(str(dto.value)), Decimal("99.99"))

    async def test_stage_change_goes_through_pipeline(self):
        deal = await self._seed(stage="WON")
        payload = UpdateDealDTO.model_validate({"stage": "LEAD"})
        with self.assertRaises(AlreadyClosedError):
            await self.command_bus.adispatch(UpdateDealCommand(deal_id=deal.id, payload=payload, user=self.owner))
        stored = await self.deals.find_by_id(deal.id)
        self.assertIs(stored.stage.value, DealStageValue.WON)

    async def test_assignee_moves_lead_to_won_then_cannot_mark_lost(self):
        deal = await self._seed()
        won = UpdateDealDTO.model_validate({"stage": "WON"})
        dto = await self.command_bus.adispatch(UpdateDealCommand(deal_id=deal.id, payload=won, user=self.owner))
        self.assertEqual(DealStageValue(dto.stage), DealStageValue.WON)

        lost = UpdateDealDTO.model_validate({"stage": "LOST"})
        with self.assertRaises(AlreadyClosedError):
            await self.command_bus.adispatch(UpdateDealCommand(deal_id=deal.id, payload=lost, user=self.owner))
        stored = await self.deals.find_by_id(deal.id)
        self.assertIs(stored.stage.value, DealStageValue.WON)

    async def test_invalid_probability_keeps_deal(self):
        deal = await self._seed(probability=30)
        payload = UpdateDealDTO.model_validate({"probability": 150})
        with self.assertRaises(ValidationError):
            await self.command_bus.adispatch(UpdateDealCommand(deal_id=deal.id, payload=payload, user=self.owner))
        stored = await self.deals.find_by_id(deal.id)
        self.assertEqual(stored.probability.value, 30)

    async def test_stale_version_is_rejected(self):
        deal = await self._seed()
        payload = UpdateDealDTO.model_validate({"notes": "x", "version": deal.version + 3})
        with self.assertRaises(ConcurrentUpdateError):
            await self.command_bus.adispatch(UpdateDealCommand(deal_id=deal.id, payload=payload, user=self.owner))

    async def test_stranger_is_forbidden(self):
        deal = await self._seed()
        payload = UpdateDealDTO.model_validate({"notes": "x"})
        with self.assertRaises(ForbiddenError):
            await self.command_bus.adispatch(UpdateDealCommand(deal_id=deal.id, payload=payload, user=self.stranger))


class DeleteAndQueryDealTests(DealHandlersTestBase):
    async def test_delete(self):
        deal = await self._seed()
        await self.command_bus.adispatch(DeleteDealCommand(deal_id=deal.id, user=self.owner))
        self.assertFalse(await self.deals.exists(deal.id))
        self.assertEqual(self.log_repo.actions(), ["DEAL_DELETED"])

    async def test_delete_forbidden_keeps_row(self):
        deal = await self._seed()
        with self.assertRaises(ForbiddenError):
            await self.command_bus.adispatch(DeleteDealCommand(deal_id=deal.id, user=self.stranger))
        self.assertTrue(await self.deals.exists(deal.id))

    async def test_get_includes_client(self):
        deal = await self._seed()
        dto = await self.query_bus.adispatch(GetDealQuery(deal_id=deal.id, user=self.owner))
        self.assertEqual(dto.client.agency_name, "Biuro Podróży Alfa")
        self.assertEqual(dto.shared_group_ids, [])

    async def test_list_is_scoped_and_paged(self):
        other_client = self.clients.add(ClientEntity(id=uuid.uuid4(), status=ClientStatus.NEW_LEAD))
        for i in range(3):
            await self._seed(amount=i + 1)
        hidden = await self._seed(client_id=other_client.id)

        res = await self.query_bus.adispatch(
            ListDealsQuery(filtros=DealFilterDTO(order_by="value", direction="asc"), page=1, page_size=2,
                           user=self.owner)
        )
        self.assertEqual(res.total, 3)
        self.assertEqual(res.total_pages, 2)
        self.assertEqual([d.value for d in res.items], [1.0, 2.0])
        self.assertTrue(all(d.client is not None for d in res.items))

        admin_res = await self.query_bus.adispatch(
            ListDealsQuery(filtros=DealFilterDTO(), page=1, page_size=50, user=self.admin)
        )
        self.assertIn(hidden.id, [d.id for d in admin_res.items])

    async def test_list_sees_deal_shared_directly(self):
        other_client = self.clients.add(ClientEntity(id=uuid.uuid4(), status=ClientStatus.NEW_LEAD))
        group = uuid.uuid4()
        self.clients.add_group(group, self.stranger.id)
        deal = await self._seed(client_id=other_client.id)
        await self.deals.set_shared_groups(deal.id, [group])

        res = await self.query_bus.adispatch(
            ListDealsQuery(filtros=DealFilterDTO(), user=self.stranger)
        )
        self.assertEqual([d.id for d in res.items], [deal.id])

    async def test_search_is_combined_with_scope(self):
        other_client = self.clients.add(
            ClientEntity(id=uuid.uuid4(), status=ClientStatus.NEW_LEAD, agency_name="Alfa Konkurencja")
        )
        await self._seed(client_id=other_client.id)
        mine = await self._seed()

        res = await self.query_bus.adispatch(
            ListDealsQuery(filtros=DealFilterDTO(search="alfa"), user=self.owner)
        )
        self.assertEqual([d.id for d in res.items], [mine.id])

    async def test_page_size_above_maximum(self):
        with self.assertRaises(ValidationError):
            await self.query_bus.adispatch(ListDealsQuery(filtros=DealFilterDTO(), page_size=51, user=self.owner))
