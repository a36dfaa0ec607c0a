"""
Repositórios Django contra o banco de teste.

O escopo de acesso e a busca textual viram WHERE; total e paginação
precisam bater com o que o usuário enxerga.
"""

import uuid
from datetime import datetime, timezone
from unittest import mock

from django.test import TestCase

from crm_core.adapters.repositories.activity_log_repo_impl import ActivityLogRepoImpl
from crm_core.adapters.repositories.client_repo_impl import ClientRepoImpl
from crm_core.adapters.repositories.contact_repo_impl import ContactRepoImpl
from crm_core.adapters.repositories.deal_repo_impl import DealRepoImpl
from crm_core.adapters.repositories.task_repo_impl import TaskRepoImpl
from crm_core.core.domain.entities.activity_log_entity import ActivityLogEntry
from crm_core.core.domain.entities.client_entity import ClientStatus, ClientStatusChange
from crm_core.core.domain.entities.user_entity import UserRole
from crm_core.core.domain.events.exceptions import ConcurrentUpdateError, NotFoundError, ValidationError
from crm_core.core.domain.repositories.contact_repository import ContactFilter
from crm_core.core.domain.repositories.deal_repository import DealFilter, DealFindOptions
from crm_core.core.domain.repositories.find_options import OrderBy
from crm_core.core.domain.repositories.task_repository import TaskFilter
from crm_core.core.domain.services.deal_pipeline_service import DealPipelineService
from crm_core.core.domain.value_objects import DealStage, DealStageValue
from plugins.django_interface.models import (
    ActivityLog,
    Client,
    ClientStatusHistory,
    Deal,
    User,
    UserGroup,
)
from tests.helpers.in_memory_repositories import make_contact, make_deal, make_task


class OrmTestBase(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.owner = User.objects.create(email="owner@crm.pl", name="Owner")
        cls.member = User.objects.create(email="member@crm.pl", name="Member")
        cls.stranger = User.objects.create(email="stranger@crm.pl", name="Stranger")
        cls.admin = User.objects.create(email="admin@crm.pl", name="Admin", role=User.Role.ADMIN)

        cls.group = UserGroup.objects.create(name="Sprzedaż")
        cls.group.users.add(cls.member)

        cls.client_alfa = Client.objects.create(agency_name="Alfa Travel", assigned_to=cls.owner,
                                                status=Client.Status.NEGOTIATION)
        cls.client_beta = Client.objects.create(first_name="Jan", last_name="Beta", assigned_to=cls.stranger)
        cls.client_beta.shared_groups.add(cls.group)
        cls.client_gamma = Client.objects.create(agency_name="Gamma Alfa", assigned_to=cls.stranger)

    @staticmethod
    def _store_deal(client, **overrides):
        deal = make_deal(client.id, **overrides)
        Deal.objects.create(**deal.to_persistence(), version=deal.version)
        return deal

    @staticmethod
    def _filter(user, **kwargs):
        role = UserRole(user.role)
        return DealFilter(user_id=user.id, user_role=role, **kwargs)


class DealRepoImplTests(OrmTestBase):
    def setUp(self):
        self.repo = DealRepoImpl()
        self.deal_alfa = self._store_deal(self.client_alfa, amount=300, notes="duża wycieczka")
        self.deal_beta = self._store_deal(self.client_beta, amount=100)
        self.deal_gamma = self._store_deal(self.client_gamma, amount=200)

    async def test_scope_per_user(self):
        cases = {
            self.owner: {self.deal_alfa.id},
            self.member: {self.deal_beta.id},
            self.stranger: {self.deal_beta.id, self.deal_gamma.id},
            self.admin: {self.deal_alfa.id, self.deal_beta.id, self.deal_gamma.id},
        }
        for user, expected in cases.items():
            with self.subTest(user=user.email):
                filtros = self._filter(user)
                found = await self.repo.find_many(filtros)
                self.assertEqual({d.id for d in found}, expected)
                self.assertEqual(await self.repo.count(filtros), len(expected))

    async def test_deal_shared_directly_with_group(self):
        await self.repo.set_shared_groups(self.deal_gamma.id, [self.group.id])
        found = await self.repo.find_many(self._filter(self.member))
        self.assertEqual({d.id for d in found}, {self.deal_beta.id, self.deal_gamma.id})

    async def test_search_never_widens_scope(self):
        found = await self.repo.find_many(self._filter(self.owner, search="alfa"))
        self.assertEqual([d.id for d in found], [self.deal_alfa.id])

        found = await self.repo.find_many(self._filter(self.stranger, search="alfa"))
        self.assertEqual([d.id for d in found], [self.deal_gamma.id])

        found = await self.repo.find_many(self._filter(self.admin, search="wycieczka"))
        self.assertEqual([d.id for d in found], [self.deal_alfa.id])

    async def test_order_and_window(self):
        options = DealFindOptions(order_by=OrderBy("value", "asc"), limit=2, offset=1)
        found = await self.repo.find_many(self._filter(self.admin), options)
        self.assertEqual([d.id for d in found], [self.deal_gamma.id, self.deal_alfa.id])

    def test_order_field_outside_allow_list(self):
        with self.assertRaises(ValidationError):
            DealFindOptions(order_by=OrderBy("notes; DROP TABLE deals", "asc"))
        with self.assertRaises(ValidationError):
            DealFindOptions(include=frozenset({"tasks"}))

    async def test_include_client(self):
        deal = await self.repo.find_by_id(self.deal_alfa.id, DealFindOptions(include=frozenset({"client"})))
        self.assertEqual(deal.client.display_name, "Alfa Travel")
        self.assertIsNone(deal.shared_group_ids)

    async def test_stage_filter(self):
        await self.repo.create(make_deal(self.client_alfa.id, stage="PROPOSAL"))
        found = await self.repo.find_many(self._filter(self.admin, stage=DealStageValue.PROPOSAL))
        self.assertEqual(len(found), 1)

    async def test_stale_write_is_rejected(self):
        first = await self.repo.find_by_id(self.deal_alfa.id)
        second = await self.repo.find_by_id(self.deal_alfa.id)

        first.update_notes("pierwszy")
        await self.repo.update(first)
        self.assertEqual(first.version, 2)

        second.update_notes("drugi")
        with self.assertRaises(ConcurrentUpdateError):
            await self.repo.update(second)

        stored = await self.repo.find_by_id(self.deal_alfa.id)
        self.assertEqual(stored.notes, "pierwszy")

    async def test_update_of_deleted_row(self):
        deal = await self.repo.find_by_id(self.deal_beta.id)
        await self.repo.delete(deal.id)
        deal.update_notes("x")
        with self.assertRaises(NotFoundError):
            await self.repo.update(deal)

    async def test_unknown_group(self):
        with self.assertRaises(ValidationError):
            await self.repo.set_shared_groups(self.deal_alfa.id, [uuid.uuid4()])

    def _won(self, deal_id):
        deal = Deal.objects.get(id=deal_id)
        entity = DealRepoImpl._to_entity(deal, frozenset())
        DealPipelineService().change_stage(entity, DealStage.create("WON"))
        change = ClientStatusChange(
            client_id=self.client_alfa.id,
            status=ClientStatus.ACTIVE_CLIENT,
            changed_by=self.owner.id,
            notes=f"Deal wygrany ({deal_id})",
        )
        return entity, change

    async def test_close_writes_deal_client_and_history(self):
        entity, change = await self._async(self._won, self.deal_alfa.id)
        await self.repo.close(entity, change)

        stored = await self.repo.find_by_id(self.deal_alfa.id)
        self.assertIs(stored.stage.value, DealStageValue.WON)
        client = await Client.objects.aget(id=self.client_alfa.id)
        self.assertEqual(client.status, Client.Status.ACTIVE_CLIENT)
        self.assertEqual(await ClientStatusHistory.objects.filter(client_id=self.client_alfa.id).acount(), 1)

    def test_close_is_all_or_nothing(self):
        entity, change = self._won(self.deal_alfa.id)

        with mock.patch.object(ClientStatusHistory.objects, "create", side_effect=RuntimeError("db down")):
            with self.assertRaises(RuntimeError):
                self.repo._close(entity, change)

        self.assertEqual(Deal.objects.get(id=self.deal_alfa.id).stage, "LEAD")
        self.assertEqual(Deal.objects.get(id=self.deal_alfa.id).version, 1)
        self.assertEqual(Client.objects.get(id=self.client_alfa.id).status, Client.Status.NEGOTIATION)
        self.assertFalse(ClientStatusHistory.objects.exists())

    @staticmethod
    async def _async(fn, *args):
        from asgiref.sync import sync_to_async

        return await sync_to_async(fn)(*args)


class ClientRepoImplTests(OrmTestBase):
    async def test_sharing(self):
        repo = ClientRepoImpl()
        self.assertTrue(await repo.is_shared_with_user(self.client_beta.id, self.member.id))
        self.assertFalse(await repo.is_shared_with_user(self.client_alfa.id, self.member.id))
        client = await repo.find_by_id(self.client_beta.id)
        self.assertEqual(client.shared_group_ids, (self.group.id,))
        self.assertEqual(client.display_name, "Jan Beta")
        self.assertIsNone(await repo.find_by_id(uuid.uuid4()))


class TaskAndContactRepoImplTests(OrmTestBase):
    async def test_task_scope(self):
        repo = TaskRepoImpl()
        mine = await repo.create(make_task(assigned_to=self.owner.id))
        shared = await repo.create(make_task(assigned_to=self.stranger.id))
        await repo.set_shared_groups(shared.id, [self.group.id])

        owner_view = await repo.find_many(TaskFilter(user_id=self.owner.id, user_role=UserRole.USER))
        member_view = await repo.find_many(TaskFilter(user_id=self.member.id, user_role=UserRole.USER))
        self.assertEqual([t.id for t in owner_view], [mine.id])
        self.assertEqual([t.id for t in member_view], [shared.id])
        self.assertTrue(await repo.is_shared_with_user(shared.id, self.member.id))

    async def test_task_with_unknown_assignee(self):
        with self.assertRaises(ValidationError):
            await TaskRepoImpl().create(make_task(assigned_to=uuid.uuid4()))

    async def test_task_version(self):
        repo = TaskRepoImpl()
        task = await repo.create(make_task(assigned_to=self.owner.id))
        task.change_status("IN_PROGRESS")
        task = await repo.update(task)
        stored = await repo.find_by_id(task.id)
        self.assertEqual(stored.version, 2)
        self.assertEqual(stored.status.value, "IN_PROGRESS")

    async def test_contact_scope_includes_author(self):
        repo = ContactRepoImpl()
        when = datetime(2024, 1, 10, tzinfo=timezone.utc)
        authored = await repo.create(make_contact(self.client_gamma.id, self.owner.id, date=when))
        on_own_client = await repo.create(make_contact(self.client_alfa.id, self.admin.id, date=when))
        await repo.create(make_contact(self.client_gamma.id, self.stranger.id, date=when))

        found = await repo.find_many(ContactFilter(user_id=self.owner.id, user_role=UserRole.USER))
        self.assertEqual({c.id for c in found}, {authored.id, on_own_client.id})

        notes_only = await repo.count(ContactFilter(user_id=self.admin.id, user_role=UserRole.ADMIN, is_note=True))
        self.assertEqual(notes_only, 0)


class ActivityLogRepoImplTests(OrmTestBase):
    async def test_append(self):
        entity_id = uuid.uuid4()
        await ActivityLogRepoImpl().append(
            ActivityLogEntry(
                user_id=self.owner.id,
                action="DEAL_WON",
                entity_type="Deal",
                entity_id=entity_id,
                details={"value": 10.0},
                ip_address="127.0.0.1",
            )
        )
        row = await ActivityLog.objects.aget(entity_id=entity_id)
        self.assertEqual(row.action, "DEAL_WON")
        self.assertEqual(row.details, {"value": 10.0})
