import uuid
from datetime import timedelta
from unittest import mock

from django.test import SimpleTestCase

from crm_core.core.domain.entities import _base
from crm_core.core.domain.events.exceptions import AlreadyClosedError, InvalidTransitionError
from crm_core.core.domain.services.deal_pipeline_service import DealPipelineService
from crm_core.core.domain.value_objects import OPEN_STAGES, DealStage, DealStageValue
from tests.helpers.in_memory_repositories import make_deal


class DealPipelineServiceTests(SimpleTestCase):
    def setUp(self):
        self.pipeline = DealPipelineService()

    def test_open_stages_can_move_anywhere(self):
        for from_stage in OPEN_STAGES:
            for to_stage in DealStageValue:
                with self.subTest(from_stage=from_stage, to_stage=to_stage):
                    self.assertTrue(self.pipeline.is_stage_transition_allowed(from_stage, to_stage))

    def test_terminal_stages_are_final(self):
        for from_stage in (DealStageValue.WON, DealStageValue.LOST):
            for to_stage in DealStageValue:
                with self.subTest(from_stage=from_stage, to_stage=to_stage):
                    self.assertFalse(self.pipeline.is_stage_transition_allowed(from_stage, to_stage))

    def test_change_stage_skips_and_moves_back(self):
        deal = make_deal(uuid.uuid4(), stage="LEAD")
        self.pipeline.change_stage(deal, DealStage.create("NEGOTIATION"))
        self.assertIs(deal.stage.value, DealStageValue.NEGOTIATION)
        self.pipeline.change_stage(deal, DealStage.create("QUALIFIED"))
        self.assertIs(deal.stage.value, DealStageValue.QUALIFIED)

    def test_change_stage_bumps_updated_at(self):
        deal = make_deal(uuid.uuid4())
        later = deal.updated_at + timedelta(seconds=5)
        with mock.patch.object(_base, "utc_now", return_value=later):
            self.pipeline.change_stage(deal, DealStage.create("PROPOSAL"))
        self.assertEqual(deal.updated_at, later)

    def test_same_open_stage_is_noop(self):
        deal = make_deal(uuid.uuid4(), stage="PROPOSAL")
        before = deal.updated_at
        with mock.patch.object(_base, "utc_now", return_value=before + timedelta(seconds=5)):
            self.pipeline.change_stage(deal, DealStage.create("PROPOSAL"))
        self.assertEqual(deal.updated_at, before)

    def test_closed_deal_rejects_change_and_is_untouched(self):
        deal = make_deal(uuid.uuid4(), stage="WON")
        before = deal.updated_at
        with self.assertRaises(AlreadyClosedError) as ctx:
            self.pipeline.change_stage(deal, DealStage.create("LEAD"))
        self.assertIsInstance(ctx.exception, InvalidTransitionError)
        self.assertIs(deal.stage.value, DealStageValue.WON)
        self.assertEqual(deal.updated_at, before)

    def test_can_close_and_win(self):
        open_deal = make_deal(uuid.uuid4(), stage="QUALIFIED")
        lost_deal = make_deal(uuid.uuid4(), stage="LOST")
        self.assertTrue(self.pipeline.can_close_deal(open_deal))
        self.assertTrue(self.pipeline.can_win_deal(open_deal))
        self.assertFalse(self.pipeline.can_close_deal(lost_deal))
        self.assertFalse(self.pipeline.can_win_deal(lost_deal))

    def test_next_and_previous_stage(self):
        self.assertIs(self.pipeline.get_next_stage(DealStageValue.LEAD), DealStageValue.QUALIFIED)
        self.assertIs(self.pipeline.get_next_stage(DealStageValue.NEGOTIATION), DealStageValue.WON)
        self.assertIsNone(self.pipeline.get_next_stage(DealStageValue.WON))
        self.assertIsNone(self.pipeline.get_next_stage(DealStageValue.LOST))
        self.assertIs(self.pipeline.get_previous_stage(DealStageValue.PROPOSAL), DealStageValue.QUALIFIED)
        self.assertIsNone(self.pipeline.get_previous_stage(DealStageValue.LEAD))
        self.assertIsNone(self.pipeline.get_previous_stage(DealStageValue.WON))

    def test_display_name(self):
        self.assertEqual(self.pipeline.get_stage_display_name(DealStageValue.LOST), "Przegrany")
