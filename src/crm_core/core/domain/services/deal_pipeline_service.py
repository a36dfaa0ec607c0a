from __future__ import annotations

import structlog

from crm_core.core.domain.entities.deal_entity import DealEntity
from crm_core.core.domain.events.exceptions import AlreadyClosedError
from crm_core.core.domain.value_objects import OPEN_STAGES, TERMINAL_STAGES, DealStage, DealStageValue
from crm_core.core.domain.value_objects.deal_stage import STAGE_DISPLAY_NAMES

logger = structlog.get_logger(__name__)


class DealPipelineService:
    """
    Máquina de estados das etapas de um deal.

    Regras:
      • entre etapas abertas pode-se avançar, voltar ou pular;
      • de qualquer etapa aberta pode-se ir para WON ou LOST;
      • WON/LOST são terminais: nenhuma transição sai delas.
    """

    def is_stage_transition_allowed(self, from_stage: DealStageValue, to_stage: DealStageValue) -> bool:
        return DealStageValue(from_stage) not in TERMINAL_STAGES

    def change_stage(self, deal: DealEntity, new_stage: DealStage) -> None:
        current = deal.stage.value
        target = new_stage.value

        if not self.is_stage_transition_allowed(current, target):
            raise AlreadyClosedError(
                f"Deal jest już zamknięty: nie można zmienić etapu z "
                f"{self.get_stage_display_name(current)} na {self.get_stage_display_name(target)}"
            )
        if current is target:
            return

        deal._apply_stage(new_stage)
        logger.debug("deal_stage_changed", deal_id=str(deal.id), from_stage=current.value, to_stage=target.value)

    def can_close_deal(self, deal: DealEntity) -> bool:
        return not deal.stage.is_closed()

    def can_win_deal(self, deal: DealEntity) -> bool:
        return deal.stage.value in OPEN_STAGES

    def get_next_stage(self, stage: DealStageValue) -> DealStageValue | None:
        """Próxima etapa do funil; depois de NEGOTIATION vem WON. None se terminal."""
        flow = (*OPEN_STAGES, DealStageValue.WON)
        stage = DealStageValue(stage)
        if stage not in flow or stage is flow[-1]:
            return None
        return flow[flow.index(stage) + 1]

    def get_previous_stage(self, stage: DealStageValue) -> DealStageValue | None:
        stage = DealStageValue(stage)
        if stage not in OPEN_STAGES or stage is OPEN_STAGES[0]:
            return None
        return OPEN_STAGES[OPEN_STAGES.index(stage) - 1]

    def get_stage_display_name(self, stage: DealStageValue) -> str:
        return STAGE_DISPLAY_NAMES[DealStageValue(stage)]
