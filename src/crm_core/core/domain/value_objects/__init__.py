from crm_core.core.domain.value_objects.deal_stage import (
    OPEN_STAGES,
    TERMINAL_STAGES,
    DealStage,
    DealStageValue,
)
from crm_core.core.domain.value_objects.deal_value import MAX_DEAL_AMOUNT, DealValue
from crm_core.core.domain.value_objects.probability import Probability

__all__ = [
    "MAX_DEAL_AMOUNT",
    "OPEN_STAGES",
    "TERMINAL_STAGES",
    "DealStage",
    "DealStageValue",
    "DealValue",
    "Probability",
]
