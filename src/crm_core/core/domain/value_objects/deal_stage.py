from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from crm_core.core.domain.events.exceptions import ValidationError


class DealStageValue(str, Enum):
    LEAD = "LEAD"
    QUALIFIED = "QUALIFIED"
    PROPOSAL = "PROPOSAL"
    NEGOTIATION = "NEGOTIATION"
    WON = "WON"
    LOST = "LOST"


# Ordem do funil; WON/LOST ficam fora por serem terminais.
OPEN_STAGES: tuple[DealStageValue, ...] = (
    DealStageValue.LEAD,
    DealStageValue.QUALIFIED,
    DealStageValue.PROPOSAL,
    DealStageValue.NEGOTIATION,
)
TERMINAL_STAGES: frozenset[DealStageValue] = frozenset({DealStageValue.WON, DealStageValue.LOST})

STAGE_DISPLAY_NAMES: dict[DealStageValue, str] = {
    DealStageValue.LEAD: "Lead",
    DealStageValue.QUALIFIED: "Zakwalifikowany",
    DealStageValue.PROPOSAL: "Oferta",
    DealStageValue.NEGOTIATION: "Negocjacje",
    DealStageValue.WON: "Wygrany",
    DealStageValue.LOST: "Przegrany",
}


@dataclass(frozen=True, slots=True)
class DealStage:
    value: DealStageValue

    @classmethod
    def create(cls, stage: Any) -> DealStage:
        try:
            return cls(value=DealStageValue(stage))
        except ValueError as exc:
            allowed = ", ".join(s.value for s in DealStageValue)
            raise ValidationError(
                f"Nieprawidłowy etap deala. Dozwolone wartości: {allowed}"
            ) from exc

    @classmethod
    def from_validated(cls, stage: str | DealStageValue) -> DealStage:
        return cls(value=DealStageValue(stage))

    @property
    def display_name(self) -> str:
        return STAGE_DISPLAY_NAMES[self.value]

    def is_closed(self) -> bool:
        return self.value in TERMINAL_STAGES

    def is_won(self) -> bool:
        return self.value is DealStageValue.WON

    def is_lost(self) -> bool:
        return self.value is DealStageValue.LOST

    def __str__(self) -> str:
        return self.value.value
