from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from crm_core.core.domain.entities._base import TimestampedEntity
from crm_core.core.domain.value_objects import DealStage, DealValue, Probability

if TYPE_CHECKING:
    from crm_core.core.domain.entities.client_entity import ClientEntity


class DealEntity(TimestampedEntity):
    """
    Oportunidade de venda.

    A etapa é somente-leitura aqui: toda mudança passa por
    `DealPipelineService.change_stage`, que valida a transição antes de
    chamar `_apply_stage`.
    """

    __slots__ = (
        "id",
        "client_id",
        "_value",
        "_probability",
        "_stage",
        "_expected_close_date",
        "_notes",
        "client",
        "shared_group_ids",
    )

    def __init__(
        self,
        *,
        id: uuid.UUID,
        client_id: uuid.UUID,
        value: DealValue,
        probability: Probability,
        stage: DealStage,
        expected_close_date: date | None = None,
        notes: str | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        version: int = 1,
        client: ClientEntity | None = None,
        shared_group_ids: tuple[uuid.UUID, ...] | None = None,
    ) -> None:
        super().__init__(created_at, updated_at, version)
        self.id = id
        self.client_id = client_id
        self._value = value
        self._probability = probability
        self._stage = stage
        self._expected_close_date = expected_close_date
        self._notes = notes
        # relações carregadas só quando pedidas via `include`
        self.client = client
        self.shared_group_ids = shared_group_ids

    # ─── fábricas ────────────────────────────────────────────────
    @classmethod
    def create(
        cls,
        *,
        client_id: uuid.UUID,
        value: DealValue,
        probability: Probability,
        stage: DealStage,
        expected_close_date: date | None = None,
        notes: str | None = None,
        id: uuid.UUID | None = None,
    ) -> DealEntity:
        return cls(
            id=id or uuid.uuid4(),
            client_id=client_id,
            value=value,
            probability=probability,
            stage=stage,
            expected_close_date=expected_close_date,
            notes=notes,
        )

    @classmethod
    def from_persistence(cls, data: dict[str, Any]) -> DealEntity:
        return cls(
            id=data["id"],
            client_id=data["client_id"],
            value=DealValue.from_validated(data["value"], data["currency"]),
            probability=Probability.from_validated(data["probability"]),
            stage=DealStage.from_validated(data["stage"]),
            expected_close_date=data.get("expected_close_date"),
            notes=data.get("notes"),
            created_at=data["created_at"],
            updated_at=data["updated_at"],
            version=data.get("version", 1),
            client=data.get("client"),
            shared_group_ids=data.get("shared_group_ids"),
        )

    def to_persistence(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "value": self._value.amount,
            "currency": self._value.currency,
            "probability": self._probability.value,
            "stage": self._stage.value.value,
            "expected_close_date": self._expected_close_date,
            "notes": self._notes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    # ─── leitura ─────────────────────────────────────────────────
    @property
    def value(self) -> DealValue:
        return self._value

    @property
    def probability(self) -> Probability:
        return self._probability

    @property
    def stage(self) -> DealStage:
        return self._stage

    @property
    def expected_close_date(self) -> date | None:
        return self._expected_close_date

    @property
    def notes(self) -> str | None:
        return self._notes

    def is_closed(self) -> bool:
        return self._stage.is_closed()

    def is_won(self) -> bool:
        return self._stage.is_won()

    def is_lost(self) -> bool:
        return self._stage.is_lost()

    def is_overdue(self) -> bool:
        """Data prevista de fechamento já passou e o deal continua aberto."""
        if self._expected_close_date is None:
            return False
        return self._expected_close_date < date.today() and not self.is_closed()

    # ─── mutadores ───────────────────────────────────────────────
    def update_value(self, value: DealValue) -> None:
        self._value = value
        self._touch()

    def update_probability(self, probability: Probability) -> None:
        self._probability = probability
        self._touch()

    def update_notes(self, notes: str | None) -> None:
        self._notes = notes
        self._touch()

    def set_expected_close_date(self, expected_close_date: date | None) -> None:
        self._expected_close_date = expected_close_date
        self._touch()

    def _apply_stage(self, stage: DealStage) -> None:
        self._stage = stage
        self._touch()

    def __repr__(self) -> str:
        return f"DealEntity(id={self.id}, stage={self._stage}, value={self._value})"
