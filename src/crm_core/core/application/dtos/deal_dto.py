from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Literal

from pydantic import Field

from crm_core.core.application.dtos.base_model import CrmBaseModel, CrmInputModel
from crm_core.core.domain.entities.deal_entity import DealEntity
from crm_core.core.domain.value_objects import DealStageValue


class DealClientDTO(CrmBaseModel):
    id: uuid.UUID
    first_name: str | None = None
    last_name: str | None = None
    agency_name: str | None = None
    status: str


class DealDTO(CrmBaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    value: float
    currency: str
    probability: int
    stage: DealStageValue
    stage_label: str
    expected_close_date: date | None = None
    notes: str | None = None
    is_overdue: bool = False
    created_at: datetime
    updated_at: datetime
    version: int
    client: DealClientDTO | None = None
    shared_group_ids: list[uuid.UUID] | None = None

    @classmethod
    def from_entity(cls, deal: DealEntity) -> DealDTO:
        client = None
        if deal.client is not None:
            client = DealClientDTO(
                id=deal.client.id,
                first_name=deal.client.first_name,
                last_name=deal.client.last_name,
                agency_name=deal.client.agency_name,
                status=deal.client.status.value,
            )
        return cls(
            id=deal.id,
            client_id=deal.client_id,
            value=float(deal.value.amount),
            currency=deal.value.currency,
            probability=deal.probability.value,
            stage=deal.stage.value,
            stage_label=deal.stage.display_name,
            expected_close_date=deal.expected_close_date,
            notes=deal.notes,
            is_overdue=deal.is_overdue(),
            created_at=deal.created_at,
            updated_at=deal.updated_at,
            version=deal.version,
            client=client,
            shared_group_ids=list(deal.shared_group_ids) if deal.shared_group_ids is not None else None,
        )


class CreateDealDTO(CrmInputModel):
    client_id: uuid.UUID
    # valor/probabilidade/etapa são validados pelos value objects
    value: Any
    currency: str | None = None
    probability: Any = 0
    stage: str | None = None
    expected_close_date: date | None = None
    notes: str | None = None
    shared_group_ids: list[uuid.UUID] | None = None


class UpdateDealDTO(CrmInputModel):
    """Todos opcionais; só os campos presentes em `model_fields_set` são aplicados."""

    value: Any = None
    currency: str | None = None
    probability: Any = None
    stage: str | None = None
    expected_close_date: date | None = None
    notes: str | None = None
    shared_group_ids: list[uuid.UUID] | None = None
    # versão lida pelo cliente; quando enviada, precisa bater com a gravada
    version: int | None = Field(default=None, ge=1)


class DealFilterDTO(CrmInputModel):
    client_id: uuid.UUID | None = None
    stage: DealStageValue | None = None
    search: str | None = None
    order_by: Literal["updated_at", "created_at", "expected_close_date", "value"] | None = None
    direction: Literal["asc", "desc"] = "desc"
    include: list[Literal["client", "shared_groups"]] = Field(default_factory=list)
