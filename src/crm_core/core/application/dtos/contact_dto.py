from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import Field, model_validator

from crm_core.core.application.dtos.base_model import CrmBaseModel, CrmInputModel
from crm_core.core.domain.entities.contact_entity import ContactEntity, ContactType


class ContactDTO(CrmBaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    type: ContactType | None = None
    date: datetime
    notes: str
    is_note: bool
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    version: int
    shared_group_ids: list[uuid.UUID] | None = None

    @classmethod
    def from_entity(cls, contact: ContactEntity) -> ContactDTO:
        return cls(
            id=contact.id,
            client_id=contact.client_id,
            type=contact.type,
            date=contact.date,
            notes=contact.notes,
            is_note=contact.is_note,
            user_id=contact.user_id,
            created_at=contact.created_at,
            updated_at=contact.updated_at,
            version=contact.version,
            shared_group_ids=list(contact.shared_group_ids) if contact.shared_group_ids is not None else None,
        )


class CreateContactDTO(CrmInputModel):
    client_id: uuid.UUID
    type: ContactType | None = None
    date: datetime | None = None
    notes: str = Field(min_length=1)
    is_note: bool = False
    shared_group_ids: list[uuid.UUID] | None = None

    @model_validator(mode="after")
    def _type_required_for_contacts(self):
        if not self.is_note and self.type is None:
            raise ValueError("Typ kontaktu jest wymagany")
        return self


class UpdateContactDTO(CrmInputModel):
    type: ContactType | None = None
    date: datetime | None = None
    notes: str | None = Field(default=None, min_length=1)
    is_note: bool | None = None
    shared_group_ids: list[uuid.UUID] | None = None
    version: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _no_null_for_required(self):
        for name in ("date", "notes", "is_note"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"Pole {name} nie może być puste")
        return self


class ContactFilterDTO(CrmInputModel):
    client_id: uuid.UUID | None = None
    type: ContactType | None = None
    user_id: uuid.UUID | None = None
    is_note: bool | None = None
    order_by: Literal["date", "created_at"] | None = None
    direction: Literal["asc", "desc"] = "desc"
