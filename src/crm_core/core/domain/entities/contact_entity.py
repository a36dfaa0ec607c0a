from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from crm_core.core.domain.entities._base import TimestampedEntity

_UNSET: Any = object()


class ContactType(str, Enum):
    PHONE_CALL = "PHONE_CALL"
    EMAIL = "EMAIL"
    MEETING = "MEETING"
    LINKEDIN_MESSAGE = "LINKEDIN_MESSAGE"
    OTHER = "OTHER"


class ContactEntity(TimestampedEntity):
    """Interação registrada com o cliente (`is_note=False`) ou nota livre."""

    __slots__ = ("id", "client_id", "type", "date", "notes", "is_note", "user_id", "shared_group_ids")

    def __init__(
        self,
        *,
        id: uuid.UUID,
        client_id: uuid.UUID,
        date: datetime,
        notes: str,
        user_id: uuid.UUID,
        type: ContactType | None = None,
        is_note: bool = False,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        version: int = 1,
        shared_group_ids: tuple[uuid.UUID, ...] | None = None,
    ) -> None:
        super().__init__(created_at, updated_at, version)
        self.id = id
        self.client_id = client_id
        self.type = ContactType(type) if type is not None else None
        self.date = date
        self.notes = notes
        self.is_note = is_note
        self.user_id = user_id
        self.shared_group_ids = shared_group_ids

    @classmethod
    def from_persistence(cls, data: dict[str, Any]) -> ContactEntity:
        return cls(**data)

    def to_persistence(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "type": self.type.value if self.type else None,
            "date": self.date,
            "notes": self.notes,
            "is_note": self.is_note,
            "user_id": self.user_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def update_info(
        self,
        *,
        type: ContactType | None = _UNSET,
        date: datetime = _UNSET,
        notes: str = _UNSET,
        is_note: bool = _UNSET,
    ) -> None:
        if type is not _UNSET:
            self.type = ContactType(type) if type is not None else None
        if date is not _UNSET:
            self.date = date
        if notes is not _UNSET:
            self.notes = notes
        if is_note is not _UNSET:
            self.is_note = is_note
        self._touch()

    def is_note_type(self) -> bool:
        return self.is_note

    def is_contact_type(self) -> bool:
        return not self.is_note
