from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from crm_core.core.domain.entities._base import EntityMixin


@dataclass(frozen=True, slots=True)
class ActivityLogEntry(EntityMixin):
    user_id: uuid.UUID
    action: str                 # DEAL_WON, TASK_CREATED, ...
    entity_type: str            # Deal | Task | Contact
    entity_id: uuid.UUID | None = None
    details: dict[str, Any] = field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
