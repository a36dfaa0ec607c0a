from __future__ import annotations

import uuid
from collections.abc import Callable
from typing import Any

import structlog

from crm_core.adapters.observability.metrics import ACTIVITY_LOG_FAILURES
from crm_core.core.domain.entities.activity_log_entity import ActivityLogEntry
from crm_core.core.domain.repositories.activity_log_repository import ActivityLogRepository

logger = structlog.get_logger(__name__)

ClientInfoProvider = Callable[[], tuple[str | None, str | None]]


def _no_client_info() -> tuple[str | None, str | None]:
    return None, None


class ActivityLogger:
    """
    Log de auditoria best-effort.

    Roda depois que a mudança principal já foi gravada: uma falha aqui é
    registrada (structlog + contador Prometheus) e nunca propagada ao
    chamador.
    """

    def __init__(self, repo: ActivityLogRepository, client_info: ClientInfoProvider | None = None):
        self.repo = repo
        self.client_info = client_info or _no_client_info

    async def log(
        self,
        *,
        user_id: uuid.UUID,
        action: str,
        entity_type: str,
        entity_id: uuid.UUID | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        try:
            ip, user_agent = self.client_info()
            entry = ActivityLogEntry(
                user_id=user_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                details=details or {},
                ip_address=ip,
                user_agent=user_agent,
            )
            await self.repo.append(entry)
        except Exception as exc:
            ACTIVITY_LOG_FAILURES.labels(action=action).inc()
            logger.error(
                "activity_log_write_failed",
                action=action,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id else None,
                error=str(exc),
                exc_info=True,
            )

    async def log_deal_activity(self, user_id, action, deal_id, details=None) -> None:
        await self.log(user_id=user_id, action=action, entity_type="Deal", entity_id=deal_id, details=details)

    async def log_task_activity(self, user_id, action, task_id, details=None) -> None:
        await self.log(user_id=user_id, action=action, entity_type="Task", entity_id=task_id, details=details)

    async def log_contact_activity(self, user_id, action, contact_id, details=None) -> None:
        await self.log(user_id=user_id, action=action, entity_type="Contact", entity_id=contact_id, details=details)
