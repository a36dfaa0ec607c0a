from abc import ABC, abstractmethod

from crm_core.core.domain.entities.activity_log_entity import ActivityLogEntry


class ActivityLogRepository(ABC):
    @abstractmethod
    async def append(self, entry: ActivityLogEntry) -> None:
        """Acrescenta uma entrada ao log de auditoria (append-only)."""
        ...
