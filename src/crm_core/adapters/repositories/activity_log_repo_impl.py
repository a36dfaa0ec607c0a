from asgiref.sync import sync_to_async

from crm_core.core.domain.entities.activity_log_entity import ActivityLogEntry
from crm_core.core.domain.repositories.activity_log_repository import ActivityLogRepository
from plugins.django_interface.models import ActivityLog as ActivityLogModel


class ActivityLogRepoImpl(ActivityLogRepository):
    def _append(self, entry: ActivityLogEntry) -> None:
        ActivityLogModel.objects.create(**entry.to_dict())

    async def append(self, entry: ActivityLogEntry) -> None:
        await sync_to_async(self._append)(entry)
