from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_aware(value: datetime) -> datetime:
    """Datas ingênuas são interpretadas no fuso local do servidor."""
    if value.tzinfo is None or value.utcoffset() is None:
        return value.astimezone()
    return value


class EntityMixin:
    def to_dict(self) -> dict[str, Any]:
        """
        Converte a entidade em dict, recursivamente se for dataclass.
        """
        return asdict(self)


class TimestampedEntity:
    """
    Base das agregações mutáveis (Deal, Task, Contact).

    `created_at` é fixo; `updated_at` só avança (nunca retrocede, mesmo se o
    relógio do servidor voltar) e é tocado por cada mutador.
    """

    __slots__ = ("_created_at", "_updated_at", "version")

    def __init__(self, created_at: datetime | None, updated_at: datetime | None, version: int) -> None:
        now = utc_now()
        self._created_at = created_at or now
        self._updated_at = updated_at or self._created_at
        self.version = version

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    def _touch(self) -> None:
        now = utc_now()
        if now > as_aware(self._updated_at):
            self._updated_at = now
