from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from typing import Any

import structlog
from django.db.models import F, Model, Q, QuerySet

from crm_core.adapters.observability.metrics import CONCURRENT_UPDATE_CONFLICTS
from crm_core.core.domain.events.exceptions import ConcurrentUpdateError, NotFoundError, ValidationError
from crm_core.core.domain.repositories.find_options import FindOptions
from plugins.django_interface.models import Client, UserGroup

logger = structlog.get_logger(__name__)


def apply_find_options(qs: QuerySet, options: FindOptions) -> QuerySet:
    """ORDER BY (campo já validado pela allow-list) + desempate por id, e a janela limit/offset."""
    order = options.effective_order
    expr = F(order.field).asc(nulls_last=True) if order.direction == "asc" else F(order.field).desc(nulls_last=True)
    qs = qs.order_by(expr, "id")
    if options.limit is not None:
        return qs[options.offset:options.offset + options.limit]
    if options.offset:
        return qs[options.offset:]
    return qs


def shared_with_user(model: type[Model], user_id: uuid.UUID) -> QuerySet:
    """ids das linhas compartilhadas com algum grupo do usuário (subquery, sem DISTINCT)."""
    return model.objects.filter(shared_groups__users__id=user_id).values("id")


def client_scope_q(user_id: uuid.UUID, prefix: str = "client__") -> Q:
    """Cliente atribuído ao usuário ou compartilhado com um grupo dele."""
    return Q(**{f"{prefix}assigned_to_id": user_id}) | Q(
        **{f"{prefix}id__in": shared_with_user(Client, user_id)}
    )


def versioned_update(model: type[Model], obj_id: uuid.UUID, expected_version: int, fields: dict[str, Any]) -> int:
    """
    UPDATE ... WHERE id = ? AND version = ?; devolve a nova versão.

    Zero linhas afetadas: ou a linha sumiu (NotFoundError) ou outro escritor
    chegou antes (ConcurrentUpdateError).
    """
    updated = model.objects.filter(id=obj_id, version=expected_version).update(
        **fields, version=F("version") + 1
    )
    if updated:
        return expected_version + 1

    if model.objects.filter(id=obj_id).exists():
        entity = model._meta.model_name
        CONCURRENT_UPDATE_CONFLICTS.labels(entity=entity).inc()
        logger.warning("concurrent_update_rejected", entity=entity, id=str(obj_id), expected_version=expected_version)
        raise ConcurrentUpdateError()
    raise NotFoundError()


def replace_shared_groups(model: type[Model], obj_id: uuid.UUID, group_ids: Sequence[uuid.UUID]) -> None:
    ids = set(group_ids)
    known = set(UserGroup.objects.filter(id__in=ids).values_list("id", flat=True))
    missing = ids - known
    if missing:
        raise ValidationError(f"Nieznane grupy: {', '.join(sorted(str(i) for i in missing))}")
    try:
        obj = model.objects.get(id=obj_id)
    except model.DoesNotExist as exc:
        raise NotFoundError() from exc
    obj.shared_groups.set(ids)


def group_ids_of(obj: Model) -> tuple[uuid.UUID, ...]:
    # usa o prefetch quando houver
    return tuple(g.id for g in obj.shared_groups.all())


def without(data: dict[str, Any], keys: Iterable[str]) -> dict[str, Any]:
    excluded = set(keys)
    return {k: v for k, v in data.items() if k not in excluded}
